"""Command-line interface for reachable-nodes."""

import argparse
import logging
import sys

from reachable_nodes.errors import ReachabilityError, RoundFailure
from reachable_nodes.node.types import is_int32
from reachable_nodes.solver.execution import DEFAULT_RETRIES
from reachable_nodes.solver.orchestrate import DEFAULT_BUCKETS, RunConfig
from reachable_nodes.solver.solve import INPUT_FORMATS, main_solve

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging to write to stderr."""
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def parse_sources(value: str) -> list[int]:
    """Parse a comma-separated list of int32 node ids."""
    try:
        sources = [int(token) for token in value.split(",") if token.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"sources must be comma-separated integers, got {value!r}") from None

    if not sources:
        raise argparse.ArgumentTypeError("at least one source id is required")
    for source in sources:
        if not is_int32(source):
            raise argparse.ArgumentTypeError(f"source id {source} does not fit in int32")
    return sources


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="reachable-nodes",
        description="Find all nodes reachable from a set of sources, with hop distances.",
    )

    parser.add_argument("-input", dest="input", metavar="PATH", required=True, help="input path")
    parser.add_argument(
        "-output",
        dest="output",
        metavar="PATH",
        required=True,
        help="output path (existing contents are deleted)",
    )
    parser.add_argument(
        "-sources",
        dest="sources",
        type=parse_sources,
        default=[1],
        help="comma-separated source node ids for text input (default: 1)",
    )

    parser.add_argument(
        "--input-format",
        choices=INPUT_FORMATS,
        default="text",
        help="text adjacency list or binary node records (default: text)",
    )

    parser.add_argument(
        "--buckets",
        type=int,
        default=DEFAULT_BUCKETS,
        help=f"Number of partitions per round (power of 2, default: {DEFAULT_BUCKETS})",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel workers (default: auto)",
    )

    parser.add_argument(
        "--max-rounds",
        type=int,
        default=None,
        help="Abort if not converged after this many rounds (default: node count)",
    )

    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help=f"Retries per failed partition task (default: {DEFAULT_RETRIES})",
    )

    parser.add_argument(
        "--work-dir",
        default=None,
        help="Keep per-round record sets in this directory (default: temporary)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging based on --log-level
    log_level = getattr(logging, args.log_level)
    configure_logging(log_level)

    # Validate buckets is power of 2
    if args.buckets <= 0 or args.buckets & (args.buckets - 1) != 0:
        parser.error(f"--buckets must be a power of 2, got {args.buckets}")
    if args.max_rounds is not None and args.max_rounds < 1:
        parser.error(f"--max-rounds must be positive, got {args.max_rounds}")
    if args.retries < 0:
        parser.error(f"--retries must not be negative, got {args.retries}")

    config = RunConfig(
        buckets=args.buckets,
        workers=args.workers,
        max_rounds=args.max_rounds,
        retries=args.retries,
    )

    try:
        main_solve(
            input_path=args.input,
            output_path=args.output,
            sources=args.sources,
            input_format=args.input_format,
            config=config,
            work_dir=args.work_dir,
        )
    except RoundFailure as exc:
        logger.error("round %d failed (%s): %s", exc.round_number, type(exc).__name__, exc.reason)
        return 1
    except ReachabilityError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
