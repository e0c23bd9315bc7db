import logging
import shutil
import tempfile
import time
from collections.abc import Iterable
from pathlib import Path

from reachable_nodes.extract import ExtractStats, extract_reachable
from reachable_nodes.node.load import load_graph, load_records
from reachable_nodes.solver.orchestrate import Orchestrator, RunConfig, RunState, round_dir

logger = logging.getLogger(__name__)

INPUT_FORMATS = ("text", "records")


def clear_output(output_path: str | Path) -> None:
    """Delete anything at the output path before the job chain runs."""
    path = Path(output_path)
    if path.is_dir():
        logger.warning("Deleting existing output directory %s", path)
        shutil.rmtree(path)
    elif path.exists():
        logger.warning("Deleting existing output file %s", path)
        path.unlink()


def solve(
    input_path: str,
    output_path: str,
    sources: Iterable[int] = (),
    input_format: str = "text",
    config: RunConfig | None = None,
    work_dir: str | None = None,
) -> ExtractStats:
    """
    Find every node reachable from the sources and its hop distance.

    Three stages:
    1. Load the input into round-0 node records
    2. Run propagation rounds until no distance changes
    3. Extract the reached nodes as text shards under ``output_path``

    ``work_dir`` holds the per-round record sets; a temporary directory is
    used and removed afterwards when it is not given.

    Raises:
        RoundFailure: a round could not complete or the round ceiling was hit.
    """
    if input_format not in INPUT_FORMATS:
        raise ValueError(f"input_format must be one of {INPUT_FORMATS}, got {input_format!r}")

    config = config or RunConfig()
    total_start = time.perf_counter()
    input_file = Path(input_path)
    input_path = str(input_file.resolve())

    clear_output(output_path)

    keep_work = work_dir is not None
    work_path = Path(work_dir) if keep_work else Path(tempfile.mkdtemp(prefix="reachable_nodes_"))
    work_path.mkdir(parents=True, exist_ok=True)

    try:
        t1_start = time.perf_counter()
        initial_dir = round_dir(work_path, 0)
        if input_format == "text":
            _paths, stats = load_graph(input_path, sources, config.buckets, initial_dir)
        else:
            _paths, stats = load_records(input_path, config.buckets, initial_dir)
        t1 = time.perf_counter() - t1_start

        if stats.malformed_lines > 0:
            logger.warning(
                "Load: %d malformed lines skipped (read=%d)",
                stats.malformed_lines,
                stats.lines_read,
            )
        logger.info(
            "Load done: file=%s, nodes=%d, edges=%d, sources=%d in %.2fs",
            input_file.name,
            stats.nodes,
            stats.edges,
            stats.sources,
            t1,
        )
        if stats.sources == 0:
            logger.warning("No source node in the input; nothing will be reachable")

        orchestrator = Orchestrator(work_path, config, node_count=stats.nodes)
        result = orchestrator.run()
        if result.state is not RunState.CONVERGED:
            raise result.error

        extract_stats = extract_reachable(result, output_path, workers=config.workers, retries=config.retries)

        total_time = time.perf_counter() - total_start
        logger.info(
            "Result: %d reachable nodes after %d rounds (total %.2fs)",
            extract_stats.records_written,
            result.rounds,
            total_time,
        )
        return extract_stats

    finally:
        if not keep_work:
            shutil.rmtree(work_path, ignore_errors=True)


def main_solve(
    input_path: str,
    output_path: str,
    sources: Iterable[int] = (),
    input_format: str = "text",
    config: RunConfig | None = None,
    work_dir: str | None = None,
) -> None:
    """Main entry point that prints the reachable node count to stdout."""
    stats = solve(
        input_path,
        output_path,
        sources=sources,
        input_format=input_format,
        config=config,
        work_dir=work_dir,
    )
    print(stats.records_written)
