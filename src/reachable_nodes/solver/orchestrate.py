"""Round-by-round driver for distance propagation."""

import enum
import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from reachable_nodes.errors import RoundFailure, RoundLimitExceeded
from reachable_nodes.propagate.convergence import ConvergenceTracker
from reachable_nodes.propagate.tasks import (
    SHUFFLE_DIR_NAME,
    ReduceTaskResult,
    run_map_task,
    run_reduce_task,
)
from reachable_nodes.shuffle.partition import list_partitions, validate_buckets
from reachable_nodes.solver.execution import (
    DEFAULT_RETRIES,
    describe_executor,
    get_executor_class,
    open_executor,
    run_tasks,
)

logger = logging.getLogger(__name__)

DEFAULT_BUCKETS = 64


class RunState(enum.Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    ABORTED = "aborted"


@dataclass
class RunConfig:
    """Tunables for a propagation run."""

    buckets: int = DEFAULT_BUCKETS
    workers: int | None = None
    # Round ceiling; None falls back to the node count.
    max_rounds: int | None = None
    retries: int = DEFAULT_RETRIES


@dataclass
class RunResult:
    """Outcome of a propagation run."""

    state: RunState
    rounds: int
    final_dir: Path | None
    reached: int = 0
    error: RoundFailure | None = None


def round_dir(work_dir: str | Path, round_number: int) -> Path:
    return Path(work_dir) / f"round-{round_number:04d}"


class Orchestrator:
    """
    Drive propagation rounds over ``work_dir`` until no distance changes.

    Round 0 is the loaded snapshot in ``round-0000``. Round n reads
    ``round-{n-1}`` and writes ``round-{n}``; it starts only after every map
    and reduce task of the previous round has finished and its changed
    counts have been aggregated.
    """

    def __init__(self, work_dir: str | Path, config: RunConfig | None = None, node_count: int | None = None):
        self.work_dir = Path(work_dir)
        self.config = config or RunConfig()
        validate_buckets(self.config.buckets)

        if self.config.max_rounds is not None:
            self.max_rounds: int | None = self.config.max_rounds
        elif node_count is not None:
            # Shortest paths span at most node_count - 1 hops, plus one round to confirm.
            self.max_rounds = max(node_count, 1)
        else:
            self.max_rounds = None

        self.state = RunState.RUNNING
        self.round = 0

    def run(self) -> RunResult:
        executor_class = get_executor_class()
        logger.info(
            "Starting propagation: work_dir=%s, buckets=%d, executor=%s, max_rounds=%s",
            self.work_dir,
            self.config.buckets,
            describe_executor(executor_class),
            self.max_rounds if self.max_rounds is not None else "unbounded",
        )
        total_start = time.perf_counter()
        reached = 0

        with open_executor(executor_class, self.config.workers) as executor:
            while self.state is RunState.RUNNING:
                next_round = self.round + 1
                if self.max_rounds is not None and next_round > self.max_rounds:
                    return self._abort(
                        RoundLimitExceeded(
                            next_round, "schedule", f"no convergence within {self.max_rounds} rounds"
                        )
                    )

                try:
                    changed, reached = self._run_round(executor, next_round)
                except RoundFailure as exc:
                    return self._abort(exc)

                self.round = next_round
                if not changed:
                    self.state = RunState.CONVERGED

        total_time = time.perf_counter() - total_start
        logger.info(
            "Converged after %d rounds: %d reachable nodes (total %.2fs)", self.round, reached, total_time
        )
        return RunResult(RunState.CONVERGED, self.round, round_dir(self.work_dir, self.round), reached)

    def _run_round(self, executor, round_number: int) -> tuple[bool, int]:
        """Run one full map/shuffle/reduce pass. Returns (changed, reached count)."""
        t_start = time.perf_counter()
        in_dir = round_dir(self.work_dir, round_number - 1)
        out_dir = round_dir(self.work_dir, round_number)
        shuffle_dir = out_dir / SHUFFLE_DIR_NAME
        buckets = self.config.buckets

        # A rerun replaces whatever a previous attempt left behind.
        shutil.rmtree(out_dir, ignore_errors=True)
        shuffle_dir.mkdir(parents=True)

        inputs = list_partitions(in_dir)
        if not inputs:
            raise RoundFailure(round_number, "map", f"no input partitions in {in_dir}")

        run_tasks(
            executor,
            run_map_task,
            [(str(path), i, str(shuffle_dir), buckets) for i, path in enumerate(inputs)],
            round_number=round_number,
            phase="map",
            retries=self.config.retries,
        )

        results: list[ReduceTaskResult] = run_tasks(
            executor,
            run_reduce_task,
            [(bucket, str(shuffle_dir), str(out_dir)) for bucket in range(buckets)],
            round_number=round_number,
            phase="reduce",
            retries=self.config.retries,
        )

        tracker = ConvergenceTracker(round_number, buckets)
        for result in results:
            tracker.record(result.partition, result.changed)
        changed = tracker.changed()
        reached = sum(result.reached for result in results)

        shutil.rmtree(shuffle_dir, ignore_errors=True)

        logger.info(
            "Round %d done: %d changed, %d reached in %.2fs",
            round_number,
            sum(r.changed or 0 for r in results),
            reached,
            time.perf_counter() - t_start,
        )
        return changed, reached

    def _abort(self, error: RoundFailure) -> RunResult:
        self.state = RunState.ABORTED
        logger.error("Aborted at round %d (%s): %s", error.round_number, type(error).__name__, error.reason)
        return RunResult(RunState.ABORTED, self.round, None, error=error)
