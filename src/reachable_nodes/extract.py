"""Map-only extraction of reachable nodes from a converged record set."""

import logging
import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from reachable_nodes.errors import PartitionTaskFailure
from reachable_nodes.node.codec import iter_partition
from reachable_nodes.node.types import NodeRecord
from reachable_nodes.shuffle.partition import list_partitions
from reachable_nodes.shuffle.types import BUFFER_SIZE
from reachable_nodes.solver.execution import (
    DEFAULT_RETRIES,
    get_executor_class,
    open_executor,
    run_tasks,
)
from reachable_nodes.solver.orchestrate import RunResult, RunState

logger = logging.getLogger(__name__)

TEMPORARY_DIR_NAME = "_temporary"


@dataclass
class ExtractStats:
    """Statistics from the extraction pass."""

    partitions: int = 0
    records_read: int = 0
    records_written: int = 0


def output_file_name(partition_idx: int) -> str:
    return f"part-m-{partition_idx:05d}.txt"


def format_record(record: NodeRecord) -> str:
    """Render ``node_id<TAB>distance<TAB>adjacency`` for the text output."""
    adjacency = " ".join(str(neighbor) for neighbor in record.adjacency)
    return f"{record.node_id}\t{record.distance}\t{adjacency}"


def extract_partition(input_path: str, output_path: str) -> tuple[int, int]:
    """
    Write every reached record of one partition as a text line.

    Returns (records read, records written).
    """
    tmp_path = output_path + ".tmp"
    read = written = 0

    try:
        with open(tmp_path, "w", encoding="utf-8", buffering=BUFFER_SIZE) as out:
            for record in iter_partition(input_path):
                read += 1
                if record.reached:
                    out.write(format_record(record) + "\n")
                    written += 1
        os.replace(tmp_path, output_path)
    except OSError as exc:
        raise PartitionTaskFailure(input_path, str(exc)) from exc

    return read, written


def extract_reachable(
    result: RunResult,
    output_dir: str | Path,
    workers: int | None = None,
    retries: int = DEFAULT_RETRIES,
) -> ExtractStats:
    """
    Filter a converged run down to nodes with a finite distance.

    One map task per partition, no shuffle and no reduce: the decision for a
    record depends only on the record itself. Shards are written under
    ``output_dir/_temporary`` and moved into place only after every partition
    succeeded, so a failed extract leaves no shards behind.
    """
    if result.state is not RunState.CONVERGED or result.final_dir is None:
        raise ValueError(f"can only extract from a converged run, got {result.state.value}")

    t_start = time.perf_counter()
    out_path = Path(output_dir)
    tmp_dir = out_path / TEMPORARY_DIR_NAME
    shutil.rmtree(tmp_dir, ignore_errors=True)
    tmp_dir.mkdir(parents=True)

    inputs = list_partitions(result.final_dir)
    names = [output_file_name(i) for i in range(len(inputs))]
    task_args = [(str(path), str(tmp_dir / name)) for path, name in zip(inputs, names, strict=True)]

    try:
        with open_executor(get_executor_class(), workers) as executor:
            counts = run_tasks(
                executor,
                extract_partition,
                task_args,
                round_number=result.rounds,
                phase="extract",
                retries=retries,
            )

        for name in names:
            os.replace(tmp_dir / name, out_path / name)
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)

    stats = ExtractStats(
        partitions=len(inputs),
        records_read=sum(read for read, _ in counts),
        records_written=sum(written for _, written in counts),
    )
    logger.info(
        "Extract done: %d of %d nodes reachable, %d shards in %.2fs",
        stats.records_written,
        stats.records_read,
        stats.partitions,
        time.perf_counter() - t_start,
    )
    return stats
