"""Map and reduce task bodies for one partition of a propagation round.

Tasks are top-level functions over plain str/int arguments so they can be
shipped to a process pool.
"""

import itertools
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from reachable_nodes.errors import PartitionTaskFailure
from reachable_nodes.node.codec import iter_partition, write_records
from reachable_nodes.propagate.mapper import map_node
from reachable_nodes.propagate.reducer import reduce_node
from reachable_nodes.shuffle.cache import LRUFileCache
from reachable_nodes.shuffle.messages import encode_message, iter_shuffle_file, message_target
from reachable_nodes.shuffle.partition import bucket_for
from reachable_nodes.shuffle.types import (
    MAX_OPEN_HANDLES,
    ShuffleStats,
    bucket_file_name,
    partition_file_name,
)

logger = logging.getLogger(__name__)

SHUFFLE_DIR_NAME = "_shuffle"


@dataclass(frozen=True, slots=True)
class ReduceTaskResult:
    """What one reduce task reports back to the orchestrator."""

    partition: int
    records_written: int
    reached: int
    changed: int | None


def map_dir_name(map_idx: int) -> str:
    return f"map-{map_idx:05d}"


def run_map_task(input_path: str, map_idx: int, shuffle_dir: str, num_buckets: int) -> ShuffleStats:
    """
    Map one input partition and route its messages into shuffle buckets.

    Output goes to ``shuffle_dir/map-NNNNN/bucket_NNNN.bin``; any previous
    attempt's output is discarded first so a retry starts clean.
    """
    out_dir = Path(shuffle_dir) / map_dir_name(map_idx)
    bucket_mask = num_buckets - 1
    stats = ShuffleStats()

    try:
        shutil.rmtree(out_dir, ignore_errors=True)
        out_dir.mkdir(parents=True)
        cache = LRUFileCache(MAX_OPEN_HANDLES, out_dir)
        try:
            for record in iter_partition(input_path):
                stats.records_read += 1
                for message in map_node(record):
                    cache.write(bucket_for(message_target(message), bucket_mask), encode_message(message))
                    if message is record:
                        stats.structures_written += 1
                    else:
                        stats.proposals_written += 1
        finally:
            cache.close_all()
    except OSError as exc:
        raise PartitionTaskFailure(input_path, str(exc)) from exc

    logger.debug(
        "Map %s: %d records, %d proposals",
        Path(input_path).name,
        stats.records_read,
        stats.proposals_written,
    )
    return stats


def run_reduce_task(bucket_idx: int, shuffle_dir: str, output_dir: str) -> ReduceTaskResult:
    """
    Reduce one bucket: group its messages from every map task by node id.

    Messages are sorted by target so each id's group is handed to the reducer
    as a lazy single-pass iterator. The output partition is written to a
    temporary file and renamed into place.
    """
    out_path = Path(output_dir) / partition_file_name(bucket_idx)
    tmp_path = out_path.with_suffix(".tmp")
    shuffle_files = sorted(Path(shuffle_dir).glob(f"map-*/{bucket_file_name(bucket_idx)}"))

    changed = 0
    reached = 0

    def reduced_records():
        nonlocal changed, reached
        messages = [m for path in shuffle_files for m in iter_shuffle_file(path)]
        messages.sort(key=message_target)
        for node_id, group in itertools.groupby(messages, key=message_target):
            outcome = reduce_node(node_id, group)
            if outcome.changed:
                changed += 1
            if outcome.record.reached:
                reached += 1
            yield outcome.record

    try:
        written = write_records(tmp_path, reduced_records())
        os.replace(tmp_path, out_path)
    except OSError as exc:
        raise PartitionTaskFailure(str(out_path), str(exc)) from exc

    logger.debug("Reduce bucket %d: %d records, %d changed", bucket_idx, written, changed)
    return ReduceTaskResult(bucket_idx, written, reached, changed)
