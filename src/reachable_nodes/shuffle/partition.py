"""Bucket assignment and partition file layout."""

import zlib
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path

from reachable_nodes.node.codec import write_records
from reachable_nodes.node.types import NodeRecord
from reachable_nodes.shuffle.types import partition_file_name


def validate_buckets(buckets: int) -> None:
    """Reject bucket counts that are not a positive power of 2."""
    if buckets <= 0 or buckets & (buckets - 1) != 0:
        raise ValueError(f"buckets must be a power of 2, got {buckets}")


def bucket_for(node_id: int, bucket_mask: int) -> int:
    """
    Stable bucket index for a node id.

    Bitwise AND gives hash % num_buckets for power-of-two bucket counts.
    """
    return zlib.crc32(node_id.to_bytes(4, "big", signed=True)) & bucket_mask


def write_partitions(
    records: Iterable[NodeRecord],
    num_buckets: int,
    out_dir: str | Path,
) -> list[Path]:
    """
    Hash-partition records into one file per bucket, sorted by node id.

    Every bucket gets a file, empty or not, so a round's output layout always
    matches its input layout.
    """
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    bucket_mask = num_buckets - 1
    grouped: dict[int, list[NodeRecord]] = defaultdict(list)
    for record in records:
        grouped[bucket_for(record.node_id, bucket_mask)].append(record)

    paths = []
    for bucket_idx in range(num_buckets):
        path = out_path / partition_file_name(bucket_idx)
        bucket_records = sorted(grouped.get(bucket_idx, ()), key=lambda r: r.node_id)
        write_records(path, bucket_records)
        paths.append(path)
    return paths


def list_partitions(round_dir: str | Path) -> list[Path]:
    """Return a round directory's partition files in bucket order."""
    return sorted(Path(round_dir).glob("part-*.bin"))
