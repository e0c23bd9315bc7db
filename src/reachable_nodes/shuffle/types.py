"""Shared constants and metadata structures for the shuffle layer."""

from dataclasses import dataclass

# 1MB buffer for efficient I/O.
BUFFER_SIZE = 1024 * 1024

# Maximum number of file handles to keep open at once (LRU cache limit).
MAX_OPEN_HANDLES = 128


@dataclass
class ShuffleStats:
    """Statistics from one map task's shuffle write."""

    records_read: int = 0
    proposals_written: int = 0
    structures_written: int = 0


def bucket_file_name(bucket_idx: int) -> str:
    return f"bucket_{bucket_idx:04d}.bin"


def partition_file_name(partition_idx: int) -> str:
    return f"part-{partition_idx:05d}.bin"
