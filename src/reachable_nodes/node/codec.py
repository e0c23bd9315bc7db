"""Binary codec for node records.

Layout (big-endian): node_id:int32, distance:int32, count:int32,
adjacency:int32[count].
"""

import struct
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

from reachable_nodes.errors import CorruptRecord
from reachable_nodes.node.types import SENTINEL, NodeRecord
from reachable_nodes.shuffle.types import BUFFER_SIZE

HEADER = struct.Struct(">iii")
NEIGHBOR_SIZE = 4


def check_distance(node_id: int, distance: int) -> None:
    if distance < 0 and distance != SENTINEL:
        raise CorruptRecord(f"node {node_id}: illegal distance {distance}")


def encode(record: NodeRecord) -> bytes:
    """Serialize a record to its binary form."""
    check_distance(record.node_id, record.distance)
    count = len(record.adjacency)
    header = HEADER.pack(record.node_id, record.distance, count)
    return header + struct.pack(f">{count}i", *record.adjacency)


def decode_header(data: bytes) -> tuple[int, int, int]:
    """
    Validate and unpack a record header.

    Returns (node_id, distance, adjacency count).
    """
    if len(data) < HEADER.size:
        raise CorruptRecord(f"truncated header: {len(data)} of {HEADER.size} bytes")

    node_id, distance, count = HEADER.unpack_from(data)
    if count < 0:
        raise CorruptRecord(f"node {node_id}: negative adjacency count {count}")
    check_distance(node_id, distance)
    return node_id, distance, count


def decode(data: bytes) -> NodeRecord:
    """Deserialize one record from the start of ``data``."""
    node_id, distance, count = decode_header(data)

    needed = HEADER.size + count * NEIGHBOR_SIZE
    if needed > len(data):
        raise CorruptRecord(
            f"node {node_id}: adjacency of {count} needs {needed} bytes, got {len(data)}"
        )

    adjacency = struct.unpack_from(f">{count}i", data, HEADER.size)
    return NodeRecord(node_id, distance, adjacency)


def read_records(handle: BinaryIO) -> Iterator[NodeRecord]:
    """Stream consecutive records from a binary file handle."""
    while True:
        header = handle.read(HEADER.size)
        if not header:
            return

        _, _, count = decode_header(header)
        body = handle.read(count * NEIGHBOR_SIZE)
        yield decode(header + body)


def iter_partition(path: str | Path) -> Iterator[NodeRecord]:
    """Read and decode all records from a partition file."""
    with open(path, "rb", buffering=BUFFER_SIZE) as handle:
        yield from read_records(handle)


def write_records(path: str | Path, records: Iterable[NodeRecord]) -> int:
    """Write records to a partition file, returning how many were written."""
    written = 0
    with open(path, "wb", buffering=BUFFER_SIZE) as handle:
        for record in records:
            handle.write(encode(record))
            written += 1
    return written
