"""Tests for bucket assignment and partition layout."""

import tempfile
import zlib

import pytest

from reachable_nodes.node.codec import iter_partition
from reachable_nodes.node.types import NodeRecord
from reachable_nodes.shuffle.partition import (
    bucket_for,
    list_partitions,
    validate_buckets,
    write_partitions,
)


def test_bucket_for_is_crc32_of_big_endian_id() -> None:
    assert bucket_for(1, 7) == zlib.crc32(b"\x00\x00\x00\x01") & 7
    assert bucket_for(-1, 3) == zlib.crc32(b"\xff\xff\xff\xff") & 3


def test_validate_buckets() -> None:
    validate_buckets(1)
    validate_buckets(64)
    for bad in (0, -4, 3, 100):
        with pytest.raises(ValueError, match="power of 2"):
            validate_buckets(bad)


def test_write_partitions_routes_by_hash() -> None:
    records = [NodeRecord(i, i) for i in range(20)]

    with tempfile.TemporaryDirectory() as tmp_dir:
        paths = write_partitions(records, 4, tmp_dir)
        assert paths == list_partitions(tmp_dir)

        for bucket_idx, path in enumerate(paths):
            for record in iter_partition(path):
                assert bucket_for(record.node_id, 3) == bucket_idx
