"""Tests for the node record codec."""

import io
import struct
import tempfile
from pathlib import Path

import pytest

from reachable_nodes.errors import CorruptRecord
from reachable_nodes.node.codec import decode, encode, iter_partition, read_records, write_records
from reachable_nodes.node.types import SENTINEL, NodeRecord


class TestEncodeDecode:
    """Test cases for encode/decode."""

    def test_layout_is_big_endian_int32(self) -> None:
        """Test the id, distance, count, adjacency layout."""
        data = encode(NodeRecord(1, 0, (2, 4)))
        assert data == struct.pack(">iiiii", 1, 0, 2, 2, 4)

    def test_sentinel_is_max_int32(self) -> None:
        data = encode(NodeRecord(5, SENTINEL))
        assert data == struct.pack(">iii", 5, 2**31 - 1, 0)

    def test_round_trip_preserves_duplicates_and_order(self) -> None:
        """Test that adjacency order and duplicate neighbors survive."""
        record = NodeRecord(7, 3, (9, 2, 9, -4))
        assert decode(encode(record)) == record

    def test_round_trip_bytes(self) -> None:
        data = struct.pack(">iiiii", 42, SENTINEL, 2, 1, 1)
        assert encode(decode(data)) == data

    def test_negative_count_is_corrupt(self) -> None:
        with pytest.raises(CorruptRecord, match="negative adjacency count"):
            decode(struct.pack(">iii", 1, 0, -1))

    def test_count_beyond_available_bytes_is_corrupt(self) -> None:
        with pytest.raises(CorruptRecord, match="needs"):
            decode(struct.pack(">iiii", 1, 0, 3, 2))

    def test_negative_distance_is_corrupt(self) -> None:
        with pytest.raises(CorruptRecord, match="illegal distance"):
            decode(struct.pack(">iii", 1, -5, 0))

    def test_encode_rejects_illegal_distance(self) -> None:
        """Test that a bad record fails when written, not when read back."""
        with pytest.raises(CorruptRecord, match="illegal distance"):
            encode(NodeRecord(1, -2, (3,)))

    def test_short_header_is_corrupt(self) -> None:
        with pytest.raises(CorruptRecord, match="truncated header"):
            decode(b"\x00\x00\x00\x01")


class TestRecordFiles:
    """Test cases for streaming record files."""

    def test_read_records_streams_consecutive_records(self) -> None:
        records = [NodeRecord(1, 0, (2,)), NodeRecord(2, SENTINEL), NodeRecord(3, 4, (1, 2, 3))]
        handle = io.BytesIO(b"".join(encode(r) for r in records))
        assert list(read_records(handle)) == records

    def test_truncated_trailing_record_is_corrupt(self) -> None:
        data = encode(NodeRecord(1, 0, (2, 3)))
        handle = io.BytesIO(data + data[:-2])
        with pytest.raises(CorruptRecord):
            list(read_records(handle))

    def test_write_then_iter_partition(self) -> None:
        records = [NodeRecord(i, i, (i + 1,)) for i in range(10)]
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "part-00000.bin"
            assert write_records(path, records) == 10
            assert list(iter_partition(path)) == records

    def test_empty_partition(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "part-00000.bin"
            write_records(path, [])
            assert path.read_bytes() == b""
            assert list(iter_partition(path)) == []
