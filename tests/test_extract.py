"""Tests for the reachability extractor."""

import struct
import tempfile
from pathlib import Path

import pytest

from reachable_nodes.errors import RoundFailure
from reachable_nodes.extract import extract_partition, extract_reachable, format_record
from reachable_nodes.node.types import SENTINEL, NodeRecord
from reachable_nodes.shuffle.partition import write_partitions
from reachable_nodes.solver.orchestrate import RunResult, RunState


def test_format_record() -> None:
    assert format_record(NodeRecord(1, 0, (2, 4))) == "1\t0\t2 4"
    assert format_record(NodeRecord(3, 2)) == "3\t2\t"


def test_extract_partition_drops_unreached() -> None:
    records = [NodeRecord(1, 0, (2,)), NodeRecord(2, SENTINEL, (1,)), NodeRecord(3, 5)]

    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_path = Path(tmp_dir)
        (input_path,) = write_partitions(records, 1, tmp_path / "in")
        output_path = str(tmp_path / "out.txt")

        assert extract_partition(str(input_path), output_path) == (3, 2)
        assert Path(output_path).read_text(encoding="utf-8") == "1\t0\t2\n3\t5\t\n"


class TestExtractReachable:
    """Test cases for extract_reachable."""

    def test_writes_one_shard_per_partition(self) -> None:
        records = [NodeRecord(i, i if i % 2 else SENTINEL, ()) for i in range(1, 21)]

        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp_path = Path(tmp_dir)
            write_partitions(records, 4, tmp_path / "final")
            result = RunResult(RunState.CONVERGED, 3, tmp_path / "final")

            stats = extract_reachable(result, tmp_path / "out")

            shards = sorted((tmp_path / "out").glob("part-m-*.txt"))
            assert [p.name for p in shards] == [f"part-m-{i:05d}.txt" for i in range(4)]
            assert stats.partitions == 4
            assert stats.records_read == 20
            assert stats.records_written == 10

            ids = sorted(int(line.split("\t")[0]) for p in shards for line in p.read_text().splitlines())
            assert ids == list(range(1, 21, 2))

    @pytest.mark.parametrize("state", [RunState.RUNNING, RunState.ABORTED])
    def test_refuses_unconverged_run(self, state: RunState) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            result = RunResult(state, 2, Path(tmp_dir))
            with pytest.raises(ValueError, match="converged"):
                extract_reachable(result, Path(tmp_dir) / "out")


def test_failed_extract_leaves_no_shards() -> None:
    records = [NodeRecord(i, i, ()) for i in range(1, 21)]

    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_path = Path(tmp_dir)
        paths = write_partitions(records, 4, tmp_path / "final")
        with open(paths[-1], "ab") as handle:
            handle.write(struct.pack(">iii", 99, 0, -1))
        result = RunResult(RunState.CONVERGED, 3, tmp_path / "final")

        with pytest.raises(RoundFailure, match="corrupt record"):
            extract_reachable(result, tmp_path / "out")

        assert list((tmp_path / "out").iterdir()) == []
