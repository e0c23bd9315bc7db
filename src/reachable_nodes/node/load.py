"""Build the round-0 node record set from graph input."""

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from reachable_nodes.node.codec import iter_partition
from reachable_nodes.node.types import SENTINEL, NodeRecord, is_int32
from reachable_nodes.shuffle.partition import write_partitions

logger = logging.getLogger(__name__)

AdjacencyLine: TypeAlias = tuple[int, list[int]]


@dataclass
class LoadStats:
    """Statistics from loading the initial graph."""

    lines_read: int = 0
    empty_lines: int = 0
    malformed_lines: int = 0
    nodes: int = 0
    edges: int = 0
    sources: int = 0


def parse_adjacency_line(raw_line: bytes) -> AdjacencyLine | None:
    """
    Parse ``node_id neighbor neighbor ...`` (any whitespace) into ids.

    Returns None for malformed lines: non-integer tokens or ids outside int32.
    """
    tokens = raw_line.split()
    try:
        ids = [int(token) for token in tokens]
    except ValueError:
        return None

    if not ids or not all(is_int32(node_id) for node_id in ids):
        return None
    return ids[0], ids[1:]


def iter_adjacency_lines(lines: Iterable[bytes], stats: LoadStats) -> Iterator[AdjacencyLine]:
    """Yield parsed adjacency lines, skipping blanks, comments and malformed input."""
    for raw_line in lines:
        stats.lines_read += 1
        line = raw_line.strip()
        if not line or line.startswith(b"#"):
            stats.empty_lines += 1
            continue

        parsed = parse_adjacency_line(line)
        if parsed is None:
            stats.malformed_lines += 1
            continue
        yield parsed


def build_initial_records(
    adjacency_lines: Iterable[AdjacencyLine],
    sources: Iterable[int],
) -> list[NodeRecord]:
    """
    Assemble round-0 records: sources at distance 0, everything else unreached.

    Repeated lines for one node extend its adjacency. Ids that only appear as
    neighbors, or only as sources, become nodes with no outgoing edges.
    """
    adjacency: dict[int, list[int]] = defaultdict(list)
    for node_id, neighbors in adjacency_lines:
        adjacency[node_id].extend(neighbors)

    for neighbors in list(adjacency.values()):
        for neighbor in neighbors:
            if neighbor not in adjacency:
                adjacency[neighbor] = []

    source_set = set(sources)
    for source in source_set:
        if source not in adjacency:
            logger.warning("Source %d does not appear in the graph; adding it as an isolated node", source)
            adjacency[source] = []

    return [
        NodeRecord(node_id, 0 if node_id in source_set else SENTINEL, tuple(neighbors))
        for node_id, neighbors in adjacency.items()
    ]


def load_graph(
    input_path: str,
    sources: Iterable[int],
    num_buckets: int,
    out_dir: str | Path,
) -> tuple[list[Path], LoadStats]:
    """
    Load a text adjacency list into hash-partitioned round-0 record files.

    Returns:
        Tuple of (list of partition paths, load statistics).
    """
    stats = LoadStats()
    with open(input_path, "rb") as handle:
        records = build_initial_records(iter_adjacency_lines(handle, stats), sources)

    stats.nodes = len(records)
    stats.edges = sum(len(record.adjacency) for record in records)
    stats.sources = sum(1 for record in records if record.distance == 0)

    paths = write_partitions(records, num_buckets, out_dir)
    return paths, stats


def load_records(input_dir: str, num_buckets: int, out_dir: str | Path) -> tuple[list[Path], LoadStats]:
    """
    Re-partition an existing binary record set as round 0.

    Sources are the records that already hold distance 0.
    """
    input_path = Path(input_dir)
    if input_path.is_dir():
        inputs = sorted(input_path.glob("*.bin"))
    else:
        inputs = [input_path]

    records = [record for path in inputs for record in iter_partition(path)]

    stats = LoadStats(
        nodes=len(records),
        edges=sum(len(record.adjacency) for record in records),
        sources=sum(1 for record in records if record.distance == 0),
    )
    paths = write_partitions(records, num_buckets, out_dir)
    return paths, stats
