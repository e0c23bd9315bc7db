"""Mapper side of a propagation round."""

from collections.abc import Iterator

from reachable_nodes.node.types import SENTINEL, Message, NodeRecord, Proposal


def map_node(record: NodeRecord) -> Iterator[Message]:
    """
    Turn one node record into the messages for the next round.

    The record itself is always emitted as the structure message, which keeps
    the adjacency list and acts as the node's self-proposal. A node with a
    finite distance additionally proposes ``distance + 1`` to every neighbor;
    an unreached node only waits to be discovered.
    """
    yield record

    if record.distance == SENTINEL:
        return

    candidate = record.distance + 1
    for neighbor in record.adjacency:
        yield Proposal(neighbor, candidate)
