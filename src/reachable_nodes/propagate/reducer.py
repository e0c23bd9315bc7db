"""Reducer side of a propagation round."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from reachable_nodes.errors import CorruptRecord
from reachable_nodes.node.types import SENTINEL, Message, NodeRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReduceOutcome:
    """New record for one node and whether its distance moved."""

    record: NodeRecord
    changed: bool


def reduce_node(node_id: int, messages: Iterable[Message]) -> ReduceOutcome:
    """
    Fold all messages for one node id into its next-round record.

    ``messages`` is consumed once, in any order. The new distance is the
    minimum over every proposal and the prior distance carried by the
    structure message; adjacency comes verbatim from the structure message.
    """
    structure: NodeRecord | None = None
    best = SENTINEL

    for message in messages:
        if isinstance(message, NodeRecord):
            if structure is not None:
                raise CorruptRecord(f"node {node_id}: duplicate node record in round input")
            structure = message
            candidate = message.distance
        else:
            candidate = message.distance

        if candidate < best:
            best = candidate

    if structure is None:
        # Proposal for an id that has no record of its own.
        logger.debug("Node %d has no record; creating it with empty adjacency", node_id)
        prior = SENTINEL
        adjacency: tuple[int, ...] = ()
    else:
        prior = structure.distance
        adjacency = structure.adjacency

    return ReduceOutcome(NodeRecord(node_id, best, adjacency), changed=best != prior)
