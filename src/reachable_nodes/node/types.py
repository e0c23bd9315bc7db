"""Shared type definitions for node state."""

from dataclasses import dataclass
from typing import NamedTuple, TypeAlias

# Reserved "unreached" distance: max int32, larger than any finite hop count.
SENTINEL = 2**31 - 1

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass(frozen=True, slots=True)
class NodeRecord:
    """State of one graph vertex for a single round."""

    node_id: int
    distance: int
    adjacency: tuple[int, ...] = ()

    @property
    def reached(self) -> bool:
        return self.distance != SENTINEL


class Proposal(NamedTuple):
    """Candidate distance for a target node, scoped to one round."""

    target: int
    distance: int


# A shuffled message is either a distance proposal or the node's own record
# carried through as the structure side channel.
Message: TypeAlias = Proposal | NodeRecord


def is_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX
