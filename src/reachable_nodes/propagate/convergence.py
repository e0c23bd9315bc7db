"""Per-round aggregation of reduce-side change counts."""

import logging

from reachable_nodes.errors import ConvergenceUnknown

logger = logging.getLogger(__name__)


class ConvergenceTracker:
    """
    Combine the changed counts reported by every reduce partition of a round.

    An unreadable aggregate never reads as converged: ``changed`` fails open
    and forces another round.
    """

    def __init__(self, round_number: int, expected_partitions: int):
        self.round_number = round_number
        self._expected = expected_partitions
        self._counts: dict[int, int | None] = {}

    def record(self, partition: int, changed: int | None) -> None:
        """Store the changed count one reduce task reported (None if unreadable)."""
        self._counts[partition] = changed

    def total(self) -> int:
        """Total changed nodes this round; raises ConvergenceUnknown if incomplete."""
        missing = self._expected - len(self._counts)
        if missing > 0:
            raise ConvergenceUnknown(self.round_number, f"{missing} partition(s) did not report")

        unreadable = sorted(p for p, count in self._counts.items() if count is None)
        if unreadable:
            raise ConvergenceUnknown(
                self.round_number, f"unreadable count from partition(s) {unreadable}"
            )

        return sum(count for count in self._counts.values() if count is not None)

    def changed(self) -> bool:
        """True if at least one node changed, or if that cannot be determined."""
        try:
            return self.total() > 0
        except ConvergenceUnknown as exc:
            logger.warning("%s; assuming changed", exc)
            return True
