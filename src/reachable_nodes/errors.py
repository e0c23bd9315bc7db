"""Error taxonomy for the round-based reachability computation.

Every exception passes all of its constructor arguments to ``Exception.__init__``
so instances can be pickled back from a process pool worker.
"""


class ReachabilityError(Exception):
    """Base class for all reachability errors."""


class CorruptRecord(ReachabilityError):
    """A node record failed structural validation while decoding."""


class PartitionTaskFailure(ReachabilityError):
    """A transient I/O fault inside one map or reduce task."""

    def __init__(self, partition: str, reason: str):
        super().__init__(partition, reason)
        self.partition = partition
        self.reason = reason

    def __str__(self) -> str:
        return f"task for {self.partition} failed: {self.reason}"


class RoundFailure(ReachabilityError):
    """A round could not be completed; the whole computation is aborted."""

    def __init__(self, round_number: int, phase: str, reason: str):
        super().__init__(round_number, phase, reason)
        self.round_number = round_number
        self.phase = phase
        self.reason = reason

    def __str__(self) -> str:
        return f"round {self.round_number} failed during {self.phase}: {self.reason}"


class RoundLimitExceeded(RoundFailure):
    """The round ceiling was reached before convergence."""


class ConvergenceUnknown(ReachabilityError):
    """The per-round changed count could not be read."""

    def __init__(self, round_number: int, reason: str):
        super().__init__(round_number, reason)
        self.round_number = round_number
        self.reason = reason

    def __str__(self) -> str:
        return f"convergence of round {self.round_number} unknown: {self.reason}"
