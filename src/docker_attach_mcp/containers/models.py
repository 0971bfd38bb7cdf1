"""Container runtime models.

Data models for command execution and process-ID discovery inside containers.
"""

from dataclasses import dataclass, field
from enum import Enum

# Sentinel shown in place of a PID list when no attach target exists
PID_NOT_FOUND_MESSAGE = "Cannot find target process!"


class PidQueryStatus(str, Enum):
    """Outcome of a process-ID lookup inside a container."""

    NOT_FOUND = "not_found"
    INVALID = "invalid"
    FOUND = "found"


@dataclass(frozen=True)
class PidQueryResult:
    """Result of querying a container for the PIDs of a named process.

    ``pids`` is only populated when ``status`` is ``FOUND``.
    """

    status: PidQueryStatus
    pids: tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def not_found(cls) -> "PidQueryResult":
        return cls(status=PidQueryStatus.NOT_FOUND)

    @classmethod
    def invalid(cls) -> "PidQueryResult":
        return cls(status=PidQueryStatus.INVALID)

    @classmethod
    def found(cls, pids: list[int] | tuple[int, ...]) -> "PidQueryResult":
        if not pids:
            raise ValueError("A found result needs at least one PID")
        if any(pid <= 0 for pid in pids):
            raise ValueError(f"PIDs must be positive: {list(pids)}")
        return cls(status=PidQueryStatus.FOUND, pids=tuple(pids))

    @classmethod
    def from_output(cls, output: str) -> "PidQueryResult":
        """Classify the raw output of a ``pidof``-style query.

        Tokens are split on any whitespace run. Empty output is NOT_FOUND.
        A single token that is not a positive integer makes the whole
        result INVALID, even if every other token is a valid PID.
        """
        tokens = output.split()
        if not tokens:
            return cls.not_found()

        pids: list[int] = []
        for token in tokens:
            # int() would also accept "+12", "1_000" and non-ASCII digits
            if not (token.isascii() and token.isdigit()):
                return cls.invalid()
            pid = int(token)
            if pid <= 0:
                return cls.invalid()
            pids.append(pid)

        return cls.found(pids)

    @property
    def is_found(self) -> bool:
        """Check if at least one PID was found."""
        return self.status == PidQueryStatus.FOUND and len(self.pids) > 0


@dataclass
class ExecResult:
    """Result of executing a runtime CLI command."""

    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.exit_code == 0 and not self.timed_out
