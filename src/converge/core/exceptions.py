"""Custom exceptions for Converge."""
from typing import Any, Iterable, Optional


class ConvergeException(Exception):
    """Base exception for all Converge-specific exceptions."""

    pass


class InvalidStateTransitionError(ConvergeException):
    """Raised when attempting an invalid poll state transition."""

    pass


class NotYetReadyError(ConvergeException):
    """
    Raised when an object has not converged yet.

    Handled inside the poller, never surfaced to callers of ``wait``.
    """

    pass


class ObjectNotFoundError(NotYetReadyError):
    """Raised when the orchestration API reports an object as not found."""

    def __init__(self, kind: str, identity: Any):
        self.kind = kind
        self.identity = identity
        super().__init__(f"{kind} {identity} not found")


class ObjectGoneError(ConvergeException):
    """Raised when an object will never appear (deleted or expired)."""

    def __init__(self, kind: str, identity: Any, detail: str = ""):
        self.kind = kind
        self.identity = identity
        self.detail = detail
        message = f"{kind} {identity} is gone"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TransportError(ConvergeException):
    """Raised when an orchestration API call fails for reasons other than not-found."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConditionFailedError(ConvergeException):
    """Raised when the observed object reached a terminal failure state."""

    def __init__(self, identity: Any, description: str, reason: str, snapshot: Any = None):
        self.identity = identity
        self.description = description
        self.reason = reason
        self.snapshot = snapshot
        super().__init__(f"{identity} failed waiting for {description}: {reason}")


class WaitTimeoutError(ConvergeException):
    """Raised when the deadline elapsed before the condition converged."""

    def __init__(
        self,
        identity: Any,
        description: str,
        timeout: Optional[float],
        snapshot: Any = None,
        cancelled: bool = False,
    ):
        self.identity = identity
        self.description = description
        self.timeout = timeout
        self.snapshot = snapshot
        self.cancelled = cancelled
        if cancelled:
            message = f"wait for {description} on {identity} was cancelled"
        else:
            message = f"timed out after {timeout}s waiting for {description} on {identity}"
        if snapshot is not None:
            message = f"{message} (last status: {_status_of(snapshot)})"
        super().__init__(message)


class ResultValidationError(ConvergeException):
    """Base class for result entry validation failures."""

    pass


class MissingResultError(ResultValidationError):
    """Raised when a required result entry is absent after successful termination."""

    def __init__(self, keys: Iterable[str], snapshot: Any = None):
        self.keys = sorted(keys)
        self.snapshot = snapshot
        super().__init__(f"Missing results: {', '.join(self.keys)}")

    @property
    def key(self) -> str:
        """First missing key, for the common single-key case."""
        return self.keys[0]


class MissingReferenceError(ResultValidationError):
    """Raised when result entries carry no reference identity."""

    def __init__(self, entries: Iterable[Any], snapshot: Any = None):
        self.entries = list(entries)
        self.snapshot = snapshot
        keys = ", ".join(entry.key for entry in self.entries)
        super().__init__(f"Resource ref not set for results: {keys}")


class ConflictingResultError(ResultValidationError):
    """Raised when one result key is reported with different values."""

    def __init__(self, key: str, values: Iterable[str]):
        self.key = key
        self.values = sorted(values)
        super().__init__(f"Conflicting values for result {key}: {self.values}")


class VerificationError(ConvergeException):
    """Base class for cross-system verification failures."""

    pass


class VerificationMismatchError(VerificationError):
    """Raised when the expected and the remotely observed values differ."""

    def __init__(self, expected: str, actual: str, subject: str = "value"):
        self.expected = expected
        self.actual = actual
        self.subject = subject
        super().__init__(
            f"Expected {subject} {expected!r} to match remote {subject} {actual!r}"
        )


class EmptyProbeOutputError(VerificationError):
    """Raised when a probe produced no usable output."""

    def __init__(self, identity: Any):
        self.identity = identity
        super().__init__(f"Probe {identity} produced no output")


class ProbeTimeoutError(VerificationError):
    """Raised when a probe did not reach a terminal phase in time or was cancelled."""

    def __init__(
        self, identity: Any, reason: str = "", outcome: Any = None, cancelled: bool = False
    ):
        self.identity = identity
        self.reason = reason
        self.outcome = outcome
        self.cancelled = cancelled or bool(getattr(outcome, "cancelled", False))
        if self.cancelled:
            message = f"Probe {identity} was cancelled"
        else:
            message = f"Probe {identity} did not terminate"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ProbeFailedError(VerificationError):
    """Raised in strict mode when a probe terminated in the Failed phase."""

    def __init__(self, identity: Any, output: str = ""):
        self.identity = identity
        self.output = output
        super().__init__(f"Probe {identity} failed: {output!r}")


class ScenarioSkipped(ConvergeException):
    """Raised when a scenario is disabled by configuration."""

    pass


def _status_of(snapshot: Any) -> Any:
    return getattr(snapshot, "status", snapshot)
