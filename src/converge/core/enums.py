"""Core enumerations for the Converge verifier."""
from enum import Enum


class PollState(str, Enum):
    """
    Poll state machine states.

    State flow:
        PENDING → PENDING (condition not yet satisfied, time remains)
           ↓
        SATISFIED / FAILED / TIMED_OUT (terminal)
    """

    PENDING = "PENDING"
    SATISFIED = "SATISFIED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class PodPhase(str, Enum):
    """
    Execution phase reported by a pod.

    - PENDING: Accepted but containers not yet running
    - RUNNING: At least one container is running
    - SUCCEEDED: All containers exited with status 0
    - FAILED: All containers terminated, at least one with a failure
    - UNKNOWN: Phase could not be determined
    """

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class ConditionStatus(str, Enum):
    """Status value carried by an orchestration status condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class BackoffPolicy(str, Enum):
    """
    Interval policies between two polls.

    - FIXED: Poll at a fixed interval
    - EXPONENTIAL: Double the interval on every attempt, up to a cap
    - JITTER: Exponential interval plus random jitter
    """

    FIXED = "fixed"
    EXPONENTIAL = "exponential"
    JITTER = "jitter"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class VerificationStatus(str, Enum):
    """Outcome of a cross-system comparison."""

    MATCHED = "MATCHED"
    MISMATCHED = "MISMATCHED"
    FAILED = "FAILED"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value
