"""Condition predicates evaluated by the poller on every snapshot."""
from dataclasses import dataclass
from typing import Callable
from converge.core.enums import ConditionStatus, PodPhase
from converge.models.workload import SUCCEEDED_CONDITION, WorkloadSnapshot


@dataclass(frozen=True)
class ConditionResult:
    """
    Result of evaluating a condition against one snapshot.

    ``satisfied`` and ``failed`` are never both set. Neither set means
    the object has not converged yet.
    """

    satisfied: bool = False
    failed: bool = False
    reason: str = ""

    @classmethod
    def pending(cls, reason: str = "") -> "ConditionResult":
        return cls(reason=reason)

    @classmethod
    def done(cls, reason: str = "") -> "ConditionResult":
        return cls(satisfied=True, reason=reason)

    @classmethod
    def failure(cls, reason: str) -> "ConditionResult":
        return cls(failed=True, reason=reason)


@dataclass(frozen=True)
class Condition:
    """A named, stateless predicate over a workload snapshot."""

    name: str
    description: str
    check: Callable[[WorkloadSnapshot], ConditionResult]

    def evaluate(self, snapshot: WorkloadSnapshot) -> ConditionResult:
        return self.check(snapshot)


def _succeeded_condition(snapshot: WorkloadSnapshot):
    return snapshot.status.get_condition(SUCCEEDED_CONDITION)


def workload_succeeded(name: str) -> Condition:
    """
    Satisfied when the workload reports terminal success.

    A terminal failure condition stops polling with the reported
    reason and message.
    """

    def check(snapshot: WorkloadSnapshot) -> ConditionResult:
        condition = _succeeded_condition(snapshot)
        if condition is None:
            return ConditionResult.pending("no Succeeded condition yet")
        if condition.status == ConditionStatus.TRUE:
            return ConditionResult.done(condition.reason)
        if condition.status == ConditionStatus.FALSE:
            detail = ": ".join(part for part in (condition.reason, condition.message) if part)
            return ConditionResult.failure(f"{name} failed: {detail}" if detail else f"{name} failed")
        return ConditionResult.pending(condition.reason)

    return Condition(name=name, description=f"{name} succeeded", check=check)


def probe_terminal(name: str) -> Condition:
    """
    Satisfied when the probe's phase is Succeeded or Failed.

    Both phases count as done: the probe's output is inspected either way.
    """

    def check(snapshot: WorkloadSnapshot) -> ConditionResult:
        phase = snapshot.status.phase
        if phase in (PodPhase.SUCCEEDED, PodPhase.FAILED):
            return ConditionResult.done(str(phase))
        return ConditionResult.pending(str(phase or PodPhase.PENDING))

    return Condition(name=name, description=f"{name} containers terminated", check=check)
