"""Workload data models shared by the poller, extractor and verifier."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from converge.core.enums import ConditionStatus, PodPhase, PollState
from converge.core.exceptions import ConditionFailedError, WaitTimeoutError

SUCCEEDED_CONDITION = "Succeeded"


class Identity(BaseModel):
    """(name, namespace) pair uniquely identifying an orchestration object."""

    name: str = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ResourceRef(BaseModel):
    """Reference from a result entry to the resource that produced it."""

    name: str = ""

    model_config = ConfigDict(frozen=True)


class ResultEntry(BaseModel):
    """A named, referenced key/value fact reported by a completed workload."""

    key: str
    value: str = ""
    reference: Optional[ResourceRef] = None

    model_config = ConfigDict(frozen=True)

    @property
    def has_reference(self) -> bool:
        return self.reference is not None and bool(self.reference.name)


class StatusCondition(BaseModel):
    """A single entry of an object's ``status.conditions``."""

    type: str
    status: ConditionStatus = ConditionStatus.UNKNOWN
    reason: str = ""
    message: str = ""


class WorkloadStatus(BaseModel):
    """Status half of a workload snapshot."""

    conditions: List[StatusCondition] = Field(default_factory=list)
    results: List[ResultEntry] = Field(default_factory=list)
    phase: Optional[PodPhase] = None
    pod_name: Optional[str] = None

    def get_condition(self, condition_type: str = SUCCEEDED_CONDITION) -> Optional[StatusCondition]:
        """Return the condition of the given type, if reported."""
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None


class WorkloadSnapshot(BaseModel):
    """Point-in-time read of a workload's spec and status."""

    kind: str
    identity: Identity
    spec: Dict[str, Any] = Field(default_factory=dict)
    status: WorkloadStatus = Field(default_factory=WorkloadStatus)

    @classmethod
    def from_manifest(cls, obj: Dict[str, Any]) -> "WorkloadSnapshot":
        """
        Build a snapshot from a raw orchestration object.

        Args:
            obj: Object as returned by the orchestration API

        Returns:
            WorkloadSnapshot: Parsed snapshot
        """
        metadata = obj.get("metadata") or {}
        raw_status = obj.get("status") or {}

        results = []
        for raw in raw_status.get("resourcesResult") or []:
            ref = raw.get("resourceRef")
            if ref is not None:
                reference = ResourceRef(name=ref.get("name") or "")
            elif raw.get("resourceName"):
                reference = ResourceRef(name=raw["resourceName"])
            else:
                reference = None
            results.append(
                ResultEntry(key=raw.get("key", ""), value=raw.get("value", ""), reference=reference)
            )

        phase = raw_status.get("phase")
        status = WorkloadStatus(
            conditions=[StatusCondition(**c) for c in raw_status.get("conditions") or []],
            results=results,
            phase=PodPhase(phase) if phase else None,
            pod_name=raw_status.get("podName"),
        )

        return cls(
            kind=obj.get("kind", ""),
            identity=Identity(name=metadata["name"], namespace=metadata["namespace"]),
            spec=obj.get("spec") or {},
            status=status,
        )


class ProbeCommand(BaseModel):
    """Command run by a probe job; its log is the probe's return value."""

    name: str
    namespace: str
    image: str
    container: str = "probe"
    command: List[str] = Field(default_factory=lambda: ["/bin/sh", "-c"])
    args: List[str] = Field(default_factory=list)

    @property
    def identity(self) -> Identity:
        return Identity(name=self.name, namespace=self.namespace)


class ProbeResult(BaseModel):
    """Terminal phase and raw log output of a probe job."""

    identity: Identity
    phase: PodPhase
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.phase == PodPhase.SUCCEEDED


@dataclass
class PollOutcome:
    """
    Terminal outcome of a poll.

    Carries the last observed snapshot so callers can diagnose
    without re-querying the orchestration system.
    """

    state: PollState
    identity: Identity
    description: str
    reason: str = ""
    snapshot: Optional[WorkloadSnapshot] = None
    attempts: int = 0
    elapsed: float = 0.0
    timeout: Optional[float] = None
    cancelled: bool = False

    @property
    def satisfied(self) -> bool:
        return self.state == PollState.SATISFIED

    def raise_for_outcome(self) -> Optional[WorkloadSnapshot]:
        """
        Convert a non-satisfied outcome into its error.

        Returns:
            Optional[WorkloadSnapshot]: Last snapshot when satisfied

        Raises:
            ConditionFailedError: If the condition reported terminal failure
            WaitTimeoutError: If the deadline elapsed or the wait was cancelled
        """
        if self.state == PollState.SATISFIED:
            return self.snapshot
        if self.state == PollState.FAILED:
            raise ConditionFailedError(self.identity, self.description, self.reason, self.snapshot)
        raise WaitTimeoutError(
            self.identity,
            self.description,
            self.timeout,
            self.snapshot,
            cancelled=self.cancelled,
        )
