"""Interface consumed from the orchestration system."""
from typing import Any, Dict, Protocol
from converge.models.workload import Identity, WorkloadSnapshot


class OrchestratorClient(Protocol):
    """
    Minimal orchestration API used by the verifier.

    Implementations raise ObjectNotFoundError for missing objects,
    ObjectGoneError for objects that will never appear, and
    TransportError for every other failure.
    """

    async def create(self, manifest: Dict[str, Any]) -> WorkloadSnapshot:
        """Submit an object and return the accepted snapshot."""
        ...

    async def get(self, kind: str, identity: Identity) -> WorkloadSnapshot:
        """Read the current snapshot of an object."""
        ...

    async def get_logs(self, identity: Identity, container: str) -> str:
        """Read the log of one container of a pod."""
        ...
