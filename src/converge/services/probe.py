"""Probe jobs: launch a short-lived pod, wait for it, read its log as the result."""
import asyncio
import functools
import logging
from typing import Optional, Protocol
from converge.clients.orchestrator import OrchestratorClient
from converge.core.enums import PodPhase, PollState
from converge.core.exceptions import ProbeTimeoutError, WaitTimeoutError
from converge.models.manifests import probe_pod
from converge.models.workload import ProbeCommand, ProbeResult
from converge.services.conditions import probe_terminal
from converge.services.poller import Poller, run_cancellable

logger = logging.getLogger(__name__)


class ProbeRunner(Protocol):
    """Capability to run a probe command and return its exit phase and output."""

    async def run_probe(self, command: ProbeCommand) -> ProbeResult:
        ...


class PodProbeRunner:
    """
    Runs probes as pods on the orchestration system.

    The pod is never deleted here; cleanup belongs to the caller.
    """

    def __init__(
        self,
        client: OrchestratorClient,
        poller: Optional[Poller] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize pod probe runner.

        Args:
            client: Orchestration client
            poller: Poller for pods (built from the client if omitted)
            timeout: Deadline for the probe to terminate (poller default if omitted)
            cancel_event: Optional event aborting creation, the wait and log retrieval
        """
        self.client = client
        self.poller = poller or Poller.for_kind(client, "Pod")
        self.timeout = timeout
        self.cancel_event = cancel_event

    async def run_probe(self, command: ProbeCommand) -> ProbeResult:
        """
        Create the probe pod, wait for it to terminate and read its log.

        Creation, polling and log retrieval all stop when the cancel event is set.

        Args:
            command: Probe to run

        Returns:
            ProbeResult: Terminal phase and raw log output

        Raises:
            ProbeTimeoutError: If the pod never terminated before the deadline
                or the run was cancelled
        """
        identity = command.identity
        logger.info(f"Creating probe pod {identity}")
        await self._call(
            functools.partial(self.client.create, probe_pod(command)),
            identity,
            "probe pod creation",
        )

        outcome = await self.poller.wait(
            identity,
            probe_terminal(command.name),
            "PodContainersTerminated",
            timeout=self.timeout,
            cancel_event=self.cancel_event,
        )
        if outcome.state != PollState.SATISFIED:
            raise ProbeTimeoutError(identity, outcome.reason, outcome)

        phase = outcome.snapshot.status.phase
        if phase == PodPhase.FAILED:
            logger.warning(f"Probe pod {identity} terminated in phase {phase}")

        output = await self._call(
            functools.partial(self.client.get_logs, identity, command.container),
            identity,
            "probe log retrieval",
        )
        return ProbeResult(identity=identity, phase=phase, output=output)

    async def _call(self, operation, identity, description):
        """Run one client call under the cancel event, as a probe error."""
        try:
            return await run_cancellable(operation, identity, description, self.cancel_event)
        except WaitTimeoutError as e:
            raise ProbeTimeoutError(identity, description, cancelled=e.cancelled) from e
