"""Cross-system verification of a workload result against a probe observation."""
import logging
from dataclasses import dataclass
from converge.core.enums import PodPhase, VerificationStatus
from converge.core.exceptions import (
    EmptyProbeOutputError,
    ProbeFailedError,
    ProbeTimeoutError,
    VerificationMismatchError,
)
from converge.models.workload import ProbeCommand, ProbeResult
from converge.observability.metrics import record_verification
from converge.services.probe import ProbeRunner

logger = logging.getLogger(__name__)

SKOPEO_CONTAINER = "skopeo"


@dataclass
class VerificationResult:
    """Result of a successful cross-system comparison."""

    expected: str
    actual: str
    probe: ProbeResult

    @property
    def status(self) -> VerificationStatus:
        if self.expected == self.actual:
            return VerificationStatus.MATCHED
        return VerificationStatus.MISMATCHED


def normalize_output(text: str) -> str:
    """Trim whitespace and strip quoting artifacts from probe output."""
    return text.strip().replace('"', "").strip()


def remote_digest_command(
    name: str,
    namespace: str,
    image: str,
    repository: str,
    tag: str = "latest",
) -> ProbeCommand:
    """
    Probe printing the digest of an image as seen by the registry.

    The registry is only reachable from inside the namespace, so the
    inspection runs in a pod there.
    """
    return ProbeCommand(
        name=name,
        namespace=namespace,
        image=image,
        container=SKOPEO_CONTAINER,
        command=["/bin/sh", "-c"],
        args=[f"skopeo inspect --tls-verify=false docker://{repository}:{tag}| jq '.Digest'"],
    )


class CrossSystemVerifier:
    """
    Compares a value asserted by a workload with one observed remotely.

    One probe attempt per call; retries belong to the caller.
    """

    def __init__(self, probe_runner: ProbeRunner, strict: bool = False):
        """
        Initialize verifier.

        Args:
            probe_runner: Capability running probe commands
            strict: Fail before comparing when the probe terminated in Failed
        """
        self.probe_runner = probe_runner
        self.strict = strict

    async def verify(self, expected: str, command: ProbeCommand) -> VerificationResult:
        """
        Run the probe and compare its normalized output with the expected value.

        Args:
            expected: Value reported by the primary workload
            command: Probe observing the remote value

        Returns:
            VerificationResult: Matched comparison

        Raises:
            ProbeTimeoutError: If the probe never terminated
            ProbeFailedError: If strict and the probe failed
            EmptyProbeOutputError: If the normalized output is empty
            VerificationMismatchError: If the values differ
        """
        try:
            probe = await self.probe_runner.run_probe(command)
        except ProbeTimeoutError:
            record_verification(VerificationStatus.FAILED)
            raise

        if probe.phase == PodPhase.FAILED:
            if self.strict:
                record_verification(VerificationStatus.FAILED)
                raise ProbeFailedError(probe.identity, probe.output)
            logger.warning(f"Probe {probe.identity} failed, comparing its output anyway")

        actual = normalize_output(probe.output)
        if not actual:
            record_verification(VerificationStatus.FAILED)
            raise EmptyProbeOutputError(probe.identity)

        result = VerificationResult(expected=expected, actual=actual, probe=probe)
        record_verification(result.status)
        if result.status == VerificationStatus.MISMATCHED:
            logger.error(f"Expected {expected!r} to match remote {actual!r}")
            raise VerificationMismatchError(expected, actual)

        logger.info(f"Remote value {actual!r} matches expected value")
        return result
