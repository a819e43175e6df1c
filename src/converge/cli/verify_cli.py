"""CLI entry point for running a build verification."""
import asyncio
import logging
import os
import signal
import sys
from typing import Optional
from converge.clients.kubernetes import KubernetesClient
from converge.config import Settings, get_settings
from converge.core.exceptions import ConvergeException, ScenarioSkipped
from converge.observability.metrics import init_system_info
from converge.services.poller import Poller
from converge.services.probe import PodProbeRunner
from converge.services.scenario import BuildVerificationScenario, ScenarioConfig, ScenarioReport
from converge.services.verifier import CrossSystemVerifier

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_scenario(
    settings: Settings,
    client: KubernetesClient,
    cancel_event: Optional[asyncio.Event] = None,
) -> BuildVerificationScenario:
    """
    Wire the scenario from settings.

    Args:
        settings: Application settings
        client: Orchestration client
        cancel_event: Event aborting waits on shutdown

    Returns:
        BuildVerificationScenario: Ready-to-run scenario
    """
    poll_kwargs = dict(
        interval=settings.POLL_INTERVAL,
        max_interval=settings.POLL_MAX_INTERVAL,
        backoff_policy=settings.POLL_BACKOFF_POLICY,
        timeout=settings.WAIT_TIMEOUT,
    )
    probe_runner = PodProbeRunner(
        client,
        Poller.for_kind(client, "Pod", **poll_kwargs),
        cancel_event=cancel_event,
    )
    config = ScenarioConfig(
        namespace=settings.NAMESPACE,
        kaniko_image=settings.KANIKO_IMAGE,
        registry_image=settings.REGISTRY_IMAGE,
        probe_image=settings.PROBE_IMAGE,
        skip_root_user=settings.SKIP_ROOT_USER_TESTS,
    )
    return BuildVerificationScenario(
        client,
        config,
        CrossSystemVerifier(probe_runner, strict=settings.STRICT_PROBE),
        poller=Poller.for_kind(client, "TaskRun", **poll_kwargs),
    )


async def run_verification(settings: Settings) -> ScenarioReport:
    """
    Run a build verification against the configured cluster.

    Args:
        settings: Application settings

    Returns:
        ScenarioReport: Report of the successful run
    """
    stop_event = asyncio.Event()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, cancelling verification...")
        stop_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    async with KubernetesClient(
        settings.KUBE_API_URL,
        token=settings.KUBE_TOKEN,
        verify=settings.KUBE_VERIFY_TLS,
        timeout=settings.KUBE_REQUEST_TIMEOUT,
    ) as client:
        scenario = build_scenario(settings, client, stop_event)
        try:
            report = await scenario.run(cancel_event=stop_event)
        finally:
            created = ", ".join(f"{kind} {identity}" for kind, identity in scenario.created)
            logger.info(f"Objects left for cleanup: {created or 'none'}")

    logger.info(
        f"Verified {report.task_run}: digest {report.verification.actual} "
        f"at commit {report.results['commit']}"
    )
    return report


def main():
    """Main entry point."""
    settings = get_settings()
    configure_logging("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)
    init_system_info(settings.APP_VERSION)
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION} (pid {os.getpid()})")

    try:
        asyncio.run(run_verification(settings))
    except ScenarioSkipped as e:
        logger.info(f"Verification skipped: {e}")
    except ConvergeException as e:
        logger.error(f"Verification failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Verification interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
