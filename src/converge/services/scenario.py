"""End-to-end build verification: build an image, then check it against the registry."""
import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel
from converge.clients.orchestrator import OrchestratorClient
from converge.core.exceptions import ScenarioSkipped
from converge.models import manifests
from converge.models.manifests import GIT, IMAGE, Sidecar, TaskStep
from converge.models.workload import Identity
from converge.services.conditions import workload_succeeded
from converge.services.extractor import ResultExtractor
from converge.services.poller import Poller, run_cancellable
from converge.services.verifier import (
    CrossSystemVerifier,
    VerificationResult,
    remote_digest_command,
)

logger = logging.getLogger(__name__)

RESULT_KEYS = ("digest", "commit", "url")


class ScenarioConfig(BaseModel):
    """Explicit parameters of a build verification run."""

    namespace: str
    kaniko_image: str
    registry_image: str
    probe_image: str
    git_url: str = "https://github.com/GoogleContainerTools/kaniko"
    # Pinned on 2020/10/09
    revision: str = "a310cc6d1cd449f95cedd23393de766fdc649651"
    task_name: str = "kanikotask"
    task_run_name: str = "kanikotask-run"
    git_resource_name: str = "go-example-git"
    image_resource_name: str = "go-example-image"
    probe_name: str = "skopeo-jq"
    task_run_timeout_seconds: int = 120
    wait_timeout: Optional[float] = None
    skip_root_user: bool = False

    @property
    def repository(self) -> str:
        return f"registry.{self.namespace}:5000/kanikotasktest"


@dataclass
class ScenarioReport:
    """What a successful run created, extracted and verified."""

    task_run: Identity
    results: Dict[str, str]
    verification: VerificationResult
    created: List[Tuple[str, Identity]] = field(default_factory=list)


class BuildVerificationScenario:
    """
    Drives an image build and cross-checks its digest with the registry.

    Objects created here are recorded in ``created`` for an external
    cleanup step; this class never deletes anything.
    """

    def __init__(
        self,
        client: OrchestratorClient,
        config: ScenarioConfig,
        verifier: CrossSystemVerifier,
        poller: Optional[Poller] = None,
        extractor: Optional[ResultExtractor] = None,
    ):
        """
        Initialize scenario.

        Args:
            client: Orchestration client
            config: Scenario parameters
            verifier: Cross-system verifier used for the digest check
            poller: Poller for task runs (built from the client if omitted)
            extractor: Result extractor override
        """
        self.client = client
        self.config = config
        self.verifier = verifier
        self.poller = poller or Poller.for_kind(client, "TaskRun")
        self.extractor = extractor or ResultExtractor()
        self.created: List[Tuple[str, Identity]] = []

    @property
    def task_run_identity(self) -> Identity:
        return Identity(name=self.config.task_run_name, namespace=self.config.namespace)

    def build_manifests(self) -> List[Dict[str, Any]]:
        """Objects to submit, in creation order."""
        cfg = self.config
        ns = cfg.namespace
        repo = cfg.repository

        build_step = TaskStep(
            name="kaniko",
            image=cfg.kaniko_image,
            args=[
                "--dockerfile=/workspace/gitsource/integration/dockerfiles/Dockerfile_test_label",
                f"--destination={repo}",
                "--context=/workspace/gitsource",
                "--oci-layout-path=/workspace/output/builtImage",
                "--insecure",
                "--insecure-pull",
                f"--insecure-registry=registry.{ns}:5000/",
            ],
            run_as_user=0,
        )

        return [
            manifests.git_resource(cfg.git_resource_name, ns, cfg.git_url, cfg.revision),
            manifests.image_resource(cfg.image_resource_name, ns, repo),
            manifests.task(
                cfg.task_name,
                ns,
                steps=[build_step],
                inputs=[("gitsource", GIT)],
                outputs=[("builtImage", IMAGE)],
                sidecars=[Sidecar(name="registry", image=cfg.registry_image)],
            ),
            manifests.task_run(
                cfg.task_run_name,
                ns,
                task_name=cfg.task_name,
                timeout_seconds=cfg.task_run_timeout_seconds,
                inputs=[("gitsource", cfg.git_resource_name)],
                outputs=[("builtImage", cfg.image_resource_name)],
            ),
        ]

    async def run(self, cancel_event: Optional[asyncio.Event] = None) -> ScenarioReport:
        """
        Run the scenario.

        Args:
            cancel_event: Optional event aborting creation and the current wait

        Returns:
            ScenarioReport: Extracted results and the digest verification

        Raises:
            ScenarioSkipped: If root-user scenarios are disabled
            ConditionFailedError: If the task run failed
            WaitTimeoutError: If the task run did not finish in time or the run was cancelled
            ResultValidationError: If results are missing or unreferenced
            VerificationError: If commit or digest do not match
        """
        if self.config.skip_root_user:
            raise ScenarioSkipped("Skip test as skipRootUserTests set to true")

        for manifest in self.build_manifests():
            kind = manifest["kind"]
            metadata = manifest["metadata"]
            logger.info(f"Creating {kind} {metadata['name']}")
            snapshot = await run_cancellable(
                functools.partial(self.client.create, manifest),
                Identity(name=metadata["name"], namespace=metadata["namespace"]),
                f"{kind} creation",
                cancel_event,
            )
            self.created.append((kind, snapshot.identity))

        identity = self.task_run_identity
        outcome = await self.poller.wait(
            identity,
            workload_succeeded(identity.name),
            "TaskRunCompleted",
            timeout=self.config.wait_timeout,
            cancel_event=cancel_event,
        )
        task_run = outcome.raise_for_outcome()
        results = self.extractor.extract(task_run, RESULT_KEYS)
        self.extractor.expect_value(results, "commit", self.config.revision)

        probe = remote_digest_command(
            self.config.probe_name,
            self.config.namespace,
            self.config.probe_image,
            self.config.repository,
        )
        self.created.append(("Pod", probe.identity))
        verification = await self.verifier.verify(results["digest"], probe)

        return ScenarioReport(
            task_run=identity,
            results=results,
            verification=verification,
            created=list(self.created),
        )
