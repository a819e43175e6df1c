"""Integration tests for running probes as pods."""
import asyncio
import logging
import pytest
from converge.core.enums import PodPhase
from converge.core.exceptions import ProbeTimeoutError
from converge.models.workload import ProbeCommand
from converge.services.probe import PodProbeRunner
from tests.factories.workload_factory import NAMESPACE, make_pod

COMMAND = ProbeCommand(
    name="skopeo-jq",
    namespace=NAMESPACE,
    image="skopeo",
    container="skopeo",
    args=["echo sha256:abc"],
)


@pytest.mark.integration
@pytest.mark.asyncio
class TestPodProbeRunner:
    """Tests for PodProbeRunner."""

    async def test_runs_probe_to_completion(self, fake_client, make_poller, pod_id):
        """Test the pod is created, awaited and its log returned."""
        fake_client.script(
            "Pod", pod_id, [make_pod(phase="Pending"), make_pod(phase="Running"), make_pod(phase="Succeeded")]
        )
        fake_client.set_logs("skopeo-jq", "skopeo", '"sha256:abc"\n')
        runner = PodProbeRunner(fake_client, make_poller("Pod"))

        result = await runner.run_probe(COMMAND)

        assert fake_client.created_kinds() == ["Pod"]
        assert fake_client.created[0]["spec"]["restartPolicy"] == "Never"
        assert result.phase == PodPhase.SUCCEEDED
        assert result.output == '"sha256:abc"\n'
        assert fake_client.log_calls == [(pod_id, "skopeo")]

    async def test_failed_phase_is_returned_with_warning(
        self, fake_client, make_poller, pod_id, caplog
    ):
        """Test a Failed probe still yields its output, flagged as a warning."""
        fake_client.script("Pod", pod_id, [make_pod(phase="Failed")])
        fake_client.set_logs("skopeo-jq", "skopeo", "error: manifest unknown")
        runner = PodProbeRunner(fake_client, make_poller("Pod"))

        with caplog.at_level(logging.WARNING, logger="converge.services.probe"):
            result = await runner.run_probe(COMMAND)

        assert result.phase == PodPhase.FAILED
        assert result.output == "error: manifest unknown"
        assert any("Failed" in record.getMessage() for record in caplog.records)

    async def test_probe_never_terminates(self, fake_client, make_poller, pod_id):
        """Test a probe stuck before a terminal phase is a fatal error."""
        fake_client.script("Pod", pod_id, [make_pod(phase="Running")])
        runner = PodProbeRunner(fake_client, make_poller("Pod"), timeout=0.2)

        with pytest.raises(ProbeTimeoutError) as exc_info:
            await runner.run_probe(COMMAND)

        assert exc_info.value.identity == pod_id
        assert fake_client.log_calls == []

    async def test_default_poller_reads_pods(self, fake_client, pod_id):
        """Test the runner builds a pod poller from the client."""
        fake_client.script("Pod", pod_id, [make_pod(phase="Succeeded")])
        runner = PodProbeRunner(fake_client)

        result = await runner.run_probe(COMMAND)

        assert runner.poller.kind == "Pod"
        assert result.succeeded

    async def test_cancel_during_log_retrieval(self, fake_client, make_poller, pod_id):
        """Test a cancel while the log is being read aborts the run."""
        fake_client.script("Pod", pod_id, [make_pod(phase="Succeeded")])
        fake_client.set_logs("skopeo-jq", "skopeo", '"sha256:abc"\n')
        fake_client.log_delay = 5.0
        cancel = asyncio.Event()
        runner = PodProbeRunner(fake_client, make_poller("Pod"), cancel_event=cancel)

        task = asyncio.create_task(runner.run_probe(COMMAND))
        await asyncio.sleep(0.1)
        assert fake_client.log_calls == [(pod_id, "skopeo")]
        cancel.set()

        with pytest.raises(ProbeTimeoutError) as exc_info:
            await asyncio.wait_for(task, timeout=1.0)

        assert exc_info.value.cancelled is True
        assert exc_info.value.identity == pod_id

    async def test_cancel_during_pod_creation(self, fake_client, make_poller, pod_id):
        """Test a cancel while the pod is being created stops before any poll."""
        fake_client.create_delay = 5.0
        cancel = asyncio.Event()
        runner = PodProbeRunner(fake_client, make_poller("Pod"), cancel_event=cancel)

        task = asyncio.create_task(runner.run_probe(COMMAND))
        await asyncio.sleep(0.05)
        cancel.set()

        with pytest.raises(ProbeTimeoutError) as exc_info:
            await asyncio.wait_for(task, timeout=1.0)

        assert exc_info.value.cancelled is True
        assert fake_client.calls_for("Pod") == 0
        assert fake_client.log_calls == []

    async def test_pre_set_cancel_creates_nothing(self, fake_client, make_poller):
        """Test an already-set cancel event prevents pod creation."""
        cancel = asyncio.Event()
        cancel.set()
        runner = PodProbeRunner(fake_client, make_poller("Pod"), cancel_event=cancel)

        with pytest.raises(ProbeTimeoutError) as exc_info:
            await runner.run_probe(COMMAND)

        assert exc_info.value.cancelled is True
        assert fake_client.created == []
