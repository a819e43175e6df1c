"""Shared pytest fixtures for all tests."""
import pytest
from converge.config import get_settings
from converge.models.workload import Identity
from converge.services.poller import Poller
from tests.factories.fake_orchestrator import FakeOrchestrator
from tests.factories.workload_factory import NAMESPACE


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """
    Clear the cached settings before and after each test.

    Tests that change environment variables get a fresh Settings.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_client():
    """Provide an empty scripted orchestration client."""
    return FakeOrchestrator()


@pytest.fixture
def task_run_id():
    return Identity(name="kanikotask-run", namespace=NAMESPACE)


@pytest.fixture
def pod_id():
    return Identity(name="skopeo-jq", namespace=NAMESPACE)


@pytest.fixture
def make_poller(fake_client):
    """
    Factory for fast pollers reading from the fake client.

    Intervals are in the tens of milliseconds so timing tests stay quick.
    """

    def factory(kind: str = "TaskRun", client=None, **kwargs) -> Poller:
        kwargs.setdefault("interval", 0.01)
        kwargs.setdefault("max_interval", 0.05)
        kwargs.setdefault("timeout", 2.0)
        return Poller.for_kind(client or fake_client, kind, **kwargs)

    return factory
