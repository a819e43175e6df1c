"""Kubernetes REST implementation of the orchestration client."""
import logging
from typing import Any, Dict, Optional, Tuple
import httpx
from converge.core.exceptions import ObjectGoneError, ObjectNotFoundError, TransportError
from converge.models.workload import Identity, WorkloadSnapshot

logger = logging.getLogger(__name__)

# kind -> (API prefix, plural)
KIND_PATHS: Dict[str, Tuple[str, str]] = {
    "Pod": ("api/v1", "pods"),
    "Task": ("apis/tekton.dev/v1beta1", "tasks"),
    "TaskRun": ("apis/tekton.dev/v1beta1", "taskruns"),
    "PipelineResource": ("apis/tekton.dev/v1alpha1", "pipelineresources"),
}


class KubernetesClient:
    """
    Async client for the subset of the Kubernetes API the verifier needs.

    Requests are never retried; the poller owns the only retry loop.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        verify: bool = True,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Kubernetes client.

        Args:
            base_url: API server URL
            token: Optional bearer token
            verify: Verify the API server's TLS certificate
            timeout: Per-request timeout in seconds
            transport: Optional transport override (testing only)
        """
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            verify=verify,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "KubernetesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create(self, manifest: Dict[str, Any]) -> WorkloadSnapshot:
        """
        Create an object.

        Args:
            manifest: Full object manifest including metadata.namespace

        Returns:
            WorkloadSnapshot: Object as accepted by the API server
        """
        kind = manifest["kind"]
        namespace = manifest["metadata"]["namespace"]
        path = self._collection_path(kind, namespace)
        logger.debug(f"Creating {kind} {namespace}/{manifest['metadata']['name']}")

        response = await self._request("POST", path, kind, json=manifest)
        return self._snapshot(response)

    async def get(self, kind: str, identity: Identity) -> WorkloadSnapshot:
        """
        Read an object.

        Raises:
            ObjectNotFoundError: If the object does not exist (yet)
            ObjectGoneError: If the API reports the object as gone
            TransportError: For any other failure
        """
        path = f"{self._collection_path(kind, identity.namespace)}/{identity.name}"
        response = await self._request("GET", path, kind, identity=identity)
        return self._snapshot(response)

    async def get_logs(self, identity: Identity, container: str) -> str:
        """Read the log of a pod container as text."""
        path = f"{self._collection_path('Pod', identity.namespace)}/{identity.name}/log"
        response = await self._request(
            "GET", path, "Pod", identity=identity, params={"container": container}
        )
        return response.text

    def _collection_path(self, kind: str, namespace: str) -> str:
        if kind not in KIND_PATHS:
            raise TransportError(f"Unsupported kind: {kind}")
        prefix, plural = KIND_PATHS[kind]
        return f"/{prefix}/namespaces/{namespace}/{plural}"

    async def _request(
        self,
        method: str,
        path: str,
        kind: str,
        identity: Optional[Identity] = None,
        **kwargs,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404 and identity is not None:
            raise ObjectNotFoundError(kind, identity)
        if response.status_code == 410 and identity is not None:
            raise ObjectGoneError(kind, identity, response.text)
        if response.is_error:
            raise TransportError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _snapshot(response: httpx.Response) -> WorkloadSnapshot:
        try:
            return WorkloadSnapshot.from_manifest(response.json())
        except (KeyError, ValueError) as e:
            raise TransportError(f"Malformed response body: {e}") from e
