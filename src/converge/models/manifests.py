"""Builders for the declarative objects a verification run submits."""
from typing import Any, Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel, Field
from converge.models.workload import ProbeCommand

TEKTON_V1ALPHA1 = "tekton.dev/v1alpha1"
TEKTON_V1BETA1 = "tekton.dev/v1beta1"

GIT = "git"
IMAGE = "image"

# (binding name, resource type) for declarations, (binding name, resource name) for bindings
Declaration = Tuple[str, str]
Binding = Tuple[str, str]


class TaskStep(BaseModel):
    """One execution step of a task."""

    name: str
    image: str
    args: List[str] = Field(default_factory=list)
    command: List[str] = Field(default_factory=list)
    run_as_user: Optional[int] = None

    def to_container(self) -> Dict[str, Any]:
        container: Dict[str, Any] = {"name": self.name, "image": self.image}
        if self.command:
            container["command"] = list(self.command)
        if self.args:
            container["args"] = list(self.args)
        if self.run_as_user is not None:
            container["securityContext"] = {"runAsUser": self.run_as_user}
        return container


class Sidecar(BaseModel):
    """A container running alongside the steps of a task."""

    name: str
    image: str

    def to_container(self) -> Dict[str, Any]:
        return {"name": self.name, "image": self.image}


def _metadata(name: str, namespace: str) -> Dict[str, str]:
    return {"name": name, "namespace": namespace}


def git_resource(name: str, namespace: str, url: str, revision: str) -> Dict[str, Any]:
    """Git-source pipeline resource pinned to a revision."""
    return {
        "apiVersion": TEKTON_V1ALPHA1,
        "kind": "PipelineResource",
        "metadata": _metadata(name, namespace),
        "spec": {
            "type": GIT,
            "params": [
                {"name": "Url", "value": url},
                {"name": "Revision", "value": revision},
            ],
        },
    }


def image_resource(name: str, namespace: str, url: str) -> Dict[str, Any]:
    """Image-destination pipeline resource."""
    return {
        "apiVersion": TEKTON_V1ALPHA1,
        "kind": "PipelineResource",
        "metadata": _metadata(name, namespace),
        "spec": {
            "type": IMAGE,
            "params": [{"name": "url", "value": url}],
        },
    }


def task(
    name: str,
    namespace: str,
    steps: Sequence[TaskStep],
    inputs: Sequence[Declaration] = (),
    outputs: Sequence[Declaration] = (),
    sidecars: Sequence[Sidecar] = (),
) -> Dict[str, Any]:
    """
    Task specification.

    Args:
        name: Task name
        namespace: Target namespace
        steps: Ordered execution steps
        inputs: Input resource declarations as (binding name, type)
        outputs: Output resource declarations as (binding name, type)
        sidecars: Ordered sidecar containers

    Returns:
        Dict[str, Any]: Task manifest
    """
    spec: Dict[str, Any] = {"steps": [step.to_container() for step in steps]}
    if inputs or outputs:
        spec["resources"] = {
            "inputs": [{"name": n, "type": t} for n, t in inputs],
            "outputs": [{"name": n, "type": t} for n, t in outputs],
        }
    if sidecars:
        spec["sidecars"] = [sidecar.to_container() for sidecar in sidecars]

    return {
        "apiVersion": TEKTON_V1BETA1,
        "kind": "Task",
        "metadata": _metadata(name, namespace),
        "spec": spec,
    }


def task_run(
    name: str,
    namespace: str,
    task_name: str,
    timeout_seconds: Optional[int] = None,
    inputs: Sequence[Binding] = (),
    outputs: Sequence[Binding] = (),
) -> Dict[str, Any]:
    """Task run binding declared resource names to concrete resources."""
    spec: Dict[str, Any] = {"taskRef": {"name": task_name}}
    if timeout_seconds is not None:
        spec["timeout"] = f"{timeout_seconds}s"
    if inputs or outputs:
        spec["resources"] = {
            "inputs": [{"name": n, "resourceRef": {"name": r}} for n, r in inputs],
            "outputs": [{"name": n, "resourceRef": {"name": r}} for n, r in outputs],
        }

    return {
        "apiVersion": TEKTON_V1BETA1,
        "kind": "TaskRun",
        "metadata": _metadata(name, namespace),
        "spec": spec,
    }


def probe_pod(command: ProbeCommand) -> Dict[str, Any]:
    """Single-container pod that runs a probe command once."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": _metadata(command.name, command.namespace),
        "spec": {
            "containers": [
                {
                    "name": command.container,
                    "image": command.image,
                    "command": list(command.command),
                    "args": list(command.args),
                }
            ],
            "restartPolicy": "Never",
        },
    }
