"""Shared fixtures for export tests."""

import copy
from typing import Any

import pytest

from kubeexport.cluster import ClusterClient, ClusterError
from kubeexport.models import ResourceDocument, ResourceType


class FakeClusterClient(ClusterClient):
    """In-memory cluster used by export tests.

    ``objects`` maps a resource name to the raw items listed for it. Setting
    ``list_errors[name]`` makes listing that type fail, and adding a group to
    ``unavailable_groups`` makes its discovery lookup fail.
    """

    def __init__(
        self,
        resource_types: list[ResourceType],
        objects: dict[str, list[dict[str, Any]]] | None = None,
        view: dict[str, Any] | None = None,
    ) -> None:
        self.resource_types = resource_types
        self.objects = objects or {}
        self.view = view if view is not None else {}
        self.list_errors: dict[str, str] = {}
        self.discovery_error: str | None = None
        self.unavailable_groups: set[str] = set()
        self.listed: list[tuple[str, str | None]] = []

    def kubeconfig_view(self) -> dict[str, Any]:
        return self.view

    def discover_resource_types(self, strict: bool = True) -> list[ResourceType]:
        if self.discovery_error:
            raise ClusterError(self.discovery_error)
        if strict and self.unavailable_groups:
            group = sorted(self.unavailable_groups)[0]
            raise ClusterError(f"the server is currently unable to handle the request ({group})")
        return [rt for rt in self.resource_types if rt.group not in self.unavailable_groups]

    def list_objects(self, resource_type: ResourceType, namespace: str | None) -> dict[str, Any]:
        self.listed.append((resource_type.name, namespace))
        if resource_type.name in self.list_errors:
            raise ClusterError(self.list_errors[resource_type.name])
        items = copy.deepcopy(self.objects.get(resource_type.name, []))
        return {"apiVersion": "v1", "kind": "List", "items": items}


def make_object(
    kind: str,
    name: str,
    api_version: str = "v1",
    namespace: str | None = "default",
    labels: dict[str, str] | None = None,
    owners: list[dict[str, str]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a raw object as returned by the API server."""
    metadata: dict[str, Any] = {
        "name": name,
        "uid": f"uid-{name}",
        "resourceVersion": "12345",
        "generation": 2,
        "selfLink": f"/api/{api_version}/{name}",
        "creationTimestamp": "2024-01-01T00:00:00Z",
    }
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = labels
    if owners:
        metadata["ownerReferences"] = owners
    content = {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": metadata,
        "status": {"phase": "Running"},
    }
    content.update(extra)
    return content


@pytest.fixture
def deployments_type() -> ResourceType:
    return ResourceType(
        name="deployments",
        group="apps",
        version="v1",
        kind="Deployment",
        namespaced=True,
        verbs=("get", "list", "watch", "create"),
        singular_name="deployment",
        short_names=("deploy",),
    )


@pytest.fixture
def jobs_type() -> ResourceType:
    return ResourceType(
        name="jobs",
        group="batch",
        version="v1",
        kind="Job",
        namespaced=True,
        verbs=("get", "list"),
        singular_name="job",
    )


@pytest.fixture
def configmaps_type() -> ResourceType:
    return ResourceType(
        name="configmaps",
        kind="ConfigMap",
        namespaced=True,
        verbs=("get", "list"),
        singular_name="configmap",
        short_names=("cm",),
    )


@pytest.fixture
def pods_type() -> ResourceType:
    return ResourceType(
        name="pods",
        kind="Pod",
        namespaced=True,
        verbs=("get", "list"),
        singular_name="pod",
        short_names=("po",),
    )


@pytest.fixture
def catalog(deployments_type, jobs_type, configmaps_type, pods_type) -> list[ResourceType]:
    """A small discovery result mixing exportable and non-exportable types."""
    return [
        configmaps_type,
        pods_type,
        ResourceType(name="events", kind="Event", verbs=("get", "list")),
        ResourceType(name="endpoints", kind="Endpoints", verbs=("get", "list")),
        ResourceType(name="nodes", kind="Node", namespaced=False, verbs=("get", "list")),
        ResourceType(name="bindings", kind="Binding", verbs=("create",)),
        deployments_type,
        jobs_type,
        ResourceType(
            name="events", group="events.k8s.io", kind="Event", verbs=("get", "list")
        ),
    ]


@pytest.fixture
def sample_objects() -> dict[str, list[dict[str, Any]]]:
    """Objects for the catalog fixture, including a controller-owned pod."""
    return {
        "deployments": [
            make_object("Deployment", "web", api_version="apps/v1", labels={"app": "shop"}),
            make_object("Deployment", "worker", api_version="apps/v1"),
        ],
        "configmaps": [
            make_object("ConfigMap", "settings", labels={"app": "shop"}, data={"key": "value"}),
        ],
        "pods": [
            make_object(
                "Pod",
                "web-abc12",
                labels={"app": "shop"},
                owners=[{"apiVersion": "apps/v1", "kind": "ReplicaSet", "name": "web-5d8f"}],
            ),
        ],
        "jobs": [],
    }


@pytest.fixture
def fake_client(catalog, sample_objects) -> FakeClusterClient:
    view = {
        "current-context": "dev",
        "contexts": [
            {"name": "dev", "context": {"cluster": "dev-cluster", "namespace": "default"}},
            {"name": "prod", "context": {"cluster": "prod-cluster"}},
        ],
    }
    return FakeClusterClient(catalog, sample_objects, view)


@pytest.fixture
def document() -> ResourceDocument:
    return ResourceDocument(
        make_object(
            "Deployment",
            "web",
            api_version="apps/v1",
            labels={"app": "shop"},
            spec={"replicas": 2},
        )
    )


@pytest.fixture
def object_factory():
    """Expose make_object to tests that build their own objects."""
    return make_object
