"""Cluster access for kubeexport.

This module defines the interface the export engine consumes from a cluster
(discovery, listing, kubeconfig inspection) and its kubectl-backed
implementation.
"""

import json
import subprocess
from abc import ABC, abstractmethod
from typing import Any

from kubeexport.config import KubectlConfig, default_config
from kubeexport.models import ResourceType
from kubeexport.observability import get_observability_manager


class ClusterError(Exception):
    """Raised when talking to the cluster or reading kubeconfig fails."""


class ClusterClient(ABC):
    """Abstract interface to a Kubernetes-style API server.

    Implementations return unstructured payloads; the export engine never needs to
    know an object's schema ahead of time.
    """

    @abstractmethod
    def kubeconfig_view(self) -> dict[str, Any]:
        """Return the merged kubeconfig as a mapping.

        The mapping follows the kubeconfig layout: ``current-context`` and a
        ``contexts`` list of ``{"name": ..., "context": {"cluster", "namespace"}}``.

        Raises:
            ClusterError: If the configuration cannot be read
        """

    @abstractmethod
    def discover_resource_types(self, strict: bool = True) -> list[ResourceType]:
        """Return every resource type served at its preferred version.

        Both namespace- and cluster-scoped types are returned; subresources are not.

        Args:
            strict: Fail when any API group cannot be read. When False, unavailable
                groups (e.g. an aggregated API that is down) are left out.

        Raises:
            ClusterError: If discovery fails
        """

    @abstractmethod
    def list_objects(self, resource_type: ResourceType, namespace: str | None) -> dict[str, Any]:
        """List objects of one type.

        Args:
            resource_type: Type to list
            namespace: Namespace to list from (None for the client default)

        Returns:
            Unstructured payload, normally a list container with ``items``

        Raises:
            ClusterError: If the listing request fails
        """


class KubectlClient(ClusterClient):
    """ClusterClient that shells out to kubectl.

    Connection selection (kubeconfig file, context, cluster) is forwarded as global
    flags on every invocation, so kubectl applies its usual defaulting rules.
    """

    def __init__(
        self,
        config: KubectlConfig | None = None,
        kubeconfig: str | None = None,
        context: str | None = None,
        cluster: str | None = None,
    ) -> None:
        self.config = config or default_config.kubectl
        self.kubeconfig = kubeconfig
        self.context = context
        self.cluster = cluster

        self._obs_manager = get_observability_manager()
        self._logger = self._obs_manager.get_logger("kubeexport.cluster")

    def _global_flags(self) -> list[str]:
        flags = []
        if self.kubeconfig:
            flags.append(f"--kubeconfig={self.kubeconfig}")
        if self.context:
            flags.append(f"--context={self.context}")
        if self.cluster:
            flags.append(f"--cluster={self.cluster}")
        return flags

    def _run(self, *args: str) -> str:
        """Run kubectl and return its stdout.

        Raises:
            ClusterError: If kubectl is missing, times out or exits non-zero
        """
        cmd = [self.config.binary, *self._global_flags(), *args]
        self._logger.debug("Running kubectl", command=" ".join(cmd))
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ClusterError(f"kubectl executable not found: {self.config.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise ClusterError(
                f"kubectl {' '.join(args)} timed out after {self.config.timeout}s"
            ) from e

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise ClusterError(f"kubectl {' '.join(args)} failed: {stderr}")
        return completed.stdout

    def _run_json(self, *args: str) -> dict[str, Any]:
        output = self._run(*args)
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise ClusterError(f"kubectl {' '.join(args)} returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ClusterError(f"kubectl {' '.join(args)} returned {type(data).__name__}")
        return data

    def kubeconfig_view(self) -> dict[str, Any]:
        return self._run_json("config", "view", "-o", "json")

    def discover_resource_types(self, strict: bool = True) -> list[ResourceType]:
        resource_types = _parse_resource_list(self._run_json("get", "--raw", "/api/v1"))
        unavailable = []

        for group in self._run_json("get", "--raw", "/apis").get("groups") or []:
            preferred = group.get("preferredVersion") or next(iter(group.get("versions") or []), {})
            group_version = preferred.get("groupVersion")
            if not group_version:
                continue
            try:
                group_resources = self._run_json("get", "--raw", f"/apis/{group_version}")
            except ClusterError as e:
                if strict:
                    raise
                self._logger.warning(
                    "Skipping unavailable API group", group_version=group_version, cause=str(e)
                )
                unavailable.append(group_version)
                continue
            resource_types.extend(_parse_resource_list(group_resources))

        self._logger.debug(
            "Discovered resource types",
            count=len(resource_types),
            unavailable=",".join(unavailable),
        )
        return resource_types

    def list_objects(self, resource_type: ResourceType, namespace: str | None) -> dict[str, Any]:
        args = ["get", resource_type.qualified_name, "-o", "json"]
        if namespace and resource_type.namespaced:
            args.append(f"--namespace={namespace}")
        return self._run_json(*args)


def _parse_resource_list(data: dict[str, Any]) -> list[ResourceType]:
    """Convert a discovery APIResourceList into ResourceType descriptors.

    Subresources (``pods/log``, ``deployments/scale``) are dropped.
    """
    group, _, version = (data.get("groupVersion") or "v1").rpartition("/")
    resource_types = []
    for resource in data.get("resources") or []:
        name = resource.get("name") or ""
        if not name or "/" in name:
            continue
        resource_types.append(
            ResourceType(
                name=name,
                group=resource.get("group") or group,
                version=resource.get("version") or version,
                kind=resource.get("kind") or "",
                namespaced=bool(resource.get("namespaced")),
                verbs=tuple(resource.get("verbs") or ()),
                singular_name=resource.get("singularName") or "",
                short_names=tuple(resource.get("shortNames") or ()),
            )
        )
    return resource_types


__all__ = ["ClusterClient", "ClusterError", "KubectlClient"]
