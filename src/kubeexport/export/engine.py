"""Export engine.

Orchestrates an export run: output root check → cluster context resolution →
resource type resolution → per-type listing → per-object export.
"""

import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from kubeexport.cluster import ClusterClient, ClusterError
from kubeexport.export.config import ClusterSelection, ExportConfig
from kubeexport.export.outputs import OutputError, prepare_output_root
from kubeexport.export.paths import ObjectPathFunc, PathResolutionError, get_path_func
from kubeexport.export.processors import DEFAULT_PROCESSORS, ProcessingError, Processor
from kubeexport.export.serializers import SerializationError
from kubeexport.export.visitor import ObjectVisitor, select_resource_types
from kubeexport.models import ClusterContext, ResourceType
from kubeexport.observability import get_observability_manager


class ExportError(Exception):
    """Raised when an export run fails.

    Attributes:
        resource_type: Resource type being exported when the failure happened
        object_name: Name of the object being exported, if any
    """

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        object_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.resource_type = resource_type
        self.object_name = object_name


class ExportResult:
    """Result of an export run."""

    def __init__(
        self,
        context: ClusterContext,
        resource_types: list[str],
        exported_files: list[Path] | None = None,
        skipped_count: int = 0,
        failures: list[dict[str, Any]] | None = None,
        duration_seconds: float | None = None,
    ):
        self.context = context
        self.resource_types = resource_types
        self.exported_files = exported_files if exported_files is not None else []
        self.skipped_count = skipped_count
        self.failures = failures if failures is not None else []
        self.duration_seconds = duration_seconds

    @property
    def success(self) -> bool:
        """Check if every listed object was exported or deliberately skipped."""
        return not self.failures

    @property
    def exported_count(self) -> int:
        return len(self.exported_files)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        result = {
            "context": self.context.model_dump(),
            "resource_types": self.resource_types,
            "success": self.success,
            "exported_count": self.exported_count,
            "skipped_count": self.skipped_count,
            "failed_count": self.failed_count,
            "exported_files": [str(path) for path in self.exported_files],
            "failures": self.failures,
        }
        if self.duration_seconds is not None:
            result["duration_seconds"] = self.duration_seconds
        return result


def resolve_cluster_context(view: dict[str, Any], selection: ClusterSelection) -> ClusterContext:
    """Resolve context, cluster and namespace from overrides and kubeconfig.

    Each value falls back from the explicit override to the kubeconfig's current
    context and finally to unset.

    Args:
        view: kubeconfig as returned by ClusterClient.kubeconfig_view()
        selection: Explicit overrides

    Returns:
        Resolved cluster context

    Raises:
        ClusterError: If the selected context does not exist in kubeconfig
    """
    contexts = {
        entry.get("name"): entry.get("context") or {}
        for entry in view.get("contexts") or []
        if isinstance(entry, dict)
    }

    context_name = selection.context or view.get("current-context") or None
    context: dict[str, Any] = {}
    if context_name:
        if context_name not in contexts:
            raise ClusterError(f"No such context in kubeconfig: {context_name}")
        context = contexts[context_name]

    return ClusterContext(
        context_name=context_name,
        cluster_name=selection.cluster or context.get("cluster") or None,
        namespace=selection.namespace or context.get("namespace") or None,
        kubeconfig=selection.kubeconfig,
    )


def resolve_resource_types(
    client: ClusterClient,
    names: Sequence[str] = (),
    excluded: Sequence[str] = (),
) -> list[ResourceType]:
    """Resolve the resource types an export visits.

    Explicit names are mapped onto the cluster's types in the order given, and are
    neither filtered nor subject to exclusions. API groups that cannot be read are
    ignored for explicit names; a name fails only if no readable group serves it.
    Without explicit names the namespaced, listable, non-excluded types are selected
    and every group must be readable.

    Raises:
        ClusterError: If discovery fails
        ExportError: If an explicit name matches no resource type
    """
    catalog = client.discover_resource_types(strict=not names)
    if not names:
        return select_resource_types(catalog, excluded)

    resolved: list[ResourceType] = []
    for name in names:
        match = next((rt for rt in catalog if rt.matches(name)), None)
        if match is None:
            raise ExportError(
                f"The server doesn't have a resource type '{name}'", resource_type=name
            )
        if match not in resolved:
            resolved.append(match)
    return resolved


class ExportEngine:
    """Runs an export for one immutable ExportConfig."""

    def __init__(
        self,
        config: ExportConfig,
        client: ClusterClient,
        processors: Sequence[Processor] = DEFAULT_PROCESSORS,
        path_func: ObjectPathFunc | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.processors = tuple(processors)
        self.path_func = path_func or get_path_func(config.output.layout)

        self._obs_manager = get_observability_manager()
        self._logger = self._obs_manager.get_logger("kubeexport.export.engine")

    def run(self) -> ExportResult:
        """Export every object of the resolved resource types.

        Returns:
            ExportResult describing what was written, skipped and (with
            ``on_error: continue``) what failed

        Raises:
            OutputError: If the output root fails its precondition or a write fails
            ExportError: On the first failure with ``on_error: abort``, and always for
                context resolution, discovery and write failures
        """
        start_time = time.time()
        output_root = prepare_output_root(self.config.output)

        try:
            context = resolve_cluster_context(self.client.kubeconfig_view(), self.config.cluster)
        except ClusterError as e:
            raise ExportError(f"Failed to resolve cluster context: {e}") from e

        with self._obs_manager.trace_operation(
            "resolve_resource_types", explicit=bool(self.config.resource_types)
        ):
            try:
                resource_types = resolve_resource_types(
                    self.client,
                    self.config.resource_types,
                    self.config.excluded_resource_types,
                )
            except ClusterError as e:
                raise ExportError(f"Failed to discover resource types: {e}") from e

        self._logger.info(
            "Start exporting resources",
            kubeconfig=context.kubeconfig or "",
            context=context.context_name or "",
            cluster=context.cluster_name or "",
            namespace=context.namespace or "",
            resource_types=",".join(rt.name for rt in resource_types),
        )

        result = ExportResult(context=context, resource_types=[rt.name for rt in resource_types])
        visitor = ObjectVisitor(
            client=self.client,
            output_root=output_root,
            namespace=context.namespace,
            output_format=self.config.output.format,
            processors=self.processors,
            path_func=self.path_func,
        )

        for resource_type in resource_types:
            self._export_resource_type(visitor, resource_type, result)

        result.duration_seconds = time.time() - start_time
        self._logger.info(
            "Completed export",
            duration_seconds=round(result.duration_seconds, 3),
            exported=result.exported_count,
            skipped=result.skipped_count,
            failed=result.failed_count,
        )
        return result

    def _export_resource_type(
        self, visitor: ObjectVisitor, resource_type: ResourceType, result: ExportResult
    ) -> None:
        try:
            documents = visitor.visit(resource_type)
        except ClusterError as e:
            self._handle_failure(result, e, resource_type)
            return

        for document in documents:
            try:
                path = visitor.export_object(resource_type, document)
            except (ProcessingError, PathResolutionError, SerializationError, OutputError) as e:
                self._handle_failure(
                    result, e, resource_type, document.display_name or None
                )
                continue

            if path is None:
                result.skipped_count += 1
            else:
                result.exported_files.append(path)

    def _handle_failure(
        self,
        result: ExportResult,
        error: Exception,
        resource_type: ResourceType,
        object_name: str | None = None,
    ) -> None:
        """Abort the run or record the failure, according to ``on_error``.

        Write failures always abort: the output tree can no longer be trusted.
        """
        target = f"{resource_type.name}/{object_name}" if object_name else resource_type.name
        if self.config.on_error == "abort" or isinstance(error, OutputError):
            raise ExportError(
                f"Failed to export {target}: {error}",
                resource_type=resource_type.name,
                object_name=object_name,
            ) from error

        result.failures.append(
            {
                "resource_type": resource_type.name,
                "name": object_name,
                "error_type": type(error).__name__,
                "error": str(error),
            }
        )
        self._logger.error(
            "Failed to export, continuing",
            error=error,
            resource_type=resource_type.name,
            name=object_name or "",
        )


__all__ = [
    "ExportEngine",
    "ExportError",
    "ExportResult",
    "resolve_cluster_context",
    "resolve_resource_types",
]
