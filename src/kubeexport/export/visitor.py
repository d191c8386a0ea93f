"""Resource type selection and per-object export.

The selector picks the resource types an export visits when none are given
explicitly. The visitor lists the objects of one type and sends each of them
through processors, path resolution, serialization and the output writer.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from kubeexport.cluster import ClusterClient, ClusterError
from kubeexport.export.outputs import write_document
from kubeexport.export.paths import ObjectPathFunc, default_object_path
from kubeexport.export.processors import DEFAULT_PROCESSORS, Processor, run_processors
from kubeexport.export.serializers import serialize_document
from kubeexport.models import ResourceDocument, ResourceType
from kubeexport.observability import get_observability_manager


def select_resource_types(
    resource_types: Iterable[ResourceType], excluded: Iterable[str] = ()
) -> list[ResourceType]:
    """Select the namespaced, listable resource types that are not excluded.

    Args:
        resource_types: Types reported by discovery
        excluded: Plural resource names to leave out

    Returns:
        Selected types, one per resource name, sorted by name
    """
    excluded_names = {name.strip().lower() for name in excluded}
    selected: dict[str, ResourceType] = {}
    for resource_type in resource_types:
        if not resource_type.namespaced or not resource_type.is_listable:
            continue
        if resource_type.name in excluded_names:
            continue
        # The same plural can be served by more than one group (e.g. events); keep the first.
        selected.setdefault(resource_type.name, resource_type)
    return [selected[name] for name in sorted(selected)]


def unwrap_list(payload: dict[str, Any], resource_type: ResourceType) -> list[ResourceDocument]:
    """Split a listing response into individual documents.

    List containers are unwrapped into their items; any other payload is taken as a
    single object. Items without ``kind``/``apiVersion`` inherit them from the type;
    the payload itself is left unmodified.

    Raises:
        ClusterError: If the payload holds items that are not objects
    """
    items = payload.get("items")
    if isinstance(items, list):
        raw_items = items
    elif items is None and not str(payload.get("kind", "")).endswith("List"):
        raw_items = [payload]
    else:
        raise ClusterError(
            f"Unexpected listing response for {resource_type.name}: 'items' is "
            f"{type(items).__name__}"
        )

    documents = []
    for item in raw_items:
        if not isinstance(item, dict):
            raise ClusterError(
                f"Unexpected item in {resource_type.name} listing: {type(item).__name__}"
            )
        item = dict(item)
        if resource_type.kind:
            item.setdefault("kind", resource_type.kind)
        item.setdefault("apiVersion", resource_type.group_version)
        documents.append(ResourceDocument(item))
    return documents


class ObjectVisitor:
    """Lists objects of a resource type and exports them one at a time."""

    def __init__(
        self,
        client: ClusterClient,
        output_root: Path,
        namespace: str | None = None,
        output_format: str = "yaml",
        processors: Sequence[Processor] = DEFAULT_PROCESSORS,
        path_func: ObjectPathFunc = default_object_path,
    ) -> None:
        self.client = client
        self.output_root = output_root
        self.namespace = namespace
        self.output_format = output_format
        self.processors = tuple(processors)
        self.path_func = path_func

        self._obs_manager = get_observability_manager()
        self._logger = self._obs_manager.get_logger("kubeexport.export.visitor")

    def visit(self, resource_type: ResourceType) -> list[ResourceDocument]:
        """List the objects of one type in the configured namespace.

        Raises:
            ClusterError: If listing fails or the response is malformed
        """
        self._logger.info(
            "Start visiting objects",
            resource_type=resource_type.name,
            group_version=resource_type.group_version,
            kind=resource_type.kind,
            namespaced=resource_type.namespaced,
        )
        with self._obs_manager.trace_operation(
            "list_objects",
            resource_type=resource_type.name,
            namespace=self.namespace or "",
        ) as span:
            payload = self.client.list_objects(resource_type, self.namespace)
            documents = unwrap_list(payload, resource_type)
            if span:
                span.set_attribute("object_count", len(documents))
        return documents

    def export_object(self, resource_type: ResourceType, document: ResourceDocument) -> Path | None:
        """Process and write one object.

        Args:
            resource_type: Type the object was listed as
            document: Fetched object (left unmodified)

        Returns:
            Path of the written file, or None if a processor vetoed the export

        Raises:
            ProcessingError: If the document is malformed
            PathResolutionError: If no destination can be derived
            SerializationError: If the document cannot be serialized
            OutputError: If the file cannot be written
        """
        processed = run_processors(document, self.processors)
        if processed is None:
            self._logger.debug(
                "Object vetoed by processors, skipping",
                resource_type=resource_type.name,
                name=document.display_name,
            )
            return None

        object_path = self.path_func(resource_type, processed)
        data = serialize_document(processed, self.output_format)
        path = write_document(self.output_root, object_path, data, self.output_format)
        self._logger.debug(
            "Exported object",
            resource_type=resource_type.name,
            name=object_path.filename,
            path=str(path),
        )
        return path


__all__ = ["ObjectVisitor", "select_resource_types", "unwrap_list"]
