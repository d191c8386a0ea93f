"""Processor pipeline for exported resource documents.

Each processor takes a ResourceDocument and returns it (possibly modified) or None
to veto the export of that object. Processors run in a fixed order and the first
veto or error stops the pipeline for that object.
"""

from collections.abc import Callable, Sequence
from typing import Any

from kubeexport.models import ResourceDocument

Processor = Callable[[ResourceDocument], ResourceDocument | None]

VOLATILE_METADATA_FIELDS = ("generation", "resourceVersion", "uid", "selfLink")

VOLATILE_ANNOTATIONS = (
    "kubectl.kubernetes.io/last-applied-configuration",
    "deployment.kubernetes.io/revision",
    "kubernetes.io/change-cause",
)

JOB_CONTROLLER_LABEL = "controller-uid"


class ProcessingError(Exception):
    """Raised when a document is malformed for a processor."""


def _delete_keys(mapping: dict[str, Any], *keys: str) -> None:
    for key in keys:
        mapping.pop(key, None)


def _nested_mapping(parent: dict[str, Any], *path: str) -> dict[str, Any] | None:
    """Walk a path of mapping keys, returning None if any step is absent.

    Raises:
        ProcessingError: If a step is present but is not a mapping
    """
    current = parent
    for depth, key in enumerate(path):
        value = current.get(key)
        if value is None:
            return None
        if not isinstance(value, dict):
            location = ".".join(path[: depth + 1])
            raise ProcessingError(
                f"Field '{location}' must be a mapping, got {type(value).__name__}"
            )
        current = value
    return current


def skip_owned_objects(document: ResourceDocument) -> ResourceDocument | None:
    """Veto objects that are managed by a controller.

    Objects with owner references are garbage-collected and recreated by their
    owner, so exporting them standalone would conflict on re-apply.
    """
    try:
        owner_references = document.owner_references
    except ValueError as e:
        raise ProcessingError(
            f"Cannot read owner references of {document.display_name!r}: {e}"
        ) from e
    if owner_references:
        return None
    return document


def strip_common_fields(document: ResourceDocument) -> ResourceDocument:
    """Remove cluster-assigned identity, volatile annotations and status."""
    try:
        metadata = document.metadata
        annotations = document.annotations
    except ValueError as e:
        raise ProcessingError(f"Cannot sanitize {document.display_name!r}: {e}") from e

    _delete_keys(metadata, *VOLATILE_METADATA_FIELDS)

    if "annotations" in metadata:
        _delete_keys(annotations, *VOLATILE_ANNOTATIONS)
        if not annotations:
            del metadata["annotations"]

    document.content.pop("status", None)
    return document


def strip_job_fields(document: ResourceDocument) -> ResourceDocument:
    """Remove the job controller's runtime label from batch Jobs.

    The ``controller-uid`` label is generated when the Job is created and must not
    be pinned in a manifest used to create a new Job. Documents of any other kind
    are returned untouched.
    """
    if document.kind != "Job" or document.api_group != "batch":
        return document

    selector_labels = _nested_mapping(document.content, "spec", "selector", "matchLabels")
    if selector_labels is not None:
        _delete_keys(selector_labels, JOB_CONTROLLER_LABEL)
        if not selector_labels:
            del document.content["spec"]["selector"]["matchLabels"]

    template_labels = _nested_mapping(document.content, "spec", "template", "metadata", "labels")
    if template_labels is not None:
        _delete_keys(template_labels, JOB_CONTROLLER_LABEL)
        if not template_labels:
            del document.content["spec"]["template"]["metadata"]["labels"]

    document.content.pop("status", None)
    return document


DEFAULT_PROCESSORS: tuple[Processor, ...] = (
    skip_owned_objects,
    strip_common_fields,
    strip_job_fields,
)


def run_processors(
    document: ResourceDocument,
    processors: Sequence[Processor] = DEFAULT_PROCESSORS,
) -> ResourceDocument | None:
    """Run a document through the processors on a detached copy.

    Args:
        document: Fetched document (left unmodified)
        processors: Ordered processors to apply

    Returns:
        The processed copy, or None if a processor vetoed the export

    Raises:
        ProcessingError: If a processor finds the document malformed
    """
    result: ResourceDocument | None = document.deep_copy()
    for processor in processors:
        if result is None:
            break
        result = processor(result)
    return result


__all__ = [
    "DEFAULT_PROCESSORS",
    "Processor",
    "ProcessingError",
    "run_processors",
    "skip_owned_objects",
    "strip_common_fields",
    "strip_job_fields",
]
