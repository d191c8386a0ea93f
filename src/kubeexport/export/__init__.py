"""Export pipeline for Kubernetes resources.

This package turns live cluster objects into a sanitized, file-per-object tree:
processors strip cluster-assigned state, a path function picks each file's
location, and the engine drives discovery, listing and writing.
"""

from kubeexport.export.config import ClusterSelection, ExportConfig, OutputConfig
from kubeexport.export.engine import (
    ExportEngine,
    ExportError,
    ExportResult,
    resolve_cluster_context,
    resolve_resource_types,
)
from kubeexport.export.loader import ConfigLoadError, load_export_config, validate_config
from kubeexport.export.outputs import OutputError, prepare_output_root, write_document
from kubeexport.export.paths import (
    ObjectPath,
    PathResolutionError,
    default_object_path,
    flat_object_path,
)
from kubeexport.export.processors import (
    DEFAULT_PROCESSORS,
    ProcessingError,
    run_processors,
    skip_owned_objects,
    strip_common_fields,
    strip_job_fields,
)
from kubeexport.export.serializers import SerializationError, serialize_document
from kubeexport.export.visitor import ObjectVisitor, select_resource_types, unwrap_list

__all__ = [
    "DEFAULT_PROCESSORS",
    "ClusterSelection",
    "ConfigLoadError",
    "ExportConfig",
    "ExportEngine",
    "ExportError",
    "ExportResult",
    "ObjectPath",
    "ObjectVisitor",
    "OutputConfig",
    "OutputError",
    "PathResolutionError",
    "ProcessingError",
    "SerializationError",
    "default_object_path",
    "flat_object_path",
    "load_export_config",
    "prepare_output_root",
    "resolve_cluster_context",
    "resolve_resource_types",
    "run_processors",
    "select_resource_types",
    "serialize_document",
    "skip_owned_objects",
    "strip_common_fields",
    "strip_job_fields",
    "unwrap_list",
    "validate_config",
    "write_document",
]
