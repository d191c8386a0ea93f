"""Export run configuration models.

An ExportConfig is an immutable value describing one export run: which cluster
and namespace to read from, which resource types to export, where and how to write
the files, and how to react to failures.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_EXCLUDED_RESOURCE_TYPES = ("endpoints", "events")


def _normalize_type_names(values: tuple[str, ...]) -> tuple[str, ...]:
    names = []
    for value in values:
        name = value.strip().lower()
        if not name:
            raise ValueError("Resource type names cannot be empty")
        if name not in names:
            names.append(name)
    return tuple(names)


class OutputConfig(BaseModel):
    """Configuration for the exported file tree."""

    model_config = ConfigDict(frozen=True)

    dir: Path = Field(default=Path("output"), description="Output root directory")
    force: bool = Field(
        default=False, description="Remove a non-empty output root before exporting"
    )
    format: Literal["yaml", "json"] = Field(default="yaml", description="Serialization format")
    layout: Literal["app", "flat"] = Field(
        default="app",
        description="app: group namespaced objects by their 'app' label; flat: by type only",
    )


class ClusterSelection(BaseModel):
    """Explicit cluster selection overrides (None falls back to kubeconfig)."""

    model_config = ConfigDict(frozen=True)

    kubeconfig: str | None = Field(default=None, description="Path to kubeconfig file")
    context: str | None = Field(default=None, description="kubeconfig context to use")
    cluster: str | None = Field(default=None, description="kubeconfig cluster to use")
    namespace: str | None = Field(default=None, description="Namespace to export from")


class ExportConfig(BaseModel):
    """Root export configuration."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(default="1.0", description="Configuration version")
    cluster: ClusterSelection = Field(default_factory=ClusterSelection)
    output: OutputConfig = Field(default_factory=OutputConfig)
    resource_types: tuple[str, ...] = Field(
        default=(),
        description="Explicit resource types to export; empty means discover them",
    )
    excluded_resource_types: tuple[str, ...] = Field(
        default=DEFAULT_EXCLUDED_RESOURCE_TYPES,
        description="Resource types skipped during discovery",
    )
    on_error: Literal["abort", "continue"] = Field(
        default="abort",
        description="abort: stop at the first failure; continue: record it and go on",
    )

    @field_validator("resource_types", "excluded_resource_types")
    @classmethod
    def validate_type_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Lower-case, strip and de-duplicate resource type names."""
        return _normalize_type_names(v)


__all__ = [
    "DEFAULT_EXCLUDED_RESOURCE_TYPES",
    "ClusterSelection",
    "ExportConfig",
    "OutputConfig",
]
