"""Data models for kubeexport.

This module defines the structures that flow through an export run: the
resource type descriptor reported by API discovery, the generic resource
document fetched from the cluster, and the resolved cluster context.
"""

import copy
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceType(BaseModel):
    """Descriptor of a family of API objects.

    Attributes:
        name: Plural resource name (e.g. "deployments")
        group: API group ("" for the core group)
        version: API version within the group
        kind: Object kind (e.g. "Deployment")
        namespaced: Whether objects of this type live in a namespace
        verbs: Verbs supported by the API for this type
        singular_name: Singular resource name, if reported
        short_names: Short aliases (e.g. "deploy")
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Plural resource name")
    group: str = Field(default="", description="API group")
    version: str = Field(default="v1", min_length=1, description="API version")
    kind: str = Field(default="", description="Object kind")
    namespaced: bool = Field(default=True, description="Namespace-scoped type")
    verbs: tuple[str, ...] = Field(default=(), description="Supported verbs")
    singular_name: str = Field(default="", description="Singular resource name")
    short_names: tuple[str, ...] = Field(default=(), description="Short aliases")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Resource names are lower-case and never contain subresource separators."""
        v = v.strip().lower()
        if not v or "/" in v:
            msg = f"Invalid resource name: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def group_version(self) -> str:
        """apiVersion string for objects of this type (e.g. "apps/v1" or "v1")."""
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def qualified_name(self) -> str:
        """Fully qualified name accepted by kubectl (e.g. "deployments.v1.apps")."""
        if not self.group:
            return self.name
        return f"{self.name}.{self.version}.{self.group}"

    @property
    def is_listable(self) -> bool:
        """Whether the API supports listing objects of this type."""
        return "list" in self.verbs

    def matches(self, name: str) -> bool:
        """Check whether a user-supplied type name refers to this type.

        Accepts the plural, singular, short names and kind (case-insensitive), each
        optionally qualified with the group (e.g. "deployments.apps").
        """
        name = name.strip().lower()
        resource, _, group = name.partition(".")
        if group and group != self.group and name != self.qualified_name:
            return False
        aliases = {self.name, self.singular_name.lower(), self.kind.lower(), *self.short_names}
        aliases.discard("")
        return resource in aliases


class ResourceDocument:
    """Generic, schema-agnostic representation of one API object.

    Wraps the unstructured mapping returned by the API. Accessors read the well-known
    metadata fields; a field present with the wrong shape raises ValueError.
    """

    def __init__(self, content: dict[str, Any]) -> None:
        if not isinstance(content, dict):
            msg = f"Resource document must be a mapping, got {type(content).__name__}"
            raise TypeError(msg)
        self.content = content

    def __repr__(self) -> str:
        return f"ResourceDocument(kind={self.kind!r}, name={self.display_name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceDocument):
            return NotImplemented
        return self.content == other.content

    __hash__ = None  # type: ignore[assignment]

    def _mapping(self, parent: dict[str, Any], key: str) -> dict[str, Any]:
        value = parent.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            msg = f"Field '{key}' must be a mapping, got {type(value).__name__}"
            raise ValueError(msg)
        return value

    @property
    def kind(self) -> str:
        return str(self.content.get("kind") or "")

    @property
    def api_version(self) -> str:
        return str(self.content.get("apiVersion") or "")

    @property
    def api_group(self) -> str:
        """API group parsed from apiVersion ("" for the core group)."""
        group, sep, _ = self.api_version.rpartition("/")
        return group if sep else ""

    @property
    def metadata(self) -> dict[str, Any]:
        return self._mapping(self.content, "metadata")

    @property
    def name(self) -> str:
        return str(self.metadata.get("name") or "")

    @property
    def display_name(self) -> str:
        """Object name for messages; empty instead of raising when metadata is malformed."""
        metadata = self.content.get("metadata")
        if not isinstance(metadata, dict):
            return ""
        return str(metadata.get("name") or "")

    @property
    def namespace(self) -> str:
        return str(self.metadata.get("namespace") or "")

    @property
    def labels(self) -> dict[str, Any]:
        return self._mapping(self.metadata, "labels")

    @property
    def annotations(self) -> dict[str, Any]:
        return self._mapping(self.metadata, "annotations")

    @property
    def owner_references(self) -> list[Any]:
        value = self.metadata.get("ownerReferences")
        if value is None:
            return []
        if not isinstance(value, list):
            msg = f"Field 'ownerReferences' must be a list, got {type(value).__name__}"
            raise ValueError(msg)
        return value

    def deep_copy(self) -> "ResourceDocument":
        """Return a fully detached copy of this document."""
        return ResourceDocument(copy.deepcopy(self.content))


class ClusterContext(BaseModel):
    """Cluster context resolved for an export run.

    Attributes:
        context_name: kubeconfig context in use (None when unset)
        cluster_name: Cluster of that context (None when unset)
        namespace: Namespace objects are listed from (None lets kubectl decide)
        kubeconfig: File the context was loaded from, if known
    """

    model_config = ConfigDict(frozen=True)

    context_name: str | None = None
    cluster_name: str | None = None
    namespace: str | None = None
    kubeconfig: str | None = None


__all__ = ["ClusterContext", "ResourceDocument", "ResourceType"]
