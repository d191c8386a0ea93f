"""Destination path policy for exported objects.

A path function maps a resource type and a processed document to the directory
(relative to the output root) and the file name, without extension, that the
object is written to.
"""

from collections.abc import Callable
from pathlib import PurePosixPath
from typing import Literal, NamedTuple

from kubeexport.models import ResourceDocument, ResourceType

APP_LABEL = "app"
PROJECTS_DIR = "projects"


class PathResolutionError(Exception):
    """Raised when an object's destination path cannot be determined."""


class ObjectPath(NamedTuple):
    """Relative destination of one exported object."""

    directory: PurePosixPath
    filename: str


ObjectPathFunc = Callable[[ResourceType, ResourceDocument], ObjectPath]


def _check_component(value: str, field: str) -> str:
    """Reject values that would escape or collapse the output tree."""
    if value in {".", ".."} or "/" in value or "\\" in value or "\x00" in value:
        raise PathResolutionError(f"{field} {value!r} cannot be used as a path component")
    return value


def _object_name(document: ResourceDocument) -> str:
    try:
        name = document.name
    except ValueError as e:
        raise PathResolutionError(f"Cannot read object name: {e}") from e
    if not name:
        raise PathResolutionError(f"{document.kind or 'Object'} has no metadata.name")
    return _check_component(name, "Object name")


def default_object_path(resource_type: ResourceType, document: ResourceDocument) -> ObjectPath:
    """Group namespaced objects by their ``app`` label.

    - cluster-scoped objects: ``<resource>``
    - namespaced objects without an ``app`` label: ``<resource>``
    - namespaced objects with ``app=<value>``: ``projects/<value>/<resource>``

    Raises:
        PathResolutionError: If the object has no usable name or app label
    """
    filename = _object_name(document)
    try:
        namespace = document.namespace
        app_name = str(document.labels.get(APP_LABEL) or "")
    except ValueError as e:
        raise PathResolutionError(f"Cannot resolve path for {filename!r}: {e}") from e

    if not namespace or not app_name:
        return ObjectPath(PurePosixPath(resource_type.name), filename)

    app_name = _check_component(app_name, "App label")
    return ObjectPath(PurePosixPath(PROJECTS_DIR, app_name, resource_type.name), filename)


def flat_object_path(resource_type: ResourceType, document: ResourceDocument) -> ObjectPath:
    """Place every object directly under its resource type directory."""
    return ObjectPath(PurePosixPath(resource_type.name), _object_name(document))


PATH_FUNCS: dict[str, ObjectPathFunc] = {
    "app": default_object_path,
    "flat": flat_object_path,
}


def get_path_func(layout: Literal["app", "flat"]) -> ObjectPathFunc:
    """Return the path function for a configured layout."""
    try:
        return PATH_FUNCS[layout]
    except KeyError as e:
        raise PathResolutionError(f"Unknown layout: {layout}") from e


__all__ = [
    "ObjectPath",
    "ObjectPathFunc",
    "PathResolutionError",
    "default_object_path",
    "flat_object_path",
    "get_path_func",
]
