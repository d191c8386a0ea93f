"""Serializers for exported documents.

Convert a processed ResourceDocument to text in the configured output format.
Mapping keys are sorted so the same document always serializes to the same bytes.
"""

import json
from collections.abc import Callable
from typing import Any

import yaml

from kubeexport.models import ResourceDocument


class SerializationError(Exception):
    """Raised when a document cannot be serialized."""


def serialize_to_yaml(content: dict[str, Any]) -> str:
    return yaml.safe_dump(
        content,
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
    )


def serialize_to_json(content: dict[str, Any]) -> str:
    return json.dumps(content, indent=4, sort_keys=True, ensure_ascii=False) + "\n"


SERIALIZERS: dict[str, Callable[[dict[str, Any]], str]] = {
    "yaml": serialize_to_yaml,
    "json": serialize_to_json,
}


def serialize_document(document: ResourceDocument, fmt: str = "yaml") -> str:
    """Serialize a document to a string.

    Args:
        document: Processed document
        fmt: Output format name (a key of SERIALIZERS)

    Returns:
        Serialized document

    Raises:
        SerializationError: If the format is unknown or the content can't be encoded
    """
    serializer = SERIALIZERS.get(fmt)
    if serializer is None:
        raise SerializationError(
            f"Unknown output format: {fmt} (supported: {', '.join(sorted(SERIALIZERS))})"
        )
    try:
        return serializer(document.content)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise SerializationError(
            f"{fmt.upper()} serialization of {document.display_name!r} failed: {e}"
        ) from e


__all__ = ["SERIALIZERS", "SerializationError", "serialize_document"]
