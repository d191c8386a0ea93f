"""Output writer for exported documents.

Owns the output root: checks it once before a run starts, creates per-type
directories on demand and writes one file per exported object.
"""

import contextlib
import shutil
from pathlib import Path, PurePosixPath

from kubeexport.export.config import OutputConfig
from kubeexport.export.paths import ObjectPath


class OutputError(Exception):
    """Raised when output operation fails."""


def prepare_output_root(config: OutputConfig) -> Path:
    """Check that the output root may be written to, clearing it if forced.

    The root may be missing or empty. A non-empty root is removed recursively when
    ``config.force`` is set and is an error otherwise.

    Args:
        config: Output configuration

    Returns:
        Path to the output root

    Raises:
        OutputError: If the root is a file, is non-empty without force, or
            cannot be inspected or removed
    """
    root = Path(config.dir)
    try:
        if not root.exists():
            return root

        if config.force:
            if root.is_dir():
                shutil.rmtree(root)
            else:
                root.unlink()
            return root

        if not root.is_dir():
            raise OutputError(f"Output path is not a directory: {root}")

        if any(root.iterdir()):
            raise OutputError(
                f"Output directory is not empty: {root} (use --force to clear it first)"
            )
        return root

    except OSError as e:
        raise OutputError(f"Failed to prepare output directory {root}: {e}") from e


def ensure_directory(root: Path, directory: PurePosixPath | str) -> Path:
    """Create ``root/directory`` and any missing parents.

    Raises:
        OutputError: If the directory cannot be created
    """
    path = root / Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Failed to create directory {path}: {e}") from e
    return path


def write_document(root: Path, object_path: ObjectPath, data: str, extension: str) -> Path:
    """Write serialized data for one object, replacing any existing file.

    Args:
        root: Output root directory
        object_path: Relative directory and file name of the object
        data: Serialized document
        extension: File extension without the dot (the output format)

    Returns:
        Path to the written file

    Raises:
        OutputError: If the directory or file cannot be written
    """
    directory = ensure_directory(root, object_path.directory)
    output_path = directory / f"{object_path.filename}.{extension}"
    try:
        _write_atomic(output_path, data)
    except OSError as e:
        raise OutputError(f"Failed to write {output_path}: {e}") from e
    return output_path


def _write_atomic(path: Path, data: str) -> None:
    """Write data atomically using temp file + rename."""
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with temp_path.open("w", encoding="utf-8") as f:
            f.write(data)
        temp_path.replace(path)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


__all__ = ["OutputError", "ensure_directory", "prepare_output_root", "write_document"]
