"""Export Kubernetes resources into a sanitized, file-per-object layout."""

__version__ = "0.1.0"
