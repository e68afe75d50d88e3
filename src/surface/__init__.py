"""Top-level export-surface resolution combining the ESM and CommonJS paths."""

from .pipeline import ExportResult, resolve_exports

__all__ = ["ExportResult", "resolve_exports"]
