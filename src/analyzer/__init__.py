"""Export analysis helpers for ES module and CommonJS sources."""

from .export_tracker import (
    ExportAnalysis,
    ExportStar,
    ExportsKind,
    SourcePosition,
    analyze_exports,
)

__all__ = [
    "ExportAnalysis",
    "ExportStar",
    "ExportsKind",
    "SourcePosition",
    "analyze_exports",
]
