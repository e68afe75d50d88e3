"""Error types raised while resolving a module's export surface."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ExportsError(RuntimeError):
    """Base class for failures that abort an export resolution."""


class ResolveError(ExportsError):
    """Raised when a module file required by the resolution cannot be read."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        suffix = f" ({path})" if path is not None else ""
        super().__init__(f"{message}{suffix}")
        self.path = path


class ManifestError(ResolveError):
    """Raised when a package manifest cannot be read or is not valid JSON."""


__all__ = ["ExportsError", "ManifestError", "ResolveError"]
