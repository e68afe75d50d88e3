"""
Package manifest (`package.json`) reading and ESM entry point selection.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ManifestError

logger = logging.getLogger(__name__)


def _string_field(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class PackageDescriptor:
    """The manifest fields that matter for export resolution."""

    name: str = ""
    version: str = ""
    main: str = ""
    module: str = ""
    type: str = ""
    types: str = ""
    typings: str = ""
    exports: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageDescriptor":
        return cls(
            name=_string_field(data, "name"),
            version=_string_field(data, "version"),
            main=_string_field(data, "main"),
            module=_string_field(data, "module"),
            type=_string_field(data, "type"),
            types=_string_field(data, "types"),
            typings=_string_field(data, "typings"),
            exports=data.get("exports"),
        )


def load_package_descriptor(path: Union[str, Path]) -> PackageDescriptor:
    """
    Read and parse a package manifest.

    Raises:
        ManifestError: If the file cannot be read, is not valid JSON, or does
            not contain a JSON object.
    """
    manifest_path = Path(path)
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to read package manifest: {exc}", manifest_path) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid package manifest: {exc}", manifest_path) from exc
    if not isinstance(data, dict):
        raise ManifestError("Package manifest must be a JSON object", manifest_path)
    return PackageDescriptor.from_dict(data)


def resolve_esm_entry(descriptor: PackageDescriptor) -> Optional[str]:
    """
    Select the ES module entry point of a package.

    Priority: `module`, then `main` when `type` is `"module"`, then a string
    `import` condition at the top level of `exports`.
    """
    if descriptor.module:
        return descriptor.module
    if descriptor.type == "module" and descriptor.main:
        return descriptor.main
    exports = descriptor.exports
    if isinstance(exports, dict):
        entry = exports.get("import")
        if isinstance(entry, str) and entry:
            return entry
    logger.debug("No ESM entry found for package %r", descriptor.name or "<unnamed>")
    return None


__all__ = ["PackageDescriptor", "load_package_descriptor", "resolve_esm_entry"]
