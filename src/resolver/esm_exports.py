"""
Recursive export resolution for ES modules.

`resolve_esm_exports` reads a module from a build directory, parses it, and
merges the names it exports directly with every name reachable through its
`export * from` declarations, following relative files as well as bare package
names (through the package manifest's ESM entry point). Names re-exported from
another module never include that module's `default` export, matching the
semantics of `export *`.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from analyzer import analyze_exports
from parser import parse_js

from .errors import ResolveError
from .package_descriptor import load_package_descriptor, resolve_esm_entry

logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"


@dataclass(frozen=True)
class ESMExportsResult:
    exports: List[str] = field(default_factory=list)
    is_esm: bool = False


def is_file_import_path(specifier: str) -> bool:
    """True for specifiers that name a file rather than a package."""
    return (
        specifier.startswith(("/", "./", "../"))
        or specifier == "."
        or specifier == ".."
    )


def _join(base: str, specifier: str) -> str:
    # Specifiers are URL-style paths; an absolute specifier is still joined
    # onto the base rather than replacing it.
    return posixpath.normpath(posixpath.join(base, specifier.lstrip("/")))


class _ESMExportResolver:
    def __init__(self, work_dir: Union[str, Path]) -> None:
        self._work_dir = Path(work_dir)
        self._node_modules = self._work_dir / NODE_MODULES
        self._visited: Set[str] = set()

    def resolve(self, module_path: str) -> ESMExportsResult:
        filepath, is_import_dir = self._locate(module_path)

        key = str(filepath.resolve())
        if key in self._visited:
            logger.debug("Skipping already visited module %s", filepath)
            return ESMExportsResult(exports=[], is_esm=True)
        self._visited.add(key)

        try:
            source = filepath.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ResolveError(f"Failed to read module: {exc}", filepath) from exc

        parse_result = parse_js(source, source_name=str(filepath))
        if not parse_result.ok:
            logger.debug("%s does not parse as an ES module", filepath)
            return ESMExportsResult(exports=[], is_esm=False)

        analysis = analyze_exports(parse_result.root, source_name=str(filepath))
        if not analysis.is_esm:
            return ESMExportsResult(exports=[], is_esm=False)

        exports: List[str] = []
        for star in analysis.export_stars:
            nested = self._resolve_star(module_path, is_import_dir, star.source)
            if nested is not None and nested.is_esm:
                exports.extend(name for name in nested.exports if name != "default")
        exports.extend(analysis.named_exports)
        return ESMExportsResult(exports=exports, is_esm=True)

    def _locate(self, module_path: str) -> Tuple[Path, bool]:
        if posixpath.isabs(module_path):
            return Path(module_path), False

        target = self._node_modules / module_path
        if target.is_dir():
            index = target / "index.mjs"
            if not index.is_file():
                index = target / "index.js"
            return index, True

        if not module_path.endswith((".js", ".mjs")):
            target = self._node_modules / f"{module_path}.js"
        return target, False

    def _resolve_star(
        self, module_path: str, is_import_dir: bool, source: str
    ) -> Optional[ESMExportsResult]:
        if is_file_import_path(source):
            base = module_path if is_import_dir else posixpath.dirname(module_path)
            return self.resolve(_join(base, source))

        manifest = self._node_modules / source / "package.json"
        if not manifest.is_file():
            logger.debug("No manifest for re-exported package %r", source)
            return None
        entry = resolve_esm_entry(load_package_descriptor(manifest))
        if not entry:
            return None
        return self.resolve(_join(source, entry))


def resolve_esm_exports(work_dir: Union[str, Path], module_path: str) -> ESMExportsResult:
    """
    Resolve the export names of an ES module, following `export *` chains.

    Args:
        work_dir: Build directory containing the `node_modules` tree.
        module_path: Absolute file path, or a path relative to `node_modules`
            naming a file (`.js` is appended when there is no `.js`/`.mjs`
            suffix) or a directory (its `index.mjs` / `index.js` is used).

    Returns:
        ESMExportsResult. `is_esm` is False, with no names, when the file does
        not parse as a module or does not use import/export syntax. Names are
        not deduplicated.

    Raises:
        ResolveError: If a module file on the re-export chain cannot be read.
        ManifestError: If a re-exported package's manifest is invalid.
    """
    return _ESMExportResolver(work_dir).resolve(module_path)


__all__ = ["ESMExportsResult", "NODE_MODULES", "is_file_import_path", "resolve_esm_exports"]
