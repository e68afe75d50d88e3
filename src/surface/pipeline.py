"""
Export-surface orchestration for a single module specifier.

`resolve_exports` tries the in-process ES module resolver first. Modules that
are not ES modules are handed to the CommonJS lexer bridge, which runs an
external Node.js process. Either way the caller receives one `ExportResult`
with unique names in discovery order.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from cjs_lexer import CJSExportLexer, resolve_cjs_exports
from resolver import (
    NODE_MODULES,
    is_file_import_path,
    load_package_descriptor,
    resolve_esm_entry,
    resolve_esm_exports,
)

logger = logging.getLogger(__name__)

_COMMONJS_EXTENSIONS = {".cjs", ".json", ".node"}


@dataclass(frozen=True)
class ExportResult:
    """The export surface of a module."""

    names: List[str] = field(default_factory=list)
    is_esm: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.error

    def to_dict(self):
        return {"exports": list(self.names), "esm": self.is_esm, "error": self.error or ""}


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def _esm_target(work_dir: Path, specifier: str) -> Optional[str]:
    """
    Map a module specifier to the file the ES module resolver should read.

    Returns None when the module has to go to the CommonJS lexer: packages
    whose manifest declares no ES module entry, and files with a `.cjs`,
    `.json` or `.node` extension.
    """
    if not (posixpath.isabs(specifier) or is_file_import_path(specifier)):
        manifest = work_dir / NODE_MODULES / specifier / "package.json"
        if manifest.is_file():
            entry = resolve_esm_entry(load_package_descriptor(manifest))
            if entry is None:
                return None
            return posixpath.normpath(posixpath.join(specifier, entry.lstrip("/")))
    if posixpath.splitext(specifier)[1] in _COMMONJS_EXTENSIONS:
        return None
    return specifier


def resolve_exports(
    work_dir: Union[str, Path],
    specifier: str,
    *,
    env: str = "production",
    lexer: Optional[CJSExportLexer] = None,
) -> ExportResult:
    """
    Determine the export names of `specifier` inside `work_dir`.

    Args:
        work_dir: Build directory containing `node_modules`.
        specifier: Absolute file path or a `node_modules`-relative specifier.
        env: Runtime mode passed as `NODE_ENV` to the CommonJS lexer.
        lexer: Optional CommonJS lexer strategy (defaults to Node.js).

    Returns:
        ExportResult. A module the CommonJS lexer could not inspect yields a
        result with `error` set instead of an exception.

    Raises:
        ExportsError: For unreadable files or manifests on the ES module path,
            and for toolchain installation, execution, or result failures on
            the CommonJS path.
    """
    target = _esm_target(Path(work_dir), specifier)
    if target is not None:
        esm = resolve_esm_exports(work_dir, target)
        if esm.is_esm:
            logger.debug("%s resolved as ES module with %d names", target, len(esm.exports))
            return ExportResult(names=_unique(esm.exports), is_esm=True)

    logger.debug("%s is not an ES module; using the CommonJS lexer", specifier)
    cjs = resolve_cjs_exports(work_dir, specifier, env, lexer=lexer)
    return ExportResult(names=_unique(cjs.exports), is_esm=False, error=cjs.error or None)


__all__ = ["ExportResult", "resolve_exports"]
