"""
Bridge between the resolver and the external CommonJS export lexer.

`CJSExportLexer` is the strategy interface; `NodeCJSLexer` implements it by
running a generated Node.js program against the shared toolchain environment
and reading back the JSON document that program writes. Process-level failures
(installation, execution, unreadable result) raise; a failure to resolve or
inspect the module itself is returned in `CJSExportsResult.error`.
"""

from __future__ import annotations

import abc
import json
import logging
import os
import re
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from resolver.errors import ExportsError
from resolver.reserved_words import filter_reserved_words

from .environment import ToolchainEnvironment, get_environment
from .options import BridgeOptions
from .script import RESULT_FILENAME, LexerRequest, build_script

logger = logging.getLogger(__name__)


class ExecutionError(ExportsError):
    """Raised when the lexer process fails or cannot be started."""


class ResultFormatError(ExportsError):
    """Raised when the lexer result document is missing or malformed."""


@dataclass(frozen=True)
class CJSExportsResult:
    exports: List[str] = field(default_factory=list)
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


def _unique(names: Iterable[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def read_result(path: Union[str, Path]) -> CJSExportsResult:
    """
    Load a lexer result document, deduplicating and filtering its names.

    Raises:
        ResultFormatError: If the file is missing, not JSON, or has the wrong shape.
    """
    result_path = Path(path)
    try:
        text = result_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResultFormatError(f"cannot read lexer result {result_path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResultFormatError(f"invalid lexer result {result_path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ResultFormatError(f"invalid lexer result {result_path}: expected an object")

    exports = payload.get("exports") or []
    error = payload.get("error") or ""
    if not isinstance(exports, list) or not all(isinstance(name, str) for name in exports):
        raise ResultFormatError(f"invalid lexer result {result_path}: exports must be strings")
    if not isinstance(error, str):
        raise ResultFormatError(f"invalid lexer result {result_path}: error must be a string")

    return CJSExportsResult(exports=filter_reserved_words(_unique(exports)), error=error)


class CJSExportLexer(abc.ABC):
    """Strategy that discovers the export names of a CommonJS module."""

    @abc.abstractmethod
    def parse_exports(
        self, work_dir: Union[str, Path], import_path: str, env: str = "production"
    ) -> CJSExportsResult:
        raise NotImplementedError


class NodeCJSLexer(CJSExportLexer):
    """Runs `cjs-module-lexer` under Node.js in the shared toolchain environment."""

    def __init__(
        self,
        options: Optional[BridgeOptions] = None,
        environment: Optional[ToolchainEnvironment] = None,
    ) -> None:
        self.options = options or BridgeOptions.from_env()
        self.environment = environment or get_environment(self.options)

    def parse_exports(
        self, work_dir: Union[str, Path], import_path: str, env: str = "production"
    ) -> CJSExportsResult:
        app_dir = self.environment.ensure()

        work_dir = Path(work_dir)
        output_dir = self._make_output_dir(work_dir, import_path)
        try:
            request = LexerRequest(
                import_path=import_path,
                resolve_root=str(work_dir),
                output_dir=str(output_dir),
                allow_dynamic_load=self.options.allow_dynamic_load,
            )
            start = time.monotonic()
            self._run(build_script(request), app_dir, env)
            result = read_result(output_dir / RESULT_FILENAME)
            logger.debug(
                "run cjs-module-lexer for %s in %.3fs", import_path, time.monotonic() - start
            )
        finally:
            shutil.rmtree(output_dir, ignore_errors=True)

        if result.error:
            logger.debug("cjs-module-lexer could not inspect %s: %s", import_path, result.error)
        return result

    @staticmethod
    def _make_output_dir(work_dir: Path, import_path: str) -> Path:
        slug = re.sub(r"[^A-Za-z0-9._-]+", "_", import_path).strip("._")[:64] or "module"
        try:
            work_dir.mkdir(parents=True, exist_ok=True)
            return Path(tempfile.mkdtemp(prefix=f"{slug}-", dir=str(work_dir)))
        except OSError as exc:
            raise ExecutionError(f"nodejs: cannot create output directory in {work_dir}: {exc}") from exc

    def _run(self, script: str, app_dir: Path, env: str) -> None:
        process_env = dict(os.environ)
        process_env["NODE_ENV"] = env
        try:
            completed = subprocess.run(
                [self.options.node_executable],
                input=script,
                cwd=str(app_dir),
                env=process_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.options.timeout,
                check=False,
            )
        except OSError as exc:
            raise ExecutionError(f"nodejs: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExecutionError(f"nodejs: timed out after {exc.timeout}s") from exc

        if completed.returncode != 0:
            raise ExecutionError(f"nodejs: {(completed.stdout or '').strip()}")


def resolve_cjs_exports(
    work_dir: Union[str, Path],
    import_path: str,
    env: str = "production",
    *,
    lexer: Optional[CJSExportLexer] = None,
) -> CJSExportsResult:
    """
    Discover the exports of a CommonJS module.

    Args:
        work_dir: Build directory; bare specifiers resolve from its
            `node_modules` and the transient result file is written below it.
        import_path: Module specifier, e.g. `react` or `lodash/fp`.
        env: Value of `NODE_ENV` for the lexer process.
        lexer: Strategy to use; defaults to `NodeCJSLexer` with options read
            from the environment.

    Raises:
        BootstrapError: If the toolchain could not be installed.
        ExecutionError: If the lexer process failed.
        ResultFormatError: If the lexer produced no readable result.
    """
    lexer = lexer or NodeCJSLexer()
    return lexer.parse_exports(work_dir, import_path, env)


__all__ = [
    "CJSExportLexer",
    "CJSExportsResult",
    "ExecutionError",
    "NodeCJSLexer",
    "ResultFormatError",
    "read_result",
    "resolve_cjs_exports",
]
