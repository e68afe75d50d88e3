"""
Settings for the external Node.js toolchain used to inspect CommonJS modules.
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

DEFAULT_APP_DIRNAME = "esmd-cjs-module-lexer"

_FALSE_VALUES = {"0", "false", "no", "off"}


def _default_app_dir() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_APP_DIRNAME


def _parse_seconds(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class BridgeOptions:
    node_executable: str = "node"
    install_command: Tuple[str, ...] = ("yarn", "add")
    packages: Tuple[str, ...] = ("cjs-module-lexer", "enhanced-resolve")
    app_dir: Path = field(default_factory=_default_app_dir)
    timeout: float = 60.0
    install_timeout: float = 300.0
    # When False the module is never require()d; only the static lexer runs.
    allow_dynamic_load: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeOptions":
        """
        Build options from `ESM_EXPORTS_*` environment variables.

        Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        defaults = cls()

        install_command = defaults.install_command
        if environ.get("ESM_EXPORTS_INSTALL_COMMAND"):
            install_command = tuple(shlex.split(environ["ESM_EXPORTS_INSTALL_COMMAND"]))

        app_dir = defaults.app_dir
        if environ.get("ESM_EXPORTS_APP_DIR"):
            app_dir = Path(environ["ESM_EXPORTS_APP_DIR"])

        allow_dynamic_load = defaults.allow_dynamic_load
        if environ.get("ESM_EXPORTS_DYNAMIC_LOAD"):
            allow_dynamic_load = environ["ESM_EXPORTS_DYNAMIC_LOAD"].strip().lower() not in _FALSE_VALUES

        return cls(
            node_executable=environ.get("ESM_EXPORTS_NODE") or defaults.node_executable,
            install_command=install_command,
            packages=defaults.packages,
            app_dir=app_dir,
            timeout=_parse_seconds(environ, "ESM_EXPORTS_TIMEOUT", defaults.timeout),
            install_timeout=_parse_seconds(
                environ, "ESM_EXPORTS_INSTALL_TIMEOUT", defaults.install_timeout
            ),
            allow_dynamic_load=allow_dynamic_load,
        )


__all__ = ["BridgeOptions", "DEFAULT_APP_DIRNAME"]
