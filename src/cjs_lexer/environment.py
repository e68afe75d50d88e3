"""
Process-wide Node.js toolchain environment for CommonJS export discovery.

The environment is a directory holding an installation of the CommonJS lexer
and the module resolver. It is installed lazily, at most once per process, the
first time a CommonJS module is inspected. Installation is serialized with a
lock; a failed installation leaves the environment uninitialized so that the
next caller attempts it again.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Union

from resolver.errors import ExportsError

from .options import BridgeOptions

logger = logging.getLogger(__name__)


class BootstrapError(ExportsError):
    """Raised when the toolchain packages could not be installed."""


class ToolchainEnvironment:
    """A directory with the lexer toolchain installed, initialized once."""

    def __init__(
        self,
        app_dir: Union[str, Path],
        *,
        packages: Iterable[str],
        install_command: Sequence[str] = ("yarn", "add"),
        timeout: Optional[float] = None,
    ) -> None:
        if not install_command:
            raise ValueError("install_command must not be empty")
        self.app_dir = Path(app_dir)
        self.packages = tuple(packages)
        self.install_command = tuple(install_command)
        self.timeout = timeout
        self._lock = threading.Lock()
        self._installed = False

    @classmethod
    def from_options(cls, options: BridgeOptions) -> "ToolchainEnvironment":
        return cls(
            options.app_dir,
            packages=options.packages,
            install_command=options.install_command,
            timeout=options.install_timeout,
        )

    @property
    def installed(self) -> bool:
        return self._installed

    def ensure(self) -> Path:
        """
        Install the toolchain unless a previous call already succeeded.

        Returns:
            The environment directory, to be used as the working directory of
            scripts that require the toolchain packages.

        Raises:
            BootstrapError: If installation fails. The next call retries.
        """
        if self._installed:
            return self.app_dir
        with self._lock:
            if not self._installed:
                self._install()
                self._installed = True
        return self.app_dir

    def reset(self) -> None:
        """Forget a completed installation so the next `ensure` reinstalls."""
        with self._lock:
            self._installed = False

    def _install(self) -> None:
        tool = Path(self.install_command[0]).name
        try:
            self.app_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BootstrapError(f"{tool}: cannot create {self.app_dir}: {exc}") from exc

        command = [*self.install_command, *self.packages]
        logger.info("Installing %s into %s", " ".join(self.packages), self.app_dir)
        try:
            completed = subprocess.run(
                command,
                cwd=str(self.app_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except OSError as exc:
            raise BootstrapError(f"{tool}: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BootstrapError(f"{tool}: timed out after {exc.timeout}s") from exc

        if completed.returncode != 0:
            raise BootstrapError(f"{tool}: {(completed.stdout or '').strip()}")
        logger.debug("Toolchain ready in %s", self.app_dir)


_environments: Dict[Path, ToolchainEnvironment] = {}
_environments_lock = threading.Lock()


def get_environment(options: Optional[BridgeOptions] = None) -> ToolchainEnvironment:
    """Return the shared environment for `options.app_dir`, creating it lazily."""
    options = options or BridgeOptions.from_env()
    key = Path(options.app_dir)
    with _environments_lock:
        environment = _environments.get(key)
        if environment is None:
            environment = ToolchainEnvironment.from_options(options)
            _environments[key] = environment
    return environment


def reset_environments() -> None:
    """Drop all shared environments (used by tests and long-running hosts)."""
    with _environments_lock:
        _environments.clear()


__all__ = [
    "BootstrapError",
    "ToolchainEnvironment",
    "get_environment",
    "reset_environments",
]
