import subprocess
import threading
import time

import pytest

from cjs_lexer import BootstrapError, BridgeOptions, ToolchainEnvironment, get_environment
from conftest import FakeRunner


def _environment(tmp_path, **kwargs):
    return ToolchainEnvironment(
        tmp_path / "toolchain",
        packages=("cjs-module-lexer", "enhanced-resolve"),
        **kwargs,
    )


def test_ensure_installs_once(tmp_path, monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner)
    environment = _environment(tmp_path)

    assert environment.ensure() == tmp_path / "toolchain"
    assert environment.ensure() == tmp_path / "toolchain"

    assert environment.installed
    assert len(runner.install_calls) == 1
    call = runner.install_calls[0]
    assert call["args"] == ["yarn", "add", "cjs-module-lexer", "enhanced-resolve"]
    assert call["cwd"] == str(tmp_path / "toolchain")
    assert (tmp_path / "toolchain").is_dir()


def test_failed_install_is_reported_and_retried(tmp_path, monkeypatch):
    runner = FakeRunner(install_returncode=1, install_output="error Couldn't find package\n")
    monkeypatch.setattr(subprocess, "run", runner)
    environment = _environment(tmp_path)

    with pytest.raises(BootstrapError) as excinfo:
        environment.ensure()
    assert str(excinfo.value) == "yarn: error Couldn't find package"
    assert not environment.installed

    runner.install_returncode = 0
    environment.ensure()

    assert environment.installed
    assert len(runner.install_calls) == 2


def test_missing_installer_is_a_bootstrap_error(tmp_path, monkeypatch):
    def run(*args, **kwargs):
        raise FileNotFoundError("[Errno 2] No such file or directory: 'yarn'")

    monkeypatch.setattr(subprocess, "run", run)

    with pytest.raises(BootstrapError, match="^yarn: "):
        _environment(tmp_path).ensure()


def test_install_timeout_is_a_bootstrap_error(tmp_path, monkeypatch):
    def run(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", run)

    with pytest.raises(BootstrapError, match="timed out"):
        _environment(tmp_path, timeout=5).ensure()


def test_custom_install_command(tmp_path, monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner)

    _environment(tmp_path, install_command=("npm", "install", "--no-save")).ensure()

    assert runner.install_calls[0]["args"][:3] == ["npm", "install", "--no-save"]


def test_concurrent_first_calls_are_serialized(tmp_path, monkeypatch):
    active = 0
    max_active = 0
    calls = 0
    counter_lock = threading.Lock()
    failing = True

    def run(args, **kwargs):
        nonlocal active, max_active, calls
        with counter_lock:
            active += 1
            calls += 1
            max_active = max(max_active, active)
        time.sleep(0.02)
        with counter_lock:
            active -= 1
        return subprocess.CompletedProcess(args, 1 if failing else 0, stdout="offline")

    monkeypatch.setattr(subprocess, "run", run)
    environment = _environment(tmp_path)
    barrier = threading.Barrier(4)
    errors = []

    def worker():
        barrier.wait()
        try:
            environment.ensure()
        except BootstrapError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(errors) == 4
    assert all(str(error) == "yarn: offline" for error in errors)
    assert len({id(error) for error in errors}) == 4
    assert max_active == 1
    assert not environment.installed

    failing = False
    environment.ensure()
    installed_after = calls
    environment.ensure()

    assert environment.installed
    assert calls == installed_after


def test_get_environment_is_shared_per_app_dir(tmp_path):
    options = BridgeOptions(app_dir=tmp_path / "shared")

    first = get_environment(options)
    second = get_environment(BridgeOptions(app_dir=tmp_path / "shared"))
    other = get_environment(BridgeOptions(app_dir=tmp_path / "other"))

    assert first is second
    assert other is not first


def test_reset_forgets_installation(tmp_path, monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner)
    environment = _environment(tmp_path)

    environment.ensure()
    environment.reset()
    environment.ensure()

    assert len(runner.install_calls) == 2
