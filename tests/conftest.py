import json
import re
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from cjs_lexer import reset_environments

CASES_DIR = Path(__file__).parent / "cases"

_REQUEST_PATTERN = re.compile(r"^const request = (\{.*\})$", re.MULTILINE)


def write_tree(root: Path, files: Dict[str, object]) -> Path:
    """Create files below `root`; dict/list values are written as JSON."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, (dict, list)):
            content = json.dumps(content)
        path.write_text(content, encoding="utf-8")
    return root


def extract_request(script: str) -> dict:
    match = _REQUEST_PATTERN.search(script)
    assert match, "lexer request not embedded in script"
    return json.loads(match.group(1))


class FakeRunner:
    """
    Stand-in for `subprocess.run` that answers install and node invocations.

    Node invocations write `result` (or nothing, when `result` is None) into
    the output directory named by the embedded lexer request.
    """

    def __init__(
        self,
        *,
        result: Optional[dict] = None,
        node_returncode: int = 0,
        node_output: str = "",
        install_returncode: int = 0,
        install_output: str = "",
    ) -> None:
        self.result = result
        self.node_returncode = node_returncode
        self.node_output = node_output
        self.install_returncode = install_returncode
        self.install_output = install_output
        self.install_calls: List[dict] = []
        self.node_calls: List[dict] = []

    def __call__(self, args, **kwargs):
        call = {"args": list(args), **kwargs}
        if kwargs.get("input") is None:
            self.install_calls.append(call)
            return subprocess.CompletedProcess(
                args, self.install_returncode, stdout=self.install_output
            )

        self.node_calls.append(call)
        request = extract_request(kwargs["input"])
        call["request"] = request
        if self.node_returncode == 0 and self.result is not None:
            output_dir = Path(request["outputDir"])
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / request["resultFilename"]).write_text(
                json.dumps(self.result), encoding="utf-8"
            )
        return subprocess.CompletedProcess(args, self.node_returncode, stdout=self.node_output)


@pytest.fixture(autouse=True)
def _fresh_environments():
    reset_environments()
    yield
    reset_environments()


@pytest.fixture
def work_dir(tmp_path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path
