import json
import shutil
import subprocess

import pytest

from cjs_lexer import RESULT_FILENAME, LexerRequest, build_script, read_result
from conftest import write_tree

NODE = shutil.which("node")

pytestmark = pytest.mark.skipif(NODE is None, reason="node is not on PATH")

# Minimal stand-ins with the call shapes the script relies on: `init()` and
# `parse(code) -> {exports, reexports}`, and `create(options)` returning a
# `(base, request, callback)` resolver.
_LEXER_MODULE = r"""
exports.init = function () {
  return Promise.resolve()
}
exports.parse = function (source) {
  const exports = []
  const reexports = []
  for (const match of source.matchAll(/exports\.(\w+)\s*=/g)) {
    exports.push(match[1])
  }
  for (const match of source.matchAll(/module\.exports\s*=\s*require\(['"]([^'"]+)['"]\)/g)) {
    reexports.push(match[1])
  }
  return { exports, reexports }
}
"""

_RESOLVE_MODULE = r"""
const fs = require('fs')
const path = require('path')

exports.create = function (options) {
  return function (base, request, callback) {
    let target = request.startsWith('.') || path.isAbsolute(request)
      ? path.resolve(base, request)
      : path.join(base, 'node_modules', request)
    if (fs.existsSync(target) && fs.statSync(target).isDirectory()) {
      const manifest = path.join(target, 'package.json')
      const main = fs.existsSync(manifest)
        ? JSON.parse(fs.readFileSync(manifest, 'utf8')).main
        : undefined
      target = path.join(target, main || 'index.js')
    } else if (!fs.existsSync(target)) {
      target += '.js'
    }
    if (!fs.existsSync(target)) {
      callback(new Error("Can't resolve '" + request + "' in '" + base + "'"))
      return
    }
    callback(null, target)
  }
}
"""


@pytest.fixture
def toolchain(tmp_path):
    return write_tree(
        tmp_path / "toolchain",
        {
            "node_modules/cjs-module-lexer/index.js": _LEXER_MODULE,
            "node_modules/enhanced-resolve/index.js": _RESOLVE_MODULE,
        },
    )


def _run(toolchain, work_dir, import_path, *, allow_dynamic_load=True):
    output_dir = work_dir / "out"
    request = LexerRequest(
        import_path=import_path,
        resolve_root=str(work_dir),
        output_dir=str(output_dir),
        allow_dynamic_load=allow_dynamic_load,
    )
    completed = subprocess.run(
        [NODE],
        input=build_script(request),
        cwd=str(toolchain),
        capture_output=True,
        text=True,
        timeout=30,
        check=False,
    )
    assert completed.returncode == 0, completed.stderr
    return json.loads((output_dir / RESULT_FILENAME).read_text(encoding="utf-8"))


def test_cyclic_reexports_are_walked_once(toolchain, work_dir):
    write_tree(
        work_dir,
        {
            "node_modules/cyclic/index.js": (
                "exports.alpha = 1;\n"
                "exports.class = 2;\n"
                "module.exports = require('./b.js');\n"
            ),
            "node_modules/cyclic/b.js": (
                "exports.beta = 1;\n"
                "exports.alpha = 3;\n"
                "module.exports = require('./index.js');\n"
                "module.exports = require('./data.json');\n"
            ),
        },
    )

    payload = _run(toolchain, work_dir, "cyclic", allow_dynamic_load=False)

    assert payload == {"exports": ["alpha", "beta"]}


@pytest.mark.parametrize(
    "allow_dynamic_load, expected",
    [(True, ["alpha", "gamma"]), (False, ["alpha"])],
)
def test_dynamic_load_adds_runtime_keys(toolchain, work_dir, allow_dynamic_load, expected):
    write_tree(
        work_dir,
        {
            "node_modules/dyn/index.js": (
                "exports.alpha = 1;\n"
                "Object.assign(module.exports, { ['gam' + 'ma']: 2, default: 3 });\n"
            ),
        },
    )

    payload = _run(toolchain, work_dir, "dyn", allow_dynamic_load=allow_dynamic_load)

    assert payload == {"exports": expected}


def test_json_entry_yields_no_exports(toolchain, work_dir):
    write_tree(
        work_dir,
        {
            "node_modules/settings/package.json": {"name": "settings", "main": "data.json"},
            "node_modules/settings/data.json": {"a": 1},
        },
    )

    assert _run(toolchain, work_dir, "settings") == {"exports": []}


def test_resolution_failure_is_written_as_error(toolchain, work_dir):
    payload = _run(toolchain, work_dir, "nowhere")

    assert "exports" not in payload
    assert "Can't resolve 'nowhere'" in payload["error"]


def test_written_document_is_readable_by_bridge(toolchain, work_dir):
    write_tree(work_dir, {"node_modules/plain/index.js": "exports.one = 1;\nexports.two = 2;\n"})

    _run(toolchain, work_dir, "plain", allow_dynamic_load=False)
    result = read_result(work_dir / "out" / RESULT_FILENAME)

    assert result.exports == ["one", "two"]
    assert result.ok
