"""
Construction of the Node.js program that discovers CommonJS exports.

The program resolves the requested module with `enhanced-resolve` (preferring
the `main` field), walks its re-exports depth first with `cjs-module-lexer`,
optionally `require()`s the module to pick up keys that static analysis
misses, and writes `{exports, error}` as JSON into the request's output
directory. Failures inside the program are reported through `error`; the
process itself still exits with status 0.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Tuple

from resolver.reserved_words import bare_reserved_words

RESULT_FILENAME = "__exports.json"

_REQUEST_PLACEHOLDER = "__LEXER_REQUEST__"

_SCRIPT_TEMPLATE = """
const fs = require('fs')
const { dirname, join } = require('path')
const { promisify } = require('util')
const moduleLexer = require('cjs-module-lexer')
const enhancedResolve = require('enhanced-resolve')

const request = __LEXER_REQUEST__
const resolve = promisify(enhancedResolve.create({
  mainFields: ['main']
}))

async function getExports () {
  await moduleLexer.init()

  const exports = []
  const paths = []
  const visited = new Set()

  try {
    const jsFile = await resolve(request.resolveRoot, request.importPath)
    if (!jsFile.endsWith('.json')) {
      paths.push(jsFile)
    }
    while (paths.length > 0) {
      const currentPath = paths.pop()
      if (visited.has(currentPath)) {
        continue
      }
      visited.add(currentPath)
      const code = fs.readFileSync(currentPath).toString()
      const results = moduleLexer.parse(code)
      exports.push(...results.exports)
      for (const reexport of results.reexports) {
        if (!reexport.endsWith('.json')) {
          paths.push(await resolve(dirname(currentPath), reexport))
        }
      }
    }
    if (request.allowDynamicLoad && !jsFile.endsWith('.json')) {
      const mod = require(jsFile)
      if (typeof mod === 'object' && mod !== null && !Array.isArray(mod)) {
        for (const key of Object.keys(mod)) {
          if (typeof key === 'string' && key !== '' && !exports.includes(key)) {
            exports.push(key)
          }
        }
      }
    }
    return { exports }
  } catch (e) {
    return { error: String(e && e.message || e) }
  }
}

getExports().then(ret => {
  fs.mkdirSync(request.outputDir, { recursive: true })
  if (Array.isArray(ret.exports)) {
    ret.exports = Array.from(new Set(ret.exports)).filter(name => !request.reservedWords.includes(name))
  }
  fs.writeFileSync(join(request.outputDir, request.resultFilename), JSON.stringify(ret))
  process.exit(0)
})
"""


@dataclass(frozen=True)
class LexerRequest:
    """Parameters of a single CommonJS export discovery run."""

    import_path: str
    resolve_root: str
    output_dir: str
    allow_dynamic_load: bool = True
    reserved_words: Tuple[str, ...] = field(default_factory=lambda: tuple(bare_reserved_words()))

    def to_json(self) -> str:
        payload = {
            "importPath": self.import_path,
            "resolveRoot": self.resolve_root,
            "outputDir": self.output_dir,
            "resultFilename": RESULT_FILENAME,
            "allowDynamicLoad": self.allow_dynamic_load,
            "reservedWords": list(self.reserved_words),
        }
        return json.dumps(payload, ensure_ascii=True)


def build_script(request: LexerRequest) -> str:
    """Render the Node.js program for `request`; the request is embedded as JSON."""
    return _SCRIPT_TEMPLATE.replace(_REQUEST_PLACEHOLDER, request.to_json(), 1)


__all__ = ["LexerRequest", "RESULT_FILENAME", "build_script"]
