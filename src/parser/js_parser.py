"""
JavaScript parsing utilities built on tree-sitter.

`parse_js` returns the syntax tree of a source file along with the syntax
errors tree-sitter recovered from. The grammar covers current ECMAScript
(optional chaining, class fields, BigInt literals, `export * as ns`), so a
file that fails to parse really is malformed. Failures are reported through
`ParseResult.errors` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

JS_LANGUAGE = Language(tree_sitter_javascript.language())

_SNIPPET_LENGTH = 40


@dataclass(frozen=True)
class ParseError:
    """Represents a syntax error recovered by the parser."""

    description: str
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class ParseResult:
    """Aggregate of the syntax tree root plus metadata about the parse run."""

    root: Node
    errors: List[ParseError]
    source_name: str

    @property
    def ok(self) -> bool:
        """True when the source parsed without any recovered errors."""
        return not self.errors and not self.root.has_error


def _describe(node: Node) -> str:
    if node.is_missing:
        return f"missing {node.type}"
    snippet = (node.text or b"").decode("utf-8", errors="replace")
    if len(snippet) > _SNIPPET_LENGTH:
        snippet = snippet[:_SNIPPET_LENGTH] + "..."
    return f"unexpected {snippet!r}"


def _collect_errors(root: Node) -> List[ParseError]:
    errors: List[ParseError] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point
            errors.append(ParseError(description=_describe(node), line=row + 1, column=column))
            if node.is_missing:
                continue
        # Only subtrees that contain an error are worth descending into.
        stack.extend(
            child for child in reversed(node.children) if child.has_error or child.is_missing
        )
    return errors


def parse_js(source: str, *, source_name: str = "<input>") -> ParseResult:
    """
    Parse JavaScript source text into a tree-sitter syntax tree.

    Args:
        source: Raw JavaScript source code.
        source_name: Optional label used for diagnostics (defaults to `<input>`).

    Returns:
        ParseResult containing the tree root, any recovered errors, and metadata.
    """
    tree = Parser(JS_LANGUAGE).parse(source.encode("utf-8"))
    root = tree.root_node
    errors = _collect_errors(root) if root.has_error else []
    return ParseResult(root=root, errors=errors, source_name=source_name)


__all__ = ["JS_LANGUAGE", "ParseResult", "ParseError", "parse_js"]
