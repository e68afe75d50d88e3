"""
Export analysis for JavaScript module syntax trees.

The analyzer walks the top-level statements of a tree-sitter tree and decides
which module format the source uses (ES module, CommonJS, or neither), the
names the module exports directly, and the `export * from` re-exports that have
to be followed to complete its export surface. Exports kind follows the bundler
convention: any import/export statement makes a module ESM; otherwise a
reference to the free `module` or `exports` identifiers marks it as CommonJS.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from tree_sitter import Node

_CJS_IDENTIFIERS = {b"module", b"exports"}

# `{ exports }` in an object literal reads the `exports` binding.
_REFERENCE_NODES = {"identifier", "shorthand_property_identifier"}

_NAMED_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
}

_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}


class ExportsKind(str, Enum):
    NONE = "none"
    CJS = "cjs"
    ESM = "esm"


@dataclass(frozen=True)
class SourcePosition:
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class ExportStar:
    """A single `export * from '<source>'` declaration."""

    source: str
    loc: SourcePosition


@dataclass(frozen=True)
class ExportAnalysis:
    source_name: str
    kind: ExportsKind
    named_exports: List[str] = field(default_factory=list)
    export_stars: List[ExportStar] = field(default_factory=list)

    @property
    def is_esm(self) -> bool:
        return self.kind == ExportsKind.ESM


def _node_text(node: Node) -> str:
    return (node.text or b"").decode("utf-8", errors="replace")


def _string_value(node: Node) -> str:
    # Module specifiers and export names are plain string literals.
    return _node_text(node)[1:-1]


def _references_cjs_bindings(root: Node) -> bool:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in _REFERENCE_NODES and node.text in _CJS_IDENTIFIERS:
            return True
        stack.extend(node.named_children)
    return False


class _ExportAnalyzer:
    def __init__(self, source_name: str) -> None:
        self._source_name = source_name
        self._named: List[str] = []
        self._stars: List[ExportStar] = []
        self._has_module_syntax = False

    def analyze(self, root: Node) -> ExportAnalysis:
        for statement in root.named_children:
            handler = getattr(self, f"_visit_{statement.type}", None)
            if handler:
                handler(statement)

        if self._has_module_syntax:
            kind = ExportsKind.ESM
        elif _references_cjs_bindings(root):
            kind = ExportsKind.CJS
        else:
            kind = ExportsKind.NONE
        return ExportAnalysis(
            source_name=self._source_name,
            kind=kind,
            named_exports=self._named,
            export_stars=self._stars,
        )

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _source_position(node: Node) -> SourcePosition:
        row, column = node.start_point
        return SourcePosition(line=row + 1, column=column)

    def _add_name(self, name: Optional[str]) -> None:
        if name:
            self._named.append(name)

    def _add_export_name(self, node: Optional[Node]) -> None:
        if node is None:
            return
        if node.type == "string":
            self._add_name(_string_value(node))
        else:
            self._add_name(_node_text(node))

    def _collect_pattern_names(self, pattern: Optional[Node]) -> None:
        if pattern is None:
            return
        node_type = pattern.type
        if node_type in {"identifier", "shorthand_property_identifier_pattern"}:
            self._add_name(_node_text(pattern))
        elif node_type == "pair_pattern":
            self._collect_pattern_names(pattern.child_by_field_name("value"))
        elif node_type in {"assignment_pattern", "object_assignment_pattern"}:
            self._collect_pattern_names(pattern.child_by_field_name("left"))
        elif node_type in {"object_pattern", "array_pattern", "rest_pattern"}:
            for child in pattern.named_children:
                self._collect_pattern_names(child)

    def _collect_declaration_names(self, declaration: Node) -> None:
        if declaration.type in _NAMED_DECLARATIONS:
            self._add_name(_node_text(declaration.child_by_field_name("name")))
        elif declaration.type in _VARIABLE_DECLARATIONS:
            for declarator in declaration.named_children:
                if declarator.type == "variable_declarator":
                    self._collect_pattern_names(declarator.child_by_field_name("name"))

    # ----------------------------------------------------------------- visitors

    def _visit_import_statement(self, node: Node) -> None:
        self._has_module_syntax = True

    def _visit_export_statement(self, node: Node) -> None:
        self._has_module_syntax = True

        if any(child.type == "default" for child in node.children):
            self._add_name("default")
            return

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            self._collect_declaration_names(declaration)
            return

        for child in node.named_children:
            if child.type == "namespace_export":
                # `export * as ns from '...'` exports a single binding.
                self._add_export_name(child.named_children[-1] if child.named_children else None)
            elif child.type == "export_clause":
                for specifier in child.named_children:
                    if specifier.type != "export_specifier":
                        continue
                    alias = specifier.child_by_field_name("alias")
                    self._add_export_name(alias or specifier.child_by_field_name("name"))

        source = node.child_by_field_name("source")
        if source is not None and any(child.type == "*" for child in node.children):
            self._stars.append(
                ExportStar(source=_string_value(source), loc=self._source_position(node))
            )


def analyze_exports(root: Node, *, source_name: str = "<input>") -> ExportAnalysis:
    """
    Classify a module syntax tree and collect its direct exports and star re-exports.

    Args:
        root: Root node of the tree (`ParseResult.root` from `parse_js`).
        source_name: Label for diagnostics and reporting.

    Returns:
        ExportAnalysis with the exports kind, named exports in declaration
        order, and `export *` sources in source order. The CommonJS reference
        scan only runs for sources without import/export statements.
    """
    analyzer = _ExportAnalyzer(source_name=source_name)
    return analyzer.analyze(root)


__all__ = [
    "ExportAnalysis",
    "ExportStar",
    "ExportsKind",
    "SourcePosition",
    "analyze_exports",
]
