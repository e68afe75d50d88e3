"""
Identifiers that cannot be re-bound as export names.

The list spans the keywords and reserved words of the environments that import
the generated re-export modules. A trailing `*` marks words that are only
reserved in some contexts; it is informational and the bare word is rejected
regardless.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List

RESERVED_WORDS = (
    "abstract*", "arguments", "await", "boolean",
    "break", "byte", "case", "catch",
    "char", "class", "const", "continue",
    "debugger", "default", "delete", "do",
    "double", "else", "enum", "eval",
    "export", "extends", "false", "final",
    "finally", "float", "for", "function",
    "goto", "if", "implements", "import",
    "in", "instanceof", "int", "interface*",
    "let", "long", "native", "new",
    "null", "package*", "private", "protected",
    "public", "return", "short", "static",
    "super", "switch", "synchronized", "this",
    "throw", "throws", "transient", "true",
    "try", "typeof", "var", "void",
    "volatile", "while", "with", "yield",
)

_BARE_RESERVED_WORDS: FrozenSet[str] = frozenset(word.rstrip("*") for word in RESERVED_WORDS)


def is_reserved_word(name: str) -> bool:
    return name in _BARE_RESERVED_WORDS


def filter_reserved_words(names: Iterable[str]) -> List[str]:
    """Drop reserved words from `names`, keeping the original order."""
    return [name for name in names if not is_reserved_word(name)]


def bare_reserved_words() -> List[str]:
    """Reserved words without the conditional-reservation marker, sorted."""
    return sorted(_BARE_RESERVED_WORDS)


__all__ = ["RESERVED_WORDS", "bare_reserved_words", "filter_reserved_words", "is_reserved_word"]
