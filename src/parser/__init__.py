"""Interfaces for parsing JavaScript source code."""

from .js_parser import JS_LANGUAGE, ParseError, ParseResult, parse_js

__all__ = ["JS_LANGUAGE", "ParseError", "ParseResult", "parse_js"]
