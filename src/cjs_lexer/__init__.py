"""CommonJS export discovery through an external Node.js lexer."""

from .bridge import (
    CJSExportLexer,
    CJSExportsResult,
    ExecutionError,
    NodeCJSLexer,
    ResultFormatError,
    read_result,
    resolve_cjs_exports,
)
from .environment import BootstrapError, ToolchainEnvironment, get_environment, reset_environments
from .options import BridgeOptions
from .script import RESULT_FILENAME, LexerRequest, build_script

__all__ = [
    "BootstrapError",
    "BridgeOptions",
    "CJSExportLexer",
    "CJSExportsResult",
    "ExecutionError",
    "LexerRequest",
    "NodeCJSLexer",
    "RESULT_FILENAME",
    "ResultFormatError",
    "ToolchainEnvironment",
    "build_script",
    "get_environment",
    "read_result",
    "reset_environments",
    "resolve_cjs_exports",
]
