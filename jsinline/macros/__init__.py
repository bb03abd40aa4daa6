"""
Inline macro subsystem: public API.
"""

from .context import FileSystemContext, HostContext
from .engine import InlineEngine, transform
from .errors import (
    ArgumentParseError,
    ArityMismatch,
    ExpansionLimit,
    HostSyntaxError,
    InlineError,
    ModuleNotFound,
    ModuleParseError,
    ParseError,
    UnknownFunction,
)
from .exports import ExportTable, FunctionDefinition, resolve_exports
from .render import render_function
from .substitute import substitute, substitute_all

__all__ = [
    "FileSystemContext",
    "HostContext",
    "InlineEngine",
    "transform",
    "InlineError",
    "ParseError",
    "ModuleParseError",
    "ArgumentParseError",
    "HostSyntaxError",
    "ModuleNotFound",
    "UnknownFunction",
    "ArityMismatch",
    "ExpansionLimit",
    "ExportTable",
    "FunctionDefinition",
    "resolve_exports",
    "render_function",
    "substitute",
    "substitute_all",
]
