"""
Inline errors
-------------
Every way a single ``%inline`` site can fail.  Each error carries the
diagnostic message reported to the host and the placeholder comment that is
spliced into the output in place of the site, so a broken expansion shows up
in the generated code instead of aborting the whole file.
"""

from __future__ import annotations


def _comment(text: str) -> str:
    # Keep user supplied text from closing the placeholder comment early
    return "/* " + text.replace("*/", "* /") + " */"


class InlineError(Exception):
    """Base class for every expansion failure."""

    def __init__(self, message: str, placeholder: str = "/* Inline error */") -> None:
        super().__init__(message)
        self.message = message
        self.placeholder = placeholder


class ParseError(InlineError):
    """Source text could not be parsed."""

    def __init__(self, message: str, placeholder: str = "/* Parsing error */") -> None:
        super().__init__(message, placeholder)


class ModuleParseError(ParseError):
    def __init__(self, module: str, detail: str) -> None:
        super().__init__(
            f'%inline("{module}"): {detail}',
            _comment(f"Parsing error in module {module}"),
        )
        self.module = module


class ArgumentParseError(ParseError):
    def __init__(self, function: str, detail: str) -> None:
        super().__init__(
            f"Invalid arguments for {function}: {detail}",
            _comment(f"Invalid arguments for {function}"),
        )
        self.function = function


class HostSyntaxError(ParseError):
    """The file being expanded does not parse; it is returned untouched."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Inline processing failed: SyntaxError: {detail}")


class ModuleNotFound(InlineError):
    def __init__(self, module: str) -> None:
        super().__init__(
            f"Could not find module `{module}`",
            _comment(f"Missing module {module}"),
        )
        self.module = module


class UnknownFunction(InlineError):
    def __init__(self, module: str, function: str) -> None:
        super().__init__(
            f'%inline("{module}"): Undefined function `{function}`',
            _comment(f"Unknown inline {function}"),
        )
        self.module = module
        self.function = function


class ArityMismatch(InlineError):
    def __init__(self, function: str, expected: int, received: int) -> None:
        super().__init__(
            f"Function {function} is expecting exactly {expected} arguments, "
            f"but got {received}",
            _comment(f"Invalid syntax for {function}"),
        )
        self.function = function
        self.expected = expected
        self.received = received


class ExpansionLimit(InlineError):
    def __init__(self, function: str, limit: int) -> None:
        super().__init__(
            f"Inline expansion of {function} stopped after {limit} passes",
            _comment(f"Inline depth exceeded for {function}"),
        )
        self.function = function
        self.limit = limit
