"""
InlineEngine
============
The expansion driver.  For each ``%inline`` site: load the target module,
resolve its exports, check arity, substitute the arguments, render the body
and splice the result into the host source.

Two strategies share that per-site pipeline:

reparse (default)
    Rewrite sites into marker calls, then repeatedly parse the file, expand
    the first marker and splice over its exact range.  One parse per site;
    correct for several sites on one line and for sites nested in
    arguments.  With ``recursive`` enabled, sites inside target modules are
    expanded too.

sweep
    A single regex pass with a callback per site.  No host parse at all, but
    strictly line oriented: the site must end its line with ``);``.

A failing site never stops the file: the error is reported to the host and
a placeholder comment takes the site's place.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import replace

from jsinline.core.config import Settings, get_settings

from .context import HostContext
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
from .exports import ExportTable, resolve_exports
from .locator import (
    SWEEP_PATTERN,
    MacroInvocation,
    find_marker_call,
    match_to_invocation,
    normalize_macros,
)
from .render import RenderedFunction, line_indent, parenthesize, reindent, render
from .substitute import substitute_all
from .syntax import parse_module

logger = logging.getLogger(__name__)

# Extra indentation for continuation lines when the site follows other code
CONTINUATION_INDENT = "    "

_TRAILING_SEMICOLON = re.compile(r"[ \t]*;")

# Parents under which a comma expression keeps its meaning unparenthesized
_SEQUENCE_SAFE = frozenset({"ExpressionStatement", "ReturnStatement", "ThrowStatement"})

# Expression text that a statement would start reading as a block or declaration
_STATEMENT_AMBIGUOUS = re.compile(r"\{|function\b|class\b|async\s+function\b|let\s*\[")


class InlineEngine:
    """
    Expand every ``%inline`` site in a piece of JavaScript.

    Usage::

        ctx = FileSystemContext("src/")
        engine = InlineEngine(ctx)
        output = engine.transform(source)
    """

    def __init__(self, ctx: HostContext, settings: Settings | None = None) -> None:
        self._ctx = ctx
        self._settings = settings or get_settings()

    # ----------------------------------------------------------------- public

    def transform(self, source: str) -> str:
        self._ctx.mark_cacheable()
        if self._settings.strategy == "sweep":
            return self._sweep(source)
        return self._reparse(source)

    def expand(self, invocation: MacroInvocation) -> RenderedFunction:
        """
        Produce the replacement for one site.

        Raises an ``InlineError`` subclass when the site can't be expanded.
        """
        exports = self.load_exports(invocation.module)
        fn = exports.get(invocation.function)
        if fn is None:
            raise UnknownFunction(invocation.module, invocation.function)

        if len(invocation.arguments) != len(fn.params):
            raise ArityMismatch(fn.name, len(fn.params), len(invocation.arguments))

        bindings = dict(zip(fn.params, invocation.arguments))
        rendered = render(replace(fn, body=substitute_all(bindings, fn.body)))
        logger.debug("Inlined %s from %s (%d chars)", fn.name, invocation.module, len(rendered.text))
        return rendered

    def load_exports(self, module: str) -> ExportTable:
        path = self._ctx.resolve_module_path(module)
        try:
            contents = self._ctx.read_file(path)
        except UnicodeDecodeError as exc:
            self._ctx.register_file_dependency(path)
            raise ModuleParseError(module, str(exc)) from exc
        if contents is None:
            raise ModuleNotFound(module)
        self._ctx.register_file_dependency(path)

        if self._settings.recursive:
            base = os.path.dirname(path)
            contents, nested = normalize_macros(
                contents,
                self._settings.marker_name,
                resolve=lambda ref: os.path.join(base, ref),
            )
            if nested:
                logger.debug("%s contains %d nested inline sites", module, nested)

        try:
            tree = parse_module(contents)
        except ParseError as exc:
            raise ModuleParseError(module, exc.message) from exc
        return resolve_exports(tree, contents)

    # ----------------------------------------------------------------- reparse

    def _reparse(self, source: str) -> str:
        marker = self._settings.marker_name
        text, count = normalize_macros(source, marker)
        if not count:
            return source   # nothing to do, don't spend a parse on it

        # failed sites hold a stand-in identifier until the loop ends so the
        # text keeps parsing; the placeholder comments go in afterwards
        placeholders: list[str] = []
        # every host site costs one pass; only passes beyond those come from
        # nested expansion and count against max_passes
        limit = count + self._settings.max_passes
        passes = 0
        while True:
            try:
                invocation = find_marker_call(parse_module(text), text, marker)
            except ParseError as exc:
                self._report(HostSyntaxError(exc.message))
                return source

            if invocation is None:
                break

            passes += 1
            try:
                if passes > limit:
                    if passes == limit + 1:
                        logger.warning("Inline expansion reached pass limit (%d)", self._settings.max_passes)
                    raise ExpansionLimit(invocation.function, self._settings.max_passes)
                rendered = self.expand(invocation)
            except InlineError as exc:
                self._report(exc)
                stand_in = f"{marker}_{len(placeholders)}"
                placeholders.append(exc.placeholder)
                rendered = RenderedFunction(stand_in, expression=True, primary=True)

            text = self._splice(text, invocation, rendered)

        if placeholders:
            stand_ins = re.compile(re.escape(marker) + r"_(\d+)\b")
            text = stand_ins.sub(lambda m: placeholders[int(m.group(1))], text)
        return text

    def _splice(self, text: str, invocation: MacroInvocation, rendered: RenderedFunction) -> str:
        start, end = invocation.span
        line_start = text.rfind("\n", 0, start) + 1
        indent = line_indent(text, start)
        if text[line_start:start].strip():
            indent += CONTINUATION_INDENT

        code = rendered.text
        if rendered.expression:
            code = fit_expression(rendered, invocation.context, invocation.operand)
        else:
            # statements carry their own terminators
            trailing = _TRAILING_SEMICOLON.match(text, end)
            if trailing:
                end = trailing.end()

        return text[:start] + reindent(code, indent) + text[end:]

    # ------------------------------------------------------------------- sweep

    def _sweep(self, source: str) -> str:
        return SWEEP_PATTERN.sub(self._sweep_site, source)

    def _sweep_site(self, match: re.Match) -> str:
        try:
            invocation = match_to_invocation(match)
        except ParseError as exc:
            rendered = self._fail(ArgumentParseError(match.group(4), exc.message))
        else:
            rendered = self._expand_site(invocation)

        indent, prefix = match.group(1), match.group(2) or ""
        code = rendered.text
        if rendered.expression:
            # without a parse, anything in front of the site is taken as an
            # assignment-like context
            context = "AssignmentExpression" if prefix else "ExpressionStatement"
            code = fit_expression(rendered, context) + ";"
        if prefix:
            return indent + prefix + reindent(code, indent + CONTINUATION_INDENT)
        return indent + reindent(code, indent)

    # ----------------------------------------------------------------- private

    def _expand_site(self, invocation: MacroInvocation) -> RenderedFunction:
        try:
            return self.expand(invocation)
        except InlineError as exc:
            return self._fail(exc)

    def _fail(self, exc: InlineError) -> RenderedFunction:
        self._report(exc)
        return RenderedFunction(exc.placeholder, expression=True, primary=True)

    def _report(self, exc: InlineError) -> None:
        logger.debug("Inline failed: %s", exc.message)
        self._ctx.report_diagnostic(exc.message)


def fit_expression(rendered: RenderedFunction, context: str, operand: bool = False) -> str:
    """
    Text for an expression result spliced under a *context* parent node.

    Parenthesizes where the bare text would change meaning or stop parsing:
    a compound operand, a comma expression outside statement position, and
    object, function or class text at the start of a statement.  An empty
    result (``return;``) becomes ``undefined`` wherever a value is needed.
    """
    code = rendered.text
    if not code:
        return code if context == "ExpressionStatement" else "undefined"
    if operand and not rendered.primary:
        return parenthesize(code)
    if rendered.sequence and context not in _SEQUENCE_SAFE:
        return parenthesize(code)
    if context == "ExpressionStatement" and _STATEMENT_AMBIGUOUS.match(code):
        return parenthesize(code)
    return code


# -----------------------------------------------------------------------------

def transform(source: str, ctx: HostContext, settings: Settings | None = None) -> str:
    """Expand *source* with a one-off engine bound to *ctx*."""
    return InlineEngine(ctx, settings).transform(source)
