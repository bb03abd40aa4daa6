"""
Function renderer
-----------------
Turns a (substituted) function definition back into source text.

Rendering works on the original text: a node renders as its own source
slice with every substituted argument spliced over the identifier it
replaced.  Operators, literals and comments inside the body come out
exactly as written.

    return x * 2;          x := a + 1     ──►  (a + 1) * 2
    return {a: 1};                        ──►  {a: 1}
    log(msg); n++;         msg := "hi"    ──►  log("hi"); n++;
"""

from __future__ import annotations

import re
from typing import Iterator, NamedTuple

from .exports import FunctionDefinition
from .syntax import PRIMARY_TYPES, REPLACEMENT, Node, walk

_NEWLINE = re.compile(r"\r?\n")


class RenderedFunction(NamedTuple):
    text: str
    expression: bool   # text is a single expression rather than statements
    primary: bool      # expression needs no parentheses as an operand
    sequence: bool = False   # comma expression: needs parentheses outside statement position


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_function(fn: FunctionDefinition) -> str:
    """
    Render the body of *fn*.

    A body starting with ``return`` renders as the returned expression only;
    whatever follows that statement is unreachable and dropped.  Any other
    body renders as its statement list.
    """
    return render(fn).text


def render(fn: FunctionDefinition) -> RenderedFunction:
    if fn.expression:
        return _render_expression(fn.body, fn.source)

    statements = fn.body["body"]
    if not statements:
        return RenderedFunction("", expression=False, primary=False)

    first = statements[0]
    if first["type"] == "ReturnStatement":
        argument = first.get("argument")
        if argument is None:
            return RenderedFunction("", expression=True, primary=True)
        return _render_expression(argument, fn.source)

    return RenderedFunction(render_span(statements, fn.source), expression=False, primary=False)


def render_node(node: Node, source: str) -> str:
    return render_span([node], source)


def render_span(nodes: list[Node], source: str) -> str:
    """
    Render the text from the start of the first node to the end of the last.

    Continuation lines lose the indentation of the line the span starts on,
    so the caller can re-indent the result for its own position.
    """
    start = nodes[0]["range"][0]
    end = nodes[-1]["range"][1]

    replacements = sorted(
        (repl for node in nodes for repl in _replacements(node)),
        key=lambda repl: repl["range"][0],
    )

    pieces: list[str] = []
    cursor = start
    for repl in replacements:
        repl_start, repl_end = repl["range"]
        pieces.append(source[cursor:repl_start])
        pieces.append(_replacement_text(repl))
        cursor = repl_end
    pieces.append(source[cursor:end])

    return _dedent("".join(pieces), len(line_indent(source, start)))


def line_indent(text: str, index: int) -> str:
    """Leading whitespace of the line containing *index*."""
    line = text[text.rfind("\n", 0, index) + 1:index]
    return line[:len(line) - len(line.lstrip(" \t"))]


def reindent(code: str, indent: str) -> str:
    """Prefix every continuation line of *code* with *indent*."""
    return _NEWLINE.sub(lambda _m: "\n" + indent, code)


def parenthesize(text: str) -> str:
    if _is_wrapped(text):
        return text
    return f"({text})"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _render_expression(node: Node, source: str) -> RenderedFunction:
    # A lone replacement is already parenthesized when it has to be
    primary = node["type"] in PRIMARY_TYPES or node["type"] == REPLACEMENT
    return RenderedFunction(
        render_node(node, source),
        expression=True,
        primary=primary,
        sequence=node["type"] == "SequenceExpression",
    )


def _replacements(node: Node) -> Iterator[Node]:
    # replacement nodes have no child fields, so the walk stops at them
    return (n for n in walk(node) if n["type"] == REPLACEMENT)


def _replacement_text(repl: Node) -> str:
    fragment = repl["fragment"]
    text = render_node(fragment.node, fragment.source)
    if not fragment.is_primary:
        text = parenthesize(text)
    return repl["prefix"] + text


def _is_wrapped(text: str) -> bool:
    """True when the whole of *text* sits inside one pair of parentheses."""
    if not (text.startswith("(") and text.endswith(")")):
        return False
    depth = 0
    for i, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                return False
    return depth == 0


def _dedent(text: str, width: int) -> str:
    if not width or "\n" not in text:
        return text
    first, *rest = text.split("\n")
    return "\n".join([first] + [_strip_indent(line, width) for line in rest])


def _strip_indent(line: str, width: int) -> str:
    leading = len(line) - len(line.lstrip(" \t"))
    return line[min(width, leading):]
