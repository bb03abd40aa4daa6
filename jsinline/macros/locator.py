"""
Macro site locator
==================
Finds ``%inline`` sites in host source.

    %inline('<module>').<function>(<arg0>, <arg1>, ...);

Two ways of finding them, one per driver strategy:

Token marker
    ``normalize_macros`` rewrites every site into a call to a synthetic
    marker function, which makes the file valid JavaScript:

        %inline('./ops').double(a + 1);  ──►  __jsinline_macro__("./ops", double, a + 1);

    ``find_marker_call`` then locates the first marker call in the parsed
    tree, with exact character ranges and parsed arguments.

Direct regex
    ``SWEEP_PATTERN`` matches a whole site on one logical line, capturing
    indentation and any text in front of the macro (``var y = ``) so the
    replacement can keep the line's shape.  The raw argument text is parsed
    separately with ``parse_arguments``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Callable

from .errors import ParseError
from .syntax import Fragment, Node, iter_child_nodes, parse_arguments


# ---------------------------------------------------------------------------
# Pattern explanation:
#   group 1 - module reference inside the quotes
#   group 2 - function name
#   group 3 - ")" when the call has no arguments
# Only the head of the call is rewritten; the arguments stay in place.
# ---------------------------------------------------------------------------
MACRO_PATTERN = re.compile(
    r"""%inline\s*\(\s*["'](.*?)['"]\s*\)\s*\.\s*(\w+)\s*\((\s*\))?"""
)

# ---------------------------------------------------------------------------
# Pattern explanation:
#   group 1 - indentation
#   group 2 - same-line text in front of the macro, e.g. "var y = "
#   group 3 - module reference
#   group 4 - function name
#   group 5 - raw argument text (may span lines, must end with ");" + EOL)
# ---------------------------------------------------------------------------
SWEEP_PATTERN = re.compile(
    r"""^([\t ]*)(\S.*)?%inline\s*\(\s*['"]([^"']+)["']\s*\)\s*\.(\w+)\s*\(([\s\S]*?)\);$""",
    re.MULTILINE,
)

# Parents in which a spliced expression never needs parentheses
_BARE_CONTEXTS = frozenset({
    "ExpressionStatement",
    "VariableDeclarator",
    "ReturnStatement",
    "ThrowStatement",
    "AssignmentExpression",
})


@dataclass
class MacroInvocation:
    module: str
    function: str
    arguments: list[Fragment] = field(default_factory=list)
    span: tuple[int, int] = (0, 0)   # character range of the site in the host text
    indent: str = ""                 # sweep only
    prefix: str = ""                 # sweep only
    operand: bool = False            # site is an operand of a larger expression
    context: str = ""                # parent node type of the site; empty for the sweep


# ---------------------------------------------------------------------------
# Token marker strategy
# ---------------------------------------------------------------------------

def normalize_macros(
    source: str,
    marker: str,
    resolve: Callable[[str], str] | None = None,
) -> tuple[str, int]:
    """
    Rewrite every ``%inline`` site in *source* into a *marker* call.

    *resolve*, when given, maps each module reference before it is embedded
    (used to pin references in nested modules to absolute paths).

    Returns the rewritten text and the number of sites found.
    """
    def _rewrite(match: re.Match) -> str:
        module, function, empty = match.groups()
        if resolve is not None:
            module = resolve(module)
        head = f"{marker}({json.dumps(module)}, {function}"
        return head + (")" if empty else ", ")

    return MACRO_PATTERN.subn(_rewrite, source)


def find_marker_call(tree: Node, source: str, marker: str) -> MacroInvocation | None:
    """Return the first marker call in *tree* (pre-order), or None."""
    found = _search(tree, None, marker)
    if found is None:
        return None
    call, parent = found

    args = call["arguments"]
    if (
        len(args) < 2
        or args[0]["type"] != "Literal"
        or not isinstance(args[0].get("value"), str)
        or args[1]["type"] != "Identifier"
    ):
        raise ParseError(f"malformed {marker}() call at offset {call['range'][0]}")

    return MacroInvocation(
        module=args[0]["value"],
        function=args[1]["name"],
        arguments=[Fragment(arg, source) for arg in args[2:]],
        span=tuple(call["range"]),
        operand=parent is not None and parent["type"] not in _BARE_CONTEXTS,
        context=parent["type"] if parent is not None else "",
    )


def _search(node: Node, parent: Node | None, marker: str) -> tuple[Node, Node | None] | None:
    if node["type"] == "CallExpression":
        callee = node["callee"]
        if callee["type"] == "Identifier" and callee["name"] == marker:
            return node, parent
    for child in iter_child_nodes(node):
        found = _search(child, node, marker)
        if found is not None:
            return found
    return None


# ---------------------------------------------------------------------------
# Direct regex strategy
# ---------------------------------------------------------------------------

def match_to_invocation(match: re.Match) -> MacroInvocation:
    """
    Build an invocation from a ``SWEEP_PATTERN`` match.

    Raises ``ParseError`` when the argument text does not parse.
    """
    indent, prefix, module, function, raw_args = match.groups()
    return MacroInvocation(
        module=module,
        function=function,
        arguments=parse_arguments(raw_args),
        span=match.span(),
        indent=indent,
        prefix=prefix or "",
    )
