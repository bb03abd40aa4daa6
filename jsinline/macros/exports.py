"""
Export resolver
---------------
Finds the functions a module exports, across the declaration styles people
actually use:

    export function name(a, b) { ... }

    function name(a, b) { ... }               ─┐ recorded, exported later by
    var name = function (a, b) { ... };        │ `module.exports = {...}` or
    const name = (a, b) => ...;               ─┘ `export { name }`

    export const name = (a, b) => ...;

    export default class {
        static name(a, b) { ... }
    }

    module.exports = {
        name: function (a, b) { ... },
        name(a, b) { ... },
        other: name,                          - re-export under a new key
        name,                                 - shorthand re-export
    };

    exports.name = function (a, b) { ... };

Only top-level statements are looked at.  Re-exports of *imported* bindings
are never followed.  When a name is exported twice the later statement
wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import reduce
from typing import NamedTuple

from .syntax import FUNCTION_TYPES, Node, key_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FunctionDefinition:
    """
    An inlinable function.

    ``body`` is the function's block statement, or the body expression of an
    expression-bodied arrow function (``expression`` is then True).  Ranges
    inside ``body`` index into ``source``.
    """

    name: str
    params: tuple[str, ...]
    body: Node
    source: str
    expression: bool = False


ExportTable = dict[str, FunctionDefinition]


class _Entry(NamedTuple):
    function: FunctionDefinition
    exported: bool


_Scope = dict[str, _Entry]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve_exports(tree: Node, source: str) -> ExportTable:
    """
    Return ``name -> FunctionDefinition`` for every function *tree* exports.

    Parameters
    ----------
    tree : dict
        Module syntax tree, as returned by ``parse_module``.
    source : str
        The text *tree* was parsed from.
    """
    scope = reduce(lambda acc, node: _collect(acc, node, source), tree["body"], {})
    return {name: entry.function for name, entry in scope.items() if entry.exported}


def make_definition(name: str, node: Node, source: str) -> FunctionDefinition | None:
    """Build a definition from a function node, or None if it can't be inlined."""
    params = []
    for param in node["params"]:
        if param["type"] == "AssignmentPattern":
            param = param["left"]
        if param["type"] != "Identifier":
            logger.debug("Skipping %s: unsupported %s parameter", name, param["type"])
            return None
        params.append(param["name"])

    body = node["body"]
    return FunctionDefinition(
        name=name,
        params=tuple(params),
        body=body,
        source=source,
        expression=body["type"] != "BlockStatement",
    )


# ---------------------------------------------------------------------------
# One reduction step per top-level statement
# ---------------------------------------------------------------------------

def _collect(scope: _Scope, node: Node, source: str) -> _Scope:
    handler = _HANDLERS.get(node["type"])
    if handler is None:
        return scope
    return handler(scope, node, source)


def _record(scope: _Scope, name: str, fn_node: Node, source: str, exported: bool) -> _Scope:
    definition = make_definition(name, fn_node, source)
    if definition is None:
        return scope
    return {**scope, name: _Entry(definition, exported)}


def _export_as(scope: _Scope, exported_name: str, local_name: str) -> _Scope:
    """Mark a recorded function exported, under a new name if they differ."""
    entry = scope.get(local_name)
    if entry is None:
        logger.debug("Export %s refers to unknown function %s", exported_name, local_name)
        return scope
    function = entry.function
    if exported_name != local_name:
        function = replace(function, name=exported_name)
    return {**scope, exported_name: _Entry(function, True)}


def _function_declaration(scope: _Scope, node: Node, source: str) -> _Scope:
    return _record(scope, node["id"]["name"], node, source, exported=False)


def _variable_declaration(scope: _Scope, node: Node, source: str, exported: bool = False) -> _Scope:
    for declarator in node["declarations"]:
        init = declarator.get("init")
        if init is None or init["type"] not in FUNCTION_TYPES:
            continue
        if declarator["id"]["type"] != "Identifier":
            continue
        scope = _record(scope, declarator["id"]["name"], init, source, exported)
    return scope


def _export_named(scope: _Scope, node: Node, source: str) -> _Scope:
    declaration = node.get("declaration")
    if declaration is not None:
        if declaration["type"] == "FunctionDeclaration":
            return _record(scope, declaration["id"]["name"], declaration, source, exported=True)
        if declaration["type"] == "VariableDeclaration":
            return _variable_declaration(scope, declaration, source, exported=True)
        return scope

    # `export { a, b as c } from "./other"` re-exports imports: not followed
    if node.get("source") is not None:
        return scope

    for spec in node.get("specifiers") or ():
        scope = _export_as(scope, spec["exported"]["name"], spec["local"]["name"])
    return scope


def _export_default(scope: _Scope, node: Node, source: str) -> _Scope:
    declaration = node["declaration"]
    if declaration["type"] != "ClassDeclaration":
        return scope

    for member in declaration["body"]["body"]:
        if member["type"] != "MethodDefinition" or not member.get("static"):
            continue
        name = key_name(member)
        if name is not None:
            scope = _record(scope, name, member["value"], source, exported=True)
    return scope


def _expression_statement(scope: _Scope, node: Node, source: str) -> _Scope:
    expression = node["expression"]
    if expression["type"] != "AssignmentExpression" or expression["operator"] != "=":
        return scope

    target = _member_path(expression["left"])
    value = expression["right"]

    # module.exports = { ... }
    if target == ("module", "exports") and value["type"] == "ObjectExpression":
        return _export_bag(scope, value, source)

    # exports.name = function ... / module.exports.name = function ...
    if target is not None and target[:-1] in (("exports",), ("module", "exports")):
        if value["type"] in FUNCTION_TYPES:
            return _record(scope, target[-1], value, source, exported=True)
        if value["type"] == "Identifier":
            return _export_as(scope, target[-1], value["name"])
    return scope


def _export_bag(scope: _Scope, bag: Node, source: str) -> _Scope:
    for prop in bag["properties"]:
        if prop["type"] != "Property":
            continue
        name = key_name(prop)
        value = prop["value"]
        if name is None:
            continue

        if value["type"] == "Identifier" and value["name"] in scope:
            scope = _export_as(scope, name, value["name"])
        elif value["type"] in FUNCTION_TYPES:
            scope = _record(scope, name, value, source, exported=True)
    return scope


def _member_path(node: Node) -> tuple[str, ...] | None:
    """``module.exports.name`` -> ("module", "exports", "name"); None otherwise."""
    parts: list[str] = []
    while node["type"] == "MemberExpression":
        if node.get("computed") or node["property"]["type"] != "Identifier":
            return None
        parts.append(node["property"]["name"])
        node = node["object"]
    if node["type"] != "Identifier":
        return None
    parts.append(node["name"])
    return tuple(reversed(parts))


_HANDLERS = {
    "FunctionDeclaration":      _function_declaration,
    "VariableDeclaration":      _variable_declaration,
    "ExportNamedDeclaration":   _export_named,
    "ExportDefaultDeclaration": _export_default,
    "ExpressionStatement":      _expression_statement,
}
