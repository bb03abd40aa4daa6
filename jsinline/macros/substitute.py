"""
Identifier substitution
-----------------------
Replaces references to parameter names with argument fragments, leaving
shadowed occurrences alone.

A name stops being substituted inside a subtree when the subtree redeclares
it:

    { var x = 5; return x * 2; }          - declaration in a statement list
    for (var x = 0; x < 10; x++) { ... }  - loop initializer
    function (x) { ... }                  - nested function parameter
    catch (x) { ... }                     - catch parameter

Only identifiers in reference position are replaced: ``o.x``, ``{x: 1}``
and labels keep their ``x``.  The input tree is never modified; every
visited node is rebuilt.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .syntax import (
    CHILD_FIELDS,
    REPLACEMENT,
    Fragment,
    Node,
    declaration_names,
    pattern_names,
)

logger = logging.getLogger(__name__)

Bindings = Mapping[str, Fragment]


def substitute(name: str, replacement: Fragment, tree: Node) -> Node:
    """Replace every unshadowed reference to *name* in *tree*."""
    return substitute_all({name: replacement}, tree)


def substitute_all(bindings: Bindings, tree: Node) -> Node:
    """
    Replace all names in *bindings* in a single walk.

    Arguments are never re-scanned, so an argument that mentions another
    parameter's name is left exactly as written.
    """
    if not bindings:
        return tree
    return Substituter().visit(tree, dict(bindings))


def replacement_node(target: Node, fragment: Fragment, prefix: str = "") -> Node:
    return {
        "type": REPLACEMENT,
        "range": list(target["range"]),
        "fragment": fragment,
        "prefix": prefix,
    }


def _without(bindings: dict[str, Fragment], names: set[str]) -> dict[str, Fragment]:
    if not names.intersection(bindings):
        return bindings
    return {name: frag for name, frag in bindings.items() if name not in names}


def _block_declarations(statements: list[Node]) -> set[str]:
    """Names a statement list declares for its whole block."""
    names: set[str] = set()
    for stmt in statements:
        kind = stmt["type"]
        if kind in ("ExportNamedDeclaration", "ExportDefaultDeclaration"):
            stmt = stmt.get("declaration") or stmt
            kind = stmt["type"]

        if kind == "VariableDeclaration":
            names |= declaration_names(stmt)
        elif kind == "ForStatement":
            names |= declaration_names(stmt.get("init"))
        elif kind in ("ForInStatement", "ForOfStatement"):
            names |= declaration_names(stmt["left"])
        elif kind in ("FunctionDeclaration", "ClassDeclaration") and stmt.get("id"):
            names.add(stmt["id"]["name"])
    return names


class Substituter:
    """
    Tree rewriter, one ``visit_<Type>`` method per node type that needs a
    rule of its own; everything else goes through ``generic_visit``.
    """

    def visit(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        method = getattr(self, f"visit_{node['type']}", self.generic_visit)
        return method(node, bindings)

    def generic_visit(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        rebuilt = dict(node)
        for field in CHILD_FIELDS.get(node["type"], ()):
            value = node.get(field)
            if isinstance(value, list):
                rebuilt[field] = [
                    self.visit(item, bindings) if isinstance(item, dict) else item
                    for item in value
                ]
            elif isinstance(value, dict):
                rebuilt[field] = self.visit(value, bindings)
        return rebuilt

    def _scoped(self, node: Node, bindings: dict[str, Fragment], declared: set[str]) -> Node:
        inner = _without(bindings, declared)
        if not inner:
            return node
        return self.generic_visit(node, inner)

    # ── references ─────────────────────────────────────────────────────────

    def visit_Identifier(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        fragment = bindings.get(node["name"])
        if fragment is None:
            return node
        return replacement_node(node, fragment)

    def visit_MemberExpression(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        rebuilt = dict(node, object=self.visit(node["object"], bindings))
        if node.get("computed"):
            rebuilt["property"] = self.visit(node["property"], bindings)
        return rebuilt

    def visit_Property(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        value = node["value"]
        # {x} means {x: x}; the key has to survive the substitution
        if node.get("shorthand") and value["type"] == "Identifier" and value["name"] in bindings:
            return replacement_node(node, bindings[value["name"]], prefix=f"{value['name']}: ")

        rebuilt = dict(node, value=self.visit(value, bindings))
        if node.get("computed"):
            rebuilt["key"] = self.visit(node["key"], bindings)
        return rebuilt

    def visit_MethodDefinition(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        rebuilt = dict(node, value=self.visit(node["value"], bindings))
        if node.get("computed"):
            rebuilt["key"] = self.visit(node["key"], bindings)
        return rebuilt

    # ── bindings ───────────────────────────────────────────────────────────

    def visit_VariableDeclarator(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        if node.get("init") is None:
            return node
        return dict(node, init=self.visit(node["init"], bindings))

    def visit_ClassDeclaration(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        rebuilt = dict(node, body=self.visit(node["body"], bindings))
        if node.get("superClass") is not None:
            rebuilt["superClass"] = self.visit(node["superClass"], bindings)
        return rebuilt

    # ── scopes ─────────────────────────────────────────────────────────────

    def visit_Program(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        return self._scoped(node, bindings, _block_declarations(node["body"]))

    def visit_BlockStatement(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        return self._scoped(node, bindings, _block_declarations(node["body"]))

    def visit_SwitchStatement(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        declared: set[str] = set()
        for case in node["cases"]:
            declared |= _block_declarations(case["consequent"])
        inner = _without(bindings, declared)
        cases = node["cases"] if not inner else [self.visit(case, inner) for case in node["cases"]]
        return dict(node, discriminant=self.visit(node["discriminant"], bindings), cases=cases)

    def visit_ForStatement(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        return self._scoped(node, bindings, declaration_names(node.get("init")))

    def visit_ForInStatement(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        return self._scoped(node, bindings, declaration_names(node["left"]))

    visit_ForOfStatement = visit_ForInStatement

    def visit_CatchClause(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        return self._scoped(node, bindings, pattern_names(node.get("param")))

    def _visit_function(self, node: Node, bindings: dict[str, Fragment]) -> Node:
        declared: set[str] = set()
        for param in node["params"]:
            declared |= pattern_names(param)
        # inside a named function its own name refers to the function
        if node.get("id"):
            declared.add(node["id"]["name"])
        return self._scoped(node, bindings, declared)

    visit_FunctionDeclaration = _visit_function
    visit_FunctionExpression = _visit_function
    visit_ArrowFunctionExpression = _visit_function
