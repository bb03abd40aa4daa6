"""
Syntax adapter
==============
Thin layer over the ``esprima`` parser.

Trees are converted to plain ESTree-shaped dicts (``{"type": ..., "range":
[start, end], ...}``) so the rest of the package can copy and rebuild them
freely.  Which fields of a node hold child nodes is spelled out per node
type in ``CHILD_FIELDS``; nothing walks a tree by enumerating arbitrary keys.

Node types that are not listed are treated as leaves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

import esprima
from esprima.error_handler import Error as EsprimaError

from .errors import ParseError

logger = logging.getLogger(__name__)

Node = dict[str, Any]

# Marks where a substitution put an argument in place of an identifier.
# Not an ESTree type; it only lives in substituted trees.
REPLACEMENT = "Replacement"

# ---------------------------------------------------------------------------
# Child fields per node type, in source order.  Labels and meta-property
# names are deliberately absent: they are never variable references.
# ---------------------------------------------------------------------------
CHILD_FIELDS: dict[str, tuple[str, ...]] = {
    # Program / statements
    "Program":                  ("body",),
    "ExpressionStatement":      ("expression",),
    "BlockStatement":           ("body",),
    "EmptyStatement":           (),
    "DebuggerStatement":        (),
    "WithStatement":            ("object", "body"),
    "ReturnStatement":          ("argument",),
    "LabeledStatement":         ("body",),
    "BreakStatement":           (),
    "ContinueStatement":        (),
    "IfStatement":              ("test", "consequent", "alternate"),
    "SwitchStatement":          ("discriminant", "cases"),
    "SwitchCase":               ("test", "consequent"),
    "ThrowStatement":           ("argument",),
    "TryStatement":             ("block", "handler", "finalizer"),
    "CatchClause":              ("param", "body"),
    "WhileStatement":           ("test", "body"),
    "DoWhileStatement":         ("body", "test"),
    "ForStatement":             ("init", "test", "update", "body"),
    "ForInStatement":           ("left", "right", "body"),
    "ForOfStatement":           ("left", "right", "body"),
    # Declarations
    "FunctionDeclaration":      ("id", "params", "body"),
    "VariableDeclaration":      ("declarations",),
    "VariableDeclarator":       ("id", "init"),
    "ClassDeclaration":         ("id", "superClass", "body"),
    "ClassBody":                ("body",),
    "MethodDefinition":         ("key", "value"),
    # Expressions
    "Identifier":               (),
    "Literal":                  (),
    "ThisExpression":           (),
    "Super":                    (),
    "Import":                   (),
    "MetaProperty":             (),
    "ArrayExpression":          ("elements",),
    "ObjectExpression":         ("properties",),
    "Property":                 ("key", "value"),
    "FunctionExpression":       ("id", "params", "body"),
    "ArrowFunctionExpression":  ("params", "body"),
    "ClassExpression":          ("id", "superClass", "body"),
    "UnaryExpression":          ("argument",),
    "UpdateExpression":         ("argument",),
    "BinaryExpression":         ("left", "right"),
    "LogicalExpression":        ("left", "right"),
    "AssignmentExpression":     ("left", "right"),
    "ConditionalExpression":    ("test", "consequent", "alternate"),
    "MemberExpression":         ("object", "property"),
    "CallExpression":           ("callee", "arguments"),
    "NewExpression":            ("callee", "arguments"),
    "SequenceExpression":       ("expressions",),
    "YieldExpression":          ("argument",),
    "AwaitExpression":          ("argument",),
    "TemplateLiteral":          ("quasis", "expressions"),
    "TemplateElement":          (),
    "TaggedTemplateExpression": ("tag", "quasi"),
    "SpreadElement":            ("argument",),
    # Patterns
    "RestElement":              ("argument",),
    "AssignmentPattern":        ("left", "right"),
    "ArrayPattern":             ("elements",),
    "ObjectPattern":            ("properties",),
    # Modules
    "ImportDeclaration":        ("specifiers", "source"),
    "ImportSpecifier":          ("imported", "local"),
    "ImportDefaultSpecifier":   ("local",),
    "ImportNamespaceSpecifier": ("local",),
    "ExportNamedDeclaration":   ("declaration", "specifiers", "source"),
    "ExportDefaultDeclaration": ("declaration",),
    "ExportAllDeclaration":     ("source",),
    "ExportSpecifier":          ("local", "exported"),
}

FUNCTION_TYPES = frozenset({
    "FunctionDeclaration",
    "FunctionExpression",
    "ArrowFunctionExpression",
})

# Expressions that can stand as an operand anywhere without parentheses
PRIMARY_TYPES = frozenset({
    "Identifier",
    "Literal",
    "ThisExpression",
    "Super",
    "ArrayExpression",
    "MemberExpression",
    "CallExpression",
    "TemplateLiteral",
    "TaggedTemplateExpression",
})


# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Fragment:
    """A subtree together with the text its ``range`` indexes into."""

    node: Node
    source: str

    @property
    def text(self) -> str:
        start, end = self.node["range"]
        return self.source[start:end]

    @property
    def is_primary(self) -> bool:
        return self.node["type"] in PRIMARY_TYPES


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_module(source: str) -> Node:
    """Parse *source* as an ES module (strict mode, import/export allowed)."""
    return _parse(esprima.parseModule, source)


def parse_script(source: str) -> Node:
    return _parse(esprima.parseScript, source)


def parse_arguments(text: str) -> list[Fragment]:
    """
    Parse raw argument text, e.g. ``a, b + 1``, into one fragment per argument.

    The text is parsed as the argument list of a synthetic call ``X(...)``;
    anything that does not form exactly that single call is rejected.
    """
    synthetic = f"X({text})"
    tree = parse_script(synthetic)
    body = tree["body"]
    if (
        len(body) != 1
        or body[0]["type"] != "ExpressionStatement"
        or body[0]["expression"]["type"] != "CallExpression"
        or body[0]["expression"]["range"] != [0, len(synthetic)]
    ):
        raise ParseError(f"not an argument list: {text!r}")
    return [Fragment(arg, synthetic) for arg in body[0]["expression"]["arguments"]]


def _parse(parser, source: str) -> Node:
    try:
        tree = parser(source, {"range": True})
    except EsprimaError as exc:
        raise ParseError(str(exc)) from exc
    return _to_plain(tree)


def _to_plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    if hasattr(value, "__dict__"):
        return {key: _to_plain(item) for key, item in vars(value).items()}
    return value


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of *node* in source order."""
    for field in CHILD_FIELDS.get(node["type"], ()):
        value = node.get(field)
        if isinstance(value, list):
            # array holes ([a, , b]) come through as None
            yield from (item for item in value if isinstance(item, dict))
        elif isinstance(value, dict):
            yield value


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of *node* and all its descendants."""
    yield node
    for child in iter_child_nodes(node):
        yield from walk(child)


def pattern_names(pattern: Node | None) -> set[str]:
    """Names bound by a declaration target (identifier or destructuring pattern)."""
    if pattern is None:
        return set()
    kind = pattern["type"]
    if kind == "Identifier":
        return {pattern["name"]}
    if kind == "AssignmentPattern":
        return pattern_names(pattern["left"])
    if kind == "RestElement":
        return pattern_names(pattern["argument"])
    if kind == "ArrayPattern":
        return set().union(*(pattern_names(el) for el in pattern["elements"]))
    if kind == "ObjectPattern":
        names: set[str] = set()
        for prop in pattern["properties"]:
            target = prop["argument"] if prop["type"] == "RestElement" else prop["value"]
            names |= pattern_names(target)
        return names
    logger.debug("Ignoring unsupported binding pattern %s", kind)
    return set()


def declaration_names(declaration: Node | None) -> set[str]:
    """Names bound by a ``var``/``let``/``const`` declaration."""
    if declaration is None or declaration["type"] != "VariableDeclaration":
        return set()
    return set().union(*(pattern_names(d["id"]) for d in declaration["declarations"]))


def key_name(prop: Node) -> str | None:
    """Static name of a property or method key, ``None`` for computed keys."""
    key = prop["key"]
    if prop.get("computed"):
        return None
    if key["type"] == "Identifier":
        return key["name"]
    if key["type"] == "Literal" and isinstance(key.get("value"), str):
        return key["value"]
    return None
