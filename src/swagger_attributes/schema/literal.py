"""Static analysis of the mapping a resource method returns.

The method source is parsed with :mod:`ast` and the returned dict literal is
turned into a small literal tree. Nothing is executed.
"""

import ast
import inspect
import textwrap
from dataclasses import dataclass, field
from typing import Callable, Union

RELATION_MARKERS = {"when_loaded"}
SEQUENCE_CONSTRUCTORS = {"list", "tuple", "set", "frozenset", "sorted"}


@dataclass
class MappingLiteral:
    entries: list[tuple[str, "LiteralNode"]] = field(default_factory=list)


@dataclass
class SequenceLiteral:
    pass


@dataclass
class ScalarLiteral:
    value: object


@dataclass
class Expression:
    """Anything that is not a literal; its type cannot be inferred."""

    source: str


LiteralNode = Union[MappingLiteral, SequenceLiteral, ScalarLiteral, Expression]


@dataclass
class MethodAnalysis:
    mapping: MappingLiteral | None = None
    relations: list[str] = field(default_factory=list)


def analyze_method(func: Callable) -> MethodAnalysis:
    """Analyze a function object. Raises OSError/TypeError if its source is unavailable."""
    return analyze_source(inspect.getsource(func))


def analyze_source(source: str) -> MethodAnalysis:
    """Analyze the first function definition found in ``source``."""
    tree = ast.parse(textwrap.dedent(source))
    func = next(
        (node for node in ast.walk(tree) if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))),
        None,
    )
    if func is None:
        return MethodAnalysis()
    return MethodAnalysis(mapping=_returned_mapping(func), relations=_relations(func))


def to_literal(node: ast.AST) -> LiteralNode:
    """Convert an expression node into a literal tree node."""
    if isinstance(node, ast.Dict):
        entries = []
        for key, value in zip(node.keys, node.values):
            # ``**other`` has no key; non-string keys cannot become properties.
            if isinstance(key, ast.Constant) and isinstance(key.value, str):
                entries.append((key.value, to_literal(value)))
        return MappingLiteral(entries)

    if isinstance(node, ast.Call) and _call_name(node) == "dict" and not node.args:
        return MappingLiteral([(kw.arg, to_literal(kw.value)) for kw in node.keywords if kw.arg])

    if isinstance(node, (ast.List, ast.Tuple, ast.Set)):
        return SequenceLiteral()
    if isinstance(node, (ast.ListComp, ast.SetComp, ast.GeneratorExp)):
        return SequenceLiteral()
    if isinstance(node, ast.Call) and _call_name(node) in SEQUENCE_CONSTRUCTORS:
        return SequenceLiteral()

    if isinstance(node, ast.Constant):
        return ScalarLiteral(node.value)
    if (
        isinstance(node, ast.UnaryOp)
        and isinstance(node.op, (ast.USub, ast.UAdd))
        and isinstance(node.operand, ast.Constant)
        and isinstance(node.operand.value, (int, float))
        and not isinstance(node.operand.value, bool)
    ):
        value = node.operand.value
        return ScalarLiteral(-value if isinstance(node.op, ast.USub) else value)

    return Expression(ast.unparse(node))


def literal_schema(node: LiteralNode) -> dict:
    """Infer a schema fragment from the literal form of a value."""
    if isinstance(node, MappingLiteral):
        return {
            "type": "object",
            "properties": {key: literal_schema(value) for key, value in node.entries},
        }
    if isinstance(node, SequenceLiteral):
        return {"type": "array", "items": {"type": "string"}}
    if isinstance(node, ScalarLiteral):
        value = node.value
        if isinstance(value, bool):
            return {"type": "boolean"}
        if value is None:
            return {"type": "string", "nullable": True}
        if isinstance(value, int):
            return {"type": "integer"}
        if isinstance(value, float):
            return {"type": "number"}
    return {"type": "string"}


def is_opaque(node: LiteralNode) -> bool:
    return isinstance(node, Expression)


def _returned_mapping(func: ast.FunctionDef) -> MappingLiteral | None:
    assigned: dict[str, ast.AST] = {}

    for node in _walk_in_order(func):
        if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            assigned[node.targets[0].id] = node.value
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.value is not None:
            assigned[node.target.id] = node.value
        elif isinstance(node, ast.Return) and node.value is not None:
            value = node.value
            if isinstance(value, ast.Name) and value.id in assigned:
                value = assigned[value.id]
            literal = to_literal(value)
            if isinstance(literal, MappingLiteral):
                return literal
    return None


def _relations(root: ast.AST) -> list[str]:
    relations: list[str] = []
    for node in _walk_in_order(root):
        if (
            isinstance(node, ast.Call)
            and _call_name(node) in RELATION_MARKERS
            and node.args
            and isinstance(node.args[0], ast.Constant)
            and isinstance(node.args[0].value, str)
        ):
            relation = node.args[0].value
            if relation not in relations:
                relations.append(relation)
    return relations


def _walk_in_order(root: ast.AST):
    """Depth-first, source-order walk that does not enter nested function definitions."""
    for child in ast.iter_child_nodes(root):
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)):
            continue
        yield child
        yield from _walk_in_order(child)


def _call_name(node: ast.Call) -> str | None:
    if isinstance(node.func, ast.Name):
        return node.func.id
    if isinstance(node.func, ast.Attribute):
        return node.func.attr
    return None
