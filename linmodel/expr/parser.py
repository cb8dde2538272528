"""
Text front-end: Python expression syntax to expression nodes.

Parses with the standard ast module and maps the supported subset:

- x(i, j)            family reference (Index); x(i, _) is a WildcardIndex
- cost[i], f.price   parameter container access
- sum(body for i in dom if pred)   aggregation (Sum); sum(x(_, j)) sums wildcards
- range(a, b[, c])   integer range
- inf, infinity      unbounded value
- == <= >=           constraints; < > != and/or/not in filters only

Example:
    >>> node = parse_expression("sum(q(i, _)) == 1")
    >>> clause = parse_clause("i in range(1, 3)")
"""

import ast
import re
from typing import Any, List, Sequence, Tuple

from ..errors import ExpressionSyntaxError
from .nodes import (
    UNBOUNDED,
    WILDCARD,
    Access,
    BinOp,
    Clause,
    Collection,
    Compare,
    Constant,
    Filter,
    Generator,
    Index,
    Logical,
    Node,
    Not,
    Range,
    Ref,
    Sum,
    UnaryMinus,
    WildcardIndex,
)

_BINOPS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.FloorDiv: "//",
    ast.Mod: "%",
    ast.Pow: "**",
}

_CMPOPS = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
}

_UNBOUNDED_NAMES = ("inf", "infinity")
_SINGLE_EQUALS = re.compile(r"(?<![<>=!])=(?!=)")


class ExpressionParser:
    """Convert Python-syntax text to expression nodes."""

    def __init__(self, text: str):
        self.text = text

    def error(self, reason: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(self.text, reason)

    def _tree(self) -> ast.Expression:
        text = self.text.strip()
        try:
            return ast.parse(text, mode="eval")
        except SyntaxError as e:
            reason = e.msg
        # accept a single "=" for equality: x + y = 1
        equality = _SINGLE_EQUALS.sub("==", text)
        if equality != text:
            try:
                return ast.parse(equality, mode="eval")
            except SyntaxError:
                pass
        raise self.error(reason)

    def parse(self) -> Node:
        return self.convert(self._tree().body)

    def convert(self, node: ast.AST) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", None)
        if method is None:
            raise self.error(f"unsupported syntax: {type(node).__name__}")
        return method(node)

    # -------------------------------------------------------------------------
    # Leaves
    # -------------------------------------------------------------------------

    def visit_Constant(self, node: ast.Constant) -> Node:
        if node.value is None or isinstance(node.value, (bytes, complex)):
            raise self.error(f"unsupported literal {node.value!r}")
        return Constant(node.value)

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id == "_":
            return WILDCARD
        if node.id in _UNBOUNDED_NAMES:
            return Constant(UNBOUNDED)
        return Ref(node.id)

    def visit_List(self, node: ast.List) -> Node:
        return Collection(tuple(self.convert(e) for e in node.elts))

    visit_Tuple = visit_List

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def visit_BinOp(self, node: ast.BinOp) -> Node:
        op = _BINOPS.get(type(node.op))
        if op is None:
            raise self.error(f"unsupported operator {type(node.op).__name__}")
        return BinOp(op, self.convert(node.left), self.convert(node.right))

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Node:
        operand = self.convert(node.operand)
        if isinstance(node.op, ast.USub):
            if isinstance(operand, Constant) and isinstance(operand.value, (int, float)) \
                    and not isinstance(operand.value, bool):
                return Constant(-operand.value)
            return UnaryMinus(operand)
        if isinstance(node.op, ast.UAdd):
            return operand
        if isinstance(node.op, ast.Not):
            return Not(operand)
        raise self.error(f"unsupported unary operator {type(node.op).__name__}")

    def visit_Compare(self, node: ast.Compare) -> Node:
        if len(node.ops) != 1:
            raise self.error("chained comparisons are not supported; write two constraints")
        op_type = type(node.ops[0])
        left = self.convert(node.left)
        right = self.convert(node.comparators[0])
        if op_type in (ast.In, ast.NotIn):
            raise self.error("'in' is only valid in generator clauses")
        op = _CMPOPS.get(op_type)
        if op is None:
            raise self.error(f"unsupported comparison {op_type.__name__}")
        return Compare(op, left, right)

    def visit_BoolOp(self, node: ast.BoolOp) -> Node:
        op = "and" if isinstance(node.op, ast.And) else "or"
        return Logical(op, tuple(self.convert(v) for v in node.values))

    # -------------------------------------------------------------------------
    # Access and calls
    # -------------------------------------------------------------------------

    def visit_Subscript(self, node: ast.Subscript) -> Node:
        container = self.convert(node.value)
        key = node.slice
        if isinstance(key, ast.Slice):
            raise self.error("slices are not supported")
        return Access(container, self.convert(key))

    def visit_Attribute(self, node: ast.Attribute) -> Node:
        return Access(self.convert(node.value), Constant(node.attr))

    def visit_Call(self, node: ast.Call) -> Node:
        if not isinstance(node.func, ast.Name):
            raise self.error("only named calls like x(i) or sum(...) are supported")
        if node.keywords:
            raise self.error(f"keyword arguments are not supported in {node.func.id}()")
        name = node.func.id

        if name == "sum":
            return self._sum(node)
        if name == "range":
            return self._range(node)

        indices = tuple(self.convert(arg) for arg in node.args)
        if any(index is WILDCARD for index in indices):
            return WildcardIndex(name, indices)
        return Index(name, indices)

    def _sum(self, node: ast.Call) -> Node:
        if len(node.args) != 1:
            raise self.error("sum() takes exactly one argument")
        argument = node.args[0]
        if isinstance(argument, ast.GeneratorExp):
            clauses: List[Clause] = []
            for comprehension in argument.generators:
                if getattr(comprehension, "is_async", 0):
                    raise self.error("async comprehensions are not supported")
                if not isinstance(comprehension.target, ast.Name):
                    raise self.error("generator targets must be single names")
                clauses.append(
                    Generator(comprehension.target.id, self.convert(comprehension.iter))
                )
                clauses.extend(Filter(self.convert(cond)) for cond in comprehension.ifs)
            return Sum(tuple(clauses), self.convert(argument.elt))
        return Sum((), self.convert(argument))

    def _range(self, node: ast.Call) -> Node:
        args = [self.convert(a) for a in node.args]
        if len(args) == 1:
            return Range(Constant(0), args[0])
        if len(args) == 2:
            return Range(args[0], args[1])
        if len(args) == 3:
            return Range(args[0], args[1], args[2])
        raise self.error("range() takes 1 to 3 arguments")

    def visit_GeneratorExp(self, node: ast.GeneratorExp) -> Node:
        raise self.error("generator expressions are only valid inside sum()")

    # -------------------------------------------------------------------------
    # Clauses
    # -------------------------------------------------------------------------

    def parse_clause(self) -> Clause:
        body = self._tree().body
        if (
            isinstance(body, ast.Compare)
            and len(body.ops) == 1
            and isinstance(body.ops[0], ast.In)
            and isinstance(body.left, ast.Name)
        ):
            return Generator(body.left.id, self.convert(body.comparators[0]))
        return Filter(self.convert(body))


def parse_expression(text: str) -> Node:
    """
    Parse Python-syntax text into an expression node.

    Raises:
        ExpressionSyntaxError: text is not valid or uses unsupported syntax
    """
    if not isinstance(text, str):
        raise TypeError(f"Expected expression text, got {type(text).__name__}")
    return ExpressionParser(text).parse()


def parse_clause(text: str) -> Clause:
    """
    Parse one clause: "i in domain" is a Generator, anything else a Filter.
    """
    return ExpressionParser(text).parse_clause()


def parse_clauses(texts: Sequence[str]) -> Tuple[Clause, ...]:
    return tuple(parse_clause(t) for t in texts)
