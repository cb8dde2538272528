"""
Expression tree for declarative linear models.

Every node is an immutable dataclass. Front-ends (the fluent builder and the
text parser) produce these nodes; the compiler consumes them without knowing
which front-end built them.

Node variants:
- Constant: literal number, string, sequence or UNBOUNDED
- Ref: bare symbol (scalar variable, family, binding or parameter)
- Index / WildcardIndex: variable family reference x(i, j) / x(i, _)
- BinOp / UnaryMinus: arithmetic
- Sum: aggregation over generator clauses
- Access: parameter container lookup cost[i]
- Compare: constraint or filter comparison
- Range / Collection / Logical / Not: constant helpers for domains and filters
"""

from dataclasses import dataclass
from typing import Any, Tuple, Union

from ..errors import UnsupportedOperatorError


class _Wildcard:
    """Index placeholder meaning 'any value at this position'."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "_"

    def __reduce__(self):
        return "WILDCARD"


class _Unbounded:
    """Sentinel for 'no bound' on a constraint right-hand side."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "inf"

    def __reduce__(self):
        return "UNBOUNDED"


WILDCARD = _Wildcard()
UNBOUNDED = _Unbounded()

ARITHMETIC_OPS = ("+", "-", "*", "/", "//", "%", "**")
LINEAR_OPS = ("+", "-", "*", "/")
COMPARISON_OPS = ("==", "!=", "<", "<=", ">", ">=")
CONSTRAINT_OPS = ("==", "<=", ">=")
LOGICAL_OPS = ("and", "or")

_COMPARISON_ALIASES = {
    "=": "==",
    "≤": "<=",
    "≥": ">=",
    "=<": "<=",
    "=>": ">=",
    "≠": "!=",
}

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "//": 2, "%": 2, "**": 3}


def normalize_comparison(op: str) -> str:
    """Map comparator spellings ('=', '≤', ...) to their canonical form."""
    return _COMPARISON_ALIASES.get(op, op)


class Node:
    """Base class of all expression nodes."""

    __slots__ = ()


def _render(node: Any) -> str:
    if node is WILDCARD:
        return "_"
    if isinstance(node, Node):
        return str(node)
    return repr(node)


def _render_operand(node: Any, parent_precedence: int, right: bool = False) -> str:
    text = _render(node)
    if isinstance(node, BinOp):
        precedence = _PRECEDENCE[node.op]
        if precedence < parent_precedence or (right and precedence == parent_precedence):
            return f"({text})"
    elif isinstance(node, (Compare, Logical)):
        return f"({text})"
    return text


@dataclass(frozen=True)
class Constant(Node):
    """Literal value."""

    value: Any

    def __post_init__(self):
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))

    def __str__(self) -> str:
        if self.value is UNBOUNDED:
            return "inf"
        if isinstance(self.value, str):
            return repr(self.value)
        return str(self.value)


@dataclass(frozen=True)
class Ref(Node):
    """Bare symbol reference."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Index(Node):
    """Indexed variable family reference, e.g. x(i, 2)."""

    name: str
    indices: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "indices", tuple(self.indices))

    @property
    def has_wildcard(self) -> bool:
        return any(index is WILDCARD for index in self.indices)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(_render(i) for i in self.indices)})"


@dataclass(frozen=True)
class WildcardIndex(Node):
    """Family reference with wildcard positions, summed implicitly."""

    name: str
    pattern: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "pattern", tuple(self.pattern))

    def __str__(self) -> str:
        return f"{self.name}({', '.join(_render(i) for i in self.pattern)})"


@dataclass(frozen=True)
class BinOp(Node):
    """Binary arithmetic."""

    op: str
    left: Node
    right: Node

    def __post_init__(self):
        if self.op not in ARITHMETIC_OPS:
            raise UnsupportedOperatorError(self.op, ARITHMETIC_OPS, "arithmetic")

    def __str__(self) -> str:
        precedence = _PRECEDENCE[self.op]
        left = _render_operand(self.left, precedence)
        right = _render_operand(self.right, precedence, right=True)
        return f"{left} {self.op} {right}"


@dataclass(frozen=True)
class UnaryMinus(Node):
    """Negation."""

    operand: Node

    def __str__(self) -> str:
        return f"-{_render_operand(self.operand, 3)}"


@dataclass(frozen=True)
class Generator:
    """Generator clause: symbol iterates over the values of domain."""

    symbol: str
    domain: Node

    def __str__(self) -> str:
        return f"for {self.symbol} in {_render(self.domain)}"


@dataclass(frozen=True)
class Filter:
    """Filter clause: prunes bindings for which predicate is false."""

    predicate: Node

    def __str__(self) -> str:
        return f"if {_render(self.predicate)}"


Clause = Union[Generator, Filter]


@dataclass(frozen=True)
class Sum(Node):
    """Aggregation of body over the bindings produced by clauses."""

    clauses: Tuple[Clause, ...]
    body: Node

    def __post_init__(self):
        object.__setattr__(self, "clauses", tuple(self.clauses))

    def __str__(self) -> str:
        if not self.clauses:
            return f"sum({_render(self.body)})"
        clauses = " ".join(str(c) for c in self.clauses)
        return f"sum({_render(self.body)} {clauses})"


@dataclass(frozen=True)
class Access(Node):
    """Container access: container[key]."""

    container: Node
    key: Node

    def __str__(self) -> str:
        key = self.key
        if isinstance(key, Collection):
            inner = ", ".join(_render(i) for i in key.items)
        else:
            inner = _render(key)
        return f"{_render_operand(self.container, 4)}[{inner}]"


@dataclass(frozen=True)
class Compare(Node):
    """Comparison. Only ==, <= and >= may form constraints."""

    op: str
    left: Node
    right: Node

    def __post_init__(self):
        op = normalize_comparison(self.op)
        if op not in COMPARISON_OPS:
            raise UnsupportedOperatorError(self.op, COMPARISON_OPS, "comparison")
        object.__setattr__(self, "op", op)

    def __str__(self) -> str:
        return f"{_render(self.left)} {self.op} {_render(self.right)}"


@dataclass(frozen=True)
class Range(Node):
    """Integer range with Python range() semantics (stop is exclusive)."""

    start: Node
    stop: Node
    step: Node = Constant(1)

    def __str__(self) -> str:
        args = [_render(self.start), _render(self.stop)]
        if self.step != Constant(1):
            args.append(_render(self.step))
        return f"range({', '.join(args)})"


@dataclass(frozen=True)
class Collection(Node):
    """List or tuple literal whose items are expressions."""

    items: Tuple[Node, ...]

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def __str__(self) -> str:
        return f"[{', '.join(_render(i) for i in self.items)}]"


@dataclass(frozen=True)
class Logical(Node):
    """Boolean 'and' / 'or' over filter predicates."""

    op: str
    operands: Tuple[Node, ...]

    def __post_init__(self):
        if self.op not in LOGICAL_OPS:
            raise UnsupportedOperatorError(self.op, LOGICAL_OPS, "logical expression")
        object.__setattr__(self, "operands", tuple(self.operands))

    def __str__(self) -> str:
        return f" {self.op} ".join(_render_operand(o, 0) for o in self.operands)


@dataclass(frozen=True)
class Not(Node):
    """Boolean negation."""

    operand: Node

    def __str__(self) -> str:
        return f"not {_render_operand(self.operand, 0)}"
