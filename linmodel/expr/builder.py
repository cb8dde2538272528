"""
Fluent builder front-end.

Wraps expression nodes in Term objects with Python operator overloading so
models can be written as ordinary Python expressions:

    >>> from linmodel.expr.builder import family, param, sym, over, irange, total, _
    >>> q, i = family("q"), sym("i")
    >>> row = total(q[i, _]) == 1
    >>> str(row.node)
    'sum(q(i, _)) == 1'

Every Term exposes the underlying node as .node; the compiler only ever
sees nodes.
"""

from typing import Any, Union

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

_ = WILDCARD
inf = UNBOUNDED


def to_node(obj: Any) -> Any:
    """Convert a Term, node, literal or WILDCARD to a node (WILDCARD stays)."""
    if isinstance(obj, Term):
        return obj.node
    if isinstance(obj, Node) or obj is WILDCARD:
        return obj
    if isinstance(obj, (list, tuple)):
        return Collection(tuple(to_node(item) for item in obj))
    return Constant(obj)


class Term:
    """Operator-overloading wrapper around an expression node."""

    __slots__ = ("node",)

    def __init__(self, node: Any):
        self.node = to_node(node)

    def __add__(self, other):
        return Term(BinOp("+", self.node, to_node(other)))

    def __radd__(self, other):
        return Term(BinOp("+", to_node(other), self.node))

    def __sub__(self, other):
        return Term(BinOp("-", self.node, to_node(other)))

    def __rsub__(self, other):
        return Term(BinOp("-", to_node(other), self.node))

    def __mul__(self, other):
        return Term(BinOp("*", self.node, to_node(other)))

    def __rmul__(self, other):
        return Term(BinOp("*", to_node(other), self.node))

    def __truediv__(self, other):
        return Term(BinOp("/", self.node, to_node(other)))

    def __rtruediv__(self, other):
        return Term(BinOp("/", to_node(other), self.node))

    def __floordiv__(self, other):
        return Term(BinOp("//", self.node, to_node(other)))

    def __mod__(self, other):
        return Term(BinOp("%", self.node, to_node(other)))

    def __pow__(self, other):
        return Term(BinOp("**", self.node, to_node(other)))

    def __neg__(self):
        return Term(UnaryMinus(self.node))

    def __pos__(self):
        return self

    def __eq__(self, other):
        return Term(Compare("==", self.node, to_node(other)))

    def __ne__(self, other):
        return Term(Compare("!=", self.node, to_node(other)))

    def __le__(self, other):
        return Term(Compare("<=", self.node, to_node(other)))

    def __ge__(self, other):
        return Term(Compare(">=", self.node, to_node(other)))

    def __lt__(self, other):
        return Term(Compare("<", self.node, to_node(other)))

    def __gt__(self, other):
        return Term(Compare(">", self.node, to_node(other)))

    def __and__(self, other):
        return Term(Logical("and", (self.node, to_node(other))))

    def __or__(self, other):
        return Term(Logical("or", (self.node, to_node(other))))

    def __invert__(self):
        return Term(Not(self.node))

    def __getitem__(self, key):
        return Term(Access(self.node, _key_node(key)))

    def __getattr__(self, name):
        if name.startswith("__"):
            raise AttributeError(name)
        return Term(Access(self.node, Constant(name)))

    def __bool__(self):
        raise TypeError(
            "Model expressions have no truth value; use & | ~ instead of and/or/not"
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"Term({self.node})"

    def __str__(self) -> str:
        return str(self.node)


def _key_node(key: Any) -> Any:
    if isinstance(key, tuple):
        return Collection(tuple(to_node(k) for k in key))
    return to_node(key)


class FamilyRef(Term):
    """Variable family handle: family("x")[i, j] builds Index/WildcardIndex."""

    __slots__ = ()

    def __init__(self, name: str):
        super().__init__(Ref(name))

    @property
    def name(self) -> str:
        return self.node.name

    def __getitem__(self, key):
        indices = key if isinstance(key, tuple) else (key,)
        return self(*indices)

    def __call__(self, *indices):
        nodes = tuple(to_node(i) for i in indices)
        if any(n is WILDCARD for n in nodes):
            return Term(WildcardIndex(self.node.name, nodes))
        return Term(Index(self.node.name, nodes))


def var(name: str) -> Term:
    """Scalar variable (or any bare symbol)."""
    return Term(Ref(name))


def family(name: str) -> FamilyRef:
    return FamilyRef(name)


def sym(name: str) -> Term:
    """Generator symbol or parameter."""
    return Term(Ref(name))


param = sym


def const(value: Any) -> Term:
    return Term(Constant(value))


def over(symbol: Union[str, Term], domain: Any) -> Generator:
    """Generator clause: symbol iterates over domain."""
    if isinstance(symbol, Term):
        if not isinstance(symbol.node, Ref):
            raise TypeError(f"Generator symbol must be a bare name, got {symbol}")
        symbol = symbol.node.name
    return Generator(symbol, to_node(domain))


def where(predicate: Any) -> Filter:
    """Filter clause."""
    return Filter(to_node(predicate))


def irange(start: Any, stop: Any, step: Any = 1) -> Term:
    """Inclusive integer range start..stop."""
    stop_node = to_node(stop)
    if isinstance(stop_node, Constant) and isinstance(stop_node.value, int):
        end = Constant(stop_node.value + 1)
    else:
        end = BinOp("+", stop_node, Constant(1))
    return Term(Range(to_node(start), end, to_node(step)))


def span(start: Any, stop: Any, step: Any = 1) -> Term:
    """Half-open integer range, like range()."""
    return Term(Range(to_node(start), to_node(stop), to_node(step)))


def total(body: Any, *clauses: Clause) -> Term:
    """Sum of body over clauses; with no clauses, sums body's wildcards."""
    for clause in clauses:
        if not isinstance(clause, (Generator, Filter)):
            raise TypeError(f"Expected over(...) or where(...) clause, got {clause!r}")
    return Term(Sum(tuple(clauses), to_node(body)))

