"""
Expression trees.

- nodes.py: AST node types, WILDCARD and UNBOUNDED markers
- builder.py: operator-overloading front-end (var, family, sym, over, total)
- parser.py: Python-syntax text front-end (parse_expression, parse_clauses)
"""

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
from .builder import (
    FamilyRef,
    Term,
    _,
    const,
    family,
    inf,
    irange,
    over,
    param,
    span,
    sym,
    to_node,
    total,
    var,
    where,
)
from .parser import ExpressionParser, parse_clause, parse_clauses, parse_expression

__all__ = [
    # Nodes
    "Node",
    "Constant",
    "Ref",
    "Index",
    "WildcardIndex",
    "BinOp",
    "UnaryMinus",
    "Generator",
    "Filter",
    "Clause",
    "Sum",
    "Access",
    "Compare",
    "Range",
    "Collection",
    "Logical",
    "Not",
    "WILDCARD",
    "UNBOUNDED",
    # Builder
    "Term",
    "FamilyRef",
    "to_node",
    "var",
    "family",
    "sym",
    "param",
    "const",
    "over",
    "where",
    "irange",
    "span",
    "total",
    "_",
    "inf",
    # Parser
    "ExpressionParser",
    "parse_expression",
    "parse_clause",
    "parse_clauses",
]
