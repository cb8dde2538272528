"""
Expression compilation.

- values.py: runtime values (Number, Text, Sequence, Mapping, Unbounded)
- context.py: symbol bindings layered over parameters
- evaluator.py: constant evaluation of expression trees
- generators.py: clause expansion into bindings
- polynomial.py: linear polynomials over variable names
- expression.py: expression tree -> Polynomial / Constraint
"""

from .values import Mapping, Number, Sequence, Text, Unbounded, kind_of, to_number, to_value
from .context import Context
from .evaluator import evaluate, evaluate_number, is_true, lookup
from .generators import BindingExpansion, enumerate_domain, expand, generator_symbols
from .polynomial import Polynomial
from .expression import compile_constraint, compile_expression

__all__ = [
    "Number",
    "Text",
    "Sequence",
    "Mapping",
    "Unbounded",
    "kind_of",
    "to_value",
    "to_number",
    "Context",
    "evaluate",
    "evaluate_number",
    "is_true",
    "lookup",
    "BindingExpansion",
    "enumerate_domain",
    "expand",
    "generator_symbols",
    "Polynomial",
    "compile_expression",
    "compile_constraint",
]
