"""
linmodel - linear / mixed-integer model compiler

Build models from expression trees, compile them to linear polynomials,
write CPLEX LP text and solve with HiGHS:

    from linmodel import _, family, over, irange, total, sym
    from linmodel import Model, declare_family, declare_constraints, set_objective, solve

    i, j = sym("i"), sym("j")
    q = family("q")

    model = Model.new("assign")
    model = declare_family(model, "q", [over("i", irange(1, 3)), over("j", irange(1, 3))],
                           type="binary")
    model = declare_constraints(model, [over("i", irange(1, 3))], total(q[i, _]) == 1)
    model = set_objective(model, total(q[i, j], over("i", irange(1, 3)),
                                       over("j", irange(1, 3))), "maximize")
    solution = solve(model)
"""

__version__ = "0.1.0"

from .errors import ModelError
from .expr import (
    UNBOUNDED,
    WILDCARD,
    _,
    const,
    family,
    inf,
    irange,
    over,
    param,
    parse_clauses,
    parse_expression,
    span,
    sym,
    total,
    var,
    where,
)
from .compiler import Context, Polynomial, compile_constraint, compile_expression
from .model import (
    Constraint,
    Direction,
    Model,
    VariableType,
    add_to_objective,
    declare_constraints,
    declare_family,
    declare_variable,
    define,
    modify,
    set_objective,
    to_standard_form,
    validate_model,
)
from .io import serialize, to_lp_string, write_lp
from .solvers import Solution, get_backend, list_backends, solve
from .formulation import from_structured, load_model_file

__all__ = [
    "ModelError",
    # Expressions
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
    "WILDCARD",
    "UNBOUNDED",
    "parse_expression",
    "parse_clauses",
    # Compiler
    "Context",
    "Polynomial",
    "compile_expression",
    "compile_constraint",
    # Model
    "Model",
    "Direction",
    "VariableType",
    "Constraint",
    "declare_family",
    "declare_variable",
    "declare_constraints",
    "set_objective",
    "add_to_objective",
    "modify",
    "define",
    "validate_model",
    "to_standard_form",
    # Output and solving
    "serialize",
    "to_lp_string",
    "write_lp",
    "solve",
    "Solution",
    "get_backend",
    "list_backends",
    # Documents
    "from_structured",
    "load_model_file",
]
