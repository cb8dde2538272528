"""
Model registry and operations.

- variables.py: VariableDefinition, VariableFamily, name sanitization
- constraint.py: Constraint, ConstraintOperator
- problem.py: immutable Model, Direction
- operations.py: declare_family, declare_constraints, set_objective, modify
- validation.py: validate_model
- matrix.py: StandardForm (sparse matrix view)
"""

from .variables import VariableDefinition, VariableFamily, VariableType, sanitize_name
from .constraint import Constraint, ConstraintOperator
from .problem import Direction, Model
from .operations import (
    AddToObjective,
    DeclareConstraints,
    DeclareFamily,
    SetObjective,
    add_to_objective,
    declare_constraints,
    declare_family,
    declare_variable,
    define,
    modify,
    set_objective,
)
from .validation import validate_model
from .matrix import StandardForm, to_standard_form

__all__ = [
    "VariableType",
    "VariableDefinition",
    "VariableFamily",
    "sanitize_name",
    "Constraint",
    "ConstraintOperator",
    "Direction",
    "Model",
    "declare_family",
    "declare_variable",
    "declare_constraints",
    "set_objective",
    "add_to_objective",
    "DeclareFamily",
    "DeclareConstraints",
    "SetObjective",
    "AddToObjective",
    "modify",
    "define",
    "validate_model",
    "StandardForm",
    "to_standard_form",
]
