"""
Model validation utilities.

Validates compiled models for:
- Completeness (direction, variables)
- Consistency (constant-only constraints that can never hold)
- Usage (variables no constraint or objective refers to)
"""

from typing import Any, Dict, Set

from ..expr.nodes import UNBOUNDED
from .constraint import ConstraintOperator
from .problem import Model


def validate_model(model: Model) -> Dict[str, Any]:
    """
    Validate a compiled model before serialization or solving.

    Checks:
    - Objective direction is set
    - At least one variable
    - Constraints without variables are satisfiable
    - Every variable is used somewhere

    Args:
        model: Model to validate

    Returns:
        Dict with:
        - valid: bool
        - errors: List[str] (if any)
        - warnings: List[str] (if any)
        - summary: model counts
    """
    errors = []
    warnings = []

    if model.direction is None:
        errors.append("Model has no objective direction (call set_objective)")

    if not model.variables:
        errors.append("Model must have at least one variable")

    if model.objective.is_zero():
        warnings.append("Objective is zero: any feasible point is optimal")

    used: Set[str] = set(model.objective.variables())
    for cid, constraint in model.constraints.items():
        label = constraint.name or cid
        lhs, rhs = constraint.normalized()
        used.update(lhs.variables())

        if not lhs.is_zero():
            continue
        if rhs is UNBOUNDED:
            warnings.append(f"Constraint {label}: no variables and no bound")
            continue
        holds = (
            (constraint.operator is ConstraintOperator.EQ and rhs == 0)
            or (constraint.operator is ConstraintOperator.LE and 0 <= rhs)
            or (constraint.operator is ConstraintOperator.GE and 0 >= rhs)
        )
        if holds:
            warnings.append(f"Constraint {label}: no variables, always satisfied")
        else:
            errors.append(
                f"Constraint {label}: no variables and never satisfied "
                f"(0 {constraint.operator.value} {rhs})"
            )

    unused = [name for name in model.variables if name not in used]
    if unused:
        preview = ", ".join(unused[:10])
        if len(unused) > 10:
            preview += f", ... ({len(unused) - 10} more)"
        warnings.append(f"{len(unused)} variable(s) unused: {preview}")

    n_vars = model.n_variables
    if n_vars > 100000:
        warnings.append(f"Large model: {n_vars} variables (serialization may be slow)")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "summary": model.summary(),
    }
