"""
CPLEX LP format serializer (the format read by HiGHS).

Layout:
    Minimize | Maximize
      obj: <terms>
    Subject To
      <row>: <terms> <op> <rhs>
    Bounds
      <lo> <= <name> <= <hi> | <name> >= <lo> | -inf <= <name> <= <hi> | <name> free
    General
      <integer and binary names>
    End

Serialization is deterministic: the same Model always yields the same bytes.
"""

import logging
import math
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..compiler.polynomial import Polynomial, split_constant
from ..expr.nodes import UNBOUNDED
from ..model.constraint import Constraint, ConstraintOperator
from ..model.problem import Direction, Model
from ..model.variables import MAX_NAME_LENGTH, VariableDefinition, sanitize_name

logger = logging.getLogger(__name__)

# HiGHS treats magnitudes >= 1e20 as infinite; 1e30 is the usual convention
LP_INFINITY = 1e30
OBJECTIVE_NAME = "obj"


def format_number(value) -> str:
    """Render a coefficient or bound: integers plainly, floats with %.15g."""
    if value is UNBOUNDED:
        return format_number(LP_INFINITY)
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int):
        return str(value)
    value = float(value)
    if math.isinf(value):
        return format_number(LP_INFINITY if value > 0 else -LP_INFINITY)
    if value == 0:
        return "0"
    return f"{value:.15g}"


def format_terms(terms: Iterable[Tuple[Optional[str], float]]) -> str:
    """
    Sign-folded linear terms: '2 x + 1 y - 3'. A None name is a constant.

    Returns '0' when there are no terms.
    """
    parts: List[str] = []
    for name, coefficient in terms:
        if coefficient == 0:
            continue
        magnitude = format_number(abs(coefficient))
        body = magnitude if name is None else f"{magnitude} {name}"
        negative = coefficient < 0
        if not parts:
            parts.append(f"-{body}" if negative else body)
        else:
            parts.append(f"- {body}" if negative else f"+ {body}")
    return " ".join(parts) if parts else "0"


def _polynomial_terms(polynomial: Polynomial) -> List[Tuple[Optional[str], float]]:
    linear, constant = split_constant(polynomial)
    terms: List[Tuple[Optional[str], float]] = [
        (sanitize_name(name), coefficient) for name, coefficient in linear.linear_terms()
    ]
    if constant:
        terms.append((None, constant))
    return terms


def _unused_name(base: str, cid: str, used: set) -> str:
    name = base
    attempt = 0
    while name in used:
        suffix = f"_{cid}" if attempt == 0 else f"_{cid}_{attempt}"
        name = base[: MAX_NAME_LENGTH - len(suffix)] + suffix
        attempt += 1
    return name


def row_names(model: Model) -> Dict[str, str]:
    """
    LP row name for every constraint id.

    Uses the sanitized constraint name, falling back to the id; repeated
    names get the id appended, then a counter until the name is unused.
    """
    used = {OBJECTIVE_NAME}
    names: Dict[str, str] = {}
    for cid, constraint in model.constraints.items():
        base = sanitize_name(constraint.name) if constraint.name else cid
        name = _unused_name(base, cid, used)
        used.add(name)
        names[cid] = name
    return names


def format_rhs(constraint: Constraint, rhs) -> str:
    if rhs is UNBOUNDED:
        if constraint.operator is ConstraintOperator.GE:
            return format_number(-LP_INFINITY)
        return format_number(LP_INFINITY)
    return format_number(rhs)


def format_constraint(row: str, constraint: Constraint) -> str:
    lhs, rhs = constraint.normalized()
    if lhs.is_zero():
        logger.warning(f"Constraint '{row}' has no variables: {constraint}")
    terms = format_terms(
        (sanitize_name(name), coefficient) for name, coefficient in lhs.linear_terms()
    )
    return f"  {row}: {terms} {constraint.operator.lp_symbol} {format_rhs(constraint, rhs)}"


def format_bound(variable: VariableDefinition) -> str:
    name = sanitize_name(variable.name)
    lower, upper = variable.min, variable.max
    if lower is None and upper is None:
        return f"  {name} free"
    if lower is not None and upper is not None:
        return f"  {format_number(lower)} <= {name} <= {format_number(upper)}"
    if lower is not None:
        return f"  {name} >= {format_number(lower)}"
    # the LP default lower bound is 0, so an upper-only bound spells out -inf
    return f"  -inf <= {name} <= {format_number(upper)}"


def to_lp_lines(model: Model) -> List[str]:
    direction = model.direction or Direction.MINIMIZE
    lines = [direction.lp_keyword]
    lines.append(f"  {OBJECTIVE_NAME}: {format_terms(_polynomial_terms(model.objective))}")

    lines.append("Subject To")
    names = row_names(model)
    for cid, constraint in model.constraints.items():
        lines.append(format_constraint(names[cid], constraint))

    lines.append("Bounds")
    for variable in model.variables.values():
        lines.append(format_bound(variable))

    lines.append("General")
    for variable in model.variables.values():
        if variable.is_integral:
            lines.append(f"  {sanitize_name(variable.name)}")

    lines.append("End")
    return lines


def to_lp_string(model: Model) -> str:
    """LP text of model."""
    return "\n".join(to_lp_lines(model)) + "\n"


def serialize(model: Model) -> bytes:
    """
    Serialize model to LP bytes.

    Returns:
        UTF-8 encoded LP text; identical models give identical bytes
    """
    return to_lp_string(model).encode("utf-8")


def write_lp(model: Model, path: Union[str, Path]) -> Path:
    """Write the LP file for model to path."""
    path = Path(path)
    path.write_bytes(serialize(model))
    logger.debug(f"Wrote LP model to {path}")
    return path
