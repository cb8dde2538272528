"""
Linear constraints.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..compiler.polynomial import Polynomial, add, scale, split_constant
from ..errors import UnsupportedOperatorError
from ..expr.nodes import CONSTRAINT_OPS, UNBOUNDED, normalize_comparison

RightHandSide = Union[Polynomial, Any]  # Polynomial or UNBOUNDED


class ConstraintOperator(str, Enum):
    EQ = "=="
    LE = "<="
    GE = ">="

    @classmethod
    def parse(cls, op: Any) -> "ConstraintOperator":
        """Accepts '==', '=', '<=', '≤', '>=', '≥'. Strict comparators are rejected."""
        if isinstance(op, cls):
            return op
        try:
            return cls(normalize_comparison(str(op)))
        except ValueError:
            raise UnsupportedOperatorError(str(op), CONSTRAINT_OPS, "constraint") from None

    @property
    def lp_symbol(self) -> str:
        return "=" if self is ConstraintOperator.EQ else self.value


@dataclass(frozen=True)
class Constraint:
    """
    left (operator) right.

    right is a Polynomial or UNBOUNDED, meaning "no bound". An unbounded
    equality is rejected at construction.
    """

    left: Polynomial
    operator: ConstraintOperator
    right: RightHandSide
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "operator", ConstraintOperator.parse(self.operator))
        if isinstance(self.right, (int, float)):
            object.__setattr__(self, "right", Polynomial.constant(self.right))
        if not isinstance(self.left, Polynomial):
            raise TypeError(f"Constraint left side must be a Polynomial, got {self.left!r}")
        if self.right is UNBOUNDED:
            if self.operator is ConstraintOperator.EQ:
                raise UnsupportedOperatorError(
                    "==", ("<=", ">="), "constraint with an unbounded right-hand side"
                )
        elif not isinstance(self.right, Polynomial):
            raise TypeError(
                f"Constraint right side must be a Polynomial or UNBOUNDED, got {self.right!r}"
            )

    @property
    def is_unbounded(self) -> bool:
        return self.right is UNBOUNDED

    def normalized(self) -> Tuple[Polynomial, Any]:
        """
        Variables on the left, constants on the right.

        Returns:
            (linear polynomial without constant term, rhs number or UNBOUNDED)
        """
        lhs, lhs_constant = split_constant(self.left)
        if self.right is UNBOUNDED:
            return lhs, UNBOUNDED
        rhs_vars, rhs_constant = split_constant(self.right)
        return add(lhs, scale(rhs_vars, -1)), rhs_constant - lhs_constant

    def variables(self) -> Tuple[str, ...]:
        lhs, _ = self.normalized()
        return lhs.variables()

    def is_satisfied_by(self, values: Mapping[str, float], tolerance: float = 1e-6) -> bool:
        lhs, rhs = self.normalized()
        if rhs is UNBOUNDED:
            return True
        activity = lhs.evaluate(values)
        if self.operator is ConstraintOperator.LE:
            return activity <= rhs + tolerance
        if self.operator is ConstraintOperator.GE:
            return activity >= rhs - tolerance
        return abs(activity - rhs) <= tolerance

    def __str__(self) -> str:
        right = "inf" if self.right is UNBOUNDED else str(self.right)
        return f"{self.left} {self.operator.value} {right}"

    def to_dict(self) -> Dict[str, Any]:
        lhs, rhs = self.normalized()
        return {
            "name": self.name,
            "description": self.description,
            "terms": dict(lhs.linear_terms()),
            "operator": self.operator.value,
            "rhs": None if rhs is UNBOUNDED else rhs,
        }
