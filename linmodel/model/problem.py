"""
Immutable model value.

A Model starts empty. Every operation in linmodel.model.operations returns a
new Model; existing Model values are never modified.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..compiler.context import Context
from ..compiler.polynomial import Polynomial
from ..errors import InvalidDirectionError
from .constraint import Constraint
from .variables import VariableDefinition, VariableFamily


class Direction(str, Enum):
    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"

    @classmethod
    def parse(cls, value: Any) -> "Direction":
        """Accepts exactly 'minimize' or 'maximize' (or a Direction)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidDirectionError(value)

    @property
    def lp_keyword(self) -> str:
        return "Minimize" if self is Direction.MINIMIZE else "Maximize"


def constraint_id(counter: int) -> str:
    """Sequential constraint id: c00000000, c00000001, ..."""
    return f"c{counter:08d}"


def _frozen(mapping: Optional[Mapping]) -> Mapping:
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Model:
    """
    Compiled linear / mixed-integer model.

    Attributes:
        name: Optional model name
        variables: Concrete variable name -> VariableDefinition
        families: Family name -> VariableFamily (scalars are arity-0 families)
        constraints: Constraint id -> Constraint, in creation order
        objective: Objective polynomial (may hold a constant term)
        direction: Direction or None until set_objective is applied
        parameters: External read-only data used while compiling
        variable_counter: Number of variables declared so far
        constraint_counter: Next constraint sequence number
    """

    name: Optional[str] = None
    variables: Mapping[str, VariableDefinition] = field(default_factory=dict)
    families: Mapping[str, VariableFamily] = field(default_factory=dict)
    constraints: Mapping[str, Constraint] = field(default_factory=dict)
    objective: Polynomial = field(default_factory=Polynomial)
    direction: Optional[Direction] = None
    parameters: Mapping[str, Any] = field(default_factory=dict, compare=False)
    variable_counter: int = 0
    constraint_counter: int = 0

    def __post_init__(self):
        for attribute in ("variables", "families", "constraints", "parameters"):
            object.__setattr__(self, attribute, _frozen(getattr(self, attribute)))
        if self.direction is not None:
            object.__setattr__(self, "direction", Direction.parse(self.direction))

    @classmethod
    def new(cls, name: Optional[str] = None, parameters: Optional[Mapping[str, Any]] = None) -> "Model":
        """Empty model bound to the given external parameters."""
        return cls(name=name, parameters=parameters or {})

    def evolve(self, **changes) -> "Model":
        """Copy of this model with the given fields replaced."""
        return replace(self, **changes)

    def context(self, parameters: Optional[Mapping[str, Any]] = None) -> Context:
        """Compilation context with empty bindings."""
        return Context(parameters=self.parameters if parameters is None else parameters)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def n_variables(self) -> int:
        return len(self.variables)

    @property
    def n_constraints(self) -> int:
        return len(self.constraints)

    @property
    def is_mixed_integer(self) -> bool:
        return any(v.is_integral for v in self.variables.values())

    def variable_names(self) -> List[str]:
        return list(self.variables)

    def family(self, name: str) -> Optional[VariableFamily]:
        return self.families.get(name)

    def variable(self, name: str) -> Optional[VariableDefinition]:
        return self.variables.get(name)

    def summary(self) -> Dict[str, Any]:
        counts = {"continuous": 0, "integer": 0, "binary": 0}
        for definition in self.variables.values():
            counts[definition.type.value] += 1
        return {
            "name": self.name,
            "direction": self.direction.value if self.direction else None,
            "n_variables": self.n_variables,
            "n_families": len(self.families),
            "n_constraints": self.n_constraints,
            "variable_types": counts,
            "objective_terms": len(self.objective),
        }

    def __repr__(self) -> str:
        return (
            f"Model(name={self.name!r}, variables={self.n_variables}, "
            f"constraints={self.n_constraints}, direction={self.direction})"
        )
