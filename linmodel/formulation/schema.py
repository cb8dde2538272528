"""
Structured model document schema using Pydantic.

A model document (JSON or YAML) lists parameters, variable families,
constraint templates and the objective. Expressions and clauses are written
in the Python-syntax text grammar of linmodel.expr.parser.

Example (YAML):
    name: assignment
    parameters:
      workers: [1, 2]
      cost: {1: {1: 4, 2: 2}, 2: {1: 3, 2: 5}}
    variables:
      - name: q
        over: ["i in workers", "j in range(1, 3)"]
        type: binary
    constraints:
      - over: ["i in workers"]
        expr: "sum(q(i, _)) == 1"
        description: "worker {i}"
    objective:
      expr: "sum(cost[i][j] * q(i, j) for i in workers for j in range(1, 3))"
      direction: minimize
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

BoundValue = Optional[Union[int, float, str]]


class VariableSpec(BaseModel):
    """Variable family declaration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Family name (e.g., 'x', 'ship')")
    over: List[str] = Field(
        default_factory=list,
        description="Clauses, e.g. 'i in range(1, 4)' or a filter 'i != j'",
    )
    type: Literal["continuous", "integer", "binary"] = Field(
        default="continuous",
        description="Variable type",
    )
    min: BoundValue = Field(None, description="Lower bound: number or expression")
    max: BoundValue = Field(None, description="Upper bound: number or expression")
    name_template: Optional[str] = Field(
        None, description="Concrete name template, e.g. 'ship_{i}_{j}'"
    )
    description: Optional[str] = Field(None, description="Description template")

    @field_validator("name")
    @classmethod
    def name_is_identifier(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"family name must be an identifier, got {v!r}")
        return v


class ConstraintSpec(BaseModel):
    """Constraint template, instantiated once per clause binding."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    expr: str = Field(..., description="Comparison, e.g. 'sum(q(i, _)) == 1'")
    over: List[str] = Field(default_factory=list, description="Clauses")
    description: Optional[str] = Field(
        None, description="Name/description template, e.g. 'row {i}'"
    )


class ObjectiveSpec(BaseModel):
    """Objective expression and direction."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    expr: str = Field(..., description="Linear expression")
    direction: Literal["minimize", "maximize"] = Field(
        default="minimize", description="Optimization direction"
    )


class ModelSpec(BaseModel):
    """Complete model document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Optional[str] = Field(None, description="Model name")
    parameters: Dict[str, Any] = Field(
        default_factory=dict, description="External data available to expressions"
    )
    variables: List[VariableSpec] = Field(default_factory=list)
    constraints: List[ConstraintSpec] = Field(default_factory=list)
    objective: Optional[ObjectiveSpec] = None

    @property
    def n_families(self) -> int:
        return len(self.variables)

    @property
    def n_constraint_templates(self) -> int:
        return len(self.constraints)
