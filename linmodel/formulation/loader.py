"""
Build Models from structured documents (dict, JSON, YAML).
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Union

import yaml
from pydantic import ValidationError

from ..errors import ModelSpecError
from ..expr.parser import parse_clauses, parse_expression
from ..model.operations import (
    DeclareConstraints,
    DeclareFamily,
    SetObjective,
    define,
)
from ..model.problem import Model
from .schema import ModelSpec

logger = logging.getLogger(__name__)

_INFINITE = ("inf", "infinity")


def _bound(value: Any) -> Any:
    if isinstance(value, str):
        if value.strip().lstrip("+-").lower() in _INFINITE:
            return None
        return parse_expression(value)
    return value


def to_operations(spec: ModelSpec) -> List[Any]:
    """Translate a validated document into model operations."""
    operations: List[Any] = []
    for variable in spec.variables:
        operations.append(
            DeclareFamily(
                name=variable.name,
                clauses=parse_clauses(variable.over),
                type=variable.type,
                min=_bound(variable.min),
                max=_bound(variable.max),
                name_template=variable.name_template,
                description=variable.description,
            )
        )
    for constraint in spec.constraints:
        operations.append(
            DeclareConstraints(
                expr=parse_expression(constraint.expr),
                clauses=parse_clauses(constraint.over),
                description=constraint.description,
            )
        )
    if spec.objective is not None:
        operations.append(
            SetObjective(
                expr=parse_expression(spec.objective.expr),
                direction=spec.objective.direction,
            )
        )
    return operations


def parse_spec(data: Mapping[str, Any]) -> ModelSpec:
    """
    Validate a model document.

    Raises:
        ModelSpecError: document does not match the schema
    """
    if not isinstance(data, Mapping):
        raise ModelSpecError(f"Model document must be a mapping, got {type(data).__name__}")
    try:
        return ModelSpec.model_validate(dict(data))
    except ValidationError as e:
        raise ModelSpecError(f"Invalid model document:\n{e}") from e


def from_structured(data: Mapping[str, Any]) -> Model:
    """
    Build a Model from a structured document.

    Example:
        >>> model = from_structured({
        ...     "variables": [{"name": "x", "min": 0, "max": 10}],
        ...     "objective": {"expr": "x", "direction": "minimize"},
        ... })
    """
    spec = parse_spec(data)
    return define(to_operations(spec), name=spec.name, parameters=spec.parameters)


def read_document(path: Union[str, Path]) -> Mapping[str, Any]:
    """Read a JSON or YAML model document."""
    path = Path(path)
    if not path.exists():
        raise ModelSpecError(f"Model file not found: {path}")

    text = path.read_text()
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            raise ModelSpecError(
                f"Unsupported model file type '{suffix}' (use .json, .yaml or .yml)"
            )
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ModelSpecError(f"Cannot read {path}: {e}") from e

    logger.debug(f"Loaded model document {path}")
    return data if data is not None else {}


def load_model_file(path: Union[str, Path]) -> Model:
    """Build a Model from a JSON or YAML file."""
    return from_structured(read_document(path))
