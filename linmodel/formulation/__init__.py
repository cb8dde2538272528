"""
Structured model documents.

- schema.py: Pydantic schema (ModelSpec, VariableSpec, ConstraintSpec, ObjectiveSpec)
- loader.py: from_structured, load_model_file (JSON/YAML)
"""

from .schema import ConstraintSpec, ModelSpec, ObjectiveSpec, VariableSpec
from .loader import from_structured, load_model_file, parse_spec, to_operations

__all__ = [
    "ModelSpec",
    "VariableSpec",
    "ConstraintSpec",
    "ObjectiveSpec",
    "from_structured",
    "load_model_file",
    "parse_spec",
    "to_operations",
]
