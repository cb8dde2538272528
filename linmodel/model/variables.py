"""
Variable definitions, variable families and identifier sanitization.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from ..compiler.context import Context
from ..compiler.polynomial import Polynomial
from ..errors import (
    DuplicateVariableError,
    EvaluationError,
    IndexArityError,
    InvalidBoundError,
    UndefinedSymbolError,
)
from ..expr.nodes import UNBOUNDED, WILDCARD

# Characters accepted in LP-format identifiers
_DISALLOWED = re.compile(r"[^A-Za-z0-9_!\"#$%&(),.;?@'~]")
_EXPONENT_LIKE = re.compile(r"^[eE][0-9]")
MAX_NAME_LENGTH = 255


class VariableType(str, Enum):
    """Variable domain."""

    CONTINUOUS = "continuous"
    INTEGER = "integer"
    BINARY = "binary"

    @classmethod
    def parse(cls, value: Any) -> "VariableType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Invalid variable type {value!r}: "
                f"must be 'continuous', 'integer' or 'binary'"
            ) from None

    @property
    def is_integral(self) -> bool:
        return self is not VariableType.CONTINUOUS


def sanitize_name(name: Any) -> str:
    """
    Make name a valid LP identifier.

    Replaces characters outside the accepted set with '_', trims stray
    underscores, prefixes names that start with a digit, a period or an
    exponent-like 'e1', and truncates to 255 characters. Applying it twice
    gives the same result as applying it once.
    """
    text = _DISALLOWED.sub("_", str(name)).strip("_")
    if not text:
        return "var"
    if text[0].isdigit() or text[0] == "." or _EXPONENT_LIKE.match(text):
        text = "var_" + text
    return text[:MAX_NAME_LENGTH].rstrip("_")


def _index_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def default_name(family: str, key: Tuple[Any, ...]) -> str:
    """Concrete name of a family member: x, x(1), q(1,2)."""
    if not key:
        return family
    return f"{family}({','.join(_index_text(v) for v in key)})"


def format_template(template: str, context: Context, what: str = "template") -> str:
    """
    Interpolate bound values into template by name, e.g. "Row {i}".

    Raises:
        UndefinedSymbolError: the template names an unknown symbol
        EvaluationError: the template is malformed
    """
    try:
        return template.format_map(context.format_fields())
    except KeyError as e:
        raise UndefinedSymbolError(
            str(e.args[0]),
            bindings=list(context.bindings),
            parameters=list(context.parameters),
        ) from None
    except (IndexError, ValueError, AttributeError) as e:
        raise EvaluationError(f"Invalid {what} {template!r}: {e}") from None


def _clean_bound(value: Any, which: str) -> Optional[float]:
    if value is None or value is UNBOUNDED:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if hasattr(value, "item"):
            value = value.item()
        else:
            raise InvalidBoundError(f"{which} bound must be a number, got {value!r}")
    if isinstance(value, float):
        if math.isnan(value):
            raise InvalidBoundError(f"{which} bound must not be NaN")
        if math.isinf(value):
            if (which == "lower") == (value < 0):
                return None
            raise InvalidBoundError(f"{which} bound cannot be {value}")
    return value


@dataclass(frozen=True)
class VariableDefinition:
    """
    Concrete decision variable.

    Use create() rather than the constructor: it applies the binary default
    bounds and validates integer bounds.
    """

    name: str
    type: VariableType = VariableType.CONTINUOUS
    min: Optional[float] = None
    max: Optional[float] = None
    description: Optional[str] = None
    family: Optional[str] = None
    index: Tuple[Any, ...] = ()

    @classmethod
    def create(
        cls,
        name: str,
        type: Any = VariableType.CONTINUOUS,
        min: Any = None,
        max: Any = None,
        description: Optional[str] = None,
        family: Optional[str] = None,
        index: Tuple[Any, ...] = (),
    ) -> "VariableDefinition":
        """
        Build a validated definition.

        Binary variables default to [0, 1]; an explicit min or max overrides
        the corresponding default. Integer and binary bounds must be whole
        numbers.

        Raises:
            InvalidBoundError: fractional integer bound or min > max
        """
        var_type = VariableType.parse(type)
        lower = _clean_bound(min, "lower")
        upper = _clean_bound(max, "upper")

        if var_type is VariableType.BINARY:
            if lower is None:
                lower = 0
            if upper is None:
                upper = 1

        if var_type.is_integral:
            for label, bound in (("min", lower), ("max", upper)):
                if bound is not None and float(bound) != math.floor(bound):
                    raise InvalidBoundError(
                        f"Variable '{name}' is {var_type.value} but its {label} "
                        f"bound {bound} is fractional"
                    )
            lower = int(lower) if lower is not None else None
            upper = int(upper) if upper is not None else None

        if lower is not None and upper is not None and lower > upper:
            raise InvalidBoundError(
                f"Variable '{name}': lower bound ({lower}) > upper bound ({upper})"
            )

        return cls(
            name=name,
            type=var_type,
            min=lower,
            max=upper,
            description=description,
            family=family,
            index=tuple(index),
        )

    @property
    def bounds(self) -> Tuple[Optional[float], Optional[float]]:
        return (self.min, self.max)

    @property
    def is_free(self) -> bool:
        return self.min is None and self.max is None

    @property
    def is_integral(self) -> bool:
        return self.type.is_integral

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "min": self.min,
            "max": self.max,
            "description": self.description,
            "family": self.family,
            "index": list(self.index),
        }


@dataclass(frozen=True)
class VariableFamily:
    """
    Indexed group of variables.

    members maps index tuples (all of length arity) to the unit polynomial
    of the member variable. Scalar variables are families of arity 0 with
    the single key ().
    """

    name: str
    arity: int
    symbols: Tuple[str, ...] = ()
    members: Mapping[Tuple[Any, ...], Polynomial] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.members, MappingProxyType):
            object.__setattr__(self, "members", MappingProxyType(dict(self.members)))
        for key in self.members:
            if len(key) != self.arity:
                raise IndexArityError(self.name, self.arity, len(key))

    def with_members(self, new_members: Mapping[Tuple[Any, ...], Polynomial]) -> "VariableFamily":
        """Return a family extended with new_members."""
        members = dict(self.members)
        for key, polynomial in new_members.items():
            if len(key) != self.arity:
                raise IndexArityError(self.name, self.arity, len(key))
            if key in members:
                raise DuplicateVariableError(default_name(self.name, key), family=self.name)
            members[key] = polynomial
        return VariableFamily(self.name, self.arity, self.symbols, MappingProxyType(members))

    def get(self, key: Tuple[Any, ...]) -> Optional[Polynomial]:
        try:
            return self.members.get(tuple(key))
        except TypeError:
            return None

    def match(self, pattern: Tuple[Any, ...]) -> Iterator[Tuple[Tuple[Any, ...], Polynomial]]:
        """Members whose key equals pattern at every non-wildcard position."""
        if len(pattern) != self.arity:
            raise IndexArityError(self.name, self.arity, len(pattern))
        concrete = [(i, p) for i, p in enumerate(pattern) if p is not WILDCARD]
        for key, polynomial in self.members.items():
            if all(key[i] == p for i, p in concrete):
                yield key, polynomial

    def keys(self):
        return self.members.keys()

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, key) -> bool:
        return self.get(key) is not None
