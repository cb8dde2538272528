"""
Tagged value type produced by the constant evaluator.

Value = Number | Text | Sequence | Mapping | Unbounded

Sequence and Mapping wrap the external container as-is; elements are
converted lazily when accessed or enumerated.
"""

import math
import numbers
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from typing import Any, Iterator, Union

from ..errors import EvaluationError
from ..expr.nodes import UNBOUNDED


@dataclass(frozen=True)
class Number:
    value: Union[int, float]

    @property
    def raw(self):
        return self.value


@dataclass(frozen=True)
class Text:
    value: str

    @property
    def raw(self):
        return self.value


@dataclass(frozen=True)
class Sequence:
    items: Any

    @property
    def raw(self):
        return self.items

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)


@dataclass(frozen=True, eq=False)
class Mapping:
    entries: Any

    @property
    def raw(self):
        return self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.entries)

    def __eq__(self, other):
        if not isinstance(other, Mapping):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    __hash__ = None


@dataclass(frozen=True)
class Unbounded:
    negative: bool = False

    @property
    def raw(self):
        return UNBOUNDED

    def negated(self) -> "Unbounded":
        return Unbounded(not self.negative)


Value = Union[Number, Text, Sequence, Mapping, Unbounded]


def kind_of(value: Value) -> str:
    """Human-readable name of a value's variant."""
    if isinstance(value, Number):
        return "number"
    if isinstance(value, Text):
        return "text"
    if isinstance(value, Sequence):
        return "sequence"
    if isinstance(value, Mapping):
        return "mapping"
    return "unbounded"


def to_value(obj: Any) -> Value:
    """
    Convert external Python data to a Value.

    Accepts ints, floats and numpy scalars, strings, lists, tuples, ranges,
    numpy arrays, sets (enumerated in sorted order), mappings, UNBOUNDED and
    float infinity.

    Raises:
        EvaluationError: obj has no Value representation
    """
    if obj is UNBOUNDED:
        return Unbounded()
    if isinstance(obj, (Number, Text, Sequence, Mapping, Unbounded)):
        return obj
    if isinstance(obj, bool):
        return Number(obj)
    if isinstance(obj, numbers.Integral):
        return Number(int(obj))
    if isinstance(obj, numbers.Real):
        value = float(obj)
        if math.isinf(value):
            return Unbounded(negative=value < 0)
        if math.isnan(value):
            raise EvaluationError("NaN is not a valid model constant")
        return Number(value)
    if isinstance(obj, str):
        return Text(obj)
    if isinstance(obj, MappingABC):
        return Mapping(obj)
    if isinstance(obj, (list, tuple, range)):
        return Sequence(obj)
    if isinstance(obj, (set, frozenset)):
        try:
            return Sequence(tuple(sorted(obj)))
        except TypeError:
            return Sequence(tuple(sorted(obj, key=repr)))
    if hasattr(obj, "tolist"):
        # numpy arrays
        return to_value(obj.tolist())
    raise EvaluationError(
        f"Unsupported parameter value of type {type(obj).__name__}: {obj!r}"
    )


def to_number(value: Value, what: str) -> Union[int, float]:
    """Return the numeric payload of value or raise EvaluationError."""
    if isinstance(value, Number):
        return value.value
    if isinstance(value, Unbounded):
        raise EvaluationError(f"{what}: no arithmetic is permitted on an unbounded value")
    raise EvaluationError(f"{what}: expected a number, got {kind_of(value)} {value.raw!r}")


def as_key(raw: Any) -> Any:
    """Hashable form of raw data: lists (nested too) become tuples."""
    if isinstance(raw, (list, tuple)):
        return tuple(as_key(item) for item in raw)
    return raw
