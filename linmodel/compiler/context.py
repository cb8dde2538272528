"""
Explicit compilation context: generator bindings plus external parameters.

The context is passed through every compiler call instead of being read
from any global slot. It is immutable; bind() returns an extended copy.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class Context:
    """Immutable pair of ordered bindings and read-only parameters."""

    __slots__ = ("_bindings", "_parameters")

    def __init__(
        self,
        bindings: Optional[Mapping[str, Any]] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ):
        self._bindings = MappingProxyType(dict(bindings)) if bindings else _EMPTY
        if parameters is None:
            self._parameters = _EMPTY
        elif isinstance(parameters, MappingProxyType):
            self._parameters = parameters
        else:
            self._parameters = MappingProxyType(dict(parameters))

    @property
    def bindings(self) -> Mapping[str, Any]:
        return self._bindings

    @property
    def parameters(self) -> Mapping[str, Any]:
        return self._parameters

    def bind(self, symbol: str, value: Any) -> "Context":
        """Return a new context with symbol bound to value."""
        bindings: Dict[str, Any] = dict(self._bindings)
        bindings.pop(symbol, None)
        bindings[symbol] = value
        return Context(bindings, self._parameters)

    def with_parameters(self, parameters: Mapping[str, Any]) -> "Context":
        return Context(self._bindings, parameters)

    def lookup(self, name: str) -> Tuple[bool, Any]:
        """Resolve name: bindings first, then parameters. Returns (found, value)."""
        if name in self._bindings:
            return True, self._bindings[name]
        if name in self._parameters:
            return True, self._parameters[name]
        return False, None

    def __contains__(self, name: str) -> bool:
        return name in self._bindings or name in self._parameters

    def symbols(self) -> Iterator[str]:
        yield from self._bindings
        for name in self._parameters:
            if name not in self._bindings:
                yield name

    def format_fields(self) -> Dict[str, Any]:
        """Bindings over parameters, for str.format interpolation."""
        fields = dict(self._parameters)
        fields.update(self._bindings)
        return fields

    def __eq__(self, other):
        if not isinstance(other, Context):
            return NotImplemented
        return (
            dict(self._bindings) == dict(other._bindings)
            and dict(self._parameters) == dict(other._parameters)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"Context(bindings={dict(self._bindings)!r})"
