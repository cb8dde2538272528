"""
Solver backend registry.

Backends register under their name; the built-in ones (HiGHS executable,
scipy.optimize.milp) are created on first use. Lookups can be narrowed to
backends that are installed and able to solve a given model.
"""

from typing import Dict, List, Optional, Any, TYPE_CHECKING
import logging

from ..errors import SolverUnavailableError

if TYPE_CHECKING:
    from ..model.problem import Model
    from .base import SolverBackend

logger = logging.getLogger(__name__)

# backend name meaning "first installed backend that can solve the model"
AUTO = "auto"


class BackendRegistry:
    """
    Registry for solver backends.

    Usage:
        registry = BackendRegistry()
        registry.register(HighsBackend())
        backend = registry.select(model)            # first capable, installed backend
        backend = registry.select(model, "scipy")   # named backend, checked against model
    """

    def __init__(self):
        self._backends: Dict[str, "SolverBackend"] = {}
        self._initialized = False

    def register(self, backend: "SolverBackend") -> None:
        name = backend.name.strip().lower()
        if name == AUTO:
            raise ValueError(f"'{AUTO}' is reserved for automatic backend selection")
        self._backends[name] = backend
        logger.debug(f"Registered backend: {name} (integer={backend.supports_integer})")

    def get(self, name: str) -> Optional["SolverBackend"]:
        """Backend registered under name (case-insensitive), or None."""
        self._ensure_initialized()
        return self._backends.get(name.strip().lower())

    def get_available(self, model: Optional["Model"] = None) -> List[str]:
        """
        Names of installed backends, in registration order.

        With a model, backends without integer support are left out when the
        model has integer or binary variables.
        """
        self._ensure_initialized()
        return [
            name for name, backend in self._backends.items()
            if backend.is_available() and (model is None or can_solve(backend, model))
        ]

    def select(self, model: "Model", name: str = AUTO) -> "SolverBackend":
        """
        Backend to solve model with.

        Raises:
            SolverUnavailableError: unknown name, no integer support for a
                model with integer variables, or no capable backend installed
        """
        self._ensure_initialized()
        if name.strip().lower() == AUTO:
            candidates = self.get_available(model)
            if not candidates:
                kind = "mixed-integer" if model.is_mixed_integer else "linear"
                raise SolverUnavailableError(
                    AUTO, f"no installed backend can solve this {kind} model"
                )
            logger.info(f"Selected backend '{candidates[0]}' for model '{model.name}'")
            return self._backends[candidates[0]]

        backend = self.get(name)
        if backend is None:
            raise SolverUnavailableError(
                name, f"unknown backend; registered: {', '.join(self._backends)}"
            )
        if not can_solve(backend, model):
            raise SolverUnavailableError(
                backend.name, "backend does not support integer or binary variables"
            )
        return backend

    def list_all(self) -> Dict[str, Dict[str, Any]]:
        """Info dict per backend, with 'available' and 'integer' filled in."""
        self._ensure_initialized()
        result = {}
        for name, backend in self._backends.items():
            info = backend.get_info()
            info["integer"] = backend.supports_integer
            info["available"] = backend.is_available()
            result[name] = info
        return result

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self._initialized = True
            self._register_builtin()

    def _register_builtin(self) -> None:
        # local imports: the backends import the model package
        from .highs import HighsBackend
        from .scipy_milp import ScipyMilpBackend

        for backend in (HighsBackend(), ScipyMilpBackend()):
            if backend.name not in self._backends:
                self.register(backend)
        logger.debug(f"Solver backends: {', '.join(self._backends)}")


def can_solve(backend: "SolverBackend", model: "Model") -> bool:
    """Whether backend handles every variable type in model."""
    return backend.supports_integer or not model.is_mixed_integer


_REGISTRY: Optional[BackendRegistry] = None


def get_registry() -> BackendRegistry:
    """Process-wide registry, created on first use."""
    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = BackendRegistry()
    return _REGISTRY


def get_backend(name: str) -> Optional["SolverBackend"]:
    return get_registry().get(name)


def select_backend(model: "Model", name: str = AUTO) -> "SolverBackend":
    return get_registry().select(model, name)


def list_backends() -> Dict[str, Dict[str, Any]]:
    return get_registry().list_all()


def get_available_backends(model: Optional["Model"] = None) -> List[str]:
    return get_registry().get_available(model)


def register_backend(backend: "SolverBackend") -> None:
    """Register a custom backend; it replaces any backend of the same name."""
    get_registry().register(backend)
