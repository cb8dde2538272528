"""
Solver adapters.

- base.py: SolverBackend abstract base class
- solution.py: Solution and the HiGHS solution-file parser
- highs.py: HiGHS executable backend (LP file + subprocess)
- scipy_milp.py: scipy.optimize.milp backend
- registry.py: Backend registration and lookup

Usage:
    from linmodel.solvers import solve

    solution = solve(model)                   # HiGHS executable
    solution = solve(model, backend="scipy")  # in-process
    solution = solve(model, backend="auto")   # first installed backend that fits
"""

from typing import Optional

from linmodel.model.problem import Model
from linmodel.solvers.base import SolverBackend
from linmodel.solvers.solution import Solution, parse_highs_solution
from linmodel.solvers.highs import HighsBackend, highs_version
from linmodel.solvers.scipy_milp import ScipyMilpBackend
from linmodel.solvers.registry import (
    AUTO,
    BackendRegistry,
    can_solve,
    get_available_backends,
    get_backend,
    get_registry,
    list_backends,
    register_backend,
    select_backend,
)


def solve(model: Model, backend: str = "highs", timeout: Optional[float] = None) -> Solution:
    """
    Solve model with the named backend ("auto" picks one).

    Raises:
        SolverUnavailableError: unknown backend, solver not installed or
            no integer support for a model with integer variables
    """
    solver = select_backend(model, backend)
    return solver.solve(model, timeout=timeout)


__all__ = [
    "SolverBackend",
    "Solution",
    "parse_highs_solution",
    "HighsBackend",
    "highs_version",
    "ScipyMilpBackend",
    "BackendRegistry",
    "get_backend",
    "list_backends",
    "get_available_backends",
    "register_backend",
    "get_registry",
    "select_backend",
    "can_solve",
    "AUTO",
    "solve",
]
