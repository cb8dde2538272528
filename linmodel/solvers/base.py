"""
Abstract base class for solver backends.

Every backend (HiGHS executable, scipy.optimize.milp) implements this
interface so models can be solved the same way regardless of the engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..model.problem import Model
from .solution import Solution


class SolverBackend(ABC):
    """
    Abstract base class for solver backends.

    Each backend provides:
    - Availability check (is the executable / library installed?)
    - Capability info
    - solve(): run the solver to completion and return a Solution
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Backend identifier (e.g., 'highs', 'scipy').

        Used for backend selection in get_backend("highs").
        """
        pass

    @property
    def supports_integer(self) -> bool:
        """Whether this backend handles integer and binary variables."""
        return True

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if this backend's solver can be used.

        Returns:
            True if the solver is installed, False otherwise.
        """
        pass

    @abstractmethod
    def get_info(self) -> Dict[str, Any]:
        """
        Backend capabilities.

        Returns:
            Dict with:
                - name: Display name
                - description: One-line summary
                - integer: Whether integer variables are supported
        """
        pass

    @abstractmethod
    def solve(self, model: Model, timeout: Optional[float] = None) -> Solution:
        """
        Solve model to completion.

        Args:
            model: Compiled model
            timeout: Optional wall-clock limit in seconds

        Returns:
            Solution with status, objective and variable values.

        Raises:
            SolverUnavailableError: solver not installed
            SolverFailureError: solver run failed
            MalformedResultError: solver output could not be read
        """
        pass
