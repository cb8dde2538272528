"""
scipy.optimize.milp backend.

Solves the matrix form of a model in-process with the HiGHS build that ships
with SciPy. Useful where the HiGHS executable is not installed.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np

from ..errors import SolverFailureError, SolverUnavailableError
from ..io.lp_format import row_names
from ..model.matrix import to_standard_form
from ..model.problem import Direction, Model
from .base import SolverBackend
from .solution import Solution

logger = logging.getLogger(__name__)

# scipy.optimize.milp status codes
_STATUS = {
    0: "Optimal",
    1: "Time limit reached",
    2: "Infeasible",
    3: "Unbounded",
    4: "Other",
}


class ScipyMilpBackend(SolverBackend):
    """In-process MILP solving through scipy.optimize.milp."""

    @property
    def name(self) -> str:
        return "scipy"

    def is_available(self) -> bool:
        try:
            from scipy.optimize import milp  # noqa: F401
            return True
        except ImportError:
            return False

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": "SciPy MILP",
            "description": "scipy.optimize.milp (bundled HiGHS)",
            "integer": True,
        }

    def solve(self, model: Model, timeout: Optional[float] = None) -> Solution:
        try:
            from scipy.optimize import Bounds, LinearConstraint, milp
        except ImportError as e:
            raise SolverUnavailableError("scipy", "scipy.optimize.milp requires SciPy >= 1.9") from e

        form = to_standard_form(model)
        if form.n_variables == 0:
            raise SolverFailureError("Model has no variables to solve for")

        sign = -1.0 if form.direction is Direction.MAXIMIZE else 1.0
        constraints = None
        if form.n_rows:
            constraints = LinearConstraint(form.A, form.row_lower, form.row_upper)
        options = {"time_limit": float(timeout)} if timeout else None

        logger.info(
            f"Running scipy milp on {form.n_variables} variables, {form.n_rows} rows"
        )
        try:
            result = milp(
                c=sign * form.c,
                constraints=constraints,
                integrality=form.integrality,
                bounds=Bounds(form.lower, form.upper),
                options=options,
            )
        except ValueError as e:
            raise SolverFailureError(f"scipy milp rejected the model: {e}") from e

        status = _STATUS.get(result.status, "Other")
        if result.x is None:
            return Solution(
                status=status,
                feasibility="None",
                solver=self.name,
                raw_result=result,
            )

        x = np.asarray(result.x, dtype=float)
        variables = {name: float(value) for name, value in zip(form.variable_names, x)}
        activities = form.A @ x
        names = row_names(model)
        rows = {names[cid]: float(a) for cid, a in zip(form.row_ids, activities)}

        return Solution(
            status=status,
            feasibility="Feasible",
            objective=form.objective_value(x),
            variables=variables,
            rows=rows,
            solver=self.name,
            raw_result=result,
        )
