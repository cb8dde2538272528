"""
Solver solution type and the HiGHS solution-file parser.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..errors import MalformedResultError

if TYPE_CHECKING:
    from ..compiler.polynomial import Polynomial
    from ..model.problem import Model

logger = logging.getLogger(__name__)


@dataclass
class Solution:
    """
    Result of solving a model.

    status is the solver's model status ("Optimal", "Infeasible", ...),
    feasibility the primal solution status ("Feasible", "Infeasible",
    "None"). variables maps LP column names to values, rows maps LP row
    names to row activities.
    """

    status: str
    feasibility: Optional[str] = None
    objective: Optional[float] = None
    variables: Dict[str, float] = field(default_factory=dict)
    rows: Dict[str, float] = field(default_factory=dict)
    variable_duals: Dict[str, float] = field(default_factory=dict)
    row_duals: Dict[str, float] = field(default_factory=dict)
    solver: str = "highs"

    # Raw result from the underlying solver (for advanced use)
    raw_result: Any = None

    @property
    def is_optimal(self) -> bool:
        return self.status.strip().lower() == "optimal"

    @property
    def is_feasible(self) -> bool:
        return (self.feasibility or "").strip().lower() == "feasible"

    def value(self, name: str, default: Optional[float] = None) -> Optional[float]:
        return self.variables.get(name, default)

    def __getitem__(self, name: str) -> float:
        return self.variables[name]

    def evaluate(self, polynomial: "Polynomial") -> float:
        """Value of a compiled expression at this solution."""
        return polynomial.evaluate(self.variables)

    def family_values(self, model: "Model", family: str) -> Dict[Tuple[Any, ...], float]:
        """Index tuple -> value for every member of a variable family."""
        members = model.families[family].members
        values = {}
        for key, polynomial in members.items():
            (name,) = polynomial.variables()
            values[key] = self.variables.get(name, math.nan)
        return values

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "feasibility": self.feasibility,
            "objective": self.objective,
            "variables": dict(self.variables),
            "rows": dict(self.rows),
            "solver": self.solver,
        }

    @classmethod
    def from_failure(cls, status: str, solver: str = "highs") -> "Solution":
        """A solution carrying only a status."""
        return cls(status=status, feasibility="None", solver=solver)


# =============================================================================
# HiGHS solution file
# =============================================================================

class _Lines:
    """Cursor over the non-empty lines of a file."""

    def __init__(self, text: str):
        self.items: List[Tuple[int, str]] = [
            (number, line.strip())
            for number, line in enumerate(text.splitlines(), start=1)
            if line.strip()
        ]
        self.position = 0

    def peek(self) -> Optional[str]:
        if self.position < len(self.items):
            return self.items[self.position][1]
        return None

    def line_number(self) -> Optional[int]:
        if self.position < len(self.items):
            return self.items[self.position][0]
        return None

    def next(self, expected: str) -> str:
        if self.position >= len(self.items):
            raise MalformedResultError(f"unexpected end of file, expected {expected}")
        line = self.items[self.position][1]
        self.position += 1
        return line


def _number(text: str, lines: _Lines, what: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise MalformedResultError(
            f"{what}: {text!r} is not a number", lines.items[lines.position - 1][0]
        ) from None


def _count(header: str, lines: _Lines, what: str) -> int:
    parts = header.split()
    if len(parts) != 3:
        raise MalformedResultError(f"bad {what} header {header!r}", lines.items[lines.position - 1][0])
    try:
        return int(parts[2])
    except ValueError:
        raise MalformedResultError(
            f"bad {what} count in {header!r}", lines.items[lines.position - 1][0]
        ) from None


def _values(lines: _Lines, count: int, what: str) -> Dict[str, float]:
    values: Dict[str, float] = {}
    for _ in range(count):
        line = lines.next(f"{what} value")
        name, sep, value = line.rpartition(" ")
        if not sep or not name:
            raise MalformedResultError(
                f"expected '<name> <value>' for {what}, got {line!r}",
                lines.items[lines.position - 1][0],
            )
        values[name.strip()] = _number(value, lines, f"{what} '{name.strip()}'")
    return values


def _section(lines: _Lines, with_objective: bool):
    """Parse one solution-values section after its '# ... values' header."""
    feasibility = lines.next("solution status")
    objective = None
    columns: Dict[str, float] = {}
    rows: Dict[str, float] = {}
    if feasibility.lower() == "none":
        return feasibility, objective, columns, rows

    if with_objective and (lines.peek() or "").startswith("Objective"):
        line = lines.next("objective")
        parts = line.split()
        if len(parts) >= 2:
            objective = _number(parts[1], lines, "objective")
        else:
            objective = _number(lines.next("objective value"), lines, "objective")

    if (lines.peek() or "").startswith("# Columns"):
        columns = _values(lines, _count(lines.next("columns header"), lines, "columns"), "column")
    if (lines.peek() or "").startswith("# Rows"):
        rows = _values(lines, _count(lines.next("rows header"), lines, "rows"), "row")
    return feasibility, objective, columns, rows


def parse_highs_solution(text: str) -> Solution:
    """
    Parse a HiGHS solution file (written with --solution_file).

    Expected sections: "Model status" and its value, "# Primal solution
    values" with the feasibility, "Objective <value>", "# Columns N" with N
    "<name> <value>" lines and "# Rows M" with M lines, and optionally
    "# Dual solution values" in the same shape. Anything after is ignored.

    Raises:
        MalformedResultError: missing sections or non-numeric values
    """
    lines = _Lines(text)
    if not lines.items:
        raise MalformedResultError("empty solution file")

    header = lines.next("'Model status'")
    if header.lower() != "model status":
        raise MalformedResultError(f"expected 'Model status', got {header!r}", 1)
    status = lines.next("model status value")

    solution = Solution(status=status)

    while lines.peek() is not None:
        line = lines.next("section header")
        lowered = line.lower()
        if lowered.startswith("# primal solution values"):
            feasibility, objective, columns, rows = _section(lines, True)
            solution.feasibility = feasibility
            solution.objective = objective
            solution.variables = columns
            solution.rows = rows
        elif lowered.startswith("# dual solution values"):
            _, _, columns, rows = _section(lines, False)
            solution.variable_duals = columns
            solution.row_duals = rows
        elif lowered.startswith("# basis"):
            break
        else:
            logger.debug(f"Ignoring solution file line: {line!r}")

    if solution.feasibility is None:
        raise MalformedResultError("missing '# Primal solution values' section")

    logger.debug(
        f"Parsed solution: status={solution.status}, objective={solution.objective}, "
        f"{len(solution.variables)} column value(s)"
    )
    return solution
