"""
HiGHS executable backend.

Writes the LP file, runs `highs <model.lp> --solution_file <solution.txt>`,
waits for the process and parses the solution file. Non-zero exit, timeout
and a missing or empty solution file are hard failures; nothing is retried.
"""

import logging
import shutil
import subprocess
import tempfile
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import SolverConfig
from ..errors import SolverFailureError, SolverUnavailableError
from ..io.lp_format import serialize
from ..model.problem import Model
from .base import SolverBackend
from .solution import Solution, parse_highs_solution

logger = logging.getLogger(__name__)

MODEL_FILE = "model.lp"
SOLUTION_FILE = "solution.txt"


def _indent(text: str) -> str:
    return textwrap.indent(text.rstrip(), "    ")


class HighsBackend(SolverBackend):
    """
    Solve models with the HiGHS command-line executable.

    Example:
        >>> backend = HighsBackend()
        >>> solution = backend.solve(model, timeout=60)
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig.from_env()

    @property
    def name(self) -> str:
        return "highs"

    def is_available(self) -> bool:
        return self.config.resolve_highs() is not None

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": "HiGHS",
            "description": "HiGHS executable via LP file",
            "integer": True,
            "binary": self.config.highs_path,
        }

    def command(self, model_path: Path, solution_path: Path) -> List[str]:
        binary = self.config.resolve_highs()
        if binary is None:
            raise SolverUnavailableError(
                "highs",
                f"executable '{self.config.highs_path}' not found "
                f"(set LINMODEL_HIGHS_PATH)",
            )
        return [binary, str(model_path), "--solution_file", str(solution_path)]

    def solve(self, model: Model, timeout: Optional[float] = None) -> Solution:
        if timeout is None:
            timeout = self.config.timeout
        if self.config.keep_files:
            work_dir = Path(self.config.work_dir or tempfile.mkdtemp(prefix="linmodel-"))
            work_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Keeping solver files in {work_dir}")
            return self._solve_in(model, work_dir, timeout)
        with tempfile.TemporaryDirectory(prefix="linmodel-") as tmp:
            return self._solve_in(model, Path(tmp), timeout)

    def _solve_in(self, model: Model, work_dir: Path, timeout: Optional[float]) -> Solution:
        model_path = work_dir / MODEL_FILE
        solution_path = work_dir / SOLUTION_FILE
        model_bytes = serialize(model)
        model_path.write_bytes(model_bytes)
        model_text = model_bytes.decode("utf-8")

        command = self.command(model_path, solution_path)
        logger.info(
            f"Running HiGHS on {model.n_variables} variables, "
            f"{model.n_constraints} constraints"
        )
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise SolverUnavailableError("highs", str(e)) from e
        except subprocess.TimeoutExpired as e:
            output = e.stdout.decode() if isinstance(e.stdout, bytes) else (e.stdout or "")
            raise SolverFailureError(
                f"HiGHS did not finish within {timeout} seconds",
                output=output,
                model_text=model_text,
            ) from e

        output = (completed.stdout or "") + (completed.stderr or "")
        if completed.returncode != 0:
            raise SolverFailureError(
                f"HiGHS exited with code {completed.returncode}.\n"
                f"Output:\n{_indent(output)}\n"
                f"Model:\n{_indent(model_text)}",
                returncode=completed.returncode,
                output=output,
                model_text=model_text,
            )

        if not solution_path.exists():
            raise SolverFailureError(
                f"HiGHS did not write a solution file.\nOutput:\n{_indent(output)}",
                returncode=completed.returncode,
                output=output,
                model_text=model_text,
            )

        solution = parse_highs_solution(solution_path.read_text())
        solution.solver = self.name
        solution.raw_result = output
        logger.info(f"HiGHS finished: {solution.status}, objective={solution.objective}")
        return solution


def highs_version(config: Optional[SolverConfig] = None) -> Optional[str]:
    """First line of `highs --version`, or None when HiGHS is not installed."""
    config = config or SolverConfig.from_env()
    binary = shutil.which(config.highs_path)
    if binary is None:
        return None
    try:
        completed = subprocess.run(
            [binary, "--version"], capture_output=True, text=True, timeout=10
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Could not query HiGHS version: {e}")
        return None
    lines = (completed.stdout or "").strip().splitlines()
    return lines[0] if lines else None
