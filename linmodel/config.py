"""
Solver configuration from environment variables.

Variables (a .env file is loaded by the CLI via python-dotenv):
    LINMODEL_HIGHS_PATH      HiGHS executable (default: 'highs' on PATH)
    LINMODEL_SOLVER_TIMEOUT  Seconds before the solver process is killed
    LINMODEL_KEEP_FILES      Keep the LP/solution files (1/true/yes)
    LINMODEL_WORK_DIR        Directory for kept files
    LINMODEL_LOG_LEVEL       Logging level for the CLI (default WARNING)
"""

import os
import shutil
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_HIGHS_BINARY = "highs"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SolverConfig:
    """Settings for external solver invocation."""

    highs_path: str = DEFAULT_HIGHS_BINARY
    timeout: Optional[float] = None
    keep_files: bool = False
    work_dir: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SolverConfig":
        env = os.environ if environ is None else environ

        timeout = env.get("LINMODEL_SOLVER_TIMEOUT")
        if timeout:
            try:
                timeout_value: Optional[float] = float(timeout)
            except ValueError:
                raise ValueError(
                    f"LINMODEL_SOLVER_TIMEOUT must be a number of seconds, got {timeout!r}"
                ) from None
            if timeout_value <= 0:
                timeout_value = None
        else:
            timeout_value = None

        return cls(
            highs_path=env.get("LINMODEL_HIGHS_PATH") or DEFAULT_HIGHS_BINARY,
            timeout=timeout_value,
            keep_files=env.get("LINMODEL_KEEP_FILES", "").strip().lower() in _TRUE_VALUES,
            work_dir=env.get("LINMODEL_WORK_DIR") or None,
            log_level=(env.get("LINMODEL_LOG_LEVEL") or "WARNING").upper(),
        )

    def resolve_highs(self) -> Optional[str]:
        """Absolute path of the HiGHS executable, or None if not found."""
        return shutil.which(self.highs_path)
