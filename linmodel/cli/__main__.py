"""
Entry point for the linmodel CLI.

Usage:
    linmodel compile model.yaml [-o model.lp]
    linmodel validate model.yaml
    linmodel solve model.yaml [--backend scipy] [--timeout 60] [--json]
    linmodel backends
    python -m linmodel.cli ...
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console

from ..config import SolverConfig
from .commands import CommandHandler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linmodel",
        description="Compile linear/MILP model documents to LP and solve them",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    compile_cmd = sub.add_parser("compile", help="Write the LP text of a model")
    compile_cmd.add_argument("model", help="Model document (.json, .yaml, .yml)")
    compile_cmd.add_argument("-o", "--output", help="LP file to write (default: stdout)")

    validate_cmd = sub.add_parser("validate", help="Check a model for problems")
    validate_cmd.add_argument("model")

    solve_cmd = sub.add_parser("solve", help="Solve a model")
    solve_cmd.add_argument("model")
    solve_cmd.add_argument("--backend", default="highs", help="Solver backend, or auto (default: highs)")
    solve_cmd.add_argument("--timeout", type=float, default=None, help="Seconds")
    solve_cmd.add_argument("--json", action="store_true", help="Print the solution as JSON")

    sub.add_parser("backends", help="List solver backends")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    level = "DEBUG" if args.verbose else SolverConfig.from_env().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    handler = CommandHandler(Console())
    if args.command == "compile":
        return handler.handle_compile(args.model, args.output)
    if args.command == "validate":
        return handler.handle_validate(args.model)
    if args.command == "solve":
        return handler.handle_solve(args.model, args.backend, args.timeout, args.json)
    return handler.handle_backends()


if __name__ == "__main__":
    sys.exit(main())
