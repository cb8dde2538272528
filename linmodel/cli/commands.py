"""Command handlers for the CLI - load a model document and display results."""

import json
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..errors import ModelError
from ..formulation.loader import load_model_file
from ..io.lp_format import to_lp_string, write_lp
from ..model.problem import Model
from ..model.validation import validate_model
from ..solvers import list_backends, solve


class CommandHandler:
    """
    Handles CLI subcommands.
    Pure presentation logic; models come from load_model_file.
    """

    def __init__(self, console: Console):
        self.console = console

    def _load(self, path: str) -> Optional[Model]:
        try:
            return load_model_file(path)
        except ModelError as e:
            self.console.print(f"[red]✗ {escape(str(e))}[/red]")
            return None

    def handle_compile(self, path: str, output: Optional[str] = None) -> int:
        """Compile a model document to LP text (stdout or file)."""
        model = self._load(path)
        if model is None:
            return 1

        if output:
            written = write_lp(model, output)
            self.console.print(
                f"[green]✓[/green] Wrote {written} "
                f"({model.n_variables} variables, {model.n_constraints} constraints)"
            )
        else:
            # Plain write keeps the LP text free of rich markup
            self.console.file.write(to_lp_string(model))
        return 0

    def handle_validate(self, path: str) -> int:
        """Validate a model document and show errors/warnings."""
        model = self._load(path)
        if model is None:
            return 1

        result = validate_model(model)
        summary = result["summary"]

        table = Table(title=f"Model {summary['name'] or Path(path).stem}")
        table.add_column("Property", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Direction", str(summary["direction"]))
        table.add_row("Variables", str(summary["n_variables"]))
        table.add_row("Families", str(summary["n_families"]))
        table.add_row("Constraints", str(summary["n_constraints"]))
        for kind, count in summary["variable_types"].items():
            if count:
                table.add_row(f"  {kind}", str(count))
        self.console.print(table)

        for error in result["errors"]:
            self.console.print(f"[red]✗ {escape(error)}[/red]")
        for warning in result["warnings"]:
            self.console.print(f"[yellow]! {escape(warning)}[/yellow]")
        if result["valid"]:
            self.console.print("[green]✓ Model is valid[/green]")
            return 0
        return 1

    def handle_solve(
        self,
        path: str,
        backend: str = "highs",
        timeout: Optional[float] = None,
        as_json: bool = False,
    ) -> int:
        """Solve a model document and print the solution."""
        model = self._load(path)
        if model is None:
            return 1

        try:
            solution = solve(model, backend=backend, timeout=timeout)
        except ModelError as e:
            self.console.print(f"[red]✗ {escape(str(e))}[/red]")
            return 1

        if as_json:
            self.console.file.write(json.dumps(solution.to_dict(), indent=2) + "\n")
            return 0 if solution.is_feasible else 2

        status_style = "green" if solution.is_optimal else "yellow"
        self.console.print(f"\n[bold]Status:[/bold] [{status_style}]{solution.status}[/{status_style}]")
        if solution.objective is not None:
            self.console.print(f"[bold]Objective:[/bold] {solution.objective:.10g}")

        if solution.variables:
            table = Table(title="Variables")
            table.add_column("Name", style="cyan")
            table.add_column("Value", justify="right")
            for name, value in solution.variables.items():
                table.add_row(name, f"{value:.10g}")
            self.console.print(table)

        return 0 if solution.is_feasible else 2

    def handle_backends(self) -> int:
        """List solver backends and whether they are installed."""
        table = Table(title="Solver Backends")
        table.add_column("Name", style="cyan")
        table.add_column("Description")
        table.add_column("Integer", justify="center")
        table.add_column("Available", justify="center")

        for name, info in list_backends().items():
            table.add_row(
                name,
                info.get("description", ""),
                "✓" if info.get("integer") else "✗",
                "[green]✓[/green]" if info.get("available") else "[red]✗[/red]",
            )
        self.console.print(table)
        return 0
