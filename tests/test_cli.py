"""Tests for the command-line interface."""

import io
import json

import pytest
from rich.console import Console

from linmodel.cli import CommandHandler
from linmodel.cli.__main__ import build_parser, main

MODEL_YAML = """\
name: production
variables:
  - name: x
    min: 0
    max: 3
  - name: y
    min: 0
constraints:
  - expr: "x + y <= 4"
    description: capacity
  - expr: "x + 3 * y <= 6"
objective:
  expr: "3 * x + 2 * y"
  direction: maximize
"""


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "production.yaml"
    path.write_text(MODEL_YAML)
    return path


@pytest.fixture
def handler():
    return CommandHandler(Console(file=io.StringIO(), width=120))


def output_of(handler):
    return handler.console.file.getvalue()


class TestParser:
    """Tests for argument parsing."""

    def test_subcommands(self):
        """Test the solve subcommand options."""
        args = build_parser().parse_args(["solve", "m.yaml", "--backend", "scipy", "--timeout", "5", "--json"])
        assert args.command == "solve"
        assert args.backend == "scipy"
        assert args.timeout == 5.0
        assert args.json

    def test_command_required(self):
        """Test a subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    """Tests for CommandHandler."""

    def test_compile_to_stdout(self, handler, model_file):
        """Test compile prints the LP text."""
        assert handler.handle_compile(str(model_file)) == 0
        output = output_of(handler)
        assert "Maximize" in output
        assert "capacity: 1 x + 1 y <= 4" in output

    def test_compile_to_file(self, handler, model_file, tmp_path):
        """Test compile writes the LP file."""
        target = tmp_path / "out.lp"
        assert handler.handle_compile(str(model_file), str(target)) == 0
        assert target.read_text().startswith("Maximize\n")

    def test_validate(self, handler, model_file):
        """Test validate reports a valid model."""
        assert handler.handle_validate(str(model_file)) == 0
        assert "Model is valid" in output_of(handler)

    def test_invalid_file(self, handler, tmp_path):
        """Test a broken document returns a non-zero code."""
        path = tmp_path / "bad.yaml"
        path.write_text("variables:\n  - name: x\nobjective:\n  expr: 'x * x'\n")
        assert handler.handle_validate(str(path)) == 1
        assert "Nonlinear" in output_of(handler)

    def test_solve_with_scipy(self, handler, model_file):
        """Test solve prints status and objective."""
        assert handler.handle_solve(str(model_file), backend="scipy") == 0
        output = output_of(handler)
        assert "Optimal" in output
        assert "11" in output

    def test_solve_unknown_backend(self, handler, model_file):
        """Test an unknown backend is reported."""
        assert handler.handle_solve(str(model_file), backend="cplex") == 1
        assert "not available" in output_of(handler)

    def test_backends(self, handler):
        """Test the backend table."""
        assert handler.handle_backends() == 0
        output = output_of(handler)
        assert "highs" in output
        assert "scipy" in output


class TestMain:
    """Tests for the entry point."""

    def test_solve_json(self, model_file, capsys):
        """Test main() with JSON output."""
        assert main(["solve", str(model_file), "--backend", "scipy", "--json"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["status"] == "Optimal"
        assert result["objective"] == pytest.approx(11.0)
        assert result["variables"]["x"] == pytest.approx(3.0)

    def test_compile(self, model_file, capsys):
        """Test main() compile to stdout."""
        assert main(["compile", str(model_file)]) == 0
        assert capsys.readouterr().out.endswith("End\n")
