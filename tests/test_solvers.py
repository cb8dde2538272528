"""Tests for solution parsing, solver backends, the registry and configuration."""

import stat
import textwrap

import pytest

from linmodel.config import SolverConfig
from linmodel.errors import (
    MalformedResultError,
    SolverFailureError,
    SolverUnavailableError,
)
from linmodel.expr.builder import _, family, irange, over, sym, total, var
from linmodel.expr.parser import parse_expression
from linmodel.model.operations import (
    declare_constraints,
    declare_family,
    declare_variable,
    set_objective,
)
from linmodel.model.problem import Model
from linmodel.solvers import (
    BackendRegistry,
    HighsBackend,
    ScipyMilpBackend,
    Solution,
    SolverBackend,
    get_available_backends,
    get_backend,
    highs_version,
    list_backends,
    parse_highs_solution,
    solve,
)

OPTIMAL_SOLUTION = """\
Model status
Optimal

# Primal solution values
Feasible
Objective 11
# Columns 2
x 3
y 1
# Rows 2
c00000000 4
c00000001 6

# Dual solution values
Feasible
# Columns 2
x 0
y 0
# Rows 2
c00000000 1.5
c00000001 0.5

# Basis
HiGHS v1
Valid
"""

INFEASIBLE_SOLUTION = """\
Model status
Infeasible

# Primal solution values
None

# Dual solution values
None

# Basis
HiGHS v1
None
"""


def production_model():
    """maximize 3x + 2y s.t. x + y <= 4, x + 3y <= 6, 0 <= x <= 3, y >= 0."""
    model = declare_variable(Model.new("production"), "x", min=0, max=3)
    model = declare_variable(model, "y", min=0)
    model = declare_constraints(model, [], parse_expression("x + y <= 4"))
    model = declare_constraints(model, [], parse_expression("x + 3 * y <= 6"))
    return set_objective(model, parse_expression("3 * x + 2 * y"), "maximize")


class LinearOnlyBackend(SolverBackend):
    """Installed backend that refuses integer variables."""

    @property
    def name(self):
        return "lponly"

    @property
    def supports_integer(self):
        return False

    def is_available(self):
        return True

    def get_info(self):
        return {"name": "LP only", "description": "continuous models"}

    def solve(self, model, timeout=None):
        return ScipyMilpBackend().solve(model, timeout=timeout)


@pytest.fixture
def fake_highs(tmp_path):
    """Factory writing an executable shell script that stands in for HiGHS."""

    def make(body):
        script = tmp_path / "highs"
        script.write_text("#!/bin/sh\n" + textwrap.dedent(body))
        script.chmod(script.stat().st_mode | stat.S_IEXEC)
        return SolverConfig(highs_path=str(script))

    return make


class TestSolutionParser:
    """Tests for parse_highs_solution."""

    def test_optimal(self):
        """Test a complete optimal solution file."""
        solution = parse_highs_solution(OPTIMAL_SOLUTION)
        assert solution.status == "Optimal"
        assert solution.is_optimal
        assert solution.is_feasible
        assert solution.objective == 11.0
        assert solution.variables == {"x": 3.0, "y": 1.0}
        assert solution.rows == {"c00000000": 4.0, "c00000001": 6.0}
        assert solution.row_duals == {"c00000000": 1.5, "c00000001": 0.5}
        assert solution["x"] == 3.0
        assert solution.value("z") is None

    def test_objective_on_its_own_line(self):
        """Test the objective value split across two lines."""
        text = "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective\n-2.5\n# Columns 1\nx -2.5\n"
        solution = parse_highs_solution(text)
        assert solution.objective == -2.5
        assert solution.variables == {"x": -2.5}

    def test_infeasible(self):
        """Test a solution file without values."""
        solution = parse_highs_solution(INFEASIBLE_SOLUTION)
        assert solution.status == "Infeasible"
        assert solution.feasibility == "None"
        assert not solution.is_feasible
        assert solution.objective is None
        assert solution.variables == {}

    def test_names_with_parentheses(self):
        """Test family member names are read back intact."""
        text = "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective 1\n# Columns 2\nq(1,1) 1\nq(1,2) 0\n"
        assert parse_highs_solution(text).variables == {"q(1,1)": 1.0, "q(1,2)": 0.0}

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   \n\n",
            "Status\nOptimal\n",
            "Model status\nOptimal\n",
            "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective abc\n",
            "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective 1\n# Columns 2\nx 1\n",
            "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective 1\n# Columns two\n",
            "Model status\nOptimal\n# Primal solution values\nFeasible\nObjective 1\n# Columns 1\nx one\n",
        ],
    )
    def test_malformed(self, text):
        """Test malformed solution files raise MalformedResultError."""
        with pytest.raises(MalformedResultError):
            parse_highs_solution(text)

    def test_solution_helpers(self):
        """Test evaluate, family_values, to_dict and from_failure."""
        q = family("q")
        model = declare_family(Model.new(), "q", [over("i", irange(1, 2))], type="binary")
        model = set_objective(model, 2 * q[1] + q[2], "maximize")
        solution = Solution(status="Optimal", feasibility="Feasible", objective=3.0,
                            variables={"q(1)": 1.0, "q(2)": 1.0})
        assert solution.evaluate(model.objective) == 3.0
        assert solution.family_values(model, "q") == {(1,): 1.0, (2,): 1.0}
        assert solution.to_dict()["objective"] == 3.0
        failed = Solution.from_failure("Time limit reached")
        assert not failed.is_feasible
        assert failed.status == "Time limit reached"


class TestHighsBackend:
    """Tests for the HiGHS executable backend using stand-in scripts."""

    def test_success(self, fake_highs, tmp_path):
        """Test a run that writes a solution file."""
        source = tmp_path / "optimal.sol"
        source.write_text(OPTIMAL_SOLUTION)
        config = fake_highs(
            f"""\
            cp "{source}" "$3"
            echo "Running HiGHS"
            """
        )
        solution = HighsBackend(config).solve(production_model())
        assert solution.status == "Optimal"
        assert solution.objective == 11.0
        assert solution.variables == {"x": 3.0, "y": 1.0}
        assert solution.solver == "highs"
        assert "Running HiGHS" in solution.raw_result

    def test_model_file_passed_to_solver(self, fake_highs, tmp_path):
        """Test the LP file handed to HiGHS is the serialized model."""
        copy = tmp_path / "seen.lp"
        config = fake_highs(
            f"""\
            cp "$1" "{copy}"
            printf 'Model status\\nInfeasible\\n# Primal solution values\\nNone\\n' > "$3"
            """
        )
        solution = HighsBackend(config).solve(production_model())
        assert solution.status == "Infeasible"
        assert copy.read_text().startswith("Maximize\n  obj: 3 x + 2 y\n")

    def test_nonzero_exit(self, fake_highs):
        """Test a failing process raises with its output and the model text."""
        config = fake_highs(
            """\
            echo "ERROR: bad model"
            exit 3
            """
        )
        with pytest.raises(SolverFailureError) as excinfo:
            HighsBackend(config).solve(production_model())
        error = excinfo.value
        assert error.returncode == 3
        assert "ERROR: bad model" in error.output
        assert "Maximize" in error.model_text
        assert "ERROR: bad model" in str(error)
        assert "x + 3 y <= 6" in str(error)

    def test_missing_solution_file(self, fake_highs):
        """Test a run that exits cleanly without writing a solution."""
        config = fake_highs("exit 0\n")
        with pytest.raises(SolverFailureError):
            HighsBackend(config).solve(production_model())

    def test_malformed_solution_file(self, fake_highs):
        """Test an unreadable solution file is a hard error."""
        config = fake_highs('echo "garbage" > "$3"\n')
        with pytest.raises(MalformedResultError):
            HighsBackend(config).solve(production_model())

    def test_timeout(self, fake_highs):
        """Test the process is stopped after the timeout."""
        config = fake_highs("exec sleep 5\n")
        with pytest.raises(SolverFailureError) as excinfo:
            HighsBackend(config).solve(production_model(), timeout=0.2)
        assert "0.2 seconds" in str(excinfo.value)

    def test_missing_executable(self, tmp_path):
        """Test an absent HiGHS binary."""
        backend = HighsBackend(SolverConfig(highs_path=str(tmp_path / "no-such-highs")))
        assert not backend.is_available()
        with pytest.raises(SolverUnavailableError):
            backend.solve(production_model())

    def test_keep_files(self, fake_highs, tmp_path):
        """Test the LP and solution files stay in work_dir when requested."""
        base = fake_highs('printf "Model status\\nOptimal\\n# Primal solution values\\nNone\\n" > "$3"\n')
        work_dir = tmp_path / "work"
        config = SolverConfig(highs_path=base.highs_path, keep_files=True, work_dir=str(work_dir))
        HighsBackend(config).solve(production_model())
        assert (work_dir / "model.lp").exists()
        assert (work_dir / "solution.txt").exists()

    def test_version(self, fake_highs):
        """Test highs_version reads the first output line."""
        config = fake_highs('echo "HiGHS version 1.7.0"\necho "Copyright"\n')
        assert highs_version(config) == "HiGHS version 1.7.0"
        assert highs_version(SolverConfig(highs_path="no-such-highs-binary")) is None


@pytest.mark.skipif(not HighsBackend().is_available(), reason="HiGHS executable not installed")
class TestHighsExecutable:
    """Tests against a real HiGHS installation."""

    def test_production_model(self):
        """Test the LP file round trip through HiGHS."""
        solution = HighsBackend().solve(production_model(), timeout=60)
        assert solution.is_optimal
        assert solution.objective == pytest.approx(11.0)
        assert solution["x"] == pytest.approx(3.0)
        assert solution["y"] == pytest.approx(1.0)


class TestScipyBackend:
    """Tests for the scipy.optimize.milp backend."""

    def test_linear_program(self):
        """Test a small LP."""
        solution = ScipyMilpBackend().solve(production_model())
        assert solution.is_optimal
        assert solution.objective == pytest.approx(11.0)
        assert solution["x"] == pytest.approx(3.0)
        assert solution["y"] == pytest.approx(1.0)
        assert solution.rows["c00000000"] == pytest.approx(4.0)

    def test_assignment(self):
        """Test a binary assignment model with wildcard rows and columns."""
        q, i, j = family("q"), sym("i"), sym("j")
        cost = {1: {1: 4, 2: 1}, 2: {1: 2, 2: 6}}
        model = Model.new("assign", parameters={"cost": cost})
        model = declare_family(
            model, "q", [over("i", irange(1, 2)), over("j", irange(1, 2))], type="binary"
        )
        model = declare_constraints(model, [over("i", irange(1, 2))], total(q[i, _]) == 1)
        model = declare_constraints(model, [over("j", irange(1, 2))], total(q[_, j]) == 1)
        model = set_objective(
            model,
            parse_expression("sum(cost[i][j] * q(i, j) for i in range(1, 3) for j in range(1, 3))"),
            "minimize",
        )
        solution = ScipyMilpBackend().solve(model)
        assert solution.objective == pytest.approx(3.0)
        values = solution.family_values(model, "q")
        assert values[(1, 2)] == pytest.approx(1.0)
        assert values[(2, 1)] == pytest.approx(1.0)

    def test_objective_constant_and_integer(self):
        """Test objective offsets and integrality."""
        model = declare_variable(Model.new(), "n", type="integer", min=0, max=10)
        model = declare_constraints(model, [], parse_expression("2 * n <= 7"))
        model = set_objective(model, var("n") + 100, "maximize")
        solution = ScipyMilpBackend().solve(model)
        assert solution["n"] == pytest.approx(3.0)
        assert solution.objective == pytest.approx(103.0)

    def test_infeasible(self):
        """Test an infeasible model reports no values."""
        model = declare_variable(Model.new(), "x", min=0, max=3)
        model = declare_constraints(model, [], var("x") >= 5)
        model = set_objective(model, var("x"), "minimize")
        solution = ScipyMilpBackend().solve(model)
        assert solution.status == "Infeasible"
        assert not solution.is_feasible
        assert solution.variables == {}

    def test_empty_model(self):
        """Test a model without variables."""
        with pytest.raises(SolverFailureError):
            ScipyMilpBackend().solve(Model.new())


class TestRegistry:
    """Tests for backend registration and lookup."""

    def test_lookup(self):
        """Test case-insensitive lookup of built-in backends."""
        assert isinstance(get_backend("highs"), HighsBackend)
        assert isinstance(get_backend("SciPy"), ScipyMilpBackend)
        assert get_backend("cplex") is None

    def test_listing(self):
        """Test capability listing."""
        backends = list_backends()
        assert {"highs", "scipy"} <= set(backends)
        assert "available" in backends["scipy"]
        assert "scipy" in get_available_backends()

    def test_solve_with_backend_name(self):
        """Test the solve() convenience function."""
        solution = solve(production_model(), backend="scipy")
        assert solution.objective == pytest.approx(11.0)
        with pytest.raises(SolverUnavailableError):
            solve(production_model(), backend="cplex")

    def test_integer_support_filters_backends(self):
        """Test a backend without integer support is skipped for integer models."""
        registry = BackendRegistry()
        registry.register(LinearOnlyBackend())
        lp = production_model()
        mip = declare_variable(lp, "k", type="integer", min=0, max=2)

        assert registry.get_available(lp)[0] == "lponly"
        assert "lponly" not in registry.get_available(mip)
        assert "scipy" in registry.get_available(mip)
        assert registry.select(lp).name == "lponly"
        assert registry.select(mip).name != "lponly"
        assert registry.list_all()["lponly"]["integer"] is False
        with pytest.raises(SolverUnavailableError):
            registry.select(mip, "lponly")

    def test_solve_auto(self):
        """Test backend='auto' solves with an installed backend."""
        solution = solve(production_model(), backend="auto")
        assert solution.objective == pytest.approx(11.0)


class TestConfig:
    """Tests for SolverConfig.from_env."""

    def test_defaults(self):
        """Test defaults with an empty environment."""
        config = SolverConfig.from_env({})
        assert config.highs_path == "highs"
        assert config.timeout is None
        assert not config.keep_files
        assert config.log_level == "WARNING"

    def test_values(self):
        """Test reading every variable."""
        config = SolverConfig.from_env(
            {
                "LINMODEL_HIGHS_PATH": "/opt/highs/bin/highs",
                "LINMODEL_SOLVER_TIMEOUT": "30",
                "LINMODEL_KEEP_FILES": "yes",
                "LINMODEL_WORK_DIR": "/tmp/lp",
                "LINMODEL_LOG_LEVEL": "debug",
            }
        )
        assert config.highs_path == "/opt/highs/bin/highs"
        assert config.timeout == 30.0
        assert config.keep_files
        assert config.work_dir == "/tmp/lp"
        assert config.log_level == "DEBUG"

    def test_timeout(self):
        """Test non-positive and invalid timeouts."""
        assert SolverConfig.from_env({"LINMODEL_SOLVER_TIMEOUT": "0"}).timeout is None
        with pytest.raises(ValueError):
            SolverConfig.from_env({"LINMODEL_SOLVER_TIMEOUT": "soon"})
