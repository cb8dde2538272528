"""Tests for structured model documents (schema and loader)."""

import json

import pytest
from pydantic import ValidationError

from linmodel.errors import ExpressionSyntaxError, ModelSpecError, UndefinedVariableError
from linmodel.formulation.loader import from_structured, load_model_file, parse_spec
from linmodel.formulation.schema import ModelSpec, VariableSpec
from linmodel.io.lp_format import to_lp_string
from linmodel.model.problem import Direction

ASSIGNMENT_YAML = """\
name: assignment
parameters:
  workers: [1, 2]
  cost:
    1: {1: 4, 2: 1}
    2: {1: 2, 2: 6}
variables:
  - name: q
    over: ["i in workers", "j in range(1, 3)"]
    type: binary
constraints:
  - over: ["i in workers"]
    expr: "sum(q(i, _)) == 1"
    description: "worker {i}"
  - over: ["j in range(1, 3)"]
    expr: "sum(q(_, j)) == 1"
    description: "task {j}"
objective:
  expr: "sum(cost[i][j] * q(i, j) for i in workers for j in range(1, 3))"
  direction: minimize
"""


def diet_document():
    return {
        "name": "diet",
        "parameters": {
            "foods": {"bread": {"cost": 2.0, "protein": 4}, "milk": {"cost": 3.5, "protein": 8}},
            "limit": 10,
        },
        "variables": [
            {"name": "buy", "over": ["f in foods"], "min": 0, "max": "limit",
             "name_template": "buy_{f}"},
        ],
        "constraints": [
            {"expr": "sum(foods[f].protein * buy(f) for f in foods) >= 20",
             "description": "protein"},
        ],
        "objective": {"expr": "sum(foods[f].cost * buy(f) for f in foods)"},
    }


class TestSchema:
    """Tests for the Pydantic document schema."""

    def test_defaults(self):
        """Test default values."""
        spec = ModelSpec.model_validate({"variables": [{"name": "x"}]})
        assert spec.variables[0].type == "continuous"
        assert spec.variables[0].over == []
        assert spec.constraints == []
        assert spec.objective is None
        assert spec.n_families == 1

    def test_rejects_unknown_fields(self):
        """Test extra keys are reported."""
        with pytest.raises(ValidationError):
            ModelSpec.model_validate({"variables": [], "solver": "highs"})

    def test_rejects_bad_type_and_direction(self):
        """Test literal fields."""
        with pytest.raises(ValidationError):
            VariableSpec(name="x", type="real")
        with pytest.raises(ValidationError):
            ModelSpec.model_validate({"objective": {"expr": "x", "direction": "max"}})

    def test_family_name_must_be_identifier(self):
        """Test the family name validator."""
        with pytest.raises(ValidationError):
            VariableSpec(name="x y")

    def test_bounds_keep_numbers_and_text(self):
        """Test bound values may be numbers or expressions."""
        spec = VariableSpec(name="x", min=0, max="cap[i]")
        assert spec.min == 0
        assert isinstance(spec.min, int)
        assert spec.max == "cap[i]"


class TestLoader:
    """Tests for building Models from documents."""

    def test_from_structured(self):
        """Test a dict document with mapping domains, attribute access and bound expressions."""
        model = from_structured(diet_document())
        assert model.name == "diet"
        assert list(model.variables) == ["buy_bread", "buy_milk"]
        assert model.variables["buy_milk"].bounds == (0, 10)
        assert model.direction is Direction.MINIMIZE
        constraint = next(iter(model.constraints.values()))
        lhs, rhs = constraint.normalized()
        assert dict(lhs.linear_terms()) == {"buy_bread": 4, "buy_milk": 8}
        assert rhs == 20
        assert constraint.name == "protein"

    def test_infinite_bound_text(self):
        """Test 'inf' and '-inf' bound strings mean no bound."""
        model = from_structured(
            {"variables": [{"name": "x", "min": "-inf", "max": "inf"}],
             "objective": {"expr": "x"}}
        )
        assert model.variables["x"].is_free

    def test_load_yaml(self, tmp_path):
        """Test a YAML file with integer mapping keys."""
        path = tmp_path / "assignment.yaml"
        path.write_text(ASSIGNMENT_YAML)
        model = load_model_file(path)
        assert model.n_variables == 4
        assert model.n_constraints == 4
        text = to_lp_string(model)
        assert "  worker_1: 1 q(1,1) + 1 q(1,2) = 1" in text
        assert "  task_2: 1 q(1,2) + 1 q(2,2) = 1" in text
        assert "obj: 4 q(1,1) + 1 q(1,2) + 2 q(2,1) + 6 q(2,2)" in text

    def test_load_json(self, tmp_path):
        """Test a JSON file; string keys are found through the str() fallback."""
        document = diet_document()
        document["parameters"]["weights"] = {"1": 2, "2": 3}
        document["variables"].append({"name": "w", "over": ["k in range(1, 3)"]})
        document["constraints"].append({"over": ["k in range(1, 3)"], "expr": "weights[k] * w(k) <= 6"})
        path = tmp_path / "diet.json"
        path.write_text(json.dumps(document))
        model = load_model_file(path)
        assert model.n_constraints == 3
        lhs, rhs = list(model.constraints.values())[2].normalized()
        assert dict(lhs.linear_terms()) == {"w(2)": 3}

    def test_invalid_documents(self, tmp_path):
        """Test schema, file type and parse errors surface as ModelSpecError."""
        with pytest.raises(ModelSpecError):
            from_structured({"variables": [{"type": "binary"}]})
        with pytest.raises(ModelSpecError):
            parse_spec(["not", "a", "mapping"])
        with pytest.raises(ModelSpecError):
            load_model_file(tmp_path / "missing.yaml")
        bad = tmp_path / "model.txt"
        bad.write_text("variables: []")
        with pytest.raises(ModelSpecError):
            load_model_file(bad)
        broken = tmp_path / "broken.yaml"
        broken.write_text("variables: [\n")
        with pytest.raises(ModelSpecError):
            load_model_file(broken)

    def test_expression_errors_propagate(self):
        """Test parse and compile errors keep their own types."""
        with pytest.raises(ExpressionSyntaxError):
            from_structured({"variables": [{"name": "x"}], "objective": {"expr": "x +"}})
        with pytest.raises(UndefinedVariableError):
            from_structured({"variables": [{"name": "x"}], "objective": {"expr": "x + y"}})

    def test_empty_yaml(self, tmp_path):
        """Test an empty file gives an empty model."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        model = load_model_file(path)
        assert model.n_variables == 0

    def test_pairs_from_document(self):
        """Test a family over list pairs, as JSON and YAML spell tuples."""
        model = from_structured(
            {
                "parameters": {"arcs": [[1, 2], [2, 3]], "cap": {"1": 4, "2": 5}},
                "variables": [{"name": "f", "over": ["a in arcs"], "min": 0}],
                "constraints": [{"over": ["a in arcs"], "expr": "f(a) <= cap[a[0]]"}],
                "objective": {"expr": "sum(f(a) for a in arcs)", "direction": "maximize"},
            }
        )
        assert model.n_variables == 2
        text = to_lp_string(model)
        assert "  c00000000: 1 f((1,_2)) <= 4" in text
        assert "  c00000001: 1 f((2,_3)) <= 5" in text
        assert "obj: 1 f((1,_2)) + 1 f((2,_3))" in text
