"""Tests for variables, the immutable Model and model operations."""

import numpy as np
import pytest

from linmodel.compiler.polynomial import Polynomial
from linmodel.errors import (
    DuplicateSymbolError,
    DuplicateVariableError,
    IndexArityError,
    InvalidBoundError,
    InvalidDirectionError,
    UndefinedSymbolError,
    UndefinedVariableError,
    UnsupportedOperatorError,
)
from linmodel.expr.builder import _, family, irange, over, sym, total, var, where
from linmodel.expr.nodes import WILDCARD
from linmodel.expr.parser import parse_clauses, parse_expression
from linmodel.model.constraint import ConstraintOperator
from linmodel.model.matrix import to_standard_form
from linmodel.model.operations import (
    AddToObjective,
    DeclareConstraints,
    DeclareFamily,
    SetObjective,
    add_to_objective,
    declare_constraints,
    declare_family,
    declare_variable,
    define,
    modify,
    set_objective,
)
from linmodel.model.problem import Direction, Model, constraint_id
from linmodel.model.validation import validate_model
from linmodel.model.variables import (
    MAX_NAME_LENGTH,
    VariableDefinition,
    VariableFamily,
    VariableType,
    default_name,
    sanitize_name,
)

LP_NAME_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_!\"#$%&(),.;?@'~")


def assignment_model():
    """Assignment model: 2x2 binary q with one row constraint per i."""
    q, i = family("q"), sym("i")
    model = Model.new("assignment")
    model = declare_family(
        model, "q", [over("i", irange(1, 2)), over("j", irange(1, 2))], type="binary"
    )
    return declare_constraints(
        model, [over("i", irange(1, 2))], total(q[i, _]) == 1, description="row {i}"
    )


class TestSanitizeName:
    """Tests for LP identifier sanitization."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("x", "x"),
            ("q(1,2)", "q(1,2)"),
            ("ship from A", "ship_from_A"),
            ("1abc", "var_1abc"),
            (".5", "var_.5"),
            ("e12", "var_e12"),
            ("price[bread]", "price_bread"),
            ("___", "var"),
            ("", "var"),
            ("x/y*z", "x_y_z"),
        ],
    )
    def test_examples(self, raw, expected):
        """Test sanitization of representative names."""
        assert sanitize_name(raw) == expected

    @pytest.mark.parametrize(
        "raw", ["x", "1abc", "a b c", "[[x]]", "é", "e1e", "_9", "." * 10, "x" * 400, "a" * 254 + " b"]
    )
    def test_idempotent_and_charset(self, raw):
        """Test sanitize(sanitize(n)) == sanitize(n) and the result uses LP characters only."""
        once = sanitize_name(raw)
        assert sanitize_name(once) == once
        assert set(once) <= LP_NAME_CHARS
        assert 0 < len(once) <= MAX_NAME_LENGTH
        assert not once[0].isdigit()
        assert not once.startswith(".")

    def test_default_name(self):
        """Test member naming."""
        assert default_name("x", ()) == "x"
        assert default_name("q", (1, 2)) == "q(1,2)"
        assert default_name("q", (1.0, "a")) == "q(1,a)"


class TestVariableDefinition:
    """Tests for variable creation and bounds."""

    def test_binary_defaults(self):
        """Test binary variables default to [0, 1]."""
        definition = VariableDefinition.create("b", type="binary")
        assert definition.bounds == (0, 1)
        assert definition.is_integral

    def test_binary_partial_override(self):
        """Test an explicit bound overrides only its side."""
        assert VariableDefinition.create("b", type="binary", max=0).bounds == (0, 0)

    def test_fractional_integer_bound(self):
        """Test integer bounds must be whole."""
        with pytest.raises(InvalidBoundError):
            VariableDefinition.create("n", type="integer", min=0.5)
        assert VariableDefinition.create("n", type="integer", min=2.0).min == 2

    def test_inverted_bounds(self):
        """Test min > max is rejected."""
        with pytest.raises(InvalidBoundError):
            VariableDefinition.create("x", min=5, max=1)

    def test_infinite_bounds(self):
        """Test -inf lower and +inf upper mean unbounded."""
        definition = VariableDefinition.create("x", min=float("-inf"), max=float("inf"))
        assert definition.is_free
        with pytest.raises(InvalidBoundError):
            VariableDefinition.create("x", min=float("inf"))

    def test_numpy_bounds(self):
        """Test numpy scalar bounds."""
        assert VariableDefinition.create("x", min=np.float64(1.5)).min == 1.5

    def test_invalid_type(self):
        """Test unknown variable types."""
        with pytest.raises(ValueError):
            VariableDefinition.create("x", type="complex")
        assert VariableType.parse("INTEGER") is VariableType.INTEGER


class TestVariableFamily:
    """Tests for VariableFamily."""

    def test_match(self):
        """Test wildcard matching."""
        members = {(i, j): Polynomial.variable(f"q{i}{j}") for i in (1, 2) for j in (1, 2)}
        fam = VariableFamily("q", 2, ("i", "j"), members)
        assert [k for k, _p in fam.match((1, WILDCARD))] == [(1, 1), (1, 2)]
        assert len(list(fam.match((WILDCARD, WILDCARD)))) == 4
        assert (2, 2) in fam
        assert fam.get((3, 3)) is None

    def test_with_members_rejects_duplicates(self):
        """Test extending with an existing key."""
        fam = VariableFamily("x", 1, ("i",), {(1,): Polynomial.variable("x(1)")})
        with pytest.raises(DuplicateVariableError):
            fam.with_members({(1,): Polynomial.variable("x(1)")})
        with pytest.raises(IndexArityError):
            fam.with_members({(1, 2): Polynomial.variable("x(1,2)")})
        assert len(fam.with_members({(2,): Polynomial.variable("x(2)")})) == 2


class TestEndToEnd:
    """End-to-end model construction scenarios."""

    def test_binary_family_declaration(self):
        """Test a 2x2 binary family yields four [0, 1] variables."""
        model = declare_family(
            Model.new(), "q", [over("i", irange(1, 2)), over("j", irange(1, 2))], type="binary"
        )
        assert list(model.variables) == ["q(1,1)", "q(1,2)", "q(2,1)", "q(2,2)"]
        for definition in model.variables.values():
            assert definition.type is VariableType.BINARY
            assert definition.bounds == (0, 1)
        assert model.families["q"].arity == 2
        assert model.variable_counter == 4

    def test_wildcard_row_constraints(self):
        """Test sum(q(i, _)) == 1 over i in {1, 2} yields two row constraints."""
        model = assignment_model()
        assert model.n_constraints == 2
        first, second = model.constraints.values()
        for constraint, i in ((first, 1), (second, 2)):
            lhs, rhs = constraint.normalized()
            assert constraint.operator is ConstraintOperator.EQ
            assert dict(lhs.linear_terms()) == {f"q({i},1)": 1, f"q({i},2)": 1}
            assert rhs == 1
            assert constraint.name == f"row {i}"
        assert list(model.constraints) == [constraint_id(0), constraint_id(1)]

    def test_undeclared_symbol_leaves_model_unchanged(self):
        """Test an undeclared reference raises before any mutation."""
        model = assignment_model()
        snapshot = (dict(model.variables), dict(model.constraints), model.objective)
        with pytest.raises(UndefinedVariableError):
            declare_constraints(model, [over("i", irange(1, 2))], parse_expression("q(i, 1) + z <= 1"))
        with pytest.raises(UndefinedVariableError):
            set_objective(model, parse_expression("sum(q(_, _)) + z"), "maximize")
        with pytest.raises(UndefinedSymbolError):
            declare_family(model, "y", parse_clauses(["k in range(m)"]))
        assert (dict(model.variables), dict(model.constraints), model.objective) == snapshot
        assert model.direction is None


class TestOperations:
    """Tests for model operations."""

    def test_operations_return_new_models(self):
        """Test immutability of Model values."""
        empty = Model.new()
        one = declare_variable(empty, "x", min=0, max=10)
        assert empty.n_variables == 0
        assert one.n_variables == 1
        with pytest.raises(TypeError):
            one.variables["y"] = None

    def test_scalar_is_arity_zero_family(self):
        """Test scalars are families with the single key ()."""
        model = declare_variable(Model.new(), "x")
        assert model.families["x"].arity == 0
        assert list(model.families["x"].keys()) == [()]

    def test_bounds_from_parameters(self):
        """Test per-binding bound expressions."""
        model = Model.new(parameters={"cap": [5, 7]})
        model = declare_family(
            model, "x", parse_clauses(["i in range(2)"]), min=0, max=parse_expression("cap[i]")
        )
        assert [v.max for v in model.variables.values()] == [5, 7]

    def test_name_template_and_description(self):
        """Test concrete names and descriptions from templates."""
        model = Model.new(parameters={"cities": ["Oslo", "Rome"]})
        model = declare_family(
            model,
            "ship",
            parse_clauses(["c in cities"]),
            name_template="ship_{c}",
            description="shipment to {c}",
        )
        assert list(model.variables) == ["ship_Oslo", "ship_Rome"]
        assert model.variables["ship_Rome"].description == "shipment to Rome"
        assert model.variables["ship_Rome"].index == ("Rome",)

    def test_duplicate_declarations(self):
        """Test redeclaring names or indices raises."""
        model = declare_variable(Model.new(), "x")
        with pytest.raises(DuplicateVariableError):
            declare_variable(model, "x")
        model = declare_family(Model.new(), "y", parse_clauses(["i in [1, 2]"]))
        with pytest.raises(DuplicateVariableError):
            declare_family(model, "y", parse_clauses(["i in [2, 3]"]))
        with pytest.raises(DuplicateVariableError):
            declare_family(Model.new(), "z", parse_clauses(["i in [1, 1]"]))

    def test_family_extension(self):
        """Test a family can grow with new indices of the same arity."""
        model = declare_family(Model.new(), "y", parse_clauses(["i in [1, 2]"]))
        model = declare_family(model, "y", parse_clauses(["i in [3]"]))
        assert len(model.families["y"]) == 3
        with pytest.raises(IndexArityError):
            declare_family(model, "y", parse_clauses(["i in [4]", "j in [1]"]))

    def test_repeated_symbol_rejected(self):
        """Test a generator symbol cannot repeat within a family."""
        with pytest.raises(DuplicateSymbolError) as excinfo:
            declare_family(Model.new(), "y", parse_clauses(["i in [1]", "i in [2]"]))
        assert excinfo.value.symbol == "i"

    def test_family_over_pairs(self):
        """Test a domain of list pairs keys the family by tuples."""
        model = Model.new(parameters={"arcs": [[1, 2], [2, 3]]})
        model = declare_family(model, "f", parse_clauses(["a in arcs"]), min=0)
        assert set(model.families["f"].keys()) == {((1, 2),), ((2, 3),)}
        model = declare_constraints(
            model, parse_clauses(["a in arcs"]), parse_expression("f(a) <= a[1]")
        )
        rows = [c.normalized() for c in model.constraints.values()]
        assert [dict(lhs.linear_terms()) for lhs, rhs in rows] == [
            {"f((1,_2))": 1}, {"f((2,_3))": 1}
        ]
        assert [rhs for lhs, rhs in rows] == [2, 3]

    def test_filtered_family(self):
        """Test filters on family declarations."""
        model = declare_family(
            Model.new(),
            "x",
            [over("i", irange(1, 3)), over("j", irange(1, 3)), where(sym("i") != sym("j"))],
        )
        assert model.n_variables == 6
        assert "x(1,1)" not in model.variables

    def test_constraint_requires_comparison(self):
        """Test declare_constraints rejects non-comparisons."""
        model = declare_variable(Model.new(), "x")
        with pytest.raises(UnsupportedOperatorError):
            declare_constraints(model, [], var("x") + 1)

    def test_constraint_ids_continue(self):
        """Test ids keep counting across calls."""
        model = declare_variable(Model.new(), "x")
        model = declare_constraints(model, [], var("x") <= 1)
        model = declare_constraints(model, [], var("x") >= 0)
        assert list(model.constraints) == ["c00000000", "c00000001"]
        assert model.constraint_counter == 2

    def test_empty_generator_adds_nothing(self):
        """Test constraints over an empty domain."""
        model = declare_variable(Model.new(), "x")
        model = declare_constraints(model, parse_clauses(["i in range(0)"]), var("x") <= 1)
        assert model.n_constraints == 0

    def test_objective(self):
        """Test set_objective and add_to_objective."""
        model = declare_variable(declare_variable(Model.new(), "x"), "y")
        model = set_objective(model, var("x") + 1, "maximize")
        assert model.direction is Direction.MAXIMIZE
        model = add_to_objective(model, 2 * var("y"))
        assert model.objective == Polynomial({("x",): 1, ("y",): 2, (): 1})

    def test_invalid_direction(self):
        """Test directions other than minimize/maximize."""
        model = declare_variable(Model.new(), "x")
        with pytest.raises(InvalidDirectionError):
            set_objective(model, var("x"), "max")

    def test_modify_and_define(self):
        """Test operation records applied in order."""
        q, i = family("q"), sym("i")
        model = define(
            [
                DeclareFamily("q", (over("i", irange(1, 3)),), type="integer", min=0, max=5),
                DeclareConstraints(total(q[_]) <= 10),
                SetObjective(total(q[i], over("i", irange(1, 3))), "maximize"),
            ],
            name="small",
        )
        assert model.name == "small"
        assert model.n_variables == 3
        assert model.n_constraints == 1

        extended = modify(model, [DeclareFamily("r"), AddToObjective(var("r"))])
        assert extended.n_variables == 4
        assert "r" in extended.objective.variables()
        assert model.n_variables == 3
        with pytest.raises(DuplicateVariableError):
            modify(extended, [DeclareFamily("r")])
        with pytest.raises(TypeError):
            modify(model, ["not an operation"])

    def test_summary(self):
        """Test model summary counts."""
        summary = assignment_model().summary()
        assert summary["n_variables"] == 4
        assert summary["n_constraints"] == 2
        assert summary["variable_types"]["binary"] == 4


class TestValidation:
    """Tests for validate_model."""

    def test_valid_model(self):
        """Test a complete model."""
        model = set_objective(assignment_model(), total(family("q")[_, _]), "maximize")
        result = validate_model(model)
        assert result["valid"]
        assert result["errors"] == []

    def test_missing_direction_and_unused(self):
        """Test errors and warnings for an incomplete model."""
        model = declare_variable(Model.new(), "x")
        result = validate_model(model)
        assert not result["valid"]
        assert any("direction" in e for e in result["errors"])
        assert any("unused" in w for w in result["warnings"])

    def test_infeasible_constant_constraint(self):
        """Test a constraint without variables that never holds."""
        model = declare_variable(Model.new(), "x")
        model = declare_constraints(model, [], parse_expression("0 * x >= 1"))
        model = set_objective(model, var("x"), "minimize")
        result = validate_model(model)
        assert not result["valid"]
        assert any("never satisfied" in e for e in result["errors"])


class TestStandardForm:
    """Tests for the matrix export."""

    def test_matrix(self):
        """Test A, c, bounds and integrality."""
        model = declare_variable(Model.new(), "x", min=0, max=4)
        model = declare_variable(model, "y", type="integer", min=0)
        model = declare_constraints(model, [], parse_expression("x + 2 * y <= 8"))
        model = declare_constraints(model, [], parse_expression("x - y >= -inf"))
        model = set_objective(model, parse_expression("3 * x + y + 1"), "maximize")

        form = to_standard_form(model)
        assert form.variable_names == ["x", "y"]
        assert form.A.toarray().tolist() == [[1.0, 2.0], [1.0, -1.0]]
        assert form.row_upper[0] == 8
        assert form.row_lower[1] == -np.inf
        assert form.c.tolist() == [3.0, 1.0]
        assert form.objective_offset == 1.0
        assert form.upper.tolist() == [4.0, np.inf]
        assert form.integrality.tolist() == [0, 1]
        assert form.objective_value(np.array([1.0, 2.0])) == 6.0
