"""
Model construction operations.

Each function takes a Model and returns a new Model. A failing operation
raises before anything is returned, so the caller's Model is never left
half-updated.

Usage:
    from linmodel.expr.builder import family, over, irange, sym, total, _
    model = define(name="assignment")
    model = declare_family(model, "q", [over("i", irange(1, 2)), over("j", irange(1, 2))],
                           type="binary")
    model = declare_constraints(model, [over("i", irange(1, 2))],
                                total(family("q")[sym("i"), _]) == 1,
                                description="row {i}")
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from ..compiler.context import Context
from ..compiler.evaluator import evaluate
from ..compiler.expression import compile_constraint, compile_expression
from ..compiler.generators import expand, generator_symbols
from ..compiler.polynomial import Polynomial, add
from ..compiler.values import Number, Unbounded, kind_of
from ..errors import (
    DuplicateSymbolError,
    DuplicateVariableError,
    IndexArityError,
    InvalidBoundError,
    UnsupportedOperatorError,
)
from ..expr.nodes import CONSTRAINT_OPS, Clause, Compare, Node
from .problem import Direction, Model, constraint_id
from .variables import (
    VariableDefinition,
    VariableFamily,
    VariableType,
    default_name,
    format_template,
    sanitize_name,
)

logger = logging.getLogger(__name__)


def _as_node(expr: Any) -> Any:
    # builder Terms expose their node
    return getattr(expr, "node", expr)


def _bound_value(bound: Any, context: Context, which: str) -> Any:
    bound = _as_node(bound)
    if not isinstance(bound, Node):
        return bound
    value = evaluate(bound, context)
    if isinstance(value, Number):
        return value.value
    if isinstance(value, Unbounded):
        return None
    raise InvalidBoundError(
        f"{which} bound '{bound}' evaluates to {kind_of(value)}, expected a number"
    )


def declare_family(
    model: Model,
    name: str,
    clauses: Sequence[Clause] = (),
    type: Any = VariableType.CONTINUOUS,
    min: Any = None,
    max: Any = None,
    name_template: Optional[str] = None,
    description: Optional[str] = None,
) -> Model:
    """
    Declare a family of variables, one per binding of clauses.

    Args:
        model: Model to extend
        name: Family name, used by Index/WildcardIndex references
        clauses: Generator and Filter clauses; no clauses declares a scalar
        type: 'continuous', 'integer' or 'binary'
        min, max: Bounds; numbers or expressions evaluated per binding
        name_template: str.format template over the bindings, e.g.
            "ship_{i}_{j}". Defaults to name(v1,v2).
        description: Optional str.format template over the bindings

    Returns:
        New Model holding the family and its variables

    Raises:
        DuplicateSymbolError: a generator symbol repeats
        DuplicateVariableError: a concrete name or index already exists
        IndexArityError: family exists with a different number of indices
        InvalidBoundError: bounds violate the variable type
    """
    clauses = tuple(clauses)
    symbols = generator_symbols(clauses)
    repeated = [s for i, s in enumerate(symbols) if s in symbols[:i]]
    if repeated:
        raise DuplicateSymbolError(repeated[0], f"Family '{name}'")

    existing = model.families.get(name)
    if existing is not None and existing.arity != len(symbols):
        raise IndexArityError(name, existing.arity, len(symbols))

    variables = dict(model.variables)
    members = {}
    for context in expand(clauses, model.context()):
        key = tuple(context.bindings[s] for s in symbols)
        if key in members or (existing is not None and key in existing):
            raise DuplicateVariableError(default_name(name, key), family=name)

        if name_template is None:
            raw_name = default_name(name, key)
        else:
            raw_name = format_template(name_template, context, "name template")
        var_name = sanitize_name(raw_name)
        if var_name in variables:
            raise DuplicateVariableError(var_name, family=name)

        variables[var_name] = VariableDefinition.create(
            var_name,
            type=type,
            min=_bound_value(min, context, "lower"),
            max=_bound_value(max, context, "upper"),
            description=(
                format_template(description, context, "description")
                if description else None
            ),
            family=name,
            index=key,
        )
        members[key] = Polynomial.variable(var_name)

    family = existing or VariableFamily(name, len(symbols), symbols)
    families = dict(model.families)
    families[name] = family.with_members(members)

    logger.debug(f"Declared family '{name}' with {len(members)} variable(s)")
    return model.evolve(
        variables=variables,
        families=families,
        variable_counter=model.variable_counter + len(members),
    )


def declare_variable(
    model: Model,
    name: str,
    type: Any = VariableType.CONTINUOUS,
    min: Any = None,
    max: Any = None,
    description: Optional[str] = None,
) -> Model:
    """Declare a single scalar variable."""
    return declare_family(model, name, (), type=type, min=min, max=max, description=description)


def declare_constraints(
    model: Model,
    clauses: Sequence[Clause],
    expr: Any,
    description: Optional[str] = None,
) -> Model:
    """
    Add one constraint per binding of clauses.

    Args:
        model: Model to extend
        clauses: Generator and Filter clauses (empty for a single constraint)
        expr: Comparison node (==, <=, >=) or builder Term
        description: str.format template over the bindings, e.g. "row {i}".
            Also used as the constraint name.

    Returns:
        New Model with the constraints appended under sequential ids

    Raises:
        UnsupportedOperatorError: expr is not a ==, <= or >= comparison
    """
    node = _as_node(expr)
    if not isinstance(node, Compare):
        raise UnsupportedOperatorError(
            type(node).__name__, CONSTRAINT_OPS, f"constraint '{node}' (expected a comparison)"
        )

    constraints = dict(model.constraints)
    counter = model.constraint_counter
    added = 0
    for context in expand(tuple(clauses), model.context()):
        constraint = compile_constraint(node, context, model)
        if description:
            text = format_template(description, context, "description")
            constraint = replace(constraint, name=text, description=text)
        constraints[constraint_id(counter)] = constraint
        counter += 1
        added += 1

    logger.debug(f"Added {added} constraint(s) for '{node}'")
    return model.evolve(constraints=constraints, constraint_counter=counter)


def set_objective(model: Model, expr: Any, direction: Any) -> Model:
    """
    Set the objective, compiled with empty bindings.

    Raises:
        InvalidDirectionError: direction is not 'minimize' or 'maximize'
    """
    parsed = Direction.parse(direction)
    objective = compile_expression(_as_node(expr), model.context(), model)
    logger.debug(f"Objective set to {parsed.value} {objective}")
    return model.evolve(objective=objective, direction=parsed)


def add_to_objective(model: Model, expr: Any) -> Model:
    """Add expr to the current objective."""
    increment = compile_expression(_as_node(expr), model.context(), model)
    return model.evolve(objective=add(model.objective, increment))


# =============================================================================
# Operation records for modify()
# =============================================================================

@dataclass(frozen=True)
class DeclareFamily:
    name: str
    clauses: Tuple[Clause, ...] = ()
    type: Any = VariableType.CONTINUOUS
    min: Any = None
    max: Any = None
    name_template: Optional[str] = None
    description: Optional[str] = None

    def apply(self, model: Model) -> Model:
        return declare_family(
            model,
            self.name,
            self.clauses,
            type=self.type,
            min=self.min,
            max=self.max,
            name_template=self.name_template,
            description=self.description,
        )


@dataclass(frozen=True)
class DeclareConstraints:
    expr: Any
    clauses: Tuple[Clause, ...] = ()
    description: Optional[str] = None

    def apply(self, model: Model) -> Model:
        return declare_constraints(model, self.clauses, self.expr, self.description)


@dataclass(frozen=True)
class SetObjective:
    expr: Any
    direction: Any = Direction.MINIMIZE

    def apply(self, model: Model) -> Model:
        return set_objective(model, self.expr, self.direction)


@dataclass(frozen=True)
class AddToObjective:
    expr: Any

    def apply(self, model: Model) -> Model:
        return add_to_objective(model, self.expr)


def modify(model: Model, operations: Iterable[Any]) -> Model:
    """
    Apply operations in order to an existing Model.

    Earlier variables and constraints are always kept; redeclaring a
    variable name raises DuplicateVariableError.
    """
    for operation in operations:
        if not hasattr(operation, "apply"):
            raise TypeError(f"Not a model operation: {operation!r}")
        model = operation.apply(model)
    return model


def define(
    operations: Iterable[Any] = (),
    name: Optional[str] = None,
    parameters: Optional[Mapping[str, Any]] = None,
) -> Model:
    """Build a new Model from operations, with the given external parameters."""
    model = modify(Model.new(name=name, parameters=parameters), operations)
    logger.info(
        f"Defined model '{name or 'unnamed'}': {model.n_variables} variables, "
        f"{model.n_constraints} constraints"
    )
    return model
