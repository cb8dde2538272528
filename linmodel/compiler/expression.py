"""
Expression compiler.

Turns expression nodes into Polynomials against a Model's variables and a
Context's bindings and parameters. Only linear combinations are accepted: a
product or quotient needs at least one constant operand.
"""

import operator
from typing import TYPE_CHECKING, Any, Callable, Dict, Sequence as SequenceType, Tuple

from ..errors import (
    EvaluationError,
    IndexArityError,
    NonlinearExpressionError,
    UndefinedSymbolError,
    UndefinedVariableError,
    UnsupportedOperatorError,
)
from ..expr.nodes import (
    CONSTRAINT_OPS,
    UNBOUNDED,
    WILDCARD,
    Access,
    BinOp,
    Collection,
    Compare,
    Constant,
    Index,
    Node,
    Ref,
    Sum,
    UnaryMinus,
    WildcardIndex,
)
from .context import Context
from .evaluator import evaluate
from .generators import expand
from .polynomial import Polynomial, add, is_constant, scale, total
from .values import Number, Sequence, Unbounded, Value, as_key, kind_of

if TYPE_CHECKING:
    from ..model.constraint import Constraint
    from ..model.problem import Model
    from ..model.variables import VariableFamily

_CONSTANT_ONLY_OPS: Dict[str, Callable[[Any, Any], Any]] = {
    "//": operator.floordiv,
    "%": operator.mod,
    "**": operator.pow,
}


def compile_expression(node: Node, context: Context, model: "Model") -> Polynomial:
    """
    Compile an arithmetic expression to a Polynomial.

    Args:
        node: Expression node (not a comparison)
        context: Bindings and parameters
        model: Model whose variables and families are referenced

    Returns:
        Polynomial; constants become constant polynomials

    Raises:
        UndefinedVariableError: unknown name or missing family member
        NonlinearExpressionError: product/quotient of two non-constants
        UnsupportedOperatorError: comparison inside an arithmetic expression
        IndexArityError: wrong number of indices for a family
    """
    return _compile(node, context, model, False)


def compile_constraint(node: Node, context: Context, model: "Model") -> "Constraint":
    """
    Compile a comparison to a Constraint.

    The right-hand side may evaluate to the unbounded value, which is kept
    as the UNBOUNDED sentinel. Only "<= inf" and ">= -inf" are accepted.

    Raises:
        UnsupportedOperatorError: node is not a ==, <= or >= comparison, or
            an infinity sits on the unsatisfiable side
    """
    from ..model.constraint import Constraint, ConstraintOperator

    if not isinstance(node, Compare):
        raise UnsupportedOperatorError(
            type(node).__name__, CONSTRAINT_OPS, f"constraint '{node}' (expected a comparison)"
        )
    op = ConstraintOperator.parse(node.op)
    left = _compile(node.left, context, model, False)
    right = _compile(node.right, context, model, True)
    if isinstance(right, Unbounded):
        sign = "-" if right.negative else "+"
        if (op is ConstraintOperator.LE and right.negative) or (
            op is ConstraintOperator.GE and not right.negative
        ):
            # x <= -inf and x >= inf can never hold
            raise UnsupportedOperatorError(
                op.value,
                (">=",) if right.negative else ("<=",),
                f"constraint '{node}' with a {sign}inf right-hand side",
            )
        right = UNBOUNDED
    return Constraint(left, op, right)


def resolve_pattern(indices: SequenceType[Any], context: Context) -> Tuple[Any, ...]:
    """Evaluate index positions; WILDCARD positions stay as they are."""
    resolved = []
    for index in indices:
        if index is WILDCARD:
            resolved.append(WILDCARD)
        elif isinstance(index, Node):
            value = evaluate(index, context)
            if isinstance(value, Sequence):
                resolved.append(as_key(tuple(value.items)))
            else:
                resolved.append(value.raw)
        else:
            resolved.append(index)
    return tuple(resolved)


def family_lookup(
    family: "VariableFamily",
    pattern: Tuple[Any, ...],
    context: Context,
) -> Polynomial:
    """
    Concrete member of family, or the sum of all members matching pattern
    when it contains wildcards (zero polynomial when nothing matches).
    """
    from ..model.variables import default_name

    if len(pattern) != family.arity:
        raise IndexArityError(family.name, family.arity, len(pattern))
    if not any(p is WILDCARD for p in pattern):
        polynomial = family.get(pattern)
        if polynomial is None:
            raise UndefinedVariableError(
                default_name(family.name, pattern),
                variables=[default_name(family.name, k) for k in family.keys()],
                symbols=list(context.symbols()),
                detail=f"family '{family.name}' has no member at index {pattern!r}",
            )
        return polynomial
    return total(polynomial for _, polynomial in family.match(pattern))


# =============================================================================
# Node handlers
# =============================================================================

def _compile(node: Node, context: Context, model: "Model", rhs: bool):
    handler = _HANDLERS.get(type(node))
    if handler is None:
        if node is WILDCARD:
            raise EvaluationError("Wildcard '_' is only valid as a variable index")
        return _as_constant(evaluate(node, context), node, rhs)
    return handler(node, context, model, rhs)


def _as_constant(value: Value, node: Node, rhs: bool):
    if isinstance(value, Number):
        return Polynomial.constant(value.value)
    if isinstance(value, Unbounded):
        if rhs:
            return value
        raise EvaluationError(
            f"'{node}' is unbounded; an unbounded value may only appear "
            f"as the right-hand side of a constraint"
        )
    raise EvaluationError(
        f"'{node}' evaluates to {kind_of(value)} {value.raw!r}, "
        f"expected a number or a variable expression"
    )


def _compile_constant(node: Constant, context: Context, model: "Model", rhs: bool):
    return _as_constant(evaluate(node, context), node, rhs)


def _compile_ref(node: Ref, context: Context, model: "Model", rhs: bool):
    name = node.name
    if name in model.variables:
        return Polynomial.variable(name)
    family = model.families.get(name)
    if family is not None:
        # bare family name: every member
        return total(family.members.values())
    try:
        value = evaluate(node, context)
    except UndefinedSymbolError:
        raise UndefinedVariableError(
            name,
            variables=list(model.variables),
            symbols=list(context.symbols()),
        ) from None
    return _as_constant(value, node, rhs)


def _compile_index(node: Index, context: Context, model: "Model", rhs: bool):
    family = model.families.get(node.name)
    if family is None:
        if node.name in context and not node.has_wildcard:
            return _as_constant(evaluate(node, context), node, rhs)
        raise UndefinedVariableError(
            node.name,
            variables=list(model.families),
            symbols=list(context.symbols()),
            detail="no such variable family",
        )
    return family_lookup(family, resolve_pattern(node.indices, context), context)


def _compile_wildcard_index(node: WildcardIndex, context: Context, model: "Model", rhs: bool):
    family = model.families.get(node.name)
    if family is None:
        raise UndefinedVariableError(
            node.name,
            variables=list(model.families),
            symbols=list(context.symbols()),
            detail="no such variable family",
        )
    return family_lookup(family, resolve_pattern(node.pattern, context), context)


def _compile_access(node: Access, context: Context, model: "Model", rhs: bool):
    container = node.container
    if (
        isinstance(container, Ref)
        and container.name in model.families
        and container.name not in context
    ):
        # x[i, j] written with brackets
        key = node.key
        indices = key.items if isinstance(key, Collection) else (key,)
        family = model.families[container.name]
        return family_lookup(family, resolve_pattern(indices, context), context)
    return _as_constant(evaluate(node, context), node, rhs)


def _compile_binop(node: BinOp, context: Context, model: "Model", rhs: bool):
    left = _compile(node.left, context, model, False)
    right = _compile(node.right, context, model, False)
    op = node.op

    if op == "+":
        return add(left, right)
    if op == "-":
        return add(left, scale(right, -1))
    if op == "*":
        if is_constant(left):
            return scale(right, left.constant_term)
        if is_constant(right):
            return scale(left, right.constant_term)
        raise NonlinearExpressionError(op, node.left, node.right)
    if op == "/":
        if not is_constant(right):
            raise NonlinearExpressionError(op, node.left, node.right)
        divisor = right.constant_term
        if divisor == 0:
            raise ZeroDivisionError(f"division by zero in '{node}'")
        return scale(left, 1 / divisor)

    if is_constant(left) and is_constant(right):
        try:
            value = _CONSTANT_ONLY_OPS[op](left.constant_term, right.constant_term)
        except ZeroDivisionError:
            raise ZeroDivisionError(f"division by zero in '{node}'") from None
        if isinstance(value, complex):
            raise EvaluationError(f"'{node}' has a complex result")
        return Polynomial.constant(value)
    raise NonlinearExpressionError(op, node.left, node.right)


def _compile_unary_minus(node: UnaryMinus, context: Context, model: "Model", rhs: bool):
    operand = _compile(node.operand, context, model, rhs)
    if isinstance(operand, Unbounded):
        return operand.negated()
    return scale(operand, -1)


def _compile_sum(node: Sum, context: Context, model: "Model", rhs: bool):
    return total(
        _compile(node.body, inner, model, False)
        for inner in expand(node.clauses, context)
    )


def _compile_compare(node: Compare, context: Context, model: "Model", rhs: bool):
    raise UnsupportedOperatorError(
        node.op, context=f"'{node}' (comparisons may only form constraints)"
    )


_HANDLERS: Dict[type, Callable[..., Any]] = {
    Constant: _compile_constant,
    Ref: _compile_ref,
    Index: _compile_index,
    WildcardIndex: _compile_wildcard_index,
    Access: _compile_access,
    BinOp: _compile_binop,
    UnaryMinus: _compile_unary_minus,
    Sum: _compile_sum,
    Compare: _compile_compare,
}
