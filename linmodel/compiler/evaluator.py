"""
Constant evaluator.

Reduces an expression node to a Value using the generator bindings and the
external parameters of a Context. Used for generator domains, filter
predicates, index positions, variable bounds and the constant parts of
constraint expressions.
"""

import operator
from typing import Any, Callable, Dict

from ..errors import (
    AccessError,
    EvaluationError,
    UndefinedSymbolError,
)
from ..expr.nodes import (
    WILDCARD,
    Access,
    BinOp,
    Collection,
    Compare,
    Constant,
    Index,
    Logical,
    Node,
    Not,
    Range,
    Ref,
    Sum,
    UnaryMinus,
    WildcardIndex,
)
from .context import Context
from .values import (
    Mapping,
    Number,
    Sequence,
    Unbounded,
    Value,
    kind_of,
    to_number,
    to_value,
)

_ARITHMETIC: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
    "**": operator.pow,
}

_COMPARISON: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def evaluate(node: Node, context: Context) -> Value:
    """
    Evaluate node to a constant Value.

    Args:
        node: Expression node
        context: Bindings and parameters

    Returns:
        Number, Text, Sequence, Mapping or Unbounded

    Raises:
        UndefinedSymbolError: a symbol is neither bound nor a parameter
        AccessError: invalid container key or index
        EvaluationError: node is not a constant (variable reference,
            arithmetic on non-numbers or on an unbounded value)
    """
    handler = _HANDLERS.get(type(node))
    if handler is None:
        if node is WILDCARD:
            raise EvaluationError("Wildcard '_' is only valid as a variable index")
        raise EvaluationError(f"Cannot evaluate {node!r} as a constant")
    return handler(node, context)


def evaluate_number(node: Node, context: Context, what: str = "expression"):
    """Evaluate node and require a number."""
    return to_number(evaluate(node, context), f"{what} '{node}'")


def is_true(value: Value) -> bool:
    """Truth value of an evaluated filter predicate."""
    if isinstance(value, Number):
        return bool(value.value)
    if isinstance(value, Unbounded):
        return True
    return bool(value.raw)


def resolve_symbol(name: str, context: Context) -> Value:
    """Look name up in bindings, then parameters."""
    found, raw = context.lookup(name)
    if not found:
        raise UndefinedSymbolError(
            name,
            bindings=list(context.bindings),
            parameters=list(context.parameters),
        )
    return to_value(raw)


def lookup(container: Value, key: Any, label: str) -> Value:
    """
    Single container access.

    Sequences take integer positions. Mappings take the key itself and fall
    back to its string form.
    """
    if isinstance(container, Mapping):
        entries = container.entries
        try:
            if key in entries:
                return to_value(entries[key])
        except TypeError:
            raise AccessError(label, key, "key is not hashable") from None
        if not isinstance(key, str) and str(key) in entries:
            return to_value(entries[str(key)])
        keys = [repr(k) for k in list(entries)[:20]]
        suffix = ", ..." if len(entries) > 20 else ""
        raise AccessError(label, key, f"available keys: {', '.join(keys)}{suffix}")

    if isinstance(container, Sequence):
        position = key
        if isinstance(position, float) and position.is_integer():
            position = int(position)
        if isinstance(position, bool) or not isinstance(position, int):
            raise AccessError(
                label, key, f"sequence of size {len(container)} needs an integer index"
            )
        if 0 <= position < len(container):
            return to_value(container.items[position])
        raise AccessError(label, key, f"index out of range for size {len(container)}")

    raise AccessError(label, key, f"{kind_of(container)} is not a container")


# =============================================================================
# Node handlers
# =============================================================================

def _eval_constant(node: Constant, context: Context) -> Value:
    return to_value(node.value)


def _eval_ref(node: Ref, context: Context) -> Value:
    return resolve_symbol(node.name, context)


def _access_key(node: Node, context: Context) -> Any:
    if isinstance(node, Ref) and node.name not in context:
        # bare identifier used as a key name: foods[bread], food.price
        return node.name
    if isinstance(node, Collection):
        return tuple(evaluate(item, context).raw for item in node.items)
    value = evaluate(node, context)
    if isinstance(value, Sequence):
        return tuple(value.items)
    return value.raw


def _eval_access(node: Access, context: Context) -> Value:
    container = evaluate(node.container, context)
    key = _access_key(node.key, context)
    return lookup(container, key, str(node.container))


def _eval_index(node: Index, context: Context) -> Value:
    # a call-style reference that is not a variable family: cost(i, j)
    container = resolve_symbol(node.name, context)
    label = node.name
    for index in node.indices:
        if index is WILDCARD:
            raise EvaluationError(
                f"'{node}' uses a wildcard but '{node.name}' is not a variable family"
            )
        container = lookup(container, _access_key(index, context), label)
        label = f"{label}[{index}]"
    return container


def _eval_wildcard_index(node: WildcardIndex, context: Context) -> Value:
    raise EvaluationError(
        f"'{node}' is a wildcard variable reference, not a constant"
    )


def _eval_binop(node: BinOp, context: Context) -> Value:
    left = to_number(evaluate(node.left, context), f"left operand of '{node}'")
    right = to_number(evaluate(node.right, context), f"right operand of '{node}'")
    try:
        result = _ARITHMETIC[node.op](left, right)
    except ZeroDivisionError:
        raise ZeroDivisionError(f"division by zero in '{node}'") from None
    if isinstance(result, complex):
        raise EvaluationError(f"'{node}' has a complex result")
    return Number(result)


def _eval_unary_minus(node: UnaryMinus, context: Context) -> Value:
    value = evaluate(node.operand, context)
    if isinstance(value, Unbounded):
        return value.negated()
    return Number(-to_number(value, f"operand of '{node}'"))


def _eval_compare(node: Compare, context: Context) -> Value:
    left = evaluate(node.left, context)
    right = evaluate(node.right, context)
    if node.op in ("==", "!="):
        if isinstance(left, Unbounded) and isinstance(right, Unbounded):
            return Number(_COMPARISON[node.op](left, right))
        return Number(_COMPARISON[node.op](left.raw, right.raw))
    if isinstance(left, Unbounded) or isinstance(right, Unbounded):
        raise EvaluationError(f"'{node}': cannot order an unbounded value")
    try:
        return Number(_COMPARISON[node.op](left.raw, right.raw))
    except TypeError:
        raise EvaluationError(
            f"'{node}': cannot compare {kind_of(left)} with {kind_of(right)}"
        ) from None


def _eval_logical(node: Logical, context: Context) -> Value:
    if node.op == "and":
        for operand in node.operands:
            if not is_true(evaluate(operand, context)):
                return Number(False)
        return Number(True)
    for operand in node.operands:
        if is_true(evaluate(operand, context)):
            return Number(True)
    return Number(False)


def _eval_not(node: Not, context: Context) -> Value:
    return Number(not is_true(evaluate(node.operand, context)))


def _integer(node: Node, context: Context, what: str) -> int:
    value = to_number(evaluate(node, context), what)
    if isinstance(value, float):
        if not value.is_integer():
            raise EvaluationError(f"{what} must be an integer, got {value}")
        value = int(value)
    return int(value)


def _eval_range(node: Range, context: Context) -> Value:
    start = _integer(node.start, context, f"range start '{node.start}'")
    stop = _integer(node.stop, context, f"range stop '{node.stop}'")
    step = _integer(node.step, context, f"range step '{node.step}'")
    if step == 0:
        raise EvaluationError(f"'{node}': range step must not be zero")
    return Sequence(range(start, stop, step))


def _eval_collection(node: Collection, context: Context) -> Value:
    return Sequence(tuple(evaluate(item, context).raw for item in node.items))


def _eval_sum(node: Sum, context: Context) -> Value:
    from .generators import expand

    result = 0
    for inner in expand(node.clauses, context):
        result += to_number(evaluate(node.body, inner), f"term of '{node}'")
    return Number(result)


_HANDLERS: Dict[type, Callable[[Any, Context], Value]] = {
    Constant: _eval_constant,
    Ref: _eval_ref,
    Access: _eval_access,
    Index: _eval_index,
    WildcardIndex: _eval_wildcard_index,
    BinOp: _eval_binop,
    UnaryMinus: _eval_unary_minus,
    Compare: _eval_compare,
    Logical: _eval_logical,
    Not: _eval_not,
    Range: _eval_range,
    Collection: _eval_collection,
    Sum: _eval_sum,
}
