"""
Error taxonomy for the model compiler and solver adapters.

Every error derives from ModelError and, where it fits, from the matching
builtin (NameError, ValueError, ...) so callers can catch either. Errors are
raised at the point of detection and carry the context needed to fix the
model: the offending name, the available alternatives, the operator and
operands involved.
"""

from typing import Any, Iterable, Optional, Sequence


def _preview(names: Iterable[Any], limit: int = 20) -> str:
    names = [str(n) for n in names]
    if not names:
        return "none"
    if len(names) > limit:
        return ", ".join(names[:limit]) + f", ... ({len(names) - limit} more)"
    return ", ".join(names)


class ModelError(Exception):
    """Base class for all linmodel errors."""


# =============================================================================
# Compilation errors
# =============================================================================

class UndefinedSymbolError(ModelError, NameError):
    """A symbol is neither bound by a generator nor an external parameter."""

    def __init__(
        self,
        name: str,
        bindings: Sequence[str] = (),
        parameters: Sequence[str] = (),
    ):
        self.name = name
        self.bindings = list(bindings)
        self.parameters = list(parameters)
        super().__init__(
            f"Undefined symbol '{name}'. "
            f"Bound symbols: {_preview(self.bindings)}. "
            f"Parameters: {_preview(self.parameters)}."
        )


class UndefinedVariableError(ModelError, NameError):
    """An expression references a variable that was never declared."""

    def __init__(
        self,
        name: str,
        variables: Sequence[str] = (),
        symbols: Sequence[str] = (),
        detail: Optional[str] = None,
    ):
        self.name = name
        self.variables = list(variables)
        self.symbols = list(symbols)
        message = f"Undefined variable '{name}'"
        if detail:
            message += f" ({detail})"
        message += (
            f". Declared variables: {_preview(self.variables)}. "
            f"Available symbols: {_preview(self.symbols)}."
        )
        super().__init__(message)


class NonlinearExpressionError(ModelError, ValueError):
    """A product or quotient of two non-constant expressions."""

    def __init__(self, operator: str, left: Any, right: Any):
        self.operator = operator
        self.left = left
        self.right = right
        super().__init__(
            f"Nonlinear expression: cannot apply '{operator}' to "
            f"'{left}' and '{right}'; at least one operand must be constant"
        )


class UnsupportedOperatorError(ModelError, ValueError):
    """Operator not allowed in the position it appears."""

    def __init__(self, operator: str, allowed: Sequence[str] = (), context: str = ""):
        self.operator = operator
        self.allowed = list(allowed)
        message = f"Unsupported operator '{operator}'"
        if context:
            message += f" in {context}"
        if self.allowed:
            message += f"; expected one of: {', '.join(self.allowed)}"
        super().__init__(message)


class IndexArityError(ModelError, ValueError):
    """Index tuple length does not match the family's declared arity."""

    def __init__(self, family: str, expected: int, got: int):
        self.family = family
        self.expected = expected
        self.got = got
        super().__init__(
            f"Variable family '{family}' takes {expected} index(es), got {got}"
        )


class EnumerationError(ModelError, TypeError):
    """A generator domain does not evaluate to something enumerable."""

    def __init__(self, symbol: str, domain: Any, kind: str):
        self.symbol = symbol
        self.domain = domain
        self.kind = kind
        super().__init__(
            f"Cannot iterate '{symbol}' over '{domain}': "
            f"{kind} is not a range, sequence or mapping"
        )


class AccessError(ModelError, LookupError):
    """Invalid key or index in a parameter container access."""

    def __init__(self, container: Any, key: Any, available: Optional[str] = None):
        self.container = container
        self.key = key
        self.available = available
        message = f"Cannot access {key!r} in '{container}'"
        if available:
            message += f" ({available})"
        super().__init__(message)


class EvaluationError(ModelError, TypeError):
    """A constant expression cannot be reduced to a value."""


class ExpressionSyntaxError(ModelError, ValueError):
    """Text could not be parsed into an expression tree."""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Cannot parse expression {text!r}: {reason}")


# =============================================================================
# Model construction errors
# =============================================================================

class DuplicateVariableError(ModelError, ValueError):
    """A concrete variable name or family index is declared twice."""

    def __init__(self, name: str, family: Optional[str] = None):
        self.name = name
        self.family = family
        message = f"Variable '{name}' is already declared"
        if family:
            message += f" (family '{family}')"
        super().__init__(message)


class DuplicateSymbolError(ModelError, ValueError):
    """The same generator symbol is bound twice in one declaration."""

    def __init__(self, symbol: str, owner: str):
        self.symbol = symbol
        self.owner = owner
        super().__init__(f"{owner} binds generator symbol '{symbol}' more than once")


class InvalidBoundError(ModelError, ValueError):
    """Variable bounds are inconsistent with its type or with each other."""


class InvalidDirectionError(ModelError, ValueError):
    """Objective direction is not 'minimize' or 'maximize'."""

    def __init__(self, direction: Any):
        self.direction = direction
        super().__init__(
            f"Invalid objective direction {direction!r}: "
            f"must be 'minimize' or 'maximize'"
        )


class ModelSpecError(ModelError, ValueError):
    """A structured model document is invalid."""


# =============================================================================
# Solver errors
# =============================================================================

class SolverError(ModelError):
    """Base class for solver adapter errors."""


class SolverUnavailableError(SolverError, RuntimeError):
    """The solver executable or library cannot be found."""

    def __init__(self, solver: str, detail: str = ""):
        self.solver = solver
        message = f"Solver '{solver}' is not available"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class SolverFailureError(SolverError, RuntimeError):
    """The solver process failed or produced no result file."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        output: str = "",
        model_text: str = "",
    ):
        self.returncode = returncode
        self.output = output
        self.model_text = model_text
        super().__init__(message)


class MalformedResultError(SolverError, ValueError):
    """The solver result file does not follow the expected grammar."""

    def __init__(self, reason: str, line_number: Optional[int] = None):
        self.reason = reason
        self.line_number = line_number
        if line_number is not None:
            super().__init__(f"Malformed solution file (line {line_number}): {reason}")
        else:
            super().__init__(f"Malformed solution file: {reason}")
