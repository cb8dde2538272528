"""
Generator/binding engine.

Expands an ordered list of clauses into binding contexts. Clauses are nested
loops, first clause outermost. Each domain is evaluated against the bindings
built so far, so later domains may depend on earlier symbols. Filters prune a
branch as soon as they are reached.
"""

from typing import Iterable, Iterator, List, Sequence as SequenceType, Tuple

from ..errors import EnumerationError
from ..expr.nodes import Clause, Filter, Generator
from .context import Context
from .evaluator import evaluate, is_true
from .values import Mapping, Sequence, as_key, kind_of


def enumerate_domain(clause: Generator, context: Context) -> Iterable:
    """
    Values a generator clause iterates over under context.

    List elements are yielded as tuples so they can key a family.
    """
    domain = evaluate(clause.domain, context)
    if isinstance(domain, Sequence):
        return (as_key(item) for item in domain.items)
    if isinstance(domain, Mapping):
        return list(domain.entries.keys())
    raise EnumerationError(clause.symbol, clause.domain, kind_of(domain))


def _expand(clauses: Tuple[Clause, ...], position: int, context: Context) -> Iterator[Context]:
    if position == len(clauses):
        yield context
        return
    clause = clauses[position]
    if isinstance(clause, Filter):
        if is_true(evaluate(clause.predicate, context)):
            yield from _expand(clauses, position + 1, context)
        return
    for value in enumerate_domain(clause, context):
        yield from _expand(clauses, position + 1, context.bind(clause.symbol, value))


class BindingExpansion:
    """
    Restartable sequence of binding contexts.

    Iterating twice re-evaluates every domain; nothing is cached because
    domains may depend on bindings.
    """

    def __init__(self, clauses: SequenceType[Clause], context: Context):
        for clause in clauses:
            if not isinstance(clause, (Generator, Filter)):
                raise TypeError(f"Expected Generator or Filter clause, got {clause!r}")
        self.clauses = tuple(clauses)
        self.context = context

    @property
    def symbols(self) -> Tuple[str, ...]:
        """Generator symbols in declaration order."""
        return generator_symbols(self.clauses)

    def __iter__(self) -> Iterator[Context]:
        return _expand(self.clauses, 0, self.context)

    def to_list(self) -> List[Context]:
        return list(self)


def expand(clauses: SequenceType[Clause], context: Context) -> BindingExpansion:
    """
    Expand clauses into binding contexts.

    Args:
        clauses: Generator and Filter clauses, outermost first
        context: Outer bindings and parameters

    Returns:
        BindingExpansion yielding one Context per surviving combination

    Raises:
        EnumerationError: a domain is not a range, sequence or mapping
            (raised lazily, during iteration)
    """
    return BindingExpansion(clauses, context)


def generator_symbols(clauses: Iterable[Clause]) -> Tuple[str, ...]:
    return tuple(c.symbol for c in clauses if isinstance(c, Generator))
