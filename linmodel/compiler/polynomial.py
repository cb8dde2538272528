"""
Sparse polynomial algebra.

A Polynomial maps monomials (tuples of variable names) to numeric
coefficients. The empty tuple is the constant term, one-element tuples are
linear terms. Zero coefficients are never stored.

The algebra needed by the compiler is exactly add(), scale(), is_constant()
and split_constant(); there is no polynomial-by-polynomial product.
"""

from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

Monomial = Tuple[str, ...]
Coefficient = Union[int, float]

CONSTANT: Monomial = ()


def _normalize(coefficient):
    # numpy scalars and bools become plain Python numbers
    if isinstance(coefficient, bool):
        return int(coefficient)
    if isinstance(coefficient, (int, float)):
        return coefficient
    if hasattr(coefficient, "item"):
        return coefficient.item()
    return coefficient


class Polynomial:
    """Immutable sparse polynomial with structural equality."""

    __slots__ = ("_terms", "_hash")

    def __init__(self, terms: Optional[Mapping[Monomial, Coefficient]] = None):
        cleaned: Dict[Monomial, Coefficient] = {}
        if terms:
            for monomial, coefficient in terms.items():
                coefficient = _normalize(coefficient)
                if coefficient != 0:
                    cleaned[tuple(monomial)] = coefficient
        self._terms = cleaned
        self._hash = None

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def zero(cls) -> "Polynomial":
        return cls()

    @classmethod
    def constant(cls, value: Coefficient) -> "Polynomial":
        return cls({CONSTANT: value})

    @classmethod
    def variable(cls, name: str, coefficient: Coefficient = 1) -> "Polynomial":
        return cls({(name,): coefficient})

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    @property
    def terms(self) -> Dict[Monomial, Coefficient]:
        """Copy of the monomial -> coefficient map."""
        return dict(self._terms)

    def items(self) -> Iterator[Tuple[Monomial, Coefficient]]:
        return iter(self._terms.items())

    def coefficient(self, monomial: Monomial) -> Coefficient:
        return self._terms.get(tuple(monomial), 0)

    @property
    def constant_term(self) -> Coefficient:
        return self._terms.get(CONSTANT, 0)

    def is_zero(self) -> bool:
        return not self._terms

    def is_constant(self) -> bool:
        return is_constant(self)

    def degree(self) -> int:
        return max((len(m) for m in self._terms), default=0)

    def variables(self) -> Tuple[str, ...]:
        """Variable names in first-appearance order."""
        seen: Dict[str, None] = {}
        for monomial in self._terms:
            for name in monomial:
                seen.setdefault(name, None)
        return tuple(seen)

    def linear_terms(self) -> Iterator[Tuple[str, Coefficient]]:
        """(name, coefficient) pairs of the arity-1 terms, in order."""
        for monomial, coefficient in self._terms.items():
            if len(monomial) == 1:
                yield monomial[0], coefficient

    def evaluate(self, values: Mapping[str, float]) -> float:
        """Value of the polynomial given variable values."""
        total = 0.0
        for monomial, coefficient in self._terms.items():
            product = coefficient
            for name in monomial:
                product *= values[name]
            total += product
        return total

    # -------------------------------------------------------------------------
    # Operators (delegate to add/scale)
    # -------------------------------------------------------------------------

    def __add__(self, other):
        if isinstance(other, (int, float)):
            other = Polynomial.constant(other)
        if not isinstance(other, Polynomial):
            return NotImplemented
        return add(self, other)

    __radd__ = __add__

    def __neg__(self):
        return scale(self, -1)

    def __sub__(self, other):
        if isinstance(other, (int, float)):
            other = Polynomial.constant(other)
        if not isinstance(other, Polynomial):
            return NotImplemented
        return add(self, scale(other, -1))

    def __rsub__(self, other):
        if isinstance(other, (int, float)):
            return add(Polynomial.constant(other), scale(self, -1))
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, (int, float)):
            return scale(self, other)
        return NotImplemented

    __rmul__ = __mul__

    def __eq__(self, other):
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self):
        if self._hash is None:
            self._hash = hash(frozenset(self._terms.items()))
        return self._hash

    def __bool__(self) -> bool:
        return bool(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __repr__(self) -> str:
        return f"Polynomial({self})"

    def __str__(self) -> str:
        if not self._terms:
            return "0"
        parts = []
        for monomial, coefficient in self._terms.items():
            if not monomial:
                parts.append(f"{coefficient}")
            else:
                parts.append(f"{coefficient}*{'*'.join(monomial)}")
        return " + ".join(parts)


# =============================================================================
# Algebra
# =============================================================================

def add(p: Polynomial, q: Polynomial) -> Polynomial:
    """Union of monomials with coefficients summed; zero terms pruned."""
    terms = dict(p._terms)
    for monomial, coefficient in q._terms.items():
        terms[monomial] = terms.get(monomial, 0) + coefficient
    return Polynomial(terms)


def scale(p: Polynomial, c: Coefficient) -> Polynomial:
    """Multiply every coefficient by c. scale(p, 0) is the zero polynomial."""
    c = _normalize(c)
    if c == 0:
        return Polynomial()
    if c == 1:
        return p
    return Polynomial({m: coefficient * c for m, coefficient in p._terms.items()})


def is_constant(p: Polynomial) -> bool:
    """True iff the only monomial (if any) has arity 0."""
    return all(len(monomial) == 0 for monomial in p._terms)


def split_constant(p: Polynomial) -> Tuple[Polynomial, Coefficient]:
    """Separate the constant term: returns (p without constant, constant)."""
    rest = {m: c for m, c in p._terms.items() if m != CONSTANT}
    return Polynomial(rest), p._terms.get(CONSTANT, 0)


def total(polynomials: Iterable[Polynomial]) -> Polynomial:
    """Sum of polynomials, starting from zero."""
    terms: Dict[Monomial, Coefficient] = {}
    for p in polynomials:
        for monomial, coefficient in p._terms.items():
            terms[monomial] = terms.get(monomial, 0) + coefficient
    return Polynomial(terms)
