"""
Matrix (standard form) export of a compiled model.

    min/max  c @ x + offset
    s.t.     row_lower <= A @ x <= row_upper
             lower <= x <= upper
             x[j] integral where integrality[j] == 1

A is a scipy.sparse CSR matrix built from COO triplets.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import scipy.sparse as sp

from ..expr.nodes import UNBOUNDED
from .constraint import ConstraintOperator
from .problem import Direction, Model

logger = logging.getLogger(__name__)


@dataclass
class StandardForm:
    """Dense vectors and sparse constraint matrix of a model."""

    variable_names: List[str]
    row_ids: List[str]
    c: np.ndarray
    objective_offset: float
    direction: Direction
    A: sp.csr_matrix
    row_lower: np.ndarray
    row_upper: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    integrality: np.ndarray

    @property
    def n_variables(self) -> int:
        return len(self.variable_names)

    @property
    def n_rows(self) -> int:
        return len(self.row_ids)

    def column(self, name: str) -> int:
        return self.variable_names.index(name)

    def objective_value(self, x: np.ndarray) -> float:
        return float(self.c @ x + self.objective_offset)


def to_standard_form(model: Model) -> StandardForm:
    """
    Build the StandardForm of model.

    Unbounded right-hand sides and missing variable bounds become +/- inf.
    """
    names = list(model.variables)
    columns: Dict[str, int] = {name: j for j, name in enumerate(names)}
    n = len(names)

    c = np.zeros(n)
    for name, coefficient in model.objective.linear_terms():
        c[columns[name]] += coefficient
    offset = float(model.objective.constant_term)

    rows: List[int] = []
    cols: List[int] = []
    data: List[float] = []
    row_lower: List[float] = []
    row_upper: List[float] = []
    row_ids: List[str] = []

    for i, (cid, constraint) in enumerate(model.constraints.items()):
        lhs, rhs = constraint.normalized()
        for name, coefficient in lhs.linear_terms():
            rows.append(i)
            cols.append(columns[name])
            data.append(float(coefficient))
        bound = np.inf if rhs is UNBOUNDED else float(rhs)
        if constraint.operator is ConstraintOperator.EQ:
            row_lower.append(bound)
            row_upper.append(bound)
        elif constraint.operator is ConstraintOperator.LE:
            row_lower.append(-np.inf)
            row_upper.append(bound)
        else:
            row_lower.append(-bound if rhs is UNBOUNDED else bound)
            row_upper.append(np.inf)
        row_ids.append(cid)

    m = len(row_ids)
    A = sp.coo_matrix((data, (rows, cols)), shape=(m, n)).tocsr()

    lower = np.array(
        [-np.inf if v.min is None else float(v.min) for v in model.variables.values()]
    )
    upper = np.array(
        [np.inf if v.max is None else float(v.max) for v in model.variables.values()]
    )
    integrality = np.array(
        [1 if v.is_integral else 0 for v in model.variables.values()], dtype=int
    )

    logger.debug(f"Standard form: {m} rows x {n} columns, {A.nnz} nonzeros")
    return StandardForm(
        variable_names=names,
        row_ids=row_ids,
        c=c,
        objective_offset=offset,
        direction=model.direction or Direction.MINIMIZE,
        A=A,
        row_lower=np.array(row_lower, dtype=float),
        row_upper=np.array(row_upper, dtype=float),
        lower=lower,
        upper=upper,
        integrality=integrality,
    )
