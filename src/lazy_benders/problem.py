"""Problem data for the decomposed mixed-integer program.

The instance has the form

    max  c1.x + c2.y
    s.t. A1 x + A2 y <= b
         x >= 0 integer, y >= 0

`x` stays in the master problem; `y` is projected out through the dual of
its continuous subproblem.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence


Vector = tuple[float, ...]
Matrix = tuple[Vector, ...]


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    return float(sum(float(x) * float(y) for x, y in zip(a, b)))


def matvec(A: Sequence[Sequence[float]], x: Sequence[float]) -> list[float]:
    return [dot(row, x) for row in A]


def rmatvec(A: Sequence[Sequence[float]], u: Sequence[float]) -> list[float]:
    """A^T u for a row-major matrix A."""
    ncols = len(A[0]) if A else 0
    return [float(sum(float(A[i][j]) * float(u[i]) for i in range(len(A)))) for j in range(ncols)]


def _vector(name: str, values: Any) -> Vector:
    if not isinstance(values, (list, tuple)):
        raise ValueError(f"'{name}' must be a list of numbers")
    out = tuple(float(v) for v in values)
    for v in out:
        if not math.isfinite(v):
            raise ValueError(f"'{name}' contains a non-finite value: {v}")
    return out


def _matrix(name: str, rows: Any) -> Matrix:
    if not isinstance(rows, (list, tuple)) or not rows:
        raise ValueError(f"'{name}' must be a non-empty list of rows")
    out = tuple(_vector(f"{name}[{i}]", r) for i, r in enumerate(rows))
    width = len(out[0])
    if any(len(r) != width for r in out):
        raise ValueError(f"'{name}' rows have different lengths")
    return out


@dataclass(frozen=True)
class ProblemData:
    c1: Vector
    c2: Vector
    b: Vector
    A1: Matrix
    A2: Matrix

    def __post_init__(self) -> None:
        m = len(self.b)
        if m == 0:
            raise ValueError("'b' must have at least one row")
        if len(self.A1) != m or len(self.A2) != m:
            raise ValueError(f"A1 and A2 must have {m} rows to match b (got {len(self.A1)} and {len(self.A2)})")
        if any(len(r) != len(self.c1) for r in self.A1):
            raise ValueError(f"A1 must have {len(self.c1)} columns to match c1")
        if any(len(r) != len(self.c2) for r in self.A2):
            raise ValueError(f"A2 must have {len(self.c2)} columns to match c2")
        for k in range(len(self.c2)):
            if all(row[k] == 0.0 for row in self.A2) and self.c2[k] > 0.0:
                # y[k] is unconstrained and profitable: the dual region {A2^T u >= c2} is empty
                raise ValueError(f"column {k} of A2 is zero while c2[{k}] > 0; the dual subproblem is infeasible")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ProblemData":
        missing = [k for k in ("c1", "c2", "b", "A1", "A2") if k not in raw]
        if missing:
            raise ValueError(f"problem data is missing: {', '.join(missing)}")
        return cls(
            c1=_vector("c1", raw["c1"]),
            c2=_vector("c2", raw["c2"]),
            b=_vector("b", raw["b"]),
            A1=_matrix("A1", raw["A1"]),
            A2=_matrix("A2", raw["A2"]),
        )

    @property
    def n_x(self) -> int:
        return len(self.c1)

    @property
    def n_y(self) -> int:
        return len(self.c2)

    @property
    def n_rows(self) -> int:
        return len(self.b)

    def residual(self, x: Sequence[float]) -> list[float]:
        """b - A1 x: the right-hand side left to the continuous part at `x`."""
        return [bi - ai for bi, ai in zip(self.b, matvec(self.A1, x))]

    def as_dict(self) -> dict[str, Any]:
        return {
            "c1": list(self.c1),
            "c2": list(self.c2),
            "b": list(self.b),
            "A1": [list(r) for r in self.A1],
            "A2": [list(r) for r in self.A2],
        }


def example_instance() -> ProblemData:
    """Two integer and two continuous variables; optimum t = -4 at x = (0, 1)."""
    return ProblemData.from_mapping(
        {
            "c1": [-1, -4],
            "c2": [-2, -3],
            "b": [-2, -3],
            "A1": [[1, -3], [-1, -3]],
            "A2": [[1, -2], [-1, -1]],
        }
    )


__all__ = ["ProblemData", "example_instance", "dot", "matvec", "rmatvec"]
