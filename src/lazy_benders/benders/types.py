from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import pyomo.environ as pyo


class SolveStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    INFEASIBLE_OR_UNBOUNDED = "INFEASIBLE_OR_UNBOUNDED"
    TIME_LIMIT = "TIME_LIMIT"
    ITERATION_LIMIT = "ITERATION_LIMIT"
    # t stopped at its artificial upper bound; the true optimum may be larger
    BOUND_LIMIT = "BOUND_LIMIT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_termination(cls, term: Any) -> "SolveStatus":
        """Map a Pyomo termination condition onto a solve status."""
        tc = pyo.TerminationCondition
        if term == tc.optimal:
            return cls.OPTIMAL
        if term in (tc.feasible, tc.locallyOptimal, tc.globallyOptimal):
            return cls.FEASIBLE
        if term == tc.infeasible:
            return cls.INFEASIBLE
        if term == tc.unbounded:
            return cls.UNBOUNDED
        if term == tc.infeasibleOrUnbounded:
            return cls.INFEASIBLE_OR_UNBOUNDED
        if term == tc.maxTimeLimit:
            return cls.TIME_LIMIT
        if term == tc.maxIterations:
            return cls.ITERATION_LIMIT
        return cls.UNKNOWN

    @property
    def has_solution(self) -> bool:
        return self in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)


class CutType(str, Enum):
    OPTIMALITY = "OPTIMALITY"
    FEASIBILITY = "FEASIBILITY"


Candidate = Dict[str, float]

# Master variable names used as cut coefficient keys
T_NAME = "t"


def x_name(j: int) -> str:
    return f"x[{int(j)}]"


@dataclass(slots=True)
class Cut:
    """Linear cut over master variables.

    Represents: sum(coeffs[var] * var) <= rhs
    """

    name: str
    cut_type: CutType
    coeffs: Mapping[str, float] = field(default_factory=dict)
    rhs: float = 0.0
    iteration: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def lhs(self, point: Mapping[str, float]) -> float:
        return sum(float(a) * float(point.get(k, 0.0)) for k, a in self.coeffs.items())

    def violation(self, point: Mapping[str, float]) -> float:
        """Amount by which `point` violates the cut (<= 0 when satisfied)."""
        return self.lhs(point) - float(self.rhs)

    def is_satisfied(self, point: Mapping[str, float], tol: float = 1e-6) -> bool:
        return self.violation(point) <= tol * (1.0 + abs(float(self.rhs)))

    def proves_infeasible(self, tol: float = 1e-9) -> bool:
        """True for `0 <= rhs` with rhs < 0, which no master point satisfies."""
        if any(abs(float(a)) > tol for a in self.coeffs.values()):
            return False
        return float(self.rhs) < -tol

    def signature(self, digits: int = 6) -> tuple:
        """Canonical (type, rhs, ((var, coeff), ...)) tuple rounded to `digits`."""
        items = sorted(
            (k, round(float(v), digits)) for k, v in self.coeffs.items() if abs(float(v)) > 10.0 ** (-digits)
        )
        return (self.cut_type.value, round(float(self.rhs), digits), tuple(items))

    def __str__(self) -> str:
        terms = " ".join(f"{float(v):+.6g}*{k}" for k, v in self.coeffs.items() if float(v) != 0.0)
        return f"{self.cut_type.value.lower()} cut '{self.name}': {terms or '0'} <= {float(self.rhs):.6g}"


@dataclass(slots=True)
class SubproblemSolution:
    status: SolveStatus
    objective: Optional[float] = None
    values: list[float] = field(default_factory=list)
    ray: list[float] = field(default_factory=list)


@dataclass(slots=True)
class SolveResult:
    status: SolveStatus
    objective: Optional[float]
    candidate: Optional[Candidate]
    x: Optional[list[float]] = None
    t: Optional[float] = None


__all__ = [
    "SolveStatus",
    "CutType",
    "Candidate",
    "Cut",
    "SubproblemSolution",
    "SolveResult",
    "T_NAME",
    "x_name",
]
