from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..exceptions import SubproblemError
from ..problem import ProblemData, dot, rmatvec
from .subproblem import Subproblem
from .types import Cut, CutType, SolveStatus, T_NAME, x_name

log = logging.getLogger(__name__)

# Rays with a larger component below this are treated as zero
RAY_ZERO_TOL: float = 1e-9


@dataclass(slots=True)
class CutState:
    """Run state shared between the driver and the cut generator."""

    iterations: int = 0
    cuts: list[Cut] = field(default_factory=list)
    # Objective of the last subproblem solved to optimality
    last_value: float | None = None

    def count(self, cut_type: CutType) -> int:
        return sum(1 for c in self.cuts if c.cut_type == cut_type)


class CutGenerator:
    """Turn a master candidate (x_hat, t_hat) into a Benders cut, or none.

    The subproblem objective is re-parameterized with the candidate as
    `c1.x_hat + (b - A1 x_hat).u` and re-solved:

    - unbounded: feasibility cut from the extreme ray r,
      `(A1^T r).x <= b.r`
    - optimal with value below t_hat: optimality cut from the vertex u*,
      `t + (A1^T u* - c1).x <= b.u*`
    - optimal with value within tolerance of t_hat: no cut

    Any other subproblem status raises SubproblemError.
    """

    def __init__(self, data: ProblemData, subproblem: Subproblem, tolerance: float = 1e-5, state: CutState | None = None):
        if tolerance < 0.0:
            raise ValueError("tolerance must be non-negative")
        self.data = data
        self.subproblem = subproblem
        self.tolerance = float(tolerance)
        self.state = state if state is not None else CutState()

    def threshold(self, t_hat: float) -> float:
        return self.tolerance * (1.0 + abs(float(t_hat)))

    def evaluate(self, x_hat: Sequence[float], t_hat: float) -> Cut | None:
        self.state.iterations += 1
        it = self.state.iterations
        if len(x_hat) != self.data.n_x:
            raise ValueError(f"candidate has {len(x_hat)} components, expected {self.data.n_x}")
        # Integer components come back from the solver within its integrality tolerance
        x = [float(round(float(v))) for v in x_hat]
        t_hat = float(t_hat)

        self.subproblem.set_objective(dot(self.data.c1, x), self.data.residual(x))
        log.info("[BENDERS] iter=%d candidate x=%s t=%.6g", it, _fmt(x), t_hat)
        log.info("[BENDERS] iter=%d subproblem: %s", it, self.subproblem.describe())
        sol = self.subproblem.solve()

        if sol.status == SolveStatus.UNBOUNDED:
            cut = self._feasibility_cut(it, x, sol.ray)
        elif sol.status == SolveStatus.OPTIMAL:
            value = float(sol.objective)
            self.state.last_value = value
            if value >= t_hat - self.threshold(t_hat):
                log.info("[BENDERS] iter=%d no cut: subproblem value %.6g matches t=%.6g", it, value, t_hat)
                return None
            cut = self._optimality_cut(it, x, t_hat, sol.values, value)
        else:
            raise SubproblemError(
                f"subproblem ended with status {sol.status.value} at iteration {it}",
                status=sol.status,
                iteration=it,
            )

        self.state.cuts.append(cut)
        log.info("[BENDERS] iter=%d added %s", it, cut)
        return cut

    def _optimality_cut(self, it: int, x: list[float], t_hat: float, u: Sequence[float], value: float) -> Cut:
        slopes = rmatvec(self.data.A1, u)
        coeffs = {T_NAME: 1.0}
        for j, (a, c) in enumerate(zip(slopes, self.data.c1)):
            coeffs[x_name(j)] = a - c
        return Cut(
            name=f"opt_{it}",
            cut_type=CutType.OPTIMALITY,
            coeffs=coeffs,
            rhs=dot(self.data.b, u),
            iteration=it,
            metadata={"dual": list(u), "value": value, "x_hat": x, "t_hat": t_hat},
        )

    def _feasibility_cut(self, it: int, x: list[float], ray: Sequence[float]) -> Cut:
        scale = max((abs(r) for r in ray), default=0.0)
        if scale <= RAY_ZERO_TOL:
            raise SubproblemError(f"subproblem unbounded at iteration {it} but no extreme ray was returned", status=SolveStatus.UNBOUNDED, iteration=it)
        r = [v / scale for v in ray]
        slopes = rmatvec(self.data.A1, r)
        cut = Cut(
            name=f"feas_{it}",
            cut_type=CutType.FEASIBILITY,
            coeffs={x_name(j): a for j, a in enumerate(slopes)},
            rhs=dot(self.data.b, r),
            iteration=it,
            metadata={"ray": r, "x_hat": x},
        )
        point = {x_name(j): v for j, v in enumerate(x)}
        if cut.violation(point) <= 0.0:
            raise SubproblemError(
                f"extreme ray at iteration {it} does not separate the candidate x={_fmt(x)}",
                status=SolveStatus.UNBOUNDED,
                iteration=it,
            )
        return cut


def _fmt(v: Sequence[float]) -> str:
    return "[" + ", ".join(f"{float(a):.6g}" for a in v) + "]"


__all__ = ["CutGenerator", "CutState", "RAY_ZERO_TOL"]
