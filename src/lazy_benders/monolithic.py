"""Undecomposed model, used to cross-check the decomposition.

Solves max c1.x + c2.y s.t. A1 x + A2 y <= b directly and checks that the
cuts produced by a Benders run hold at its optimum.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import pyomo.environ as pyo

from .benders.persistent import make_persistent_solver
from .benders.types import Cut, SolveStatus, T_NAME, x_name
from .problem import ProblemData

log = logging.getLogger(__name__)


@dataclass(slots=True)
class MonolithicResult:
    status: SolveStatus
    objective: Optional[float] = None
    x: Optional[list[float]] = None
    y: Optional[list[float]] = None

    def point(self) -> dict[str, float]:
        """Master-space point (x, t) of the optimum, keyed like cut coefficients."""
        if self.x is None or self.objective is None:
            raise ValueError(f"no solution available (status {self.status.value})")
        out = {x_name(j): v for j, v in enumerate(self.x)}
        out[T_NAME] = float(self.objective)
        return out


def build_monolithic(data: ProblemData, x_upper: float | None = None) -> pyo.ConcreteModel:
    m = pyo.ConcreteModel(name="monolithic")
    m.J = pyo.Set(initialize=range(data.n_x), ordered=True)
    m.K = pyo.Set(initialize=range(data.n_y), ordered=True)
    m.R = pyo.Set(initialize=range(data.n_rows), ordered=True)
    m.x = pyo.Var(m.J, within=pyo.NonNegativeIntegers, bounds=(0, x_upper))
    m.y = pyo.Var(m.K, within=pyo.NonNegativeReals)
    m.obj = pyo.Objective(
        expr=sum(data.c1[j] * m.x[j] for j in m.J) + sum(data.c2[k] * m.y[k] for k in m.K),
        sense=pyo.maximize,
    )

    def row(m, i):
        body = sum(data.A1[i][j] * m.x[j] for j in m.J if data.A1[i][j] != 0.0) + sum(
            data.A2[i][k] * m.y[k] for k in m.K if data.A2[i][k] != 0.0
        )
        if isinstance(body, (int, float)):
            # Empty row: feasible iff b[i] >= 0
            return pyo.Constraint.Feasible if data.b[i] >= 0.0 else pyo.Constraint.Infeasible
        return body <= data.b[i]

    m.Rows = pyo.Constraint(m.R, rule=row)
    return m


def solve_monolithic(
    data: ProblemData,
    solver: str = "gurobi_persistent",
    solver_options: dict[str, Any] | None = None,
    x_upper: float | None = None,
) -> MonolithicResult:
    m = build_monolithic(data, x_upper=x_upper)
    opts = dict(solver_options or {})
    opts.setdefault("DualReductions", 0)
    opt = make_persistent_solver(m, solver, opts)
    res = opt.solve(tee=False, load_solutions=False)
    status = SolveStatus.from_termination(res.solver.termination_condition)
    log.info("monolithic model status=%s", status.value)
    if not status.has_solution:
        return MonolithicResult(status=status)
    # Read from the solver: load_vars skips variables no row references
    return MonolithicResult(
        status=status,
        objective=float(opt.get_model_attr("ObjVal")),
        x=[float(opt.get_var_attr(m.x[j], "X")) for j in m.J],
        y=[float(opt.get_var_attr(m.y[k], "X")) for k in m.K],
    )


def violated_cuts(cuts: Iterable[Cut], point: dict[str, float], tol: float = 1e-6) -> list[Cut]:
    """Cuts that exclude `point`; empty for a sound run evaluated at a true optimum."""
    return [c for c in cuts if not c.is_satisfied(point, tol)]


__all__ = ["MonolithicResult", "build_monolithic", "solve_monolithic", "violated_cuts"]
