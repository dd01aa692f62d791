from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

import pyomo.environ as pyo

from ..problem import ProblemData
from .persistent import make_persistent_solver
from .types import SolveStatus, SubproblemSolution

log = logging.getLogger(__name__)


class Subproblem(ABC):
    """Abstract mutate-and-resolve contract for the Benders subproblem.

    The feasible region is fixed at construction; only the objective changes
    between solves.
    """

    def __init__(self, params: dict[str, Any] | None = None):
        self.params = params or {}

    @abstractmethod
    def set_objective(self, constant: float, coefficients: Sequence[float]) -> None:
        """Replace the objective with `constant + sum(coefficients[i] * u[i])`."""

    @abstractmethod
    def solve(self) -> SubproblemSolution:
        """Solve and return status, objective, dual vertex or extreme ray."""

    def describe(self) -> str:
        return self.__class__.__name__


class DualSubproblem(Subproblem):
    """Dual of the continuous part of the problem at a fixed integer point.

        min  const + sum_i w_i u_i
        s.t. A2^T u >= c2,  u >= 0

    `const` and `w` are mutable parameters; the model is attached to a
    persistent solver once and only the objective is pushed on each update.
    Unboundedness (primal infeasibility at the candidate) is reported with an
    extreme ray read from the solver's `UnbdRay` attribute.
    """

    def __init__(
        self,
        data: ProblemData,
        solver: str = "gurobi_persistent",
        solver_options: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ):
        super().__init__(params)
        self.data = data
        self.m = self._build(data)
        opts = dict(solver_options or {})
        # Distinguish UNBOUNDED from INF_OR_UNBD and expose the ray
        opts.setdefault("InfUnbdInfo", 1)
        opts.setdefault("DualReductions", 0)
        self._solver = make_persistent_solver(self.m, solver, opts)
        self._tee = bool(self.params.get("solver_tee", False))

    @staticmethod
    def _build(data: ProblemData) -> pyo.ConcreteModel:
        m = pyo.ConcreteModel(name="dual_subproblem")
        m.R = pyo.Set(initialize=range(data.n_rows), ordered=True)
        m.K = pyo.Set(initialize=[k for k in range(data.n_y) if any(row[k] != 0.0 for row in data.A2)], ordered=True)
        m.u = pyo.Var(m.R, within=pyo.NonNegativeReals)
        m.const = pyo.Param(mutable=True, initialize=0.0)
        m.w = pyo.Param(m.R, mutable=True, initialize=0.0)
        m.obj = pyo.Objective(expr=m.const + sum(m.w[i] * m.u[i] for i in m.R), sense=pyo.minimize)

        def dual_feasibility(m, k):
            return sum(data.A2[i][k] * m.u[i] for i in m.R if data.A2[i][k] != 0.0) >= data.c2[k]

        m.DualFeas = pyo.Constraint(m.K, rule=dual_feasibility)
        return m

    def set_objective(self, constant: float, coefficients: Sequence[float]) -> None:
        if len(coefficients) != self.data.n_rows:
            raise ValueError(f"expected {self.data.n_rows} objective coefficients, got {len(coefficients)}")
        self.m.const.set_value(float(constant))
        for i, w in zip(self.m.R, coefficients):
            self.m.w[i].set_value(float(w))
        self._solver.set_objective(self.m.obj)

    def solve(self) -> SubproblemSolution:
        m = self.m
        res = self._solver.solve(tee=self._tee, load_solutions=False)
        term = res.solver.termination_condition
        status = SolveStatus.from_termination(term)
        if status == SolveStatus.OPTIMAL:
            self._solver.load_vars()
            return SubproblemSolution(
                status=status,
                objective=float(pyo.value(m.obj)),
                values=[float(pyo.value(m.u[i])) for i in m.R],
            )
        if status == SolveStatus.UNBOUNDED:
            ray = [float(self._solver.get_var_attr(m.u[i], "UnbdRay")) for i in m.R]
            return SubproblemSolution(status=status, ray=ray)
        log.warning("dual subproblem ended with termination condition %s", term)
        return SubproblemSolution(status=status)

    def describe(self) -> str:
        m = self.m
        terms = " ".join(f"{float(pyo.value(m.w[i])):+.6g}*u[{i}]" for i in m.R)
        rows = []
        for k in m.K:
            lhs = " ".join(f"{self.data.A2[i][k]:+.6g}*u[{i}]" for i in m.R if self.data.A2[i][k] != 0.0)
            rows.append(f"{lhs} >= {self.data.c2[k]:.6g}")
        return f"min {float(pyo.value(m.const)):.6g} {terms} s.t. " + ", ".join(rows) + ", u >= 0"


__all__ = ["Subproblem", "DualSubproblem"]
