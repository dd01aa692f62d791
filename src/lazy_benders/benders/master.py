from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

import pyomo.environ as pyo
from gurobipy import GRB

from ..exceptions import BendersError
from ..problem import ProblemData
from .persistent import make_persistent_solver
from .types import Candidate, Cut, SolveResult, SolveStatus, T_NAME, x_name

log = logging.getLogger(__name__)

# Callback signature: (x_hat, t_hat) -> cut to submit, or None
CandidateHandler = Callable[[Sequence[float], float], Optional[Cut]]


class MasterProblem(ABC):
    """Abstract interface for the master problem.

    Implementations own the master model, expose its candidate solutions and
    integrate the Benders cuts handed to them.
    """

    def __init__(self, params: dict[str, Any] | None = None):
        self.params = params or {}

    def initialize(self) -> None:
        """Build or reset the master model. Called once before solving."""

    @abstractmethod
    def solve(self) -> SolveResult:
        """Solve the master problem and return its status and candidate."""

    @abstractmethod
    def add_cut(self, cut: Cut) -> None:
        """Integrate a Benders cut into the master model."""

    @property
    def t_upper(self) -> float | None:
        """Artificial upper bound on t, if the master carries one."""
        return None

    def install_lazy_callback(self, handler: CandidateHandler) -> None:
        raise NotImplementedError(f"{self.__class__.__name__} does not support lazy cuts")


class BendersMaster(MasterProblem):
    """max t over integer x >= 0, refined by Benders cuts.

    Params:
      - t_upper: upper bound on t (keeps the cut-free master bounded), default 1000
      - t_lower: optional lower bound on t
      - x_upper: optional common upper bound on the integer variables
      - solver_tee: stream solver output
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
        self.solver_name = solver
        self.solver_options = dict(solver_options or {})
        self.m: pyo.ConcreteModel | None = None
        self._solver = None
        self._lazy_installed = False
        self._callback_error: BaseException | None = None
        # Set when a handled candidate produced a cut no master point satisfies
        self._proved_infeasible = False

    @property
    def t_upper(self) -> float | None:
        v = self.params.get("t_upper", 1000.0)
        return None if v is None else float(v)

    def _p(self, key: str, default: Any | None = None) -> Any:
        v = self.params.get(key, default)
        return default if v is None else v

    def initialize(self) -> None:
        n = self.data.n_x
        x_upper = self.params.get("x_upper")
        t_lower = self.params.get("t_lower")
        t_upper = self.t_upper

        m = pyo.ConcreteModel(name="benders_master")
        m.J = pyo.Set(initialize=range(n), ordered=True)
        m.x = pyo.Var(m.J, within=pyo.NonNegativeIntegers, bounds=(0, None if x_upper is None else float(x_upper)))
        m.t = pyo.Var(bounds=(
            None if t_lower is None else float(t_lower),
            t_upper,
        ))
        m.obj = pyo.Objective(expr=m.t, sense=pyo.maximize)
        # Benders cuts, appended in generation order and never removed
        m.BendersCuts = pyo.ConstraintList()
        self.m = m
        self._vars = {T_NAME: m.t}
        self._vars.update({x_name(j): m.x[j] for j in m.J})
        self._solver = make_persistent_solver(m, self.solver_name, self.solver_options)
        self._lazy_installed = False

    def cut_expression(self, cut: Cut):
        assert self.m is not None, "Call initialize() before building cuts"
        unknown = [k for k in cut.coeffs if k not in self._vars]
        if unknown:
            raise ValueError(f"cut '{cut.name}' references unknown master variables: {unknown}")
        terms = [(k, float(a)) for k, a in cut.coeffs.items() if float(a) != 0.0]
        if not terms:
            # 0 <= rhs with rhs < 0: no integer point can be completed
            raise BendersError(f"cut '{cut.name}' has no variables (rhs={float(cut.rhs):.6g}); the problem is infeasible")
        return sum(a * self._vars[k] for k, a in terms) <= float(cut.rhs)

    def add_cut(self, cut: Cut) -> None:
        assert self.m is not None, "Call initialize() before add_cut()"
        con = self.m.BendersCuts.add(self.cut_expression(cut))
        self._solver.add_constraint(con)
        log.debug("added %s", cut)

    def install_lazy_callback(self, handler: CandidateHandler) -> None:
        """Register `handler` to run at every integer-feasible node (MIPSOL).

        The candidate is read with cbGetSolution; a returned cut is recorded in
        BendersCuts and submitted with cbLazy, which rejects the candidate.
        A cut without variables proves the problem infeasible: the solve is
        terminated and reported as INFEASIBLE. An exception raised while
        handling a candidate also terminates the solve and is re-raised by
        solve().
        """
        assert self.m is not None, "Call initialize() before install_lazy_callback()"
        m = self.m
        cb_vars = [m.x[j] for j in m.J] + [m.t]

        def _on_event(cb_m, cb_opt, cb_where):
            if cb_where != GRB.Callback.MIPSOL:
                return
            if self._callback_error is not None or self._proved_infeasible:
                return
            try:
                cb_opt.cbGetSolution(vars=cb_vars)
                x_hat = [float(pyo.value(m.x[j])) for j in m.J]
                t_hat = float(pyo.value(m.t))
                cut = handler(x_hat, t_hat)
                if cut is None:
                    return
                if cut.proves_infeasible():
                    log.info("[BENDERS] %s admits no master point; stopping", cut)
                    self._proved_infeasible = True
                    self.terminate()
                    return
                con = m.BendersCuts.add(self.cut_expression(cut))
                cb_opt.cbLazy(con)
            except Exception as exc:  # noqa: BLE001 - re-raised by solve()
                log.error("[BENDERS] callback failed: %s", exc)
                self._callback_error = exc
                self.terminate()

        self._solver.options["LazyConstraints"] = 1
        self._solver.set_callback(_on_event)
        self._lazy_installed = True
        log.info("[BENDERS] Installed lazy constraint callback on %s.", self.solver_name)

    def terminate(self) -> None:
        """Ask the running solver to stop at the next opportunity."""
        model = getattr(self._solver, "_solver_model", None)
        if model is not None:
            model.terminate()

    def _solution_count(self) -> int:
        model = getattr(self._solver, "_solver_model", None)
        return int(getattr(model, "SolCount", 0) or 0) if model is not None else 0

    def _value(self, var) -> float:
        # Incumbent value straight from the solver; Pyomo values may hold the
        # last callback candidate, or nothing for variables no constraint uses
        return float(self._solver.get_var_attr(var, "X"))

    def _collect_candidate(self) -> Candidate:
        assert self.m is not None
        return {name: self._value(v) for name, v in self._vars.items()}

    def solve(self) -> SolveResult:
        assert self.m is not None, "Call initialize() before solve()"
        m = self.m
        tee = bool(self._p("solver_tee", False))
        self._callback_error = None
        self._proved_infeasible = False
        res = self._solver.solve(tee=tee, load_solutions=False)
        if self._callback_error is not None:
            raise self._callback_error
        if self._proved_infeasible:
            return SolveResult(status=SolveStatus.INFEASIBLE, objective=None, candidate=None)
        term = res.solver.termination_condition
        status = SolveStatus.from_termination(term)
        log.debug("master termination=%s status=%s", term, status.value)

        if status.has_solution or (status == SolveStatus.TIME_LIMIT and self._solution_count() > 0):
            candidate = self._collect_candidate()
            x = [candidate[x_name(j)] for j in m.J]
            t = candidate[T_NAME]
            return SolveResult(status=status, objective=t, candidate=candidate, x=x, t=t)
        return SolveResult(status=status, objective=None, candidate=None)

    def cuts_count(self) -> int:
        return len(self.m.BendersCuts) if self.m is not None else 0

    def lazy_installed(self) -> bool:
        return bool(self._lazy_installed)


__all__ = ["MasterProblem", "BendersMaster", "CandidateHandler"]
