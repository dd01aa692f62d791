from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..config import BendersConfig
from .cuts import CutGenerator, CutState
from .master import BendersMaster, MasterProblem
from .subproblem import DualSubproblem, Subproblem
from .types import Cut, CutType, SolveStatus

log = logging.getLogger(__name__)


@dataclass(slots=True)
class BendersRunResult:
    status: SolveStatus
    iterations: int
    x: Optional[list[float]] = None
    t: Optional[float] = None
    cuts: list[Cut] = field(default_factory=list)
    best_lower_bound: Optional[float] = None
    best_upper_bound: Optional[float] = None
    elapsed_s: float = 0.0

    @property
    def objective(self) -> Optional[float]:
        return self.t

    def count(self, cut_type: CutType) -> int:
        return sum(1 for c in self.cuts if c.cut_type == cut_type)


class BendersSolver:
    """Drive the master and the cut generator to a terminal status.

    Two modes share the same cut generator:

    - lazy: one branch-and-bound run; every integer candidate goes through
      `evaluate_candidate` from the solver's lazy-constraint callback.
    - loop: solve the master to optimality, evaluate its candidate, add the
      cut as a regular constraint and repeat until no cut is produced.
    """

    def __init__(self, master: MasterProblem, subproblem: Subproblem, cfg: BendersConfig):
        self.master = master
        self.subproblem = subproblem
        self.cfg = cfg
        self.state = CutState()
        self.generator = CutGenerator(cfg.problem, subproblem, tolerance=cfg.run.tolerance, state=self.state)

    @classmethod
    def from_config(cls, cfg: BendersConfig) -> "BendersSolver":
        master_opts = dict(cfg.master.solver_options)
        master_opts.setdefault("Seed", cfg.run.seed)
        master_opts.setdefault("TimeLimit", cfg.run.time_limit_s)
        master = BendersMaster(cfg.problem, cfg.master.solver, master_opts, cfg.master.params)
        sub = DualSubproblem(cfg.problem, cfg.subproblem.solver, cfg.subproblem.solver_options, cfg.subproblem.params)
        return cls(master, sub, cfg)

    def evaluate_candidate(self, x_hat: Sequence[float], t_hat: float) -> Cut | None:
        """Callback entry point: cut for the candidate (x_hat, t_hat), or None."""
        return self.generator.evaluate(x_hat, t_hat)

    def run(self) -> BendersRunResult:
        t0 = time.time()
        self.master.initialize()
        mode = self.cfg.run.mode
        log.info("Initialized master problem (mode=%s, tolerance=%g).", mode, self.cfg.run.tolerance)
        if mode == "lazy":
            result = self._run_lazy()
        elif mode == "loop":
            result = self._run_loop(t0)
        else:
            raise ValueError(f"unknown mode '{mode}'")
        result.elapsed_s = time.time() - t0
        log.info(
            "finished: status=%s iterations=%d cuts=%d (optimality=%d feasibility=%d) time=%.3fs",
            result.status.value,
            result.iterations,
            len(result.cuts),
            result.count(CutType.OPTIMALITY),
            result.count(CutType.FEASIBILITY),
            result.elapsed_s,
        )
        return result

    def _check_t_bound(self, status: SolveStatus, t: Optional[float]) -> SolveStatus:
        """Downgrade a finished run whose t sits on the artificial bound t_upper.

        With t = t_upper no cut can tell whether the optimum is t_upper or
        larger, so the run is reported as BOUND_LIMIT instead of OPTIMAL.
        """
        t_upper = self.master.t_upper
        if t is None or t_upper is None or not status.has_solution:
            return status
        if t < t_upper - self.generator.threshold(t_upper):
            return status
        log.warning("t=%.6g reached its upper bound t_upper=%.6g; raise master.params.t_upper", t, t_upper)
        return SolveStatus.BOUND_LIMIT

    def _run_lazy(self) -> BendersRunResult:
        self.master.install_lazy_callback(self.evaluate_candidate)
        mres = self.master.solve()
        status = self._check_t_bound(mres.status, mres.t)
        if mres.status == SolveStatus.INFEASIBLE:
            log.error("Master problem infeasible")
        elif mres.status in (SolveStatus.UNBOUNDED, SolveStatus.INFEASIBLE_OR_UNBOUNDED):
            log.error("Master problem %s; check the bounds on t", mres.status.value.lower())
        elif not mres.status.has_solution:
            log.warning("Master stopped with status %s", mres.status.value)
        return BendersRunResult(
            status=status,
            iterations=self.state.iterations,
            x=mres.x,
            t=mres.t,
            cuts=list(self.state.cuts),
            best_upper_bound=mres.t,
            best_lower_bound=mres.t if status == SolveStatus.OPTIMAL else None,
        )

    def _run_loop(self, t0: float) -> BendersRunResult:
        max_it = self.cfg.run.max_iterations
        best_lb: Optional[float] = None
        best_ub: Optional[float] = None

        def _result(status: SolveStatus, x=None, t=None) -> BendersRunResult:
            return BendersRunResult(
                status=status,
                iterations=self.state.iterations,
                x=x,
                t=t,
                cuts=list(self.state.cuts),
                best_lower_bound=best_lb,
                best_upper_bound=best_ub,
            )

        for it in range(1, max_it + 1):
            if time.time() - t0 > self.cfg.run.time_limit_s:
                log.warning("Time limit reached after %d iterations", it - 1)
                return _result(SolveStatus.TIME_LIMIT)

            mres = self.master.solve()
            log.info(
                "iter=%d master status=%s t=%s",
                it,
                mres.status.value,
                f"{mres.t:.6g}" if mres.t is not None else None,
            )
            if not mres.status.has_solution:
                log.error("Master problem ended with status %s", mres.status.value)
                return _result(mres.status)

            # The master is a relaxation: its t bounds the optimum from above
            if mres.status == SolveStatus.OPTIMAL:
                best_ub = mres.t if best_ub is None else min(best_ub, mres.t)

            self.state.last_value = None
            cut = self.generator.evaluate(mres.x, mres.t)
            value = self.state.last_value
            if value is not None:
                best_lb = value if best_lb is None else max(best_lb, value)

            if cut is None:
                log.info("Optimality reached within tolerance after %d iterations", it)
                return _result(self._check_t_bound(SolveStatus.OPTIMAL, mres.t), x=mres.x, t=mres.t)

            if cut.proves_infeasible():
                log.info("%s admits no master point; problem infeasible", cut)
                return _result(SolveStatus.INFEASIBLE)

            self.master.add_cut(cut)
            if best_lb is not None and best_ub is not None:
                gap = abs(best_ub - best_lb)
                rel_gap = gap / max(1.0, abs(best_ub))
                log.info("bounds: best_lb=%.6g best_ub=%.6g gap=%.6g rel=%.3g", best_lb, best_ub, gap, rel_gap)

        log.warning("Max iterations reached: %d", max_it)
        return _result(SolveStatus.ITERATION_LIMIT)


__all__ = ["BendersSolver", "BendersRunResult"]
