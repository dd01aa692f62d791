from __future__ import annotations

import logging
from typing import Any, Mapping

import pyomo.environ as pyo

log = logging.getLogger(__name__)


def make_persistent_solver(model: pyo.ConcreteModel, name: str, options: Mapping[str, Any] | None = None, **instance_kwargs: Any):
    """Create a Pyomo persistent solver, attach `model` once and set options.

    Options are stored on `solver.options` and pushed to the solver on every
    `solve()` call.
    """
    solver = pyo.SolverFactory(name)
    if not hasattr(solver, "set_instance"):
        raise ValueError(f"Solver '{name}' is not a Pyomo persistent solver (try 'gurobi_persistent').")
    if not solver.available(exception_flag=False):
        raise RuntimeError(f"Solver '{name}' is not available. Install gurobipy with a valid license.")
    solver.set_instance(model, **instance_kwargs)
    for k, v in (options or {}).items():
        solver.options[k] = v
    log.debug("attached model '%s' to %s with options %s", model.name, name, dict(options or {}))
    return solver


def solver_available(name: str = "gurobi_persistent") -> bool:
    try:
        return bool(pyo.SolverFactory(name).available(exception_flag=False))
    except Exception:  # noqa: BLE001 - plugin import errors mean "not available"
        return False


__all__ = ["make_persistent_solver", "solver_available"]
