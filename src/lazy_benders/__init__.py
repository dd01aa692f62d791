"""lazy_benders

Benders decomposition for mixed-integer linear programs driven by a MILP
solver's lazy-constraint callback. The package provides:

- The dual subproblem, re-objectived at every integer candidate
- A cut generator producing optimality and feasibility cuts
- A master driver (lazy callback or classic iterative loop) on Pyomo
- A small CLI and YAML-based configuration

Solving is delegated to Gurobi through Pyomo's persistent interface.
"""

from .runner import run

__all__ = [
    "__version__",
    "run",
]

__version__ = "0.1.0"
