from .types import Cut, CutType, Candidate, SolveStatus, SubproblemSolution, SolveResult
from .cuts import CutGenerator, CutState
from .master import MasterProblem, BendersMaster
from .subproblem import Subproblem, DualSubproblem
from .solver import BendersSolver, BendersRunResult

__all__ = [
    "Cut",
    "CutType",
    "Candidate",
    "SolveStatus",
    "SubproblemSolution",
    "SolveResult",
    "CutGenerator",
    "CutState",
    "MasterProblem",
    "BendersMaster",
    "Subproblem",
    "DualSubproblem",
    "BendersSolver",
    "BendersRunResult",
]
