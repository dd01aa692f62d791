"""Exceptions raised by the Benders driver"""

from __future__ import annotations

from typing import Any


class BendersError(RuntimeError):
    """Base exception for the Benders driver"""


class SubproblemError(BendersError):
    """Raised when the subproblem ends in a status no cut can be derived from"""

    def __init__(self, message: str, status: Any = None, iteration: int | None = None):
        super().__init__(message)
        self.status = status
        self.iteration = iteration
