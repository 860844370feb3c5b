"""Call counting and budget enforcement for objective functions."""
from __future__ import annotations

import math
from typing import Callable

import numpy as np


class BudgetExhausted(Exception):
    """Raised internally when an evaluation would exceed the call budget."""


class CountingObjective:
    """Wrap ``fn`` so every evaluation is counted against ``max_calls``.

    The wrapper also remembers the lowest finite value seen together with its
    parameters so that an interrupted run can report its best point.
    """

    def __init__(self, fn: Callable[[np.ndarray], float], max_calls: int):
        self.fn = fn
        self.max_calls = int(max_calls)
        self.calls = 0
        self.best_x: np.ndarray | None = None
        self.best_f = math.inf

    @property
    def remaining(self) -> int:
        return max(self.max_calls - self.calls, 0)

    def __call__(self, x) -> float:
        if self.calls >= self.max_calls:
            raise BudgetExhausted(f"function call budget of {self.max_calls} exhausted")
        self.calls += 1
        x = np.asarray(x, dtype=float)
        try:
            val = float(self.fn(x))
        except (ArithmeticError, ValueError):
            val = math.nan
        if math.isfinite(val) and val < self.best_f:
            self.best_f = val
            self.best_x = x.copy()
        return val
