from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

import numpy as np

from uncertainty.hessian import correlation


class MinimizerState(str, Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    MAX_CALLS = "max_calls"
    NUMERICAL_FAILURE = "numerical_failure"

    @property
    def terminal(self) -> bool:
        return self not in (MinimizerState.INITIALIZED, MinimizerState.ITERATING)


@dataclass(frozen=True)
class FitResult:
    """Outcome of one minimization.

    All solver backends return this dataclass.  ``success`` is ``True`` only
    when the run converged *and* the curvature at the minimum could be
    inverted; otherwise ``parameters`` and ``standard_errors`` are best-effort
    and ``message`` says why.  Arrays are read-only.
    """

    success: bool
    parameters: np.ndarray
    standard_errors: np.ndarray
    objective_at_minimum: float
    iterations: int
    function_calls: int
    state: MinimizerState = MinimizerState.INITIALIZED
    names: Tuple[str, ...] = ()
    covariance: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    edm: float = float("nan")
    method: str = "migrad"
    message: str = ""
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("parameters", "standard_errors", "covariance"):
            arr = np.array(getattr(self, name), dtype=float)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        if not self.names:
            object.__setattr__(self, "names", tuple(f"p{i}" for i in range(self.parameters.size)))

    def _index(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"unknown parameter '{name}'") from None

    def value(self, name: str) -> float:
        return float(self.parameters[self._index(name)])

    def error(self, name: str) -> float:
        return float(self.standard_errors[self._index(name)])

    def correlation(self) -> np.ndarray:
        return correlation(self.covariance)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "state": self.state.value,
            "method": self.method,
            "parameters": dict(zip(self.names, self.parameters.tolist())),
            "standard_errors": dict(zip(self.names, self.standard_errors.tolist())),
            "objective_at_minimum": self.objective_at_minimum,
            "edm": self.edm,
            "iterations": self.iterations,
            "function_calls": self.function_calls,
            "message": self.message,
        }
