"""Unified minimizer interface for Asymfit 1.x."""
from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from .config import STRATEGIES, StepConfiguration
from .result import FitResult, MinimizerState
from . import minimizer, simplex

# Mapping of public method names to backend implementations.  ``migrad`` is the
# Newton engine on finite-difference derivatives; ``simplex`` is Nelder-Mead.
_SOLVERS: Dict[str, Callable] = {
    "migrad": minimizer.minimize,
    "simplex": simplex.minimize,
}

_PREPARERS: Dict[str, Callable] = {
    "migrad": minimizer.prepare_state,
    "simplex": simplex.prepare_state,
}

_ITERATORS: Dict[str, Callable] = {
    "migrad": minimizer.iterate,
    "simplex": simplex.iterate,
}

__all__ = [
    "minimizer",
    "simplex",
    "solve",
    "prepare_state",
    "iterate",
    "available_methods",
    "FitResult",
    "MinimizerState",
    "StepConfiguration",
    "STRATEGIES",
]


def available_methods() -> list[str]:
    return sorted(_SOLVERS)


def _lookup(table: Dict[str, Callable], method: str) -> Callable:
    func = table.get(method)
    if func is None:
        raise ValueError(f"unknown solver '{method}'")
    return func


def solve(
    objective: Callable[[np.ndarray], float],
    config: StepConfiguration,
    method: str = "migrad",
) -> FitResult:
    """Dispatch to the selected backend and return a :class:`FitResult`.

    ``method`` is ``migrad`` (default) or ``simplex``.  Unknown names raise
    ``ValueError`` before the objective is evaluated.
    """

    func = _lookup(_SOLVERS, method)
    return func(objective, config)


def prepare_state(objective: Callable[[np.ndarray], float], config: StepConfiguration, method: str = "migrad") -> dict:
    state = _lookup(_PREPARERS, method)(objective, config)
    state["method"] = method
    return state


def iterate(state: dict):
    """Dispatch to the backend iterate function."""

    return _lookup(_ITERATORS, state.get("method", "migrad"))(state)
