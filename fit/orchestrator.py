"""High level minimization orchestration with an explicit simplex fallback."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Sequence

import numpy as np

from . import iterate, solve
from .config import StepConfiguration
from .result import FitResult, MinimizerState

log = logging.getLogger(__name__)

FALLBACKS: tuple[str, ...] = ("simplex",)


def run_fit_with_fallbacks(
    objective: Callable[[np.ndarray], float],
    config: StepConfiguration,
    method: str = "migrad",
    fallbacks: Sequence[str] = FALLBACKS,
) -> FitResult:
    """Run ``method`` and fall back only on a numerical failure.

    A run that stops on its budgets or on a singular Hessian is returned as
    is.  When it ends in ``NUMERICAL_FAILURE`` each fallback is tried in turn,
    restarted from the best parameters reached so far with the remaining call
    budget.  The returned result carries the combined call and iteration
    counts and lists the attempts in ``diagnostics["fallbacks"]``.
    """

    result = solve(objective, config, method)
    attempts = [{"method": method, "state": result.state.value, "message": result.message}]
    calls = result.function_calls
    iterations = result.iterations

    for name in fallbacks:
        if result.state is not MinimizerState.NUMERICAL_FAILURE or name == result.method:
            break
        remaining = config.max_function_calls - calls
        if remaining < 1:
            break
        log.warning("%s failed (%s); falling back to %s", result.method, result.message, name)
        restart = replace(config.restart(result.parameters), max_function_calls=remaining)
        result = solve(objective, restart, name)
        calls += result.function_calls
        iterations += result.iterations
        attempts.append({"method": name, "state": result.state.value, "message": result.message})

    if len(attempts) == 1:
        return result
    diagnostics = dict(result.diagnostics)
    diagnostics["fallbacks"] = list(diagnostics.get("fallbacks", [])) + attempts
    return replace(result, function_calls=calls, iterations=iterations, diagnostics=diagnostics)


def step_once(state: dict):
    """Run a single minimizer iteration without fallbacks."""

    return iterate(state)
