"""Derivative-free Nelder-Mead minimizer.

Used as the fallback when the Newton engine cannot evaluate usable
derivatives.  It shares :class:`~fit.config.StepConfiguration`, the call
budget and the :class:`~fit.result.FitResult` contract with
:mod:`fit.minimizer`; errors come from a Hessian taken at the final vertex.
"""
from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from .config import StepConfiguration
from .counting import BudgetExhausted, CountingObjective
from .minimizer import result_from_state
from .result import FitResult, MinimizerState

log = logging.getLogger(__name__)

# reflection, expansion, contraction, shrink
ALPHA, GAMMA, RHO, SIGMA = 1.0, 2.0, 0.5, 0.5


def _order(simplex: np.ndarray, values: np.ndarray):
    # non-finite vertices sort last
    keys = np.where(np.isfinite(values), values, np.inf)
    idx = np.argsort(keys, kind="stable")
    return simplex[idx], values[idx]


def prepare_state(objective: Callable[[np.ndarray], float], config: StepConfiguration) -> dict:
    """Build the initial simplex ``x0, x0 + s_i e_i`` and evaluate it."""

    counted = objective if isinstance(objective, CountingObjective) else CountingObjective(
        objective, config.max_function_calls
    )
    x0 = config.x0()
    steps = config.steps()
    n = x0.size
    simplex = np.tile(x0, (n + 1, 1))
    for i in range(n):
        simplex[i + 1, i] += steps[i]
    state = {
        "objective": counted,
        "config": config,
        "theta": x0,
        "f": math.nan,
        "steps": steps,
        "status": MinimizerState.INITIALIZED,
        "iterations": 0,
        "history": [],
        "hessian": None,
        "hessian_at": None,
        "gradient": None,
        "edm": math.nan,
        "message": "",
        "fallbacks": [],
        "simplex": simplex,
        "values": np.full(n + 1, np.nan),
    }
    try:
        for k in range(n + 1):
            state["values"][k] = counted(simplex[k])
    except BudgetExhausted:
        state["status"] = MinimizerState.MAX_CALLS
        state["message"] = f"function call budget of {counted.max_calls} exhausted"
        _sync_best(state)
        return state
    _sync_best(state)
    state["history"].append(state["f"])
    if not math.isfinite(state["f"]):
        state["status"] = MinimizerState.NUMERICAL_FAILURE
        state["message"] = "objective is not finite on the initial simplex"
    return state


def _sync_best(state: dict) -> None:
    simplex, values = _order(state["simplex"], state["values"])
    state["simplex"], state["values"] = simplex, values
    if np.isfinite(values[0]):
        state["theta"] = simplex[0].copy()
        state["f"] = float(values[0])
    elif not math.isfinite(state["f"]):
        state["f"] = float(values[0])


def iterate(state: dict):
    """One reflect/expand/contract/shrink step of Nelder-Mead."""

    f_before = float(state["f"])
    if state["status"].terminal:
        return state, False, f_before, f_before, {"reason": "terminal"}
    cfg: StepConfiguration = state["config"]
    if state["iterations"] >= cfg.max_iterations:
        state["status"] = MinimizerState.MAX_ITERATIONS
        state["message"] = f"iteration limit of {cfg.max_iterations} reached"
        return state, False, f_before, f_before, {"reason": "max_iterations"}

    state["status"] = MinimizerState.ITERATING
    state["iterations"] += 1
    f = state["objective"]
    simplex, values = state["simplex"], state["values"]
    move = "reflect"
    try:
        centroid = simplex[:-1].mean(axis=0)
        worst = simplex[-1]
        xr = centroid + ALPHA * (centroid - worst)
        fr = f(xr)
        if np.isfinite(fr) and values[0] <= fr < values[-2]:
            simplex[-1], values[-1] = xr, fr
        elif np.isfinite(fr) and fr < values[0]:
            xe = centroid + GAMMA * (xr - centroid)
            fe = f(xe)
            if np.isfinite(fe) and fe < fr:
                simplex[-1], values[-1] = xe, fe
                move = "expand"
            else:
                simplex[-1], values[-1] = xr, fr
        else:
            xc = centroid + RHO * (worst - centroid)
            fc = f(xc)
            if np.isfinite(fc) and (not np.isfinite(values[-1]) or fc < values[-1]):
                simplex[-1], values[-1] = xc, fc
                move = "contract"
            else:
                move = "shrink"
                for k in range(1, simplex.shape[0]):
                    simplex[k] = simplex[0] + SIGMA * (simplex[k] - simplex[0])
                    values[k] = f(simplex[k])
    except BudgetExhausted:
        _sync_best(state)
        state["status"] = MinimizerState.MAX_CALLS
        state["message"] = f"function call budget of {f.max_calls} exhausted"
        return state, False, f_before, float(state["f"]), {"reason": "max_calls", "move": move}

    _sync_best(state)
    state["history"].append(state["f"])
    values = state["values"]
    spread = float(values[-1] - values[0]) if np.all(np.isfinite(values)) else math.inf
    log.debug("simplex iteration %d (%s): f=%.10g spread=%.3g", state["iterations"], move, state["f"], spread)
    if spread < cfg.tolerance:
        state["status"] = MinimizerState.CONVERGED
        state["message"] = "simplex spread below tolerance"
        state["edm"] = spread
    return state, state["f"] < f_before, f_before, float(state["f"]), {"reason": move, "spread": spread}


def minimize(objective: Callable[[np.ndarray], float], config: StepConfiguration) -> FitResult:
    """Minimize ``objective`` with Nelder-Mead and return a :class:`FitResult`."""

    state = prepare_state(objective, config)
    while not state["status"].terminal:
        state, *_ = iterate(state)
    log.info(
        "simplex stopped: %s after %d iterations, %d calls (f=%.6g)",
        state["status"].value,
        state["iterations"],
        state["objective"].calls,
        state["f"],
    )
    return result_from_state(state, method="simplex")
