"""Newton ("migrad") minimizer on finite-difference derivatives.

The engine is exposed step-wise like the other iterative backends:
:func:`prepare_state` evaluates the starting point, :func:`iterate` performs
one Newton/steepest-descent step and :func:`minimize` loops until the state
machine reaches a terminal :class:`~fit.result.MinimizerState`.

Each iteration computes the gradient and Hessian (:mod:`fit.numdiff`), solves
``H d = -g`` by Cholesky and backtracks along ``d`` (:mod:`fit.linesearch`).
A Hessian that is not positive definite falls back to a scaled steepest
descent direction.  Convergence is declared when the estimated distance to
the minimum ``EDM = 0.5 g^T H^-1 g`` drops below ``tolerance``, when an
accepted Newton step changes the objective by less than ``tolerance``, or
when no parameter moves by more than ``xtol`` relative to its scale.
"""
from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from uncertainty import hessian as hesse
from .config import StepConfiguration
from .counting import BudgetExhausted, CountingObjective
from .linesearch import backtrack, steepest_direction
from .numdiff import gradient_and_hessian, hessian
from .result import FitResult, MinimizerState

log = logging.getLogger(__name__)

__all__ = ["prepare_state", "iterate", "minimize", "result_from_state"]


def prepare_state(objective: Callable[[np.ndarray], float], config: StepConfiguration) -> dict:
    """Evaluate the starting point and return a fresh iteration state.

    ``objective`` is wrapped in a :class:`~fit.counting.CountingObjective` so
    every evaluation, including finite-difference probes, is charged to
    ``config.max_function_calls``.  A non-finite starting value puts the
    state straight into ``NUMERICAL_FAILURE``.
    """

    if not isinstance(config, StepConfiguration):
        raise ValueError(f"expected StepConfiguration, got {type(config).__name__}")
    counted = objective if isinstance(objective, CountingObjective) else CountingObjective(
        objective, config.max_function_calls
    )
    theta = config.x0()
    f0 = counted(theta)
    state = {
        "objective": counted,
        "config": config,
        "theta": theta,
        "f": f0,
        "steps": config.steps(),
        "status": MinimizerState.INITIALIZED,
        "iterations": 0,
        "history": [f0],
        "hessian": None,
        "hessian_at": None,
        "gradient": None,
        "edm": math.nan,
        "message": "",
        "fallbacks": [],
    }
    if not math.isfinite(f0):
        _terminate(state, MinimizerState.NUMERICAL_FAILURE, "objective is not finite at the initial parameters")
    return state


def _terminate(state: dict, status: MinimizerState, message: str) -> None:
    state["status"] = status
    state["message"] = message
    log.info(
        "minimizer stopped: %s after %d iterations, %d calls (f=%.6g) %s",
        status.value,
        state["iterations"],
        state["objective"].calls,
        state["f"],
        message,
    )


def _out_of_calls(state: dict) -> None:
    counted = state["objective"]
    if counted.best_x is not None and counted.best_f < state["f"]:
        state["theta"] = counted.best_x.copy()
        state["f"] = counted.best_f
    _terminate(state, MinimizerState.MAX_CALLS, f"function call budget of {counted.max_calls} exhausted")


def _search(state: dict, direction: np.ndarray, grad: np.ndarray, mode: str = "newton"):
    cfg = state["config"]
    # Newton steps start at unit length
    alpha0 = 1.0 if mode == "newton" else cfg.settings.steepest_alpha
    return backtrack(
        state["objective"],
        state["theta"],
        direction,
        state["f"],
        slope=float(grad @ direction),
        alpha0=alpha0,
        max_halvings=cfg.settings.max_halvings,
    )


def iterate(state: dict):
    """Perform a single minimizer iteration.

    Returns ``(state, accepted, f_before, f_after, info)`` where ``info``
    carries ``mode`` (``"newton"`` or ``"steepest"``), ``edm``, ``alpha``,
    ``halvings`` and ``reason``.  Calling ``iterate`` on a terminal state is a
    no-op.
    """

    f_before = float(state["f"])
    info = {"mode": None, "edm": state["edm"], "alpha": 0.0, "halvings": 0, "reason": ""}
    if state["status"].terminal:
        info["reason"] = "terminal"
        return state, False, f_before, f_before, info

    cfg: StepConfiguration = state["config"]
    if state["iterations"] >= cfg.max_iterations:
        _terminate(state, MinimizerState.MAX_ITERATIONS, f"iteration limit of {cfg.max_iterations} reached")
        info["reason"] = "max_iterations"
        return state, False, f_before, f_before, info

    state["status"] = MinimizerState.ITERATING
    state["iterations"] += 1
    counted = state["objective"]
    theta = state["theta"]
    steps = state["steps"]

    try:
        g, H = gradient_and_hessian(counted, theta, steps, cfg.strategy, f0=f_before)
    except BudgetExhausted:
        _out_of_calls(state)
        info["reason"] = "max_calls"
        return state, False, f_before, float(state["f"]), info

    if not np.all(np.isfinite(g)):
        _terminate(state, MinimizerState.NUMERICAL_FAILURE, "gradient is not finite")
        info["reason"] = "nonfinite"
        return state, False, f_before, f_before, info
    if not np.all(np.isfinite(H)):
        _terminate(state, MinimizerState.NUMERICAL_FAILURE, "Hessian is not finite")
        info["reason"] = "nonfinite"
        return state, False, f_before, f_before, info
    state["gradient"] = g
    state["hessian"] = H
    state["hessian_at"] = theta.copy()

    inv = hesse.invert_hessian(H)
    if inv is not None:
        direction = -(inv @ g)
        edm = 0.5 * float(g @ inv @ g)
        mode = "newton"
    else:
        direction = steepest_direction(g, steps)
        edm = math.nan
        mode = "steepest"
        log.warning("iteration %d: Hessian not positive definite, using steepest descent", state["iterations"])
        state["fallbacks"].append({"iteration": state["iterations"], "reason": "hessian"})
    state["edm"] = edm
    info.update(mode=mode, edm=edm)

    if mode == "newton" and edm < cfg.tolerance:
        _terminate(state, MinimizerState.CONVERGED, f"EDM {edm:.3g} below tolerance")
        info["reason"] = "edm"
        return state, False, f_before, f_before, info
    if mode == "steepest" and -float(g @ direction) < cfg.tolerance:
        _terminate(state, MinimizerState.CONVERGED, "predicted decrease along steepest descent below tolerance")
        info["reason"] = "flat"
        return state, False, f_before, f_before, info

    try:
        ls = _search(state, direction, g, mode)
        if not ls.accepted and mode == "newton":
            log.warning("iteration %d: Newton step made no progress, retrying along steepest descent", state["iterations"])
            state["fallbacks"].append({"iteration": state["iterations"], "reason": "line_search"})
            mode = "steepest"
            info["mode"] = mode
            ls = _search(state, steepest_direction(g, steps), g, mode)
    except BudgetExhausted:
        _out_of_calls(state)
        info["reason"] = "max_calls"
        return state, False, f_before, float(state["f"]), info

    info.update(alpha=ls.alpha, halvings=ls.halvings, reason=ls.reason)
    if not ls.accepted:
        _terminate(state, MinimizerState.MAX_ITERATIONS, "line search made no progress")
        return state, False, f_before, f_before, info

    dx = ls.params - theta
    state["theta"] = ls.params
    state["f"] = ls.value
    state["history"].append(ls.value)
    log.debug(
        "iteration %d (%s): f=%.10g df=%.3g alpha=%.3g edm=%.3g",
        state["iterations"],
        mode,
        ls.value,
        ls.value - f_before,
        ls.alpha,
        edm,
    )

    if abs(f_before - ls.value) < cfg.tolerance:
        _terminate(state, MinimizerState.CONVERGED, "objective change below tolerance")
    elif np.all(np.abs(dx) <= cfg.xtol * (np.abs(ls.params) + steps)):
        _terminate(state, MinimizerState.CONVERGED, "parameter change below xtol")
    return state, True, f_before, ls.value, info


def result_from_state(state: dict, method: str = "migrad") -> FitResult:
    """Build a :class:`FitResult` from a terminal (or interrupted) state.

    On convergence the Hessian is re-evaluated at the final parameters unless
    the last one was already taken there; otherwise the most recent Hessian
    gives best-effort errors.
    """

    cfg: StepConfiguration = state["config"]
    counted = state["objective"]
    theta = np.asarray(state["theta"], dtype=float)
    status = state["status"]
    message = state["message"]
    H = state["hessian"]

    if status is MinimizerState.CONVERGED:
        at = state["hessian_at"]
        if H is None or at is None or not np.array_equal(at, theta):
            try:
                H = hessian(counted, theta, state["steps"], cfg.strategy, f0=state["f"])
            except BudgetExhausted:
                message = "function call budget exhausted while estimating errors"
                log.warning(message)

    if status is MinimizerState.NUMERICAL_FAILURE:
        report = hesse.estimate(None, cfg.n_params, cfg.errordef)
    else:
        report = hesse.estimate(H, cfg.n_params, cfg.errordef)
    if status is MinimizerState.CONVERGED and not report.ok:
        message = f"{message}; {report.message}" if message else report.message
        log.warning("converged but errors unavailable: %s", report.message)

    success = status is MinimizerState.CONVERGED and report.ok
    return FitResult(
        success=bool(success),
        parameters=theta,
        standard_errors=report.errors,
        objective_at_minimum=float(state["f"]),
        iterations=int(state["iterations"]),
        function_calls=int(counted.calls),
        state=status,
        names=cfg.names,
        covariance=report.covariance,
        edm=float(state["edm"]),
        method=method,
        message=message,
        diagnostics={"history": list(state["history"]), "fallbacks": list(state["fallbacks"])},
    )


def minimize(objective: Callable[[np.ndarray], float], config: StepConfiguration) -> FitResult:
    """Minimize ``objective`` from ``config`` and return a :class:`FitResult`."""

    state = prepare_state(objective, config)
    while not state["status"].terminal:
        state, *_ = iterate(state)
    return result_from_state(state)

