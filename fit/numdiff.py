"""Central finite-difference gradient and Hessian of a scalar objective.

The objective is treated as a black box.  Perturbations are derived from the
per-parameter step sizes scaled by the strategy level; higher strategies add
Richardson refinement passes (``h``, ``h/2``, ``h/4`` ...) which cancel the
leading truncation error at the price of extra evaluations.

Non-finite probe values never raise: the affected gradient component or
Hessian entries come back as ``nan`` and the caller decides what to do.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .config import STRATEGIES

__all__ = ["fd_steps", "gradient", "hessian", "gradient_and_hessian"]

Objective = Callable[[np.ndarray], float]


def fd_steps(step_sizes: Sequence[float], strategy: int = 1, params: Optional[np.ndarray] = None) -> np.ndarray:
    """Return the base perturbation ``h`` for each parameter.

    ``h`` is the step size times the strategy's ``fd_scale``; when ``params``
    is given it is floored at ``1e-8 * (1 + |x|)`` to stay clear of round-off.
    """

    h = np.asarray(step_sizes, dtype=float) * STRATEGIES[strategy].fd_scale
    if params is not None:
        h = np.maximum(h, 1e-8 * (1.0 + np.abs(np.asarray(params, dtype=float))))
    return h


def _probe(f: Objective, x: np.ndarray, i: int, hi: float, j: int | None = None, hj: float = 0.0) -> float:
    xt = x.copy()
    xt[i] += hi
    if j is not None:
        xt[j] += hj
    return float(f(xt))


def _central_pass(
    f: Objective,
    x: np.ndarray,
    h: np.ndarray,
    f0: float,
    want_hessian: bool,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    n = x.size
    g = np.full(n, np.nan)
    fp = np.empty(n)
    fm = np.empty(n)
    for i in range(n):
        fp[i] = _probe(f, x, i, h[i])
        fm[i] = _probe(f, x, i, -h[i])
        if np.isfinite(fp[i]) and np.isfinite(fm[i]):
            g[i] = (fp[i] - fm[i]) / (2.0 * h[i])
    if not want_hessian:
        return g, None

    H = np.full((n, n), np.nan)
    f0_ok = np.isfinite(f0)
    for i in range(n):
        if f0_ok and np.isfinite(fp[i]) and np.isfinite(fm[i]):
            H[i, i] = (fp[i] - 2.0 * f0 + fm[i]) / (h[i] * h[i])
    for i in range(n):
        for j in range(i + 1, n):
            fpp = _probe(f, x, i, h[i], j, h[j])
            fpm = _probe(f, x, i, h[i], j, -h[j])
            fmp = _probe(f, x, i, -h[i], j, h[j])
            fmm = _probe(f, x, i, -h[i], j, -h[j])
            if np.all(np.isfinite([fpp, fpm, fmp, fmm])):
                H[i, j] = H[j, i] = (fpp - fpm - fmp + fmm) / (4.0 * h[i] * h[j])
    return g, H


def _richardson(estimates: List[np.ndarray]) -> np.ndarray:
    """Combine estimates taken at ``h, h/2, h/4, ...`` (error ``O(h^2)``)."""

    table = list(estimates)
    k = 1
    while len(table) > 1:
        fac = 4.0**k
        table = [(fac * table[m + 1] - table[m]) / (fac - 1.0) for m in range(len(table) - 1)]
        k += 1
    return table[0]


def _passes(f, x, step_sizes, strategy, f0, refinements, want_hessian):
    x = np.asarray(x, dtype=float)
    if x.ndim != 1 or x.size == 0:
        raise ValueError("params must be a non-empty 1-D vector")
    steps = np.asarray(step_sizes, dtype=float)
    if steps.shape != x.shape:
        raise ValueError(f"got {steps.size} step sizes for {x.size} parameters")
    h = fd_steps(steps, strategy, x)
    if want_hessian and f0 is None:
        f0 = float(f(x))
    n_ref = STRATEGIES[strategy].refinements if refinements is None else int(refinements)
    gs, Hs = [], []
    for k in range(n_ref + 1):
        g, H = _central_pass(f, x, h / (2.0**k), f0 if f0 is not None else np.nan, want_hessian)
        gs.append(g)
        Hs.append(H)
    g = _richardson(gs)
    if not want_hessian:
        return g, None
    H = _richardson(Hs)
    return g, 0.5 * (H + H.T)


def gradient(
    f: Objective,
    params: Sequence[float],
    step_sizes: Sequence[float],
    strategy: int = 1,
    refinements: Optional[int] = None,
) -> np.ndarray:
    """Central-difference gradient ``(f(x+h e_i) - f(x-h e_i)) / 2h``.

    Costs ``2N`` evaluations per pass.
    """

    g, _ = _passes(f, params, step_sizes, strategy, None, refinements, want_hessian=False)
    return g


def hessian(
    f: Objective,
    params: Sequence[float],
    step_sizes: Sequence[float],
    strategy: int = 1,
    f0: Optional[float] = None,
    refinements: Optional[int] = None,
) -> np.ndarray:
    """Symmetric central-difference Hessian (4-point stencil off the diagonal)."""

    _, H = _passes(f, params, step_sizes, strategy, f0, refinements, want_hessian=True)
    return H


def gradient_and_hessian(
    f: Objective,
    params: Sequence[float],
    step_sizes: Sequence[float],
    strategy: int = 1,
    f0: Optional[float] = None,
    refinements: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Gradient and Hessian sharing the axis probes.

    One pass costs ``2N**2`` evaluations (``2N`` axis probes plus four per
    parameter pair), plus one for ``f0`` when it is not supplied.
    """

    return _passes(f, params, step_sizes, strategy, f0, refinements, want_hessian=True)
