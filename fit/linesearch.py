"""Backtracking line search used by the Newton minimizer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

ARMIJO_C1 = 1e-4


@dataclass(frozen=True)
class LineSearchResult:
    accepted: bool
    alpha: float
    params: np.ndarray
    value: float
    halvings: int
    reason: str


def backtrack(
    f: Callable[[np.ndarray], float],
    params: Sequence[float],
    direction: Sequence[float],
    f0: float,
    slope: Optional[float] = None,
    alpha0: float = 1.0,
    max_halvings: int = 20,
    min_alpha: float = 1e-10,
) -> LineSearchResult:
    """Halve ``alpha`` from ``alpha0`` until ``f(x + alpha*d) < f(x)``.

    When ``slope`` (the directional derivative ``g . d``) is known and
    negative the Armijo condition ``f_new <= f0 + c1*alpha*slope`` is required
    as well.  Non-finite trial values count as no decrease.  If no step is
    accepted within ``max_halvings`` halvings, or ``alpha`` drops below
    ``min_alpha``, the original point is returned with ``accepted=False``.
    """

    x = np.asarray(params, dtype=float)
    d = np.asarray(direction, dtype=float)
    if not np.all(np.isfinite(d)) or not np.any(d):
        return LineSearchResult(False, 0.0, x, float(f0), 0, "bad_direction")
    armijo = slope is not None and np.isfinite(slope) and slope < 0.0

    alpha = float(alpha0)
    halvings = 0
    while True:
        x_try = x + alpha * d
        f_try = float(f(x_try))
        if np.isfinite(f_try) and f_try < f0:
            if not armijo or f_try <= f0 + ARMIJO_C1 * alpha * slope:
                return LineSearchResult(True, alpha, x_try, f_try, halvings, "accepted")
        if halvings >= max_halvings or alpha * 0.5 < min_alpha:
            return LineSearchResult(False, 0.0, x, float(f0), halvings, "no_decrease")
        alpha *= 0.5
        halvings += 1


def steepest_direction(grad: Sequence[float], step_sizes: Sequence[float]) -> np.ndarray:
    """Negative gradient preconditioned by the squared step sizes.

    The result is capped so that no parameter moves by more than one step
    size at ``alpha = 1``.
    """

    g = np.asarray(grad, dtype=float)
    s = np.asarray(step_sizes, dtype=float)
    d = -g * s * s
    scale = float(np.max(np.abs(d) / s)) if d.size else 0.0
    if scale > 1.0:
        d = d / scale
    return d
