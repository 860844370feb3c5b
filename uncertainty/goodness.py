"""Goodness-of-fit statistics and normal confidence intervals."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from scipy import stats


def chi2_per_dof(chi2: float, n_points: int, n_params: int) -> float:
    ndof = int(n_points) - int(n_params)
    if ndof <= 0 or not np.isfinite(chi2):
        return float("nan")
    return float(chi2) / ndof


def chi2_pvalue(chi2: float, ndof: int) -> float:
    """Probability of a chi-square at least this large for ``ndof`` degrees."""

    if int(ndof) <= 0 or not np.isfinite(chi2):
        return float("nan")
    return float(stats.chi2.sf(float(chi2), int(ndof)))


def _z_value(alpha: float) -> float:
    if alpha == 0.05:
        return 1.959963984540054
    return float(stats.norm.ppf(1.0 - alpha / 2.0))


def confidence_intervals(
    values: Sequence[float],
    errors: Sequence[float],
    alpha: float = 0.05,
) -> Tuple[np.ndarray, np.ndarray]:
    """Two-sided normal intervals ``value -/+ z * error``.

    A ``nan`` error collapses the interval to ``(nan, nan)``.
    """

    if not 0.0 < alpha < 1.0:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    v = np.asarray(values, dtype=float)
    e = np.asarray(errors, dtype=float)
    z = _z_value(alpha)
    lo = v - z * e
    hi = v + z * e
    return lo, hi
