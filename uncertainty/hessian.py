"""Curvature-based parameter uncertainties from the objective's Hessian."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve


@dataclass(frozen=True)
class HesseReport:
    ok: bool
    errors: np.ndarray
    covariance: np.ndarray
    message: str = ""


def invert_hessian(H: np.ndarray) -> Optional[np.ndarray]:
    """Return ``H^-1`` via Cholesky, or ``None`` if ``H`` is unusable.

    ``None`` signals a non-finite, singular or not positive-definite matrix.
    """

    H = np.asarray(H, dtype=float)
    if H.ndim != 2 or H.shape[0] != H.shape[1] or H.size == 0:
        return None
    if not np.all(np.isfinite(H)):
        return None
    try:
        c, lower = cho_factor(H)
    except LinAlgError:
        return None
    inv = cho_solve((c, lower), np.eye(H.shape[0]))
    if not np.all(np.isfinite(inv)) or np.any(np.diag(inv) <= 0.0):
        return None
    return 0.5 * (inv + inv.T)


def estimate(H: Optional[np.ndarray], n_params: int, errordef: float = 1.0) -> HesseReport:
    """Standard errors ``sqrt(2 * errordef * (H^-1)_ii)``.

    For a chi-square objective (``errordef=1``) the factor 2 converts the
    curvature of chi-square into the parameter covariance.  When ``H`` cannot
    be inverted every error is ``nan`` and ``ok`` is ``False``.
    """

    nan_errors = np.full(n_params, np.nan)
    nan_cov = np.full((n_params, n_params), np.nan)
    if H is None:
        return HesseReport(False, nan_errors, nan_cov, "Hessian not available")
    inv = invert_hessian(H)
    if inv is None:
        return HesseReport(False, nan_errors, nan_cov, "Hessian not positive definite")
    cov = 2.0 * float(errordef) * inv
    errors = np.sqrt(np.diag(cov))
    return HesseReport(True, errors, cov, "")


def correlation(cov: np.ndarray) -> np.ndarray:
    """Correlation matrix from a covariance matrix (``nan`` where undefined)."""

    cov = np.asarray(cov, dtype=float)
    if cov.size == 0:
        return cov.copy()
    sigma = np.sqrt(np.abs(np.diag(cov)))
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = cov / np.outer(sigma, sigma)
    corr[~np.isfinite(corr)] = np.nan
    return corr
