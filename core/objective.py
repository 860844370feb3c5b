"""Asymmetric chi-square objective for Asymfit 1.x."""
from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from .observations import Observation, as_arrays


class AsymmetricChi2:
    """Chi-square with the error bar chosen by the side the residual falls on.

    For each observation ``diff = model(params, covariate) - value``; the
    contribution is ``diff**2 / err_plus**2`` when ``diff > 0`` and
    ``diff**2 / err_minus**2`` otherwise.  The resulting function has a kink in
    its curvature at ``diff == 0`` for every point with unequal error bars.

    Calling the instance never raises for numeric reasons.  Overflow or an
    ``ArithmeticError`` inside ``model`` yields ``inf``/``nan`` which the
    minimizers treat as a rejected probe.
    """

    def __init__(self, model: Callable, observations: Sequence[Observation]):
        obs = tuple(observations)
        if not obs:
            raise ValueError("at least one observation is required")
        for o in obs:
            if not isinstance(o, Observation):
                raise ValueError(f"expected Observation, got {type(o).__name__}")
        self.model = model
        self.observations = obs
        self._value, self._t, self._em, self._ep = as_arrays(obs)

    @property
    def n_points(self) -> int:
        return int(self._value.size)

    def ndof(self, n_params: int) -> int:
        return self.n_points - int(n_params)

    def predict(self, params) -> np.ndarray:
        theta = np.asarray(params, dtype=float)
        try:
            pred = self.model(theta, self._t)
        except ArithmeticError:
            return np.full(self._t.shape, np.nan)
        pred = np.asarray(pred, dtype=float)
        return np.broadcast_to(pred, self._t.shape)

    def residuals(self, params) -> np.ndarray:
        """Signed pulls ``diff / sigma`` using the side-dependent error bar."""

        diff = self.predict(params) - self._value
        sigma = np.where(diff > 0.0, self._ep, self._em)
        with np.errstate(over="ignore", invalid="ignore"):
            return diff / sigma

    def __call__(self, params) -> float:
        r = self.residuals(params)
        with np.errstate(over="ignore", invalid="ignore"):
            return float(np.sum(r * r))


def build_chi2(model: Callable, observations: Sequence[Observation]) -> Callable[[np.ndarray], float]:
    """Return ``chi2(params)`` for ``model`` and ``observations``."""

    objective = AsymmetricChi2(model, observations)

    def chi2(params) -> float:
        return objective(params)

    return chi2
