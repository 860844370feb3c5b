"""Prediction models for Asymfit 1.x.

A model is any callable ``predict(params, t)`` returning the expected value at
covariate ``t``.  The built-in models are vectorised over ``t`` and never raise
for numeric reasons: overflow yields ``inf`` which the objective treats as a
failed probe.
"""
from __future__ import annotations

from typing import Callable, Dict, Tuple

import numpy as np

__all__ = [
    "exponential_decay",
    "linear",
    "MODELS",
    "get_model",
]


def exponential_decay(params, t):
    """Radioactive decay law ``A(t) = A0 * exp(-lambda * t)``.

    ``params`` is ordered ``(lambda, A0)``.
    """

    lam, a0 = params[0], params[1]
    t = np.asarray(t, dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        return a0 * np.exp(-lam * t)


def linear(params, t):
    """Straight line ``a * t + b`` with ``params`` ordered ``(a, b)``."""

    t = np.asarray(t, dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        return params[0] * t + params[1]


# Mapping of public model names to ``(callable, parameter names)``.
MODELS: Dict[str, Tuple[Callable, Tuple[str, ...]]] = {
    "exponential_decay": (exponential_decay, ("lambda", "A0")),
    "linear": (linear, ("a", "b")),
}


def get_model(name: str) -> Tuple[Callable, Tuple[str, ...]]:
    """Return ``(predict, names)`` for a registered model."""

    try:
        return MODELS[name]
    except KeyError:
        raise ValueError(f"unknown model '{name}' (known: {', '.join(sorted(MODELS))})") from None
