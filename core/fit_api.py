"""One-call fitting entry point for Asymfit 1.x."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from fit import orchestrator
from fit.config import StepConfiguration
from fit.result import FitResult

from . import models
from .objective import AsymmetricChi2
from .observations import Observation

log = logging.getLogger(__name__)

ModelSpec = Union[str, Callable]


def resolve_model(model: ModelSpec, names: Sequence[str] = ()) -> Tuple[Callable, Tuple[str, ...]]:
    """Return ``(predict, names)`` for a registered name or a plain callable."""

    if isinstance(model, str):
        fn, default_names = models.get_model(model)
        return fn, tuple(names) or default_names
    if not callable(model):
        raise ValueError(f"model must be a name or a callable, got {type(model).__name__}")
    return model, tuple(names)


def build_config(
    initial_values: Sequence[float],
    step_sizes: Sequence[float],
    options: Optional[Mapping[str, Any]] = None,
    names: Sequence[str] = (),
) -> StepConfiguration:
    return StepConfiguration.from_options(initial_values, step_sizes, options, names=names)


def run_fit(
    model: ModelSpec,
    observations: Sequence[Observation],
    config: StepConfiguration,
    method: str = "migrad",
    fallbacks: Sequence[str] = orchestrator.FALLBACKS,
) -> FitResult:
    """Fit ``model`` to ``observations`` by minimizing the asymmetric chi-square.

    Parameters
    ----------
    model:
        Name from :data:`core.models.MODELS` or a callable ``predict(params, t)``.
    observations:
        Validated :class:`~core.observations.Observation` records.
    config:
        Starting point, step sizes and stopping policy.  When ``config`` uses
        the default ``p0, p1, ...`` names and ``model`` is a registered name,
        the model's parameter names are used instead.
    method:
        ``migrad`` or ``simplex``.
    fallbacks:
        Methods to try after a numerical failure; pass ``()`` to disable.

    Returns
    -------
    FitResult
        Best-fit parameters, standard errors and diagnostics.  ``diagnostics``
        additionally holds ``n_points`` and ``ndof``.
    """

    fn, names = resolve_model(model)
    default_names = tuple(f"p{i}" for i in range(config.n_params))
    if names and config.names == default_names:
        if len(names) != config.n_params:
            raise ValueError(f"model expects {len(names)} parameters, got {config.n_params}")
        config = replace(config, names=names)
    objective = AsymmetricChi2(fn, observations)
    log.debug("fitting %d points with %s (%s)", objective.n_points, method, ", ".join(config.names))
    result = orchestrator.run_fit_with_fallbacks(objective, config, method, fallbacks)
    diagnostics = dict(result.diagnostics)
    diagnostics["n_points"] = objective.n_points
    diagnostics["ndof"] = objective.ndof(config.n_params)
    return replace(result, diagnostics=diagnostics)
