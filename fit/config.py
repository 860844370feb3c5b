"""Step configuration and strategy levels for the minimizers."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class StrategySettings:
    """Cost/accuracy knobs selected by the ``strategy`` level."""

    fd_scale: float  # finite-difference step as a fraction of the step size
    refinements: int  # Richardson passes on gradient and Hessian
    max_halvings: int  # line-search budget
    steepest_alpha: float  # first trial length along the steepest-descent direction


STRATEGIES = {
    0: StrategySettings(fd_scale=0.1, refinements=0, max_halvings=10, steepest_alpha=1.0),
    1: StrategySettings(fd_scale=0.01, refinements=1, max_halvings=20, steepest_alpha=2.0),
    2: StrategySettings(fd_scale=0.001, refinements=2, max_halvings=30, steepest_alpha=4.0),
}


def _count(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not (math.isfinite(value) and float(value).is_integer()):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class StepConfiguration:
    """Initial point, step sizes and stopping policy of one minimization.

    ``step_sizes`` set the scale of each parameter: they seed the finite
    difference perturbations, the steepest-descent fallback and the simplex.
    ``tolerance`` applies to the objective change between Newton iterations
    and to the estimated distance to the minimum.  ``errordef`` is the
    objective increase that defines one standard deviation (1 for chi-square).
    """

    initial_values: Tuple[float, ...]
    step_sizes: Tuple[float, ...]
    names: Tuple[str, ...] = ()
    tolerance: float = 1e-6
    max_iterations: int = 1000
    max_function_calls: int = 10000
    strategy: int = 1
    errordef: float = 1.0
    xtol: float = 1e-10

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in np.atleast_1d(np.asarray(self.initial_values, dtype=float)))
        steps = tuple(float(s) for s in np.atleast_1d(np.asarray(self.step_sizes, dtype=float)))
        n = len(values)
        if n == 0:
            raise ValueError("at least one free parameter is required")
        if len(steps) != n:
            raise ValueError(f"got {len(steps)} step sizes for {n} parameters")
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"initial values must be finite, got {values}")
        if not all(math.isfinite(s) and s > 0.0 for s in steps):
            raise ValueError(f"step sizes must be finite and > 0, got {steps}")
        names = tuple(str(nm) for nm in self.names) if self.names else tuple(f"p{i}" for i in range(n))
        if len(names) != n:
            raise ValueError(f"got {len(names)} names for {n} parameters")
        if len(set(names)) != n:
            raise ValueError(f"parameter names must be unique, got {names}")
        if isinstance(self.strategy, bool) or self.strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {sorted(STRATEGIES)}, got {self.strategy!r}")
        if not (math.isfinite(self.tolerance) and self.tolerance > 0.0):
            raise ValueError(f"tolerance must be > 0, got {self.tolerance}")
        if not (math.isfinite(self.errordef) and self.errordef > 0.0):
            raise ValueError(f"errordef must be > 0, got {self.errordef}")
        if not (math.isfinite(self.xtol) and self.xtol >= 0.0):
            raise ValueError(f"xtol must be >= 0, got {self.xtol}")
        max_iterations = _count("max_iterations", self.max_iterations, 0)
        max_function_calls = _count("max_function_calls", self.max_function_calls, 1)
        object.__setattr__(self, "initial_values", values)
        object.__setattr__(self, "step_sizes", steps)
        object.__setattr__(self, "names", names)
        object.__setattr__(self, "strategy", int(self.strategy))
        object.__setattr__(self, "max_iterations", max_iterations)
        object.__setattr__(self, "max_function_calls", max_function_calls)

    @property
    def n_params(self) -> int:
        return len(self.initial_values)

    @property
    def settings(self) -> StrategySettings:
        return STRATEGIES[self.strategy]

    def x0(self) -> np.ndarray:
        return np.asarray(self.initial_values, dtype=float)

    def steps(self) -> np.ndarray:
        return np.asarray(self.step_sizes, dtype=float)

    def restart(self, values: Sequence[float]) -> "StepConfiguration":
        """Return a copy starting from ``values`` with the same policy."""

        return replace(self, initial_values=tuple(float(v) for v in values))

    @classmethod
    def from_options(
        cls,
        initial_values: Sequence[float],
        step_sizes: Sequence[float],
        options: Optional[Mapping[str, Any]] = None,
        names: Sequence[str] = (),
    ) -> "StepConfiguration":
        """Build a configuration from the ``minimizer`` section of a config."""

        opts = dict(options or {})
        return cls(
            initial_values=tuple(initial_values),
            step_sizes=tuple(step_sizes),
            names=tuple(names),
            tolerance=float(opts.get("tolerance", 1e-6)),
            max_iterations=opts.get("max_iterations", 1000),
            max_function_calls=opts.get("max_function_calls", 10000),
            strategy=opts.get("strategy", 1),
            errordef=float(opts.get("errordef", 1.0)),
            xtol=float(opts.get("xtol", 1e-10)),
        )
