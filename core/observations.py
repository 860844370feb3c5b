"""Observation records for Asymfit 1.x."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Observation:
    """A single measured point with asymmetric uncertainty.

    ``err_minus`` applies when the model prediction falls below ``value`` and
    ``err_plus`` when it lies above.  Both must be strictly positive.
    """

    value: float
    covariate: float
    err_minus: float
    err_plus: float

    def __post_init__(self) -> None:
        for name in ("value", "covariate", "err_minus", "err_plus"):
            v = getattr(self, name)
            try:
                fv = float(v)
            except (TypeError, ValueError):
                raise ValueError(f"Observation.{name} must be a real number, got {v!r}") from None
            if not math.isfinite(fv):
                raise ValueError(f"Observation.{name} must be finite, got {v!r}")
            object.__setattr__(self, name, fv)
        if self.err_minus <= 0.0 or self.err_plus <= 0.0:
            raise ValueError(
                "Observation error bars must be > 0 "
                f"(err_minus={self.err_minus}, err_plus={self.err_plus})"
            )


def observations_from_arrays(
    values: Sequence[float],
    covariates: Sequence[float],
    err_minus: Sequence[float],
    err_plus: Sequence[float] | None = None,
) -> Tuple[Observation, ...]:
    """Build validated observations from parallel sequences.

    ``err_plus`` defaults to ``err_minus`` (symmetric errors).
    """

    v = np.atleast_1d(np.asarray(values, dtype=float))
    t = np.atleast_1d(np.asarray(covariates, dtype=float))
    em = np.atleast_1d(np.asarray(err_minus, dtype=float))
    ep = em if err_plus is None else np.atleast_1d(np.asarray(err_plus, dtype=float))
    if not (v.size == t.size == em.size == ep.size):
        raise ValueError(
            f"length mismatch: values={v.size}, covariates={t.size}, "
            f"err_minus={em.size}, err_plus={ep.size}"
        )
    return tuple(Observation(*row) for row in zip(v, t, em, ep))


def as_arrays(observations: Iterable[Observation]) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(value, covariate, err_minus, err_plus)`` as float arrays."""

    obs = list(observations)
    if not obs:
        empty = np.zeros(0, dtype=float)
        return empty, empty.copy(), empty.copy(), empty.copy()
    arr = np.array([(o.value, o.covariate, o.err_minus, o.err_plus) for o in obs], dtype=float)
    return arr[:, 0], arr[:, 1], arr[:, 2], arr[:, 3]


def serialize(observations: Iterable[Observation]) -> List[dict]:
    """Serialize observations into dictionaries suitable for JSON/CSV export."""

    return [asdict(o) for o in observations]


def deserialize(records: Iterable[dict]) -> List[Observation]:
    """Reconstruct ``Observation`` objects from an iterable of dictionaries."""

    return [Observation(**rec) for rec in records]
