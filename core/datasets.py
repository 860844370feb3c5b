"""Reference datasets for Asymfit 1.x."""
from __future__ import annotations

from typing import Tuple

from .observations import Observation

# Pseudo-data for A(t) = A0 * exp(-lambda * t) with A0 = 1000, lambda = 0.1.
# Columns: measured activity, time (days), error below, error above.
_DECAY_ROWS = (
    (995.0, 0.0, 30.0, 30.0),
    (615.0, 5.0, 20.0, 20.0),
    (375.0, 10.0, 15.0, 15.0),
    (220.0, 15.0, 10.0, 10.0),
    (140.0, 20.0, 8.0, 8.0),
    (85.0, 25.0, 5.0, 5.0),
    (51.0, 30.0, 4.0, 4.0),
    (32.0, 35.0, 3.0, 3.0),
    (17.5, 40.0, 2.0, 2.0),
)

DECAY_INITIAL = (0.2, 900.0)
DECAY_STEPS = (0.01, 10.0)


def decay_example() -> Tuple[Observation, ...]:
    """Return the nine-point radioactive decay dataset."""

    return tuple(Observation(*row) for row in _DECAY_ROWS)


EXAMPLES = {
    "decay": (decay_example, "exponential_decay", DECAY_INITIAL, DECAY_STEPS),
}
