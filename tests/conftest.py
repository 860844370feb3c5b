from pathlib import Path
import sys

import numpy as np
import pytest

# ensure project root importable
sys.path.append(str(Path(__file__).resolve().parents[1]))

# deterministic RNG fixture
@pytest.fixture
def rng():
    return np.random.default_rng(123)

# nine-point decay dataset used throughout the engine tests
@pytest.fixture
def decay_observations():
    from core import datasets

    return datasets.decay_example()

# straight line with symmetric, point-dependent errors
@pytest.fixture
def linear_data(rng):
    t = np.arange(10, dtype=float)
    sigma = 0.5 + 0.1 * t
    y = 2.0 * t + 1.0 + sigma * rng.standard_normal(t.size)
    return {"t": t, "y": y, "sigma": sigma}


@pytest.fixture
def decay_config():
    from core import datasets
    from fit.config import StepConfiguration

    return StepConfiguration(
        initial_values=datasets.DECAY_INITIAL,
        step_sizes=datasets.DECAY_STEPS,
        names=("lambda", "A0"),
    )


def write_table(path: Path, observations, header: bool = True) -> Path:
    lines = ["value,covariate,err_minus,err_plus"] if header else []
    for o in observations:
        lines.append(f"{o.value},{o.covariate},{o.err_minus},{o.err_plus}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path

# numeric comparison helper

def close_to(a, b, rtol=5e-5, atol=5e-8):
    return np.allclose(a, b, rtol=rtol, atol=atol)
