import numpy as np
import pytest

import fit
from fit import orchestrator, simplex
from fit.config import StepConfiguration
from fit.result import MinimizerState


def _bowl(x):
    return float((x[0] - 1.0) ** 2 + (x[1] - 2.0) ** 2)


def _guarded_bowl(x):
    # undefined for non-positive first parameter
    return np.nan if x[0] <= 0.0 else _bowl(x)


def test_simplex_minimizes_quadratic():
    res = simplex.minimize(_bowl, StepConfiguration((0.0, 0.0), (0.5, 0.5)))
    assert res.success
    assert res.method == "simplex"
    assert res.state is MinimizerState.CONVERGED
    assert np.allclose(res.parameters, [1.0, 2.0], atol=5e-3)
    assert np.allclose(res.standard_errors, [1.0, 1.0], rtol=1e-3)
    history = np.asarray(res.diagnostics["history"])
    assert np.all(np.diff(history) <= 0.0)


def test_simplex_respects_budgets():
    res = simplex.minimize(_bowl, StepConfiguration((0.0, 0.0), (0.5, 0.5), max_function_calls=5))
    assert res.state is MinimizerState.MAX_CALLS
    assert res.function_calls <= 5
    res = simplex.minimize(_bowl, StepConfiguration((0.0, 0.0), (0.5, 0.5), max_iterations=2))
    assert res.state is MinimizerState.MAX_ITERATIONS
    assert res.iterations == 2


def test_solve_dispatch():
    cfg = StepConfiguration((0.0, 0.0), (0.5, 0.5))
    assert fit.solve(_bowl, cfg, "migrad").method == "migrad"
    assert fit.solve(_bowl, cfg, "simplex").method == "simplex"
    assert fit.available_methods() == ["migrad", "simplex"]


def test_unknown_solver_rejected():
    with pytest.raises(ValueError):
        fit.solve(_bowl, StepConfiguration((0.0,), (1.0,)), "bfgs")


def test_step_dispatch_through_registry():
    state = fit.prepare_state(_bowl, StepConfiguration((0.0, 0.0), (0.5, 0.5)), "simplex")
    state, accepted, f0, f1, info = orchestrator.step_once(state)
    assert state["iterations"] == 1
    assert f1 <= f0


def test_fallback_runs_on_numerical_failure():
    cfg = StepConfiguration((0.0005, 0.0), (0.1, 0.1))
    res = orchestrator.run_fit_with_fallbacks(_guarded_bowl, cfg, "migrad")
    assert res.success
    assert res.method == "simplex"
    assert np.allclose(res.parameters, [1.0, 2.0], atol=5e-3)
    attempts = [a for a in res.diagnostics["fallbacks"] if "method" in a]
    assert [a["method"] for a in attempts] == ["migrad", "simplex"]
    assert attempts[0]["state"] == MinimizerState.NUMERICAL_FAILURE.value
    assert res.function_calls <= cfg.max_function_calls


def test_no_fallback_when_disabled():
    cfg = StepConfiguration((0.0005, 0.0), (0.1, 0.1))
    res = orchestrator.run_fit_with_fallbacks(_guarded_bowl, cfg, "migrad", fallbacks=())
    assert res.state is MinimizerState.NUMERICAL_FAILURE
    assert res.method == "migrad"
    assert not res.success


def test_no_fallback_on_budget_exhaustion():
    cfg = StepConfiguration((0.0, 0.0), (0.5, 0.5), max_function_calls=3)
    res = orchestrator.run_fit_with_fallbacks(_bowl, cfg, "migrad")
    assert res.state is MinimizerState.MAX_CALLS
    assert res.method == "migrad"


def test_fallback_failure_is_reported():
    cfg = StepConfiguration((1.0, 1.0), (0.1, 0.1))
    res = orchestrator.run_fit_with_fallbacks(lambda x: float("nan"), cfg, "migrad")
    assert not res.success
    assert res.state is MinimizerState.NUMERICAL_FAILURE
    assert res.method == "simplex"
    assert len(res.diagnostics["fallbacks"]) == 2
