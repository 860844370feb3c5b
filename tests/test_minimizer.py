import numpy as np
import pytest

from core import models
from core.objective import AsymmetricChi2
from core.observations import observations_from_arrays
from fit import minimizer
from fit.config import StepConfiguration
from fit.result import MinimizerState


def _wls(t, y, sigma):
    A = np.column_stack([t, np.ones_like(t)])
    W = np.diag(1.0 / sigma**2)
    M = A.T @ W @ A
    beta = np.linalg.solve(M, A.T @ W @ y)
    return beta, np.linalg.inv(M)


def test_linear_recovers_weighted_least_squares(linear_data):
    t, y, s = linear_data["t"], linear_data["y"], linear_data["sigma"]
    obj = AsymmetricChi2(models.linear, observations_from_arrays(y, t, s, s))
    cfg = StepConfiguration((1.0, 0.0), (0.1, 0.1), names=("a", "b"))
    res = minimizer.minimize(obj, cfg)

    beta, cov = _wls(t, y, s)
    assert res.success
    assert res.state is MinimizerState.CONVERGED
    assert np.allclose(res.parameters, beta, rtol=1e-6, atol=1e-9)
    assert np.allclose(res.standard_errors, np.sqrt(np.diag(cov)), rtol=1e-5)
    assert np.allclose(res.covariance, cov, rtol=1e-5, atol=1e-10)
    assert res.objective_at_minimum == pytest.approx(obj(beta), rel=1e-9)
    assert res.edm < cfg.tolerance


def test_errordef_scales_errors(linear_data):
    t, y, s = linear_data["t"], linear_data["y"], linear_data["sigma"]
    obj = AsymmetricChi2(models.linear, observations_from_arrays(y, t, s, s))
    base = minimizer.minimize(obj, StepConfiguration((1.0, 0.0), (0.1, 0.1)))
    half = minimizer.minimize(obj, StepConfiguration((1.0, 0.0), (0.1, 0.1), errordef=0.5))
    assert np.allclose(half.standard_errors, base.standard_errors * np.sqrt(0.5), rtol=1e-6)


def test_decay_example_converges(decay_observations, decay_config):
    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    res = minimizer.minimize(obj, decay_config)

    assert res.success
    assert res.value("lambda") == pytest.approx(0.1, rel=0.05)
    assert res.value("A0") == pytest.approx(1000.0, rel=0.05)
    assert np.all(np.isfinite(res.standard_errors)) and np.all(res.standard_errors > 0)
    assert res.objective_at_minimum < 2 * obj.ndof(2)
    assert res.function_calls <= decay_config.max_function_calls
    assert 0 < res.iterations <= decay_config.max_iterations


def test_history_is_non_increasing(decay_observations, decay_config):
    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    res = minimizer.minimize(obj, decay_config)
    history = np.asarray(res.diagnostics["history"])
    assert history.size >= 2
    assert np.all(np.diff(history) <= 0.0)
    assert history[-1] == res.objective_at_minimum


def test_restart_from_minimum_is_idempotent(decay_observations, decay_config):
    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    first = minimizer.minimize(obj, decay_config)
    again = minimizer.minimize(obj, decay_config.restart(first.parameters))

    assert again.success
    assert again.iterations <= 1
    assert np.allclose(again.parameters, first.parameters, rtol=1e-5)
    assert again.objective_at_minimum <= first.objective_at_minimum + decay_config.tolerance
    assert np.allclose(again.standard_errors, first.standard_errors, rtol=1e-3)


@pytest.mark.parametrize("strategy", [0, 1, 2])
def test_strategies_reach_the_same_minimum(decay_observations, decay_config, strategy):
    from dataclasses import replace

    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    res = minimizer.minimize(obj, replace(decay_config, strategy=strategy))
    assert res.state.terminal
    assert res.value("lambda") == pytest.approx(0.1, rel=0.05)
    assert res.value("A0") == pytest.approx(1000.0, rel=0.05)
    if strategy > 0:
        assert res.success


def test_zero_iterations_returns_initial_point(decay_observations, decay_config):
    from dataclasses import replace

    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    res = minimizer.minimize(obj, replace(decay_config, max_iterations=0))
    assert not res.success
    assert res.state is MinimizerState.MAX_ITERATIONS
    assert np.array_equal(res.parameters, decay_config.x0())
    assert res.function_calls <= 1
    assert res.iterations == 0
    assert np.all(np.isnan(res.standard_errors))


def test_call_budget_exhausted(decay_observations, decay_config):
    from dataclasses import replace

    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    res = minimizer.minimize(obj, replace(decay_config, max_function_calls=10))
    assert not res.success
    assert res.state is MinimizerState.MAX_CALLS
    assert res.function_calls <= 10
    assert res.objective_at_minimum <= obj(decay_config.x0())
    assert "budget" in res.message


def test_non_finite_start_is_numerical_failure():
    cfg = StepConfiguration((1.0, 2.0), (0.1, 0.1))
    res = minimizer.minimize(lambda p: float("nan"), cfg)
    assert not res.success
    assert res.state is MinimizerState.NUMERICAL_FAILURE
    assert res.function_calls == 1
    assert res.iterations == 0
    assert np.all(np.isnan(res.standard_errors))


def test_non_finite_gradient_is_numerical_failure():
    def f(x):
        return np.nan if x[0] > 1.0005 else float(x[0] ** 2 + x[1] ** 2)

    res = minimizer.minimize(f, StepConfiguration((1.0, 0.0), (0.1, 0.1)))
    assert res.state is MinimizerState.NUMERICAL_FAILURE
    assert "gradient" in res.message
    assert np.array_equal(res.parameters, [1.0, 0.0])


def test_non_finite_hessian_is_numerical_failure():
    # only the mixed-partial probes land in the undefined quadrant
    def f(x):
        if x[0] > 0.0 and x[1] > 0.0:
            return np.nan
        return float((x[0] + 1.0) ** 2 + (x[1] + 2.0) ** 2)

    res = minimizer.minimize(f, StepConfiguration((0.0, 0.0), (0.1, 0.1)))
    assert not res.success
    assert res.state is MinimizerState.NUMERICAL_FAILURE
    assert "Hessian" in res.message
    assert np.array_equal(res.parameters, [0.0, 0.0])
    assert res.diagnostics["fallbacks"] == []
    assert np.all(np.isnan(res.standard_errors))


def test_line_search_stagnation_after_steepest_retry():
    def f(x):
        return float((x[0] - 1.0) ** 2 + (0.0 if abs(x[0]) < 1e-2 else 10.0))

    res = minimizer.minimize(f, StepConfiguration((0.0,), (0.1,)))
    assert not res.success
    assert res.state is MinimizerState.MAX_ITERATIONS
    assert res.message == "line search made no progress"
    assert any(fb["reason"] == "line_search" for fb in res.diagnostics["fallbacks"])
    assert abs(res.parameters[0]) < 1e-2


def test_singular_hessian_gives_nan_errors():
    # second parameter never enters the objective
    res = minimizer.minimize(lambda x: float((x[0] - 3.0) ** 2), StepConfiguration((0.0, 5.0), (1.0, 1.0)))
    assert not res.success
    assert res.state is MinimizerState.CONVERGED
    assert res.parameters[0] == pytest.approx(3.0, abs=1e-6)
    assert res.parameters[1] == 5.0
    assert np.all(np.isnan(res.standard_errors))
    assert res.diagnostics["fallbacks"]


def test_step_wise_iteration(decay_observations, decay_config):
    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    state = minimizer.prepare_state(obj, decay_config)
    assert state["status"] is MinimizerState.INITIALIZED
    state, accepted, f0, f1, info = minimizer.iterate(state)
    assert accepted
    assert f1 < f0
    assert info["mode"] in ("newton", "steepest")
    assert state["iterations"] == 1
    while not state["status"].terminal:
        state, *_ = minimizer.iterate(state)
    before = state["objective"].calls
    state, accepted, f0, f1, info = minimizer.iterate(state)
    assert not accepted and f0 == f1 and info["reason"] == "terminal"
    assert state["objective"].calls == before
    res = minimizer.result_from_state(state)
    assert res.success


def test_prepare_state_rejects_plain_dict():
    with pytest.raises(ValueError):
        minimizer.prepare_state(lambda x: 0.0, {"initial_values": [1.0]})


def test_independent_runs_do_not_share_state(decay_observations, decay_config):
    obj = AsymmetricChi2(models.exponential_decay, decay_observations)
    a = minimizer.minimize(obj, decay_config)
    b = minimizer.minimize(obj, decay_config)
    assert np.array_equal(a.parameters, b.parameters)
    assert a.function_calls == b.function_calls
