import numpy as np
import pytest

from uncertainty import goodness, hessian


def test_errors_from_diagonal_hessian():
    rep = hessian.estimate(np.diag([2.0, 8.0]), 2)
    assert rep.ok
    assert np.allclose(rep.errors, [1.0, 0.5])
    assert np.allclose(rep.covariance, np.diag([1.0, 0.25]))


def test_errordef_scaling():
    rep = hessian.estimate(np.diag([2.0, 8.0]), 2, errordef=4.0)
    assert np.allclose(rep.errors, [2.0, 1.0])


def test_correlated_hessian_matches_inverse():
    H = np.array([[4.0, 1.0], [1.0, 3.0]])
    rep = hessian.estimate(H, 2)
    assert np.allclose(rep.covariance, 2.0 * np.linalg.inv(H))
    assert np.allclose(rep.covariance, rep.covariance.T)


@pytest.mark.parametrize(
    "H",
    [
        np.array([[2.0, 0.0], [0.0, 0.0]]),  # singular
        np.array([[1.0, 2.0], [2.0, 1.0]]),  # indefinite
        np.array([[np.nan, 0.0], [0.0, 1.0]]),
    ],
)
def test_unusable_hessian_gives_nan(H):
    assert hessian.invert_hessian(H) is None
    rep = hessian.estimate(H, 2)
    assert not rep.ok
    assert np.all(np.isnan(rep.errors))
    assert np.all(np.isnan(rep.covariance))
    assert rep.message


def test_missing_hessian():
    rep = hessian.estimate(None, 3)
    assert not rep.ok and rep.errors.shape == (3,)


def test_correlation_matrix():
    corr = hessian.correlation(np.array([[4.0, 2.0], [2.0, 9.0]]))
    assert np.allclose(corr, [[1.0, 1.0 / 3.0], [1.0 / 3.0, 1.0]])
    assert hessian.correlation(np.zeros((0, 0))).shape == (0, 0)
    assert np.isnan(hessian.correlation(np.zeros((2, 2)))).all()


def test_chi2_per_dof():
    assert goodness.chi2_per_dof(14.0, 9, 2) == pytest.approx(2.0)
    assert np.isnan(goodness.chi2_per_dof(1.0, 2, 2))
    assert np.isnan(goodness.chi2_per_dof(np.inf, 9, 2))


def test_chi2_pvalue():
    assert 0.3 < goodness.chi2_pvalue(7.0, 7) < 0.6
    assert goodness.chi2_pvalue(100.0, 7) < 1e-10
    assert np.isnan(goodness.chi2_pvalue(1.0, 0))


def test_confidence_intervals():
    lo, hi = goodness.confidence_intervals([1.0, 2.0], [1.0, np.nan])
    assert lo[0] == pytest.approx(1.0 - 1.959963984540054)
    assert hi[0] == pytest.approx(1.0 + 1.959963984540054)
    assert np.isnan(lo[1]) and np.isnan(hi[1])
    lo90, hi90 = goodness.confidence_intervals([0.0], [1.0], alpha=0.1)
    assert hi90[0] == pytest.approx(1.6448536269514722)
    with pytest.raises(ValueError):
        goodness.confidence_intervals([0.0], [1.0], alpha=1.5)
