import numpy as np
import pytest

from perk.errors import ConfigurationError
from perk.metrics import holdout_cost, mse, relative_rmse, rmse


def test_holdout_cost_formula():
    x = np.array([[1.0, 2.0, 4.0], [10.0, 10.0, 10.0]])
    xhat = np.array([[1.5, 2.0, 3.0], [11.0, 9.0, 10.0]])
    w = np.array([1.0, 4.0])

    werr = ((xhat - x) / x) * np.sqrt(w)[:, None]
    expected = np.sqrt(np.sqrt(np.sum(werr**2)) / 3)
    assert np.isclose(holdout_cost(xhat, x, w), expected)


def test_holdout_cost_is_zero_for_perfect_estimate():
    x = np.array([1.0, 5.0, 7.0])
    assert holdout_cost(x.copy(), x) == 0.0


def test_holdout_cost_accepts_single_row():
    x = np.array([2.0, 4.0])
    xhat = np.array([3.0, 4.0])
    # ||[0.5, 0]|| = 0.5, N = 2
    assert np.isclose(holdout_cost(xhat, x), np.sqrt(0.25))


def test_holdout_cost_shape_mismatch():
    with pytest.raises(ConfigurationError, match="shape"):
        holdout_cost(np.ones((2, 3)), np.ones((1, 3)))


def test_mse_and_rmse():
    x = np.array([0.0, 0.0, 0.0, 0.0])
    xhat = np.array([1.0, -1.0, 1.0, -1.0])
    assert mse(x, xhat) == 1.0
    assert rmse(x, xhat) == 1.0
    assert np.isclose(relative_rmse(np.array([2.0, 4.0]), np.array([3.0, 2.0])), 0.5)
