import numpy as np
import pytest
from scipy import stats

from perk._validation import (
    _as_rows,
    _validate_count,
    _validate_grid,
    _validate_holdout_dists,
    _validate_regularization,
    _validate_training_inputs,
)
from perk.errors import ConfigurationError


def test_as_rows_layouts():
    assert _as_rows(3.0, name="a").shape == (1, 1)
    assert _as_rows([1.0, 2.0, 3.0], name="a").shape == (1, 3)
    assert _as_rows(np.ones((2, 4)), name="a").shape == (2, 4)
    with pytest.raises(ConfigurationError, match="reshape"):
        _as_rows(np.ones((2, 2, 2)), name="a")


def test_training_inputs_are_promoted():
    x, y = _validate_training_inputs([1.0, 2.0], [[3.0, 4.0], [5.0, 6.0]])
    assert x.shape == (1, 2)
    assert y.shape == (2, 2)


@pytest.mark.parametrize("rho", [-1e-3, np.inf, np.nan, "abc"])
def test_invalid_regularization(rho):
    with pytest.raises(ConfigurationError):
        _validate_regularization(rho)


def test_zero_regularization_is_allowed():
    assert _validate_regularization(0) == 0.0


def test_grid_and_count():
    assert np.array_equal(_validate_grid(2.0, name="g"), [2.0])
    with pytest.raises(ConfigurationError, match="finite"):
        _validate_grid([1.0, np.nan], name="g")
    assert _validate_count(5.0, name="N") == 5
    with pytest.raises(ConfigurationError, match="integer"):
        _validate_count(2.5, name="N")
    with pytest.raises(ConfigurationError, match="at least 2"):
        _validate_count(1, name="T", minimum=2)


def test_holdout_dists_normalization():
    d = stats.uniform(0, 1)
    w, x_test, x_train, nu_test, nu_train = _validate_holdout_dists(None, d, [d])
    assert np.array_equal(w, [1.0])
    assert x_test == [d] and x_train == [d]
    assert nu_test is None and nu_train is None

    _, _, _, nu_test, nu_train = _validate_holdout_dists([2.0], d, d, d, [d])
    assert nu_test == [d] and nu_train == [d]


def test_holdout_dists_errors():
    d = stats.uniform(0, 1)
    with pytest.raises(ConfigurationError, match="x_dists_train"):
        _validate_holdout_dists(None, [d, d], [d])
    with pytest.raises(ConfigurationError, match="non-negative"):
        _validate_holdout_dists([-1.0], d, d)
    with pytest.raises(ConfigurationError, match="nu_dists_train"):
        _validate_holdout_dists(None, d, d, [d, d], [d])
