import numpy as np
import pytest
from scipy import stats

from perk.errors import ConfigurationError
from perk.sim import combine, complex2real, evaluate_signal_models, features, generate_noisy_data


def test_generate_noisy_data_shapes_and_bounds():
    rng = np.random.default_rng(0)
    y, x = generate_noisy_data(
        rng, 50, [stats.uniform(10, 490)], stats.norm(0, 0.01), lambda x: np.exp(-30 / x)
    )
    assert y.shape == (1, 50)
    assert x.shape == (1, 50)
    assert np.all((x >= 10) & (x <= 500))
    assert np.allclose(y, np.exp(-30 / x), atol=0.1)


def test_generate_noisy_data_with_known_parameters():
    y, x, nu = generate_noisy_data(
        np.random.default_rng(1),
        20,
        stats.uniform(100, 10),
        stats.norm(0, 1e-12),
        lambda x, nu: np.exp(-nu / x),
        nu_dists=[stats.uniform(30, 1)],
    )
    assert nu.shape == (1, 20)
    assert np.allclose(y, np.exp(-nu / x), atol=1e-9)


def test_generate_noisy_data_is_reproducible():
    args = (25, [stats.uniform(0.5, 1.0)], stats.norm(0, 0.1), lambda x: x**2)
    y1, x1 = generate_noisy_data(7, *args)
    y2, x2 = generate_noisy_data(np.random.default_rng(7), *args)
    assert np.array_equal(x1, x2)
    assert np.array_equal(y1, y2)


def test_multiple_outputs_are_stacked():
    x = np.array([[1.0, 2.0, 3.0]])
    y = evaluate_signal_models([lambda x: [x, 2 * x], lambda x: x + 1], x)
    assert y.shape == (3, 3)
    assert np.allclose(y[2], [2.0, 3.0, 4.0])


def test_signal_model_with_wrong_length_is_rejected():
    with pytest.raises(ConfigurationError, match="signal_models"):
        evaluate_signal_models(lambda x: np.ones(5), np.ones((1, 3)))
    with pytest.raises(ConfigurationError, match=r"signal_models\[1\]"):
        evaluate_signal_models([lambda x: x, lambda x: [x, np.ones(2)]], np.ones((1, 3)))
    # length-one outputs broadcast over the samples
    y = evaluate_signal_models(lambda x: [x, np.array([2.0])], np.ones((1, 3)))
    assert np.array_equal(y[1], [2.0, 2.0, 2.0])


def test_complex_signals_get_complex_noise():
    y, x = generate_noisy_data(
        np.random.default_rng(2),
        10,
        stats.uniform(1, 1),
        stats.norm(0, 1.0),
        lambda x: np.exp(1j * x),
    )
    assert np.iscomplexobj(y)
    resid = y - np.exp(1j * x)
    assert np.all(resid.real != 0)
    assert np.all(resid.imag != 0)
    assert not np.allclose(resid.real, resid.imag)


def test_complex2real_interleaves_rows():
    y = np.array([[1 + 2j, 3 + 4j], [5 - 1j, 0 + 0j]])
    out = complex2real(y)
    assert np.array_equal(out, [[1, 3], [2, 4], [5, 0], [-1, 0]])


def test_combine_appends_known_parameters():
    y = np.array([[1.0, 2.0]])
    nu = np.array([3.0, 4.0])
    assert np.array_equal(combine(y, nu), [[1.0, 2.0], [3.0, 4.0]])
    assert np.array_equal(combine(y), y)
    with pytest.raises(ConfigurationError, match="samples"):
        combine(y, np.ones(3))


def test_features_split_complex_before_appending():
    y = np.array([[1 + 1j, 2 - 2j]])
    nu = np.array([[7.0, 8.0]])
    assert np.array_equal(features(y, nu), [[1, 2], [1, -2], [7, 8]])
