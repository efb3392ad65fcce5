import pickle

import numpy as np
import pytest
from scipy import stats

from perk import PERK, ConfigurationError, GaussianKernel, GaussianRFF, generate_noisy_data
from perk.metrics import holdout_cost
from perk.regression import krr
from perk.training import ExactTrainingData, RFFTrainingData

X_DISTS = [stats.uniform(20, 180)]
NU_DISTS = [stats.uniform(20, 20)]
NOISE = stats.norm(0, 0.001)


def _model(x, nu):
    return np.exp(-nu / x)


def test_fit_predict_score_roundtrip():
    model = PERK(lam=0.5, rho=1e-5, n_train=400, random_state=0)
    fitted = model.fit(X_DISTS, NOISE, _model, nu_dists=NU_DISTS)

    assert fitted is model
    assert isinstance(model.train_data_, ExactTrainingData)
    assert isinstance(model.kernel_, GaussianKernel)
    assert model.holdout_cost_ is None
    assert model.n_latent_ == 1

    y, x, nu = generate_noisy_data(np.random.default_rng(1), 30, X_DISTS, NOISE, _model, nu_dists=NU_DISTS)
    xhat = model.predict(y, nu)
    assert xhat.shape == (30,)
    assert np.allclose(xhat, krr(y, model.train_data_, model.kernel_, nu=nu))
    assert np.isclose(model.score(y, x, nu), -holdout_cost(xhat, x))


def test_fit_is_reproducible_with_random_state():
    a = PERK(n_train=50, rff_order=20, random_state=3).fit(X_DISTS, NOISE, _model, nu_dists=NU_DISTS)
    b = PERK(n_train=50, rff_order=20, random_state=3).fit(X_DISTS, NOISE, _model, nu_dists=NU_DISTS)
    assert isinstance(a.train_data_, RFFTrainingData)
    assert isinstance(a.kernel_, GaussianRFF)
    assert np.array_equal(a.train_data_.freq, b.train_data_.freq)
    assert np.array_equal(a.train_data_.CxzCzzinv, b.train_data_.CxzCzzinv)


def test_fit_with_grid_runs_holdout():
    model = PERK(
        lam_vals=[0.5, 2.0],
        rho_vals=[1e-6, 1e-2],
        n_train=80,
        n_holdout=20,
        random_state=4,
    )
    model.fit(stats.uniform(1.0, 2.0), NOISE, lambda x: np.exp(-x))
    assert model.holdout_cost_.shape == (2, 2)
    assert model.lam_ in (0.5, 2.0)
    assert model.rho_ in (1e-6, 1e-2)
    i, j = np.unravel_index(np.argmin(model.holdout_cost_), (2, 2))
    assert (model.lam_, model.rho_) == ([0.5, 2.0][i], [1e-6, 1e-2][j])


def test_get_and_set_params():
    model = PERK(lam=2.0)
    params = model.get_params()
    assert params["lam"] == 2.0
    assert model.set_params(rho=1e-3) is model
    assert model.rho == 1e-3
    with pytest.raises(ValueError, match="Unknown parameter"):
        model.set_params(bogus=1)


def test_predict_before_fit_raises():
    with pytest.raises(RuntimeError, match="not been fitted"):
        PERK().predict(np.ones(3))


def test_known_parameter_consistency_is_checked():
    model = PERK(n_train=40, random_state=5).fit(X_DISTS, NOISE, _model, nu_dists=NU_DISTS)
    with pytest.raises(ConfigurationError, match="pass nu"):
        model.predict(np.ones((1, 3)))

    plain = PERK(n_train=40, random_state=5).fit(X_DISTS, NOISE, lambda x: np.exp(-30 / x))
    with pytest.raises(ConfigurationError, match="without known"):
        plain.predict(np.ones((1, 3)), np.ones((1, 3)))


def test_bad_kernel_configuration():
    with pytest.raises(ConfigurationError, match="Unknown kernel"):
        PERK(kernel="laplace").fit(X_DISTS, NOISE, lambda x: x)
    with pytest.raises(ConfigurationError, match="rff_order"):
        PERK(kernel=GaussianKernel, rff_order=8).fit(X_DISTS, NOISE, lambda x: x)


def test_callable_kernel_is_used():
    model = PERK(kernel=lambda Lambda: GaussianRFF(Lambda, 12), n_train=30, random_state=6)
    model.fit(X_DISTS, NOISE, lambda x: np.exp(-30 / x))
    assert model.kernel_.H == 12


def test_fitted_estimator_pickles():
    model = PERK(n_train=30, random_state=0).fit(X_DISTS, NOISE, _model, nu_dists=NU_DISTS)
    restored = pickle.loads(pickle.dumps(model))

    y, _, nu = generate_noisy_data(np.random.default_rng(2), 5, X_DISTS, NOISE, _model, nu_dists=NU_DISTS)
    assert np.array_equal(restored.predict(y, nu), model.predict(y, nu))


def test_lengthscales_follow_test_distributions():
    model = PERK(lam_vals=[1.0, 2.0], rho_vals=[1e-3], n_train=60, n_holdout=50, random_state=7)
    model.fit(
        stats.uniform(10, 490),
        stats.norm(0, 0.001),
        lambda x: np.exp(-30 / x),
        x_dists_test=stats.uniform(100, 1e-9),
    )
    # every test feature is close to exp(-30 / 100)
    assert np.allclose(model.kernel_.Lambda, model.lam_ * np.exp(-0.3), rtol=1e-2)
