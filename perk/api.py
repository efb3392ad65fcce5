"""High-level estimator API for PERK."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from ._validation import _validate_count, _validate_regularization
from .errors import ConfigurationError
from .kernels import GaussianKernel, GaussianRFF, Kernel
from .metrics import holdout_cost
from .regression import krr
from .sim import features, generate_noisy_data
from .training import krr_train
from .tuning import holdout, lengthscales

logger = logging.getLogger(__name__)


class PERK:
    """Scikit-learn style estimator: simulate, (optionally) tune, train, predict.

    Parameters
    ----------
    kernel : "gaussian" or callable
        Kernel family. A callable receives the lengthscales Λ and returns a
        kernel object.
    lam, rho : float
        Bandwidth scale and regularization used when no grid is given.
    lam_vals, rho_vals : sequence of float, optional
        Grids searched by :func:`perk.tuning.holdout` during ``fit``. A grid
        left as ``None`` is fixed to ``[lam]`` / ``[rho]``.
    n_train : int
        Number of simulated training points.
    n_holdout : int
        Number of simulated test points used by the holdout search.
    rff_order : int, optional
        If set, use random Fourier features of this order instead of the
        exact Gram matrix (only with ``kernel="gaussian"``).
    weights : sequence of float, optional
        Holdout cost weights, one per latent parameter.
    n_jobs : int
        Worker threads for the holdout grid.
    random_state : int or numpy Generator, optional
        Seed for every random draw made by ``fit``.
    """

    def __init__(
        self,
        *,
        kernel: str | Callable[[np.ndarray], Kernel] = "gaussian",
        lam: float = 1.0,
        rho: float = 1e-8,
        lam_vals: Sequence[float] | None = None,
        rho_vals: Sequence[float] | None = None,
        n_train: int = 10000,
        n_holdout: int = 1000,
        rff_order: int | None = None,
        weights: Sequence[float] | None = None,
        n_jobs: int = 1,
        random_state: int | np.random.Generator | None = None,
    ) -> None:
        self.kernel = kernel
        self.lam = lam
        self.rho = rho
        self.lam_vals = lam_vals
        self.rho_vals = rho_vals
        self.n_train = n_train
        self.n_holdout = n_holdout
        self.rff_order = rff_order
        self.weights = weights
        self.n_jobs = n_jobs
        self.random_state = random_state

    # ------------------------------------------------------------------
    # Scikit-learn estimator protocol
    # ------------------------------------------------------------------
    def get_params(self, deep: bool = True) -> dict[str, Any]:  # noqa: D401 - sklearn API
        return {
            "kernel": self.kernel,
            "lam": self.lam,
            "rho": self.rho,
            "lam_vals": self.lam_vals,
            "rho_vals": self.rho_vals,
            "n_train": self.n_train,
            "n_holdout": self.n_holdout,
            "rff_order": self.rff_order,
            "weights": self.weights,
            "n_jobs": self.n_jobs,
            "random_state": self.random_state,
        }

    def set_params(self, **params: Any) -> PERK:  # noqa: D401 - sklearn API
        for key, value in params.items():
            if not hasattr(self, key):
                raise ValueError(f"Unknown parameter {key!r}")
            setattr(self, key, value)
        return self

    # ------------------------------------------------------------------
    # Fitting / inference
    # ------------------------------------------------------------------
    def _kernel_generator(self) -> Callable[[np.ndarray], Kernel]:
        if callable(self.kernel):
            if self.rff_order is not None:
                raise ConfigurationError("rff_order is only used with kernel='gaussian'")
            return self.kernel
        if self.kernel != "gaussian":
            raise ConfigurationError(
                f"Unknown kernel {self.kernel!r}. Use 'gaussian' or pass a callable."
            )
        if self.rff_order is None:
            return GaussianKernel
        H = _validate_count(self.rff_order, name="rff_order")
        return lambda Lambda: GaussianRFF(Lambda, H)

    def fit(
        self,
        x_dists: Any,
        noise_dist: Any,
        signal_models: Callable[..., Any] | Sequence[Callable[..., Any]],
        *,
        nu_dists: Any = None,
        x_dists_test: Any = None,
        nu_dists_test: Any = None,
    ) -> PERK:
        """
        Simulate training data and train the estimator.

        When a grid is configured, λ and ρ are first chosen by holdout with
        test distributions ``x_dists_test``/``nu_dists_test`` (defaulting to
        the training distributions). The final kernel lengthscales are
        ``λ mean(|q|)``, where ``q`` are features simulated from the test
        distributions when those are given (the scale holdout validated)
        and the simulated training features otherwise.
        """
        rng = np.random.default_rng(self.random_state)
        kernel_generator = self._kernel_generator()
        n_train = _validate_count(self.n_train, name="n_train", minimum=2)

        x_test = x_dists if x_dists_test is None else x_dists_test
        nu_test = None
        if nu_dists is not None:
            nu_test = nu_dists if nu_dists_test is None else nu_dists_test

        if self.lam_vals is not None or self.rho_vals is not None:
            result = holdout(
                rng,
                self.n_holdout,
                n_train,
                [self.lam] if self.lam_vals is None else self.lam_vals,
                [self.rho] if self.rho_vals is None else self.rho_vals,
                x_test,
                x_dists,
                noise_dist,
                signal_models,
                kernel_generator,
                weights=self.weights,
                nu_dists_test=nu_test,
                nu_dists_train=nu_dists,
                n_jobs=self.n_jobs,
            )
            lam, rho = result.lam, result.rho
            self.holdout_cost_ = result.cost
        else:
            lam = float(self.lam)
            rho = _validate_regularization(self.rho)
            self.holdout_cost_ = None

        sim = generate_noisy_data(rng, n_train, x_dists, noise_dist, signal_models, nu_dists=nu_dists)
        q = features(sim[0], sim[2] if nu_dists is not None else None)

        q_scale = q
        if x_dists_test is not None or nu_dists_test is not None:
            n_ref = _validate_count(self.n_holdout, name="n_holdout")
            ref = generate_noisy_data(rng, n_ref, x_test, noise_dist, signal_models, nu_dists=nu_test)
            q_scale = features(ref[0], ref[2] if nu_test is not None else None)

        kernel = kernel_generator(lengthscales(q_scale, lam))
        self.train_data_ = krr_train(sim[1], q, kernel, rho, rng=rng)
        self.kernel_ = kernel
        self.lam_ = lam
        self.rho_ = rho
        self.has_known_params_ = nu_dists is not None
        self.n_latent_ = sim[1].shape[0]
        self.is_fitted_ = True
        logger.debug("Fitted PERK: lam=%g rho=%g kernel=%r", lam, rho, kernel)
        return self

    def _ensure_fitted(self) -> None:
        if not getattr(self, "is_fitted_", False):
            raise RuntimeError("The estimator has not been fitted yet")

    def predict(self, y: Any, nu: Any = None) -> np.ndarray | float:
        """Estimate latent parameters for features ``y`` (and known parameters ``nu``)."""
        self._ensure_fitted()
        if self.has_known_params_ and nu is None:
            raise ConfigurationError("The estimator was trained with known parameters; pass nu")
        if not self.has_known_params_ and nu is not None:
            raise ConfigurationError("The estimator was trained without known parameters")
        return krr(y, self.train_data_, self.kernel_, nu=nu)

    def score(self, y: Any, x: Any, nu: Any = None) -> float:
        """Negative holdout cost of the predictions for ``y`` against ``x``."""
        xhat = self.predict(y, nu)
        x = np.asarray(x, dtype=float)
        xhat = np.asarray(xhat, dtype=float).reshape(x.shape)
        return -holdout_cost(xhat, x, self.weights)
