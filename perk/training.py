"""Training data for kernel ridge regression.

``krr_train`` turns latent parameters ``x`` and features ``y`` into an
immutable training artifact:

* ``ExactTrainingData`` holds the double-centered Gram matrix and
  ``x (K + T ρ I)^{-1}``.
* ``RFFTrainingData`` holds the random feature state together with the
  feature auto-covariance and parameter/feature cross-covariance.

Array fields always use the 2D layout (``[L, T]``, ``[Q, T]``, ``[H, Q]``);
counts such as ``L`` or ``T`` are read off the shapes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ._validation import _validate_count, _validate_regularization, _validate_training_inputs
from .errors import ConfigurationError
from .kernels import ExactKernel, Kernel, RFFKernel
from .ops import center_rows, double_center, regularized_right_solve, sample_cov
from .sim import features, generate_noisy_data

logger = logging.getLogger(__name__)


class TrainingData:
    """Base class for training artifacts.

    Artifacts pickle and deep-copy without their lock; a fresh lock is
    created when the state is restored.
    """

    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state.pop("_lock", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        # frozen dataclass
        object.__setattr__(self, "_lock", threading.Lock())


@dataclass(frozen=True, eq=False)
class ExactTrainingData(TrainingData):
    """
    Training data for KRR with the full Gram matrix.

    Attributes
    ----------
    y : (Q × T) array       training features
    x : (L × T) array       de-meaned latent parameters
    xm : (L,) array         latent parameter means
    K : (T × T) array       double-centered Gram matrix
    Km : (T,) array         row means of the Gram matrix before centering
    xKinv : (L × T) array   ``x (K + T ρ I)^{-1}``
    """

    y: np.ndarray
    x: np.ndarray
    xm: np.ndarray
    K: np.ndarray
    Km: np.ndarray
    xKinv: np.ndarray
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def Q(self) -> int:
        return self.y.shape[0]

    @property
    def L(self) -> int:
        return self.x.shape[0]

    @property
    def T(self) -> int:
        return self.Km.shape[0]


@dataclass(frozen=True, eq=False)
class RFFTrainingData(TrainingData):
    """
    Training data for KRR approximated with random Fourier features.

    Attributes
    ----------
    freq : (H × Q) array        random frequencies
    phase : (H,) array          random phases
    zm : (H,) array             mean feature map
    xm : (L,) array             latent parameter means
    Czz : (H × H) array         feature auto-covariance
    Cxz : (L × H) array         parameter/feature cross-covariance
    CxzCzzinv : (L × H) array   ``Cxz (Czz + ρ I)^{-1}``
    """

    freq: np.ndarray
    phase: np.ndarray
    zm: np.ndarray
    xm: np.ndarray
    Czz: np.ndarray
    Cxz: np.ndarray
    CxzCzzinv: np.ndarray
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def Q(self) -> int:
        return self.freq.shape[1]

    @property
    def L(self) -> int:
        return self.xm.shape[0]

    @property
    def H(self) -> int:
        return self.zm.shape[0]


def _krr_train_exact(x: np.ndarray, y: np.ndarray, kernel: ExactKernel, rho: float) -> ExactTrainingData:
    T = x.shape[1]

    K = np.asarray(kernel(y, y), dtype=float)
    if K.shape != (T, T):
        raise ConfigurationError(f"kernel returned shape {K.shape}, expected ({T}, {T})")

    x, xm = center_rows(x)
    K, Km = double_center(K)

    # x / (K + T ρ I)
    xKinv = regularized_right_solve(x, K, T * rho)

    return ExactTrainingData(y=y.copy(), x=x, xm=xm, K=K, Km=Km, xKinv=xKinv)


def _krr_train_rff(
    x: np.ndarray,
    z: np.ndarray,
    rho: float,
    freq: np.ndarray,
    phase: np.ndarray,
) -> RFFTrainingData:
    x, xm = center_rows(x)
    z, zm = center_rows(z)

    Czz = sample_cov(z, z)  # H × H
    Cxz = sample_cov(x, z)  # L × H

    CxzCzzinv = regularized_right_solve(Cxz, Czz, rho)

    return RFFTrainingData(
        freq=freq, phase=phase, zm=zm, xm=xm, Czz=Czz, Cxz=Cxz, CxzCzzinv=CxzCzzinv
    )


def krr_train(
    xtrain: Any,
    ytrain: Any,
    kernel: Kernel,
    rho: float,
    *,
    rng: np.random.Generator | int | None = None,
    freq: Any = None,
    phase: Any = None,
) -> TrainingData:
    """
    Train kernel ridge regression.

    Parameters
    ----------
    xtrain : (L × T) or (T,) array   latent parameters
    ytrain : (Q × T) or (T,) array   features
    kernel : ExactKernel or RFFKernel
    rho : float                      Tikhonov regularization, ρ ≥ 0
    rng : Generator or seed          source of fresh random features (RFF only)
    freq, phase : arrays             reuse a previous random feature draw (RFF only)

    Returns
    -------
    ExactTrainingData or RFFTrainingData

    Notes
    -----
    L is the number of latent parameters, Q the number of features per
    sample, T the number of training samples, and H the RFF order.
    """
    x, y = _validate_training_inputs(xtrain, ytrain)
    rho = _validate_regularization(rho)

    if isinstance(kernel, RFFKernel):
        z, freq, phase = kernel.feature_map(y, freq, phase, rng=rng)
        data = _krr_train_rff(x, z, rho, freq, phase)
        logger.debug("Trained RFF KRR: L=%d Q=%d H=%d T=%d rho=%g", data.L, data.Q, data.H, x.shape[1], rho)
        return data

    if isinstance(kernel, ExactKernel):
        data = _krr_train_exact(x, y, kernel, rho)
        logger.debug("Trained exact KRR: L=%d Q=%d T=%d rho=%g", data.L, data.Q, data.T, rho)
        return data

    raise TypeError(f"Unsupported kernel type {type(kernel).__name__}; expected ExactKernel or RFFKernel")


def train(
    rng: np.random.Generator | int,
    T: int,
    x_dists: Any,
    noise_dist: Any,
    signal_models: Any | Sequence[Any],
    kernel: Kernel,
    rho: float,
    *,
    nu_dists: Any = None,
) -> TrainingData:
    """
    Simulate T training points and train KRR on them.

    Complex-valued signals are split into real and imaginary feature rows and
    known parameters (if ``nu_dists`` is given) are appended after the
    signal features, matching what ``perk.estimation.perk`` does at
    prediction time.
    """
    rng = np.random.default_rng(rng)
    T = _validate_count(T, name="T", minimum=2)
    rho = _validate_regularization(rho)

    sim = generate_noisy_data(rng, T, x_dists, noise_dist, signal_models, nu_dists=nu_dists)
    y, x = sim[0], sim[1]
    nu = sim[2] if nu_dists is not None else None

    return krr_train(x, features(y, nu), kernel, rho, rng=rng)


__all__ = [
    "TrainingData",
    "ExactTrainingData",
    "RFFTrainingData",
    "krr_train",
    "train",
]
