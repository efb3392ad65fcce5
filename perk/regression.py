"""Prediction with precomputed kernel ridge regression training data."""

from __future__ import annotations

from typing import Any

import numpy as np

from .errors import ConfigurationError
from .kernels import ExactKernel, Kernel, RFFKernel, rffmap
from .sim import complex2real, combine
from .training import ExactTrainingData, RFFTrainingData, TrainingData


def _query_features(y: Any, nu: Any, Q: int) -> tuple[np.ndarray, bool]:
    """
    Bring test features into the ``[Q, N]`` layout used for training.

    Returns the features and whether the input described a single sample
    (scalar, or a 1D vector holding the Q features of one sample), in which
    case the sample axis is dropped from the estimate.
    """
    y_arr = np.asarray(y)
    nu_arr = None if nu is None else np.asarray(nu, dtype=float)
    is_complex = np.iscomplexobj(y_arr)

    # complex channels become two feature rows each
    width = (2 if is_complex else 1) * y_arr.size
    if nu_arr is not None:
        width += nu_arr.size
    scalars = y_arr.ndim == 0 and (nu_arr is None or nu_arr.ndim == 0)
    vectors = y_arr.ndim <= 1 and (nu_arr is None or nu_arr.ndim <= 1)
    single = scalars or (
        vectors and Q > 1 and (width == Q or (nu_arr is None and not is_complex))
    )

    if single:
        y_arr = y_arr.reshape(-1, 1)
        if nu_arr is not None:
            nu_arr = nu_arr.reshape(-1, 1)
    if is_complex:
        y_arr = complex2real(y_arr)
    q = combine(y_arr, nu_arr)

    if q.ndim != 2 or q.shape[0] != Q:
        raise ConfigurationError(
            f"Test features have shape {q.shape} but the training data has Q={Q} "
            f"features per sample. Pass features as a (Q, N) array, with known "
            f"parameters appended in the same order as during training."
        )
    if not np.all(np.isfinite(q)):
        raise ConfigurationError("Test features contain NaN or infinite values.")
    return q, single


def _squeeze(xhat: np.ndarray, single: bool) -> np.ndarray | float:
    """[L, N] -> [N] if L = 1, [L] if single sample, scalar if both."""
    if single:
        xhat = xhat[:, 0]
    if xhat.shape[0] == 1:
        xhat = xhat[0]
    if np.ndim(xhat) == 0:
        return float(xhat)
    return xhat


def _check_kernel(train_data: TrainingData, kernel: Kernel) -> None:
    if isinstance(train_data, ExactTrainingData) and not isinstance(kernel, ExactKernel):
        raise ConfigurationError("ExactTrainingData must be used with an exact kernel")
    if isinstance(train_data, RFFTrainingData) and not isinstance(kernel, RFFKernel):
        raise ConfigurationError("RFFTrainingData must be used with a random Fourier feature kernel")


def _query_dim(train_data: TrainingData) -> int:
    if isinstance(train_data, (ExactTrainingData, RFFTrainingData)):
        return train_data.Q
    raise TypeError(f"Unsupported training data type {type(train_data).__name__}")


def krr(
    ytest: Any,
    train_data: TrainingData,
    kernel: Kernel,
    *,
    nu: Any = None,
) -> np.ndarray | float:
    """
    Predict latent parameters using kernel ridge regression.

    Uses the regularized solve stored in ``train_data``; the training data is
    not modified, so one artifact may serve concurrent callers.

    Parameters
    ----------
    ytest : (Q × N) array, (N,) array if Q = 1, (Q,) array for one sample, or scalar
    train_data : ExactTrainingData or RFFTrainingData
    kernel : kernel used to build ``train_data``
    nu : known parameters (K × N), appended below ``ytest``

    Returns
    -------
    xhat : (L × N) array, (N,) if L = 1, (L,) for a single sample, or scalar
    """
    Q = _query_dim(train_data)
    _check_kernel(train_data, kernel)
    q, single = _query_features(ytest, nu, Q)

    if isinstance(train_data, ExactTrainingData):
        k = kernel(train_data.y, q)  # T × N
        k = k - train_data.Km[:, None]
        xhat = train_data.xm[:, None] + train_data.xKinv @ k  # L × N
    else:
        z = rffmap(q, train_data.freq, train_data.phase)  # H × N
        z = z - train_data.zm[:, None]
        xhat = train_data.xm[:, None] + train_data.CxzCzzinv @ z  # L × N

    return _squeeze(xhat, single)


__all__ = ["krr"]
