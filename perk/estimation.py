"""Estimation of latent parameters with a regularized solve at prediction time."""

from __future__ import annotations

import time
from typing import Any

import numpy as np

from ._validation import _validate_regularization
from .kernels import Kernel, rffmap
from .ops import shifted_diagonal, solve_in_place
from .regression import _check_kernel, _query_dim, _query_features, _squeeze, krr
from .training import ExactTrainingData, RFFTrainingData, TrainingData


def _estimate_exact(q: np.ndarray, data: ExactTrainingData, kernel: Kernel, rho: float) -> np.ndarray:
    k = np.asarray(kernel(data.y, q), dtype=float)  # T × N
    k -= data.Km[:, None]
    # K is shared; the shift is undone before the lock is released
    with data._lock, shifted_diagonal(data.K, data.T * rho) as K_reg:
        solve_in_place(K_reg, k)
    return data.xm[:, None] + data.x @ k  # L × N


def _estimate_rff(q: np.ndarray, data: RFFTrainingData, rho: float) -> np.ndarray:
    z = rffmap(q, data.freq, data.phase)  # H × N
    z -= data.zm[:, None]
    with data._lock, shifted_diagonal(data.Czz, rho) as Czz_reg:
        solve_in_place(Czz_reg, z)
    return data.xm[:, None] + data.Cxz @ z  # L × N


def estimate(
    y: Any,
    train_data: TrainingData,
    kernel: Kernel,
    rho: float,
    *,
    nu: Any = None,
) -> tuple[np.ndarray | float, float]:
    """
    Estimate latent parameters, solving the regularized system for ``rho``.

    Unlike :func:`perk.regression.krr`, ``rho`` may differ from the value used in
    training. ``T ρ`` (exact) or ``ρ`` (RFF) is added to the diagonal of the
    stored matrix for the duration of the solve and the original diagonal is
    restored before returning. The artifact's lock is held meanwhile, so
    concurrent calls on one artifact are serialized.

    Parameters
    ----------
    y : (D × N) array of features (or 1D/scalar forms, see ``krr``)
    train_data : ExactTrainingData or RFFTrainingData
    kernel : kernel used to build ``train_data``
    rho : float, ρ ≥ 0
    nu : (K × N) known parameters appended below ``y``

    Returns
    -------
    xhat : (L × N) array, squeezed as in ``krr``
    seconds : float
        Wall time spent estimating.
    """
    rho = _validate_regularization(rho)
    Q = _query_dim(train_data)
    _check_kernel(train_data, kernel)
    q, single = _query_features(y, nu, Q)

    t0 = time.perf_counter()
    if isinstance(train_data, ExactTrainingData):
        xhat = _estimate_exact(q, train_data, kernel, rho)
    else:
        xhat = _estimate_rff(q, train_data, rho)
    seconds = time.perf_counter() - t0

    return _squeeze(xhat, single), seconds


def perk(
    y: Any,
    train_data: TrainingData,
    kernel: Kernel,
    rho: float | None = None,
    *,
    nu: Any = None,
) -> tuple[np.ndarray | float, float]:
    """
    Estimate latent parameters and time the estimation.

    With ``rho=None`` the regularized solve precomputed during training is
    used; otherwise the system is solved for the given ``rho``.

    Returns
    -------
    xhat, seconds
    """
    if rho is not None:
        return estimate(y, train_data, kernel, rho, nu=nu)

    t0 = time.perf_counter()
    xhat = krr(y, train_data, kernel, nu=nu)
    return xhat, time.perf_counter() - t0


__all__ = ["estimate", "perk"]
