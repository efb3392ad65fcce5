from __future__ import annotations

import numpy as np

from .errors import ConfigurationError


def mse(x: np.ndarray, xhat: np.ndarray) -> float:
    """Mean squared error between two arrays."""
    return float(np.mean((np.asarray(x) - np.asarray(xhat)) ** 2))


def rmse(x: np.ndarray, xhat: np.ndarray) -> float:
    """Root mean squared error between two arrays."""
    return float(np.sqrt(mse(x, xhat)))


def relative_rmse(x: np.ndarray, xhat: np.ndarray) -> float:
    """RMSE of the relative error ``(xhat - x) / x``."""
    x = np.asarray(x, dtype=float)
    return float(np.sqrt(np.mean(((np.asarray(xhat) - x) / x) ** 2)))


def holdout_cost(xhat: np.ndarray, x: np.ndarray, weights: np.ndarray | None = None) -> float:
    """
    Holdout cost of an estimate.

    Ψ = sqrt( ||W||_F / N ),  W = ((xhat - x) / x) * sqrt(weights)

    where ``weights`` (one per latent parameter, default 1) broadcast over the
    sample axis and N is the number of samples. The Frobenius norm is taken
    over the whole (L × N) weighted error, not per sample.

    Parameters
    ----------
    xhat, x : (L × N) or (N,) arrays
    weights : (L,) array, optional

    Returns
    -------
    float
    """
    x = np.asarray(x, dtype=float)
    xhat = np.asarray(xhat, dtype=float)
    if x.ndim == 1:
        x = x[None, :]
    if xhat.ndim == 1:
        xhat = xhat[None, :]
    if xhat.shape != x.shape:
        raise ConfigurationError(f"xhat has shape {xhat.shape} but x has shape {x.shape}")

    N = x.shape[1]
    w = np.ones(x.shape[0]) if weights is None else np.asarray(weights, dtype=float)
    werr = ((xhat - x) / x) * np.sqrt(w)[:, None]
    return float(np.sqrt(np.linalg.norm(werr) / N))
