"""Input validation and sanitization helpers for perk.

This module provides standardized validation functions so that training,
estimation, and holdout all reject bad inputs the same way, before any
computation starts.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from .errors import ConfigurationError

MIN_TRAINING_POINTS = 2


def _as_rows(a: Any, *, name: str, dtype: Any = np.float64) -> np.ndarray:
    """Convert samples to the canonical ``[rows, samples]`` layout.

    Parameters
    ----------
    a : array-like
        Scalar, 1D ``[T]`` (one row of T samples) or 2D ``[R, T]``.
    name : str
        Variable name for error messages.
    dtype : numpy dtype, optional
        Target dtype.

    Returns
    -------
    np.ndarray
        2D array of shape ``[R, T]``.

    Raises
    ------
    ConfigurationError
        If ``a`` cannot be converted or has more than two dimensions.
    """
    try:
        arr = np.asarray(a, dtype=dtype)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} cannot be converted to numeric array: {e}") from e

    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr[None, :]
    elif arr.ndim != 2:
        raise ConfigurationError(
            f"{name} must be a scalar, 1D or 2D, got {arr.ndim}D with shape {arr.shape}. "
            f"Try {name}.reshape(n_rows, n_samples)."
        )
    return arr


def _check_finite(arr: np.ndarray, *, name: str) -> None:
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError(
            f"{name} contains NaN or infinite values. "
            f"Check the signal models and distributions that produced it."
        )


def _validate_training_inputs(xtrain: Any, ytrain: Any) -> tuple[np.ndarray, np.ndarray]:
    """Validate latent parameters and features used for training.

    Parameters
    ----------
    xtrain : array-like
        Latent parameters, ``[L, T]`` or ``[T]``.
    ytrain : array-like
        Features, ``[Q, T]`` or ``[T]``.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(x, y)`` as 2D arrays ``[L, T]`` and ``[Q, T]``.

    Raises
    ------
    ConfigurationError
        If sample counts differ, T is too small, or values are not finite.
    """
    x = _as_rows(xtrain, name="xtrain")
    y = _as_rows(ytrain, name="ytrain")

    if x.shape[1] != y.shape[1]:
        raise ConfigurationError(
            f"xtrain has {x.shape[1]} samples but ytrain has {y.shape[1]}. "
            f"All inputs must have the same number of samples (last axis)."
        )

    T = x.shape[1]
    if T < MIN_TRAINING_POINTS:
        raise ConfigurationError(
            f"At least {MIN_TRAINING_POINTS} training points are required, got T={T}. "
            f"Try increasing the number of simulated training points."
        )

    _check_finite(x, name="xtrain")
    _check_finite(y, name="ytrain")
    return x, y


def _validate_regularization(rho: Any, *, name: str = "rho") -> float:
    """Validate a Tikhonov regularization parameter.

    Raises
    ------
    ConfigurationError
        If ``rho`` is not a non-negative finite real number.
    """
    try:
        rho_f = float(rho)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a real number, got {type(rho).__name__}") from e

    if not np.isfinite(rho_f) or rho_f < 0:
        raise ConfigurationError(
            f"{name} must be non-negative, got {rho}. "
            f"Try {name}=1e-8 for light regularization."
        )
    return rho_f


def _validate_grid(values: Any, *, name: str, nonnegative: bool = False) -> np.ndarray:
    """Validate a 1D hyperparameter grid."""
    grid = np.atleast_1d(np.asarray(values, dtype=np.float64))
    if grid.ndim != 1 or grid.size == 0:
        raise ConfigurationError(
            f"{name} must be a non-empty 1D sequence of values, got shape {grid.shape}."
        )
    if not np.all(np.isfinite(grid)):
        raise ConfigurationError(f"{name} must contain only finite values.")
    if nonnegative and np.any(grid < 0):
        raise ConfigurationError(
            f"{name} must be non-negative, got min({name})={grid.min()}. "
            f"Try values such as 2.0 ** np.arange(-20, 0)."
        )
    return grid


def _as_dist_list(dists: Any) -> list[Any]:
    """Wrap a single distribution into a one-element list."""
    if isinstance(dists, (list, tuple)):
        return list(dists)
    return [dists]


def _validate_holdout_dists(
    weights: Sequence[float] | None,
    x_dists_test: Any,
    x_dists_train: Any,
    nu_dists_test: Any = None,
    nu_dists_train: Any = None,
) -> tuple[np.ndarray, list[Any], list[Any], list[Any] | None, list[Any] | None]:
    """Validate the distribution sets and weights passed to holdout.

    Returns
    -------
    tuple
        ``(weights, x_test, x_train, nu_test, nu_train)`` with the distribution
        sets normalized to lists and weights to a 1D array of length L.
    """
    x_test = _as_dist_list(x_dists_test)
    x_train = _as_dist_list(x_dists_train)

    if weights is None:
        w = np.ones(len(x_test))
    else:
        w = np.atleast_1d(np.asarray(weights, dtype=np.float64))
        if w.ndim != 1:
            raise ConfigurationError(f"weights must be 1D, got shape {w.shape}")
        if np.any(w < 0) or not np.all(np.isfinite(w)):
            raise ConfigurationError("weights must be finite and non-negative")

    if not (len(w) == len(x_test) == len(x_train)):
        raise ConfigurationError(
            f"Lengths of weights ({len(w)}), x_dists_test ({len(x_test)}) and "
            f"x_dists_train ({len(x_train)}) must be the same. "
            f"Provide one weight and one distribution per latent parameter."
        )

    if (nu_dists_test is None) != (nu_dists_train is None):
        raise ConfigurationError(
            "nu_dists_test and nu_dists_train must be given together. "
            "Either provide known-parameter distributions for both sets or for neither."
        )
    if nu_dists_test is None:
        return w, x_test, x_train, None, None

    nu_test = _as_dist_list(nu_dists_test)
    nu_train = _as_dist_list(nu_dists_train)
    if len(nu_test) != len(nu_train):
        raise ConfigurationError(
            f"Lengths of nu_dists_test ({len(nu_test)}) and nu_dists_train "
            f"({len(nu_train)}) must be the same."
        )
    return w, x_test, x_train, nu_test, nu_train


def _validate_count(n: Any, *, name: str, minimum: int = 1) -> int:
    """Validate a sample count such as N or T."""
    try:
        n_int = int(n)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be an integer, got {type(n).__name__}") from e

    if n_int != n:
        raise ConfigurationError(f"{name} must be an integer, got {n}")
    if n_int < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {n_int}.")
    return n_int
