from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import numpy as np
from numpy.linalg import LinAlgError

from .errors import NumericalError


def div0(a: np.ndarray, b: float) -> np.ndarray:
    """Elementwise ``a / b`` that returns 0 wherever ``b == 0``."""
    a = np.asarray(a, dtype=float)
    if b == 0:
        return np.zeros_like(a)
    return a / b


def row_means(A: np.ndarray) -> np.ndarray:
    """Return the mean of each row of a 2D array."""
    return np.mean(A, axis=1)


def double_center(K: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    De-mean the rows and then the columns of a Gram matrix.

    The two passes run in that order: first each row has its own mean
    removed, then each column of the row-centered matrix has its mean
    removed. Both row and column sums of the result are zero up to rounding.

    Parameters
    ----------
    K : (T × T) array
        Gram matrix. Not modified.

    Returns
    -------
    Kc : (T × T) array
        Double-centered copy of ``K``.
    Km : (T,) array
        Row means of ``K`` before centering.
    """
    Km = row_means(K)
    Kc = K - Km[:, None]
    Kc -= np.mean(Kc, axis=0)[None, :]
    return Kc, Km


def center_rows(X: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(X - mean, mean)`` with means taken over the sample axis."""
    m = row_means(X)
    return X - m[:, None], m


def sample_cov(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Sample cross-covariance ``A B^T / T`` of already centered (· × T) arrays."""
    return div0(A @ B.T, A.shape[1])


def _check_solution(X: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(X)):
        raise NumericalError(
            "Regularized solve produced non-finite values. "
            "Try increasing the regularization parameter rho."
        )
    return X


def regularized_solve(A: np.ndarray, B: np.ndarray, shift: float) -> np.ndarray:
    """
    Solve ``(A + shift I) X = B`` for X.

    Raises
    ------
    NumericalError
        If the shifted matrix is singular or the solution is not finite.
    """
    n = A.shape[0]
    try:
        X = np.linalg.solve(A + shift * np.eye(n), B)
    except LinAlgError as exc:
        raise NumericalError(
            f"Regularized {n}×{n} system could not be factored: {exc}. "
            "Try increasing the regularization parameter rho."
        ) from exc
    return _check_solution(X)


def regularized_right_solve(B: np.ndarray, A: np.ndarray, shift: float) -> np.ndarray:
    """
    Solve ``X (A + shift I) = B`` for X, i.e. ``B / (A + shift I)``.

    Implemented as the transposed left solve ``(A + shift I)^T X^T = B^T``.
    """
    return regularized_solve(A.T, B.T, shift).T


@contextmanager
def shifted_diagonal(A: np.ndarray, shift: float) -> Iterator[np.ndarray]:
    """
    Temporarily add ``shift`` to the diagonal of ``A`` in place.

    The original diagonal entries are saved and written back on exit, so the
    matrix is bit-identical afterwards even if the body raises. Callers that
    share ``A`` between threads must hold a lock for the duration.
    """
    saved = np.diagonal(A).copy()
    idx = np.diag_indices_from(A)
    A[idx] += shift
    try:
        yield A
    finally:
        A[idx] = saved


def solve_in_place(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Solve ``A X = B`` and write X into ``B``."""
    try:
        B[...] = np.linalg.solve(A, B)
    except LinAlgError as exc:
        raise NumericalError(
            f"Regularized {A.shape[0]}×{A.shape[0]} system could not be factored: {exc}. "
            "Try increasing the regularization parameter rho."
        ) from exc
    return _check_solution(B)
