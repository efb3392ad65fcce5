"""Kernels used by kernel ridge regression.

Two families are supported:

* ``ExactKernel`` objects are callables ``kernel(p, q)`` returning the full
  Gram matrix between the columns of ``p`` ``[Q, Tp]`` and ``q`` ``[Q, Tq]``.
* ``RFFKernel`` objects approximate a kernel with a finite random Fourier
  feature map ``z(q)`` ``[H, T]`` so that ``z(p)^T z(q) ≈ k(p, q)``. The
  random state (``freq``, ``phase``) is either drawn from an explicit
  ``numpy.random.Generator`` or supplied by the caller, which lets a trained
  approximation be reproduced exactly at prediction time.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from ._validation import _as_rows
from .errors import ConfigurationError


def _as_lengthscales(Lambda: Any) -> np.ndarray:
    lam = np.atleast_1d(np.asarray(Lambda, dtype=float))
    if lam.ndim != 1:
        raise ConfigurationError(f"Lambda must be a scalar or 1D, got shape {lam.shape}")
    if np.any(lam <= 0) or not np.all(np.isfinite(lam)):
        raise ConfigurationError(
            f"Lengthscales must be positive and finite, got {lam}. "
            f"Try scaling the mean feature magnitude by a positive lambda."
        )
    return lam


def _broadcast_lengthscales(lam: np.ndarray, Q: int) -> np.ndarray:
    if lam.size == 1:
        return np.full(Q, lam[0])
    if lam.size != Q:
        raise ConfigurationError(
            f"Got {lam.size} lengthscales for {Q} features. "
            f"Provide one lengthscale per feature row or a single scalar."
        )
    return lam


class Kernel:
    """Base class for all kernels."""


class ExactKernel(Kernel):
    """Kernel evaluated through its full Gram matrix."""

    def __call__(self, p: Any, q: Any) -> np.ndarray:  # pragma: no cover - abstract
        raise NotImplementedError


class RFFKernel(Kernel):
    """Kernel approximated by random Fourier features of order ``H``."""

    H: int

    def feature_map(
        self,
        q: Any,
        freq: Any = None,
        phase: Any = None,
        *,
        rng: np.random.Generator | int | None = None,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:  # pragma: no cover - abstract
        raise NotImplementedError

    def __call__(self, q, freq=None, phase=None, *, rng=None):
        return self.feature_map(q, freq, phase, rng=rng)


class GaussianKernel(ExactKernel):
    """
    Gaussian kernel ``k(p, q) = exp(-0.5 ||(p - q) / Λ||^2)``.

    Parameters
    ----------
    Lambda : float or (Q,) array
        Lengthscale per feature row, or one lengthscale shared by all rows.
    """

    def __init__(self, Lambda: Any) -> None:
        self.Lambda = _as_lengthscales(Lambda)

    def __repr__(self) -> str:
        return f"GaussianKernel(Lambda={self.Lambda!r})"

    def __call__(self, p: Any, q: Any) -> np.ndarray:
        P = _as_rows(p, name="p")
        Qm = _as_rows(q, name="q")
        if P.shape[0] != Qm.shape[0]:
            raise ConfigurationError(
                f"Feature dimensions differ: {P.shape[0]} vs {Qm.shape[0]}"
            )
        lam = _broadcast_lengthscales(self.Lambda, P.shape[0])[:, None]
        P = P / lam
        Qm = Qm / lam
        d2 = (
            np.sum(P * P, axis=0)[:, None]
            + np.sum(Qm * Qm, axis=0)[None, :]
            - 2.0 * (P.T @ Qm)
        )
        np.maximum(d2, 0.0, out=d2)
        return np.exp(-0.5 * d2)


def rffmap(q: Any, freq: np.ndarray, phase: np.ndarray) -> np.ndarray:
    """
    Evaluate the random Fourier feature map.

    ``z = sqrt(2 / H) cos(2π (freq q + phase))``

    Parameters
    ----------
    q : (Q × T) array, (T,) array if Q = 1, or scalar
    freq : (H × Q) array
    phase : (H,) array

    Returns
    -------
    z : (H × T) array
    """
    Qm = _as_rows(q, name="q")
    freq = np.asarray(freq, dtype=float)
    if freq.ndim == 1:
        freq = freq[:, None]
    phase = np.asarray(phase, dtype=float)
    H = phase.shape[0]
    if freq.shape != (H, Qm.shape[0]):
        raise ConfigurationError(
            f"freq has shape {freq.shape} but expected ({H}, {Qm.shape[0]}) "
            f"for {H} random features and {Qm.shape[0]} feature rows."
        )
    return np.sqrt(2.0 / H) * np.cos(2.0 * np.pi * (freq @ Qm + phase[:, None]))


class GaussianRFF(RFFKernel):
    """
    Random Fourier feature approximation of ``GaussianKernel(Lambda)``.

    Parameters
    ----------
    Lambda : float or (Q,) array
        Lengthscales.
    H : int
        Approximation order (number of random features).
    """

    def __init__(self, Lambda: Any, H: int) -> None:
        self.Lambda = _as_lengthscales(Lambda)
        if int(H) != H or H < 1:
            raise ConfigurationError(f"H must be a positive integer, got {H}")
        self.H = int(H)

    def __repr__(self) -> str:
        return f"GaussianRFF(Lambda={self.Lambda!r}, H={self.H})"

    def feature_map(self, q, freq=None, phase=None, *, rng=None):
        """
        Map features to random Fourier features.

        Fresh frequencies and phases are drawn from ``rng`` unless both
        ``freq`` and ``phase`` are supplied.

        Returns
        -------
        z : (H × T) array
        freq : (H × Q) array
        phase : (H,) array
        """
        Qm = _as_rows(q, name="q")
        if (freq is None) != (phase is None):
            raise ConfigurationError("freq and phase must be supplied together")
        if freq is None:
            if rng is None:
                raise ConfigurationError(
                    "A random generator is required to draw random Fourier features. "
                    "Pass rng=np.random.default_rng(seed) or supply freq and phase."
                )
            rng = np.random.default_rng(rng)
            Q = Qm.shape[0]
            lam = _broadcast_lengthscales(self.Lambda, Q)
            f = rng.standard_normal((self.H, Q))
            freq = f / (2.0 * np.pi * lam[None, :])
            phase = rng.random(self.H)
        else:
            freq = np.asarray(freq, dtype=float)
            if freq.ndim == 1:
                freq = freq[:, None]
            phase = np.asarray(phase, dtype=float)

        z = rffmap(Qm, freq, phase)
        return z, freq, phase


__all__ = [
    "Kernel",
    "ExactKernel",
    "RFFKernel",
    "GaussianKernel",
    "GaussianRFF",
    "rffmap",
]
