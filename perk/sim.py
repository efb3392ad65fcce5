"""Synthetic data generation from signal models and parameter distributions."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from ._validation import _as_dist_list, _as_rows, _validate_count
from .errors import ConfigurationError

SignalModel = Callable[..., Any]


def sample(rng: np.random.Generator, dists: Any, n: int) -> np.ndarray:
    """Draw ``n`` samples from each distribution; returns ``[len(dists), n]``.

    ``dists`` is a single object or a list of objects exposing
    ``rvs(size=..., random_state=...)`` (e.g. frozen ``scipy.stats``
    distributions).
    """
    rows = [
        np.asarray(d.rvs(size=n, random_state=rng), dtype=float).reshape(n)
        for d in _as_dist_list(dists)
    ]
    return np.vstack(rows)


def _as_model_list(signal_models: SignalModel | Sequence[SignalModel]) -> list[SignalModel]:
    if callable(signal_models):
        return [signal_models]
    models = list(signal_models)
    if len(models) == 0 or not all(callable(m) for m in models):
        raise ConfigurationError("signal_models must be a callable or a non-empty list of callables")
    return models


def _as_signal_row(out: Any, N: int, j: int) -> np.ndarray:
    out = np.asarray(out)
    if out.ndim > 1 or out.size not in (1, N):
        raise ConfigurationError(
            f"signal_models[{j}] returned an output of shape {out.shape}; expected ({N},). "
            f"Try evaluating the model elementwise on the parameter arrays."
        )
    return np.broadcast_to(out.reshape(-1), (N,))


def evaluate_signal_models(
    signal_models: SignalModel | Sequence[SignalModel],
    x: np.ndarray,
    nu: np.ndarray | None = None,
) -> np.ndarray:
    """
    Evaluate signal models on parameter samples.

    Each model is called as ``model(x_1, ..., x_L, nu_1, ..., nu_K)`` with one
    ``[N]`` array per parameter and must return either one ``[N]`` array or a
    sequence of them. Outputs of all models are stacked along the feature axis.

    Returns
    -------
    y : (D × N) array, real or complex
    """
    N = x.shape[1]
    args = list(x) if nu is None else [*x, *nu]
    blocks = []
    for j, model in enumerate(_as_model_list(signal_models)):
        out = model(*args)
        if isinstance(out, (list, tuple)):
            out = np.stack([_as_signal_row(o, N, j) for o in out])
        out = np.asarray(out)
        if out.ndim <= 1:
            out = _as_signal_row(out, N, j)[None, :]
        if out.ndim != 2 or out.shape[1] != N:
            raise ConfigurationError(
                f"signal_models[{j}] returned shape {out.shape}; expected ({N},) or (D, {N})."
            )
        blocks.append(out)
    y = np.concatenate(blocks, axis=0)
    if np.iscomplexobj(y):
        return y.astype(complex)
    return y.astype(float)


def add_noise(rng: np.random.Generator, y: np.ndarray, noise_dist: Any) -> np.ndarray:
    """
    Add noise to ``y`` in place and return it.

    Complex signals receive independent draws from ``noise_dist`` on their real
    and imaginary channels.
    """
    if np.iscomplexobj(y):
        re = noise_dist.rvs(size=y.shape, random_state=rng)
        im = noise_dist.rvs(size=y.shape, random_state=rng)
        y += np.asarray(re) + 1j * np.asarray(im)
    else:
        y += np.asarray(noise_dist.rvs(size=y.shape, random_state=rng), dtype=float)
    return y


def complex2real(y: Any) -> np.ndarray:
    """Split complex features ``[D, N]`` into interleaved real/imaginary rows ``[2D, N]``."""
    Y = _as_rows(y, name="y", dtype=complex)
    out = np.empty((2 * Y.shape[0], Y.shape[1]))
    out[0::2] = Y.real
    out[1::2] = Y.imag
    return out


def combine(y: Any, nu: Any = None) -> np.ndarray:
    """
    Stack known parameters below the features: ``[y; nu]``.

    Training and prediction must use the same ordering.
    """
    Y = _as_rows(y, name="y")
    if nu is None:
        return Y
    V = _as_rows(nu, name="nu")
    if V.shape[1] != Y.shape[1]:
        raise ConfigurationError(
            f"y has {Y.shape[1]} samples but nu has {V.shape[1]}. "
            f"Known parameters must accompany every sample."
        )
    return np.vstack([Y, V])


def generate_noisy_data(
    rng: np.random.Generator | int,
    N: int,
    x_dists: Any,
    noise_dist: Any,
    signal_models: SignalModel | Sequence[SignalModel],
    *,
    nu_dists: Any = None,
) -> tuple[np.ndarray, ...]:
    """
    Generate noisy data from latent (and optionally known) parameter distributions.

    Parameters
    ----------
    rng : numpy Generator or int seed
    N : int                       number of samples
    x_dists : dist or list        latent parameter distributions [L]
    noise_dist : dist             additive noise distribution
    signal_models : callable(s)   forward models, latent arrays first then known
    nu_dists : dist or list       known parameter distributions [K], optional

    Returns
    -------
    (y, x) or (y, x, nu)
      y  : (D × N) noisy signals, complex if any model is complex-valued
      x  : (L × N) latent parameters
      nu : (K × N) known parameters, only when ``nu_dists`` is given
    """
    rng = np.random.default_rng(rng)
    N = _validate_count(N, name="N")

    x = sample(rng, x_dists, N)
    nu = None if nu_dists is None else sample(rng, nu_dists, N)

    y = evaluate_signal_models(signal_models, x, nu)
    add_noise(rng, y, noise_dist)

    if nu is None:
        return y, x
    return y, x, nu


def features(y: np.ndarray, nu: np.ndarray | None = None) -> np.ndarray:
    """Real-valued regression features: complex split then known parameters appended."""
    if np.iscomplexobj(y):
        y = complex2real(y)
    return combine(y, nu)


__all__ = [
    "sample",
    "evaluate_signal_models",
    "add_noise",
    "complex2real",
    "combine",
    "generate_noisy_data",
    "features",
]
