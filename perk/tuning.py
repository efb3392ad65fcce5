"""Holdout selection of the kernel bandwidth scale λ and regularization ρ."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, NamedTuple

import numpy as np

from ._validation import _validate_count, _validate_grid, _validate_holdout_dists
from .kernels import Kernel
from .metrics import holdout_cost
from .regression import krr
from .sim import features, generate_noisy_data
from .training import krr_train

logger = logging.getLogger(__name__)


class HoldoutResult(NamedTuple):
    """Selected hyperparameters and the full cost surface ``[nλ, nρ]``."""

    lam: float
    rho: float
    cost: np.ndarray


def lengthscales(q: np.ndarray, lam: float) -> np.ndarray:
    """``Λ = λ max(mean(|q|), eps)`` per feature row of ``q`` ``[Q, N]``."""
    return lam * np.maximum(np.mean(np.abs(q), axis=1), np.finfo(float).eps)


def _simulate(rng, n, x_dists, nu_dists, noise_dist, signal_models):
    sim = generate_noisy_data(rng, n, x_dists, noise_dist, signal_models, nu_dists=nu_dists)
    nu = sim[2] if nu_dists is not None else None
    return features(sim[0], nu), sim[1]


def holdout(
    rng: np.random.Generator | int,
    N: int,
    T: int,
    lam_vals: Sequence[float],
    rho_vals: Sequence[float],
    x_dists_test: Any,
    x_dists_train: Any,
    noise_dist: Any,
    signal_models: Callable[..., Any] | Sequence[Callable[..., Any]],
    kernel_generator: Callable[[np.ndarray], Kernel],
    *,
    weights: Sequence[float] | None = None,
    nu_dists_test: Any = None,
    nu_dists_train: Any = None,
    n_jobs: int = 1,
    show_progress: bool = False,
) -> HoldoutResult:
    """
    Select λ and ρ via a holdout process.

    A test set of N points and a training set of T points are simulated from
    their own distributions. For every λ a kernel is built from lengthscales
    ``λ mean(|q_test|)``; for every ρ KRR is trained on the training set and
    evaluated on the test set with the holdout cost of
    :func:`perk.metrics.holdout_cost`.

    Parameters
    ----------
    rng : numpy Generator or int seed
    N : int                       number of test points
    T : int                       number of training points
    lam_vals : (nλ,) values       bandwidth scales to search over
    rho_vals : (nρ,) values       regularization parameters to search over
    x_dists_test, x_dists_train : latent parameter distributions [L]
    noise_dist : noise distribution
    signal_models : callable or list of callables
    kernel_generator : callable mapping lengthscales Λ to a kernel
    weights : (L,) cost weights, default all ones
    nu_dists_test, nu_dists_train : known parameter distributions [K], optional
    n_jobs : int                  worker threads for the grid, 1 runs serially
    show_progress : bool          log progress at INFO instead of DEBUG

    Returns
    -------
    HoldoutResult(lam, rho, cost)
        ``cost`` is ``[nλ, nρ]``. Ties go to the first cell in λ-major order.

    Notes
    -----
    Each grid cell gets a child generator spawned from ``rng`` before any
    cell runs, so results do not depend on ``n_jobs``.
    """
    w, x_test, x_train, nu_test, nu_train = _validate_holdout_dists(
        weights, x_dists_test, x_dists_train, nu_dists_test, nu_dists_train
    )
    N = _validate_count(N, name="N")
    T = _validate_count(T, name="T", minimum=2)
    lam_vals = _validate_grid(lam_vals, name="lam_vals", nonnegative=True)
    rho_vals = _validate_grid(rho_vals, name="rho_vals", nonnegative=True)
    n_jobs = _validate_count(n_jobs, name="n_jobs")
    rng = np.random.default_rng(rng)

    q, x = _simulate(rng, N, x_test, nu_test, noise_dist, signal_models)
    qtrain, xtrain = _simulate(rng, T, x_train, nu_train, noise_dist, signal_models)

    n_lam, n_rho = lam_vals.size, rho_vals.size
    cell_rngs = rng.spawn(n_lam * n_rho)
    level = logging.INFO if show_progress else logging.DEBUG

    kernels = []
    for idx_lam, lam in enumerate(lam_vals):
        logger.log(level, "Building kernel %d/%d (lambda=%g)", idx_lam + 1, n_lam, lam)
        kernels.append(kernel_generator(lengthscales(q, lam)))

    def _cell(idx: int) -> float:
        idx_lam, idx_rho = divmod(idx, n_rho)
        kernel = kernels[idx_lam]
        train_data = krr_train(xtrain, qtrain, kernel, rho_vals[idx_rho], rng=cell_rngs[idx])
        xhat = krr(q, train_data, kernel)
        cost = holdout_cost(xhat, x, w)
        logger.log(
            level,
            "    lambda %d/%d, rho %d/%d: cost=%.6g",
            idx_lam + 1, n_lam, idx_rho + 1, n_rho, cost,
        )
        return cost

    cells = range(n_lam * n_rho)
    if n_jobs == 1:
        costs = [_cell(i) for i in cells]
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            costs = list(executor.map(_cell, cells))

    Psi = np.asarray(costs, dtype=float).reshape(n_lam, n_rho)

    # np.argmin scans in C order: first λ index, then first ρ index
    idx_lam, idx_rho = np.unravel_index(int(np.argmin(Psi)), Psi.shape)
    lam = float(lam_vals[idx_lam])
    rho = float(rho_vals[idx_rho])
    logger.log(level, "Selected lambda=%g, rho=%g (cost=%.6g)", lam, rho, Psi[idx_lam, idx_rho])

    return HoldoutResult(lam=lam, rho=rho, cost=Psi)


__all__ = ["HoldoutResult", "holdout", "lengthscales"]
