"""Benchmark exact and random-Fourier-feature PERK on a toy relaxation model.

For each (T, H) pair the script times a holdout search, training at the
selected hyperparameters and estimation on a fixed test set, then reports the
relative RMSE of the estimates. ``H = 0`` stands for the exact Gram matrix.

Example::

    python benchmarks/bench_holdout.py --T 500 2000 --H 0 100 --json out.json
"""

from __future__ import annotations

import argparse
import itertools
import json
import time
from dataclasses import asdict, dataclass
from pathlib import Path

import numpy as np
from scipy import stats

from perk import GaussianKernel, GaussianRFF, estimate, generate_noisy_data, holdout, krr_train
from perk.metrics import relative_rmse
from perk.sim import features
from perk.tuning import lengthscales

X_DISTS = [stats.uniform(10, 490)]
NU_DISTS = [stats.uniform(20, 20)]
NOISE = stats.norm(0, 0.01)


def signal_model(x, nu):
    return np.exp(-nu / x)


@dataclass
class BenchmarkResult:
    T: int
    H: int
    lam: float
    rho: float
    holdout_seconds: float
    train_seconds: float
    estimate_seconds: float
    relative_rmse: float


def _kernel_generator(H: int):
    if H == 0:
        return GaussianKernel
    return lambda Lambda: GaussianRFF(Lambda, H)


def run_benchmark(grid, *, seed: int, n_test: int, lam_vals, rho_vals) -> list[BenchmarkResult]:
    rng = np.random.default_rng(seed)
    ytest, xtest, nutest = generate_noisy_data(
        rng, n_test, X_DISTS, NOISE, signal_model, nu_dists=NU_DISTS
    )

    results: list[BenchmarkResult] = []
    for T, H in grid:
        kernel_generator = _kernel_generator(H)

        t0 = time.perf_counter()
        lam, rho, _ = holdout(
            rng, n_test, T, lam_vals, rho_vals, X_DISTS, X_DISTS, NOISE, signal_model,
            kernel_generator, nu_dists_test=NU_DISTS, nu_dists_train=NU_DISTS,
        )
        holdout_seconds = time.perf_counter() - t0

        t0 = time.perf_counter()
        y, x, nu = generate_noisy_data(rng, T, X_DISTS, NOISE, signal_model, nu_dists=NU_DISTS)
        q = features(y, nu)
        kernel = kernel_generator(lengthscales(q, lam))
        train_data = krr_train(x, q, kernel, rho, rng=rng)
        train_seconds = time.perf_counter() - t0

        xhat, estimate_seconds = estimate(ytest, train_data, kernel, rho, nu=nutest)
        results.append(
            BenchmarkResult(
                T=T,
                H=H,
                lam=lam,
                rho=rho,
                holdout_seconds=holdout_seconds,
                train_seconds=train_seconds,
                estimate_seconds=estimate_seconds,
                relative_rmse=relative_rmse(xtest[0], xhat),
            )
        )
    return results


def parse_grid(args: argparse.Namespace):
    return list(itertools.product(args.T, args.H))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--T", type=int, nargs="+", default=[500, 2000], help="training set sizes")
    parser.add_argument("--H", type=int, nargs="+", default=[0, 200], help="RFF orders, 0 for exact")
    parser.add_argument("--n-test", type=int, default=200)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--json", type=Path, default=None, help="write results to this file")
    args = parser.parse_args()

    results = run_benchmark(
        parse_grid(args),
        seed=args.seed,
        n_test=args.n_test,
        lam_vals=2.0 ** np.arange(-3, 2),
        rho_vals=2.0 ** np.arange(-20, -5, 3),
    )

    print(f"{'T':>6} {'H':>5} {'lambda':>8} {'rho':>10} {'holdout':>9} {'train':>8} {'est':>8} {'rel.rmse':>9}")
    for r in results:
        print(
            f"{r.T:6d} {r.H:5d} {r.lam:8.3g} {r.rho:10.3g} {r.holdout_seconds:9.3f} "
            f"{r.train_seconds:8.3f} {r.estimate_seconds:8.4f} {r.relative_rmse:9.4f}"
        )

    if args.json is not None:
        args.json.write_text(json.dumps([asdict(r) for r in results], indent=2))


if __name__ == "__main__":
    main()
