import logging

from .api import PERK
from .errors import ConfigurationError, NumericalError
from .estimation import estimate, perk
from .kernels import GaussianKernel, GaussianRFF
from .metrics import holdout_cost, mse, rmse
from .regression import krr
from .sim import combine, complex2real, generate_noisy_data
from .training import ExactTrainingData, RFFTrainingData, krr_train, train
from .tuning import HoldoutResult, holdout

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "PERK",
    "ConfigurationError",
    "ExactTrainingData",
    "GaussianKernel",
    "GaussianRFF",
    "HoldoutResult",
    "NumericalError",
    "RFFTrainingData",
    "combine",
    "complex2real",
    "estimate",
    "generate_noisy_data",
    "holdout",
    "holdout_cost",
    "krr",
    "krr_train",
    "mse",
    "perk",
    "rmse",
    "train",
]
