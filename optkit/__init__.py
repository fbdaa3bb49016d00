"""optkit - L-BFGS and minibatch Adam minimizers for numpy vectors."""

__version__ = "0.1.0"

from .errors import EvaluationError, InvalidConfigurationError, OptkitError
from .optimize import (
    AdamConfig,
    CurvatureHistory,
    EpochInfo,
    IterationInfo,
    LBFGS,
    LBFGSConfig,
    LineSearch,
    LineSearchResult,
    Objective,
    OptimizeResult,
    Problem,
    SGDAdam,
    Status,
    VectorOps,
    as_objective,
    lbfgs,
    numerical_diff,
    sample_gradients,
    sgd_adam,
)

__all__ = [
    "AdamConfig",
    "CurvatureHistory",
    "EpochInfo",
    "EvaluationError",
    "InvalidConfigurationError",
    "IterationInfo",
    "LBFGS",
    "LBFGSConfig",
    "LineSearch",
    "LineSearchResult",
    "Objective",
    "OptimizeResult",
    "OptkitError",
    "Problem",
    "SGDAdam",
    "Status",
    "VectorOps",
    "__version__",
    "as_objective",
    "lbfgs",
    "numerical_diff",
    "sample_gradients",
    "sgd_adam",
]
