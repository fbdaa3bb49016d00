"""L-BFGS and minibatch Adam minimizers over real vectors.

Example
-------
>>> import numpy as np
>>> from optkit.optimize import LBFGS, LBFGSConfig
>>> def sphere(x):
...     return float(x @ x), 2 * x
>>> res = LBFGS(LBFGSConfig(max_iter=50)).minimize(sphere, np.array([1.0, -2.0, 0.5]))
>>> res.status.converged
True
"""

from .core import (
    IterationInfo,
    NumericObjective,
    Objective,
    ObjectiveEvaluator,
    OptimizeResult,
    Problem,
    Status,
    as_objective,
)
from .history import CurvatureHistory, curvature_rho
from .lbfgs import LBFGS, LBFGSConfig, lbfgs
from .line_search import LineSearch, LineSearchResult
from .numdiff import numerical_diff
from .sgd_adam import AdamConfig, EpochInfo, SGDAdam, sample_gradients, sgd_adam
from .vector import VectorOps

__all__ = [
    "AdamConfig",
    "CurvatureHistory",
    "EpochInfo",
    "IterationInfo",
    "LBFGS",
    "LBFGSConfig",
    "LineSearch",
    "LineSearchResult",
    "NumericObjective",
    "Objective",
    "ObjectiveEvaluator",
    "OptimizeResult",
    "Problem",
    "SGDAdam",
    "Status",
    "VectorOps",
    "as_objective",
    "curvature_rho",
    "lbfgs",
    "numerical_diff",
    "sample_gradients",
    "sgd_adam",
]
