"""Core interfaces shared across the optimization algorithms."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from ..errors import EvaluationError
from .numdiff import numerical_diff

Array = np.ndarray
ScalarFunction = Callable[[Array], float]
Gradient = Callable[[Array], Array]
Objective = Callable[[Array], Tuple[float, Array]]


class Status(Enum):
    """Reason an optimizer run stopped. Exactly one is reported per run."""

    SUCCESS = "success"
    DELTA_CONVERGED = "delta_converged"
    EPSILON_CONVERGED = "epsilon_converged"
    MAX_ITER_REACHED = "max_iter_reached"
    NON_FINITE = "non_finite"
    LINE_SEARCH_FAILED = "line_search_failed"

    @property
    def converged(self) -> bool:
        return self in (Status.SUCCESS, Status.DELTA_CONVERGED, Status.EPSILON_CONVERGED)


MESSAGES = {
    Status.SUCCESS: "Starting point satisfies the gradient tolerance.",
    Status.DELTA_CONVERGED: "Relative change in objective below delta.",
    Status.EPSILON_CONVERGED: "Gradient tolerance satisfied.",
    Status.MAX_ITER_REACHED: "Maximum iterations reached.",
    Status.NON_FINITE: "Non-finite value encountered.",
    Status.LINE_SEARCH_FAILED: "Line search found no step satisfying the Wolfe conditions.",
}


@dataclass(frozen=True)
class Problem:
    """Container describing an optimization problem.

    ``grad`` may be omitted, in which case gradients are estimated with
    central differences. When ``dim`` is set, starting points of any other
    length are rejected.
    """

    fun: ScalarFunction
    grad: Optional[Gradient] = None
    dim: Optional[int] = None


@dataclass
class OptimizeResult:
    """Result object returned by every optimizer in this package.

    ``x`` is always populated, but only ``status`` tells whether it is a
    converged point. For ``Status.NON_FINITE`` it is the last finite iterate.
    """

    x: Array
    fun: Optional[float]
    nit: int
    status: Status
    message: str
    grad_norm: float
    nfev: int
    njev: int
    history: List[Array] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status.converged


@dataclass(frozen=True)
class IterationInfo:
    """Read-only snapshot handed to L-BFGS progress observers."""

    x: Array
    fx: float
    gradient: Array
    step: Array
    delta_fx: float
    iteration: int


def as_objective(
    source: Union[Problem, Objective, ScalarFunction],
    numeric: bool = False,
    h: float = 1e-6,
) -> Objective:
    """Normalize ``source`` into a callable returning ``(value, gradient)``.

    Parameters
    ----------
    source:
        A :class:`Problem`, a value-and-gradient callable, or (with
        ``numeric=True``) a scalar callable.
    numeric:
        Treat ``source`` as scalar-valued and differentiate it numerically.
    h:
        Relative step for numerical differentiation.
    """
    if isinstance(source, Problem):
        problem = source
        if problem.grad is None:
            return as_objective(problem.fun, numeric=True, h=h)

        def from_problem(x: Array) -> tuple[float, Array]:
            return problem.fun(x), problem.grad(x)

        return from_problem

    if numeric:
        return NumericObjective(source, h=h)

    return source


class NumericObjective:
    """Scalar function paired with a central-difference gradient.

    ``last_nfev`` holds the scalar evaluations made by the latest call: one
    for the value plus ``2 n`` for the gradient.
    """

    def __init__(self, fun: ScalarFunction, h: float = 1e-6) -> None:
        self.fun = fun
        self.h = h
        self.last_nfev = 0

    def __repr__(self) -> str:
        return f"NumericObjective({self.fun!r}, h={self.h})"

    def __call__(self, x: Array) -> tuple[float, Array]:
        self.last_nfev = 0
        value = self.fun(x)
        grad, evals = numerical_diff(self.fun, x, h=self.h, return_evals=True)
        self.last_nfev = 1 + int(evals)
        return value, grad


class ObjectiveEvaluator:
    """Call an objective and keep evaluation counts.

    Exceptions raised by the objective are re-raised as
    :class:`~optkit.errors.EvaluationError`. Gradients are returned as float
    arrays of the same shape as the position. ``njev`` counts analytic
    gradient calls only; numeric gradients add their scalar evaluations to
    ``nfev`` instead.
    """

    def __init__(self, objective: Objective) -> None:
        self.objective = objective
        self.nfev = 0
        self.njev = 0

    def __call__(self, x: Array) -> tuple[float, Array]:
        try:
            value, grad = self.objective(x)
        except EvaluationError:
            raise
        except Exception as exc:
            raise EvaluationError(f"objective evaluation failed: {exc}") from exc
        if isinstance(self.objective, NumericObjective):
            self.nfev += self.objective.last_nfev
        else:
            self.nfev += 1
            self.njev += 1
        grad = np.asarray(grad, dtype=float)
        if grad.shape != x.shape:
            raise EvaluationError(
                f"gradient shape {grad.shape} does not match position shape {x.shape}"
            )
        return float(value), grad


__all__ = [
    "Array",
    "Gradient",
    "IterationInfo",
    "MESSAGES",
    "Objective",
    "NumericObjective",
    "ObjectiveEvaluator",
    "OptimizeResult",
    "Problem",
    "ScalarFunction",
    "Status",
    "as_objective",
]
