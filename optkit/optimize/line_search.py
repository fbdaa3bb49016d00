"""Multiplicative Wolfe line search.

Unlike the bracketing and zoom search of Nocedal & Wright, the step is
adjusted by independent multiplicative factors: shrunk while the Armijo
condition fails and grown while the curvature condition fails. The number of
trials is bounded by ``max_iter``; exhausting it is reported as a failed
search rather than looping forever.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

import numpy as np

from ..errors import InvalidConfigurationError
from ..logging import get_logger
from .core import Array, Objective, ObjectiveEvaluator
from .vector import DEFAULT_OPS, VectorOps

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineSearchResult:
    """Outcome of a single line search.

    ``fx`` and ``gx`` are the objective value and gradient at the last trial
    point. ``converged`` is False if no step satisfied both conditions.
    """

    step: float
    fx: float
    gx: Array
    nfev: int
    converged: bool


@dataclass(frozen=True)
class LineSearch:
    """
    Configuration and driver for the multiplicative Wolfe search.

    Args:
        initial_step_size: First trial step. Must be positive.
        shrink_rate: A step violating the Armijo condition is multiplied by
            ``1 - shrink_rate``. Must lie in (0, 1).
        grow_rate: A step violating the curvature condition is multiplied by
            ``1 + grow_rate``. Must lie in (0, 1).
        armijo_param: Sufficient-decrease constant ``c1``.
        curvature_param: Curvature constant ``c2``; requires
            ``0 < c1 < c2 < 1``.
        max_iter: Maximum number of trial steps.
    """

    initial_step_size: float = 1.0
    shrink_rate: float = 0.1
    grow_rate: float = 0.1
    armijo_param: float = 0.1
    curvature_param: float = 0.9
    max_iter: int = 200

    def __post_init__(self) -> None:
        if not self.initial_step_size > 0:
            raise InvalidConfigurationError("initial_step_size must be positive")
        if not 0 < self.shrink_rate < 1:
            raise InvalidConfigurationError("shrink_rate must lie in (0, 1)")
        if not 0 < self.grow_rate < 1:
            raise InvalidConfigurationError("grow_rate must lie in (0, 1)")
        if not 0 < self.armijo_param < self.curvature_param < 1:
            raise InvalidConfigurationError(
                "Require 0 < armijo_param < curvature_param < 1 for Wolfe conditions."
            )
        if self.max_iter < 1:
            raise InvalidConfigurationError("max_iter must be at least 1")

    @classmethod
    def with_update_rate(cls, step_update_rate: float, **kwargs: Any) -> "LineSearch":
        """Build a search that shrinks and grows by the same rate."""
        return cls(shrink_rate=step_update_rate, grow_rate=step_update_rate, **kwargs)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "LineSearch":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidConfigurationError(
                f"Unknown line search options: {sorted(unknown)}"
            )
        return cls(**values)

    def search(
        self,
        objective: Objective,
        x: Array,
        direction: Array,
        fx: Optional[float] = None,
        gx: Optional[Array] = None,
        ops: Optional[VectorOps] = None,
    ) -> LineSearchResult:
        """Find a step along ``direction`` satisfying both Wolfe conditions.

        ``fx`` and ``gx`` are the value and gradient at ``x``; they are
        evaluated here if not supplied. ``ops`` performs the slope dot
        products.
        """
        ops = ops if ops is not None else DEFAULT_OPS
        evaluate = objective if isinstance(objective, ObjectiveEvaluator) else ObjectiveEvaluator(objective)
        x = np.asarray(x, dtype=float)
        direction = np.asarray(direction, dtype=float)
        nfev = 0
        if fx is None or gx is None:
            fx, gx = evaluate(x)
            nfev += 1
        gx = np.asarray(gx, dtype=float)
        slope = ops.dot(gx, direction)
        if not slope < 0:
            logger.debug("direction is not a descent direction (g.d = %g)", slope)
            return LineSearchResult(0.0, fx, gx, nfev, False)

        c1 = self.armijo_param
        c2 = self.curvature_param
        step = self.initial_step_size
        trial, f_new, g_new = step, fx, gx
        for _ in range(self.max_iter):
            trial = step
            f_new, g_new = evaluate(x + step * direction)
            nfev += 1
            if not f_new <= fx + c1 * step * slope:
                step *= 1.0 - self.shrink_rate
                continue
            if c2 * slope > ops.dot(g_new, direction):
                step *= 1.0 + self.grow_rate
                continue
            return LineSearchResult(step, f_new, g_new, nfev, True)

        logger.debug("line search exhausted %d trials (last step %g)", self.max_iter, trial)
        return LineSearchResult(trial, f_new, g_new, nfev, False)


__all__ = ["LineSearch", "LineSearchResult"]
