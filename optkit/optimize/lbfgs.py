"""Limited-memory BFGS driven by a multiplicative Wolfe line search."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional, Union

import numpy as np

from ..errors import InvalidConfigurationError
from ..logging import get_logger
from .core import (
    MESSAGES,
    Array,
    IterationInfo,
    Objective,
    ObjectiveEvaluator,
    OptimizeResult,
    Problem,
    Status,
    as_objective,
)
from .history import CurvatureHistory, curvature_rho
from .line_search import LineSearch
from .vector import VectorOps

logger = get_logger(__name__)

Callback = Callable[[IterationInfo], None]


@dataclass(frozen=True)
class LBFGSConfig:
    """
    Configuration for :class:`LBFGS`.

    Args:
        memory: Number of curvature pairs kept. Must be positive.
        delta: Stop once ``|f - f_prev| / |f|`` falls below this value.
        epsilon: Stop once the gradient 2-norm falls below this value.
        relative_epsilon: Scale ``epsilon`` by ``1 + ||x||``.
        max_iter: Iteration limit, or None for no limit.
        line_search: Step-size search used each iteration. Its
            ``search(objective, x, direction, fx, gx, ops=...)`` receives the
            driver's :class:`VectorOps`.
        workers: Threads used for vector reductions.
    """

    memory: int = 8
    delta: float = 1e-6
    epsilon: float = 1e-6
    relative_epsilon: bool = False
    max_iter: Optional[int] = None
    line_search: LineSearch = field(default_factory=LineSearch)
    workers: int = 1

    def __post_init__(self) -> None:
        if self.memory < 1:
            raise InvalidConfigurationError("Memory parameter must be positive.")
        if not self.delta > 0:
            raise InvalidConfigurationError("delta must be positive")
        if not self.epsilon > 0:
            raise InvalidConfigurationError("epsilon must be positive")
        if self.max_iter is not None and self.max_iter < 1:
            raise InvalidConfigurationError("max_iter must be positive or None")
        if self.workers < 1:
            raise InvalidConfigurationError("workers must be at least 1")
        if not callable(getattr(self.line_search, "search", None)):
            raise InvalidConfigurationError("line_search must provide a search() method")

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "LBFGSConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown L-BFGS options: {sorted(unknown)}")
        values = dict(values)
        if isinstance(values.get("line_search"), Mapping):
            values["line_search"] = LineSearch.from_dict(values["line_search"])
        return cls(**values)


def _relative_change(fx: float, dfx: float) -> float:
    if fx == 0.0:
        return 0.0 if dfx == 0.0 else float("inf")
    return abs(dfx) / abs(fx)


class LBFGS:
    """L-BFGS minimizer.

    Each iteration evaluates the objective, checks the termination tests in
    the order max-iter, delta, epsilon, records the latest curvature pair,
    computes a direction with the two-loop recursion and takes the step chosen
    by the line search.

    Example
    -------
    >>> import numpy as np
    >>> from optkit import LBFGS
    >>> res = LBFGS().minimize(lambda x: (float(x @ x), 2 * x), np.array([3.0, -4.0]))
    >>> res.success
    True
    """

    def __init__(self, config: Optional[LBFGSConfig] = None) -> None:
        self.config = config if config is not None else LBFGSConfig()
        self.ops = VectorOps(self.config.workers)

    def __repr__(self) -> str:
        return f"LBFGS({self.config!r})"

    def minimize(
        self,
        objective: Union[Objective, Problem],
        x0: Array,
        callback: Optional[Callback] = None,
        history: bool = False,
    ) -> OptimizeResult:
        """Minimize ``objective`` starting from ``x0``.

        ``objective`` maps a position to ``(value, gradient)``, or is a
        :class:`Problem`. Failures inside it raise
        :class:`~optkit.errors.EvaluationError`; every other outcome is
        reported through ``result.status``.
        """
        cfg = self.config
        ops = self.ops
        evaluate = ObjectiveEvaluator(as_objective(objective))
        x = np.asarray(x0, dtype=float).copy()
        if x.ndim != 1:
            raise ValueError(f"x0 must be 1D, got shape {x.shape}")
        dim = objective.dim if isinstance(objective, Problem) else None
        if dim is not None and x.size != dim:
            raise ValueError(f"x0 has length {x.size}, problem expects {dim}")

        pairs = CurvatureHistory(cfg.memory, x.size)
        x_prev = x.copy()
        g_prev = np.zeros_like(x)
        f_prev: Optional[float] = None
        hist: list[Array] = [x.copy()] if history else []
        k = 1

        fx, gx = evaluate(x)
        while True:
            if not (np.isfinite(fx) and ops.all_finite(gx)):
                status = Status.NON_FINITE
                break
            if cfg.max_iter is not None and k >= cfg.max_iter:
                status = Status.MAX_ITER_REACHED
                break
            dfx = float("nan") if f_prev is None else fx - f_prev
            if f_prev is not None and _relative_change(fx, dfx) < cfg.delta:
                status = Status.DELTA_CONVERGED
                break
            grad_norm = ops.l2_norm(gx)
            tol = cfg.epsilon * (1.0 + ops.l2_norm(x)) if cfg.relative_epsilon else cfg.epsilon
            if grad_norm < tol:
                status = Status.SUCCESS if k == 1 else Status.EPSILON_CONVERGED
                break

            if k > 1:
                s = x - x_prev
                y = gx - g_prev
                rho = curvature_rho(s, y, ops)
                if rho is not None:
                    pairs.append(s, y, rho)
                elif len(pairs) == 0:
                    logger.debug("degenerate first curvature pair at iteration %d", k)
                    status = Status.DELTA_CONVERGED
                    break
                else:
                    logger.debug("skipping degenerate curvature pair at iteration %d", k)

            direction = pairs.two_loop(gx, ops)
            ls = cfg.line_search.search(evaluate, x, direction, fx, gx, ops=ops)
            if not ls.converged:
                status = Status.LINE_SEARCH_FAILED
                break
            dx = ls.step * direction
            if not np.isfinite(ops.l2_norm(dx)):
                status = Status.NON_FINITE
                break

            logger.debug(
                "iter %d: f=%.6e |g|=%.3e step=%.3e max|dx|=%.3e",
                k,
                fx,
                grad_norm,
                ls.step,
                ops.max_norm(dx),
            )
            if callback is not None:
                callback(
                    IterationInfo(
                        x=x.copy(),
                        fx=fx,
                        gradient=gx.copy(),
                        step=dx.copy(),
                        delta_fx=dfx,
                        iteration=k,
                    )
                )

            x_prev = x
            g_prev = gx
            f_prev = fx
            x = x + dx
            fx, gx = ls.fx, ls.gx
            if history:
                hist.append(x.copy())
            k += 1

        logger.info("L-BFGS stopped after %d iterations: %s", k - 1, status.value)
        return OptimizeResult(
            x=x,
            fun=float(fx),
            nit=k - 1,
            status=status,
            message=MESSAGES[status],
            grad_norm=ops.l2_norm(gx),
            nfev=evaluate.nfev,
            njev=evaluate.njev,
            history=hist,
        )


def lbfgs(
    objective: Union[Objective, Problem],
    x0: Array,
    callback: Optional[Callback] = None,
    history: bool = False,
    **options: Any,
) -> OptimizeResult:
    """Functional form of :meth:`LBFGS.minimize`; ``options`` build an :class:`LBFGSConfig`."""
    return LBFGS(LBFGSConfig.from_dict(options)).minimize(
        objective, x0, callback=callback, history=history
    )


__all__ = ["Callback", "LBFGS", "LBFGSConfig", "lbfgs"]
