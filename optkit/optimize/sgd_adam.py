"""Minibatch stochastic gradient descent with Adam moment estimates.

The objective is a sum over ``n_samples`` terms. The caller supplies
``grad(indices, x)`` returning the gradient of the terms selected by
``indices`` at ``x``; whether that is a sum or a mean is the caller's choice.

Shuffling uses a ``numpy.random.Generator`` owned by the optimizer and
re-seeded at the start of every run, so identical inputs give identical
trajectories regardless of what ran before.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional, Sequence

import numpy as np

from ..errors import EvaluationError, InvalidConfigurationError
from ..logging import get_logger
from .core import MESSAGES, Array, OptimizeResult, Status
from .vector import VectorOps

logger = get_logger(__name__)

MinibatchGradient = Callable[[Array, Array], Array]


@dataclass(frozen=True)
class EpochInfo:
    """Read-only snapshot handed to SGD-Adam observers after each epoch."""

    epoch: int
    x: Array
    grad_norm: float
    steps: int


EpochCallback = Callable[[EpochInfo], None]


@dataclass(frozen=True)
class AdamConfig:
    """
    Configuration for :class:`SGDAdam`.

    Args:
        alpha: Base step size. Must be positive.
        beta1: Decay rate of the first moment, in (0, 1).
        beta2: Decay rate of the second moment, in (0, 1).
        eps: Floor added to ``sqrt(v_hat)``. Must be positive.
        epsilon: Stop once the full-gradient 2-norm falls below this value.
        batch_size: Samples per minibatch. The last batch may be smaller.
        max_iter: Epoch limit, or None for no limit.
        seed: Seed of the shuffling generator.
        workers: Threads used for vector reductions.
    """

    alpha: float = 1e-3
    beta1: float = 0.9
    beta2: float = 0.999
    eps: float = 1e-8
    epsilon: float = 1e-6
    batch_size: int = 1
    max_iter: Optional[int] = None
    seed: int = 1
    workers: int = 1

    def __post_init__(self) -> None:
        if not self.alpha > 0:
            raise InvalidConfigurationError("alpha must be positive")
        if not 0 < self.beta1 < 1:
            raise InvalidConfigurationError("beta1 must lie in (0, 1)")
        if not 0 < self.beta2 < 1:
            raise InvalidConfigurationError("beta2 must lie in (0, 1)")
        if not self.eps > 0:
            raise InvalidConfigurationError("eps must be positive")
        if not self.epsilon > 0:
            raise InvalidConfigurationError("epsilon must be positive")
        if self.batch_size < 1:
            raise InvalidConfigurationError("batch_size must be at least 1")
        if self.max_iter is not None and self.max_iter < 1:
            raise InvalidConfigurationError("max_iter must be positive or None")
        if self.workers < 1:
            raise InvalidConfigurationError("workers must be at least 1")

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "AdamConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown Adam options: {sorted(unknown)}")
        return cls(**values)


class SGDAdam:
    """Minibatch Adam optimizer.

    Every epoch first evaluates the full gradient for the convergence test,
    then shuffles the sample indices and performs one Adam update per
    minibatch. Bias correction uses the number of minibatch updates made so
    far in the run.
    """

    def __init__(self, config: Optional[AdamConfig] = None) -> None:
        self.config = config if config is not None else AdamConfig()
        self.ops = VectorOps(self.config.workers)
        self._rng = np.random.default_rng(self.config.seed)

    def __repr__(self) -> str:
        return f"SGDAdam({self.config!r})"

    def _gradient(self, grad: MinibatchGradient, indices: Array, x: Array) -> Array:
        try:
            g = grad(indices, x)
        except EvaluationError:
            raise
        except Exception as exc:
            raise EvaluationError(f"gradient evaluation failed: {exc}") from exc
        g = np.asarray(g, dtype=float)
        if g.shape != x.shape:
            raise EvaluationError(
                f"gradient shape {g.shape} does not match position shape {x.shape}"
            )
        return g

    def minimize(
        self,
        grad: MinibatchGradient,
        x0: Array,
        n_samples: int,
        callback: Optional[EpochCallback] = None,
    ) -> OptimizeResult:
        """Minimize the sum of ``n_samples`` terms starting from ``x0``."""
        cfg = self.config
        ops = self.ops
        if n_samples < 1:
            raise ValueError("n_samples must be at least 1")
        x = np.asarray(x0, dtype=float).copy()
        if x.ndim != 1:
            raise ValueError(f"x0 must be 1D, got shape {x.shape}")

        self._rng = np.random.default_rng(cfg.seed)
        all_indices = np.arange(n_samples)
        m = np.zeros_like(x)
        v = np.zeros_like(x)
        t = 0
        epoch = 0
        njev = 0
        grad_norm = float("nan")

        while True:
            full = self._gradient(grad, all_indices, x)
            njev += 1
            grad_norm = ops.l2_norm(full)
            if not np.isfinite(grad_norm):
                status = Status.NON_FINITE
                break
            if grad_norm < cfg.epsilon:
                status = Status.SUCCESS if epoch == 0 else Status.EPSILON_CONVERGED
                break
            if cfg.max_iter is not None and epoch >= cfg.max_iter:
                status = Status.MAX_ITER_REACHED
                break

            order = self._rng.permutation(n_samples)
            diverged = False
            for start in range(0, n_samples, cfg.batch_size):
                batch = order[start : start + cfg.batch_size]
                g = self._gradient(grad, batch, x)
                njev += 1
                t += 1
                m = cfg.beta1 * m + (1.0 - cfg.beta1) * g
                v = cfg.beta2 * v + (1.0 - cfg.beta2) * ops.hadamard(g, g)
                m_hat = m / (1.0 - cfg.beta1**t)
                v_hat = v / (1.0 - cfg.beta2**t)
                x_new = x - cfg.alpha * m_hat / (np.sqrt(v_hat) + cfg.eps)
                if not np.isfinite(ops.l2_norm(x_new)):
                    diverged = True
                    break
                x = x_new
            if diverged:
                status = Status.NON_FINITE
                break

            epoch += 1
            logger.debug("epoch %d: |g|=%.3e steps=%d", epoch, grad_norm, t)
            if callback is not None:
                callback(EpochInfo(epoch=epoch, x=x.copy(), grad_norm=grad_norm, steps=t))

        logger.info("SGD-Adam stopped after %d epochs: %s", epoch, status.value)
        return OptimizeResult(
            x=x,
            fun=None,
            nit=epoch,
            status=status,
            message=MESSAGES[status],
            grad_norm=grad_norm,
            nfev=0,
            njev=njev,
        )


def sample_gradients(
    functions: Sequence[Callable[[Array], Array]], reduction: str = "mean"
) -> MinibatchGradient:
    """Build a minibatch gradient from one gradient callable per sample.

    ``reduction`` is ``"mean"`` or ``"sum"``.
    """
    if reduction not in ("mean", "sum"):
        raise InvalidConfigurationError(f"Unsupported reduction '{reduction}'")
    functions = list(functions)

    def grad(indices: Array, x: Array) -> Array:
        total = np.zeros_like(x, dtype=float)
        for i in indices:
            total += np.asarray(functions[int(i)](x), dtype=float)
        if reduction == "mean" and len(indices) > 0:
            total /= len(indices)
        return total

    return grad


def sgd_adam(
    grad: MinibatchGradient,
    x0: Array,
    n_samples: int,
    callback: Optional[EpochCallback] = None,
    **options: Any,
) -> OptimizeResult:
    """Functional form of :meth:`SGDAdam.minimize`; ``options`` build an :class:`AdamConfig`."""
    return SGDAdam(AdamConfig.from_dict(options)).minimize(
        grad, x0, n_samples, callback=callback
    )


__all__ = [
    "AdamConfig",
    "EpochCallback",
    "EpochInfo",
    "MinibatchGradient",
    "SGDAdam",
    "sample_gradients",
    "sgd_adam",
]
