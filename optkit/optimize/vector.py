"""Vector arithmetic used by the optimizers.

All operations act on one-dimensional float arrays of a fixed length. With
``workers > 1`` the reductions (``dot``, ``l2_norm``, ``max_norm``) are split
into contiguous index ranges evaluated on a thread pool; numpy releases the
GIL inside these kernels. Each worker reads its own slice and returns a
partial result, so no shared state is written.

Floating-point summation order depends on how the ranges are split. Results
computed with different ``workers`` values agree to within rounding error but
are not guaranteed to be bit-identical.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

import numpy as np

from ..errors import InvalidConfigurationError

Array = np.ndarray

# Below this length the pool overhead dominates and reductions run inline.
PARALLEL_MIN_SIZE = 1 << 14


class VectorOps:
    """Elementwise arithmetic, dot products and norms over real vectors."""

    def __init__(self, workers: int = 1, min_parallel_size: int = PARALLEL_MIN_SIZE) -> None:
        if workers < 1:
            raise InvalidConfigurationError("workers must be at least 1")
        self.workers = int(workers)
        self.min_parallel_size = int(min_parallel_size)
        self._pool: Optional[ThreadPoolExecutor] = None

    def __repr__(self) -> str:
        return f"VectorOps(workers={self.workers})"

    def _chunks(self, n: int) -> List[slice]:
        bounds = np.linspace(0, n, self.workers + 1).astype(int)
        return [slice(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]

    def _reduce(self, partial: Callable[[slice], float], n: int) -> List[float]:
        if self.workers == 1 or n < self.min_parallel_size:
            return [partial(slice(0, n))]
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="optkit-vector"
            )
        return list(self._pool.map(partial, self._chunks(n)))

    def close(self) -> None:
        """Shut down the worker pool. A later reduction starts a new one."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> "VectorOps":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def dot(self, a: Array, b: Array) -> float:
        if a.shape != b.shape:
            raise ValueError(f"shape mismatch: {a.shape} vs {b.shape}")
        parts = self._reduce(lambda sl: float(np.dot(a[sl], b[sl])), a.size)
        return float(sum(parts))

    def l2_norm(self, a: Array) -> float:
        parts = self._reduce(lambda sl: float(np.dot(a[sl], a[sl])), a.size)
        return float(np.sqrt(sum(parts)))

    def max_norm(self, a: Array) -> float:
        if a.size == 0:
            return 0.0
        parts = self._reduce(lambda sl: float(np.max(np.abs(a[sl]))), a.size)
        return float(max(parts))

    @staticmethod
    def axpy(alpha: float, x: Array, y: Array) -> Array:
        """Return ``alpha * x + y`` as a new array."""
        return alpha * x + y

    @staticmethod
    def hadamard(x: Array, y: Array) -> Array:
        return x * y

    @staticmethod
    def all_finite(x: Array) -> bool:
        return bool(np.all(np.isfinite(x)))


DEFAULT_OPS = VectorOps()


__all__ = ["DEFAULT_OPS", "PARALLEL_MIN_SIZE", "VectorOps"]
