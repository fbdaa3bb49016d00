"""Bounded curvature history and the L-BFGS two-loop recursion.

The history is a fixed-capacity ring buffer: storage for ``memory`` pairs is
allocated once, and appending to a full buffer overwrites the oldest slot.
Iteration order is always oldest to newest.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

import numpy as np

from ..errors import InvalidConfigurationError
from .core import Array
from .vector import DEFAULT_OPS, VectorOps


# Pairs with y.s at or below this fraction of ||s|| ||y|| are discarded.
CURVATURE_TOL = 1e-12


def curvature_rho(s: Array, y: Array, ops: VectorOps = DEFAULT_OPS) -> Optional[float]:
    """Return ``1 / (y.s)``, or None if the pair carries no usable curvature.

    A pair is rejected when ``y.s`` does not exceed
    ``CURVATURE_TOL * ||s|| * ||y||`` or its inverse is not finite.
    """
    ys = ops.dot(y, s)
    if not ys > CURVATURE_TOL * ops.l2_norm(s) * ops.l2_norm(y):
        return None
    with np.errstate(over="ignore", divide="ignore"):
        rho = float(np.float64(1.0) / np.float64(ys))
    if not np.isfinite(rho):
        return None
    return rho


class CurvatureHistory:
    """FIFO of at most ``memory`` curvature pairs ``(s, y, rho)``."""

    def __init__(self, memory: int, dim: int) -> None:
        if memory < 1:
            raise InvalidConfigurationError("Memory parameter must be positive.")
        self.memory = int(memory)
        self.dim = int(dim)
        self._s = np.zeros((self.memory, self.dim))
        self._y = np.zeros((self.memory, self.dim))
        self._rho = np.zeros(self.memory)
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"CurvatureHistory(memory={self.memory}, dim={self.dim}, size={self._size})"

    def _slot(self, i: int) -> int:
        return (self._head + i) % self.memory

    def append(self, s: Array, y: Array, rho: float) -> None:
        """Store a pair, evicting the oldest one when the buffer is full."""
        if self._size < self.memory:
            slot = self._slot(self._size)
            self._size += 1
        else:
            slot = self._head
            self._head = (self._head + 1) % self.memory
        self._s[slot] = s
        self._y[slot] = y
        self._rho[slot] = rho

    def clear(self) -> None:
        self._head = 0
        self._size = 0

    def __iter__(self) -> Iterator[Tuple[Array, Array, float]]:
        for i in range(self._size):
            slot = self._slot(i)
            yield self._s[slot], self._y[slot], float(self._rho[slot])

    def newest(self) -> Tuple[Array, Array, float]:
        if self._size == 0:
            raise IndexError("history is empty")
        slot = self._slot(self._size - 1)
        return self._s[slot], self._y[slot], float(self._rho[slot])

    def two_loop(self, g: Array, ops: VectorOps = DEFAULT_OPS) -> Array:
        """Return the descent direction ``-H g`` for the implicit inverse Hessian ``H``.

        With an empty history this is exactly ``-g``.
        """
        q = np.array(g, dtype=float)
        if self._size == 0:
            return -q
        alphas = np.zeros(self._size)
        for i in reversed(range(self._size)):
            slot = self._slot(i)
            alphas[i] = self._rho[slot] * ops.dot(self._s[slot], q)
            q = ops.axpy(-alphas[i], self._y[slot], q)
        s_last, y_last, _ = self.newest()
        gamma = ops.dot(s_last, y_last) / ops.dot(y_last, y_last)
        z = gamma * q
        for i in range(self._size):
            slot = self._slot(i)
            beta = self._rho[slot] * ops.dot(self._y[slot], z)
            z = ops.axpy(alphas[i] - beta, self._s[slot], z)
        return -z


__all__ = ["CURVATURE_TOL", "CurvatureHistory", "curvature_rho"]
