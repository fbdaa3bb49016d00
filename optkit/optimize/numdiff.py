"""Central-difference gradient estimation for scalar-only objectives.

Each call costs ``2 n`` objective evaluations. Truncation error is
``O(h^2)`` while round-off grows as ``h`` shrinks, so by default the step is
scaled by the magnitude of each non-zero coordinate.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from ..errors import InvalidConfigurationError

Array = np.ndarray
ScalarFunction = Callable[[Array], float]


def numerical_diff(
    fun: ScalarFunction,
    x: Array,
    h: float = 1e-6,
    relative: bool = True,
    return_evals: bool = False,
) -> Array | tuple[Array, int]:
    """Compute a central-difference gradient approximation.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    h:
        Perturbation size. Must be strictly positive.
    relative:
        Scale the perturbation by ``|x_i|`` for non-zero coordinates.
    return_evals:
        Also return the number of objective evaluations.
    """
    if not h > 0:
        raise InvalidConfigurationError("h must be positive")
    x = np.asarray(x, dtype=float).copy()
    grad = np.zeros_like(x, dtype=float)
    evals = 0
    for i in range(x.size):
        step = h * abs(x[i]) if relative and x[i] != 0.0 else h
        ei = np.zeros_like(x)
        ei[i] = step
        fx_plus = fun(x + ei)
        fx_minus = fun(x - ei)
        evals += 2
        grad[i] = (fx_plus - fx_minus) / (2.0 * step)
    if return_evals:
        return grad, evals
    return grad


__all__ = ["numerical_diff"]
