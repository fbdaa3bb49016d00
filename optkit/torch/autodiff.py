"""Objectives whose gradients come from ``torch.autograd``.

These adapters let a model written in PyTorch be minimized by the numpy
optimizers in :mod:`optkit.optimize` without deriving gradients by hand.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import torch

from optkit.torch.utils import to_numpy, to_tensor, validate_scalar

TensorObjective = Callable[[torch.Tensor], torch.Tensor]
TensorSampleLoss = Callable[[torch.Tensor, torch.Tensor], torch.Tensor]


def _gradient(value: torch.Tensor, params: torch.Tensor) -> torch.Tensor:
    if not value.requires_grad:
        return torch.zeros_like(params)
    (grad,) = torch.autograd.grad(value.reshape(()), params, allow_unused=True)
    if grad is None:
        return torch.zeros_like(params)
    return grad


def torch_objective(
    fn: TensorObjective,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Callable[[np.ndarray], tuple[float, np.ndarray]]:
    """
    Wrap a tensor function into a ``(value, gradient)`` objective.

    Parameters
    ----------
    fn:
        Function of a 1D parameter tensor returning a scalar tensor.
    dtype:
        Floating dtype of the parameter tensor.
    device:
        Device of the parameter tensor. If None, the CPU is used.

    Example
    -------
    >>> import numpy as np
    >>> from optkit import lbfgs
    >>> from optkit.torch import torch_objective
    >>> objective = torch_objective(lambda p: (p ** 2).sum())
    >>> lbfgs(objective, np.array([1.0, 2.0])).success
    True
    """

    def objective(x: np.ndarray) -> tuple[float, np.ndarray]:
        params = to_tensor(x, dtype=dtype, device=device, requires_grad=True)
        value = fn(params)
        validate_scalar(value)
        grad = _gradient(value, params)
        return float(value.detach()), to_numpy(grad)

    return objective


def torch_sample_gradient(
    loss_fn: TensorSampleLoss,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Callable[[np.ndarray, np.ndarray], np.ndarray]:
    """
    Wrap a minibatch loss into the ``grad(indices, x)`` form used by SGD-Adam.

    Parameters
    ----------
    loss_fn:
        ``loss_fn(indices, params)`` returning a scalar tensor for the
        samples selected by the integer tensor ``indices``.
    dtype:
        Floating dtype of the parameter tensor.
    device:
        Device for the tensors. If None, the CPU is used.
    """

    def grad(indices: np.ndarray, x: np.ndarray) -> np.ndarray:
        params = to_tensor(x, dtype=dtype, device=device, requires_grad=True)
        index_tensor = torch.as_tensor(np.asarray(indices, dtype=np.int64), device=params.device)
        value = loss_fn(index_tensor, params)
        validate_scalar(value)
        return to_numpy(_gradient(value, params))

    return grad


__all__ = ["torch_objective", "torch_sample_gradient"]
