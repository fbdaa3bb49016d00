"""Tensor conversion helpers for the PyTorch adapters."""

from __future__ import annotations

from typing import Optional

import numpy as np
import torch


def infer_device(device: Optional[torch.device]) -> torch.device:
    """
    Infer the PyTorch device to use.

    Parameters
    ----------
    device:
        Optional PyTorch device. If None, the CPU is used.

    Returns
    -------
    torch.device
        The device to use for computation.
    """
    if device is not None:
        return device
    return torch.device("cpu")


def to_tensor(
    x: np.ndarray,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
    requires_grad: bool = False,
) -> torch.Tensor:
    """
    Copy a 1D numpy array into a fresh tensor.

    The copy keeps the optimizer's working array out of reach of autograd and
    of any in-place operation inside the user's function.
    """
    tensor = torch.tensor(np.asarray(x, dtype=float), dtype=dtype, device=infer_device(device))
    if requires_grad:
        tensor.requires_grad_(True)
    return tensor


def to_numpy(t: torch.Tensor) -> np.ndarray:
    """Detach ``t`` and return it as a float64 numpy array on the CPU."""
    return t.detach().cpu().to(dtype=torch.float64).numpy()


def validate_scalar(value: torch.Tensor) -> None:
    """
    Validate that a loss tensor is a scalar.

    Raises
    ------
    ValueError
        If ``value`` has more than one element.
    """
    if value.numel() != 1:
        raise ValueError(f"objective must return a scalar tensor, got shape {tuple(value.shape)}")


__all__ = ["infer_device", "to_numpy", "to_tensor", "validate_scalar"]
