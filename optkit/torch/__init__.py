"""PyTorch integration for optkit.

Example:
    >>> import numpy as np
    >>> import torch
    >>> from optkit import SGDAdam, AdamConfig
    >>> from optkit.torch import torch_sample_gradient
    >>> data = torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)
    >>> grad = torch_sample_gradient(lambda idx, p: ((p[0] - data[idx]) ** 2).mean())
    >>> res = SGDAdam(AdamConfig(alpha=0.1, max_iter=5)).minimize(grad, np.zeros(1), 3)
"""

from optkit.torch.autodiff import torch_objective, torch_sample_gradient
from optkit.torch.utils import infer_device, to_numpy, to_tensor

__all__ = [
    "infer_device",
    "to_numpy",
    "to_tensor",
    "torch_objective",
    "torch_sample_gradient",
]
