"""PyTorch integration for descentkit minimizers.

Any scalar PyTorch function of a 1D tensor can be minimized with the
NumPy-based minimizers once it is wrapped in :class:`TorchObjective`; the
gradient is supplied by autograd.

Example:
    >>> import numpy as np
    >>> import torch
    >>> from descentkit.minimize import conjugate_gradient
    >>> from descentkit.torch import TorchObjective
    >>> objective = TorchObjective(lambda x: torch.sum(x ** 2) + torch.sum(x))
    >>> res = conjugate_gradient(objective, np.ones(4))
    >>> bool(np.allclose(res.x, -0.5, atol=1e-4))
    True
"""

from descentkit.torch.objective import TorchFn, TorchObjective

__all__ = [
    "TorchFn",
    "TorchObjective",
]
