"""Exception types raised by optkit.

Only genuine failures are exceptions. Expected end-of-run outcomes such as
convergence, iteration limits or non-finite steps are reported through
:class:`optkit.optimize.core.Status` on the returned result.
"""

from __future__ import annotations


class OptkitError(Exception):
    """Base class for all optkit errors."""


class EvaluationError(OptkitError, RuntimeError):
    """The caller's objective or gradient function failed.

    The original exception is available as ``__cause__``. The optimizer never
    retries the evaluation.
    """


class InvalidConfigurationError(OptkitError, ValueError):
    """A hyperparameter violates its documented constraint."""


__all__ = ["EvaluationError", "InvalidConfigurationError", "OptkitError"]
