"""
exceptions raised by the cp-df-als decomposition.
"""


class InvalidConfigurationError(ValueError):
    """bad rank, step, symmetry map, panel count or reference tensor shapes."""


class MissingCapabilityError(ImportError):
    """a requested path needs a linear algebra routine the backend lacks."""


class NumericalFailureError(RuntimeError):
    """the svd used by the pseudo-inverse did not converge."""


class DecompositionNotComputedError(RuntimeError):
    """factors or a reconstruction requested before any decomposition ran."""
