"""
tensor generation module.
provides synthetic reference tensor pairs for density-fitted decompositions.
"""

from . import synthetic_tensors

__all__ = [
    'synthetic_tensors',
]
