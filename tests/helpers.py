import numpy as np
from numpy.linalg import LinAlgError

from df_decomposition.backend import numpy_ext


def explicit_mtkrp(T, factors, n):
    """unfold(T, n) times the khatri-rao product of the other factors, via einsum."""
    letters = ''.join(chr(ord('a') + i) for i in range(T.ndim))
    terms = [letters] + [letters[i] + 'z' for i in range(T.ndim) if i != n]
    ops = [T] + [factors[i] for i in range(T.ndim) if i != n]
    return np.einsum(','.join(terms) + '->' + letters[n] + 'z', *ops)


class SingularSolveBackend():
    """numpy backend whose direct solve always reports a singular system."""

    def __init__(self):
        self.solve_calls = 0

    def __getattr__(self, name):
        return getattr(numpy_ext, name)

    def solve(self, a, b):
        self.solve_calls += 1
        raise LinAlgError("Matrix is singular.")


class FailingSVDBackend():
    """numpy backend whose svd never converges."""

    def __getattr__(self, name):
        return getattr(numpy_ext, name)

    def svd(self, a):
        raise LinAlgError("SVD did not converge")


class WithoutBackend():
    """numpy backend with some routines removed."""

    def __init__(self, *missing):
        self._missing = set(missing)

    def __getattr__(self, name):
        if name.startswith('_') or name in self._missing:
            raise AttributeError(name)
        return getattr(numpy_ext, name)
