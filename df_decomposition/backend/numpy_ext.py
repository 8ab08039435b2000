"""
numpy backend.
thin wrappers over numpy / scipy.linalg exposing the dense linear algebra
the cp-df-als core consumes (gemm, square solve, svd, symmetric eigensolve).
"""

import numpy as np
import scipy.linalg as sla


def is_master_proc():
    return True


def printf(*string):
    print(*string)


def einsum(string, *args, **kwargs):
    return np.einsum(string, *args, optimize=kwargs.get('optimize', True))


def gemm(a, b, trans_a=False, trans_b=False, alpha=1.0):
    """
    general matrix multiply alpha * op(a) @ op(b).

    args:
        a, b: 2-d arrays
        trans_a, trans_b: transpose flags for a and b
        alpha: scalar prefactor

    returns:
        the product as a new array
    """
    opa = a.T if trans_a else a
    opb = b.T if trans_b else b
    out = opa @ opb
    if alpha != 1.0:
        out *= alpha
    return out


def solve(a, b):
    """
    solve the square system a @ x = b with partial pivoting.

    raises numpy.linalg.LinAlgError if a is exactly singular.
    """
    return sla.solve(a, b, check_finite=False)


def svd(a):
    """full svd of a matrix, returns (U, s, VT)."""
    return sla.svd(a, full_matrices=True, lapack_driver='gesvd')


def eigh(a):
    """eigendecomposition of a symmetric matrix, eigenvalues ascending."""
    return sla.eigh(a)


def vecnorm(a):
    return np.linalg.norm(np.ravel(a))


def ones(shape):
    return np.ones(shape)


def reshape(a, shape):
    return np.reshape(a, shape)


def transpose(a, axes=None):
    return np.transpose(a, axes)


def default_rng(seed=None):
    """independent generator, used by objects that own their random stream."""
    return np.random.default_rng(seed)


def save_tensor_to_file(T, filename):
    np.save(filename, T)


def load_tensor_from_file(filename):
    try:
        T = np.load(filename)
        printf(f"[info] loaded tensor from file {filename}")
    except FileNotFoundError:
        raise FileNotFoundError(f"[error] no tensor exists on: {filename}")
    return T
