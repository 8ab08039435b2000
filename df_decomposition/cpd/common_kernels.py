"""
kernels shared by the cp-df-als optimizer.

the target tensor is never formed during the sweeps. it is the contraction
T = left^T . right of two reference tensors over their leading (connecting)
mode, and every quantity the als update needs is assembled from the
reference tensors and the factor matrices directly.

rank-tagged arrays: the intermediates below carry the cp rank as their last
axis, e.g. (X, I1, I2, R). contracting a tensor mode against its factor and
taking the hadamard product along R is the only indexing primitive used.
"""

import numpy as np
from numpy.linalg import LinAlgError

from .exceptions import NumericalFailureError


def normalise(tenpy, M):
    """
    normalise the columns of a factor matrix.

    args:
        tenpy: tensor backend
        M: factor matrix (I x R)

    returns:
        (M with unit 2-norm columns, vector of removed column norms)
    """
    nrm = np.sqrt(tenpy.einsum('ir,ir->r', M, M))
    div = np.where(nrm > 0., nrm, 1.)
    return M / div[None, :], nrm


def normalise_columns(tenpy, M, start):
    """normalise only the columns M[:, start:], leaving the prefix untouched."""
    if start >= M.shape[1]:
        return M
    tail, _ = normalise(tenpy, M[:, start:])
    M[:, start:] = tail
    return M


def compute_lin_sysN(tenpy, A, i):
    """
    hadamard product of the gram matrices of every factor except A[i].

    this is the R x R matrix V of the als normal equations.
    """
    S = None
    for j in range(len(A)):
        if j != i:
            gram = tenpy.gemm(A[j], A[j], trans_a=True)
            if S is None:
                S = gram
            else:
                S = S * gram
    if S is None:
        R = A[i].shape[1]
        S = tenpy.ones((R, R))
    return S


def solve_sys(tenpy, G, RHS):
    """
    solve X @ G = RHS for X.

    raises numpy.linalg.LinAlgError when G is singular.
    """
    return tenpy.transpose(tenpy.solve(tenpy.transpose(G), tenpy.transpose(RHS)))


def pseudo_inverse(tenpy, V, thresh=1e-13):
    """
    moore-penrose inverse of a square matrix through its svd.

    singular values at or under thresh are kept as they are instead of being
    inverted.

    args:
        tenpy: tensor backend
        V: square matrix
        thresh: smallest singular value that gets inverted

    returns:
        V^+
    """
    try:
        U, s, VT = tenpy.svd(V)
    except LinAlgError as e:
        raise NumericalFailureError(f"[error] svd pseudo inverse failed: {e}") from e
    s_inv = np.where(s > thresh, 1. / np.where(s > thresh, s, 1.), s)
    return tenpy.einsum('ji,j,kj->ik', VT, s_inv, U)


def hadamard_contract(tenpy, M, factor, mode):
    """
    contract axis `mode` of a rank-tagged array against a factor matrix.

    M has shape (d_0, ..., d_{k-1}, R); factor is (d_mode x R). the result
    drops axis `mode` and keeps R, i.e.
        out[..., r] = sum_k M[..., k, ..., r] * factor[k, r]

    args:
        tenpy: tensor backend
        M: rank-tagged array, rank axis last
        factor: factor matrix of the contracted axis
        mode: axis of M to contract, must not be the rank axis

    returns:
        rank-tagged array with one axis fewer
    """
    shape = M.shape
    if mode < 0 or mode >= len(shape) - 1:
        raise ValueError(f"[error] cannot contract axis {mode} of a rank-tagged array of order {len(shape)}")
    if factor.shape != (shape[mode], shape[-1]):
        raise ValueError(f"[error] factor of shape {factor.shape} does not match axis {mode} of {shape}")
    lead = int(np.prod(shape[:mode], dtype=int))
    trail = int(np.prod(shape[mode + 1:-1], dtype=int))
    Mv = tenpy.reshape(M, (lead, shape[mode], trail, shape[-1]))
    out = tenpy.einsum('akbr,kr->abr', Mv, factor)
    return tenpy.reshape(out, shape[:mode] + shape[mode + 1:-1] + (shape[-1],))


def contract_to_connecting(tenpy, ref, factors):
    """
    contract every non-connecting mode of a reference tensor with its factor.

    the outermost mode is removed with a single gemm, the rest are
    hadamard-contracted from the outside in.

    args:
        tenpy: tensor backend
        ref: reference tensor (X, I1, ..., Ik)
        factors: the k factor matrices of modes I1..Ik

    returns:
        K of shape (X, R)
    """
    last = ref.shape[-1]
    R = factors[-1].shape[1]
    M = tenpy.gemm(tenpy.reshape(ref, (ref.size // last, last)), factors[-1])
    M = tenpy.reshape(M, ref.shape[:-1] + (R,))
    for mode in range(ref.ndim - 2, 0, -1):
        M = hadamard_contract(tenpy, M, factors[mode - 1], mode)
    return M


def contract_from_connecting(tenpy, ref, K, factors, n):
    """
    MtKRP of mode n of the side that holds it.

    the connecting mode of ref is contracted with K by gemm, then every mode
    other than n is hadamard-contracted, trailing modes first and the leading
    ones last.

    args:
        tenpy: tensor backend
        ref: reference tensor (X, I1, ..., Ik) that contains mode n
        K: (X, R) intermediate from the other reference tensor
        factors: the k factor matrices of this side (factors[n] is unused)
        n: position of the mode among this side's non-connecting modes

    returns:
        matrix of shape (I_n, R)
    """
    X = ref.shape[0]
    R = K.shape[1]
    M = tenpy.gemm(tenpy.reshape(ref, (X, ref.size // X)), K, trans_a=True)
    M = tenpy.reshape(M, ref.shape[1:] + (R,))
    for mode in range(M.ndim - 2, n, -1):
        M = hadamard_contract(tenpy, M, factors[mode], mode)
    for mode in range(n - 1, -1, -1):
        M = hadamard_contract(tenpy, M, factors[mode], mode)
    return M


def khatri_rao(tenpy, mats):
    """column-wise kronecker product of a list of matrices."""
    KRP = mats[0]
    for mat in mats[1:]:
        R = KRP.shape[1]
        KRP = tenpy.reshape(tenpy.einsum('ir,jr->ijr', KRP, mat), (-1, R))
    return KRP


def cp_reconstruct(tenpy, factors, weights):
    """
    dense tensor of a weighted cp model.

    the first factor is rescaled by the weights, the khatri-rao product of all
    but the last factor is contracted against the last one.
    """
    dims = tuple(A.shape[0] for A in factors)
    scaled = [factors[0] * weights[None, :]] + list(factors[1:])
    if len(scaled) == 1:
        return tenpy.reshape(tenpy.einsum('ir->i', scaled[0]), dims)
    KRP = khatri_rao(tenpy, scaled[:-1])
    return tenpy.reshape(tenpy.gemm(KRP, scaled[-1], trans_b=True), dims)


def materialize_reference(tenpy, left, right):
    """explicit T = left^T . right with the non-connecting modes unfolded back."""
    X = left.shape[0]
    T = tenpy.gemm(tenpy.reshape(left, (X, left.size // X)),
                   tenpy.reshape(right, (X, right.size // X)), trans_a=True)
    return tenpy.reshape(T, left.shape[1:] + right.shape[1:])


def reference_norm(tenpy, left, right):
    """frobenius norm of left^T . right from the two X x X gram matrices."""
    X = left.shape[0]
    Lm = tenpy.reshape(left, (X, left.size // X))
    Rm = tenpy.reshape(right, (X, right.size // X))
    GL = tenpy.gemm(Lm, Lm, trans_b=True)
    GR = tenpy.gemm(Rm, Rm, trans_b=True)
    return np.sqrt(max(float(tenpy.einsum('ij,ij->', GL, GR)), 0.))


def unfold(tenpy, T, mode):
    """mode-n matricization (I_n x prod of the other extents)."""
    return tenpy.reshape(np.moveaxis(T, mode, 0), (T.shape[mode], -1))
