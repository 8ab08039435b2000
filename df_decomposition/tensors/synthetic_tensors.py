"""
synthetic reference tensor pairs.

every generator returns tensors stored as (X, I1, ..., Ik) where X is the
connecting dimension shared by the pair.
"""

import numpy as np


def random_pair(tenpy, left_dims, right_dims, naux, seed=1):
    """
    reference tensors with standard normal entries.

    args:
        tenpy: tensor backend
        left_dims: extents of the non-connecting modes of the left tensor
        right_dims: extents of the non-connecting modes of the right tensor
        naux: extent of the connecting dimension
        seed: random seed

    returns:
        (left, right)
    """
    rng = tenpy.default_rng(seed)
    left = rng.standard_normal((naux,) + tuple(left_dims))
    right = rng.standard_normal((naux,) + tuple(right_dims))
    return left, right


def low_rank_pair(tenpy, left_dims, right_dims, rank, seed=1, weights=None):
    """
    reference tensors whose contraction is an exact rank-`rank` cp tensor.

    the connecting dimension has extent `rank`; slice r of the left tensor is
    the outer product of the r-th columns of the left factors, slice r of the
    right tensor the same for the right factors, scaled by weights[r].

    returns:
        (left, right, factors_true) with factors_true ordered left modes first
    """
    rng = tenpy.default_rng(seed)
    dims = tuple(left_dims) + tuple(right_dims)
    factors = [rng.standard_normal((d, rank)) for d in dims]
    if weights is None:
        weights = np.ones(rank)
    nl = len(left_dims)
    left = _stack_outer(tenpy, factors[:nl], np.ones(rank))
    right = _stack_outer(tenpy, factors[nl:], weights)
    return left, right, factors


def orthogonal_pair(tenpy, left_dims, right_dims, weights, seed=1):
    """
    like low_rank_pair, with orthonormal factor columns and the given weights.

    every extent must be at least len(weights).
    """
    rng = tenpy.default_rng(seed)
    rank = len(weights)
    dims = tuple(left_dims) + tuple(right_dims)
    factors = []
    for d in dims:
        Q, _ = np.linalg.qr(rng.standard_normal((d, rank)))
        factors.append(Q)
    nl = len(left_dims)
    left = _stack_outer(tenpy, factors[:nl], np.ones(rank))
    right = _stack_outer(tenpy, factors[nl:], np.asarray(weights, dtype=float))
    return left, right, factors


def symmetric_pair(tenpy, dims, naux, seed=1):
    """
    a single random reference tensor used on both sides, so that mode i of
    the left tensor and mode i of the right tensor can share a factor.

    returns:
        (left, right) with right the same array as left
    """
    rng = tenpy.default_rng(seed)
    B = rng.standard_normal((naux,) + tuple(dims))
    return B, B


def _stack_outer(tenpy, factors, weights):
    rank = factors[0].shape[1]
    slices = []
    for r in range(rank):
        outer = factors[0][:, r]
        for A in factors[1:]:
            outer = np.multiply.outer(outer, A[:, r])
        slices.append(weights[r] * outer)
    return np.stack(slices, axis=0)
