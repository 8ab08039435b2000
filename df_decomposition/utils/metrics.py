"""
evaluation metrics for factor recovery.

the cp factors are only defined up to column permutation, scaling and sign,
so recovered factors are compared column by column through cosine
similarities matched with the hungarian algorithm.
"""

import numpy as np
import numpy.linalg as la
from scipy.optimize import linear_sum_assignment


def cosine_similarity(a, b):
    """
    compute cosine similarity between two vectors.

    returns 0 if either vector is (numerically) zero.
    """
    norm_a = la.norm(a)
    norm_b = la.norm(b)
    if norm_a < 1e-12 or norm_b < 1e-12:
        return 0.0
    return np.dot(a, b) / (norm_a * norm_b)


def congruence_matrix(factors_true, factors_est):
    """
    product over modes of |cos| between every true and every estimated column.

    returns:
        (R_true x R_est) matrix
    """
    R = factors_true[0].shape[1]
    R_est = factors_est[0].shape[1]
    C = np.ones((R, R_est))
    for U_true, U_est in zip(factors_true, factors_est):
        for i in range(R):
            for j in range(R_est):
                C[i, j] *= abs(cosine_similarity(U_true[:, i], U_est[:, j]))
    return C


def factor_match_score(factors_true, factors_est, return_permutation=False):
    """
    compute factor match score (fms) between true and estimated factors.

    fms = (1/R_true) * sum_r prod_modes |cos(u_true^r, u_est^{pi(r)})|

    the estimate may carry more columns than the truth (a decomposition grown
    past the true rank); unmatched estimated columns are ignored.

    args:
        factors_true: list of N ground-truth factor matrices
        factors_est: list of N estimated factor matrices, a trailing weight
            vector is ignored
        return_permutation: if True, also return the matched columns

    returns:
        fms: scalar in [0, 1], where 1 means perfect recovery
        permutation: (optional) estimated column matched to each true column
    """
    N = len(factors_true)
    factors_est = [A for A in factors_est if A.ndim == 2][:N]
    if len(factors_est) != N:
        raise ValueError(f"[error] mode mismatch: true has {N} factors, estimated has {len(factors_est)}")
    R = factors_true[0].shape[1]
    R_est = factors_est[0].shape[1]
    if R_est < R:
        raise ValueError(f"[error] rank mismatch: true has {R} columns, estimated only {R_est}")

    cost_matrix = congruence_matrix(factors_true, factors_est)
    # linear_sum_assignment minimizes, so we negate
    row_ind, col_ind = linear_sum_assignment(-cost_matrix)
    fms = np.mean(cost_matrix[row_ind, col_ind])

    if return_permutation:
        return fms, col_ind
    return fms
