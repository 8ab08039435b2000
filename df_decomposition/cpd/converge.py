"""
convergence tests for the als sweeps.

a test is called with the factor list [A_0, ..., A_{N-1}, weights] after
every full sweep and answers whether the sweeps can stop. tests that track
the fit can additionally take the MtKRP of the last mode update, which is
cheaper than recomputing the residual from scratch.
"""

import numpy as np


class ConvergenceTest():
    """base class, subclasses implement __call__."""

    def __call__(self, factors):
        raise NotImplementedError

    def set_mtkrp(self, mtkrp, mode):
        """receive the MtKRP of the mode that was just updated. no-op by default."""
        pass

    def set_norm(self, norm_ref):
        """receive ||T|| of the target tensor. no-op by default."""
        pass

    def reset(self):
        pass


class CallableCheck(ConvergenceTest):
    """adapts a plain callable factors -> bool."""

    def __init__(self, func):
        self.func = func

    def __call__(self, factors):
        return bool(self.func(factors))


def as_convergence_test(test):
    if isinstance(test, ConvergenceTest):
        return test
    if callable(test):
        return CallableCheck(test)
    raise TypeError(f"[error] {type(test).__name__} is not a convergence test")


class NormCheck(ConvergenceTest):
    """
    converged once the factor matrices stop moving.

    the change is the frobenius norm of the difference between the factor
    matrices of two successive calls, summed over all modes. the history is
    dropped whenever the rank changes.

    args:
        tol: threshold on the change
    """

    def __init__(self, tol=1e-3):
        self.tol = tol
        self.iterations = 0
        self.diff = None
        self._prev = None

    def __call__(self, factors):
        ndim = len(factors) - 1
        self.iterations += 1
        if self._prev is None or any(p.shape != f.shape for p, f in zip(self._prev, factors[:ndim])):
            self._prev = [f.copy() for f in factors[:ndim]]
            self.diff = None
            return False
        diff = 0.
        for r in range(ndim):
            diff += np.sum((factors[r] - self._prev[r]) ** 2)
            self._prev[r] = factors[r].copy()
        self.diff = np.sqrt(diff)
        return self.diff < self.tol

    def reset(self):
        self.iterations = 0
        self.diff = None
        self._prev = None


class FitCheck(ConvergenceTest):
    """
    converged once the relative fit 1 - ||T - T_hat|| / ||T|| stops changing.

    the inner product <T, T_hat> comes from the MtKRP of the last updated
    mode, so no reconstruction is needed:
        <T, T_hat> = sum_{i,r} MtKRP[i, r] * A_n[i, r] * weights[r]
        ||T_hat||^2 = weights^T (hadamard of all grams) weights

    args:
        tol: threshold on the change of the fit between two sweeps
        norm_ref: ||T||, filled in by the decomposition when left as None
    """

    def __init__(self, tol=1e-4, norm_ref=None):
        self.tol = tol
        self.norm_ref = norm_ref
        self.iterations = 0
        self.fit = None
        self.fit_change = None
        self._mtkrp = None
        self._mode = None
        self._rank = None

    def set_mtkrp(self, mtkrp, mode):
        self._mtkrp = mtkrp
        self._mode = mode

    def set_norm(self, norm_ref):
        if self.norm_ref is None:
            self.norm_ref = norm_ref

    def __call__(self, factors):
        if self._mtkrp is None:
            raise ValueError("[error] FitCheck needs the MtKRP of the last mode update")
        if not self.norm_ref:
            raise ValueError("[error] FitCheck needs the norm of the target tensor")
        self.iterations += 1
        weights = factors[-1]
        A = factors[:-1]
        if weights.shape[0] != self._rank:
            # fits of different ranks are not compared
            self.fit = None
            self._rank = weights.shape[0]
        V = np.ones((weights.shape[0], weights.shape[0]))
        for M in A:
            V *= M.T @ M
        norm_model_sq = weights @ V @ weights
        iprod = np.sum(self._mtkrp * A[self._mode] * weights[None, :])
        res = np.sqrt(abs(self.norm_ref ** 2 + norm_model_sq - 2. * iprod))
        fit = 1. - res / self.norm_ref
        if self.fit is None:
            self.fit_change = None
            self.fit = fit
            return False
        self.fit_change = abs(self.fit - fit)
        self.fit = fit
        return self.fit_change < self.tol

    def reset(self):
        self.iterations = 0
        self.fit = None
        self.fit_change = None
        self._mtkrp = None
        self._mode = None
        self._rank = None
