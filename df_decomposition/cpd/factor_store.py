"""
factor store for the cp-df-als decomposition.

one factor matrix per non-connecting mode plus the weight vector. modes are
either representatives, which own their matrix, or aliases of an earlier
representative, which resolve to that matrix whenever they are read.
"""

import numpy as np

from .exceptions import InvalidConfigurationError


def check_symmetry(symm, ndim):
    """
    validate a symmetry map.

    args:
        symm: sequence of length ndim, symm[i] == i or symm[i] < i
        ndim: number of non-connecting modes

    returns:
        the map as a tuple of ints
    """
    if symm is None:
        return tuple(range(ndim))
    symm = tuple(int(s) for s in symm)
    if len(symm) != ndim:
        raise InvalidConfigurationError(
            f"[error] symmetry map has {len(symm)} entries, expected one per "
            f"non-connecting dimension ({ndim})"
        )
    for i, s in enumerate(symm):
        if s < 0 or s > i:
            raise InvalidConfigurationError(
                f"[error] incorrectly defined symmetry: mode {i} refers to mode {s}"
            )
        if symm[s] != s:
            raise InvalidConfigurationError(
                f"[error] mode {i} is aliased to mode {s}, which is itself an alias"
            )
    return symm


class FactorStore():
    """
    ordered factor matrices of a cp model with a trailing weight vector.

    args:
        symm: validated symmetry map
    """

    def __init__(self, symm):
        self.symm = tuple(symm)
        self.ndim = len(self.symm)
        self._factors = [None] * self.ndim
        self.weights = None

    @property
    def empty(self):
        return self.weights is None

    @property
    def rank(self):
        return 0 if self.empty else self.weights.shape[0]

    def is_representative(self, i):
        return self.symm[i] == i

    def representatives(self):
        return [i for i in range(self.ndim) if self.symm[i] == i]

    def factor(self, i):
        return self._factors[self.symm[i]]

    def set_factor(self, i, M):
        if not self.is_representative(i):
            raise ValueError(f"[error] mode {i} is an alias of mode {self.symm[i]} and cannot be written")
        self._factors[i] = M

    def factors(self):
        """factor matrices of every mode, aliases resolved."""
        return [self.factor(i) for i in range(self.ndim)]

    def as_list(self):
        """[A_0, ..., A_{ndim-1}, weights]"""
        return self.factors() + [self.weights]

    def populate(self, factors, weights):
        """replace the whole store; only representative entries of factors are read."""
        for i in self.representatives():
            self._factors[i] = factors[i]
        self.weights = weights

    def extend(self, rank, fill, normalise_tail):
        """
        grow every factor matrix to `rank` columns.

        existing columns are copied unchanged, new columns come from
        fill(rows, ncols) and are then passed through normalise_tail(M, start).
        the weight vector grows with ones.

        args:
            rank: new column count, must not be smaller than the current rank
            fill: callable returning a (rows, ncols) block of new values
            normalise_tail: callable normalising columns from `start` on

        returns:
            the previous rank
        """
        old = self.rank
        if rank < old:
            raise ValueError(f"[error] cannot shrink factor matrices from rank {old} to {rank}")
        grown = []
        for i in self.representatives():
            A = self._factors[i]
            b = np.empty((A.shape[0], rank))
            b[:, :old] = A
            b[:, old:] = fill(A.shape[0], rank - old)
            grown.append((i, normalise_tail(b, old)))
        # all matrices are built before any is swapped in
        for i, b in grown:
            self._factors[i] = b
        w = np.ones(rank)
        w[:old] = self.weights
        self.weights = w
        return old

    def copy(self):
        return [A.copy() for A in self.as_list()]
