import numpy as np
from numpy.linalg import LinAlgError

from .common_kernels import (
    normalise,
    normalise_columns,
    compute_lin_sysN,
    solve_sys,
    pseudo_inverse,
    contract_to_connecting,
    contract_from_connecting,
    cp_reconstruct,
    materialize_reference,
    reference_norm,
    unfold,
)
from .converge import as_convergence_test
from .exceptions import (
    InvalidConfigurationError,
    MissingCapabilityError,
    NumericalFailureError,
    DecompositionNotComputedError,
)
from .factor_store import FactorStore, check_symmetry


class CP_DF_ALS():
    """
    cp decomposition of a density-fitted tensor by alternating least squares.

    the target tensor is T = left^T . right, the contraction of two reference
    tensors over their leading (connecting) mode:
        T(I1, ..., I_{L-1}, J1, ..., J_{R-1}) = sum_X left(X, I...) right(X, J...)
    it is never formed during the sweeps. each mode update contracts one
    reference tensor down to an (X x rank) intermediate and the other one down
    to the MtKRP of the mode being optimized.

    the rank is grown from 1 (or from an svd based guess) to the requested
    value; the columns computed at a lower rank are kept and new columns are
    drawn at random.

    args:
        tenpy: tensor backend
        left: reference tensor (X, I1, ..., I_{L-1})
        right: reference tensor (X, J1, ..., J_{R-1})
        symm: symmetry map over the non-connecting modes, symm[i] == i for an
            independent mode and symm[i] = j < i when mode i shares mode j's
            factor. None means all modes are independent
        seed: seed of the random generator owned by the decomposition
        verbose: print a line per als sweep
    """

    def __init__(self, tenpy, left, right, symm=None, seed=3, verbose=False):
        self.tenpy = tenpy
        self.left = left
        self.right = right
        if left.ndim < 2 or right.ndim < 2:
            raise InvalidConfigurationError(
                "[error] both reference tensors need a connecting mode and at least one other mode"
            )
        if left.shape[0] != right.shape[0]:
            raise InvalidConfigurationError(
                f"[error] connecting dimensions differ: {left.shape[0]} != {right.shape[0]}"
            )
        self.ndimL = left.ndim
        self.ndimR = right.ndim
        self.ndim = self.ndimL + self.ndimR - 2
        self.symm = check_symmetry(symm, self.ndim)
        for i, s in enumerate(self.symm):
            if self.mode_extent(i) != self.mode_extent(s):
                raise InvalidConfigurationError(
                    f"[error] mode {i} (extent {self.mode_extent(i)}) cannot share the factor "
                    f"of mode {s} (extent {self.mode_extent(s)})"
                )
        self.store = FactorStore(self.symm)
        self.rng = tenpy.default_rng(seed)
        self.solve_mode = 'direct'
        self.num_als = 0
        self.verbose = verbose
        self._tensor_ref = None
        self._norm_ref = None

    def mode_extent(self, i):
        if i < self.ndimL - 1:
            return self.left.shape[i + 1]
        return self.right.shape[i - self.ndimL + 2]

    def compute_rank(self, rank, converge_test, step=1, svd_guess=False, svd_rank=0,
                     max_iters=10000, fast_solve=True, want_error=False):
        """
        decompose to cp rank `rank`.

        the rank is built from 1 (or from the current rank of the factors) in
        increments of `step`, converging the als at every intermediate rank.

        args:
            rank: cp rank of the result
            converge_test: called with the factors after every sweep
            step: rank increment between two als solves
            svd_guess: start from the singular vectors of the target tensor
            svd_rank: rank of the svd guess, svd_rank <= rank
            max_iters: cap on the sweeps of each als solve
            fast_solve: solve the normal equations directly instead of
                through the pseudo-inverse
            want_error: compute ||T - T_hat|| once the last solve is done

        returns:
            the reconstruction error, or None if want_error is False
        """
        if rank <= 0:
            raise InvalidConfigurationError("[error] decomposition rank must be greater than 0")
        if step <= 0:
            raise InvalidConfigurationError("[error] the step size must be larger than 0")
        if svd_guess and svd_rank > rank:
            raise InvalidConfigurationError("[error] initial guess is larger than the desired cp rank")
        self._check_initial_guess(svd_guess, svd_rank)
        self._check_solver(fast_solve)
        converge_test = as_convergence_test(converge_test)

        epsilon = self.build(rank, converge_test, max_iters, want_error, step,
                             svd_guess, svd_rank, fast_solve)
        self.tenpy.printf(f"[summary] number of als iterations performed: {self.num_als}")
        return epsilon

    def compute_error(self, converge_test, target_error=1e-2, step=1, max_rank=100000,
                      svd_guess=False, svd_rank=0, max_iters=10000, fast_solve=True):
        """
        grow the rank one at a time until ||T - T_hat|| <= target_error.

        args:
            converge_test: called with the factors after every sweep
            target_error: error at which the rank stops growing
            step: rank increment used inside each build
            max_rank: exclusive bound, only ranks below it are tried
            svd_guess: start from the singular vectors of the target tensor
            svd_rank: rank of the svd guess
            max_iters: cap on the sweeps of each als solve
            fast_solve: direct solve of the normal equations

        returns:
            the last computed reconstruction error
        """
        if step <= 0:
            raise InvalidConfigurationError("[error] the step size must be larger than 0")
        self._check_initial_guess(svd_guess, svd_rank)
        self._check_solver(fast_solve)
        converge_test = as_convergence_test(converge_test)

        if not self.store.empty:
            rank = self.store.rank
        else:
            rank = svd_rank if svd_guess else 1
        if rank >= max_rank:
            raise InvalidConfigurationError(
                f"[error] starting rank {rank} must be smaller than max_rank {max_rank}"
            )
        epsilon = target_error + 1
        while epsilon > target_error and rank < max_rank:
            epsilon = self.build(rank, converge_test, max_iters, True, step,
                                 svd_guess, svd_rank, fast_solve)
            if self.verbose:
                self.tenpy.printf(f"[info] rank={self.store.rank} | error={epsilon:.6e}")
            rank += 1
        self.tenpy.printf(f"[summary] number of als iterations performed: {self.num_als}")
        return epsilon

    def compute_geometric(self, desired_rank, converge_test, growth_factor=2, svd_guess=False,
                          svd_rank=0, max_iters=10000, fast_solve=True, want_error=False):
        """
        decompose to a rank <= desired_rank, multiplying the rank by
        growth_factor between als solves (adding 1 if growth_factor <= 1).

        returns:
            the reconstruction error, or None if want_error is False
        """
        if desired_rank <= 0:
            raise InvalidConfigurationError("[error] decomposition rank must be greater than 0")
        if growth_factor <= 0:
            raise InvalidConfigurationError("[error] the step size must be larger than 0")
        if svd_guess and svd_rank > desired_rank:
            raise InvalidConfigurationError("[error] initial guess is larger than the desired cp rank")
        self._check_initial_guess(svd_guess, svd_rank)
        self._check_solver(fast_solve)
        converge_test = as_convergence_test(converge_test)

        epsilon = None
        rank = max(svd_rank if svd_guess else 1, self.store.rank)
        while rank <= desired_rank:
            step = max(rank - self.store.rank, 1)
            epsilon = self.build(rank, converge_test, max_iters, want_error, step,
                                 svd_guess, svd_rank, fast_solve)
            if growth_factor <= 1:
                rank += 1
            else:
                rank = max(rank + 1, int(rank * growth_factor))
        self.tenpy.printf(f"[summary] number of als iterations performed: {self.num_als}")
        return epsilon

    def paneled_tucker_build(self, converge_list, rank_step=0.5, panels=4, max_iters=20,
                             fast_solve=True, want_error=False):
        """
        decompose in `panels` als solves.

        the first panel starts from the svd guess at rank max_dim, the largest
        extent of any mode of either reference tensor (connecting mode
        included). if factors already exist the guess is skipped and the first
        panel grows them to max_dim instead. every later panel adds
        rank_step * max_dim random columns to each factor and re-runs the als.

        args:
            converge_list: one convergence test per panel
            rank_step: rank growth per panel relative to max_dim
            panels: number of als solves
            max_iters: cap on the sweeps of each panel
            fast_solve: direct solve of the normal equations
            want_error: compute ||T - T_hat|| after each panel

        returns:
            the reconstruction error, or None if want_error is False
        """
        if rank_step <= 0:
            raise InvalidConfigurationError("[error] panel step size cannot be less than or equal to zero")
        if panels <= 0:
            raise InvalidConfigurationError("[error] the number of panels must be larger than 0")
        if len(converge_list) < panels:
            raise InvalidConfigurationError(
                "[error] too few convergence tests, provide one convergence test per panel"
            )
        if self.store.empty:
            self._require('eigh')
        self._check_solver(fast_solve)
        converge_list = [as_convergence_test(c) for c in converge_list]

        # the connecting extent counts too
        max_dim = max(self.left.shape + self.right.shape)
        panel_step = max(1, int(rank_step * max_dim))
        epsilon = None
        for count in range(panels):
            converge_test = converge_list[count]
            if count == 0:
                epsilon = self.build(max_dim, converge_test, max_iters, want_error, max_dim,
                                     True, max_dim, fast_solve)
            else:
                rank_new = self.store.rank + panel_step
                self._extend(rank_new)
                epsilon = self.ALS(rank_new, converge_test, max_iters, want_error, fast_solve)
        self.tenpy.printf(f"[summary] number of als iterations performed: {self.num_als}")
        return epsilon

    def get_factor_matrices(self):
        """
        copies of the factor matrices followed by the weight vector.

        aliased modes hold a copy of their representative's matrix.
        """
        if self.store.empty:
            raise DecompositionNotComputedError(
                "[error] attempting to return a null object, compute the cp decomposition first"
            )
        return self.store.copy()

    def reconstruct(self):
        """dense approximation of the target tensor from the cp factors."""
        if self.store.empty:
            raise DecompositionNotComputedError(
                "[error] factor matrices have not been computed, compute the cp decomposition first"
            )
        return cp_reconstruct(self.tenpy, self.store.factors(), self.store.weights)

    def compute_epsilon(self):
        """frobenius norm of T - T_hat. materializes T on first use."""
        return self.tenpy.vecnorm(self.reconstruct() - self.reference_tensor())

    def compute_fit(self):
        return 1. - self.compute_epsilon() / self.reference_norm()

    def reference_tensor(self):
        if self._tensor_ref is None:
            self._tensor_ref = materialize_reference(self.tenpy, self.left, self.right)
        return self._tensor_ref

    def reference_norm(self):
        if self._norm_ref is None:
            self._norm_ref = reference_norm(self.tenpy, self.left, self.right)
        return self._norm_ref

    def build(self, rank, converge_test, max_iters, want_error, step, svd_guess, svd_rank, fast_solve):
        """
        bring the factors to `rank` and converge the als on the way.

        the svd guess is only used when no factors exist yet. rank then grows
        from its current value by `step`, the last increment being clipped so
        that `rank` is hit exactly. if no growth is needed the als is re-run
        at the current rank.
        """
        epsilon = None
        optimized = False
        if self.store.empty and svd_guess:
            self._svd_initial_guess(svd_rank)
            epsilon = self.ALS(svd_rank, converge_test, max_iters, want_error, fast_solve)
            optimized = True

        current = self.store.rank
        while current < rank:
            current = 1 if current == 0 else min(current + step, rank)
            if self.store.empty:
                self._random_initial_guess(current)
            else:
                self._extend(current)
            epsilon = self.ALS(current, converge_test, max_iters, want_error, fast_solve)
            optimized = True

        if not optimized:
            epsilon = self.ALS(self.store.rank, converge_test, max_iters, want_error, fast_solve)
        return epsilon

    def ALS(self, rank, converge_test, max_iters, want_error, fast_solve):
        """
        sweep over the modes at a fixed rank until converge_test is satisfied
        or max_iters sweeps are done. aliased modes are never updated, they
        read their representative's factor.
        """
        converge_test.set_norm(self.reference_norm())
        count = 0
        is_converged = False
        while count < max_iters and not is_converged:
            count += 1
            for i in range(self.ndim):
                if self.symm[i] == i:
                    self.direct(i, rank, fast_solve, converge_test)
            is_converged = converge_test(self.store.as_list())
            if self.verbose:
                self.tenpy.printf(f"[info] rank={rank} | iter={count}")
        self.num_als += count

        if not is_converged:
            self.tenpy.printf(f"[info] als at rank {rank} stopped after {max_iters} iterations without converging")
        if want_error:
            return self.compute_epsilon()
        return None

    def direct(self, n, rank, fast_solve, converge_test):
        """
        optimize the factor of mode n with all others held fixed, without
        forming the khatri-rao product.

        for T(I1, I2, J1, J2) = left(X, I1, I2) right(X, J1, J2) and n = I2:
            right(X, J1, J2) . A_J2 (*) A_J1          -> K(X, R)
            left(X, I1, I2)^T . K                     -> M(I1, I2, R)
            M(I1, I2, R) (*) A_I1                     -> MtKRP(I2, R)
        where (*) contracts a mode and takes the hadamard product along R.
        """
        tenpy = self.tenpy
        factors = self.store.factors()
        split = self.ndimL - 1
        if n < split:
            K = contract_to_connecting(tenpy, self.right, factors[split:])
            mtkrp = contract_from_connecting(tenpy, self.left, K, factors[:split], n)
        else:
            K = contract_to_connecting(tenpy, self.left, factors[:split])
            mtkrp = contract_from_connecting(tenpy, self.right, K, factors[split:], n - split)

        converge_test.set_mtkrp(mtkrp, n)

        V = compute_lin_sysN(tenpy, factors, n)
        an = None
        if fast_solve and self.solve_mode == 'direct':
            try:
                an = solve_sys(tenpy, V, mtkrp)
            except LinAlgError:
                tenpy.printf("[warning] direct solve of the normal equations failed, reverting to the pseudo inverse")
                self.solve_mode = 'pinv'
        if an is None:
            an = tenpy.gemm(mtkrp, pseudo_inverse(tenpy, V))

        an, self.store.weights = normalise(tenpy, an)
        self.store.set_factor(n, an)

    def _random_initial_guess(self, rank):
        factors = [None] * self.ndim
        for i in self.store.representatives():
            factors[i], _ = normalise(self.tenpy, self._random_block(self.mode_extent(i), rank))
        self.store.populate(factors, np.ones(rank))

    def _svd_initial_guess(self, svd_rank):
        """
        factor columns from the leading eigenvectors of T_(i) T_(i)^T.

        modes with fewer rows than svd_rank get random columns to fill up.
        """
        tenpy = self.tenpy
        T = self.reference_tensor()
        factors = [None] * self.ndim
        for i in self.store.representatives():
            Ti = unfold(tenpy, T, i)
            S = tenpy.gemm(Ti, Ti, trans_b=True)
            try:
                _, evecs = tenpy.eigh(S)
            except LinAlgError as e:
                raise NumericalFailureError(f"[error] error in computing the svd initial guess: {e}") from e
            extent = S.shape[0]
            k = min(extent, svd_rank)
            M = np.empty((extent, svd_rank))
            # eigh orders eigenvalues ascending
            M[:, :k] = evecs[:, ::-1][:, :k]
            if k < svd_rank:
                M[:, k:] = self._random_block(extent, svd_rank - k)
            factors[i], _ = normalise(tenpy, M)
        self.store.populate(factors, np.ones(svd_rank))

    def _extend(self, rank):
        self.store.extend(rank, self._random_block,
                          lambda M, start: normalise_columns(self.tenpy, M, start))

    def _random_block(self, rows, cols):
        return self.rng.normal(0., 2., (rows, cols))

    def _require(self, *names):
        for name in names:
            if not hasattr(self.tenpy, name):
                raise MissingCapabilityError(
                    f"[error] the tensor backend does not provide {name}"
                )

    def _check_initial_guess(self, svd_guess, svd_rank):
        if svd_guess and self.store.empty:
            if svd_rank <= 0:
                raise InvalidConfigurationError(
                    "[error] must specify the rank of the initial approximation using svd"
                )
            self._require('eigh')

    def _check_solver(self, fast_solve):
        self._require('svd')
        if fast_solve:
            self._require('solve')
