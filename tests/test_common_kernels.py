import unittest

import numpy as np
from numpy.linalg import LinAlgError

from df_decomposition.backend import numpy_ext as tenpy
from df_decomposition.cpd import common_kernels as ck
from df_decomposition.cpd.exceptions import NumericalFailureError
from df_decomposition.tensors import synthetic_tensors

from .helpers import explicit_mtkrp, FailingSVDBackend


class HadamardContractTestCase(unittest.TestCase):
    """Tests for the contract-one-axis primitive."""

    def setUp(self):
        rng = np.random.default_rng(0)
        self.M = rng.standard_normal((3, 4, 5, 2))
        self.factors = [rng.standard_normal((d, 2)) for d in (3, 4, 5)]

    def test_middle_axis(self):
        out = ck.hadamard_contract(tenpy, self.M, self.factors[1], 1)
        expected = np.einsum('akbr,kr->abr', self.M, self.factors[1])
        self.assertEqual(out.shape, (3, 5, 2))
        np.testing.assert_allclose(out, expected, rtol=1e-12, atol=1e-12)

    def test_leading_and_trailing_axes(self):
        lead = ck.hadamard_contract(tenpy, self.M, self.factors[0], 0)
        trail = ck.hadamard_contract(tenpy, self.M, self.factors[2], 2)
        np.testing.assert_allclose(lead, np.einsum('kabr,kr->abr', self.M, self.factors[0]), atol=1e-12)
        np.testing.assert_allclose(trail, np.einsum('abkr,kr->abr', self.M, self.factors[2]), atol=1e-12)

    def test_rank_axis_cannot_be_contracted(self):
        with self.assertRaises(ValueError):
            ck.hadamard_contract(tenpy, self.M, np.ones((2, 2)), 3)

    def test_factor_shape_mismatch(self):
        with self.assertRaises(ValueError):
            ck.hadamard_contract(tenpy, self.M, self.factors[0], 1)


class ContractionTestCase(unittest.TestCase):
    """MtKRP assembled from the reference tensors matches the dense one."""

    def setUp(self):
        self.left, self.right = synthetic_tensors.random_pair(tenpy, (3, 4), (5, 2), naux=6, seed=4)
        rng = np.random.default_rng(1)
        self.rank = 3
        self.factors = [rng.standard_normal((d, self.rank)) for d in (3, 4, 5, 2)]
        self.T = ck.materialize_reference(tenpy, self.left, self.right)

    def test_materialize_reference(self):
        expected = np.einsum('xab,xcd->abcd', self.left, self.right)
        np.testing.assert_allclose(self.T, expected, atol=1e-12)

    def test_contract_to_connecting(self):
        K = ck.contract_to_connecting(tenpy, self.right, self.factors[2:])
        expected = np.einsum('xcd,cr,dr->xr', self.right, self.factors[2], self.factors[3])
        np.testing.assert_allclose(K, expected, atol=1e-12)

    def test_mtkrp_every_mode(self):
        for n in range(4):
            if n < 2:
                K = ck.contract_to_connecting(tenpy, self.right, self.factors[2:])
                M = ck.contract_from_connecting(tenpy, self.left, K, self.factors[:2], n)
            else:
                K = ck.contract_to_connecting(tenpy, self.left, self.factors[:2])
                M = ck.contract_from_connecting(tenpy, self.right, K, self.factors[2:], n - 2)
            np.testing.assert_allclose(M, explicit_mtkrp(self.T, self.factors, n), rtol=1e-10, atol=1e-10)

    def test_mtkrp_three_mode_side(self):
        left, right = synthetic_tensors.random_pair(tenpy, (2, 3, 4), (3,), naux=5, seed=2)
        rng = np.random.default_rng(5)
        factors = [rng.standard_normal((d, 2)) for d in (2, 3, 4, 3)]
        T = ck.materialize_reference(tenpy, left, right)
        K = ck.contract_to_connecting(tenpy, right, factors[3:])
        for n in range(3):
            M = ck.contract_from_connecting(tenpy, left, K, factors[:3], n)
            np.testing.assert_allclose(M, explicit_mtkrp(T, factors, n), rtol=1e-10, atol=1e-10)

    def test_reference_norm(self):
        self.assertAlmostEqual(ck.reference_norm(tenpy, self.left, self.right),
                               np.linalg.norm(self.T), places=10)

    def test_cp_reconstruct(self):
        weights = np.array([1., -2., 0.5])
        T_hat = ck.cp_reconstruct(tenpy, self.factors, weights)
        expected = np.einsum('r,ar,br,cr,dr->abcd', weights, *self.factors)
        np.testing.assert_allclose(T_hat, expected, atol=1e-12)


class SolveTestCase(unittest.TestCase):
    """Tests for the normal equation solves."""

    def setUp(self):
        self.V = np.array([[4., 1., 0.5],
                           [1., 3., 0.2],
                           [0.5, 0.2, 2.]])
        self.rhs = np.random.default_rng(2).standard_normal((5, 3))

    def test_pseudo_inverse_matches_direct_solve(self):
        direct = ck.solve_sys(tenpy, self.V, self.rhs)
        pinv = tenpy.gemm(self.rhs, ck.pseudo_inverse(tenpy, self.V))
        np.testing.assert_allclose(pinv, direct, rtol=0, atol=1e-10)
        np.testing.assert_allclose(direct @ self.V, self.rhs, atol=1e-10)

    def test_small_singular_values_not_inverted(self):
        V = np.diag([2., 1e-15, 0.])
        P = ck.pseudo_inverse(tenpy, V)
        np.testing.assert_allclose(np.diag(P), [0.5, 1e-15, 0.], atol=1e-20)

    def test_direct_solve_singular(self):
        V = np.ones((3, 3))
        with self.assertRaises(LinAlgError):
            ck.solve_sys(tenpy, V, self.rhs)

    def test_svd_failure_is_fatal(self):
        with self.assertRaises(NumericalFailureError):
            ck.pseudo_inverse(FailingSVDBackend(), self.V)

    def test_compute_lin_sysN(self):
        rng = np.random.default_rng(3)
        A = [rng.standard_normal((d, 3)) for d in (4, 5, 6)]
        V = ck.compute_lin_sysN(tenpy, A, 1)
        np.testing.assert_allclose(V, (A[0].T @ A[0]) * (A[2].T @ A[2]), atol=1e-12)


class NormaliseTestCase(unittest.TestCase):

    def test_unit_columns(self):
        M = np.array([[3., 0.], [4., 2.]])
        U, nrm = ck.normalise(tenpy, M)
        np.testing.assert_allclose(nrm, [5., 2.])
        np.testing.assert_allclose(np.linalg.norm(U, axis=0), [1., 1.])

    def test_zero_column(self):
        M = np.array([[1., 0.], [0., 0.]])
        U, nrm = ck.normalise(tenpy, M)
        self.assertTrue(np.all(np.isfinite(U)))
        self.assertEqual(nrm[1], 0.)

    def test_normalise_columns_keeps_prefix(self):
        M = np.array([[0.6, 3.], [0.8, 4.]])
        prefix = M[:, :1].copy()
        ck.normalise_columns(tenpy, M, 1)
        np.testing.assert_array_equal(M[:, :1], prefix)
        np.testing.assert_allclose(M[:, 1], [0.6, 0.8])


if __name__ == '__main__':
    unittest.main()
