import argparse
import os
import tempfile
import unittest

import numpy as np

from df_decomposition.backend import numpy_ext as tenpy
from df_decomposition.cpd import common_kernels as ck
from df_decomposition.tensors import synthetic_tensors
from df_decomposition.utils import (
    add_general_arguments,
    add_df_arguments,
    add_rank_growth_arguments,
    get_file_prefix,
    generate_reference_pair,
    save_decomposition_results,
    factor_match_score,
    cosine_similarity,
    congruence_matrix,
)


class SyntheticTensorsTestCase(unittest.TestCase):

    def test_low_rank_pair(self):
        left, right, factors = synthetic_tensors.low_rank_pair(tenpy, (3, 4), (5,), rank=2, seed=4)
        self.assertEqual(left.shape, (2, 3, 4))
        self.assertEqual(right.shape, (2, 5))
        T = ck.materialize_reference(tenpy, left, right)
        np.testing.assert_allclose(T, ck.cp_reconstruct(tenpy, factors, np.ones(2)), atol=1e-12)

    def test_orthogonal_pair(self):
        weights = np.array([2., 0.5])
        left, right, factors = synthetic_tensors.orthogonal_pair(tenpy, (3,), (4, 3), weights, seed=4)
        for A in factors:
            np.testing.assert_allclose(A.T @ A, np.eye(2), atol=1e-12)
        T = ck.materialize_reference(tenpy, left, right)
        np.testing.assert_allclose(T, ck.cp_reconstruct(tenpy, factors, weights), atol=1e-12)
        self.assertAlmostEqual(ck.reference_norm(tenpy, left, right), np.linalg.norm(weights))

    def test_symmetric_pair(self):
        left, right = synthetic_tensors.symmetric_pair(tenpy, (3, 2), naux=4)
        self.assertIs(left, right)
        self.assertEqual(left.shape, (4, 3, 2))

    def test_seeded(self):
        a, _ = synthetic_tensors.random_pair(tenpy, (3,), (3,), naux=2, seed=9)
        b, _ = synthetic_tensors.random_pair(tenpy, (3,), (3,), naux=2, seed=9)
        np.testing.assert_array_equal(a, b)


class MetricsTestCase(unittest.TestCase):

    def test_cosine_similarity(self):
        self.assertAlmostEqual(cosine_similarity(np.array([1., 0.]), np.array([2., 0.])), 1.)
        self.assertEqual(cosine_similarity(np.zeros(2), np.array([1., 0.])), 0.)

    def test_congruence_matrix_entries(self):
        rng = np.random.default_rng(2)
        factors = [rng.standard_normal((d, 2)) for d in (3, 4)]
        est = [rng.standard_normal((d, 3)) for d in (3, 4)]
        C = congruence_matrix(factors, est)
        self.assertEqual(C.shape, (2, 3))
        for i in range(2):
            for j in range(3):
                expected = abs(cosine_similarity(factors[0][:, i], est[0][:, j])
                               * cosine_similarity(factors[1][:, i], est[1][:, j]))
                self.assertAlmostEqual(C[i, j], expected)
        est[1][:, 0] = 0.
        self.assertTrue(np.all(congruence_matrix(factors, est)[:, 0] == 0.))

    def test_factor_match_score_ignores_permutation_scale_and_sign(self):
        rng = np.random.default_rng(0)
        factors = [rng.standard_normal((d, 3)) for d in (4, 5, 6)]
        perm = [2, 0, 1]
        est = [-2. * A[:, perm] for A in factors[:2]] + [0.5 * factors[2][:, perm], np.ones(3)]
        fms, col_ind = factor_match_score(factors, est, return_permutation=True)
        self.assertAlmostEqual(fms, 1.)
        np.testing.assert_array_equal(np.asarray(perm)[col_ind], [0, 1, 2])

    def test_factor_match_score_extra_columns(self):
        rng = np.random.default_rng(1)
        factors = [rng.standard_normal((d, 2)) for d in (4, 5)]
        est = [np.hstack([A, rng.standard_normal((A.shape[0], 1))]) for A in factors]
        self.assertAlmostEqual(factor_match_score(factors, est), 1.)
        with self.assertRaises(ValueError):
            factor_match_score(est, factors)


class ArgumentsTestCase(unittest.TestCase):

    def _parse(self, argv):
        parser = argparse.ArgumentParser()
        add_general_arguments(parser)
        add_df_arguments(parser)
        add_rank_growth_arguments(parser)
        return parser.parse_args(argv)

    def test_defaults(self):
        args = self._parse([])
        self.assertEqual(args.left_dims, [6, 6])
        self.assertIsNone(args.symm)
        self.assertEqual(args.method, 'rank')
        self.assertEqual(get_file_prefix(args), 'rank-random-L6x6-R6-rank5-seed3')

    def test_lists(self):
        args = self._parse(['--left_dims', '3,4', '--right_dims', '5', '--symm', '0,1,0', '--tensor', 'low_rank'])
        self.assertEqual(args.left_dims, [3, 4])
        self.assertEqual(args.symm, [0, 1, 0])
        result = generate_reference_pair(tenpy, args)
        self.assertEqual(result['left'].shape, (3, 3, 4))
        self.assertEqual(result['right'].shape, (3, 5))
        self.assertEqual(len(result['factors_true']), 3)

    def test_save_and_load(self):
        left, right = synthetic_tensors.random_pair(tenpy, (3,), (2,), naux=4)
        factors = [np.ones((3, 2)), np.ones((2, 2)), np.array([1., 2.])]
        with tempfile.TemporaryDirectory() as folder:
            save_decomposition_results(left, right, factors, tenpy, folder)
            self.assertEqual(sorted(os.listdir(folder)),
                             ['left.npy', 'mat0.npy', 'mat1.npy', 'right.npy', 'weights.npy'])
            args = self._parse(['--load_tensor', folder])
            result = generate_reference_pair(tenpy, args)
        np.testing.assert_array_equal(result['left'], left)
        np.testing.assert_array_equal(result['right'], right)
        self.assertIsNone(result['factors_true'])


if __name__ == '__main__':
    unittest.main()
