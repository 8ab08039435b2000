"""
cp decomposition of a density-fitted tensor with alternating least squares.
runs one of the rank growth strategies on a generated or loaded reference pair.
"""

import argparse
import csv
import time
from pathlib import Path
from os.path import dirname, join

import df_decomposition as dfd
from df_decomposition import (
    CP_DF_ALS,
    NormCheck,
    FitCheck,
    factor_match_score,
    generate_reference_pair,
    save_decomposition_results,
    get_file_prefix,
)
from df_decomposition.utils import arg_defs

PARENT_DIR = dirname(__file__)
RESULTS_DIR = join(PARENT_DIR, 'results')


# csv header for experiment logging
CSV_HEADER = [
    'method', 'seed', 'tensor', 'left_dims', 'right_dims', 'R',
    'rank', 'num_als', 'time', 'error', 'fitness', 'fms', 'solve_mode'
]


def make_convergence_test(args):
    if args.conv == 'fit':
        return FitCheck(args.tol)
    return NormCheck(args.tol)


def cp_df_als(tenpy, left, right, args, factors_true=None, csv_file=None):
    """
    run the selected rank growth strategy.

    args:
        tenpy: tensor backend
        left, right: reference tensors
        args: argument namespace (see utils.arg_defs)
        factors_true: ground-truth factors (for computing fms)
        csv_file: file handle for logging (optional)

    returns:
        dict with keys: decomposition, factors, error, fitness, fms, time
    """
    decomposition = CP_DF_ALS(tenpy, left, right, symm=args.symm, seed=args.seed, verbose=args.verbose)
    fast_solve = not args.pinv

    t0 = time.time()
    if args.method == 'rank':
        decomposition.compute_rank(
            args.R, make_convergence_test(args), step=args.step,
            svd_guess=args.svd_guess, svd_rank=args.svd_rank,
            max_iters=args.max_iters, fast_solve=fast_solve,
        )
    elif args.method == 'error':
        decomposition.compute_error(
            make_convergence_test(args), target_error=args.target_error, step=args.step,
            max_rank=args.max_rank, svd_guess=args.svd_guess, svd_rank=args.svd_rank,
            max_iters=args.max_iters, fast_solve=fast_solve,
        )
    elif args.method == 'geometric':
        decomposition.compute_geometric(
            args.R, make_convergence_test(args), growth_factor=args.growth_factor,
            svd_guess=args.svd_guess, svd_rank=args.svd_rank,
            max_iters=args.max_iters, fast_solve=fast_solve,
        )
    else:
        decomposition.paneled_tucker_build(
            [make_convergence_test(args) for _ in range(args.panels)],
            rank_step=args.rank_step, panels=args.panels,
            max_iters=args.max_iters, fast_solve=fast_solve,
        )
    time_all = time.time() - t0

    factors = decomposition.get_factor_matrices()
    error = decomposition.compute_epsilon()
    fitness = decomposition.compute_fit()
    if factors_true is not None and factors[0].shape[1] >= factors_true[0].shape[1]:
        fms = factor_match_score(factors_true, factors)
    else:
        fms = 0.0

    tenpy.printf(f"[summary] rank={factors[0].shape[1]} | error={error:.4e} | fitness={fitness:.6f} | "
                 f"fms={fms:.4f} | time={time_all:.2f}s")

    if csv_file is not None:
        csv_writer = csv.writer(
            csv_file, delimiter=',', quotechar='|', quoting=csv.QUOTE_MINIMAL
        )
        csv_writer.writerow([
            args.method, args.seed, args.tensor,
            'x'.join(map(str, args.left_dims)), 'x'.join(map(str, args.right_dims)), args.R,
            factors[0].shape[1], decomposition.num_als, time_all, error, fitness, fms,
            decomposition.solve_mode,
        ])
        csv_file.flush()

    return {
        'decomposition': decomposition,
        'factors': factors,
        'error': error,
        'fitness': fitness,
        'fms': fms,
        'time': time_all,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    arg_defs.add_general_arguments(parser)
    arg_defs.add_df_arguments(parser)
    arg_defs.add_rank_growth_arguments(parser)
    args, _ = parser.parse_known_args()

    Path(RESULTS_DIR).mkdir(parents=True, exist_ok=True)
    csv_path = join(RESULTS_DIR, get_file_prefix(args) + '.csv')
    is_new_log = not Path(csv_path).exists()

    tenpy = dfd.get_backend(args.tlib)

    if tenpy.is_master_proc():
        print("[info] experiment configuration:")
        for arg in vars(args):
            print(f"  {arg}: {getattr(args, arg)}")

    pair = generate_reference_pair(tenpy, args)

    with open(csv_path, 'a') as csv_file:
        if is_new_log:
            csv.writer(csv_file, delimiter=',', quotechar='|', quoting=csv.QUOTE_MINIMAL).writerow(CSV_HEADER)
        result = cp_df_als(tenpy, pair['left'], pair['right'], args,
                           factors_true=pair['factors_true'], csv_file=csv_file)

    if args.save_tensor:
        folderpath = join(RESULTS_DIR, get_file_prefix(args))
        save_decomposition_results(pair['left'], pair['right'], result['factors'], tenpy, folderpath)
