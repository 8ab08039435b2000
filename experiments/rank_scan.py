"""
compare the rank growth strategies on one reference pair.
every strategy runs on a fresh decomposition, results go to a csv table.
"""

import argparse
import os
import time
from os.path import dirname, join

import pandas as pd

import df_decomposition as dfd
from df_decomposition import CP_DF_ALS, NormCheck, generate_reference_pair
from df_decomposition.utils import arg_defs

PARENT_DIR = dirname(__file__)
RESULTS_DIR = join(PARENT_DIR, 'results')


def _run(tenpy, pair, args, method):
    cp = CP_DF_ALS(tenpy, pair['left'], pair['right'], symm=args.symm, seed=args.seed)
    t0 = time.time()
    if method == 'rank':
        cp.compute_rank(args.R, NormCheck(args.tol), step=args.step, max_iters=args.max_iters)
    elif method == 'geometric':
        cp.compute_geometric(args.R, NormCheck(args.tol), growth_factor=args.growth_factor,
                             max_iters=args.max_iters)
    elif method == 'error':
        cp.compute_error(NormCheck(args.tol), target_error=args.target_error,
                         max_rank=args.max_rank, max_iters=args.max_iters)
    else:
        cp.paneled_tucker_build([NormCheck(args.tol) for _ in range(args.panels)],
                                rank_step=args.rank_step, panels=args.panels,
                                max_iters=args.max_iters)
    dt = time.time() - t0
    return dict(method=method, rank=cp.store.rank, num_als=cp.num_als, wall_sec=dt,
                error=cp.compute_epsilon(), fitness=cp.compute_fit(), solve_mode=cp.solve_mode)


def main():
    p = argparse.ArgumentParser()
    arg_defs.add_general_arguments(p)
    arg_defs.add_df_arguments(p)
    arg_defs.add_rank_growth_arguments(p)
    p.add_argument("--methods", type=str, default="rank,geometric,error,panel",
                   help="comma-separated list of strategies to compare")
    p.add_argument("--out_csv", type=str, default=join(RESULTS_DIR, "rank_scan.csv"))
    args = p.parse_args()

    tenpy = dfd.get_backend(args.tlib)
    pair = generate_reference_pair(tenpy, args)

    rows = []
    for method in [m.strip() for m in args.methods.split(",") if m.strip()]:
        rows.append(_run(tenpy, pair, args, method))
        print(f"[done] {method}: rank={rows[-1]['rank']} error={rows[-1]['error']:.4e}")

    os.makedirs(os.path.dirname(args.out_csv) or ".", exist_ok=True)
    df = pd.DataFrame(rows)
    df.to_csv(args.out_csv, index=False)
    print(df.to_string(index=False))
    print(f"[done] wrote {args.out_csv}")


if __name__ == "__main__":
    main()
