"""
utility functions for generating reference tensor pairs from arguments.
"""

import os

from df_decomposition.tensors import synthetic_tensors


def generate_reference_pair(tenpy, args):
    """
    generate or load a reference tensor pair based on command line arguments.

    args:
        tenpy: tensor backend
        args: argument namespace (see utils.arg_defs)

    returns:
        dict with keys:
        - left, right: the reference tensors
        - factors_true: ground-truth factor matrices (None if not available)
    """
    result = {
        'left': None,
        'right': None,
        'factors_true': None,
    }

    if args.load_tensor != '':
        result['left'] = tenpy.load_tensor_from_file(os.path.join(args.load_tensor, 'left.npy'))
        result['right'] = tenpy.load_tensor_from_file(os.path.join(args.load_tensor, 'right.npy'))

    elif args.tensor == "random":
        tenpy.printf("[info] generating random reference tensors")
        result['left'], result['right'] = synthetic_tensors.random_pair(
            tenpy, args.left_dims, args.right_dims, args.naux, args.seed
        )

    elif args.tensor == "low_rank":
        tenpy.printf(f"[info] generating reference tensors of cp rank {args.R_true}")
        result['left'], result['right'], result['factors_true'] = synthetic_tensors.low_rank_pair(
            tenpy, args.left_dims, args.right_dims, args.R_true, args.seed
        )

    elif args.tensor == "orthogonal":
        tenpy.printf(f"[info] generating orthogonal reference tensors of cp rank {args.R_true}")
        weights = [float(args.R_true - r) for r in range(args.R_true)]
        result['left'], result['right'], result['factors_true'] = synthetic_tensors.orthogonal_pair(
            tenpy, args.left_dims, args.right_dims, weights, args.seed
        )

    elif args.tensor == "symmetric":
        tenpy.printf("[info] generating symmetric reference tensors")
        result['left'], result['right'] = synthetic_tensors.symmetric_pair(
            tenpy, args.left_dims, args.naux, args.seed
        )

    else:
        raise ValueError(f"[error] unknown tensor type: {args.tensor}")

    tenpy.printf(f"[info] reference tensor shapes: {result['left'].shape} / {result['right'].shape}")
    return result
