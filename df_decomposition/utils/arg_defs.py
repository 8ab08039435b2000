"""
command line argument definitions for the experiment scripts.
"""


def _int_list(x):
    return [int(p) for p in x.replace(',', ' ').split() if p]


def add_general_arguments(parser):
    parser.add_argument(
        '--tlib',
        default="numpy",
        metavar='str',
        choices=['numpy'],
        help='tensor backend (default: numpy)')
    parser.add_argument(
        '--tensor',
        default="random",
        metavar='str',
        choices=['random', 'low_rank', 'orthogonal', 'symmetric'],
        help='reference tensor pair to decompose (default: random)')
    parser.add_argument(
        '--left_dims',
        type=_int_list,
        default=[6, 6],
        metavar='list',
        help='extents of the non-connecting modes of the left tensor, e.g. 6,6 (default: 6,6)')
    parser.add_argument(
        '--right_dims',
        type=_int_list,
        default=[6],
        metavar='list',
        help='extents of the non-connecting modes of the right tensor (default: 6)')
    parser.add_argument(
        '--naux',
        type=int,
        default=10,
        metavar='int',
        help='extent of the connecting dimension for random pairs (default: 10)')
    parser.add_argument(
        '--R_true',
        type=int,
        default=3,
        metavar='int',
        help='cp rank of low_rank / orthogonal pairs (default: 3)')
    parser.add_argument(
        '--seed',
        type=int,
        default=3,
        metavar='int',
        help='random seed (default: 3)')
    parser.add_argument(
        '--load_tensor',
        type=str,
        default='',
        metavar='str',
        help='folder holding left.npy and right.npy to decompose instead (default: none)')
    parser.add_argument(
        '--save_tensor',
        action='store_true',
        help='save reference tensors and factor matrices (default: False)')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='print every als sweep (default: False)')


def add_df_arguments(parser):
    parser.add_argument(
        '--symm',
        type=_int_list,
        default=None,
        metavar='list',
        help='symmetry map over the non-connecting modes, e.g. 0,1,0 (default: all independent)')
    parser.add_argument(
        '--conv',
        default="norm",
        metavar='str',
        choices=['norm', 'fit'],
        help='convergence test (default: norm)')
    parser.add_argument(
        '--tol',
        type=float,
        default=1e-6,
        metavar='float',
        help='tolerance of the convergence test (default: 1e-6)')
    parser.add_argument(
        '--max_iters',
        type=int,
        default=1000,
        metavar='int',
        help='maximum number of als sweeps per rank (default: 1000)')
    parser.add_argument(
        '--pinv',
        action='store_true',
        help='always use the svd pseudo inverse instead of the direct solve (default: False)')
    parser.add_argument(
        '--svd_guess',
        action='store_true',
        help='start from the singular vector guess (default: False)')
    parser.add_argument(
        '--svd_rank',
        type=int,
        default=0,
        metavar='int',
        help='rank of the singular vector guess (default: 0)')


def add_rank_growth_arguments(parser):
    parser.add_argument(
        '--method',
        default="rank",
        metavar='str',
        choices=['rank', 'error', 'geometric', 'panel'],
        help='rank growth strategy (default: rank)')
    parser.add_argument(
        '--R',
        type=int,
        default=5,
        metavar='int',
        help='target cp rank for rank / geometric (default: 5)')
    parser.add_argument(
        '--step',
        type=int,
        default=1,
        metavar='int',
        help='rank increment for rank / error (default: 1)')
    parser.add_argument(
        '--growth_factor',
        type=float,
        default=2.,
        metavar='float',
        help='rank multiplier for geometric (default: 2)')
    parser.add_argument(
        '--target_error',
        type=float,
        default=1e-2,
        metavar='float',
        help='reconstruction error target for error (default: 1e-2)')
    parser.add_argument(
        '--max_rank',
        type=int,
        default=100,
        metavar='int',
        help='exclusive rank bound for error, ranks below it are tried (default: 100)')
    parser.add_argument(
        '--rank_step',
        type=float,
        default=0.5,
        metavar='float',
        help='per-panel rank growth relative to the largest extent (default: 0.5)')
    parser.add_argument(
        '--panels',
        type=int,
        default=4,
        metavar='int',
        help='number of panels (default: 4)')


def get_file_prefix(args):
    return "-".join(filter(None, [
        args.method,
        args.tensor,
        'L' + 'x'.join(str(d) for d in args.left_dims),
        'R' + 'x'.join(str(d) for d in args.right_dims),
        'rank' + str(args.R),
        'seed' + str(args.seed),
    ]))
