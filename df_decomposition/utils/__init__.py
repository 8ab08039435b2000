"""
utility module for the density-fitted decomposition.
provides argument parsing, reference tensor generation, metrics and result saving.
"""

from .generators import generate_reference_pair
from .utils import save_decomposition_results
from .metrics import (
    factor_match_score,
    congruence_matrix,
    cosine_similarity,
)
from .arg_defs import (
    add_general_arguments,
    add_df_arguments,
    add_rank_growth_arguments,
    get_file_prefix,
)

__all__ = [
    # generators
    'generate_reference_pair',
    # io
    'save_decomposition_results',
    # metrics
    'factor_match_score',
    'congruence_matrix',
    'cosine_similarity',
    # argument parsing
    'add_general_arguments',
    'add_df_arguments',
    'add_rank_growth_arguments',
    'get_file_prefix',
]
