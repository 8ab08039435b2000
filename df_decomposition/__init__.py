"""
density-fitted cp decomposition library.

computes the canonical polyadic (cp) decomposition of a tensor given only as
the contraction of two reference tensors over a shared connecting dimension,
T = left^T . right, by alternating least squares. T itself is never formed
during the optimization.

quick start:
    >>> import df_decomposition as dfd
    >>> 
    >>> # get a backend
    >>> tenpy = dfd.get_backend('numpy')
    >>> 
    >>> # two reference tensors sharing their leading dimension
    >>> left, right = dfd.tensors.synthetic_tensors.random_pair(tenpy, (6, 6), (6,), naux=10)
    >>> 
    >>> # create the decomposition, modes 0 and 1 independent, mode 2 shares mode 0's factor
    >>> cp = dfd.CP_DF_ALS(tenpy, left, right, symm=[0, 1, 0])
    >>> 
    >>> # build up to rank 5
    >>> error = cp.compute_rank(5, dfd.NormCheck(1e-6), want_error=True)
    >>> factors = cp.get_factor_matrices()
"""

# version
try:
    from pathlib import Path
    _version_file = Path(__file__).parent / 'VERSION'
    __version__ = _version_file.read_text().strip() if _version_file.exists() else '0.1.0'
except OSError:
    __version__ = '0.1.0'

# backend
from .backend import get_backend

# decomposition
from .cpd import (
    CP_DF_ALS,
    FactorStore,
    ConvergenceTest,
    NormCheck,
    FitCheck,
)

# errors
from .cpd import (
    InvalidConfigurationError,
    MissingCapabilityError,
    NumericalFailureError,
    DecompositionNotComputedError,
)

# utilities
from .utils import (
    generate_reference_pair,
    save_decomposition_results,
    factor_match_score,
)

# argument parsing utilities
from .utils import (
    add_general_arguments,
    add_df_arguments,
    add_rank_growth_arguments,
    get_file_prefix,
)

# submodules for direct access
from . import cpd
from . import tensors
from . import backend
from . import utils

__all__ = [
    # version
    '__version__',
    # backend
    'get_backend',
    # decomposition
    'CP_DF_ALS',
    'FactorStore',
    'ConvergenceTest',
    'NormCheck',
    'FitCheck',
    # errors
    'InvalidConfigurationError',
    'MissingCapabilityError',
    'NumericalFailureError',
    'DecompositionNotComputedError',
    # utilities
    'generate_reference_pair',
    'save_decomposition_results',
    'factor_match_score',
    # argument parsing
    'add_general_arguments',
    'add_df_arguments',
    'add_rank_growth_arguments',
    'get_file_prefix',
    # submodules
    'cpd',
    'tensors',
    'backend',
    'utils',
]
