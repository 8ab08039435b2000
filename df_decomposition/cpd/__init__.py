"""
cp decomposition module.
provides the alternating least squares decomposition of density-fitted tensors.
"""

from .df_als import CP_DF_ALS
from .factor_store import FactorStore, check_symmetry
from .converge import ConvergenceTest, NormCheck, FitCheck, CallableCheck
from .exceptions import (
    InvalidConfigurationError,
    MissingCapabilityError,
    NumericalFailureError,
    DecompositionNotComputedError,
)
from .common_kernels import (
    normalise,
    compute_lin_sysN,
    solve_sys,
    pseudo_inverse,
    hadamard_contract,
    contract_to_connecting,
    contract_from_connecting,
    khatri_rao,
    cp_reconstruct,
    materialize_reference,
    reference_norm,
)

__all__ = [
    # optimizer
    'CP_DF_ALS',
    'FactorStore',
    'check_symmetry',
    # convergence tests
    'ConvergenceTest',
    'NormCheck',
    'FitCheck',
    'CallableCheck',
    # errors
    'InvalidConfigurationError',
    'MissingCapabilityError',
    'NumericalFailureError',
    'DecompositionNotComputedError',
    # kernels
    'normalise',
    'compute_lin_sysN',
    'solve_sys',
    'pseudo_inverse',
    'hadamard_contract',
    'contract_to_connecting',
    'contract_from_connecting',
    'khatri_rao',
    'cp_reconstruct',
    'materialize_reference',
    'reference_norm',
]
