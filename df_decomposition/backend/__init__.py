"""
backend module.
provides the tensor computation backend used by the decomposition (numpy).
"""

from . import numpy_ext


def get_backend(name='numpy'):
    """
    get the specified tensor backend.
    
    args:
        name: 'numpy'
        
    returns:
        backend module
    """
    if name == 'numpy':
        return numpy_ext
    else:
        raise ValueError(f"[error] unknown backend: {name}. use 'numpy'")


__all__ = [
    'numpy_ext',
    'get_backend',
]
