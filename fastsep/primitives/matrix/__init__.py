"""
Matrix Primitives

Dense matrix computations shared by the separation engine.
"""

from .decomposition import (
    covariance_matrix,
    eigendecomposition,
    symmetric_decorrelation,
    gram_schmidt,
    pseudo_inverse,
)

__all__ = [
    'covariance_matrix',
    'eigendecomposition',
    'symmetric_decorrelation',
    'gram_schmidt',
    'pseudo_inverse',
]
