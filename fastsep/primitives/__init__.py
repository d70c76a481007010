"""
Primitives — numpy in, numpy out.

    fastsep.primitives.matrix   Covariance, eigendecomposition, orthogonalization
"""
