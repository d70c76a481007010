"""
Matrix Decomposition Primitives

Dense linear algebra used by the separation engine. All decompositions go
through scipy.linalg; nothing here is hand-rolled.

    covariance_matrix           sample covariance of row-signals (ddof=1)
    eigendecomposition          symmetric eigensolver, stable descending sort
    symmetric_decorrelation     W <- (W W^T)^(-1/2) W
    gram_schmidt                remove projections onto accepted rows
    pseudo_inverse              Moore-Penrose inverse
"""

import numpy as np
from scipy import linalg
from typing import Tuple


def covariance_matrix(centered: np.ndarray, ddof: int = 1) -> np.ndarray:
    """
    Sample covariance of centered row-signals.

    Args:
        centered: N_signals x M_samples, already mean-removed
        ddof: Delta degrees of freedom (1 = unbiased, matches MATLAB cov)

    Returns:
        N x N symmetric covariance matrix
    """
    n_samples = centered.shape[1]
    denom = max(n_samples - ddof, 1)
    cov = (centered @ centered.T) / denom
    # Enforce exact symmetry against round-off
    return (cov + cov.T) / 2.0


def eigendecomposition(
    matrix: np.ndarray,
    sort_descending: bool = True,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigendecomposition of a symmetric matrix.

    Eigenvector columns follow the eigenvalue order. Ties are resolved by a
    stable sort so repeated calls give identical ordering.

    Args:
        matrix: Symmetric N x N matrix
        sort_descending: Largest eigenvalue first

    Returns:
        (eigenvalues (N,), eigenvectors (N, N))
    """
    eigenvalues, eigenvectors = linalg.eigh(matrix)

    key = -eigenvalues if sort_descending else eigenvalues
    order = np.argsort(key, kind='stable')

    return eigenvalues[order], eigenvectors[:, order]


def symmetric_decorrelation(W: np.ndarray) -> np.ndarray:
    """
    Symmetric orthonormalization of the rows of W.

    Computes (W W^T)^(-1/2) W through the eigendecomposition of W W^T.
    The result has mutually orthonormal rows and is the closest such
    matrix to W, with no row privileged over another.

    Args:
        W: k x N matrix, k <= N, full row rank

    Returns:
        k x N matrix with W W^T = I
    """
    s, u = linalg.eigh(W @ W.T)
    # Round-off can push tiny eigenvalues to zero or below
    s = np.clip(s, np.finfo(W.dtype).tiny, None)
    return (u * (1.0 / np.sqrt(s))) @ u.T @ W


def gram_schmidt(w: np.ndarray, accepted: np.ndarray) -> np.ndarray:
    """
    Remove from w its projection onto the span of the accepted rows.

    Args:
        w: Vector of length N
        accepted: i x N matrix of orthonormal rows (i may be 0)

    Returns:
        w orthogonal to every accepted row (not renormalized)
    """
    if accepted.shape[0] == 0:
        return w
    return w - accepted.T @ (accepted @ w)


def pseudo_inverse(matrix: np.ndarray) -> np.ndarray:
    """Moore-Penrose pseudo-inverse (k x N -> N x k)."""
    return linalg.pinv(matrix)
