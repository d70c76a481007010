"""
Preprocessor — centering and whitening.

Whitening decorrelates the signals and normalizes their variance so the
optimizer only has to search over orthogonal rotations:

    Cov = E diag(d) E^T
    whitening   = diag(1 / sqrt(d + eps)) E^T
    dewhitening = E diag(sqrt(d + eps))
    Z = whitening (X - mean)

so that cov(Z) = I (up to the eps floor).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from fastsep.core.diagnostics import DegenerateCovarianceCondition, report_condition
from fastsep.primitives.matrix import covariance_matrix, eigendecomposition
from fastsep.validation import InsufficientSamplesError


logger = logging.getLogger(__name__)

DEFAULT_EIGENVALUE_FLOOR = 1e-12
DEFAULT_DEGENERATE_TOLERANCE = 1e-10


@dataclass
class WhiteningResult:
    """Output of the preprocessor. All arrays are fresh; nothing aliases the input."""
    whitened: np.ndarray            # Z, N x M
    whitening: np.ndarray           # N x N
    dewhitening: np.ndarray         # N x N
    mean: np.ndarray                # N
    centered: np.ndarray            # X - mean, N x M
    eigenvalues: np.ndarray         # N, descending, clamped >= 0
    eigenvectors: np.ndarray        # N x N, columns match eigenvalues
    floor: float
    condition: Optional[DegenerateCovarianceCondition] = None

    def __iter__(self):
        # (Z, whitening, dewhitening, mean)
        return iter((self.whitened, self.whitening, self.dewhitening, self.mean))

    @property
    def is_degenerate(self) -> bool:
        return self.condition is not None


def center(X: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Remove the per-signal mean.

    Args:
        X: N_signals x M_samples

    Returns:
        (centered copy, mean vector of length N)
    """
    mean = X.mean(axis=1)
    return X - mean[:, np.newaxis], mean


def whiten(
    X: np.ndarray,
    eigenvalue_floor: float = DEFAULT_EIGENVALUE_FLOOR,
    degenerate_tolerance: float = DEFAULT_DEGENERATE_TOLERANCE,
    stacklevel: int = 2,
) -> WhiteningResult:
    """
    Center and whiten an observation matrix.

    Steps:
        1. Center each signal (on a copy)
        2. Sample covariance (ddof=1) → covariance_matrix
        3. Symmetric eigendecomposition, descending → eigendecomposition
        4. Clamp negative eigenvalues (ill-conditioning) to zero
        5. whitening = diag(1/sqrt(d + eps)) E^T, eps = floor x largest eigenvalue
        6. Z = whitening @ centered

    Near-zero eigenvalues (rank-deficient or duplicated signals) are floored,
    not rejected; they are reported as a DegenerateCovarianceCondition.

    Args:
        X: N_signals x M_samples, finite
        eigenvalue_floor: Relative floor added before the inverse square root
        degenerate_tolerance: Eigenvalues <= tolerance x largest are degenerate
        stacklevel: Stack level of DegenerateCovarianceWarning relative to
            the caller of this function (warnings.warn convention)

    Returns:
        WhiteningResult

    Raises:
        InsufficientSamplesError: M < N
    """
    X = np.asarray(X, dtype=np.float64)
    n_signals, n_samples = X.shape

    if n_samples < n_signals:
        raise InsufficientSamplesError(n_signals, n_samples)

    centered, mean = center(X)

    cov = covariance_matrix(centered)
    eigenvalues, eigenvectors = eigendecomposition(cov, sort_descending=True)

    n_negative = int(np.count_nonzero(eigenvalues < 0))
    if n_negative:
        logger.debug("Clamping %d negative covariance eigenvalue(s) to zero", n_negative)
    eigenvalues = np.clip(eigenvalues, 0.0, None)

    largest = eigenvalues[0]
    scale = largest if largest > 0 else 1.0
    floor = eigenvalue_floor * scale

    inv_sqrt = 1.0 / np.sqrt(eigenvalues + floor)
    sqrt = np.sqrt(eigenvalues + floor)

    whitening = inv_sqrt[:, np.newaxis] * eigenvectors.T
    dewhitening = eigenvectors * sqrt[np.newaxis, :]

    Z = whitening @ centered

    condition = None
    degenerate = eigenvalues <= degenerate_tolerance * scale
    if np.any(degenerate):
        condition = DegenerateCovarianceCondition(
            n_degenerate=int(np.count_nonzero(degenerate)),
            eigenvalues=eigenvalues[degenerate].tolist(),
            floor=float(floor),
            tolerance=float(degenerate_tolerance),
        )
        logger.info("Whitening: %s", condition.message)
        report_condition(condition, stacklevel=stacklevel + 1)

    return WhiteningResult(
        whitened=Z,
        whitening=whitening,
        dewhitening=dewhitening,
        mean=mean,
        centered=centered,
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        floor=float(floor),
        condition=condition,
    )
