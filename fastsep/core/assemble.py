"""
Result Assembler

Maps the whitened-space unmixing matrix back to signal space:

    W          = W_white_space @ whitening       (k x N)
    A          = pinv(W)                          (N x k)
    components = W @ (X - mean)                   (k x M)

Convention: components are projections of the CENTERED observations, the
same data the whitening stage saw. Projecting raw observations instead
shifts component i by the constant (W @ mean)[i]; see component_offsets.
"""

from typing import Tuple

import numpy as np

from fastsep.primitives.matrix import pseudo_inverse


def assemble(
    whitened_unmixing: np.ndarray,
    whitening: np.ndarray,
    centered: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Build the signal-space outputs.

    Args:
        whitened_unmixing: k x N, from the optimizer
        whitening: N x N, from the preprocessor
        centered: N x M mean-removed observations

    Returns:
        (unmixing k x N, mixing N x k, components k x M)
    """
    unmixing = whitened_unmixing @ whitening
    mixing = pseudo_inverse(unmixing)
    components = unmixing @ centered
    return unmixing, mixing, components


def component_offsets(unmixing: np.ndarray, mean: np.ndarray) -> np.ndarray:
    """
    Per-component constant separating raw and centered projections.

    unmixing @ X_raw == components + component_offsets[:, None]
    """
    return unmixing @ mean


def reconstruct(
    mixing: np.ndarray,
    components: np.ndarray,
    mean: np.ndarray = None,
) -> np.ndarray:
    """
    Map components back to signal space: A @ S (+ mean when given).

    With k = N this recovers the observations exactly (up to round-off);
    with k < N it is the projection onto the retained components.
    """
    reconstructed = mixing @ components
    if mean is not None:
        reconstructed = reconstructed + mean[:, np.newaxis]
    return reconstructed
