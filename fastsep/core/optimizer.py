"""
Optimizer — FastICA fixed-point iteration in whitened space.

Two approaches:

    symmetric   All k rows updated jointly, then symmetrically decorrelated.
                Rows stay orthonormal after every iteration.
    deflation   Rows estimated one at a time, each Gram-Schmidt
                orthogonalized against the rows already accepted.

Update rule (negentropy approximation, Hyvarinen & Oja 2000):

    w <- E{z g(w^T z)} - E{g'(w^T z)} w

Convergence is measured on direction only (|w . w_old| -> 1), since the
sign of a component is not identifiable. The order of components is not
identifiable either; callers must not rely on either.

Randomness comes only from the Generator passed in.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

import numpy as np

from fastsep.core.diagnostics import NonConvergenceCondition, report_condition
from fastsep.core.nonlinearity import Contrast, get_contrast
from fastsep.primitives.matrix import symmetric_decorrelation, gram_schmidt
from fastsep.validation import validate_component_count, validate_iteration_options


logger = logging.getLogger(__name__)


class Approach(str, Enum):
    """Estimation approach."""
    SYMMETRIC = "symmetric"
    DEFLATION = "deflation"

    @classmethod
    def resolve(cls, choice: Optional[Union[str, "Approach"]]) -> "Approach":
        """
        Map a user choice to a member ('symm' / 'defl' accepted).

        Anything that is not deflation runs the symmetric approach.
        """
        if isinstance(choice, cls):
            return choice

        key = str(choice).strip().lower() if choice is not None else "symmetric"

        if key in ("deflation", "defl"):
            return cls.DEFLATION
        if key not in ("symmetric", "symm"):
            logger.warning("Unknown approach %r, using symmetric", choice)
        return cls.SYMMETRIC


@dataclass
class OptimizerResult:
    """Whitened-space unmixing matrix plus iteration diagnostics."""
    unmixing: np.ndarray                       # k x N, orthonormal rows
    approach: Approach
    iterations: List[int]                      # one entry (symmetric) or k (deflation)
    deltas: List[float]                        # final convergence measure, same layout
    conditions: List[NonConvergenceCondition] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return not self.conditions


def _initial_weights(rng: np.random.Generator, n_rows: int, n_dims: int) -> np.ndarray:
    return rng.standard_normal((n_rows, n_dims))


def reseed_collapsed_rows(W: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Replace rows that add no new direction with fresh random ones.

    A row is collapsed when what remains of it after removing the span of
    the rows above it is negligible against the largest row norm. Each
    collapsed row is redrawn from rng, orthogonalized against that span
    and scaled to the largest row norm, so the result has full row rank.
    When nothing has collapsed W is returned unchanged and rng is not used.

    Args:
        W: k x N update, k <= N
        rng: Random source for replacement rows

    Returns:
        k x N matrix with full row rank
    """
    n_rows, n_dims = W.shape
    largest = float(np.max(np.linalg.norm(W, axis=1)))
    scale = largest if largest > 0 else 1.0
    tolerance = np.sqrt(np.finfo(W.dtype).eps) * scale

    repaired = W
    basis = np.zeros((n_rows, n_dims))
    for i in range(n_rows):
        residual = gram_schmidt(repaired[i], basis[:i])
        norm = np.linalg.norm(residual)
        if norm <= tolerance:
            if repaired is W:
                repaired = W.copy()
            residual = gram_schmidt(rng.standard_normal(n_dims), basis[:i])
            norm = np.linalg.norm(residual)
            repaired[i] = residual * (scale / norm)
            logger.debug("Row %d of the update collapsed; reseeded", i)
        basis[i] = residual / norm

    return repaired


def symmetric_fastica(
    Z: np.ndarray,
    n_components: int,
    contrast: Contrast,
    max_iterations: int,
    epsilon: float,
    rng: np.random.Generator,
    stacklevel: int = 2,
) -> OptimizerResult:
    """
    Estimate all components jointly.

    Each iteration:
        U = W Z
        W <- g(U) Z^T / M - diag(mean(g'(U), axis=1)) W
        W <- reseed collapsed rows (rank-deficient update)
        W <- (W W^T)^(-1/2) W
        delta = max_i |1 - |w_i . w_i_old||

    The update collapses when g' vanishes on the data (e.g. cubic contrast
    on all-zero input). Collapsed rows are redrawn from rng so the rows
    stay orthonormal after every iteration.

    Args:
        Z: Whitened data, N x M
        n_components: k, 1 <= k <= N
        contrast: (g, g') pair
        max_iterations: Iteration cap
        epsilon: Convergence threshold on delta
        rng: Random source for the initial matrix and reseeded rows
        stacklevel: Stack level of ConvergenceWarning relative to the
            caller of this function (warnings.warn convention)

    Returns:
        OptimizerResult (a NonConvergenceCondition is attached when the
        cap is reached; the last iterate is returned either way)
    """
    n_dims, n_samples = Z.shape

    W = symmetric_decorrelation(_initial_weights(rng, n_components, n_dims))

    delta = np.inf
    iteration = 0
    for iteration in range(1, max_iterations + 1):
        U = W @ Z
        g_u = contrast.g(U)
        g_prime_mean = contrast.g_prime(U).mean(axis=1)

        W_new = (g_u @ Z.T) / n_samples - g_prime_mean[:, np.newaxis] * W
        W_new = reseed_collapsed_rows(W_new, rng)
        W_new = symmetric_decorrelation(W_new)

        delta = float(np.max(np.abs(1.0 - np.abs(np.sum(W_new * W, axis=1)))))
        W = W_new

        if iteration % 100 == 0:
            logger.debug("symmetric: iteration %d, delta=%.6g", iteration, delta)

        if delta < epsilon:
            logger.debug("symmetric: converged in %d iterations (delta=%.3g)", iteration, delta)
            return OptimizerResult(
                unmixing=W,
                approach=Approach.SYMMETRIC,
                iterations=[iteration],
                deltas=[delta],
            )

    condition = NonConvergenceCondition(
        approach=Approach.SYMMETRIC.value,
        max_iterations=max_iterations,
        epsilon=epsilon,
        final_delta=delta,
    )
    logger.info(condition.message)
    report_condition(condition, stacklevel=stacklevel + 1)

    return OptimizerResult(
        unmixing=W,
        approach=Approach.SYMMETRIC,
        iterations=[iteration],
        deltas=[delta],
        conditions=[condition],
    )


def deflation_fastica(
    Z: np.ndarray,
    n_components: int,
    contrast: Contrast,
    max_iterations: int,
    epsilon: float,
    rng: np.random.Generator,
    stacklevel: int = 2,
) -> OptimizerResult:
    """
    Estimate components one at a time.

    For row i:
        w <- random unit vector
        repeat:
            w <- mean(Z g(w^T Z)) - mean(g'(w^T Z)) w
            w <- w - W[:i]^T W[:i] w          (Gram-Schmidt)
            w <- w / |w|
        until |1 - |w . w_old|| < epsilon or the cap is reached
        W[i] <- w

    A row that hits the cap keeps its last iterate; the next row proceeds.

    Args:
        Z: Whitened data, N x M
        n_components: k, 1 <= k <= N
        contrast: (g, g') pair
        max_iterations: Iteration cap per component
        epsilon: Convergence threshold
        rng: Random source for each initial vector
        stacklevel: Stack level of ConvergenceWarning relative to the
            caller of this function (warnings.warn convention)

    Returns:
        OptimizerResult with per-component iterations and deltas
    """
    n_dims, n_samples = Z.shape

    W = np.zeros((n_components, n_dims))
    iterations: List[int] = []
    deltas: List[float] = []
    conditions: List[NonConvergenceCondition] = []

    for i in range(n_components):
        w = rng.standard_normal(n_dims)
        w = w / np.linalg.norm(w)

        delta = np.inf
        iteration = 0
        converged = False
        for iteration in range(1, max_iterations + 1):
            wz = w @ Z
            w_new = (Z @ contrast.g(wz)) / n_samples - contrast.g_prime(wz).mean() * w
            w_new = gram_schmidt(w_new, W[:i])
            norm = np.linalg.norm(w_new)
            if norm == 0.0:
                # Update collapsed onto accepted rows; restart from a fresh direction
                w_new = gram_schmidt(rng.standard_normal(n_dims), W[:i])
                norm = np.linalg.norm(w_new)
            w_new = w_new / norm

            delta = float(abs(1.0 - abs(w_new @ w)))
            w = w_new

            if delta < epsilon:
                converged = True
                break

        W[i] = w
        iterations.append(iteration)
        deltas.append(delta)

        if converged:
            logger.debug("deflation: component %d converged in %d iterations", i, iteration)
        else:
            condition = NonConvergenceCondition(
                approach=Approach.DEFLATION.value,
                max_iterations=max_iterations,
                epsilon=epsilon,
                final_delta=delta,
                component=i,
            )
            logger.info(condition.message)
            report_condition(condition, stacklevel=stacklevel + 1)
            conditions.append(condition)

    return OptimizerResult(
        unmixing=W,
        approach=Approach.DEFLATION,
        iterations=iterations,
        deltas=deltas,
        conditions=conditions,
    )


def optimize(
    Z: np.ndarray,
    n_components: Optional[int] = None,
    approach: Union[str, Approach] = Approach.SYMMETRIC,
    contrast: Optional[Contrast] = None,
    max_iterations: int = 1000,
    epsilon: float = 1e-4,
    rng: Optional[np.random.Generator] = None,
    stacklevel: int = 2,
) -> OptimizerResult:
    """
    Estimate the unmixing matrix in whitened space.

    Args:
        Z: Whitened data, N x M
        n_components: k in [1, N] (None = N)
        approach: 'symmetric' (default) or 'deflation'
        contrast: Contrast from get_contrast (None = tanh)
        max_iterations: Positive iteration cap
        epsilon: Positive convergence threshold
        rng: numpy Generator (None = fresh unseeded Generator)
        stacklevel: Stack level of ConvergenceWarning relative to the
            caller of this function (run_ica passes 3 so it points at its caller)

    Returns:
        OptimizerResult, unmixing is k x N

    Raises:
        InvalidComponentCountError: k outside [1, N]
        InvalidOptionError: Non-positive max_iterations or epsilon
    """
    n_dims = Z.shape[0]
    k = validate_component_count(n_components, n_dims)
    validate_iteration_options(max_iterations, epsilon)

    if contrast is None:
        contrast = get_contrast()
    if rng is None:
        rng = np.random.default_rng()

    approach = Approach.resolve(approach)
    logger.debug(
        "%s FastICA: %d of %d components, g=%s, max_iterations=%d, epsilon=%g",
        approach.value, k, n_dims, contrast.name.value, max_iterations, epsilon,
    )

    if approach is Approach.DEFLATION:
        return deflation_fastica(
            Z, k, contrast, int(max_iterations), float(epsilon), rng, stacklevel=stacklevel + 1,
        )
    return symmetric_fastica(
        Z, k, contrast, int(max_iterations), float(epsilon), rng, stacklevel=stacklevel + 1,
    )
