"""
Input Data Validation

Validates the observation matrix and engine options before any computation.
Fatal problems raise immediately; no partial result is ever produced.

PRINCIPLE: "Check before compute, not after failure"

Usage:
    from fastsep.validation import validate_observations, validate_component_count

    X = validate_observations(X)            # float64 copy, finite, M >= N
    k = validate_component_count(k, X.shape[0])
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

import numpy as np


class ICAError(Exception):
    """Base class for fatal separation errors."""


class InvalidInputError(ICAError, ValueError):
    """Raised when the observation matrix cannot be separated."""

    def __init__(self, errors: List[str], warnings: List[str] = None):
        self.errors = errors
        self.warnings = warnings or []

        message = "Input validation failed:\n" + "\n".join(
            f"  ERROR: {e}" for e in errors
        )
        if warnings:
            message += "\n" + "\n".join(f"  WARNING: {w}" for w in warnings)

        super().__init__(message)


class InsufficientSamplesError(InvalidInputError):
    """Raised when there are fewer samples than signals (M < N)."""

    def __init__(self, n_signals: int, n_samples: int):
        self.n_signals = n_signals
        self.n_samples = n_samples
        super().__init__([
            f"need at least as many samples as signals "
            f"(got {n_signals} signals x {n_samples} samples)"
        ])


class InvalidComponentCountError(ICAError, ValueError):
    """Raised when the requested component count is outside [1, N]."""

    def __init__(self, n_components: Any, n_signals: int):
        self.n_components = n_components
        self.n_signals = n_signals
        super().__init__(
            f"n_components must be an integer in [1, {n_signals}], got {n_components!r}"
        )


class InvalidOptionError(ICAError, ValueError):
    """Raised when an iteration option is not usable."""


@dataclass
class InputValidationReport:
    """Report from observation matrix validation."""

    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    n_signals: int = 0
    n_samples: int = 0
    non_finite_values: int = 0
    constant_signals: List[int] = field(default_factory=list)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "=" * 60,
            "INPUT VALIDATION REPORT",
            "=" * 60,
            "",
            f"Signals: {self.n_signals}",
            f"Samples: {self.n_samples:,}",
            f"Non-finite values: {self.non_finite_values:,}",
            "",
        ]

        if self.constant_signals:
            lines.append(f"Constant signals (rows): {self.constant_signals}")
            lines.append("")

        if self.errors:
            lines.append("ERRORS:")
            for e in self.errors:
                lines.append(f"  - {e}")
            lines.append("")

        if self.warnings:
            lines.append("WARNINGS:")
            for w in self.warnings:
                lines.append(f"  - {w}")
            lines.append("")

        status = "PASSED" if self.valid else "FAILED"
        lines.append(f"Status: {status}")
        lines.append("=" * 60)

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            'valid': self.valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'n_signals': self.n_signals,
            'n_samples': self.n_samples,
            'non_finite_values': self.non_finite_values,
            'constant_signals': self.constant_signals,
        }


def inspect_observations(observations: Any) -> InputValidationReport:
    """
    Inspect an observation matrix without raising.

    Checks:
        1. Two-dimensional, non-empty, real-valued
        2. No NaN / Inf
        3. At least as many samples (columns) as signals (rows)
        4. Constant rows (reported as warnings; whitening floors them)

    Args:
        observations: Array-like, N_signals x M_samples

    Returns:
        InputValidationReport
    """
    report = InputValidationReport()

    try:
        X = np.asarray(observations)
    except (TypeError, ValueError) as e:
        report.errors.append(f"observations are not array-like: {e}")
        report.valid = False
        return report

    if np.iscomplexobj(X):
        report.errors.append("observations must be real-valued")
        report.valid = False
        return report

    if not np.issubdtype(X.dtype, np.number):
        report.errors.append(f"observations must be numeric, got dtype {X.dtype}")
        report.valid = False
        return report

    if X.ndim != 2:
        report.errors.append(f"observations must be 2-D (signals x samples), got {X.ndim}-D")
        report.valid = False
        return report

    report.n_signals, report.n_samples = X.shape

    if X.size == 0:
        report.errors.append(f"observations are empty (shape {X.shape})")
        report.valid = False
        return report

    non_finite = int(np.count_nonzero(~np.isfinite(X)))
    report.non_finite_values = non_finite
    if non_finite > 0:
        pct = 100.0 * non_finite / X.size
        report.errors.append(f"{non_finite:,} non-finite values ({pct:.1f}%)")
        report.valid = False

    if report.n_samples < report.n_signals:
        report.errors.append(
            f"fewer samples than signals ({report.n_samples} < {report.n_signals})"
        )
        report.valid = False

    if non_finite == 0:
        spread = np.ptp(X, axis=1)
        constant = np.flatnonzero(spread == 0).tolist()
        if constant:
            report.constant_signals = constant
            report.warnings.append(
                f"{len(constant)} constant signal(s): covariance is rank-deficient"
            )

    return report


def validate_observations(observations: Any) -> np.ndarray:
    """
    Validate an observation matrix and return a float64 working copy.

    The caller's array is never modified.

    Args:
        observations: Array-like, N_signals x M_samples

    Returns:
        float64 copy of the observations

    Raises:
        InsufficientSamplesError: M < N
        InvalidInputError: Not 2-D, empty, non-numeric or non-finite values
    """
    report = inspect_observations(observations)

    if not report.valid:
        only_sample_shortfall = (
            report.n_samples < report.n_signals
            and len(report.errors) == 1
        )
        if only_sample_shortfall:
            raise InsufficientSamplesError(report.n_signals, report.n_samples)
        raise InvalidInputError(report.errors, report.warnings)

    return np.array(observations, dtype=np.float64, copy=True)


def validate_component_count(n_components: Optional[int], n_signals: int) -> int:
    """
    Resolve and validate the number of components to extract.

    Args:
        n_components: Requested count, None for all signals
        n_signals: N, number of observed signals

    Returns:
        k in [1, N]

    Raises:
        InvalidComponentCountError: k outside [1, N] or not an integer
    """
    if n_components is None:
        return n_signals

    if isinstance(n_components, bool) or not isinstance(n_components, (int, np.integer)):
        raise InvalidComponentCountError(n_components, n_signals)

    if not 1 <= n_components <= n_signals:
        raise InvalidComponentCountError(n_components, n_signals)

    return int(n_components)


def validate_iteration_options(max_iterations: Any, epsilon: Any) -> None:
    """
    Check that the iteration cap and convergence threshold are usable.

    Raises:
        InvalidOptionError: max_iterations not a positive int, or epsilon
            not a positive finite float
    """
    if (
        isinstance(max_iterations, bool)
        or not isinstance(max_iterations, (int, np.integer))
        or max_iterations < 1
    ):
        raise InvalidOptionError(
            f"max_iterations must be a positive integer, got {max_iterations!r}"
        )

    try:
        eps = float(epsilon)
    except (TypeError, ValueError):
        raise InvalidOptionError(f"epsilon must be a positive float, got {epsilon!r}")

    if not np.isfinite(eps) or eps <= 0:
        raise InvalidOptionError(f"epsilon must be a positive float, got {epsilon!r}")
