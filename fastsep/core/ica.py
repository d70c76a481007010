"""
ICA Engine

Blind source separation of N mixed signals into k independent components.

Pipeline (no state kept between calls):
    validate → whiten → optimize (symmetric | deflation) → assemble

Usage:
    from fastsep import run_ica

    result = run_ica(X, approach='symmetric', nonlinearity='tanh', random_seed=42)
    unmixing, mixing, components = result

Components are identifiable only up to sign and order. Compare them with
known sources by correlation, never by equality.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Union

import numpy as np

from fastsep.core.assemble import assemble, component_offsets
from fastsep.core.diagnostics import DegenerateCovarianceCondition, NonConvergenceCondition
from fastsep.core.nonlinearity import Nonlinearity, get_contrast
from fastsep.core.optimizer import Approach, optimize
from fastsep.core.preprocess import (
    DEFAULT_DEGENERATE_TOLERANCE,
    DEFAULT_EIGENVALUE_FLOOR,
    whiten,
)
from fastsep.validation import (
    validate_component_count,
    validate_iteration_options,
    validate_observations,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ICAOptions:
    """Engine options. Defaults match the reference FastICA settings."""
    approach: Union[str, Approach] = Approach.SYMMETRIC
    n_components: Optional[int] = None
    nonlinearity: Union[str, Nonlinearity] = Nonlinearity.TANH
    max_iterations: int = 1000
    epsilon: float = 1e-4
    random_seed: Optional[int] = None
    eigenvalue_floor: float = DEFAULT_EIGENVALUE_FLOOR
    degenerate_tolerance: float = DEFAULT_DEGENERATE_TOLERANCE

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> "ICAOptions":
        """Build from a mapping, ignoring keys that are not options."""
        if not values:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known and v is not None})

    @classmethod
    def from_config(cls, config=None, overrides: Optional[Dict[str, Any]] = None) -> "ICAOptions":
        """
        Build from a Config ('ica' and 'whitening' sections), then overrides.

        Args:
            config: fastsep.config.Config (None = process config)
            overrides: Option values taking precedence over the config
        """
        if config is None:
            from fastsep.config import get_config
            config = get_config()

        values = config.section('ica')
        values.update(config.section('whitening'))
        if overrides:
            values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(values)

    def merged(self, **overrides: Any) -> "ICAOptions":
        """Copy with the given (non-None) fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown ICA option(s): {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'approach': Approach.resolve(self.approach).value,
            'n_components': self.n_components,
            'nonlinearity': Nonlinearity.resolve(self.nonlinearity).value,
            'max_iterations': self.max_iterations,
            'epsilon': self.epsilon,
            'random_seed': self.random_seed,
            'eigenvalue_floor': self.eigenvalue_floor,
            'degenerate_tolerance': self.degenerate_tolerance,
        }


@dataclass
class ICAResult:
    """
    Separation output.

    unmixing (k x N), mixing (N x k) and components (k x M) are owned by
    the caller. The result unpacks as (unmixing, mixing, components).
    """
    unmixing: np.ndarray
    mixing: np.ndarray
    components: np.ndarray
    mean: np.ndarray
    whitening: np.ndarray
    dewhitening: np.ndarray
    whitened_unmixing: np.ndarray
    approach: Approach
    nonlinearity: Nonlinearity
    iterations: List[int]
    deltas: List[float]
    conditions: List[Union[NonConvergenceCondition, DegenerateCovarianceCondition]] = field(
        default_factory=list
    )

    def __iter__(self):
        return iter((self.unmixing, self.mixing, self.components))

    @property
    def n_components(self) -> int:
        return self.unmixing.shape[0]

    @property
    def converged(self) -> bool:
        return not any(isinstance(c, NonConvergenceCondition) for c in self.conditions)

    @property
    def degenerate(self) -> bool:
        return any(isinstance(c, DegenerateCovarianceCondition) for c in self.conditions)

    @property
    def component_offsets(self) -> np.ndarray:
        """Add to components to get projections of the raw (uncentered) data."""
        return component_offsets(self.unmixing, self.mean)

    def summary(self) -> Dict[str, Any]:
        """Flat, serializable run summary."""
        return {
            'approach': self.approach.value,
            'nonlinearity': self.nonlinearity.value,
            'n_signals': int(self.unmixing.shape[1]),
            'n_components': int(self.n_components),
            'n_samples': int(self.components.shape[1]),
            'iterations': int(max(self.iterations)) if self.iterations else 0,
            'max_delta': float(max(self.deltas)) if self.deltas else float('nan'),
            'converged': self.converged,
            'degenerate': self.degenerate,
            'n_conditions': len(self.conditions),
        }


def _make_rng(random_seed) -> np.random.Generator:
    if isinstance(random_seed, np.random.Generator):
        return random_seed
    return np.random.default_rng(random_seed)


def run_ica(
    observations: Any,
    options: Optional[ICAOptions] = None,
    rng: Optional[np.random.Generator] = None,
    **overrides: Any,
) -> ICAResult:
    """
    Separate mixed signals into independent components.

    Args:
        observations: N_signals x M_samples, real, finite, M >= N.
            Not modified.
        options: ICAOptions (None = defaults)
        rng: Random source. Overrides options.random_seed when given.
        **overrides: Individual ICAOptions fields, e.g. approach='deflation'

    Returns:
        ICAResult (unpacks as unmixing, mixing, components)

    Raises:
        InvalidInputError: Non-finite values, not 2-D, empty
        InsufficientSamplesError: M < N
        InvalidComponentCountError: n_components outside [1, N]
        InvalidOptionError: Non-positive max_iterations or epsilon

    Warns:
        ConvergenceWarning: Iteration cap reached (result still returned)
        DegenerateCovarianceWarning: Rank-deficient covariance (floored)
    """
    options = (options or ICAOptions()).merged(**overrides)

    # All fatal checks before any computation
    X = validate_observations(observations)
    n_signals, n_samples = X.shape
    k = validate_component_count(options.n_components, n_signals)
    validate_iteration_options(options.max_iterations, options.epsilon)

    approach = Approach.resolve(options.approach)
    contrast = get_contrast(options.nonlinearity)
    if rng is None:
        rng = _make_rng(options.random_seed)

    logger.info(
        "ICA: %d signals x %d samples -> %d components (%s, g=%s)",
        n_signals, n_samples, k, approach.value, contrast.name.value,
    )

    white = whiten(
        X,
        eigenvalue_floor=options.eigenvalue_floor,
        degenerate_tolerance=options.degenerate_tolerance,
        stacklevel=3,
    )

    opt = optimize(
        white.whitened,
        n_components=k,
        approach=approach,
        contrast=contrast,
        max_iterations=options.max_iterations,
        epsilon=options.epsilon,
        rng=rng,
        stacklevel=3,
    )

    unmixing, mixing, components = assemble(opt.unmixing, white.whitening, white.centered)

    conditions: List[Union[NonConvergenceCondition, DegenerateCovarianceCondition]] = []
    if white.condition is not None:
        conditions.append(white.condition)
    conditions.extend(opt.conditions)

    result = ICAResult(
        unmixing=unmixing,
        mixing=mixing,
        components=components,
        mean=white.mean,
        whitening=white.whitening,
        dewhitening=white.dewhitening,
        whitened_unmixing=opt.unmixing,
        approach=approach,
        nonlinearity=contrast.name,
        iterations=opt.iterations,
        deltas=opt.deltas,
        conditions=conditions,
    )

    logger.info(
        "ICA complete: %d components, converged=%s, iterations=%s",
        result.n_components, result.converged, opt.iterations,
    )
    return result
