"""
fastsep — blind source separation by FastICA.

Public API:
    from fastsep import run_ica
    unmixing, mixing, components = run_ica(X, random_seed=42)

Layers:
    fastsep.core        Engines — compute (arrays in, arrays out, no file I/O)
    fastsep.primitives  Dense linear algebra (scipy.linalg)
    fastsep.validation  Input and option checks, fatal error types

Also:
    fastsep.io          Parquet I/O (reader, writer, manifest)
    fastsep.stages      Runners — read parquet, call engines, write parquet
    fastsep.config      Configuration (defaults + YAML overrides)
    fastsep.run         CLI: python -m fastsep <data_path>

Components are recovered up to sign and order; compare by correlation.
"""

from fastsep.core import (
    run_ica,
    ICAOptions,
    ICAResult,
    Approach,
    Nonlinearity,
    get_contrast,
    run_epoched_ica,
    EpochedICA,
    ConvergenceWarning,
    DegenerateCovarianceWarning,
    NonConvergenceCondition,
    DegenerateCovarianceCondition,
)
from fastsep.validation import (
    ICAError,
    InvalidInputError,
    InsufficientSamplesError,
    InvalidComponentCountError,
    InvalidOptionError,
)

__version__ = "0.1.0"

__all__ = [
    'run_ica',
    'ICAOptions',
    'ICAResult',
    'Approach',
    'Nonlinearity',
    'get_contrast',
    'run_epoched_ica',
    'EpochedICA',
    'ConvergenceWarning',
    'DegenerateCovarianceWarning',
    'NonConvergenceCondition',
    'DegenerateCovarianceCondition',
    'ICAError',
    'InvalidInputError',
    'InsufficientSamplesError',
    'InvalidComponentCountError',
    'InvalidOptionError',
]
