"""
Validation Module

Validates the observation matrix and engine options before any computation.

Exports:
    - validate_observations: Finite, 2-D, M >= N; returns a float64 copy
    - inspect_observations: Same checks, returned as a report instead of raised
    - validate_component_count: Resolve k in [1, N]
    - validate_iteration_options: Positive max_iterations and epsilon
    - ICAError and its fatal subclasses
"""

from .input_validation import (
    validate_observations,
    inspect_observations,
    validate_component_count,
    validate_iteration_options,
    InputValidationReport,
    ICAError,
    InvalidInputError,
    InsufficientSamplesError,
    InvalidComponentCountError,
    InvalidOptionError,
)

__all__ = [
    'validate_observations',
    'inspect_observations',
    'validate_component_count',
    'validate_iteration_options',
    'InputValidationReport',
    'ICAError',
    'InvalidInputError',
    'InsufficientSamplesError',
    'InvalidComponentCountError',
    'InvalidOptionError',
]
