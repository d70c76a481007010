"""
Engines — compute only (arrays in, arrays out, no file I/O).

    preprocess     Centering and whitening
    nonlinearity   Contrast functions (cubic, tanh, gaussian)
    optimizer      Symmetric / deflation fixed-point iteration
    assemble       Signal-space unmixing, mixing, components
    ica            run_ica: the four stages in order
    epochs         Channel x sample x epoch adapter
"""

from fastsep.core.ica import ICAOptions, ICAResult, run_ica
from fastsep.core.nonlinearity import Nonlinearity, get_contrast
from fastsep.core.optimizer import Approach
from fastsep.core.epochs import EpochedICA, run_epoched_ica
from fastsep.core.diagnostics import (
    ConvergenceWarning,
    DegenerateCovarianceWarning,
    NonConvergenceCondition,
    DegenerateCovarianceCondition,
)

__all__ = [
    'run_ica',
    'ICAOptions',
    'ICAResult',
    'Nonlinearity',
    'get_contrast',
    'Approach',
    'run_epoched_ica',
    'EpochedICA',
    'ConvergenceWarning',
    'DegenerateCovarianceWarning',
    'NonConvergenceCondition',
    'DegenerateCovarianceCondition',
]
