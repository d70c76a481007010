"""
Epoched Data Adapter

Runs the engine on multichannel recordings laid out as
(channels, samples) or (channels, samples, epochs) and returns the result
under EEGLAB-style field names:

    icaweights   unmixing, k x N
    icasphere    N x N identity (whitening is folded into icaweights)
    icawinv      mixing, N x k
    icaact       activations, k x samples (x epochs when input was 3-D)
    icachansind  channel indices used, 0..N-1

Epochs are concatenated along the sample axis, epoch 0 first, and the
activations are split back the same way.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from fastsep.core.ica import ICAOptions, ICAResult, run_ica
from fastsep.validation import InvalidInputError


logger = logging.getLogger(__name__)


@dataclass
class EpochedICA:
    """ICA fields for an epoched recording."""
    icaweights: np.ndarray
    icasphere: np.ndarray
    icawinv: np.ndarray
    icaact: np.ndarray
    icachansind: np.ndarray
    result: ICAResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            'icaweights': self.icaweights,
            'icasphere': self.icasphere,
            'icawinv': self.icawinv,
            'icaact': self.icaact,
            'icachansind': self.icachansind,
        }


def concatenate_epochs(data: np.ndarray) -> np.ndarray:
    """(channels, samples, epochs) → (channels, samples * epochs), epoch 0 first."""
    n_channels, n_samples, n_epochs = data.shape
    return data.transpose(0, 2, 1).reshape(n_channels, n_epochs * n_samples)


def split_epochs(activations: np.ndarray, n_samples: int, n_epochs: int) -> np.ndarray:
    """Inverse of concatenate_epochs: (k, samples * epochs) → (k, samples, epochs)."""
    n_rows = activations.shape[0]
    return activations.reshape(n_rows, n_epochs, n_samples).transpose(0, 2, 1)


def run_epoched_ica(
    data: Any,
    options: Optional[ICAOptions] = None,
    **overrides: Any,
) -> EpochedICA:
    """
    Run ICA on a 2-D or 3-D channel recording.

    Args:
        data: (channels, samples) or (channels, samples, epochs)
        options: ICAOptions (None = defaults)
        **overrides: Individual option fields

    Returns:
        EpochedICA

    Raises:
        InvalidInputError: data is neither 2-D nor 3-D
        (plus everything run_ica raises)
    """
    data = np.asarray(data)

    if data.ndim == 3:
        n_channels, n_samples, n_epochs = data.shape
        logger.info("Concatenating %d epochs for ICA", n_epochs)
        matrix = concatenate_epochs(data)
    elif data.ndim == 2:
        n_channels, n_samples = data.shape
        n_epochs = None
        matrix = data
    else:
        raise InvalidInputError([
            f"expected (channels, samples) or (channels, samples, epochs), got {data.ndim}-D"
        ])

    result = run_ica(matrix, options, **overrides)

    activations = result.components
    if n_epochs is not None:
        activations = split_epochs(activations, n_samples, n_epochs)

    return EpochedICA(
        icaweights=result.unmixing,
        icasphere=np.eye(n_channels),
        icawinv=result.mixing,
        icaact=activations,
        icachansind=np.arange(n_channels),
        result=result,
    )
