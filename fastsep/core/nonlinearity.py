"""
Nonlinearity Selector

Contrast functions approximating negentropy. Each choice supplies g and its
derivative g', both applied elementwise.

Choices:
- cubic:    g = u^3,              sub-Gaussian sources
- tanh:     g = tanh(u),          super-Gaussian sources, general default
- gaussian: g = u exp(-u^2 / 2),  robust to outliers

Any other choice resolves to tanh.
"""

import logging
from enum import Enum
from typing import Callable, NamedTuple, Optional, Union

import numpy as np


logger = logging.getLogger(__name__)


class Nonlinearity(str, Enum):
    """Contrast function choices."""
    CUBIC = "cubic"
    TANH = "tanh"
    GAUSSIAN = "gaussian"

    @classmethod
    def resolve(cls, choice: Optional[Union[str, "Nonlinearity"]]) -> "Nonlinearity":
        """
        Map a user choice to a member.

        Accepts member values case-insensitively plus the legacy names
        'pow3' and 'gauss'. Everything else (including None) is tanh.
        """
        if isinstance(choice, cls):
            return choice

        key = str(choice).strip().lower() if choice is not None else ""

        if key in _ALIASES:
            return _ALIASES[key]

        # Default branch: unknown choices are not an error
        logger.debug("Unknown nonlinearity %r, using tanh", choice)
        return cls.TANH


_ALIASES = {
    'cubic': Nonlinearity.CUBIC,
    'pow3': Nonlinearity.CUBIC,
    'tanh': Nonlinearity.TANH,
    'gaussian': Nonlinearity.GAUSSIAN,
    'gauss': Nonlinearity.GAUSSIAN,
}


class Contrast(NamedTuple):
    """A contrast function and its derivative."""
    name: Nonlinearity
    g: Callable[[np.ndarray], np.ndarray]
    g_prime: Callable[[np.ndarray], np.ndarray]


def _cubic(u: np.ndarray) -> np.ndarray:
    return u ** 3


def _cubic_prime(u: np.ndarray) -> np.ndarray:
    return 3.0 * u ** 2


def _tanh(u: np.ndarray) -> np.ndarray:
    return np.tanh(u)


def _tanh_prime(u: np.ndarray) -> np.ndarray:
    return 1.0 - np.tanh(u) ** 2


def _gaussian(u: np.ndarray) -> np.ndarray:
    return u * np.exp(-u ** 2 / 2.0)


def _gaussian_prime(u: np.ndarray) -> np.ndarray:
    return (1.0 - u ** 2) * np.exp(-u ** 2 / 2.0)


_CONTRASTS = {
    Nonlinearity.CUBIC: (_cubic, _cubic_prime),
    Nonlinearity.TANH: (_tanh, _tanh_prime),
    Nonlinearity.GAUSSIAN: (_gaussian, _gaussian_prime),
}


def get_contrast(choice: Optional[Union[str, Nonlinearity]] = Nonlinearity.TANH) -> Contrast:
    """
    Return (g, g') for a nonlinearity choice.

    Args:
        choice: 'cubic', 'tanh', 'gaussian' (or a Nonlinearity). Unknown → tanh.

    Returns:
        Contrast(name, g, g_prime)
    """
    name = Nonlinearity.resolve(choice)
    g, g_prime = _CONTRASTS[name]
    return Contrast(name, g, g_prime)
