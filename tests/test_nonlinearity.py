"""
Tests for the contrast function selector.
"""

import numpy as np
import pytest

from fastsep.core.nonlinearity import Nonlinearity, get_contrast


U = np.linspace(-3, 3, 61)


class TestResolve:

    @pytest.mark.parametrize('choice,expected', [
        ('cubic', Nonlinearity.CUBIC),
        ('pow3', Nonlinearity.CUBIC),
        ('tanh', Nonlinearity.TANH),
        ('gaussian', Nonlinearity.GAUSSIAN),
        ('gauss', Nonlinearity.GAUSSIAN),
        ('  Cubic ', Nonlinearity.CUBIC),
        (Nonlinearity.GAUSSIAN, Nonlinearity.GAUSSIAN),
    ])
    def test_known_choices(self, choice, expected):
        assert Nonlinearity.resolve(choice) is expected

    @pytest.mark.parametrize('choice', ['skew', '', None, 3])
    def test_unknown_falls_back_to_tanh(self, choice):
        """Anything unrecognized is tanh, never an error."""
        assert Nonlinearity.resolve(choice) is Nonlinearity.TANH
        assert get_contrast(choice).name is Nonlinearity.TANH


class TestContrastValues:

    def test_cubic(self):
        c = get_contrast('cubic')
        np.testing.assert_allclose(c.g(U), U ** 3)
        np.testing.assert_allclose(c.g_prime(U), 3 * U ** 2)

    def test_tanh(self):
        c = get_contrast('tanh')
        np.testing.assert_allclose(c.g(U), np.tanh(U))
        np.testing.assert_allclose(c.g_prime(U), 1 - np.tanh(U) ** 2)

    def test_gaussian(self):
        c = get_contrast('gaussian')
        np.testing.assert_allclose(c.g(U), U * np.exp(-U ** 2 / 2))
        np.testing.assert_allclose(c.g_prime(U), (1 - U ** 2) * np.exp(-U ** 2 / 2))

    def test_default_is_tanh(self):
        assert get_contrast().name is Nonlinearity.TANH

    @pytest.mark.parametrize('choice', list(Nonlinearity))
    def test_derivative_matches_finite_difference(self, choice):
        """g' is the derivative of g."""
        c = get_contrast(choice)
        h = 1e-6
        numeric = (c.g(U + h) - c.g(U - h)) / (2 * h)
        np.testing.assert_allclose(c.g_prime(U), numeric, rtol=1e-5, atol=1e-6)

    @pytest.mark.parametrize('choice', list(Nonlinearity))
    def test_elementwise_on_matrices(self, choice):
        c = get_contrast(choice)
        M = U[:60].reshape(3, 20)
        assert c.g(M).shape == M.shape
        assert c.g_prime(M).shape == M.shape

    @pytest.mark.parametrize('choice', list(Nonlinearity))
    def test_odd_contrast(self, choice):
        """g is odd, so flipping a component's sign flips g."""
        c = get_contrast(choice)
        np.testing.assert_allclose(c.g(-U), -c.g(U))
