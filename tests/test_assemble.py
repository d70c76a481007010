"""
Tests for mapping whitened-space results back to signal space.
"""

import numpy as np

from fastsep.core.assemble import assemble, component_offsets, reconstruct
from fastsep.core.preprocess import whiten


def _make_inputs(k=3, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((3, 3)) @ rng.laplace(size=(3, 500)) + 4.0
    white = whiten(X)
    Q, _ = np.linalg.qr(rng.standard_normal((3, 3)))
    return X, white, Q[:k]


class TestAssemble:

    def test_shapes(self):
        _, white, W_white = _make_inputs(k=2)
        unmixing, mixing, components = assemble(W_white, white.whitening, white.centered)

        assert unmixing.shape == (2, 3)
        assert mixing.shape == (3, 2)
        assert components.shape == (2, 500)

    def test_pseudo_inverse_relation(self):
        """W A = I_k for any k <= N."""
        for k in (1, 2, 3):
            _, white, W_white = _make_inputs(k=k)
            unmixing, mixing, _ = assemble(W_white, white.whitening, white.centered)
            np.testing.assert_allclose(unmixing @ mixing, np.eye(k), atol=1e-10)

    def test_components_from_centered(self):
        _, white, W_white = _make_inputs()
        unmixing, _, components = assemble(W_white, white.whitening, white.centered)
        np.testing.assert_allclose(components, unmixing @ white.centered)


class TestReconstruct:

    def test_full_rank_roundtrip(self):
        """k = N reconstructs the observations exactly."""
        X, white, W_white = _make_inputs()
        _, mixing, components = assemble(W_white, white.whitening, white.centered)

        np.testing.assert_allclose(reconstruct(mixing, components, white.mean), X, atol=1e-9)
        np.testing.assert_allclose(reconstruct(mixing, components), white.centered, atol=1e-9)

    def test_offsets(self):
        """Raw projection = components + offsets."""
        X, white, W_white = _make_inputs()
        unmixing, _, components = assemble(W_white, white.whitening, white.centered)

        offsets = component_offsets(unmixing, white.mean)
        np.testing.assert_allclose(unmixing @ X, components + offsets[:, np.newaxis], atol=1e-9)
