"""
Tests for the FastICA fixed-point optimizer (whitened space).
"""

import warnings

import numpy as np
import pytest

from fastsep.core.diagnostics import ConvergenceWarning
from fastsep.core.nonlinearity import get_contrast
from fastsep.core.optimizer import Approach, optimize, reseed_collapsed_rows
from fastsep.core.preprocess import whiten
from fastsep.primitives.matrix import gram_schmidt, symmetric_decorrelation
from fastsep.validation import InvalidComponentCountError, InvalidOptionError


def _make_whitened(n_samples=2000, seed=11):
    """Whitened mixture of four non-Gaussian sources."""
    rng = np.random.default_rng(seed)
    t = np.linspace(0, 8, n_samples)
    sources = np.vstack([
        np.sin(2 * np.pi * 2 * t),
        np.sign(np.sin(2 * np.pi * 0.7 * t)),
        rng.laplace(size=n_samples),
        rng.uniform(-1, 1, size=n_samples),
    ])
    X = rng.standard_normal((4, 4)) @ sources
    return whiten(X).whitened


def _run_quiet(Z, **kwargs):
    """optimize() with ConvergenceWarning suppressed."""
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', ConvergenceWarning)
        return optimize(Z, **kwargs)


class TestApproachResolve:

    @pytest.mark.parametrize('choice,expected', [
        ('symmetric', Approach.SYMMETRIC),
        ('symm', Approach.SYMMETRIC),
        ('deflation', Approach.DEFLATION),
        ('DEFL', Approach.DEFLATION),
        (None, Approach.SYMMETRIC),
        ('unknown', Approach.SYMMETRIC),
    ])
    def test_resolve(self, choice, expected):
        assert Approach.resolve(choice) is expected


class TestSymmetric:

    def test_rows_orthonormal_after_every_iteration(self):
        """Stopping at any iteration j leaves W W^T = I."""
        Z = _make_whitened()
        for j in range(1, 8):
            result = _run_quiet(
                Z, approach='symmetric', max_iterations=j, epsilon=1e-14,
                rng=np.random.default_rng(4),
            )
            W = result.unmixing
            np.testing.assert_allclose(W @ W.T, np.eye(4), atol=1e-10, err_msg=f"iteration {j}")

    def test_partial_rows_orthonormal(self):
        """k < N rows are orthonormal too."""
        Z = _make_whitened()
        result = optimize(Z, n_components=2, rng=np.random.default_rng(0))

        assert result.unmixing.shape == (2, 4)
        np.testing.assert_allclose(result.unmixing @ result.unmixing.T, np.eye(2), atol=1e-10)

    def test_converges(self):
        Z = _make_whitened()
        result = optimize(Z, rng=np.random.default_rng(0))

        assert result.converged
        assert result.approach is Approach.SYMMETRIC
        assert len(result.iterations) == 1
        assert result.deltas[0] < 1e-4

    def test_collapsed_update_stays_orthonormal(self):
        """Cubic contrast on all-zero data zeroes the update; rows stay orthonormal."""
        Z = np.zeros((3, 50))
        for j in (1, 2, 5):
            with pytest.warns(ConvergenceWarning):
                result = optimize(
                    Z, contrast=get_contrast('cubic'), max_iterations=j,
                    rng=np.random.default_rng(0),
                )
            W = result.unmixing
            assert np.all(np.isfinite(W))
            np.testing.assert_allclose(W @ W.T, np.eye(3), atol=1e-10, err_msg=f"iteration {j}")

    def test_collapsed_update_deterministic(self):
        Z = np.zeros((3, 50))
        a = _run_quiet(Z, contrast=get_contrast('cubic'), max_iterations=4, rng=np.random.default_rng(8))
        b = _run_quiet(Z, contrast=get_contrast('cubic'), max_iterations=4, rng=np.random.default_rng(8))
        np.testing.assert_array_equal(a.unmixing, b.unmixing)

    def test_cap_reached(self):
        """Cap reached: last iterate returned with one condition."""
        Z = _make_whitened()
        with pytest.warns(ConvergenceWarning):
            result = optimize(Z, max_iterations=2, epsilon=1e-14, rng=np.random.default_rng(0))

        assert not result.converged
        assert result.iterations == [2]
        assert result.conditions[0].final_delta == result.deltas[0]


class TestDeflation:

    def test_rows_orthonormal(self):
        """Each accepted row is unit length and orthogonal to earlier rows."""
        Z = _make_whitened()
        result = optimize(Z, approach='deflation', rng=np.random.default_rng(2))

        W = result.unmixing
        np.testing.assert_allclose(W @ W.T, np.eye(4), atol=1e-8)

    def test_orthonormal_even_when_capped(self):
        Z = _make_whitened()
        result = _run_quiet(
            Z, approach='deflation', max_iterations=1, epsilon=1e-14,
            rng=np.random.default_rng(2),
        )

        W = result.unmixing
        np.testing.assert_allclose(W @ W.T, np.eye(4), atol=1e-10)
        assert len(result.conditions) == 4

    def test_per_component_diagnostics(self):
        Z = _make_whitened()
        result = optimize(Z, n_components=3, approach='deflation', rng=np.random.default_rng(2))

        assert result.approach is Approach.DEFLATION
        assert len(result.iterations) == 3
        assert len(result.deltas) == 3
        assert all(d < 1e-4 for d in result.deltas)

    def test_single_component(self):
        Z = _make_whitened()
        result = optimize(Z, n_components=1, approach='deflation', rng=np.random.default_rng(2))

        assert result.unmixing.shape == (1, 4)
        assert np.linalg.norm(result.unmixing[0]) == pytest.approx(1.0)


class TestDeterminism:

    @pytest.mark.parametrize('approach', ['symmetric', 'deflation'])
    def test_same_generator_state(self, approach):
        Z = _make_whitened()
        a = optimize(Z, approach=approach, rng=np.random.default_rng(99))
        b = optimize(Z, approach=approach, rng=np.random.default_rng(99))
        np.testing.assert_array_equal(a.unmixing, b.unmixing)

    def test_unmixing_independent_of_contrast_object(self):
        """Passing the tanh contrast explicitly equals the default."""
        Z = _make_whitened()
        a = optimize(Z, rng=np.random.default_rng(3))
        b = optimize(Z, contrast=get_contrast('tanh'), rng=np.random.default_rng(3))
        np.testing.assert_array_equal(a.unmixing, b.unmixing)


class TestValidation:

    def test_component_count(self):
        Z = _make_whitened()
        with pytest.raises(InvalidComponentCountError):
            optimize(Z, n_components=5)

    def test_iteration_options(self):
        Z = _make_whitened()
        with pytest.raises(InvalidOptionError):
            optimize(Z, max_iterations=0)
        with pytest.raises(InvalidOptionError):
            optimize(Z, epsilon=float('nan'))


class TestReseedCollapsedRows:

    def test_full_rank_untouched(self):
        """No collapse: same array back and the generator is not advanced."""
        W = np.random.default_rng(0).standard_normal((3, 4))
        rng = np.random.default_rng(5)

        assert reseed_collapsed_rows(W, rng) is W
        assert rng.standard_normal() == np.random.default_rng(5).standard_normal()

    def test_zero_matrix(self):
        out = reseed_collapsed_rows(np.zeros((3, 4)), np.random.default_rng(0))

        assert np.linalg.matrix_rank(out) == 3
        np.testing.assert_allclose(np.linalg.norm(out, axis=1), 1.0)

    def test_dependent_row_replaced(self):
        """A row inside the span of earlier rows is redrawn; the others are kept."""
        W = np.array([
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 2.0, 0.0, 0.0],
            [3.0, -4.0, 0.0, 0.0],
        ])
        out = reseed_collapsed_rows(W, np.random.default_rng(0))

        np.testing.assert_array_equal(out[:2], W[:2])
        np.testing.assert_array_equal(W[2], [3.0, -4.0, 0.0, 0.0])
        assert np.linalg.matrix_rank(out) == 3
        np.testing.assert_allclose(out[2, :2], 0.0, atol=1e-12)
        assert np.linalg.norm(out[2]) == pytest.approx(np.linalg.norm(W, axis=1).max())


class TestDecorrelationPrimitives:

    def test_symmetric_decorrelation(self):
        W = np.random.default_rng(0).standard_normal((3, 5))
        D = symmetric_decorrelation(W)
        np.testing.assert_allclose(D @ D.T, np.eye(3), atol=1e-12)

    def test_symmetric_decorrelation_fixed_point(self):
        """Already orthonormal rows are unchanged."""
        Q, _ = np.linalg.qr(np.random.default_rng(0).standard_normal((4, 4)))
        np.testing.assert_allclose(symmetric_decorrelation(Q), Q, atol=1e-12)

    def test_gram_schmidt(self):
        accepted = np.eye(4)[:2]
        w = np.array([1.0, 2.0, 3.0, 4.0])
        np.testing.assert_allclose(gram_schmidt(w, accepted), [0.0, 0.0, 3.0, 4.0])
        np.testing.assert_array_equal(gram_schmidt(w, accepted[:0]), w)
