"""Unit tests for the linear solvers."""

import pytest
import jax.numpy as jnp

from jax_euler.linsolvers import LeastSquares, LinearSolverProtocol


class TestLeastSquares:

    def test_implements_protocol(self):
        assert isinstance(LeastSquares(), LinearSolverProtocol)

    def test_square_full_rank(self):
        A = jnp.array([[3.0, 1.0], [1.0, 2.0]])
        b = jnp.array([9.0, 8.0])
        x, info = LeastSquares()(A, b)
        assert int(info) == 0
        assert jnp.allclose(x, jnp.linalg.solve(A, b), atol=1e-12)

    def test_overdetermined_consistent(self):
        A = jnp.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        b = jnp.array([1.0, 2.0, 3.0])
        x, info = LeastSquares()(A, b)
        assert int(info) == 0
        assert jnp.allclose(x, jnp.array([1.0, 2.0]), atol=1e-12)

    def test_overdetermined_inconsistent_minimises_residual(self):
        # Fitting a constant to three samples gives their mean.
        A = jnp.ones((3, 1))
        b = jnp.array([1.0, 2.0, 6.0])
        x, info = LeastSquares()(A, b)
        assert int(info) == 0
        assert jnp.allclose(x, jnp.array([3.0]), atol=1e-12)

    def test_underdetermined_minimum_norm(self):
        A = jnp.array([[1.0, 1.0]])
        b = jnp.array([1.0])
        x, info = LeastSquares()(A, b)
        assert int(info) == 0
        assert jnp.allclose(x, jnp.array([0.5, 0.5]), atol=1e-12)

    def test_zero_matrix_is_rank_deficient(self):
        x, info = LeastSquares()(jnp.zeros((2, 2)), jnp.array([1.0, 1.0]))
        assert int(info) == 2
        assert jnp.all(x == 0.0)

    def test_rank_one_matrix(self):
        A = jnp.array([[1.0, 2.0], [2.0, 4.0]])
        _, info = LeastSquares()(A, jnp.array([1.0, 2.0]))
        assert int(info) == 1

    @pytest.mark.parametrize("bad", [jnp.nan, jnp.inf])
    def test_non_finite_matrix_is_illegal(self, bad):
        A = jnp.array([[1.0, 0.0], [0.0, bad]])
        x, info = LeastSquares()(A, jnp.array([1.0, 1.0]))
        assert int(info) == -1
        assert jnp.all(x == 0.0)

    def test_non_finite_rhs_is_illegal(self):
        _, info = LeastSquares()(jnp.eye(2), jnp.array([jnp.nan, 1.0]))
        assert int(info) == -1

    def test_rejects_linear_operator(self):
        with pytest.raises(TypeError):
            LeastSquares()(lambda v: v, jnp.ones(2))

    def test_rejects_mismatched_rhs(self):
        with pytest.raises(ValueError):
            LeastSquares()(jnp.eye(2), jnp.ones(3))
