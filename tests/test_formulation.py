"""Unit tests for the implicit step residual and Jacobian."""

import pytest
import jax.numpy as jnp

from jax_euler import ImplicitContext, Ordering, StepConfig
from jax_euler.timesteppers import autodiff_jacobian, split_input


A = jnp.array([[-1.0, 0.5], [0.2, -3.0]])
B = jnp.array([1.0, -2.0])


def linear_fun(t, x, u, p, data):
    """dx/dt = A x + B u[0]"""
    return A @ x + B * u[0]


def linear_jac_col(t, x, u, p, data):
    return Ordering.COL_MAJOR.flatten(A)


def linear_jac_row(t, x, u, p, data):
    return Ordering.ROW_MAJOR.flatten(A)


def pendulum(t, x, u, p, data):
    return jnp.array([x[1], -p[0] * jnp.sin(x[0]) + u[0]])


def pendulum_jac(t, x, u, p, data):
    # Row-major
    return jnp.array([0.0, 1.0, -p[0] * jnp.cos(x[0]), 0.0])


@pytest.fixture
def linear_config():
    return StepConfig(
        ts=0.1, x_size=2, alpha=0.5, u_offset=1,
        ordering=Ordering.COL_MAJOR, fun=linear_fun, jac=linear_jac_col,
    )


class TestImplicitContext:

    def test_residual(self, linear_config):
        x_k = jnp.array([1.0, 2.0])
        x = jnp.array([0.5, -1.0])
        u = jnp.array([3.0, 7.0])
        ctx = ImplicitContext.create(linear_config, x_k)

        # Current point reads u[0] = 3, next point reads u[1] = 7
        f_now = A @ x_k + B * 3.0
        f_next = A @ x + B * 7.0
        expected = x_k - x + 0.5 * 0.1 * f_now + 0.5 * 0.1 * f_next

        g = ctx.residual(0.0, x, u, (), None)
        assert jnp.allclose(g, expected, atol=1e-14)

    def test_shared_input_with_zero_offset(self, linear_config):
        config = StepConfig(
            ts=0.1, x_size=2, alpha=0.5, u_offset=0,
            fun=linear_fun, jac=linear_jac_col,
        )
        x_k = jnp.array([1.0, 2.0])
        ctx = ImplicitContext.create(config, x_k)
        g = ctx.residual(0.0, x_k, jnp.array([3.0]), (), None)
        assert jnp.allclose(g, 0.1 * (A @ x_k + B * 3.0), atol=1e-14)

    def test_residual_vanishes_for_constant_solution(self):
        # dx/dt = 0 keeps every state fixed.
        config = StepConfig(
            ts=0.5, x_size=3, alpha=0.3,
            fun=lambda t, x, u, p, data: jnp.zeros(3),
        )
        x_k = jnp.array([1.0, -2.0, 4.0])
        ctx = ImplicitContext.create(config, x_k)
        assert jnp.allclose(ctx.residual(0.0, x_k, None, (), None), 0.0)

    def test_jacobian(self, linear_config):
        ctx = ImplicitContext.create(linear_config, jnp.zeros(2))
        J = ctx.jacobian(0.0, jnp.ones(2), jnp.array([3.0, 7.0]), (), None)
        assert jnp.allclose(J, 0.05 * A - jnp.eye(2), atol=1e-14)

    def test_jacobian_orderings_agree(self):
        x = jnp.array([0.3, -0.4])
        jacobians = []
        for ordering, jac in [
            (Ordering.COL_MAJOR, linear_jac_col),
            (Ordering.ROW_MAJOR, linear_jac_row),
        ]:
            config = StepConfig(
                ts=0.1, x_size=2, alpha=1.0, ordering=ordering,
                fun=linear_fun, jac=jac,
            )
            ctx = ImplicitContext.create(config, jnp.zeros(2))
            jacobians.append(ctx.jacobian(0.0, x, jnp.array([1.0]), (), None))
        assert jnp.allclose(jacobians[0], jacobians[1])

    def test_identity_block_untouched(self, linear_config):
        ctx = ImplicitContext.create(linear_config, jnp.zeros(2))
        for _ in range(3):
            ctx.jacobian(0.0, jnp.ones(2), jnp.array([3.0, 7.0]), (), None)
        assert jnp.array_equal(ctx.neg_identity, -jnp.eye(2))

    def test_jacobian_evaluated_at_next_point(self):
        seen = []

        def jac(t, x, u, p, data):
            seen.append(u)
            return pendulum_jac(t, x, u, p, data)

        config = StepConfig(
            ts=0.1, x_size=2, alpha=0.5, u_offset=1,
            ordering=Ordering.ROW_MAJOR, fun=pendulum, jac=jac,
        )
        ctx = ImplicitContext.create(config, jnp.zeros(2))
        x = jnp.array([0.2, 0.0])
        J = ctx.jacobian(0.0, x, jnp.array([1.0, 2.0]), (9.81,), None)

        assert jnp.array_equal(seen[0], jnp.array([2.0]))
        expected = 0.05 * jnp.array([[0.0, 1.0], [-9.81 * jnp.cos(0.2), 0.0]])
        assert jnp.allclose(J, expected - jnp.eye(2), atol=1e-14)

    def test_autodiff_jacobian(self):
        analytic = StepConfig(
            ts=0.1, x_size=2, alpha=0.7, ordering=Ordering.ROW_MAJOR,
            fun=pendulum, jac=pendulum_jac,
        )
        autodiff = StepConfig(ts=0.1, x_size=2, alpha=0.7, fun=pendulum)
        x = jnp.array([0.4, -1.2])
        u = jnp.array([0.0])
        p = (9.81,)

        J_analytic = ImplicitContext.create(analytic, x).jacobian(0.0, x, u, p, None)
        J_autodiff = ImplicitContext.create(autodiff, x).jacobian(0.0, x, u, p, None)
        assert jnp.allclose(J_analytic, J_autodiff, atol=1e-12)

    def test_autodiff_jacobian_helper(self):
        jac = autodiff_jacobian(linear_fun)
        assert jnp.allclose(jac(0.0, jnp.ones(2), jnp.array([1.0]), (), None), A)

    def test_wrong_vector_field_size(self):
        config = StepConfig(
            ts=0.1, x_size=2, alpha=1.0,
            fun=lambda t, x, u, p, data: jnp.zeros(3),
        )
        ctx = ImplicitContext.create(config, jnp.zeros(2))
        with pytest.raises(ValueError):
            ctx.residual(0.0, jnp.zeros(2), None, (), None)

    def test_requires_vector_field(self):
        with pytest.raises(ValueError):
            ImplicitContext.create(StepConfig(ts=0.1, x_size=2, alpha=1.0), jnp.zeros(2))


class TestSplitInput:

    def test_no_input(self):
        assert split_input(None, 3) == (None, None)

    def test_offset(self):
        u_now, u_next = split_input(jnp.array([1.0, 2.0, 3.0, 4.0]), 2)
        assert jnp.array_equal(u_now, jnp.array([1.0, 2.0, 3.0, 4.0]))
        assert jnp.array_equal(u_next, jnp.array([3.0, 4.0]))

    def test_offset_past_end(self):
        with pytest.raises(ValueError):
            split_input(jnp.array([1.0]), 2)
