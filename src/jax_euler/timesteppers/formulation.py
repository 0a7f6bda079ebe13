"""
Residual and Jacobian of the theta-blended implicit Euler step.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import jax
from jax import Array
import jax.numpy as jnp

from .config import StepConfig
from ..custom_types import JacobianFn, Params, VectorField
from ..ordering import Ordering


def split_input(
    u: Optional[Array], u_offset: int
) -> Tuple[Optional[Array], Optional[Array]]:
    """
    Split an input buffer into the current and the next time point inputs.

    The current point sees the whole buffer, the next point sees the buffer
    starting at `u_offset`. With `u_offset = 0` both points share one input.
    """
    if u is None:
        return None, None
    u = jnp.atleast_1d(jnp.asarray(u))
    if u_offset > u.shape[0]:
        raise ValueError(
            f"u_offset={u_offset} is past the end of an input of size {u.shape[0]}."
        )
    return u, u[u_offset:]


def autodiff_jacobian(fun: VectorField) -> JacobianFn:
    """
    Jacobian of `fun` with respect to the state by forward-mode autodiff.

    Args:
        fun: Vector field with signature (t, x, u, p, data) -> dx/dt.

    Returns:
        A function with signature (t, x, u, p, data) -> df/dx, returning a
        (x_size, x_size) matrix.
    """

    def jac(t, x, u, p, data):
        return jax.jacfwd(lambda y: fun(t, y, u, p, data))(x)

    return jac


@dataclass(frozen=True)
class ImplicitContext:
    """
    Implicit step equation for a frozen current state.

    Discretisation:
    $$ \\frac{x_{k+1} - x_k}{h} = (1 - \\alpha) f(t, x_k, u_k)
    + \\alpha f(t, x_{k+1}, u_{k+1}) $$

    Residual:
    $$ g(x_{k+1}) = x_k - x_{k+1} + (1 - \\alpha) h f(t, x_k, u_k)
    + \\alpha h f(t, x_{k+1}, u_{k+1}) $$

    Jacobian:
    $$ \\frac{\\partial g}{\\partial x_{k+1}}
    = -I + \\alpha h \\frac{\\partial f(t, x_{k+1}, u_{k+1})}{\\partial x} $$

    `residual` and `jacobian` have the callback signature expected by
    NewtonRaphson, so bound methods can be handed to it directly.

    Attributes:
        ts: Time step size h.
        alpha: Blend coefficient.
        u_offset: Start of the next-point input in the input buffer.
        fun: User vector field.
        jac: User Jacobian of fun with respect to x.
        ordering: Ordering of the flat buffers returned by jac.
        x_k: Current state, held fixed during the solve.
        x_size: State dimension.
        neg_identity: The -I block, built once per step and only read.
        data: User data.
    """

    ts: float
    alpha: float
    u_offset: int
    fun: VectorField
    jac: JacobianFn
    ordering: Ordering
    x_k: Array
    x_size: int
    neg_identity: Array
    data: Any = None

    @classmethod
    def create(cls, config: StepConfig, x_k: Array, data: Any = None) -> "ImplicitContext":
        """
        Build the implicit step equation for one step.

        Args:
            config: Step configuration. Must carry a vector field.
            x_k: Current state, shape (x_size,).
            data: User data for the callbacks.

        Returns:
            A context whose `residual` and `jacobian` define the step.
        """
        if config.fun is None:
            raise ValueError("An implicit step requires a vector field.")
        jac = config.jac if config.jac is not None else autodiff_jacobian(config.fun)
        x_k = jnp.asarray(x_k)
        return cls(
            ts=config.ts,
            alpha=config.alpha,
            u_offset=config.u_offset,
            fun=config.fun,
            jac=jac,
            ordering=config.ordering,
            x_k=x_k,
            x_size=config.x_size,
            neg_identity=-jnp.eye(config.x_size, dtype=x_k.dtype),
            data=data,
        )

    def residual(
        self, t: Array, x: Array, u: Optional[Array], p: Params, data: Any
    ) -> Array:
        """
        Evaluate g at the proposed next state x.

        Args:
            t: Current time, shared by both evaluations.
            x: Proposed next state.
            u: Input buffer holding the current and (from u_offset) next input.
            p: Parameter list.
            data: User data.

        Returns:
            g(x), shape (x_size,).
        """
        u_now, u_next = split_input(u, self.u_offset)
        f_now = jnp.asarray(self.fun(t, self.x_k, u_now, p, data))
        f_next = jnp.asarray(self.fun(t, x, u_next, p, data))
        if f_now.shape != (self.x_size,) or f_next.shape != (self.x_size,):
            raise ValueError(
                f"Vector field must return shape ({self.x_size},), "
                f"got {f_now.shape} and {f_next.shape}."
            )
        return (
            self.x_k
            - x
            + (1.0 - self.alpha) * self.ts * f_now
            + self.alpha * self.ts * f_next
        )

    def jacobian(
        self, t: Array, x: Array, u: Optional[Array], p: Params, data: Any
    ) -> Array:
        """
        Evaluate dg/dx at the proposed next state x.

        The current-state term does not depend on x, so only the next-point
        Jacobian contributes.

        Returns:
            A (x_size, x_size) matrix.
        """
        _, u_next = split_input(u, self.u_offset)
        df = self.ordering.to_matrix(
            self.jac(t, x, u_next, p, data), self.x_size, self.x_size
        )
        scaled = self.alpha * self.ts * df
        return scaled + self.neg_identity
