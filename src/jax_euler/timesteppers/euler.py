"""Explicit and theta-blended implicit Euler step."""

from typing import Any, NamedTuple, Optional

from flax import nnx
import jax
from jax import Array
import jax.numpy as jnp

from .config import StepConfig
from .formulation import ImplicitContext
from ..custom_types import Params
from ..linsolvers import LinearSolverProtocol
from ..rootfinders import NewtonRaphson, NewtonResult
from ..status import StepStatus, is_out_of_memory, step_status


class StepResult(NamedTuple):
    """
    Outcome of a single Euler step.

    Attributes:
        x: State at t + ts. None if the step received a null input.
        status: int32 `StepStatus` code.
        newton: Diagnostics of the Newton solve. None for explicit steps
            and for steps that never reached the solver.
    """

    x: Optional[Array]
    status: Array
    newton: Optional[NewtonResult] = None

    @property
    def step_status(self) -> StepStatus:
        """Status as an enum. Not available inside traced code."""
        return StepStatus(int(self.status))


class EulerStepper(nnx.Module):
    """
    Euler method with a Tustin / theta blend.

    For $\\alpha = 0$:
        $$ x_{k+1} = x_k + h f(t, x_k, u_k) $$

    For $\\alpha \\in (0, 1]$, $x_{k+1}$ solves
        $$ x_{k+1} = x_k + (1 - \\alpha) h f(t, x_k, u_k)
        + \\alpha h f(t, x_{k+1}, u_{k+1}) $$
    with NewtonRaphson, starting from $x_k$. The input of the next time
    point is read from `u[u_offset:]`.

    Attributes:
        config: Step configuration.
        root_finder: Newton-Raphson solver built from the configuration.
    """

    def __init__(
        self,
        config: StepConfig,
        linsolver: Optional[LinearSolverProtocol] = None,
    ):
        self.config = config
        self.root_finder = NewtonRaphson(
            f_tol=config.s_tol,
            x_tol=config.x_tol,
            maxiter=config.maxiter,
            ordering=config.ordering,
            linsolver=linsolver,
        )

    def _check_state(self, x: Array) -> Array:
        x = jnp.asarray(x)
        x = x.astype(jnp.result_type(x.dtype, float))
        if x.shape != (self.config.x_size,):
            raise ValueError(
                f"State must have shape ({self.config.x_size},), got {x.shape}."
            )
        return x

    def _evaluate(self, t, x, u, p, data) -> Array:
        f = jnp.asarray(self.config.fun(t, x, u, p, data), dtype=x.dtype)
        if f.shape != x.shape:
            raise ValueError(
                f"Vector field must return shape {x.shape}, got {f.shape}."
            )
        return f

    def step(
        self,
        t: Array,
        x: Array,
        u: Optional[Array] = None,
        p: Params = (),
        data: Any = None,
    ) -> StepResult:
        """
        Perform a single Euler step.

        Args:
            t: Current time.
            x: Current state, shape (x_size,).
            u: Input vector. For implicit steps it may hold both the current
                and the next input, the latter starting at u_offset.
            p: Parameter list passed to the callbacks.
            data: User data passed to the callbacks. Defaults to config.data.

        Returns:
            StepResult with the state at t + ts.
        """
        cfg = self.config
        if data is None:
            data = cfg.data

        if cfg.fun is None or x is None:
            print("WARNING: Euler step received a null vector field or state.")
            return StepResult(None, jnp.int32(StepStatus.NULL_INPUT))

        x = self._check_state(x)

        if cfg.explicit:
            x_next = x + cfg.ts * self._evaluate(t, x, u, p, data)
            return StepResult(x_next, jnp.int32(StepStatus.SUCCESS))

        try:
            ctx = ImplicitContext.create(cfg, x, data)
            jax.block_until_ready(ctx.neg_identity)
        except (MemoryError, jax.errors.JaxRuntimeError) as err:
            if not is_out_of_memory(err):
                raise
            print("WARNING: cannot allocate the implicit step workspace.")
            return StepResult(x, jnp.int32(StepStatus.OUT_OF_MEMORY))

        newton = self.root_finder(
            ctx.residual, ctx.jacobian, x, t=t, u=u, p=p, data=ctx.data
        )
        return StepResult(newton.x, step_status(newton.outcome), newton)
