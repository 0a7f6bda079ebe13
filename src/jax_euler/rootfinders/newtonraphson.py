"""Newton-Raphson method for root finding."""

from typing import Any, NamedTuple, Optional

from flax import nnx
import jax
from jax import Array
import jax.numpy as jnp

from ..custom_types import JacobianFn, Params, ResidualFn
from ..linsolvers import LinearSolverProtocol, LeastSquares
from ..ordering import Ordering
from ..status import NewtonOutcome, is_out_of_memory

# Outcome code carried through the loop while no stopping rule has fired.
_RUNNING = -1


class NewtonResult(NamedTuple):
    """
    Root and diagnostics of a Newton-Raphson solve.

    Attributes:
        x: Converged (or best-effort) root.
        outcome: int32 `NewtonOutcome` code.
        f_norm: 2-norm of the residual at the last evaluated point.
        x_norm: 2-norm of the last solved update step. `inf` if no linear
            solve succeeded.
        iterations: Number of updates applied to x. Never exceeds maxiter.
    """

    x: Array
    outcome: Array
    f_norm: Array
    x_norm: Array
    iterations: Array

    @property
    def status(self) -> NewtonOutcome:
        """Outcome as an enum. Not available inside traced code."""
        return NewtonOutcome(int(self.outcome))


class NewtonRaphson(nnx.Module):
    """
    Newton-Raphson root-finding algorithm.

    Iterative update: $x \\leftarrow x + \\delta$, where $\\delta$ minimises
    $\\| J(x) \\delta + F(x) \\|_2$. The least-squares step lets the same
    routine find roots of over- and under-determined systems; for a square,
    well-conditioned Jacobian it is the classical Newton step.

    Stopping rules, checked in this order within an iteration:
        1. $\\|F(x)\\|_2 < f_{tol}$: RESIDUAL_TOLERANCE_MET
        2. maxiter updates already applied: MAX_ITERATIONS_REACHED
        3. rank-deficient / non-finite Jacobian: SINGULAR_JACOBIAN /
           ILLEGAL_JACOBIAN
        4. $\\|\\delta\\|_2 < x_{tol}$: STEP_TOLERANCE_MET (step not applied)

    Implements: RootFinderProtocol

    Attributes:
        f_tol: Convergence tolerance for the residual norm
        x_tol: Convergence tolerance for the update step norm
        maxiter: Maximum number of Newton-Raphson updates
        ordering: Ordering of the flat Jacobian buffers returned by jac_fn
        linsolver: Linear solver for inner iterations (default: LeastSquares)
    """

    def __init__(
        self,
        f_tol: float = 1e-12,
        x_tol: float = 1e-12,
        maxiter: int = 100,
        ordering: Ordering = Ordering.COL_MAJOR,
        linsolver: Optional[LinearSolverProtocol] = None,
    ):
        if f_tol < 0 or x_tol < 0:
            raise ValueError("Tolerances must be non-negative.")
        if maxiter < 0:
            raise ValueError(f"maxiter must be non-negative, got {maxiter}.")
        if not isinstance(ordering, Ordering):
            raise TypeError(f"ordering must be an Ordering, got {ordering!r}.")

        self.f_tol = f_tol
        self.x_tol = x_tol
        self.maxiter = int(maxiter)
        self.ordering = ordering
        self.linsolver = LeastSquares() if linsolver is None else linsolver

    def __call__(
        self,
        residual_fn: ResidualFn,
        jac_fn: JacobianFn,
        x0: Array,
        t: float = 0.0,
        u: Optional[Array] = None,
        p: Params = (),
        data: Any = None,
    ) -> NewtonResult:
        """
        Find the root of residual_fn(t, x, u, p, data) = 0.

        Args:
            residual_fn: Residual F with signature (t, x, u, p, data) -> F(x),
                shape (f_size,)
            jac_fn: Jacobian of F with respect to x with signature
                (t, x, u, p, data) -> J(x). Either a flat buffer of
                f_size * x_size values in `self.ordering` or a
                (f_size, x_size) matrix.
            x0: Initial guess, shape (x_size,)
            t: Time passed through to the callbacks
            u: Input vector passed through to the callbacks
            p: Parameter list passed through to the callbacks
            data: User data passed through to the callbacks

        Returns:
            NewtonResult with the root and the achieved tolerances. An
            eager call whose workspace cannot be allocated returns x0 with
            outcome OUT_OF_MEMORY.
        """
        if not callable(residual_fn) or not callable(jac_fn):
            raise TypeError("residual_fn and jac_fn must be callable.")

        x0 = jnp.asarray(x0)
        if x0.ndim != 1:
            raise ValueError(f"x0 must be a vector, got shape {x0.shape}.")
        x0 = x0.astype(jnp.result_type(x0.dtype, float))
        x_size = x0.shape[0]
        dtype = x0.dtype

        def residual(x):
            f = jnp.asarray(residual_fn(t, x, u, p, data), dtype=dtype)
            if f.ndim != 1:
                raise ValueError(
                    f"residual_fn must return a vector, got shape {f.shape}."
                )
            return f

        def solve_step(x, f):
            J = self.ordering.to_matrix(jac_fn(t, x, u, p, data), f.shape[0], x_size)
            delta, info = self.linsolver(J.astype(dtype), -f)
            return delta.astype(dtype), jnp.asarray(info, dtype=jnp.int32)

        def skip_step(x, f):
            return jnp.zeros_like(x), jnp.int32(0)

        def body_fun(state):
            x, k, _, x_norm, _ = state

            f = residual(x)
            f_norm = jnp.linalg.norm(f)
            f_met = f_norm < self.f_tol
            exhausted = k >= self.maxiter

            # Jacobian is only evaluated when another update may follow.
            delta, info = jax.lax.cond(
                f_met | exhausted, skip_step, solve_step, x, f
            )
            step_norm = jnp.linalg.norm(delta)
            solved = ~(f_met | exhausted) & (info == 0)

            code = jnp.where(
                f_met, jnp.int32(NewtonOutcome.RESIDUAL_TOLERANCE_MET),
                jnp.where(
                    exhausted, jnp.int32(NewtonOutcome.MAX_ITERATIONS_REACHED),
                    jnp.where(
                        info > 0, jnp.int32(NewtonOutcome.SINGULAR_JACOBIAN),
                        jnp.where(
                            info < 0, jnp.int32(NewtonOutcome.ILLEGAL_JACOBIAN),
                            jnp.where(
                                step_norm < self.x_tol,
                                jnp.int32(NewtonOutcome.STEP_TOLERANCE_MET),
                                jnp.int32(_RUNNING),
                            ),
                        ),
                    ),
                ),
            )
            advance = code == _RUNNING

            x = jnp.where(advance, x + delta, x)
            x_norm = jnp.where(solved, step_norm, x_norm)
            k = k + advance.astype(k.dtype)
            return (x, k, f_norm, x_norm, code)

        def cond_fun(state):
            return state[4] == _RUNNING

        inf = jnp.asarray(jnp.inf, dtype=dtype)
        state0 = (x0, jnp.int32(0), inf, inf, jnp.int32(_RUNNING))
        try:
            # Blocking surfaces allocation failures of eager calls here;
            # traced values pass through untouched.
            x, niters, f_norm, x_norm, outcome = jax.block_until_ready(
                jax.lax.while_loop(cond_fun, body_fun, state0)
            )
        except (MemoryError, jax.errors.JaxRuntimeError) as err:
            if not is_out_of_memory(err):
                raise
            print("WARNING: Newton-Raphson could not allocate its workspace.")
            return NewtonResult(
                x0, jnp.int32(NewtonOutcome.OUT_OF_MEMORY), inf, inf, jnp.int32(0)
            )

        # Runtime warning
        def warn_callback(outcome, iters, residual_norm):
            outcome = NewtonOutcome(int(outcome))
            if outcome == NewtonOutcome.MAX_ITERATIONS_REACHED:
                print(
                    f"WARNING: Newton-Raphson did not converge within "
                    f"{int(iters)} iterations.\n"
                    f"Final residual norm: {float(residual_norm):.2e}."
                )
            elif not outcome.converged:
                print(
                    f"WARNING: Newton-Raphson stopped with {outcome.name} "
                    f"after {int(iters)} iterations.\n"
                    f"Final residual norm: {float(residual_norm):.2e}."
                )

        def warn():
            jax.debug.callback(warn_callback, outcome, niters, f_norm)

        jax.lax.cond(
            outcome >= NewtonOutcome.MAX_ITERATIONS_REACHED, warn, lambda: None
        )

        return NewtonResult(x, outcome, f_norm, x_norm, niters)
