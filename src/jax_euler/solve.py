import math
import time
from typing import Any, Optional, Tuple, Union

import jax
from jax import Array
import jax.numpy as jnp

from .custom_types import InputSignal, Params
from .status import StepStatus
from .timesteppers import StepperProtocol


def _num_steps(t_span: Tuple[float, float], ts: float) -> int:
    t_start, t_end = t_span
    if t_end < t_start:
        raise ValueError(f"t_span must be increasing, got {t_span}.")
    # Rounding absorbs representation error, e.g. 500 / 0.01.
    return math.ceil(round((t_end - t_start) / ts, 9))


def _input_at(
    u: Union[InputSignal, Array, None], t: Array, ts: float, u_offset: int
) -> Optional[Array]:
    """Input buffer for the step starting at time t."""
    if not callable(u):
        return u

    u_now = jnp.atleast_1d(jnp.asarray(u(t)))
    if u_offset == 0:
        return u_now

    if u_now.shape[0] != u_offset:
        raise ValueError(
            f"u(t) must return {u_offset} values to fill the current input "
            f"segment, got {u_now.shape[0]}."
        )
    u_next = jnp.atleast_1d(jnp.asarray(u(t + ts)))
    return jnp.concatenate([u_now, u_next.astype(u_now.dtype)])


def _prepare(stepper: StepperProtocol, x0: Array) -> Array:
    if stepper.config.fun is None:
        raise ValueError("The stepper has no vector field.")
    x0 = jnp.asarray(x0)
    return x0.astype(jnp.result_type(x0.dtype, float))


def solve_ivp(
    stepper: StepperProtocol,
    t_span: Tuple[float, float],
    x0: Array,
    u: Union[InputSignal, Array, None] = None,
    p: Params = (),
    data: Any = None,
) -> Tuple[float, Array, Array]:
    """
    Integrate dx/dt = f(t, x, u, p, data) over the time interval t_span.

    Args:
        stepper: Stepper instance (e.g., EulerStepper(config))
        t_span: (t_start, t_end) time interval
        x0: Initial condition
        u: Input. Either None, a constant input buffer, or a callable
            t -> u(t). For a callable and u_offset > 0, each step receives
            the stacked buffer [u(t), u(t + ts)].
        p: Parameter list passed to the vector field
        data: User data passed to the vector field

    Returns:
        t_final: Final time, t_start + n * ts with n = ceil((t_end - t_start) / ts)
        x_final: Solution at t_final
        status: Largest StepStatus code over all steps (SUCCESS if every
            step succeeded)

    Example usage:
    ```python
    import jax.numpy as jnp
    from jax_euler import EulerStepper, StepConfig, solve_ivp

    # Define ODE: dx/dt = -k*x + u
    def fun(t, x, u, p, data):
        return -p[0] * x + u

    config = StepConfig(ts=0.01, x_size=1, alpha=0.5, fun=fun)
    t, x, status = solve_ivp(
        EulerStepper(config), (0.0, 2.0), jnp.array([1.0]),
        u=jnp.array([0.5]), p=(0.5,),
    )
    ```
    """
    cfg = stepper.config
    x0 = _prepare(stepper, x0)
    t_start, _ = t_span
    n_steps = _num_steps(t_span, cfg.ts)

    def body_fn(k, carry):
        x, status = carry
        t = t_start + k * cfg.ts
        result = stepper.step(t, x, _input_at(u, t, cfg.ts, cfg.u_offset), p, data)
        return (result.x, jnp.maximum(status, result.status))

    def run(x0):
        return jax.lax.fori_loop(
            0, n_steps, body_fn, (x0, jnp.int32(StepStatus.SUCCESS))
        )

    x_final, status = jax.jit(run)(x0)

    return t_start + n_steps * cfg.ts, x_final, status


def solve_with_history(
    stepper: StepperProtocol,
    t_span: Tuple[float, float],
    x0: Array,
    u: Union[InputSignal, Array, None] = None,
    p: Params = (),
    data: Any = None,
    save_every: int = 1,
    verbose: bool = False,
) -> Tuple[Array, Array, Array]:
    """
    Integrate dx/dt = f(t, x, u, p, data), storing intermediate states.

    The whole march runs under one JIT-compiled `jax.lax.scan`.

    Args:
        stepper: Stepper instance (e.g., EulerStepper(config))
        t_span: (t_start, t_end) time interval
        x0: Initial condition
        u: Input, as for solve_ivp
        p: Parameter list passed to the vector field
        data: User data passed to the vector field
        save_every: Keep every save_every-th state. The initial and the
            final state are always kept.
        verbose: Print progress information

    Returns:
        t: Array of time points, shape (n_points,)
        x: Array of states at times t, shape (n_points, x_size)
        status: Largest StepStatus code over all steps

    Example usage:
    ```python
    import jax.numpy as jnp
    from jax_euler import EulerStepper, StepConfig, solve_with_history

    def fun(t, x, u, p, data):
        return -x + u

    # Step input switching at t = 1
    u = lambda t: jnp.where(t < 1.0, 1.0, 0.0)

    config = StepConfig(ts=1e-2, x_size=1, alpha=1.0, fun=fun)
    t, x, status = solve_with_history(
        EulerStepper(config), (0.0, 2.0), jnp.array([0.0]), u=u, save_every=10
    )
    ```
    """
    if save_every < 1:
        raise ValueError(f"save_every must be at least 1, got {save_every}.")

    cfg = stepper.config
    x0 = _prepare(stepper, x0)
    t_start, t_end = t_span
    n_steps = _num_steps(t_span, cfg.ts)

    if verbose:
        method_name = type(stepper).__name__
        print(f"Solving with {method_name} (alpha={cfg.alpha})")
        print(
            f"Time: [{t_start}, {t_end}], dt={cfg.ts}, "
            f"{n_steps} total steps"
        )

    def body_fn(x, k):
        t = t_start + k * cfg.ts
        result = stepper.step(t, x, _input_at(u, t, cfg.ts, cfg.u_offset), p, data)
        return result.x, (result.x, result.status)

    def run(x0):
        _, (xs, statuses) = jax.lax.scan(body_fn, x0, jnp.arange(n_steps))
        return xs, jnp.max(statuses, initial=int(StepStatus.SUCCESS))

    start_wallclock = time.time()

    xs, status = jax.jit(run)(x0)

    elapsed_wallclock = time.time() - start_wallclock

    t_arr = t_start + jnp.arange(n_steps + 1) * cfg.ts
    x_arr = jnp.concatenate([x0[None, :], xs], axis=0)

    if verbose:
        print(
            f"Completed in {elapsed_wallclock:.3f}s "
            f"({n_steps / max(elapsed_wallclock, 1e-12):.1f} steps/s)"
        )
        print(f"Status: {StepStatus(int(status)).name}")

    keep = list(range(0, n_steps + 1, save_every))
    if keep[-1] != n_steps:
        keep.append(n_steps)
    keep = jnp.asarray(keep)

    return t_arr[keep], x_arr[keep], status
