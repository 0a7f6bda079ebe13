"""Exit codes reported by the root finder and the Euler stepper."""

from enum import IntEnum

import jax
from jax import Array
import jax.numpy as jnp


class NewtonOutcome(IntEnum):
    """Reason a Newton-Raphson solve stopped."""

    RESIDUAL_TOLERANCE_MET = 0
    STEP_TOLERANCE_MET = 1
    MAX_ITERATIONS_REACHED = 2
    SINGULAR_JACOBIAN = 3
    ILLEGAL_JACOBIAN = 4
    OUT_OF_MEMORY = 5
    GENERIC_FAILURE = 6

    @property
    def converged(self) -> bool:
        """True for the outcomes that still leave a usable root."""
        return self <= NewtonOutcome.MAX_ITERATIONS_REACHED


class StepStatus(IntEnum):
    """Result of a single Euler step."""

    SUCCESS = 0
    OUT_OF_MEMORY = 1
    NULL_INPUT = 2
    GENERIC_FAILURE = 3


def step_status(outcome: Array) -> Array:
    """
    Coarsen a Newton outcome code into a step status code.

    Works on traced values, so it can be used inside `jax.jit`.

    Args:
        outcome: Integer array holding a `NewtonOutcome` value.

    Returns:
        Integer array holding the matching `StepStatus` value.
    """
    outcome = jnp.asarray(outcome)
    return jnp.where(
        outcome <= NewtonOutcome.MAX_ITERATIONS_REACHED,
        jnp.int32(StepStatus.SUCCESS),
        jnp.where(
            outcome == NewtonOutcome.OUT_OF_MEMORY,
            jnp.int32(StepStatus.OUT_OF_MEMORY),
            jnp.int32(StepStatus.GENERIC_FAILURE),
        ),
    )


def is_out_of_memory(err: BaseException) -> bool:
    """
    True if `err` reports a failed host or device allocation.

    XLA does not raise `MemoryError`; an allocation failure surfaces as a
    `JaxRuntimeError` whose message carries the RESOURCE_EXHAUSTED code.
    """
    if isinstance(err, MemoryError):
        return True
    return (
        isinstance(err, jax.errors.JaxRuntimeError)
        and "RESOURCE_EXHAUSTED" in str(err)
    )
