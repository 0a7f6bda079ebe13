"""Unit tests for the status codes."""

import pytest
import jax
import jax.numpy as jnp

from jax_euler import NewtonOutcome, StepStatus, is_out_of_memory, step_status


class TestStepStatus:

    @pytest.mark.parametrize(
        "outcome, expected",
        [
            (NewtonOutcome.RESIDUAL_TOLERANCE_MET, StepStatus.SUCCESS),
            (NewtonOutcome.STEP_TOLERANCE_MET, StepStatus.SUCCESS),
            (NewtonOutcome.MAX_ITERATIONS_REACHED, StepStatus.SUCCESS),
            (NewtonOutcome.SINGULAR_JACOBIAN, StepStatus.GENERIC_FAILURE),
            (NewtonOutcome.ILLEGAL_JACOBIAN, StepStatus.GENERIC_FAILURE),
            (NewtonOutcome.OUT_OF_MEMORY, StepStatus.OUT_OF_MEMORY),
            (NewtonOutcome.GENERIC_FAILURE, StepStatus.GENERIC_FAILURE),
        ],
    )
    def test_mapping(self, outcome, expected):
        assert int(step_status(jnp.int32(outcome))) == expected

    def test_traceable(self):
        outcomes = jnp.arange(7, dtype=jnp.int32)
        mapped = jax.jit(jax.vmap(step_status))(outcomes)
        assert jnp.array_equal(mapped, jnp.array([0, 0, 0, 3, 3, 1, 3]))


class TestOutOfMemory:

    def test_memory_error(self):
        assert is_out_of_memory(MemoryError())

    def test_resource_exhausted(self):
        err = jax.errors.JaxRuntimeError(
            "RESOURCE_EXHAUSTED: Out of memory allocating 720000000000 bytes."
        )
        assert is_out_of_memory(err)

    def test_other_runtime_error(self):
        assert not is_out_of_memory(jax.errors.JaxRuntimeError("INTERNAL: device lost"))

    def test_unrelated_error(self):
        assert not is_out_of_memory(ValueError("RESOURCE_EXHAUSTED"))
