"""Protocols for time-stepping schemes."""

from typing import Any, Optional, Protocol, runtime_checkable

from jax import Array

from .config import StepConfig
from ..custom_types import Params


@runtime_checkable
class StepperProtocol(Protocol):
    """
    Protocol for time-stepping schemes.

    Defines the interface for advancing an ODE one time step.
    Any class with a `config` and a step() method with this signature can
    be marched over a time span by solve_ivp and solve_with_history.
    """

    config: StepConfig

    def step(
        self,
        t: Array,
        x: Array,
        u: Optional[Array] = None,
        p: Params = (),
        data: Any = None,
    ) -> Any:
        """
        Take a single time step.

        Args:
            t: Current time.
            x: Current state.
            u: Input vector.
            p: Parameter list passed to the vector field.
            data: User data passed to the vector field.

        Returns:
            A result holding the state at t + config.ts and a status code.
        """
        ...
