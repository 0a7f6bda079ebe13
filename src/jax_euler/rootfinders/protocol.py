"""Protocol for root-finding algorithms."""

from typing import Any, Optional, Protocol, runtime_checkable

from jax import Array

from ..custom_types import JacobianFn, Params, ResidualFn


@runtime_checkable
class RootFinderProtocol(Protocol):
    """
    Protocol for root-finding algorithms.

    Defines the interface for finding roots of nonlinear equations.
    Used by the implicit Euler step to solve the nonlinear system that
    arises from the theta-blended discretisation.
    """

    def __call__(
        self,
        residual_fn: ResidualFn,
        jac_fn: JacobianFn,
        x0: Array,
        t: float = 0.0,
        u: Optional[Array] = None,
        p: Params = (),
        data: Any = None,
    ) -> Any:
        """
        Find the root of residual_fn(t, x, u, p, data) = 0.

        Args:
            residual_fn: Function (t, x, u, p, data) -> F(x), where we seek F(x) = 0
            jac_fn: Jacobian function (t, x, u, p, data) -> dF/dx
            x0: Initial guess for the solution
            t: Time passed through to the callbacks
            u: Input vector passed through to the callbacks
            p: Parameter list passed through to the callbacks
            data: User data passed through to the callbacks

        Returns:
            A result carrying the root x and solver diagnostics.
        """
        ...
