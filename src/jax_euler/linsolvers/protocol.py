"""Protocol for linear solvers used inside the Newton-Raphson iteration."""

from typing import Protocol, Tuple, runtime_checkable

from jax import Array


@runtime_checkable
class LinearSolverProtocol(Protocol):
    """
    Protocol for linear solvers.

    Defines the interface for solving linear systems of the form A*x = b,
    where A may be rectangular. Any class implementing a __call__() method
    with this signature can be used as the inner solver of NewtonRaphson.
    """

    def __call__(self, A: Array, b: Array) -> Tuple[Array, Array]:
        """
        Solve the linear system A*x = b.

        Args:
            A: Dense matrix of shape (m, n)
            b: Right-hand side vector of shape (m,)

        Returns:
            Solution vector x of shape (n,) and an integer diagnostic code:
            0 on success, positive when A is rank deficient, negative when
            the system contains invalid (non-finite) data.
        """
        ...
