"""Configuration of the theta-blended Euler step."""

from dataclasses import dataclass
from typing import Any, Optional

from ..custom_types import JacobianFn, VectorField
from ..ordering import Ordering


@dataclass(frozen=True)
class StepConfig:
    """
    Immutable per-step configuration.

    Attributes:
        ts: Integration step size.
        x_size: State dimension. The vector field has the same size.
        alpha: Blend coefficient in [0, 1]. 0 gives the explicit Euler step,
            1 the fully implicit step, 0.5 the Tustin (trapezoidal) step.
        u_offset: Index in the input vector where the input of the next
            time point begins. 0 makes both points use the same input.
        ordering: Ordering of the flat Jacobian buffers returned by jac.
        s_tol: Newton tolerance on the residual norm.
        x_tol: Newton tolerance on the update step norm.
        maxiter: Maximum number of Newton updates per step.
        fun: Vector field with signature (t, x, u, p, data) -> dx/dt.
        jac: Jacobian of fun with respect to x, signature
            (t, x, u, p, data) -> df/dx. Only used when alpha > 0. If None,
            the Jacobian is computed with `jax.jacfwd`.
        data: User data handed to the callbacks when a step is called
            without its own data.
    """

    ts: float
    x_size: int
    alpha: float = 0.0
    u_offset: int = 0
    ordering: Ordering = Ordering.COL_MAJOR
    s_tol: float = 1e-12
    x_tol: float = 1e-12
    maxiter: int = 100
    fun: Optional[VectorField] = None
    jac: Optional[JacobianFn] = None
    data: Any = None

    def __post_init__(self):
        if not self.ts > 0:
            raise ValueError(f"ts must be positive, got {self.ts}.")
        if self.x_size <= 0:
            raise ValueError(f"x_size must be positive, got {self.x_size}.")
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"alpha must lie in [0, 1], got {self.alpha}.")
        if self.u_offset < 0:
            raise ValueError(f"u_offset must be non-negative, got {self.u_offset}.")
        if self.s_tol < 0 or self.x_tol < 0:
            raise ValueError("Tolerances must be non-negative.")
        if self.maxiter < 0:
            raise ValueError(f"maxiter must be non-negative, got {self.maxiter}.")
        if not isinstance(self.ordering, Ordering):
            raise TypeError(f"ordering must be an Ordering, got {self.ordering!r}.")
        if self.fun is not None and not callable(self.fun):
            raise TypeError("fun must be callable.")
        if self.jac is not None and not callable(self.jac):
            raise TypeError("jac must be callable.")

    @property
    def explicit(self) -> bool:
        """True when the step needs no root finding."""
        return self.alpha == 0
