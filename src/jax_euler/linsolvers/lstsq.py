"""Least-squares solver for dense, possibly rectangular, systems."""

from typing import Optional, Tuple

from flax import nnx
from jax import Array
import jax.numpy as jnp


class LeastSquares(nnx.Module):
    """
    Least-squares solver for dense linear systems.

    Dispatches to `jax.numpy.linalg.lstsq`, so over- and under-determined
    systems are accepted alongside square ones. For a square system of full
    rank the result is the ordinary solution of A*x = b.

    Implements: LinearSolverProtocol

    Attributes:
        rcond: Cut-off ratio for small singular values. Singular values
            below rcond * max(singular value) count as zero when computing
            the rank. Default: machine precision times max(m, n).
    """

    def __init__(self, rcond: Optional[float] = None):
        self.rcond = rcond

    def __call__(self, A: Array, b: Array) -> Tuple[Array, Array]:
        """
        Solve min ||A*x - b||_2.

        Args:
            A: Dense matrix of shape (m, n)
            b: Right-hand side vector of shape (m,)

        Returns:
            x: Solution of shape (n,). Zero when the diagnostic is non-zero.
            info: int32 diagnostic. 0 on success, min(m, n) - rank(A) when
                A is rank deficient, -1 when A or b holds non-finite values.

        Raises:
            TypeError: If A is a callable (linear operator) instead of a matrix
            ValueError: If the shapes of A and b are inconsistent
        """
        if callable(A):
            raise TypeError(
                "LeastSquares requires a dense matrix, not a linear operator."
            )

        A = jnp.asarray(A)
        b = jnp.asarray(b)
        if A.ndim != 2:
            raise ValueError(f"A must be a matrix, got {A.ndim} dimensions.")
        m, n = A.shape
        if b.shape != (m,):
            raise ValueError(
                f"b must have shape ({m},) to match A of shape {A.shape}, "
                f"got {b.shape}."
            )

        # SVD of a matrix holding NaN/inf is undefined, so solve a zero
        # system instead and flag the call as illegal.
        finite = jnp.all(jnp.isfinite(A)) & jnp.all(jnp.isfinite(b))
        A_safe = jnp.where(finite, A, jnp.zeros_like(A))
        b_safe = jnp.where(finite, b, jnp.zeros_like(b))

        x, _, rank, _ = jnp.linalg.lstsq(A_safe, b_safe, rcond=self.rcond)

        deficiency = (min(m, n) - rank).astype(jnp.int32)
        info = jnp.where(finite, deficiency, jnp.int32(-1))
        x = jnp.where(info == 0, x, jnp.zeros_like(x))
        return x, info
