"""Row-major and column-major flattening of dense matrices."""

from enum import Enum

from jax import Array
import jax.numpy as jnp


class Ordering(Enum):
    """
    Memory ordering of a matrix flattened into a contiguous buffer.

    The value is the `order` argument understood by `jax.numpy.reshape`
    and `jax.numpy.ravel`.
    """

    ROW_MAJOR = "C"
    COL_MAJOR = "F"

    def to_matrix(self, buf: Array, rows: int, cols: int) -> Array:
        """
        Interpret `buf` as a (rows, cols) matrix.

        Args:
            buf: Flat buffer of rows * cols values in this ordering, or a
                2-dimensional array that already has shape (rows, cols).
            rows: Number of rows.
            cols: Number of columns.

        Returns:
            Matrix of shape (rows, cols).

        Raises:
            ValueError: If the buffer does not hold rows * cols values.
        """
        buf = jnp.asarray(buf)
        if buf.ndim == 2:
            if buf.shape != (rows, cols):
                raise ValueError(
                    f"Expected a ({rows}, {cols}) matrix, got shape {buf.shape}."
                )
            return buf
        if buf.size != rows * cols:
            raise ValueError(
                f"Expected {rows * cols} values for a ({rows}, {cols}) matrix, "
                f"got {buf.size}."
            )
        return jnp.reshape(buf, (rows, cols), order=self.value)

    def flatten(self, matrix: Array) -> Array:
        """Flatten a 2-dimensional matrix into a buffer in this ordering."""
        matrix = jnp.asarray(matrix)
        if matrix.ndim != 2:
            raise ValueError(f"Expected a matrix, got {matrix.ndim} dimensions.")
        return jnp.ravel(matrix, order=self.value)
