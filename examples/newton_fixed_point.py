import jax
import jax.numpy as jnp
from jax_euler import NewtonRaphson, Ordering

jax.config.update("jax_enable_x64", True)


def residual(t, x, u, p, data):
    return jnp.array([
        2.0 * x[0] - x[1] - jnp.exp(-x[0]),
        -x[0] + 2.0 * x[1] - jnp.exp(-x[1]),
    ])


def jacobian(t, x, u, p, data):
    # Column-major
    return jnp.array([2.0 + jnp.exp(-x[0]), -1.0, -1.0, 2.0 + jnp.exp(-x[1])])


def main(x0=(10.0, 10.0)):
    """
    Find the root of
        2 x0 - x1 = exp(-x0)
        -x0 + 2 x1 = exp(-x1)
    whose components both equal the omega constant W(1).
    """
    solver = NewtonRaphson(
        f_tol=1e-12, x_tol=1e-12, maxiter=100, ordering=Ordering.COL_MAJOR
    )
    result = solver(residual, jacobian, jnp.array(x0))

    print(f"Outcome: {result.status.name}")
    print(f"Iterations: {int(result.iterations)}")
    print(f"Root: {result.x}")
    print(f"Residual norm: {float(result.f_norm):.3e}")
    print(f"Last step norm: {float(result.x_norm):.3e}")
    print(f"Error vs W(1): {float(jnp.max(jnp.abs(result.x - 0.5671432904097838))):.3e}")


if __name__ == "__main__":
    main()
