import jax
import jax.numpy as jnp
from matplotlib import pyplot as plt
from jax_euler import EulerStepper, Ordering, StepConfig, solve_with_history

jax.config.update("jax_enable_x64", True)

# Plant constants
A1 = 0.180  # upper tank cross-section
K = 0.003  # pump gain
a1 = 0.006  # upper tank outlet area
G = 9.810  # gravity
A2 = 0.080  # lower tank cross-section
a2 = 0.008  # lower tank outlet area


def two_tank(t, x, u, p, data):
    """
    Water levels of two tanks in cascade (Torricelli outflow):
    - dx0/dt = (K u - a1 sqrt(2 g x0)) / A1
    - dx1/dt = (a1 sqrt(2 g x0) - a2 sqrt(2 g x1)) / A2
    """
    return jnp.array([
        (K * u[0] - a1 * jnp.sqrt(2.0 * G * x[0])) / A1,
        (a1 * jnp.sqrt(2.0 * G * x[0]) - a2 * jnp.sqrt(2.0 * G * x[1])) / A2,
    ])


def two_tank_jac(t, x, u, p, data):
    # Column-major
    return jnp.array([
        -(a1 * jnp.sqrt(G)) / (A1 * jnp.sqrt(2.0 * x[0])),
        (a1 * jnp.sqrt(G)) / (A2 * jnp.sqrt(2.0 * x[0])),
        0.0,
        -(a2 * jnp.sqrt(G)) / (A2 * jnp.sqrt(2.0 * x[1])),
    ])


def pump_input(t):
    return jnp.where(t < 251.0, 10.0, jnp.where(t < 451.0, 5.0, 8.0))


def main(t_span=(0.0, 500.0), ts=1e-2, save_every=100):
    """
    Simulate the two-tank plant with the explicit Euler step and with the
    Tustin step, print sampled levels and plot both trajectories.

    Arguments:
        t_span - Simulation time (default (0.0, 500.0))
        ts - Step size (default 1e-2)
        save_every - Keep every n-th state (default 100)
    """
    x0 = jnp.array([1e-6, 0.1])

    explicit = StepConfig(ts=ts, x_size=2, alpha=0.0, fun=two_tank)
    tustin = StepConfig(
        ts=ts, x_size=2, alpha=0.5, ordering=Ordering.COL_MAJOR,
        s_tol=1e-12, x_tol=1e-12, maxiter=100, fun=two_tank, jac=two_tank_jac,
    )

    results = {}
    for name, config in [("explicit", explicit), ("tustin", tustin)]:
        results[name] = solve_with_history(
            EulerStepper(config), t_span, x0, u=pump_input,
            save_every=save_every, verbose=True,
        )

    t, x_e, _ = results["explicit"]
    _, x_t, _ = results["tustin"]

    for i in range(0, len(t), len(t) // 10):
        print(
            f"t={float(t[i]):7.2f}: explicit = ({x_e[i, 0]:.6f}, {x_e[i, 1]:.6f}), "
            f"tustin = ({x_t[i, 0]:.6f}, {x_t[i, 1]:.6f})"
        )
    print(f"Max difference: {float(jnp.max(jnp.abs(x_e - x_t))):.3e}")

    fig, ax = plt.subplots()
    ax.plot(t, x_e[:, 0], '-', label="Upper tank, explicit")
    ax.plot(t, x_t[:, 0], '--', label="Upper tank, Tustin")
    ax.plot(t, x_e[:, 1], '-', label="Lower tank, explicit")
    ax.plot(t, x_t[:, 1], '--', label="Lower tank, Tustin")
    ax.legend()
    ax.set_xlabel('t')
    ax.set_ylabel('level')
    plt.show()


if __name__ == "__main__":
    main()
