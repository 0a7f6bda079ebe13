"""
JAX Euler

Explicit and Tustin/theta-blended implicit Euler steps for ODEs with
inputs, written in JAX. The implicit step is solved with a Newton-Raphson
root finder that uses least-squares linear solves, so the same root finder
also handles non-square systems.

Main components:
- timesteppers: StepConfig and EulerStepper
- rootfinders: NewtonRaphson root finder
- linsolvers: LeastSquares linear solver
- solve: trajectory drivers solve_ivp and solve_with_history
"""

# Matrix ordering and status codes
from .ordering import Ordering
from .status import NewtonOutcome, StepStatus, is_out_of_memory, step_status

# Linear solvers
from .linsolvers import LinearSolverProtocol, LeastSquares

# Root-finding algorithms
from .rootfinders import RootFinderProtocol, NewtonRaphson, NewtonResult

# Time-stepping schemes
from .timesteppers import (
    StepConfig,
    StepperProtocol,
    ImplicitContext,
    EulerStepper,
    StepResult,
)

# Solver interfaces
from .solve import solve_ivp, solve_with_history

__all__ = [
    # Ordering and status codes
    "Ordering",
    "NewtonOutcome",
    "StepStatus",
    "step_status",
    "is_out_of_memory",

    # Linear solvers
    "LinearSolverProtocol",
    "LeastSquares",

    # Root-finding algorithms
    "RootFinderProtocol",
    "NewtonRaphson",
    "NewtonResult",

    # Time-stepping methods
    "StepConfig",
    "StepperProtocol",
    "ImplicitContext",
    "EulerStepper",
    "StepResult",

    # Solver interfaces
    "solve_ivp",
    "solve_with_history",
]
