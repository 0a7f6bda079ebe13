"""Linear solvers used inside the Newton-Raphson root finder."""

from .protocol import LinearSolverProtocol
from .lstsq import LeastSquares


__all__ = [
    # Protocol
    "LinearSolverProtocol",

    # Direct solvers
    "LeastSquares",
]
