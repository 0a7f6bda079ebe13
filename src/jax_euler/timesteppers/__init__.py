"""Time-stepping schemes for initial value problems with inputs."""

from .config import StepConfig
from .protocol import StepperProtocol
from .formulation import ImplicitContext, autodiff_jacobian, split_input
from .euler import EulerStepper, StepResult

__all__ = [
    # Configuration
    'StepConfig',

    # Protocol
    'StepperProtocol',

    # Implicit step equation
    'ImplicitContext',
    'autodiff_jacobian',
    'split_input',

    # Euler methods
    'EulerStepper',
    'StepResult',
]
