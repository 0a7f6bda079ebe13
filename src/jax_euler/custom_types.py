"""Type aliases to improve type hint readability."""

from typing import Any, Callable, Optional, Sequence
from jax import Array

type Params = Sequence[Array]
type VectorField = Callable[[Array, Array, Optional[Array], Params, Any], Array]
type JacobianFn = Callable[[Array, Array, Optional[Array], Params, Any], Array]
type ResidualFn = Callable[[Array, Array, Optional[Array], Params, Any], Array]
type InputSignal = Callable[[Array], Array]
