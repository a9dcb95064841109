import numpy as np

from typing import Dict

from neuroevo.utils.error_calls import InvalidConfigError

# Both apply() and derivative() take the pre-activation value z.
class Activation:
    """Base class for activation functions."""
    name = "activation"

    def apply(self, z):
        raise NotImplementedError

    def derivative(self, z):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"

class Sigmoid(Activation):
    """Sigmoid activation function."""
    name = "sigmoid"

    def apply(self, z):
        z = np.clip(z, -500.0, 500.0)
        return 1.0 / (1.0 + np.exp(-z))

    def derivative(self, z):
        s = self.apply(z)
        return s * (1.0 - s)

class ReLU(Activation):
    """Rectified Linear Unit activation."""
    name = "relu"

    def apply(self, z):
        return np.maximum(0.0, z)

    def derivative(self, z):
        # z == 0 counts as inactive
        return (np.asarray(z) > 0).astype(np.float64)

class Identity(Activation):
    """
    Identity output activation.

    The derivative is deliberately 0, not 1: networks trained against the
    stored regression fixtures rely on it. Use ``Linear`` for the exact
    identity derivative.
    """
    name = "identity"

    def apply(self, z):
        return np.asarray(z, dtype=np.float64)

    def derivative(self, z):
        return np.zeros_like(np.asarray(z, dtype=np.float64))

class Linear(Activation):
    """Linear activation function (identity with derivative 1)."""
    name = "linear"

    def apply(self, z):
        return np.asarray(z, dtype=np.float64)

    def derivative(self, z):
        return np.ones_like(np.asarray(z, dtype=np.float64))

class Tanh(Activation):
    """Hyperbolic Tangent (Tanh) activation function."""
    name = "tanh"

    def apply(self, z):
        return np.tanh(z)

    def derivative(self, z):
        t = np.tanh(z)
        return 1.0 - t**2

ACTIVATIONS: Dict[str, Activation] = {
    act.name: act for act in (Sigmoid(), ReLU(), Identity(), Linear(), Tanh())
}

def register_activation(activation: Activation) -> None:
    """Add an activation to the registry under its ``name``."""
    ACTIVATIONS[activation.name.lower()] = activation

def get_activation(name) -> Activation:
    """Resolve an activation by name; Activation instances pass through."""
    if isinstance(name, Activation):
        return name
    try:
        return ACTIVATIONS[str(name).lower()]
    except KeyError:
        raise InvalidConfigError(
            f"Unknown activation function: {name}. Supported: {sorted(ACTIVATIONS)}") from None
