import numpy as np

from typing import Callable, Dict, Tuple

from neuroevo.network.layer import LayerState
from neuroevo.utils.error_calls import SizeMismatchError, SequencingError, InvalidConfigError

# --- Elementwise loss functions: (loss(o, d), dloss/do) ---
def mse(output, desired):
    """L = 0.5 * (output - desired)^2"""
    return 0.5 * (output - desired) ** 2

def mse_derivative(output, desired):
    return output - desired

def square_err(output, desired):
    return (output - desired) ** 2

def square_err_derivative(output, desired):
    return 2.0 * (output - desired)

def abs_err(output, desired):
    return np.abs(output - desired)

def abs_err_derivative(output, desired):
    return np.sign(output - desired)

LOSS_FUNCTIONS: Dict[str, Tuple[Callable, Callable]] = {
    'mse': (mse, mse_derivative),
    'square_err': (square_err, square_err_derivative),
    'abs_err': (abs_err, abs_err_derivative),
}

class Loss:
    """
    Summed elementwise loss plus the backward pass that fills every layer's
    gradients.

    ``criterion`` caches the (outputs, desired) pair it was given and
    ``backward`` consumes it, so each criterion call can drive exactly one
    backward call. The derivative convention is ``output - desired``; layer
    updates subtract the resulting gradients.
    """
    def __init__(self, name: str = "mse"):
        key = name.lower()
        if key not in LOSS_FUNCTIONS:
            raise InvalidConfigError(f"Unknown loss function: {name}. Supported: {sorted(LOSS_FUNCTIONS)}")
        self.name = key
        self.loss_fn, self.loss_derivative = LOSS_FUNCTIONS[key]

        self._outputs = None
        self._desired = None
        self._loss = 0.0
        self._last_network = None

    def criterion(self, outputs, desired) -> float:
        outputs = np.asarray(outputs, dtype=np.float64).reshape(-1)
        desired = np.asarray(desired, dtype=np.float64).reshape(-1)
        if outputs.shape[0] != desired.shape[0]:
            raise SizeMismatchError(outputs.shape[0], desired.shape[0])

        self._invalidate_gradients()
        self._outputs = outputs
        self._desired = desired
        loss = float(np.sum(self.loss_fn(outputs, desired)))
        self._loss = loss
        return loss

    def _invalidate_gradients(self) -> None:
        """Gradients from the previous backward no longer match the pending pair."""
        network, self._last_network = self._last_network, None
        if network is None:
            return
        for layer in network.layers:
            if layer.state is LayerState.BACKWARD_COMPUTED:
                layer.state = LayerState.UNINITIALIZED

    def item(self) -> float:
        return self._loss

    def backward(self, network) -> None:
        if self._outputs is None:
            raise SequencingError("backward() called without a pending criterion()")
        layers = network.layers
        for i, layer in enumerate(layers):
            if layer.state is not LayerState.FORWARDED:
                raise SequencingError(
                    f"backward() needs a fresh forward pass, layer {i} is {layer.state.value}")
        if layers[-1].outputs != self._outputs.shape[0]:
            raise SizeMismatchError(layers[-1].outputs, self._outputs.shape[0])

        # Output layer: dL/dz = dL/da * da/dz
        output_layer = layers[-1]
        delta = (self.loss_derivative(self._outputs, self._desired)
                 * output_layer.activation.derivative(output_layer.pre_activation))

        for l in reversed(range(len(layers))):
            layer = layers[l]
            if l < len(layers) - 1:
                # Error signal sent back through the next layer's weights
                upstream = layers[l + 1]
                delta = (layer.activation.derivative(layer.pre_activation)
                         * (upstream.weights.T @ upstream.local_gradient))

            layer.local_gradient = delta
            # last_input is the previous layer's activated output, or the network input
            layer.weight_gradient = np.outer(delta, layer.last_input)
            layer.state = LayerState.BACKWARD_COMPUTED

        self._outputs = None
        self._desired = None
        self._last_network = network

    def __repr__(self):
        return f"Loss('{self.name}')"
