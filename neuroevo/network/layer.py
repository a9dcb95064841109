import numpy as np

from enum import Enum
from typing import Optional

from neuroevo.network.activation_engine import Activation, get_activation
from neuroevo.utils.error_calls import ShapeMismatchError, SequencingError
from neuroevo.utils.random_source import resolve_rng

class LayerState(Enum):
    UNINITIALIZED = "uninitialized"
    FORWARDED = "forwarded"
    BACKWARD_COMPUTED = "backward_computed"

class Layer:
    """
    Dense layer processing one sample at a time.

    Holds its weights (one row per output unit), biases, the values cached by
    the last forward call, the gradients written by the backward pass and the
    previous parameter deltas used for momentum.

    Call order is forward -> Loss.backward -> update. ``state`` tracks where
    the layer is in that cycle and ``update`` refuses to run on gradients
    that were not produced for the current forward.
    """
    def __init__(self, inputs: int, outputs: int, activation="sigmoid",
                 bias: float = 1.0, rng: Optional[np.random.Generator] = None,
                 weight_range: float = 1.0):
        if inputs <= 0 or outputs <= 0:
            raise ValueError(f"Layer dimensions must be positive, got {inputs}x{outputs}")
        rng = resolve_rng(rng)

        self.activation: Activation = get_activation(activation)
        self.weights = rng.uniform(-weight_range, weight_range, size=(outputs, inputs))
        self.biases = np.full(outputs, float(bias))

        self.last_input = np.zeros(inputs)
        self.pre_activation = np.zeros(outputs)

        self.weight_gradient = np.zeros((outputs, inputs))
        self.local_gradient = np.zeros(outputs)
        self.previous_weight_delta = np.zeros((outputs, inputs))
        self.previous_bias_delta = np.zeros(outputs)

        self.state = LayerState.UNINITIALIZED

    @property
    def inputs(self) -> int:
        return self.weights.shape[1]

    @property
    def outputs(self) -> int:
        return self.weights.shape[0]

    @property
    def parameter_count(self) -> int:
        return self.weights.size + self.biases.size

    @property
    def output(self) -> np.ndarray:
        """Activated output of the most recent forward call."""
        return self.activation.apply(self.pre_activation)

    def forward(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=np.float64).reshape(-1)
        if x.shape[0] != self.inputs:
            raise ShapeMismatchError(self.inputs, x.shape[0])

        z = self.weights @ x + self.biases
        self.last_input = x.copy()
        self.pre_activation = z
        self.state = LayerState.FORWARDED
        return self.activation.apply(z)

    def update(self, learning_rate: float, momentum: float = 0.0) -> None:
        if self.state is not LayerState.BACKWARD_COMPUTED:
            raise SequencingError(
                f"update() needs gradients from a backward pass, layer is {self.state.value}")

        delta_w = momentum * self.previous_weight_delta + learning_rate * self.weight_gradient
        delta_b = momentum * self.previous_bias_delta + learning_rate * self.local_gradient
        self.weights -= delta_w
        self.biases -= delta_b
        self.previous_weight_delta = delta_w
        self.previous_bias_delta = delta_b
        self.state = LayerState.UNINITIALIZED

    def zero_gradients(self) -> None:
        self.weight_gradient.fill(0.0)
        self.local_gradient.fill(0.0)

    def reset_momentum(self) -> None:
        self.previous_weight_delta.fill(0.0)
        self.previous_bias_delta.fill(0.0)

    def describe(self) -> dict:
        return {
            "inputs": self.inputs,
            "outputs": self.outputs,
            "activation": self.activation.name,
        }

    def __repr__(self):
        return f"Layer({self.inputs}, {self.outputs}, activation='{self.activation.name}')"
