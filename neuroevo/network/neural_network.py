import numpy as np

from typing import Iterable, List, Optional, Sequence

from neuroevo.network.layer import Layer, LayerState
from neuroevo.utils.config_loader import get_config_section
from neuroevo.utils.error_calls import ShapeMismatchError, ParameterCountMismatchError
from logs.logger import get_logger

logger = get_logger("Neural Network")

class Network:
    """
    Ordered stack of dense layers.

    Parameters are exposed as one flat vector so the gradient trainer and
    the population optimizers can work on the same model. The flat layout is,
    for each layer in order, every weight row (row-major) followed by the
    layer's biases.
    """
    def __init__(self, layers: Sequence[Layer]):
        if not layers:
            raise ValueError("A network needs at least one layer")
        for i in range(1, len(layers)):
            if layers[i - 1].outputs != layers[i].inputs:
                raise ShapeMismatchError(
                    layers[i].inputs, layers[i - 1].outputs, where=f"layer {i}")
        self.layers: List[Layer] = list(layers)
        self.parameter_count = sum(layer.parameter_count for layer in self.layers)

        logger.info(f"Neural Network initialized: {self.architecture} "
                    f"({self.parameter_count} parameters)")

    @classmethod
    def from_architecture(cls, sizes: Sequence[int], activations=None,
                          bias: Optional[float] = None, rng=None) -> "Network":
        """
        Build a network from layer sizes, e.g. ``[8, 4, 1]``.

        ``activations`` is one name for every layer or a list with one entry
        per weight layer. Missing values come from the ``network`` config
        section.
        """
        if len(sizes) < 2:
            raise ValueError(f"Architecture needs at least input and output sizes, got {sizes}")
        nn_config = get_config_section('network')
        n_layers = len(sizes) - 1
        if bias is None:
            bias = nn_config.get('bias', 1.0)
        weight_range = nn_config.get('weight_range', 1.0)

        if activations is None:
            hidden = nn_config.get('hidden_activation', 'sigmoid')
            output = nn_config.get('output_activation', 'sigmoid')
            activations = [hidden] * (n_layers - 1) + [output]
        elif isinstance(activations, str):
            activations = [activations] * n_layers
        if len(activations) != n_layers:
            raise ValueError(f"Expected {n_layers} activations, got {len(activations)}")

        layers = [
            Layer(sizes[i], sizes[i + 1], activation=activations[i], bias=bias,
                  rng=rng, weight_range=weight_range)
            for i in range(n_layers)
        ]
        return cls(layers)

    @property
    def architecture(self) -> List[int]:
        return [self.layers[0].inputs] + [layer.outputs for layer in self.layers]

    def forward(self, inputs) -> np.ndarray:
        result = self.layers[0].forward(inputs)
        for layer in self.layers[1:]:
            result = layer.forward(result)
        return result

    def predict(self, samples: Iterable) -> List[np.ndarray]:
        """Forward every input in ``samples``."""
        return [self.forward(x) for x in samples]

    def update(self, learning_rate: float, momentum: float = 0.0) -> None:
        for layer in self.layers:
            layer.update(learning_rate, momentum)

    def zero_gradients(self) -> None:
        for layer in self.layers:
            layer.zero_gradients()

    def reset_momentum(self) -> None:
        for layer in self.layers:
            layer.reset_momentum()

    def flatten_parameters(self) -> np.ndarray:
        parts = []
        for layer in self.layers:
            parts.append(layer.weights.reshape(-1))
            parts.append(layer.biases)
        return np.concatenate(parts)

    def restore_parameters(self, params) -> None:
        vector = np.asarray(params, dtype=np.float64).reshape(-1)
        if vector.shape[0] != self.parameter_count:
            raise ParameterCountMismatchError(self.parameter_count, vector.shape[0])

        idx = 0
        for layer in self.layers:
            n_weights = layer.weights.size
            layer.weights = vector[idx:idx + n_weights].reshape(layer.outputs, layer.inputs).copy()
            idx += n_weights
            layer.biases = vector[idx:idx + layer.outputs].copy()
            idx += layer.outputs
            # Cached forward values no longer belong to these weights
            layer.state = LayerState.UNINITIALIZED

    def describe(self) -> List[dict]:
        """Layer shapes and activation names, enough to rebuild the network."""
        return [layer.describe() for layer in self.layers]

    def __len__(self):
        return len(self.layers)

    def __getitem__(self, index) -> Layer:
        return self.layers[index]

    def __repr__(self):
        return f"Network({self.architecture}, parameters={self.parameter_count})"
