import pytest
import numpy as np

from neuroevo.network.layer import Layer, LayerState
from neuroevo.utils.error_calls import ShapeMismatchError, SequencingError

@pytest.fixture
def rng():
    return np.random.default_rng(42)

def test_new_layer_shapes(rng):
    layer = Layer(2, 3, activation="identity", bias=1.0, rng=rng)
    assert layer.weights.shape == (3, 2)
    assert layer.biases.shape == (3,)
    assert layer.weight_gradient.shape == (3, 2)
    assert layer.previous_weight_delta.shape == (3, 2)
    assert layer.local_gradient.shape == (3,)
    assert layer.previous_bias_delta.shape == (3,)
    assert layer.last_input.shape == (2,)
    assert (layer.inputs, layer.outputs, layer.parameter_count) == (2, 3, 9)
    assert np.all(layer.biases == 1.0)
    assert np.all((layer.weights >= -1.0) & (layer.weights <= 1.0))
    assert layer.state is LayerState.UNINITIALIZED

def test_forward_single_output(rng):
    layer = Layer(2, 1, activation="sigmoid", bias=1.0, rng=rng)
    layer.weights[:] = 1.0

    result = layer.forward([1.0, 1.0])
    assert result[0] == pytest.approx(0.9525741268224334)
    assert layer.pre_activation[0] == 3.0
    assert layer.state is LayerState.FORWARDED

def test_forward_two_outputs(rng):
    layer = Layer(2, 2, activation="sigmoid", bias=1.0, rng=rng)
    for j in range(layer.outputs):
        layer.weights[j, :] = j + 1.0

    result = layer.forward([0.0, 1.0])
    np.testing.assert_array_equal(layer.pre_activation, [2.0, 3.0])
    assert result[0] == pytest.approx(0.8807970779778823)
    assert result[1] == pytest.approx(0.9525741268224334)
    np.testing.assert_array_equal(layer.last_input, [0.0, 1.0])

@pytest.mark.parametrize("inputs,outputs", [(1, 1), (3, 5), (8, 4), (30, 15)])
def test_forward_output_length(rng, inputs, outputs):
    layer = Layer(inputs, outputs, rng=rng)
    assert layer.forward(rng.normal(size=inputs)).shape == (outputs,)

def test_forward_is_deterministic(rng):
    layer = Layer(4, 3, activation="tanh", rng=rng)
    x = [0.1, -0.2, 0.3, 0.7]
    np.testing.assert_array_equal(layer.forward(x), layer.forward(x))

def test_forward_shape_mismatch_leaves_state_untouched(rng):
    layer = Layer(3, 2, rng=rng)
    layer.forward([1.0, 2.0, 3.0])
    cached_input = layer.last_input.copy()
    cached_z = layer.pre_activation.copy()

    with pytest.raises(ShapeMismatchError):
        layer.forward([1.0, 2.0])

    np.testing.assert_array_equal(layer.last_input, cached_input)
    np.testing.assert_array_equal(layer.pre_activation, cached_z)
    assert layer.state is LayerState.FORWARDED

def test_update_requires_backward(rng):
    layer = Layer(2, 1, rng=rng)
    with pytest.raises(SequencingError):
        layer.update(0.1, 0.0)
    layer.forward([1.0, 0.0])
    with pytest.raises(SequencingError):
        layer.update(0.1, 0.0)

def test_update_applies_momentum(rng):
    layer = Layer(2, 1, rng=rng)
    layer.weights[:] = 1.0
    layer.biases[:] = 1.0
    layer.weight_gradient = np.array([[0.5, -1.0]])
    layer.local_gradient = np.array([0.25])
    layer.previous_weight_delta = np.array([[0.2, 0.2]])
    layer.previous_bias_delta = np.array([0.4])
    layer.state = LayerState.BACKWARD_COMPUTED

    layer.update(learning_rate=0.1, momentum=0.5)

    np.testing.assert_allclose(layer.previous_weight_delta, [[0.15, 0.0]])
    np.testing.assert_allclose(layer.weights, [[0.85, 1.0]])
    np.testing.assert_allclose(layer.previous_bias_delta, [0.225])
    np.testing.assert_allclose(layer.biases, [0.775])
    assert layer.state is LayerState.UNINITIALIZED

def test_zero_gradients_and_reset_momentum(rng):
    layer = Layer(2, 2, rng=rng)
    layer.weight_gradient[:] = 3.0
    layer.local_gradient[:] = 3.0
    layer.previous_weight_delta[:] = 1.0
    layer.previous_bias_delta[:] = 1.0

    layer.zero_gradients()
    layer.reset_momentum()

    assert not layer.weight_gradient.any()
    assert not layer.local_gradient.any()
    assert not layer.previous_weight_delta.any()
    assert not layer.previous_bias_delta.any()

def test_describe(rng):
    assert Layer(4, 2, activation="relu", rng=rng).describe() == {
        "inputs": 4, "outputs": 2, "activation": "relu"}

def test_invalid_dimensions():
    with pytest.raises(ValueError):
        Layer(0, 3)
