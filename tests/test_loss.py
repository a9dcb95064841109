import pytest
import numpy as np

from neuroevo.network.layer import Layer, LayerState
from neuroevo.network.loss import Loss
from neuroevo.network.neural_network import Network
from neuroevo.utils.error_calls import SizeMismatchError, SequencingError, InvalidConfigError

@pytest.fixture
def rng():
    return np.random.default_rng(2024)

def test_criterion_sums_elementwise_loss():
    assert Loss("mse").criterion([1.0, 3.0], [0.0, 1.0]) == pytest.approx(0.5 * 1 + 0.5 * 4)
    assert Loss("square_err").criterion([1.0, 3.0], [0.0, 1.0]) == pytest.approx(5.0)
    assert Loss("abs_err").criterion([1.0, -3.0], [0.0, 1.0]) == pytest.approx(5.0)

def test_item_returns_last_loss():
    loss = Loss()
    loss.criterion([0.0], [2.0])
    assert loss.item() == pytest.approx(2.0)

def test_criterion_size_mismatch():
    with pytest.raises(SizeMismatchError):
        Loss().criterion([1.0, 2.0], [1.0])

def test_unknown_loss_name():
    with pytest.raises(InvalidConfigError):
        Loss("hinge")

@pytest.mark.parametrize("loss_name,scale", [("mse", 1.0), ("square_err", 2.0)])
def test_single_layer_update_by_hand(rng, loss_name, scale):
    layer = Layer(2, 1, activation="sigmoid", bias=1.0, rng=rng)
    layer.weights[:] = 1.0
    net = Network([layer])
    loss = Loss(loss_name)

    output = net.forward([1.0, 1.0])
    assert layer.pre_activation[0] == 3.0
    assert output[0] == pytest.approx(0.9525741268224334)

    loss.criterion(output, [1.0])
    loss.backward(net)
    o = output[0]
    delta = scale * (o - 1.0) * o * (1.0 - o)
    assert layer.local_gradient[0] == pytest.approx(delta)
    np.testing.assert_allclose(layer.weight_gradient, [[delta, delta]])

    net.update(learning_rate=0.1, momentum=0.0)
    np.testing.assert_allclose(layer.weights, [[1.0 - 0.1 * delta, 1.0 - 0.1 * delta]])
    np.testing.assert_allclose(layer.biases, [1.0 - 0.1 * delta])

@pytest.mark.parametrize("loss_name", ["mse", "square_err"])
def test_gradients_match_finite_differences(rng, loss_name):
    net = Network([Layer(3, 4, activation="tanh", rng=rng),
                   Layer(4, 2, activation="sigmoid", rng=rng)])
    loss = Loss(loss_name)
    x = np.array([0.2, -0.7, 0.4])
    d = np.array([0.1, 0.9])

    loss.criterion(net.forward(x), d)
    loss.backward(net)
    analytic_w = [layer.weight_gradient.copy() for layer in net.layers]
    analytic_b = [layer.local_gradient.copy() for layer in net.layers]

    eps = 1e-6
    def loss_at():
        return loss.criterion(net.forward(x), d)

    for l, layer in enumerate(net.layers):
        for idx in np.ndindex(layer.weights.shape):
            original = layer.weights[idx]
            layer.weights[idx] = original + eps
            up = loss_at()
            layer.weights[idx] = original - eps
            down = loss_at()
            layer.weights[idx] = original
            assert (up - down) / (2 * eps) == pytest.approx(analytic_w[l][idx], abs=1e-6)
        for k in range(layer.outputs):
            original = layer.biases[k]
            layer.biases[k] = original + eps
            up = loss_at()
            layer.biases[k] = original - eps
            down = loss_at()
            layer.biases[k] = original
            assert (up - down) / (2 * eps) == pytest.approx(analytic_b[l][k], abs=1e-6)

def test_backward_sets_state(rng):
    net = Network.from_architecture([2, 3, 1], rng=rng)
    loss = Loss()
    loss.criterion(net.forward([0.5, 0.5]), [1.0])
    loss.backward(net)
    assert all(layer.state is LayerState.BACKWARD_COMPUTED for layer in net.layers)
    net.update(0.1)
    assert all(layer.state is LayerState.UNINITIALIZED for layer in net.layers)

def test_identity_output_layer_gets_zero_gradient(rng):
    net = Network([Layer(2, 2, activation="relu", rng=rng),
                   Layer(2, 1, activation="identity", rng=rng)])
    loss = Loss()
    loss.criterion(net.forward([1.0, 2.0]), [10.0])
    loss.backward(net)
    assert not net[1].local_gradient.any()
    assert not net[1].weight_gradient.any()
    assert not net[0].local_gradient.any()

def test_backward_without_criterion(rng):
    net = Network.from_architecture([2, 1], rng=rng)
    net.forward([1.0, 1.0])
    with pytest.raises(SequencingError):
        Loss().backward(net)

def test_backward_consumes_criterion(rng):
    net = Network.from_architecture([2, 1], rng=rng)
    loss = Loss()
    loss.criterion(net.forward([1.0, 1.0]), [0.0])
    loss.backward(net)
    with pytest.raises(SequencingError):
        loss.backward(net)

def test_backward_without_forward(rng):
    net = Network.from_architecture([2, 1], rng=rng)
    loss = Loss()
    loss.criterion([0.5], [0.0])
    with pytest.raises(SequencingError):
        loss.backward(net)

def test_backward_output_size_mismatch(rng):
    net = Network.from_architecture([2, 1], rng=rng)
    loss = Loss()
    net.forward([1.0, 1.0])
    loss.criterion([0.5, 0.5], [0.0, 1.0])
    with pytest.raises(SizeMismatchError):
        loss.backward(net)

def test_update_twice_without_backward(rng):
    net = Network.from_architecture([2, 1], rng=rng)
    loss = Loss()
    loss.criterion(net.forward([1.0, 1.0]), [0.0])
    loss.backward(net)
    net.update(0.1)
    with pytest.raises(SequencingError):
        net.update(0.1)

def test_backward_needs_fresh_forward_after_new_criterion(rng):
    net = Network.from_architecture([2, 2, 1], rng=rng)
    loss = Loss()
    loss.criterion(net.forward([1.0, 0.5]), [1.0])
    loss.backward(net)
    loss.criterion([0.2], [0.0])
    with pytest.raises(SequencingError):
        loss.backward(net)

def test_new_criterion_discards_previous_gradients(rng):
    net = Network.from_architecture([2, 2, 1], rng=rng)
    loss = Loss()
    loss.criterion(net.forward([1.0, 0.5]), [1.0])
    loss.backward(net)
    before = net.flatten_parameters()

    loss.criterion([0.2], [0.0])
    assert all(layer.state is LayerState.UNINITIALIZED for layer in net.layers)
    with pytest.raises(SequencingError):
        net.update(0.1)
    np.testing.assert_array_equal(net.flatten_parameters(), before)

def test_criterion_keeps_forwarded_layers(rng):
    net = Network.from_architecture([2, 1], rng=rng)
    loss = Loss()
    loss.criterion(net.forward([1.0, 0.5]), [1.0])
    loss.backward(net)
    net.update(0.1)

    loss.criterion(net.forward([0.0, 1.0]), [0.0])
    assert net[0].state is LayerState.FORWARDED
    loss.backward(net)
    net.update(0.1)
