from neuroevo.network.activation_engine import (
    Activation, Sigmoid, ReLU, Identity, Linear, Tanh, get_activation, register_activation)
from neuroevo.network.layer import Layer, LayerState
from neuroevo.network.neural_network import Network
from neuroevo.network.loss import Loss
from neuroevo.network.trainer import GradientTrainer
__all__ = ['Activation', 'Sigmoid', 'ReLU', 'Identity', 'Linear', 'Tanh', 'get_activation',
           'register_activation', 'Layer', 'LayerState', 'Network', 'Loss', 'GradientTrainer']
