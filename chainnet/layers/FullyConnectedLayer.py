import numpy as np

from .Layer import LayerKind
from ..helpers.activations import tanh, tanh_grad, softmax


def forward(layer, prev):
    # prev.outputs: (prev.nnodes,)
    # weights: (nnodes, prev.nnodes), row i feeds output node i
    assert layer.kind is LayerKind.FULL
    x = layer.biases + np.matmul(layer.weights, prev.outputs)

    if layer.next is None:
        # Last layer - softmax. The gradients are all set to 1, which is only
        # exact when paired with a cross-entropy style error (outputs - targets).
        layer.outputs[...] = softmax(x)
        layer.gradients[...] = 1.0
    else:
        y = tanh(x)
        layer.outputs[...] = y
        layer.gradients[...] = tanh_grad(y)


def backward(layer, prev):
    assert layer.kind is LayerKind.FULL
    prev.errors[...] = 0.0

    dnet = layer.errors * layer.gradients                      # (nnodes,)
    prev.errors += np.matmul(layer.weights.T, dnet)            # (prev.nnodes,)
    layer.u_weights += np.outer(dnet, prev.outputs)            # (nnodes, prev.nnodes)
    layer.u_biases += dnet
