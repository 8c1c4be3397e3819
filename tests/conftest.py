"""
conftest.py
~~~~~~~~~~~

Shared fixtures and loop-based reference implementations for the tests.
"""

import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

from chainnet import Network


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def mlp():
    """input(1,3,1) -> full(4, tanh) -> full(2, softmax)."""
    net = Network(seed=7)
    linput = net.add_input(1, 3, 1)
    lhidden = net.add_full(linput, 4, std=0.5)
    net.add_full(lhidden, 2, std=0.5)
    return net


@pytest.fixture
def mixed_chain():
    """input(1,6,6) -> conv(2,6,6,k3,p1,s1) -> full(4) -> full(3)."""
    net = Network(seed=11)
    linput = net.add_input(1, 6, 6)
    lconv = net.add_conv(linput, 2, 6, 6, kernel_size=3, padding=1, stride=1, std=0.5)
    lfull = net.add_full(lconv, 4, std=0.5)
    net.add_full(lfull, 3, std=0.5)
    return net


def naive_conv_forward(x, weights, biases, out_w, out_h, k, p, s):
    """Pre-activation of a convolution, one output pixel at a time."""
    C, H, W = x.shape
    D = weights.shape[0]
    out = np.zeros((D, out_h, out_w))
    for z1 in range(D):
        for y1 in range(out_h):
            for x1 in range(out_w):
                v = biases[z1]
                for z0 in range(C):
                    for dy in range(k):
                        for dx in range(k):
                            yy = y1 * s - p + dy
                            xx = x1 * s - p + dx
                            if 0 <= yy < H and 0 <= xx < W:
                                v += weights[z1, z0, dy, dx] * x[z0, yy, xx]
                out[z1, y1, x1] = v
    return out


def naive_conv_backward(x, weights, dnet, k, p, s):
    """
    Errors for the predecessor and weight/bias accumulations of a convolution.

    dnet: (D, out_h, out_w) = errors * gradients of the conv layer
    """
    C, H, W = x.shape
    D, out_h, out_w = dnet.shape
    prev_errors = np.zeros_like(x)
    u_weights = np.zeros_like(weights)
    u_biases = np.zeros(D)
    for z1 in range(D):
        for y1 in range(out_h):
            for x1 in range(out_w):
                d = dnet[z1, y1, x1]
                for z0 in range(C):
                    for dy in range(k):
                        for dx in range(k):
                            yy = y1 * s - p + dy
                            xx = x1 * s - p + dx
                            if 0 <= yy < H and 0 <= xx < W:
                                prev_errors[z0, yy, xx] += weights[z1, z0, dy, dx] * d
                                u_weights[z1, z0, dy, dx] += d * x[z0, yy, xx]
                u_biases[z1] += d
    return prev_errors, u_weights, u_biases
