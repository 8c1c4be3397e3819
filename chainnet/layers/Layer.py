import enum
from collections import namedtuple

import numpy as np


class LayerKind(enum.Enum):
    INPUT = 0
    FULL = 1
    CONV = 2


# Conv-only payload; kernel_size is odd, stride > 0, padding >= 0
ConvParams = namedtuple("ConvParams", ["kernel_size", "padding", "stride"])


class Layer:
    """
    One node of a linear layer chain.

    The record only holds data. Neighbours are referenced by their id in the
    owning Network (``prev`` / ``next``), and the kind-specific forward and
    backward kernels live in FullyConnectedLayer.py and Conv2D.py.

    Buffers:
        outputs, gradients, errors: (nnodes,) flat, index = z*W*H + y*W + x
        biases / u_biases: parameters and their update accumulators
        weights / u_weights: full -> (nnodes, prev.nnodes)
                             conv -> (depth, prev.depth, k, k)
    """

    def __init__(self, lid, kind, depth, width, height,
                 bias_shape=(0,), weight_shape=(0,), prev=None, conv=None):
        if depth <= 0 or width <= 0 or height <= 0:
            raise ValueError(
                f"Layer shape must be positive, got ({depth}, {width}, {height})"
            )
        self.lid = lid
        self.kind = kind
        self.prev = prev
        self.next = None
        self.conv = conv

        self.depth = depth
        self.width = width
        self.height = height
        self.nnodes = depth * width * height

        dtype = np.float64
        self.outputs = np.zeros(self.nnodes, dtype=dtype)
        self.gradients = np.zeros(self.nnodes, dtype=dtype)
        self.errors = np.zeros(self.nnodes, dtype=dtype)

        self.biases = np.zeros(bias_shape, dtype=dtype)
        self.u_biases = np.zeros(bias_shape, dtype=dtype)
        self.weights = np.zeros(weight_shape, dtype=dtype)
        self.u_weights = np.zeros(weight_shape, dtype=dtype)

    @property
    def shape(self):
        return (self.depth, self.width, self.height)

    @property
    def nbiases(self):
        return self.biases.size

    @property
    def nweights(self):
        return self.weights.size

    def output_volume(self):
        # (depth, height, width) view on the flat outputs
        return self.outputs.reshape(self.depth, self.height, self.width)

    # expose params / accumulators for the optimizer
    def params(self):
        if self.kind is LayerKind.INPUT:
            return []
        return [self.weights, self.biases]

    def grads(self):
        if self.kind is LayerKind.INPUT:
            return []
        return [self.u_weights, self.u_biases]

    def __repr__(self):
        return (
            f"Layer{self.lid}(kind={self.kind.name}, shape={self.shape}, "
            f"nnodes={self.nnodes})"
        )

    def dump(self, fp, prev=None):
        fp.write(f"Layer{self.lid} ")
        if prev is not None:
            fp.write(f"(lprev=Layer{prev.lid}) ")
        fp.write(
            f"shape=({self.depth},{self.width},{self.height}), nodes={self.nnodes}\n"
        )
        volume = self.output_volume()
        for z in range(self.depth):
            fp.write(f"  {z}:\n")
            for y in range(self.height):
                fp.write("    [" + _fmt(volume[z, y]) + "]\n")

        if self.kind is LayerKind.FULL:
            fp.write("  biases = [" + _fmt(self.biases) + "]\n")
            fp.write("  weights = [\n")
            for row in self.weights:
                fp.write("    [" + _fmt(row) + "]\n")
            fp.write("  ]\n")
        elif self.kind is LayerKind.CONV:
            fp.write(
                f"  stride={self.conv.stride}, kernsize={self.conv.kernel_size}\n"
            )
            for z in range(self.depth):
                fp.write(
                    f"  {z}: bias={self.biases[z]:.4f}, weights = ["
                    + _fmt(self.weights[z].ravel()) + "]\n"
                )


def _fmt(values):
    return "".join(f" {v:.4f}" for v in values)
