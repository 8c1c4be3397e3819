import logging
import sys

import numpy as np

from .layers import Conv2D, FullyConnectedLayer
from .layers.Layer import Layer, LayerKind, ConvParams
from .loss.SquaredErrorLoss import SquaredErrorLoss
from .optimizer.SGDOptimizer import SGDOptimizer
from .helpers.random_init import nrnd, make_rng

logger = logging.getLogger(__name__)

# per-kind kernels; the input layer is never computed
_FORWARD = {
    LayerKind.FULL: FullyConnectedLayer.forward,
    LayerKind.CONV: Conv2D.forward,
}
_BACKWARD = {
    LayerKind.FULL: FullyConnectedLayer.backward,
    LayerKind.CONV: Conv2D.backward,
}


class Network:
    """
    Arena owning a linear chain of layers.

    Layers are created through add_input / add_full / add_conv and addressed
    by the integer id those return (their position in the chain, 0 = input).
    Each layer refers to its neighbours by id only, so the network is the
    single owner of every buffer.

    Typical training step:
        net.set_inputs(net.input_id, x)       # forward pass
        net.learn_outputs(net.output_id, y)   # backward pass, accumulates
        net.update(net.output_id, rate)       # apply + reset accumulators
    """

    def __init__(self, seed=None, rng=None):
        self.layers = []
        self.rng = rng if rng is not None else make_rng(seed)
        self.loss = SquaredErrorLoss()

    def __len__(self):
        return len(self.layers)

    def __getitem__(self, lid):
        return self._layer(lid)

    @property
    def input_id(self):
        return 0 if self.layers else None

    @property
    def output_id(self):
        if not self.layers:
            return None
        lid = 0
        while self.layers[lid].next is not None:
            lid = self.layers[lid].next
        return lid

    # ================== construction ==================
    def add_input(self, depth, width, height):
        if self.layers:
            raise ValueError("network already has an input layer")
        layer = Layer(0, LayerKind.INPUT, depth, width, height)
        return self._append(layer)

    def add_full(self, prev, nnodes, std, rng=None):
        lprev = self._tail(prev)
        layer = Layer(
            len(self.layers), LayerKind.FULL, nnodes, 1, 1,
            bias_shape=(nnodes,),
            weight_shape=(nnodes, lprev.nnodes),
            prev=lprev.lid,
        )
        layer.weights[...] = std * nrnd(rng if rng is not None else self.rng, layer.weights.shape)
        return self._append(layer)

    def add_conv(self, prev, depth, width, height,
                 kernel_size, padding, stride, std, rng=None):
        lprev = self._tail(prev)
        Conv2D.check_shape(lprev, width, height, kernel_size, padding, stride)
        layer = Layer(
            len(self.layers), LayerKind.CONV, depth, width, height,
            bias_shape=(depth,),
            weight_shape=(depth, lprev.depth, kernel_size, kernel_size),
            prev=lprev.lid,
            conv=ConvParams(kernel_size, padding, stride),
        )
        layer.weights[...] = std * nrnd(rng if rng is not None else self.rng, layer.weights.shape)
        return self._append(layer)

    def _tail(self, prev):
        lprev = self._layer(prev)
        if lprev.next is not None:
            raise ValueError(
                f"Layer{lprev.lid} already has a successor (Layer{lprev.next})"
            )
        return lprev

    def _append(self, layer):
        # buffers are fully allocated before the layer becomes reachable
        self.layers.append(layer)
        if layer.prev is not None:
            self.layers[layer.prev].next = layer.lid
        logger.debug(
            "created %r prev=%s nbiases=%d nweights=%d",
            layer, layer.prev, layer.nbiases, layer.nweights,
        )
        return layer.lid

    def _layer(self, lid):
        if isinstance(lid, bool) or not isinstance(lid, (int, np.integer)):
            raise ValueError(f"layer id must be an integer, got {lid!r}")
        if not 0 <= lid < len(self.layers):
            raise ValueError(f"unknown layer id {lid}")
        return self.layers[lid]

    # ================== forward ==================
    def set_inputs(self, lid, values):
        layer = self._layer(lid)
        if layer.kind is not LayerKind.INPUT:
            raise ValueError(f"set_inputs needs the input layer, got {layer!r}")
        values = np.asarray(values, dtype=np.float64)
        if values.size != layer.nnodes:
            raise ValueError(
                f"expected {layer.nnodes} input values, got {values.size}"
            )
        layer.outputs[...] = values.ravel()

        nxt = layer.next
        while nxt is not None:
            L = self.layers[nxt]
            _FORWARD[L.kind](L, self.layers[L.prev])
            nxt = L.next

    def get_outputs(self, lid, out=None):
        layer = self._layer(lid)
        if out is None:
            return layer.outputs.copy()
        if np.size(out) != layer.nnodes:
            raise ValueError(
                f"output buffer holds {np.size(out)} values, layer has {layer.nnodes}"
            )
        out[...] = np.reshape(layer.outputs, np.shape(out))
        return out

    def get_error_total(self, lid):
        return self.loss.total(self._layer(lid).errors)

    # ================== backward ==================
    def learn_outputs(self, lid, targets):
        layer = self._layer(lid)
        if layer.kind is LayerKind.INPUT:
            raise ValueError("learn_outputs cannot start from the input layer")
        targets = np.asarray(targets, dtype=np.float64)
        if targets.size != layer.nnodes:
            raise ValueError(
                f"expected {layer.nnodes} target values, got {targets.size}"
            )
        layer.errors[...] = self.loss.backward(layer.outputs, targets.ravel())

        while layer.prev is not None:
            lprev = self.layers[layer.prev]
            _BACKWARD[layer.kind](layer, lprev)
            layer = lprev

    # ================== update ==================
    def parameters(self, lid=None):
        # [param, accumulator] pairs from lid back to the input
        layer = self._layer(self.output_id if lid is None else lid)
        ps = []
        while True:
            for p, g in zip(layer.params(), layer.grads()):
                ps.append([p, g])
            if layer.prev is None:
                return ps
            layer = self.layers[layer.prev]

    def update(self, lid, rate):
        if lid is None:
            lid = self.output_id
        params = self.parameters(lid)
        logger.debug("update from Layer%d, rate=%g, %d arrays", lid, rate, len(params))
        SGDOptimizer(params, lr=rate).step()

    # ================== dump / model I/O ==================
    def dump(self, lid, fp=None):
        layer = self._layer(lid)
        prev = None if layer.prev is None else self.layers[layer.prev]
        layer.dump(sys.stdout if fp is None else fp, prev)

    def _pack_npz_state(self):
        arrays = {}
        for L in self.layers:
            if L.kind is LayerKind.INPUT:
                continue
            arrays[f"l{L.lid}_weights"] = L.weights
            arrays[f"l{L.lid}_biases"] = L.biases
        return arrays

    def save(self, path):
        np.savez(path, **self._pack_npz_state())

    def load(self, path):
        with np.load(path) as data:
            expected = self._pack_npz_state()
            if set(data.files) != set(expected):
                raise ValueError(
                    f"checkpoint {path} holds {sorted(data.files)}, "
                    f"network expects {sorted(expected)}"
                )
            for key, p in expected.items():
                if data[key].shape != p.shape:
                    raise ValueError(
                        f"{key}: checkpoint shape {data[key].shape} != {p.shape}"
                    )
            for key, p in expected.items():
                p[...] = data[key]
