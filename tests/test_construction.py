"""
test_construction.py
~~~~~~~~~~~~~~~~~~~~

Unit tests for building layer chains inside a Network.
"""

import numpy as np
import pytest

from chainnet import Network, LayerKind, ConvParams


@pytest.mark.unit
class TestInputLayer:
    """Input layer construction."""

    def test_shape_and_buffers(self):
        net = Network(seed=0)
        lid = net.add_input(2, 3, 4)
        layer = net[lid]

        assert lid == 0
        assert layer.kind is LayerKind.INPUT
        assert layer.shape == (2, 3, 4)
        assert layer.nnodes == 24
        assert layer.prev is None and layer.next is None
        assert layer.nbiases == 0 and layer.nweights == 0
        assert layer.params() == [] and layer.grads() == []
        for buf in (layer.outputs, layer.gradients, layer.errors):
            assert buf.shape == (24,)
            assert not buf.any()

    def test_second_input_rejected(self):
        net = Network(seed=0)
        net.add_input(1, 2, 2)
        with pytest.raises(ValueError):
            net.add_input(1, 2, 2)
        assert len(net) == 1

    def test_non_positive_shape_rejected(self):
        with pytest.raises(ValueError):
            Network(seed=0).add_input(0, 2, 2)

    def test_empty_network_ids(self):
        net = Network(seed=0)
        assert net.input_id is None
        assert net.output_id is None


@pytest.mark.unit
class TestFullLayer:
    """Fully-connected layer construction."""

    def test_sizes_and_links(self):
        net = Network(seed=0)
        linput = net.add_input(2, 3, 1)
        lfull = net.add_full(linput, 5, std=0.1)
        layer = net[lfull]

        assert lfull == 1
        assert layer.kind is LayerKind.FULL
        assert layer.shape == (5, 1, 1)
        assert layer.weights.shape == (5, 6)
        assert layer.nweights == 30
        assert layer.nbiases == 5
        assert layer.u_weights.shape == layer.weights.shape
        assert layer.u_biases.shape == layer.biases.shape
        assert layer.prev == linput
        assert net[linput].next == lfull
        assert net.output_id == lfull

    def test_biases_zero_weights_random(self):
        net = Network(seed=0)
        lfull = net.add_full(net.add_input(1, 4, 4), 8, std=0.1)
        layer = net[lfull]
        assert not layer.biases.any()
        assert not layer.u_biases.any() and not layer.u_weights.any()
        assert np.std(layer.weights) > 0
        assert np.max(np.abs(layer.weights)) <= 0.1 * 2 * 1.724 + 1e-12

    def test_zero_std_gives_zero_weights(self):
        net = Network(seed=0)
        lfull = net.add_full(net.add_input(1, 3, 1), 4, std=0.0)
        assert not net[lfull].weights.any()

    def test_same_seed_same_weights(self):
        a, b = Network(seed=42), Network(seed=42)
        for net in (a, b):
            net.add_full(net.add_input(1, 5, 1), 3, std=1.0)
        np.testing.assert_array_equal(a[1].weights, b[1].weights)

    def test_explicit_generator_is_used(self):
        a = Network(seed=5)
        a.add_full(a.add_input(1, 5, 1), 3, std=1.0)
        b = Network(seed=99)
        b.add_full(b.add_input(1, 5, 1), 3, std=1.0, rng=np.random.default_rng(5))
        np.testing.assert_array_equal(a[1].weights, b[1].weights)

    def test_predecessor_with_successor_rejected(self):
        net = Network(seed=0)
        linput = net.add_input(1, 3, 1)
        net.add_full(linput, 2, std=0.1)
        with pytest.raises(ValueError):
            net.add_full(linput, 2, std=0.1)
        assert len(net) == 2
        assert net[linput].next == 1

    def test_unknown_predecessor_rejected(self):
        net = Network(seed=0)
        net.add_input(1, 3, 1)
        with pytest.raises(ValueError):
            net.add_full(3, 2, std=0.1)
        with pytest.raises(ValueError):
            net.add_full(None, 2, std=0.1)


@pytest.mark.unit
class TestConvLayer:
    """Convolutional layer construction and shape validation."""

    def test_sizes(self):
        net = Network(seed=0)
        linput = net.add_input(3, 8, 6)
        lconv = net.add_conv(linput, 4, 4, 3, kernel_size=3, padding=1, stride=2, std=0.1)
        layer = net[lconv]

        assert layer.kind is LayerKind.CONV
        assert layer.conv == ConvParams(kernel_size=3, padding=1, stride=2)
        assert layer.shape == (4, 4, 3)
        assert layer.nnodes == 48
        assert layer.weights.shape == (4, 3, 3, 3)
        assert layer.nweights == 4 * 3 * 3 * 3
        assert layer.nbiases == 4
        assert not layer.biases.any()

    def test_mnist_reference_shapes_accepted(self):
        net = Network(seed=0)
        linput = net.add_input(1, 28, 28)
        lconv1 = net.add_conv(linput, 16, 14, 14, kernel_size=3, padding=1, stride=2, std=0.1)
        lconv2 = net.add_conv(lconv1, 32, 7, 7, kernel_size=3, padding=1, stride=2, std=0.1)
        assert net[lconv2].nweights == 32 * 16 * 9

    @pytest.mark.parametrize("kernel_size", [0, 2, 4, -1])
    def test_kernel_must_be_odd(self, kernel_size):
        net = Network(seed=0)
        linput = net.add_input(1, 8, 8)
        with pytest.raises(ValueError):
            net.add_conv(linput, 1, 4, 4, kernel_size=kernel_size, padding=1, stride=1, std=0.1)
        assert len(net) == 1
        assert net[linput].next is None

    def test_stride_must_be_positive(self):
        net = Network(seed=0)
        linput = net.add_input(1, 8, 8)
        with pytest.raises(ValueError):
            net.add_conv(linput, 1, 4, 4, kernel_size=3, padding=1, stride=0, std=0.1)

    def test_negative_padding_rejected(self):
        net = Network(seed=0)
        linput = net.add_input(1, 8, 8)
        with pytest.raises(ValueError):
            net.add_conv(linput, 1, 4, 4, kernel_size=1, padding=-1, stride=1, std=0.1)

    def test_width_too_large_rejected(self):
        net = Network(seed=0)
        linput = net.add_input(1, 5, 5)
        # (6-1)*1 + 3 = 8 > 5 + 2
        with pytest.raises(ValueError, match="width"):
            net.add_conv(linput, 1, 6, 5, kernel_size=3, padding=1, stride=1, std=0.1)
        assert len(net) == 1

    def test_height_too_large_rejected(self):
        net = Network(seed=0)
        linput = net.add_input(1, 5, 5)
        # (4-1)*2 + 3 = 9 > 5 + 2
        with pytest.raises(ValueError, match="height"):
            net.add_conv(linput, 1, 3, 4, kernel_size=3, padding=1, stride=2, std=0.1)
        assert net[linput].next is None

    def test_exact_fit_accepted(self):
        net = Network(seed=0)
        linput = net.add_input(1, 5, 5)
        # (3-1)*2 + 3 = 7 == 5 + 2
        lconv = net.add_conv(linput, 1, 3, 3, kernel_size=3, padding=1, stride=2, std=0.1)
        assert net[lconv].nnodes == 9
