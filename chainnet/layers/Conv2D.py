import numpy as np

from .Layer import LayerKind
from ..helpers.activations import relu, relu_grad


def check_shape(prev, width, height, kernel_size, padding, stride):
    """
    Validate a convolution against its predecessor.

    Every output window, shifted by the padding, must stay inside the padded
    input: (out - 1) * stride + kernel_size <= in + 2 * padding.
    """
    if kernel_size <= 0 or kernel_size % 2 != 1:
        raise ValueError(f"kernel_size must be a positive odd number, got {kernel_size}")
    if stride <= 0:
        raise ValueError(f"stride must be positive, got {stride}")
    if padding < 0:
        raise ValueError(f"padding must be non-negative, got {padding}")
    if (width - 1) * stride + kernel_size > prev.width + 2 * padding:
        raise ValueError(
            f"conv width {width} does not fit input width {prev.width} "
            f"(kernel_size={kernel_size}, padding={padding}, stride={stride})"
        )
    if (height - 1) * stride + kernel_size > prev.height + 2 * padding:
        raise ValueError(
            f"conv height {height} does not fit input height {prev.height} "
            f"(kernel_size={kernel_size}, padding={padding}, stride={stride})"
        )


# ----- helpers -----
def _pad(layer, prev):
    # (C, H_in, W_in) -> (C, H_in+2p, W_in+2p), zero filled
    x = prev.output_volume()
    p = layer.conv.padding
    if p == 0:
        return x
    return np.pad(x, ((0, 0), (p, p), (p, p)), mode="constant")


def _im2col(layer, prev):
    """
    Gather every receptive window of the padded predecessor.

    returns cols: (H_out*W_out, C*k*k), row order matches the flat output
    index inside one depth slice (y1 * W_out + x1).
    """
    k = layer.conv.kernel_size
    s = layer.conv.stride
    xp = _pad(layer, prev)

    # absolute (padded) coordinates of every window element
    k_idx = np.arange(k)
    h_all = (np.arange(layer.height) * s)[:, None, None, None] + k_idx[None, None, :, None]  # (H_out, 1, k, 1)
    w_all = (np.arange(layer.width) * s)[None, :, None, None] + k_idx[None, None, None, :]   # (1, W_out, 1, k)

    # patches: (C, H_out, W_out, k, k)
    patches = xp[:, h_all, w_all]
    return np.reshape(
        np.transpose(patches, (1, 2, 0, 3, 4)),
        (layer.height * layer.width, -1),
    )


def forward(layer, prev):
    assert layer.kind is LayerKind.CONV
    # filters flattened into rows: (out_depth, in_depth*k*k)
    W_col = np.reshape(layer.weights, (layer.depth, -1))
    cols = _im2col(layer, prev)

    # (H_out*W_out, out_depth) -> (out_depth, H_out*W_out)
    out = np.matmul(cols, W_col.T) + layer.biases
    y = relu(np.transpose(out).ravel())

    layer.outputs[...] = y
    layer.gradients[...] = relu_grad(y)


def backward(layer, prev):
    assert layer.kind is LayerKind.CONV
    prev.errors[...] = 0.0

    k = layer.conv.kernel_size
    s = layer.conv.stride
    p = layer.conv.padding
    HW = layer.height * layer.width

    # dnet: (out_depth, H_out*W_out)
    dnet = np.reshape(layer.errors * layer.gradients, (layer.depth, HW))

    # ---- weight / bias updates ----
    cols = _im2col(layer, prev)                                     # (HW, Ck2)
    layer.u_weights += np.reshape(np.matmul(dnet, cols), layer.weights.shape)
    layer.u_biases += np.sum(dnet, axis=1)

    # ---- errors for the predecessor (col2im) ----
    W_col = np.reshape(layer.weights, (layer.depth, -1))
    cols_grad = np.matmul(dnet.T, W_col)                            # (HW, Ck2)
    cols_grad = np.reshape(cols_grad, (layer.height, layer.width, prev.depth, k, k))

    grad_xp = np.zeros((prev.depth, prev.height + 2 * p, prev.width + 2 * p))
    for y1 in range(layer.height):
        for x1 in range(layer.width):
            h_start = y1 * s
            w_start = x1 * s
            grad_xp[:, h_start:h_start + k, w_start:w_start + k] += cols_grad[y1, x1]

    # errors landing in the padding belong to no input node and are dropped
    grad_in = grad_xp[:, p:p + prev.height, p:p + prev.width]
    prev.errors += grad_in.ravel()
