import numpy as np

# sum of four U[0,1) draws has variance 1/3; rescale to std ~= 1.0
NRND_SCALE = 1.724


def nrnd(rng, shape):
    """
    Approximately normal samples (mean 0, std ~1.0).

    Built from four uniform draws per value so the distribution is bounded,
    which keeps freshly initialized weights away from extreme values.

    Args:
        rng: numpy.random.Generator supplying the uniform draws
        shape: output shape (int or tuple)
    """
    if isinstance(shape, int):
        shape = (shape,)
    u = rng.random((4,) + tuple(shape))
    return (np.sum(u, axis=0) - 2.0) * NRND_SCALE


def make_rng(seed=None):
    """Create the explicit generator used for weight initialization and sampling."""
    return np.random.default_rng(seed)
