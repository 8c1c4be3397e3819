"""
chainnet
~~~~~~~~

Trainable feed-forward layer chains (input, fully-connected and
convolutional layers) with hand-derived backpropagation and
minibatch SGD, plus an MNIST IDX reader and training driver.
"""

from .Network import Network
from .Trainer import Trainer
from .layers import Layer, LayerKind, ConvParams
from .datasets.IdxFile import IdxFile

__version__ = "1.0.0"

__all__ = [
    "Network",
    "Trainer",
    "Layer",
    "LayerKind",
    "ConvParams",
    "IdxFile",
]
