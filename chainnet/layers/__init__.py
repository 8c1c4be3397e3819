from . import Conv2D
from . import FullyConnectedLayer
from .Layer import Layer, LayerKind, ConvParams

__all__ = [
    "Conv2D",
    "FullyConnectedLayer",
    "Layer",
    "LayerKind",
    "ConvParams",
]
