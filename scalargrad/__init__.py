"""ScalarGrad: a scalar-value reverse-mode autograd engine."""

from .engine import Op, Value, leaf, topological_sort, draw_graph
from .nn import Module, Neuron, Layer, MLP, mse_loss, SGD
from .config import TrainConfig
from .training import XOR_INPUTS, XOR_TARGETS, build_model, train, train_xor

__all__ = [
    "Op",
    "Value",
    "leaf",
    "topological_sort",
    "draw_graph",
    "Module",
    "Neuron",
    "Layer",
    "MLP",
    "mse_loss",
    "SGD",
    "TrainConfig",
    "XOR_INPUTS",
    "XOR_TARGETS",
    "build_model",
    "train",
    "train_xor",
]
