"""
Neural Network Module
=====================

Neural network building blocks on top of the scalar engine.

This module provides:
- Module: Base class for all neural network components
- Neuron: A single neuron with weights, bias, and optional ReLU
- Layer: A collection of neurons (fully connected layer)
- MLP: Multi-layer perceptron (stack of layers)

The API mirrors PyTorch's nn.Module:
- model.parameters() returns all trainable parameters
- model.zero_grad() resets all gradients
- Forward pass is just calling the model: output = model(input)
"""

from __future__ import annotations
import random
from typing import List, Optional, Sequence, Union

from .engine import Value


class Module:
    """
    Base class for all neural network modules.

    Provides:
    - parameters(): collect all trainable Value objects
    - zero_grad(): reset gradients before backward pass

    Containers implement parameters() by concatenating their children's.
    """

    def parameters(self) -> List[Value]:
        """
        Return all trainable parameters in this module.

        Override this in subclasses to return the module's parameters.
        """
        return []

    def zero_grad(self) -> None:
        """
        Reset gradients of all parameters to zero.

        Only parameters are reset, not intermediate graph nodes.
        """
        for p in self.parameters():
            p.zero_grad()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Neuron(Module):
    """
    A single artificial neuron.

    Computes: output = relu(sum(w_i * x_i) + b), or the bare weighted sum
    when nonlin is False.

    Attributes:
        w: List of weight Values
        b: Bias Value
        nonlin: Whether to apply ReLU

    Example:
        >>> n = Neuron(3)  # 3 inputs
        >>> x = [Value(1.0), Value(2.0), Value(3.0)]
        >>> out = n(x)  # Forward pass
    """

    def __init__(
        self,
        nin: int,
        nonlin: bool = True,
        rng: Optional[random.Random] = None
    ) -> None:
        """
        Initialize a neuron.

        Args:
            nin: Number of inputs to this neuron.
            nonlin: Whether to apply ReLU.
            rng: Random source for the weights. Defaults to the global one.
        """
        uniform = rng.uniform if rng is not None else random.uniform
        # He-style scaling keeps ReLU activations from exploding
        scale = (2.0 / nin) ** 0.5
        self.w: List[Value] = [
            Value(uniform(-1, 1) * scale, label=f'w{i}')
            for i in range(nin)
        ]
        self.b: Value = Value(0.0, label='b')
        self.nonlin: bool = nonlin

    def __call__(self, x: Sequence[Union[Value, float]]) -> Value:
        """
        Forward pass: compute neuron output.

        Args:
            x: Inputs (Values or floats).

        Returns:
            Single Value representing neuron output.

        Raises:
            ValueError: If input length doesn't match weight count.
        """
        if len(x) != len(self.w):
            raise ValueError(
                f"Expected {len(self.w)} inputs, got {len(x)}"
            )

        act = sum(
            (wi * xi for wi, xi in zip(self.w, x)),
            start=self.b
        )
        return act.relu() if self.nonlin else act

    def parameters(self) -> List[Value]:
        """Return weights and bias."""
        return self.w + [self.b]

    def __repr__(self) -> str:
        act = 'ReLU' if self.nonlin else 'Linear'
        return f"Neuron({len(self.w)}, {act})"


class Layer(Module):
    """
    A fully connected (dense) layer of neurons.

    Every neuron receives the same input, so a layer with `nout` neurons
    transforms an input of size `nin` to an output of size `nout`.

    Example:
        >>> layer = Layer(3, 4)  # 3 inputs, 4 outputs
        >>> out = layer([Value(1.0), Value(2.0), Value(3.0)])  # 4 Values
    """

    def __init__(
        self,
        nin: int,
        nout: int,
        nonlin: bool = True,
        rng: Optional[random.Random] = None
    ) -> None:
        self.neurons: List[Neuron] = [
            Neuron(nin, nonlin=nonlin, rng=rng) for _ in range(nout)
        ]

    def __call__(self, x: Sequence[Union[Value, float]]) -> List[Value]:
        return [n(x) for n in self.neurons]

    def parameters(self) -> List[Value]:
        """Return all parameters from all neurons."""
        return [p for n in self.neurons for p in n.parameters()]

    def __repr__(self) -> str:
        return f"Layer({len(self.neurons[0].w)} -> {len(self.neurons)})"


class MLP(Module):
    """
    Multi-Layer Perceptron: a stack of fully connected layers.

    Architecture:
        Input -> Hidden1 -> ... -> HiddenN -> Output

    Hidden layers use ReLU. The output layer is linear.

    Example:
        >>> # 2 inputs -> 6 hidden -> 6 hidden -> 1 output
        >>> model = MLP(2, [6, 6, 1])
        >>> out = model([Value(1.0), Value(-1.0)])  # Single output Value
    """

    def __init__(
        self,
        nin: int,
        nouts: Sequence[int],
        rng: Optional[random.Random] = None
    ) -> None:
        """
        Initialize an MLP.

        Args:
            nin: Number of input features.
            nouts: Layer sizes. Last element is output size.
            rng: Random source for the weights. Defaults to the global one.
        """
        sizes = [nin] + list(nouts)
        self.layers: List[Layer] = [
            Layer(sizes[i], sizes[i + 1], nonlin=(i != len(nouts) - 1), rng=rng)
            for i in range(len(nouts))
        ]

    def __call__(self, x: Sequence[Union[Value, float]]) -> Union[Value, List[Value]]:
        """
        Forward pass through all layers.

        Returns:
            A single Value if the output size is 1, otherwise a list.
        """
        for layer in self.layers:
            x = layer(x)

        # Unwrap single-element output
        return x[0] if len(x) == 1 else x

    def parameters(self) -> List[Value]:
        """Return all parameters from all layers."""
        return [p for layer in self.layers for p in layer.parameters()]

    def __repr__(self) -> str:
        layer_strs = [str(layer) for layer in self.layers]
        return f"MLP([{', '.join(layer_strs)}])"


# =============================================================================
# Loss Functions
# =============================================================================

def mse_loss(predictions: Sequence[Value], targets: Sequence[float]) -> Value:
    """
    Mean Squared Error loss.

    MSE = (1/n) * sum((pred_i - target_i)^2)

    Raises:
        ValueError: If there are no predictions or the lengths differ.
    """
    if not predictions or len(predictions) != len(targets):
        raise ValueError(
            f"Need matching non-empty predictions and targets, "
            f"got {len(predictions)} and {len(targets)}"
        )
    n = len(predictions)
    return sum(
        ((pred - target) ** 2 for pred, target in zip(predictions, targets)),
        start=Value(0.0)
    ) / n


# =============================================================================
# Optimizers
# =============================================================================

class SGD:
    """
    Constant-step gradient descent.

    Updates parameters: p = p - lr * p.grad

    Attributes:
        params: List of parameters to optimize.
        lr: Learning rate.
    """

    def __init__(self, params: List[Value], lr: float = 0.01) -> None:
        self.params = params
        self.lr = lr

    def step(self) -> None:
        """
        Perform one optimization step.

        Call this after backward().
        """
        for p in self.params:
            p.data -= self.lr * p.grad

    def zero_grad(self) -> None:
        """Reset all gradients to zero."""
        for p in self.params:
            p.zero_grad()
