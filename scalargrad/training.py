"""
Gradient-descent training loop for MLPs on small fixed datasets.
"""

from __future__ import annotations
import logging
import random
from typing import List, Optional, Sequence, Tuple

from .config import TrainConfig
from .engine import Value
from .nn import MLP, SGD, mse_loss

logger = logging.getLogger(__name__)


# The four corners of the square, labelled -1 where the signs agree
XOR_INPUTS: List[Tuple[float, float]] = [(1.0, 1.0), (1.0, -1.0), (-1.0, 1.0), (-1.0, -1.0)]
XOR_TARGETS: List[float] = [-1.0, 1.0, 1.0, -1.0]


def build_model(n_inputs: int, config: TrainConfig) -> MLP:
    """
    Create an MLP with the configured hidden layers and one linear output.

    A configured seed drives a private random.Random, so the global RNG is
    left untouched. Without a seed the weights come from the global RNG.
    """
    rng = random.Random(config.seed) if config.seed is not None else None
    return MLP(n_inputs, list(config.hidden_sizes) + [1], rng=rng)


def train(
    model: MLP,
    xs: Sequence[Sequence[float]],
    ys: Sequence[float],
    config: Optional[TrainConfig] = None,
) -> List[float]:
    """
    Train the model with mean-squared-error and constant-step descent.

    Each step zeroes the parameter gradients, runs every example through the
    model, averages the squared errors, backpropagates and updates.

    Args:
        model: MLP with a single output.
        xs: Input rows.
        ys: Target per row.
        config: Step size and number of steps. Defaults to TrainConfig().

    Returns:
        The mean loss measured at each step, before that step's update.
        A step whose loss exceeds the previous one is logged as a warning.

    Raises:
        ValueError: If the dataset is empty or xs and ys differ in length.
    """
    config = config or TrainConfig()
    if not xs or len(xs) != len(ys):
        raise ValueError(
            f"Need matching non-empty inputs and targets, got {len(xs)} and {len(ys)}"
        )

    optimizer = SGD(model.parameters(), lr=config.step_size)
    logger.info("training %r (%d parameters)", model, len(optimizer.params))
    losses: List[float] = []

    for step in range(config.steps):
        optimizer.zero_grad()

        predictions = [model([Value(x) for x in row]) for row in xs]
        loss = mse_loss(predictions, ys)
        loss.backward()
        optimizer.step()

        if losses and loss.data > losses[-1]:
            logger.warning(
                "step %d - loss rose from %.4f to %.4f; step_size %.2f may be too large",
                step, losses[-1], loss.data, config.step_size,
            )
        losses.append(loss.data)
        if config.log_every and step % config.log_every == 0:
            logger.info("step %d - loss = %.4f step_size = %.2f", step, loss.data, config.step_size)

    return losses


def train_xor(config: Optional[TrainConfig] = None) -> Tuple[MLP, List[float]]:
    """Build a 2-input network and train it on the XOR points."""
    config = config or TrainConfig()
    model = build_model(2, config)
    return model, train(model, XOR_INPUTS, XOR_TARGETS, config)
