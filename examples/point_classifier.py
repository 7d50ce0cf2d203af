#!/usr/bin/env python3
"""
Train a small MLP on the four XOR points.

    inputs  (1, 1)  (1, -1)  (-1, 1)  (-1, -1)
    labels   -1       1        1        -1

Network: 2 inputs -> 6 hidden -> 6 hidden -> 1 output, ReLU hidden layers.

The default step size of 0.25 learns quickly but can overshoot, so the loss
may rise at some steps depending on the initial weights; those steps are
logged as warnings. Use a smaller step (e.g. --step-size 0.01 with more
--steps) for a loss that only goes down.

Run: python examples/point_classifier.py [--plot]
"""

import argparse
import logging
from typing import List

from scalargrad import TrainConfig, XOR_INPUTS, Value, train_xor


def plot_loss_curve(losses: List[float], path: str = './loss_curve.png') -> None:
    """Save the training loss per step."""
    import matplotlib.pyplot as plt

    plt.figure(figsize=(10, 6))
    plt.plot(losses, 'b-', linewidth=2)
    plt.xlabel('Step')
    plt.ylabel('Mean squared error')
    plt.title('Training Loss Curve')
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()
    print(f"Saved loss curve to: {path}")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument('--steps', type=int, default=15)
    parser.add_argument('--step-size', type=float, default=0.25)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--plot', action='store_true', help='save a loss curve (needs matplotlib)')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(name)s: %(message)s')

    config = TrainConfig(steps=args.steps, step_size=args.step_size, seed=args.seed)
    model, losses = train_xor(config)

    for row in XOR_INPUTS:
        pred = model([Value(x) for x in row])
        print(f"{row} -> {pred.data:+.4f}")

    if args.plot:
        plot_loss_curve(losses)


if __name__ == "__main__":
    main()
