"""
Training configuration.

Network shape, step size and iteration count for the training loop live
here instead of being hardcoded in callers.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TrainConfig:
    """Configuration for a constant-step gradient-descent run."""

    # Network (input and output sizes come from the dataset)
    hidden_sizes: List[int] = field(default_factory=lambda: [6, 6])

    # Optimizer
    step_size: float = 0.25
    steps: int = 15

    # Seed for weight initialization (None leaves the global RNG alone)
    seed: Optional[int] = None

    # Log the loss every N steps (0 disables)
    log_every: int = 1

    def __post_init__(self):
        if self.steps < 0:
            raise ValueError(f"steps must be non-negative, got {self.steps}")
        if any(size < 1 for size in self.hidden_sizes):
            raise ValueError(f"hidden sizes must be positive, got {self.hidden_sizes}")
