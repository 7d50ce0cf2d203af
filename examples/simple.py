#!/usr/bin/env python3
"""
Closed-form gradient check.

    y = relu((-3x - 3)^2) = relu(9x^2 + 18x + 9)
    dy/dx = 18x + 18, which is 18 at x = 0

Run: python examples/simple.py
"""

from scalargrad import leaf, draw_graph


def main():
    x = leaf(0.0, label='x')
    y = (x * -3.0 - 3.0) ** 2
    y = y.relu()
    y.backward()

    assert x.grad == 18.0, x.grad
    print(f"dy/dx at x=0: {x.grad}")
    print()
    print(draw_graph(y))
    print()
    print(y)


if __name__ == "__main__":
    main()
