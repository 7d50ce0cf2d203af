"""
ScalarGrad Engine
=================

Reverse-mode automatic differentiation over scalar values.

Every arithmetic operation on a Value creates a new Value that remembers
which operation produced it and which operands went in. Calling backward()
on any node walks that graph in reverse topological order and applies the
chain rule, accumulating d(root)/d(node) into each node's grad.

Only four primitive operations exist: add, multiply, power (by a constant
exponent) and relu. Negation, subtraction and division are built from them,
so they share the same forward and backward behaviour exactly.

Floating point special values are never trapped. Division by zero yields
inf, a negative base raised to a fractional exponent yields nan, and both
flow through the backward pass arithmetically.
"""

from __future__ import annotations
import enum
import logging
import numpy as np
from typing import Dict, Union, Tuple, Set, List, Optional


logger = logging.getLogger(__name__)

# Type alias for numeric inputs
Numeric = Union[int, float, np.floating]


class Op(enum.Enum):
    """How a Value was produced."""

    LEAF = 'leaf'
    ADD = '+'
    MUL = '*'
    POW = '**'
    RELU = 'relu'


# Number of operands each operation consumes
ARITY = {
    Op.LEAF: 0,
    Op.ADD: 2,
    Op.MUL: 2,
    Op.POW: 1,
    Op.RELU: 1,
}


def _pow(base: float, exponent: float) -> float:
    """Real-valued exponentiation that returns inf/nan instead of raising."""
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        return float(np.power(np.float64(base), np.float64(exponent)))


class Value:
    """
    A scalar node in a computation graph.

    Every Value knows:
    1. Its data (the forward value)
    2. Its gradient (derivative of the backward root with respect to it)
    3. The operation that produced it and the ordered operands it consumed
    4. For power nodes, the (base, exponent) pair captured at construction

    Nodes compare and hash by identity. Two nodes holding the same number
    are different points in the graph.

    Attributes:
        data: The scalar value stored in this node.
        grad: The gradient of the backward root with respect to this node.
        label: Optional name for debugging and visualization.

    Example:
        >>> a = Value(2.0, label='a')
        >>> b = Value(3.0, label='b')
        >>> c = a * b + a
        >>> c.backward()
        >>> print(a.grad)  # dc/da = b + 1 = 4.0
        4.0
        >>> print(b.grad)  # dc/db = a = 2.0
        2.0
    """

    __slots__ = ('data', 'grad', '_prev', '_op', '_power', 'label')

    def __init__(
        self,
        data: Numeric,
        _children: Tuple[Value, ...] = (),
        _op: Op = Op.LEAF,
        label: str = '',
        _power: Optional[Tuple[float, float]] = None,
    ) -> None:
        """
        Initialize a Value node.

        Args:
            data: The scalar value to store.
            _children: Ordered operands in the computation graph (internal use).
            _op: The operation that produced this node (internal use).
            label: Optional name for debugging.
            _power: Cached (base, exponent) for power nodes (internal use).

        Raises:
            TypeError: If data is not a numeric type.
        """
        if not isinstance(data, (int, float, np.floating)):
            raise TypeError(
                f"Value data must be numeric, got {type(data).__name__}"
            )

        self.data: float = float(data)
        self.grad: float = 0.0
        self._prev: Tuple[Value, ...] = tuple(_children)
        self._op: Op = _op
        self._power: Optional[Tuple[float, float]] = _power
        self.label: str = label

    @property
    def op(self) -> Op:
        """The operation that produced this node."""
        return self._op

    @property
    def operands(self) -> Tuple[Value, ...]:
        """The nodes this node was computed from, in operator order."""
        return self._prev

    @property
    def power_context(self) -> Optional[Tuple[float, float]]:
        """(base, exponent) captured when a power node was built, else None."""
        return self._power

    def __repr__(self) -> str:
        """Short representation showing data and gradient."""
        if self.label:
            return f"Value({self.label}={self.data:.4f}, grad={self.grad:.4f})"
        return f"Value(data={self.data:.4f}, grad={self.grad:.4f})"

    def __str__(self) -> str:
        """
        Full rendering of this node and its operand subtree.

        Shared operands are repeated once per path. Strings are built
        operands first, so graph depth is not bounded by the recursion limit.
        """
        topo = topological_sort(self)

        # Drop an operand's text once every consumer has embedded it
        pending: Dict[Value, int] = {}
        for node in topo:
            for child in node._prev:
                pending[child] = pending.get(child, 0) + 1

        rendered: Dict[Value, str] = {}
        for node in topo:
            parts = [f"data={node.data}", f"grad={node.grad}", node._op.name]
            if node.label:
                parts.insert(0, f"label={node.label}")
            if node._power is not None:
                base, exponent = node._power
                parts.append(f"base={base}")
                parts.append(f"exponent={exponent}")
            children = ', '.join(rendered[child] for child in node._prev)
            rendered[node] = f"Value({', '.join(parts)}, [{children}])"

            for child in node._prev:
                pending[child] -= 1
                if pending[child] == 0:
                    rendered.pop(child, None)

        return rendered[self]

    @staticmethod
    def _lift(other: Union[Value, Numeric]) -> Value:
        """Wrap a bare number in a leaf so it joins the graph."""
        return other if isinstance(other, Value) else Value(other)

    # =========================================================================
    # Primitive Operations
    # =========================================================================

    def __add__(self, other: Union[Value, Numeric]) -> Value:
        """
        Addition: out = self + other

        Local derivatives:
            d(out)/d(self) = 1
            d(out)/d(other) = 1
        """
        other = self._lift(other)
        return Value(self.data + other.data, (self, other), Op.ADD)

    def __mul__(self, other: Union[Value, Numeric]) -> Value:
        """
        Multiplication: out = self * other

        Local derivatives:
            d(out)/d(self) = other.data
            d(out)/d(other) = self.data
        """
        other = self._lift(other)
        return Value(self.data * other.data, (self, other), Op.MUL)

    def __pow__(self, n: Numeric) -> Value:
        """
        Power: out = self^n (where n is a constant, not a Value)

        The base is cached together with the exponent, so changing
        self.data later does not affect the derivative of this node.

        Local derivative:
            d(out)/d(self) = n * base^(n-1)

        Raises:
            TypeError: If n is a Value (not supported).
        """
        if isinstance(n, Value):
            raise TypeError(
                "Power with Value exponent not supported; "
                "the exponent must be a plain number."
            )

        exponent = float(n)
        return Value(
            _pow(self.data, exponent),
            (self,),
            Op.POW,
            _power=(self.data, exponent),
        )

    def relu(self) -> Value:
        """
        Rectified Linear Unit: out = max(self, 0)

        Local derivative:
            d(relu(x))/dx = 1 if relu(x) > 0 else 0
        """
        return Value(max(0.0, self.data), (self,), Op.RELU)

    # =========================================================================
    # Derived Operations
    # =========================================================================

    def __radd__(self, other: Numeric) -> Value:
        """Handle numeric + Value."""
        return self._lift(other) + self

    def __neg__(self) -> Value:
        """Negation: -self = self * -1."""
        return self * -1.0

    def __sub__(self, other: Union[Value, Numeric]) -> Value:
        """Subtraction: self - other = self + (-other)."""
        return self + (-self._lift(other))

    def __rsub__(self, other: Numeric) -> Value:
        """Handle numeric - Value."""
        return self._lift(other) - self

    def __rmul__(self, other: Numeric) -> Value:
        """Handle numeric * Value."""
        return self._lift(other) * self

    def __truediv__(self, other: Union[Value, Numeric]) -> Value:
        """Division: self / other = self * other^(-1)."""
        return self * (self._lift(other) ** -1)

    def __rtruediv__(self, other: Numeric) -> Value:
        """Handle numeric / Value."""
        return self._lift(other) / self

    # =========================================================================
    # Backpropagation
    # =========================================================================

    def _propagate(self) -> None:
        """Push this node's grad into its operands according to its op."""
        assert len(self._prev) == ARITY[self._op], (
            f"{self._op.name} node has {len(self._prev)} operands"
        )
        grad = self.grad

        if self._op is Op.LEAF:
            return

        if self._op is Op.ADD:
            a, b = self._prev
            a.grad += grad
            b.grad += grad

        elif self._op is Op.MUL:
            a, b = self._prev
            a_data, b_data = a.data, b.data
            a.grad += grad * b_data
            b.grad += grad * a_data

        elif self._op is Op.POW:
            assert self._power is not None, "power node without cached base"
            (a,) = self._prev
            base, exponent = self._power
            a.grad += grad * exponent * _pow(base, exponent - 1.0)

        elif self._op is Op.RELU:
            (a,) = self._prev
            a.grad += grad if self.data > 0 else 0.0

    def backward(self) -> None:
        """
        Compute gradients for all nodes reachable from this one.

        The algorithm:
        1. Build a topological ordering of the computation graph
        2. Set this node's gradient to 1.0 (d(self)/d(self) = 1)
        3. Walk the ordering root first, pushing each node's gradient
           into its operands

        Every consumer of a node appears before it in the walk, so a node
        has received all of its contributions before it propagates.

        Note: Only the root is reset. Every other node ACCUMULATES, so
        calling backward() again without zero_grad() adds to existing grads.

        Example:
            >>> x = Value(2.0)
            >>> y = x ** 2 + 3 * x
            >>> y.backward()
            >>> print(x.grad)  # dy/dx = 2x + 3 = 7.0
            7.0
        """
        topo = topological_sort(self)
        logger.debug("backward over %d nodes", len(topo))

        # Seed gradient: d(self)/d(self) = 1
        self.grad = 1.0

        for node in reversed(topo):
            node._propagate()

    def zero_grad(self) -> None:
        """
        Reset this node's gradient to zero.

        Operands are left alone.
        """
        self.grad = 0.0

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def item(self) -> float:
        """Return the scalar value (PyTorch compatibility)."""
        return self.data


def leaf(x: Numeric, label: str = '') -> Value:
    """Wrap a number in a leaf Value."""
    return Value(x, label=label)


def topological_sort(root: Value) -> List[Value]:
    """
    Compute topological ordering of computation graph rooted at `root`.

    This is a depth-first post-order over operands: every node appears after
    all of its operands, and the root is last. Each distinct node appears
    exactly once no matter how many paths lead to it. The walk uses an
    explicit stack, so graph depth is not bounded by the recursion limit.

    Args:
        root: The root node of the computation graph.

    Returns:
        List of Values in topological order (root is last).

    Example:
        >>> a = Value(1.0)
        >>> b = Value(2.0)
        >>> c = a + b
        >>> d = c * a
        >>> topo = topological_sort(d)
        >>> # topo is [a, b, c, d]
    """
    topo: List[Value] = []
    visited: Set[Value] = set()
    stack: List[Tuple[Value, bool]] = [(root, False)]

    while stack:
        node, expanded = stack.pop()
        if expanded:
            topo.append(node)
            continue
        if node in visited:
            continue
        visited.add(node)

        stack.append((node, True))
        # Reversed so the first operand is visited first
        for child in reversed(node._prev):
            if child not in visited:
                stack.append((child, False))

    return topo


def draw_graph(root: Value, format: str = 'text') -> str:
    """
    Generate a visualization of the computation graph.

    Unlike str(root), shared nodes are listed once.

    Args:
        root: Root node of the graph to visualize.
        format: 'text' for a listing, 'dot' for Graphviz DOT format.

    Returns:
        String representation of the graph.

    Raises:
        ValueError: If format is not 'text' or 'dot'.
    """
    nodes = topological_sort(root)
    node_ids = {n: i for i, n in enumerate(nodes)}

    def name(node: Value) -> str:
        return node.label if node.label else f'v{node_ids[node]}'

    if format == 'dot':
        lines = ['digraph G {', '  rankdir=LR;']
        for node in nodes:
            nid = node_ids[node]
            lines.append(
                f'  n{nid} [label="{name(node)}\\n'
                f'data={node.data:.4f}\\n'
                f'grad={node.grad:.4f}", shape=box];'
            )
            if node._op is not Op.LEAF:
                op_id = f'op{nid}'
                op_label = node._op.value
                if node._power is not None:
                    op_label = f'**{node._power[1]:g}'
                lines.append(f'  {op_id} [label="{op_label}", shape=circle];')
                lines.append(f'  {op_id} -> n{nid};')
                for parent in node._prev:
                    lines.append(f'  n{node_ids[parent]} -> {op_id};')
        lines.append('}')
        return '\n'.join(lines)

    if format != 'text':
        raise ValueError(f"Unknown graph format: {format!r}")

    lines = ['Computation Graph:', '=' * 50]
    for node in reversed(nodes):
        op_str = ''
        if node._op is not Op.LEAF:
            op_str = f' = {node._op.name}(' + ', '.join(name(p) for p in node._prev) + ')'
        lines.append(
            f'{name(node):>10}: data={node.data:>10.4f}, '
            f'grad={node.grad:>10.4f}{op_str}'
        )
    return '\n'.join(lines)
