"""
Unit Tests: Networks and Training
=================================

Module composition (Neuron, Layer, MLP), the MSE loss, SGD and the
training loop on the XOR points.

Run with: pytest tests/test_nn.py -v
"""

import logging
import random
import pytest

from scalargrad import (
    MLP,
    SGD,
    Layer,
    Module,
    Neuron,
    TrainConfig,
    Value,
    XOR_INPUTS,
    XOR_TARGETS,
    build_model,
    mse_loss,
    train,
    train_xor,
)


def assert_close(actual: float, expected: float, tol: float = 1e-6) -> None:
    """Assert two values are approximately equal."""
    diff = abs(actual - expected)
    assert diff < tol, f"Values differ: {actual} vs {expected} (diff={diff})"


# =============================================================================
# Neural Network Tests
# =============================================================================

class TestNeuralNetworks:
    """Test neural network components."""

    def test_module_base_has_no_parameters(self) -> None:
        m = Module()
        assert m.parameters() == []
        m.zero_grad()
        assert repr(m) == "Module()"

    def test_neuron_creation(self) -> None:
        n = Neuron(3)
        assert len(n.w) == 3
        assert n.b.data == 0.0
        assert repr(n) == "Neuron(3, ReLU)"
        assert repr(Neuron(3, nonlin=False)) == "Neuron(3, Linear)"

    def test_neuron_forward(self) -> None:
        """Test neuron forward pass."""
        n = Neuron(2, nonlin=False)  # Linear for predictable output
        n.w[0].data = 1.0
        n.w[1].data = 2.0
        n.b.data = 0.5

        out = n([Value(1.0), Value(1.0)])
        # 1*1 + 2*1 + 0.5 = 3.5
        assert out.data == 3.5

    def test_neuron_accepts_floats(self) -> None:
        n = Neuron(2, nonlin=False)
        n.w[0].data = 1.0
        n.w[1].data = 1.0
        assert n([1.0, 2.0]).data == 3.0

    def test_neuron_relu_clamps(self) -> None:
        n = Neuron(1)
        n.w[0].data = -1.0
        out = n([Value(2.0)])
        assert out.data == 0.0

        out.backward()
        assert n.w[0].grad == 0.0
        assert n.b.grad == 0.0

    def test_neuron_parameters(self) -> None:
        n = Neuron(3)
        params = n.parameters()
        assert len(params) == 4  # 3 weights + 1 bias
        assert params[-1] is n.b

    def test_neuron_input_mismatch(self) -> None:
        n = Neuron(3)
        with pytest.raises(ValueError):
            n([Value(1.0), Value(2.0)])  # Only 2 inputs, expected 3

    def test_layer_forward(self) -> None:
        layer = Layer(2, 3)
        out = layer([Value(1.0), Value(1.0)])
        assert len(out) == 3
        assert repr(layer) == "Layer(2 -> 3)"

    def test_layer_parameters(self) -> None:
        layer = Layer(2, 3)
        params = layer.parameters()
        # 3 neurons * (2 weights + 1 bias) = 9 parameters
        assert len(params) == 9
        assert params[:3] == layer.neurons[0].parameters()

    def test_mlp_layers(self) -> None:
        """Test hidden layers use ReLU and the output layer is linear."""
        mlp = MLP(2, [6, 6, 1])
        assert len(mlp.layers) == 3
        assert all(n.nonlin for n in mlp.layers[0].neurons)
        assert all(n.nonlin for n in mlp.layers[1].neurons)
        assert not mlp.layers[2].neurons[0].nonlin
        assert repr(mlp) == "MLP([Layer(2 -> 6), Layer(6 -> 6), Layer(6 -> 1)])"

    def test_mlp_forward(self) -> None:
        mlp = MLP(2, [4, 1])
        out = mlp([Value(1.0), Value(2.0)])
        assert isinstance(out, Value)

        outs = MLP(2, [4, 3])([Value(1.0), Value(2.0)])
        assert isinstance(outs, list)
        assert len(outs) == 3

    def test_mlp_parameters(self) -> None:
        # 6*(2+1) + 6*(6+1) + 1*(6+1) = 18 + 42 + 7
        assert len(MLP(2, [6, 6, 1]).parameters()) == 67

    def test_mlp_backward(self) -> None:
        """Test MLP backward pass reaches the parameters."""
        mlp = MLP(2, [3, 1])
        out = mlp([Value(1.0), Value(2.0)])
        out.backward()

        # The output bias always sees the full gradient
        assert mlp.layers[-1].neurons[0].b.grad == 1.0

    def test_zero_grad(self) -> None:
        mlp = MLP(2, [3, 1])
        out = mlp([Value(1.0), Value(2.0)])
        out.backward()

        mlp.zero_grad()
        for p in mlp.parameters():
            assert p.grad == 0.0


# =============================================================================
# Loss and Optimizer
# =============================================================================

class TestLossAndOptimizer:
    def test_mse_loss(self) -> None:
        targets = [1.0, 2.0, 3.0]
        preds = [Value(1.0), Value(2.0), Value(3.0)]
        assert mse_loss(preds, targets).data == 0.0

        preds = [Value(0.0), Value(0.0), Value(0.0)]
        loss = mse_loss(preds, targets)
        # MSE = (1 + 4 + 9) / 3 = 14/3
        assert_close(loss.data, 14 / 3)

    def test_mse_loss_gradient(self) -> None:
        p = Value(3.0)
        q = Value(1.0)
        loss = mse_loss([p, q], [1.0, 1.0])
        loss.backward()
        # d/dp (p-1)^2 / 2 = (p - 1)
        assert_close(p.grad, 2.0)
        assert_close(q.grad, 0.0)

    def test_mse_loss_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            mse_loss([Value(1.0)], [1.0, 2.0])
        with pytest.raises(ValueError):
            mse_loss([], [])

    def test_sgd_step(self) -> None:
        w = Value(1.0)
        w.grad = 0.1

        optimizer = SGD([w], lr=0.1)
        optimizer.step()

        # w = w - lr * grad = 1.0 - 0.1 * 0.1 = 0.99
        assert_close(w.data, 0.99)

        optimizer.zero_grad()
        assert w.grad == 0.0


# =============================================================================
# Training
# =============================================================================

class TestTraining:
    """Test the training loop on the XOR points."""

    def test_config_defaults(self) -> None:
        config = TrainConfig()
        assert config.hidden_sizes == [6, 6]
        assert config.step_size == 0.25
        assert config.steps == 15

    def test_config_validation(self) -> None:
        with pytest.raises(ValueError):
            TrainConfig(steps=-1)
        with pytest.raises(ValueError):
            TrainConfig(hidden_sizes=[6, 0])

    def test_build_model_is_seeded(self) -> None:
        config = TrainConfig(seed=7)
        a = build_model(2, config)
        b = build_model(2, config)
        assert [p.data for p in a.parameters()] == [p.data for p in b.parameters()]
        assert len(a.parameters()) == 67

    def test_build_model_leaves_global_rng_alone(self) -> None:
        """Test a seeded model does not reseed the module-level RNG."""
        random.seed(123)
        expected = random.random()

        random.seed(123)
        build_model(2, TrainConfig(seed=7))
        assert random.random() == expected

    def test_mlp_uses_given_rng(self) -> None:
        a = MLP(2, [3, 1], rng=random.Random(11))
        b = MLP(2, [3, 1], rng=random.Random(11))
        assert [p.data for p in a.parameters()] == [p.data for p in b.parameters()]

    def test_loss_is_non_increasing(self) -> None:
        """Test small constant steps never increase the XOR loss."""
        config = TrainConfig(step_size=0.01, steps=10, seed=1)
        model = build_model(2, config)
        losses = train(model, XOR_INPUTS, XOR_TARGETS, config)

        assert len(losses) == 10
        for earlier, later in zip(losses, losses[1:]):
            assert later <= earlier

    def test_train_xor_defaults(self) -> None:
        random.seed(0)
        model, losses = train_xor()
        assert isinstance(model, MLP)
        assert len(losses) == 15

    def test_step_moves_against_gradient(self) -> None:
        """Test one step applies data -= step_size * grad to every parameter."""
        config = TrainConfig(steps=1, seed=3)
        model = build_model(2, config)
        before = [p.data for p in model.parameters()]
        train(model, XOR_INPUTS, XOR_TARGETS, config)

        for p, old in zip(model.parameters(), before):
            assert_close(p.data, old - config.step_size * p.grad)

    def test_zero_steps(self) -> None:
        config = TrainConfig(steps=0, seed=3)
        model = build_model(2, config)
        before = [p.data for p in model.parameters()]
        assert train(model, XOR_INPUTS, XOR_TARGETS, config) == []
        assert [p.data for p in model.parameters()] == before

    def test_train_rejects_bad_dataset(self) -> None:
        model = MLP(2, [1])
        with pytest.raises(ValueError):
            train(model, [], [])
        with pytest.raises(ValueError):
            train(model, XOR_INPUTS, XOR_TARGETS[:3])

    def test_rising_loss_is_warned(self, caplog) -> None:
        """Test an oversized step that drives the loss up is reported."""
        caplog.set_level(logging.WARNING, logger="scalargrad.training")
        config = TrainConfig(step_size=10.0, steps=10, seed=2)
        losses = train(build_model(2, config), XOR_INPUTS, XOR_TARGETS, config)

        rises = sum(1 for earlier, later in zip(losses, losses[1:]) if later > earlier)
        assert rises > 0
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == rises
        assert "loss rose from" in warnings[0].getMessage()

    def test_descending_loss_has_no_warning(self, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="scalargrad.training")
        config = TrainConfig(step_size=0.01, steps=10, seed=1)
        train(build_model(2, config), XOR_INPUTS, XOR_TARGETS, config)
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    def test_train_logs_loss(self, caplog) -> None:
        caplog.set_level(logging.INFO, logger="scalargrad.training")
        config = TrainConfig(steps=2, seed=5)
        train(build_model(2, config), XOR_INPUTS, XOR_TARGETS, config)
        assert "step 0 - loss" in caplog.text
        assert "step 1 - loss" in caplog.text
