"""
Gradient checks of the hand-written backward passes.

The dense layers, the PPO networks and the PPO minibatch gradients are
compared against gradients computed by autograd on an equivalent
forward computation.
"""

import pytest
import numpy
import autograd.numpy as np   # type: ignore
from autograd import grad     # type: ignore
from unittest.mock import patch

from evodino.ppo.layers  import DenseLayer
from evodino.ppo.network import PPONetwork
from evodino.ppo.trainer import PPOTrainer
from evodino.run.config  import PPOConfig


# ============================================================================
# Reference Forward Passes
# ============================================================================

_activations = {
    'relu'  : lambda z: np.maximum(0.0, z),
    'tanh'  : np.tanh,
    'linear': lambda z: z,
}

def _forward(params, activations, x):
    for (W, b), activation in zip(params, activations):
        x = _activations[activation](np.dot(x, W.T) + b)
    return x

def _params(network):
    return [(layer.weights.copy(), layer.biases.copy()) for layer in network.layers]

def _softmax(logits):
    exps = np.exp(logits - np.max(logits, axis=1, keepdims=True))
    return exps / np.sum(exps, axis=1, keepdims=True)


# ============================================================================
# Layer and Network Backward Passes
# ============================================================================

class TestBackwardPasses:

    @pytest.mark.parametrize("activation", ['relu', 'tanh', 'linear'])
    def test_dense_layer(self, activation):
        layer = DenseLayer(5, 4, activation)
        layer.biases = numpy.random.uniform(-0.5, 0.5, 4)
        X = numpy.random.randn(8, 5)
        G = numpy.random.randn(8, 4)

        def loss(W, b, x):
            return np.sum(_forward([(W, b)], [activation], x) * G)

        layer.forward(X)
        grad_input = layer.backward(G)

        W, b = layer.weights, layer.biases
        numpy.testing.assert_allclose(layer.d_weights, grad(loss, 0)(W, b, X), rtol=1e-6, atol=1e-10)
        numpy.testing.assert_allclose(layer.d_biases, grad(loss, 1)(W, b, X), rtol=1e-6, atol=1e-10)
        numpy.testing.assert_allclose(grad_input, grad(loss, 2)(W, b, X), rtol=1e-6, atol=1e-10)

    def test_network(self):
        network = PPONetwork([6, 10, 8, 3], ['relu', 'tanh', 'linear'])
        X = numpy.random.randn(12, 6)
        Y = numpy.random.randn(12, 3)
        activations = network.activations

        def loss(params):
            return np.mean((_forward(params, activations, X) - Y) ** 2)

        out = network.forward(X)
        network.backward(2 * (out - Y) / out.size)

        expected = grad(loss)(_params(network))
        for layer, (dW, db) in zip(network.layers, expected):
            numpy.testing.assert_allclose(layer.d_weights, dW, rtol=1e-6, atol=1e-10)
            numpy.testing.assert_allclose(layer.d_biases, db, rtol=1e-6, atol=1e-10)


# ============================================================================
# PPO Minibatch Gradients
# ============================================================================

class TestPPOGradients:
    """
    The gradients accumulated by one minibatch step must be the gradients of

        mean(-min(r A, clip(r) A)) - entropy_coeff * mean(H) + value_coeff * mean(0.5 (V - R)^2)
    """

    @pytest.fixture
    def config(self):
        return PPOConfig(input_size=5, entropy_coeff=0.04, value_coeff=0.5, clip_epsilon=0.2)

    def _gradients(self, trainer, states, actions, old_log_probs, advantages, returns):
        """Run one minibatch step with clipping and Adam disabled, return the raw gradients."""
        with patch.object(trainer.policy_net, 'adam_step'), \
             patch.object(trainer.value_net, 'adam_step'), \
             patch.object(trainer.policy_net, 'clip_gradients'), \
             patch.object(trainer.value_net, 'clip_gradients'):
            trainer._optimize_minibatch(states, actions, old_log_probs, advantages, returns)
        return ([(layer.d_weights.copy(), layer.d_biases.copy()) for layer in trainer.policy_net.layers],
                [(layer.d_weights.copy(), layer.d_biases.copy()) for layer in trainer.value_net.layers])

    def _reference(self, trainer, config, states, actions, old_log_probs, advantages, returns):
        index = numpy.arange(len(actions))
        policy_activations = trainer.policy_net.activations
        value_activations  = trainer.value_net.activations

        def policy_loss(params):
            probs     = _softmax(_forward(params, policy_activations, states))
            log_probs = np.log(np.maximum(probs, 1e-8))
            ratio     = np.exp(log_probs[index, actions] - old_log_probs)
            surr1     = ratio * advantages
            surr2     = np.clip(ratio, 1.0 - config.clip_epsilon, 1.0 + config.clip_epsilon) * advantages
            entropy   = -np.sum(probs * log_probs, axis=1)
            return np.mean(-np.minimum(surr1, surr2)) - config.entropy_coeff * np.mean(entropy)

        def value_loss(params):
            values = _forward(params, value_activations, states)[:, 0]
            return config.value_coeff * np.mean(0.5 * (values - returns) ** 2)

        return grad(policy_loss)(_params(trainer.policy_net)), grad(value_loss)(_params(trainer.value_net))

    def _check(self, actual, expected):
        for (dW, db), (eW, eb) in zip(actual, expected):
            numpy.testing.assert_allclose(dW, eW, rtol=1e-5, atol=1e-10)
            numpy.testing.assert_allclose(db, eb, rtol=1e-5, atol=1e-10)

    def _batch(self, trainer, size):
        states  = numpy.random.random((size, 5))
        actions = numpy.random.randint(0, 2, size)
        log_probs, _, _ = trainer.evaluate_actions(states, actions)
        advantages = numpy.random.randn(size)
        returns    = numpy.random.randn(size) * 3.0
        return states, actions, log_probs, advantages, returns

    def test_first_pass(self, config):
        trainer = PPOTrainer(config)
        batch = self._batch(trainer, 16)
        expected = self._reference(trainer, config, *batch)
        actual   = self._gradients(trainer, *batch)
        self._check(actual[0], expected[0])
        self._check(actual[1], expected[1])

    def test_clipped_ratios(self, config):
        trainer = PPOTrainer(config)
        states, actions, log_probs, advantages, returns = self._batch(trainer, 24)
        # Ratios of exp(0.5) and exp(-0.5) fall outside the clip range on both sides
        old_log_probs = log_probs + numpy.random.choice([-0.5, 0.5], len(actions))

        expected = self._reference(trainer, config, states, actions, old_log_probs, advantages, returns)
        actual   = self._gradients(trainer, states, actions, old_log_probs, advantages, returns)
        self._check(actual[0], expected[0])
        self._check(actual[1], expected[1])

    def test_step_counter_advances(self, config):
        trainer = PPOTrainer(config)
        trainer._optimize_minibatch(*self._batch(trainer, 4))
        assert trainer.step == 2
