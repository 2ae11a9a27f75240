"""
Dense Layer Module

This module implements a fully connected layer with a hand-written backward pass
and per-parameter Adam optimizer state, the building block of the PPO networks.

Classes:
    DenseLayer: Fully connected layer with forward/backward passes and Adam
"""

import math
import numpy as np

from evodino.activations import activations, activation_derivatives

class DenseLayer:
    """
    A fully connected layer: output = activation(x @ weights.T + biases)

    The layer caches its last input, pre-activation and output during 'forward',
    which 'backward' then uses to accumulate parameter gradients. Gradients
    accumulate over successive 'backward' calls until 'zero_grad' is called.

    'forward' accepts a single vector of shape (input_size,) or a batch of
    shape (batch, input_size); 'backward' expects a gradient of the same
    leading shape as the last output.

    Public Attributes:
        input_size:  Number of inputs
        output_size: Number of outputs
        activation:  Name of the activation function ("relu", "tanh" or "linear")
        weights:     Matrix of shape (output_size, input_size)
        biases:      Vector of length output_size
        d_weights:   Accumulated gradient of the loss with respect to 'weights'
        d_biases:    Accumulated gradient of the loss with respect to 'biases'
    """

    def __init__(self, input_size: int, output_size: int, activation: str, init_scale: float | None = None):
        """
        Parameters:
            input_size:  Number of inputs
            output_size: Number of outputs
            activation:  Name of the activation function
            init_scale:  Weights are drawn from uniform(-1, 1) * init_scale;
                         defaults to the He scale sqrt(2 / input_size)
        """
        if activation not in activations:
            raise KeyError(f"Unknown activation function '{activation}'")

        scale = init_scale if init_scale is not None else math.sqrt(2.0 / input_size)

        self.input_size : int        = input_size
        self.output_size: int        = output_size
        self.activation : str        = activation
        self.weights    : np.ndarray = np.random.uniform(-1.0, 1.0, (output_size, input_size)) * scale
        self.biases     : np.ndarray = np.zeros(output_size)
        self.d_weights  : np.ndarray = np.zeros_like(self.weights)
        self.d_biases   : np.ndarray = np.zeros_like(self.biases)

        # Adam first and second raw moments
        self._m_weights = np.zeros_like(self.weights)
        self._v_weights = np.zeros_like(self.weights)
        self._m_biases  = np.zeros_like(self.biases)
        self._v_biases  = np.zeros_like(self.biases)

        self._input  = None
        self._preact = None
        self._output = None

    def forward(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        z = x @ self.weights.T + self.biases
        a = activations[self.activation](z)

        self._input  = x
        self._preact = z
        self._output = a
        return a

    def backward(self, grad_output) -> np.ndarray:
        """
        Backpropagate through the layer using the values cached by the last 'forward'.

        Parameters:
            grad_output: Gradient of the loss with respect to the layer's output

        Returns:
            Gradient of the loss with respect to the layer's input
        """
        if self._input is None:
            raise RuntimeError("backward() called before forward()")

        grad_output = np.asarray(grad_output, dtype=float)
        grad_preact = grad_output * activation_derivatives[self.activation](self._preact, self._output)

        # A single vector is handled as a batch of one
        g = np.atleast_2d(grad_preact)
        x = np.atleast_2d(self._input)
        self.d_weights += g.T @ x
        self.d_biases  += g.sum(axis=0)

        return grad_preact @ self.weights

    def zero_grad(self) -> None:
        self.d_weights.fill(0.0)
        self.d_biases.fill(0.0)

    def adam_step(self, lr: float, beta1: float, beta2: float, eps: float, t: int) -> None:
        """
        Apply one Adam update with bias correction, using the accumulated gradients.

        Parameters:
            lr:    Learning rate
            beta1: Decay rate of the first moment
            beta2: Decay rate of the second moment
            eps:   Denominator guard
            t:     Step number, starting at 1
        """
        bc1 = 1.0 - beta1 ** t
        bc2 = 1.0 - beta2 ** t

        self._m_weights = beta1 * self._m_weights + (1.0 - beta1) * self.d_weights
        self._v_weights = beta2 * self._v_weights + (1.0 - beta2) * self.d_weights ** 2
        self.weights   -= lr * (self._m_weights / bc1) / (np.sqrt(self._v_weights / bc2) + eps)

        self._m_biases  = beta1 * self._m_biases + (1.0 - beta1) * self.d_biases
        self._v_biases  = beta2 * self._v_biases + (1.0 - beta2) * self.d_biases ** 2
        self.biases    -= lr * (self._m_biases / bc1) / (np.sqrt(self._v_biases / bc2) + eps)

    def __repr__(self):
        return f"DenseLayer({self.input_size}, {self.output_size}, '{self.activation}')"
