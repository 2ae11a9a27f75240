"""
PPO Network Module

This module implements the stack of dense layers used for both the policy and
the value function of the PPO trainer.

Classes:
    PPONetwork: Feed-forward network with manual backpropagation and Adam
"""

import json
import numpy as np

from evodino.activations import activations as activation_functions
from evodino.errors      import InvalidModelError
from evodino.ppo.layers  import DenseLayer

class PPONetwork:
    """
    A feed-forward stack of DenseLayer objects.

    Public Attributes:
        sizes:       Number of neurons in each layer, input layer first
        activations: Activation function name of each layer transition
        layers:      The dense layers

    Public Methods:
        forward(x):            Forward pass (caches values for backward)
        backward(grad_output): Backpropagate, accumulating parameter gradients
        zero_grad():           Reset accumulated gradients
        clip_gradients(max_norm): Rescale gradients to a maximum global norm
        adam_step(lr, t):      Apply one Adam update to every layer
        clone():               Independent copy of the parameters
        to_dict() / to_json(): Serialize the network

    Class Methods:
        from_dict(data) / from_json(text): Deserialize a network
    """

    BETA1   = 0.9
    BETA2   = 0.999
    EPSILON = 1e-8

    def __init__(self, sizes: list[int], activations: list[str], init_scales: list[float | None] | None = None):
        """
        Parameters:
            sizes:       Number of neurons in each layer (at least two layers)
            activations: One activation name per layer transition
            init_scales: Optional per-layer weight initialization scales (None entries use He)
        """
        if len(sizes) < 2:
            raise ValueError(f"A network needs at least two layers, got {list(sizes)}")
        if len(activations) != len(sizes) - 1:
            raise ValueError(f"Expected {len(sizes) - 1} activations, got {len(activations)}")
        if init_scales is None:
            init_scales = [None] * (len(sizes) - 1)

        self.sizes       : list[int]          = [int(size) for size in sizes]
        self.activations : list[str]          = list(activations)
        self._init_scales: list               = list(init_scales)
        self.layers      : list[DenseLayer]   = [DenseLayer(size_in, size_out, activation, scale)
                                                 for size_in, size_out, activation, scale
                                                 in zip(self.sizes[:-1], self.sizes[1:], self.activations, self._init_scales)]

    def forward(self, x) -> np.ndarray:
        for layer in self.layers:
            x = layer.forward(x)
        return x

    def backward(self, grad_output) -> np.ndarray:
        grad = grad_output
        for layer in reversed(self.layers):
            grad = layer.backward(grad)
        return grad

    def zero_grad(self) -> None:
        for layer in self.layers:
            layer.zero_grad()

    def gradient_norm(self) -> float:
        total = sum(np.sum(layer.d_weights ** 2) + np.sum(layer.d_biases ** 2) for layer in self.layers)
        return float(np.sqrt(total))

    def clip_gradients(self, max_norm: float) -> None:
        """
        Rescale all accumulated gradients so that their global L2 norm
        (over all layers together) does not exceed 'max_norm'.
        """
        norm = self.gradient_norm()
        if norm > max_norm:
            scale = max_norm / norm
            for layer in self.layers:
                layer.d_weights *= scale
                layer.d_biases  *= scale

    def adam_step(self, lr: float, t: int) -> None:
        for layer in self.layers:
            layer.adam_step(lr, self.BETA1, self.BETA2, self.EPSILON, t)

    def clone(self) -> 'PPONetwork':
        """
        Copy of the parameters; optimizer state and gradients start fresh.
        """
        network = PPONetwork(self.sizes, self.activations, self._init_scales)
        for src, dst in zip(self.layers, network.layers):
            dst.weights = src.weights.copy()
            dst.biases  = src.biases.copy()
        return network

    def to_dict(self) -> dict:
        """
        Convert the network to a dictionary:
            {"sizes": [...], "activations": [...], "layers": [{"weights": [[...]], "biases": [...]}]}
        """
        return {
            "sizes"      : list(self.sizes),
            "activations": list(self.activations),
            "layers"     : [{"weights": layer.weights.tolist(),
                             "biases" : layer.biases.tolist()} for layer in self.layers]
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> 'PPONetwork':
        """
        Create a network from its dictionary description.

        Raises:
            InvalidModelError: If fields are missing, activations are unknown
                               or the parameter shapes are inconsistent
        """
        try:
            sizes       = [int(size) for size in data["sizes"]]
            activations = [str(name) for name in data["activations"]]
            weights     = [np.array(layer["weights"], dtype=float) for layer in data["layers"]]
            biases      = [np.array(layer["biases"],  dtype=float) for layer in data["layers"]]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidModelError(f"Invalid network description: {e}") from e

        if len(sizes) < 2 or any(size < 1 for size in sizes):
            raise InvalidModelError(f"Invalid layer sizes {sizes}")
        if len(activations) != len(sizes) - 1 or len(weights) != len(sizes) - 1:
            raise InvalidModelError("Number of layers does not match 'sizes'")
        for name in activations:
            if name not in activation_functions:
                raise InvalidModelError(f"Unknown activation function '{name}'")

        for L in range(len(sizes) - 1):
            expected = (sizes[L + 1], sizes[L])
            if weights[L].shape != expected:
                raise InvalidModelError(f"Layer {L}: weights have shape {weights[L].shape}, expected {expected}")
            if biases[L].shape != (sizes[L + 1],):
                raise InvalidModelError(f"Layer {L}: biases have shape {biases[L].shape}, expected ({sizes[L + 1]},)")
            if not (np.all(np.isfinite(weights[L])) and np.all(np.isfinite(biases[L]))):
                raise InvalidModelError(f"Layer {L}: parameters must be finite")

        network = cls(sizes, activations)
        for layer, W, b in zip(network.layers, weights, biases):
            layer.weights = W
            layer.biases  = b
        return network

    @classmethod
    def from_json(cls, text: str) -> 'PPONetwork':
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidModelError(f"Network is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidModelError("Network JSON must be an object")
        return cls.from_dict(data)

    def __repr__(self):
        return f"PPONetwork(sizes={self.sizes}, activations={self.activations})"
