"""
Fixed-Topology Network Module

This module implements the dense feed-forward network evolved by the genetic
algorithm. The topology (number of layers and their sizes) never changes;
evolution only acts on weights and biases.

Classes:
    NeuralNetwork: Dense feed-forward network with ReLU hidden layers and a linear output layer
"""

import json
import numpy as np

from evodino.activations import relu_activation
from evodino.errors      import InvalidModelError

class NeuralNetwork:
    """
    A dense feed-forward neural network with a fixed topology.

    Layer 'L' maps 'layer_sizes[L]' values to 'layer_sizes[L+1]' values through
    'weights[L]' (a matrix of shape (layer_sizes[L+1], layer_sizes[L]), indexed as
    weights[L][output][input]) and 'bias[L]' (a vector of length layer_sizes[L+1]).
    Every hidden layer applies ReLU, the final layer is linear.

    Public Attributes:
        layer_sizes: Number of neurons in each layer, input layer first
        weights:     One weight matrix per layer transition
        bias:        One bias vector per layer transition

    Public Methods:
        feedforward(inputs):      Propagate an input vector through the network
        mutate(rate, strength):   Randomly perturb weights and biases in place
        clone():                  Create an independent deep copy
        to_dict() / to_json():    Serialize the network

    Class Methods:
        from_dict(data) / from_json(text): Deserialize a network
    """

    def __init__(self, layer_sizes: list[int], initialize: bool = True):
        """
        Create a network with weights and biases drawn uniformly from (-1, 1).

        Parameters:
            layer_sizes: Number of neurons in each layer (at least two layers)
            initialize:  Whether to draw random parameters (False leaves them at zero)
        """
        if len(layer_sizes) < 2:
            raise ValueError(f"A network needs at least two layers, got {list(layer_sizes)}")

        self.layer_sizes: list[int]        = [int(size) for size in layer_sizes]
        self.weights    : list[np.ndarray] = []
        self.bias       : list[np.ndarray] = []

        for size_in, size_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:]):
            if initialize:
                self.weights.append(np.random.uniform(-1.0, 1.0, (size_out, size_in)))
                self.bias.append(np.random.uniform(-1.0, 1.0, size_out))
            else:
                self.weights.append(np.zeros((size_out, size_in)))
                self.bias.append(np.zeros(size_out))

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    def feedforward(self, inputs) -> np.ndarray:
        """
        Propagate an input vector through the network.

        Parameters:
            inputs: Vector of length 'layer_sizes[0]'

        Returns:
            The output vector (length 'layer_sizes[-1]')
        """
        x = np.asarray(inputs, dtype=float)
        last = len(self.weights) - 1
        for L, (W, b) in enumerate(zip(self.weights, self.bias)):
            z = W @ x + b
            x = z if L == last else relu_activation(z)
        return x

    def mutate(self, rate: float, strength: float) -> None:
        """
        Perturb, independently with probability 'rate', every weight and bias
        by 'strength * uniform(-1, 1)'.
        """
        for W, b in zip(self.weights, self.bias):
            mask = np.random.random(W.shape) < rate
            W += mask * np.random.uniform(-1.0, 1.0, W.shape) * strength

            mask = np.random.random(b.shape) < rate
            b += mask * np.random.uniform(-1.0, 1.0, b.shape) * strength

    def clone(self) -> 'NeuralNetwork':
        network = NeuralNetwork(self.layer_sizes, initialize=False)
        network.weights = [W.copy() for W in self.weights]
        network.bias    = [b.copy() for b in self.bias]
        return network

    def parameters_equal(self, other: 'NeuralNetwork') -> bool:
        """
        Whether 'other' has the same topology and exactly the same weights and biases.
        """
        if self.layer_sizes != other.layer_sizes:
            return False
        return all(np.array_equal(W1, W2) for W1, W2 in zip(self.weights, other.weights)) and \
               all(np.array_equal(b1, b2) for b1, b2 in zip(self.bias, other.bias))

    def to_dict(self) -> dict:
        """
        Convert the network to a dictionary:
            {"layerSizes": [...], "weights": [[[...]]], "bias": [[...]]}
        """
        return {
            "layerSizes": list(self.layer_sizes),
            "weights"   : [W.tolist() for W in self.weights],
            "bias"      : [b.tolist() for b in self.bias]
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> 'NeuralNetwork':
        """
        Create a network from its dictionary description.

        Raises:
            InvalidModelError: If fields are missing or the shapes are inconsistent
        """
        try:
            layer_sizes = [int(size) for size in data["layerSizes"]]
            weights     = [np.array(W, dtype=float) for W in data["weights"]]
            bias        = [np.array(b, dtype=float) for b in data["bias"]]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidModelError(f"Invalid network description: {e}") from e

        if len(layer_sizes) < 2 or any(size < 1 for size in layer_sizes):
            raise InvalidModelError(f"Invalid layer sizes {layer_sizes}")
        if len(weights) != len(layer_sizes) - 1 or len(bias) != len(layer_sizes) - 1:
            raise InvalidModelError("Number of weight/bias layers does not match 'layerSizes'")

        for L in range(len(layer_sizes) - 1):
            expected = (layer_sizes[L + 1], layer_sizes[L])
            if weights[L].shape != expected:
                raise InvalidModelError(f"Layer {L}: weights have shape {weights[L].shape}, expected {expected}")
            if bias[L].shape != (layer_sizes[L + 1],):
                raise InvalidModelError(f"Layer {L}: bias has shape {bias[L].shape}, expected ({layer_sizes[L + 1]},)")
            if not (np.all(np.isfinite(weights[L])) and np.all(np.isfinite(bias[L]))):
                raise InvalidModelError(f"Layer {L}: parameters must be finite")

        network = cls(layer_sizes, initialize=False)
        network.weights = weights
        network.bias    = bias
        return network

    @classmethod
    def from_json(cls, text: str) -> 'NeuralNetwork':
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidModelError(f"Network is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidModelError("Network JSON must be an object")
        return cls.from_dict(data)

    def __repr__(self):
        return f"NeuralNetwork(layer_sizes={self.layer_sizes})"
