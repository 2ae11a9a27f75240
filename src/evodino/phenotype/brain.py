"""
Brain Module

The Brain is the only capability the environment ever sees: given a state
vector, return a discrete action (0 = no-op, 1 = jump). Fixed networks,
NEAT genomes and PPO agents all provide it, so the environment is agnostic
to which training strategy produced an agent.

Classes:
    Brain:        Protocol implemented by every decision-making object
    NetworkBrain: Adapter turning a fixed network's output vector into an action
"""

import numpy as np
from typing import Protocol, runtime_checkable

from evodino.phenotype.network import NeuralNetwork

@runtime_checkable
class Brain(Protocol):
    """
    Anything that can make a decision from a game-state vector.
    """

    def feedforward(self, inputs) -> int:
        ...

class NetworkBrain:
    """
    Environment-facing wrapper around a fixed-topology network.

    With a single output neuron the agent jumps when that output is positive;
    with several output neurons the action is the index of the largest output
    (ties resolved to the lowest index).

    Public Attributes:
        network: The wrapped network (shared, not copied)
    """

    def __init__(self, network: NeuralNetwork):
        self.network = network

    def feedforward(self, inputs) -> int:
        outputs = self.network.feedforward(inputs)
        if len(outputs) == 1:
            return int(outputs[0] > 0.0)
        return int(np.argmax(outputs))

    def __repr__(self):
        return f"NetworkBrain({self.network!r})"
