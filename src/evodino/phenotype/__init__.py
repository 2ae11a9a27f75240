"""
Phenotype Package

This package contains the fixed-topology network evolved by the genetic
algorithm and the Brain capability shared by every kind of trained agent.

Modules:
    network: Dense feed-forward network with fixed topology
    brain:   Brain protocol and the adapter for fixed networks

Exported Classes:
    NeuralNetwork: Dense feed-forward network (ReLU hidden layers, linear output)
    Brain:         Protocol for objects mapping a state vector to an action
    NetworkBrain:  Adapter exposing a NeuralNetwork as a Brain
"""

from evodino.phenotype.network import NeuralNetwork
from evodino.phenotype.brain   import Brain, NetworkBrain

__all__ = ['NeuralNetwork',
           'Brain',
           'NetworkBrain']
