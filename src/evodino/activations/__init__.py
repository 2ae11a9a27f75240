"""
Activations Package

This package provides the activation functions shared by the fixed-topology
networks, the NEAT genomes and the PPO dense layers.

Exported:
    activations:            Dictionary mapping activation function names to functions
    activation_derivatives: Dictionary mapping activation function names to derivatives
    Individual activation functions: identity_activation, relu_activation, tanh_activation
"""

from evodino.activations.basic_activations import (
    activations,
    activation_derivatives,
    identity_activation,
    relu_activation,
    tanh_activation
)

__all__ = [
    'activations',
    'activation_derivatives',
    'identity_activation',
    'relu_activation',
    'tanh_activation'
]
