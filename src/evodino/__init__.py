"""
evodino - Training engines for a side-scrolling dino runner game.

This package trains agents that decide, on every game tick, whether the dino
jumps. Three interchangeable strategies are provided:
- GA:   a genetic algorithm over fixed-topology dense networks
- NEAT: topology-evolving networks with innovation tracking and speciation
- PPO:  an actor-critic trained with the clipped surrogate objective,
        with hand-written backpropagation and Adam

All of them produce a Brain: an object with 'feedforward(state) -> action'.

Main components:
- activations: Activation functions shared by all network kinds
- phenotype:   Fixed-topology networks and the Brain capability
- genotype:    NEAT genes, genomes and innovation tracking
- pool:        GA population, NEAT species and population
- ppo:         PPO networks, agent, rewards and trainer
- run:         Configuration, environment contract and mode controllers

Example:
    >>> from evodino import GAMode, GAConfig
    >>> mode = GAMode(my_environment)
    >>> mode.start_training(GAConfig(population_size=50))
"""

__version__ = "0.1.0"

# Import main classes for convenient access
from evodino.errors import ConfigError, InvalidModelError
from evodino.phenotype import Brain, NeuralNetwork, NetworkBrain
from evodino.genotype import Genome, InnovationTracker
from evodino.pool import GAPopulation, NEATPopulation
from evodino.ppo import PPOBrain, PPOTrainer
from evodino.run import (Agent, Environment, GenerationStats,
                         GAConfig, NEATConfig, PPOConfig,
                         GAMode, NEATMode, PPOMode)

__all__ = [
    "ConfigError",
    "InvalidModelError",
    "Brain",
    "NeuralNetwork",
    "NetworkBrain",
    "Genome",
    "InnovationTracker",
    "GAPopulation",
    "NEATPopulation",
    "PPOBrain",
    "PPOTrainer",
    "Agent",
    "Environment",
    "GenerationStats",
    "GAConfig",
    "NEATConfig",
    "PPOConfig",
    "GAMode",
    "NEATMode",
    "PPOMode",
]
