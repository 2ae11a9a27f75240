"""
GA Population Module

This module implements the genetic algorithm evolving fixed-topology networks:
rank by fitness, keep the elite, breed the rest from the top quarter of the
population by whole-network crossover and mutation.

Classes:
    GAPopulation: Population of fixed-topology networks evolved by a genetic algorithm
"""

import math
import numpy as np
import random
from typing import TYPE_CHECKING

from evodino.phenotype.network import NeuralNetwork
if TYPE_CHECKING:
    from evodino.run.config import GAConfig

class GAPopulation:
    """
    A population of fixed-topology neural networks evolved by a genetic algorithm.

    Public Attributes:
        population: The networks of the current generation
        generation: Number of completed 'evolve' calls

    Public Methods:
        init_population():              Create the initial (random) population
        crossover(parent_a, parent_b):  Combine two networks into a child network
        evolve(fitnesses):              Create the next generation
        get_best(fitnesses):            Fittest network of the current generation
    """

    def __init__(self, config: 'GAConfig'):
        """
        Parameters:
            config: Stores configuration parameters
        """
        self._config   : 'GAConfig'          = config
        self.population: list[NeuralNetwork] = []
        self.generation: int                 = 0

    @property
    def layer_sizes(self) -> list[int]:
        return [self._config.input_size, *self._config.hidden_sizes, self._config.output_size]

    def init_population(self) -> list[NeuralNetwork]:
        self.population = [NeuralNetwork(self.layer_sizes) for _ in range(self._config.population_size)]
        self.generation = 0
        return self.population

    def crossover(self, parent_a: NeuralNetwork, parent_b: NeuralNetwork) -> NeuralNetwork:
        """
        Whole-network uniform crossover: every weight and bias of the child
        is taken from either parent with equal probability.
        """
        if parent_a.layer_sizes != parent_b.layer_sizes:
            raise ValueError(f"Cannot cross networks with layer sizes "
                             f"{parent_a.layer_sizes} and {parent_b.layer_sizes}")

        child = NeuralNetwork(parent_a.layer_sizes, initialize=False)
        child.weights = []
        child.bias    = []
        for Wa, Wb, ba, bb in zip(parent_a.weights, parent_b.weights, parent_a.bias, parent_b.bias):
            child.weights.append(np.where(np.random.random(Wa.shape) < 0.5, Wa, Wb))
            child.bias.append(np.where(np.random.random(ba.shape) < 0.5, ba, bb))
        return child

    def evolve(self, fitnesses: list[float]) -> list[NeuralNetwork]:
        """
        Create the next generation.

        1. Rank the population by descending fitness (ties keep population order)
        2. Copy the top 'elitism_count' networks unchanged
        3. Take the top max(2, ceil(population_size / 4)) networks as parent pool
        4. Fill the generation with children of two random parents (with replacement),
           crossed over with probability 'crossover_rate' (cloned otherwise), then mutated

        Parameters:
            fitnesses: Fitness of each network, in population order

        Returns:
            The new population

        Raises:
            ValueError: If the population size is below 2 or 'fitnesses' has the wrong length
        """
        population_size = self._config.population_size
        if population_size < 2:
            raise ValueError(f"The genetic algorithm needs a population of at least 2, got {population_size}")
        if len(fitnesses) != len(self.population):
            raise ValueError(f"Got {len(fitnesses)} fitness values for {len(self.population)} networks")

        # 'sorted' is stable, also with 'reverse=True'
        ranking = sorted(range(len(self.population)), key=lambda i: fitnesses[i], reverse=True)
        ranked  = [self.population[i] for i in ranking]

        # Elitism: the top networks are transferred unchanged
        elite_number = min(self._config.elitism_count, population_size)
        next_generation = [network.clone() for network in ranked[:elite_number]]

        # Breeding: parents are the top quarter of the population
        num_parents = max(2, math.ceil(population_size / 4))
        parent_pool = ranked[:num_parents]

        while len(next_generation) < population_size:
            parent_a = random.choice(parent_pool)
            parent_b = random.choice(parent_pool)

            if random.random() < self._config.crossover_rate:
                child = self.crossover(parent_a, parent_b)
            else:
                child = parent_a.clone()

            child.mutate(self._config.mutation_rate, self._config.mutation_strength)
            next_generation.append(child)

        self.population  = next_generation
        self.generation += 1
        return self.population

    def get_best(self, fitnesses: list[float]) -> NeuralNetwork:
        """
        Return the fittest network of the current generation
        (the first one in population order in case of ties).
        """
        if len(fitnesses) != len(self.population):
            raise ValueError(f"Got {len(fitnesses)} fitness values for {len(self.population)} networks")
        best_index = max(range(len(fitnesses)), key=lambda i: fitnesses[i])
        return self.population[best_index]
