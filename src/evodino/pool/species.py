"""
NEAT Species Module

This module implements the Species class for the NEAT algorithm.
A species represents a cluster of genetically similar genomes
that compete primarily within their own niche.

Classes:
    Species: Represents a single species with members and fitness tracking
"""

import math
import random
from typing import TYPE_CHECKING

from evodino.genotype import Genome, InnovationTracker
if TYPE_CHECKING:
    from evodino.run.config import NEATConfig

class Species:
    """
    A species representing a cluster of genetically similar genomes in NEAT.

    In NEAT, the population is divided into species based on genetic similarity,
    allowing different evolutionary niches to develop independently. This protects
    innovative structures from being eliminated by competition with more mature
    solutions, as genomes only compete for offspring within their own species.

    Membership is rebuilt every generation; the representative, the best fitness
    and the staleness counter persist across generations.

    Public Attributes:
        representative:       Genome used for distance calculations during speciation
        members:              The genomes that are part of this species
        best_fitness:         Best raw fitness ever achieved by a member
        staleness:            Generations since 'best_fitness' last improved
        adjusted_fitness_sum: Sum of the members' shared fitness

    Public Methods:
        update_staleness():           Track improvement of the species' best fitness
        adjust_fitness():             Apply fitness sharing to all members
        distance_to(genome, config):  Genetic distance between a genome and the representative
        spawn(num_offspring, config, tracker): Generate offspring for the next generation
    """

    def __init__(self, representative: Genome):
        """
        Initialize a new species.

        Parameters:
            representative: the Genome that represents this species in the speciation process
        """
        self.representative      : Genome       = representative
        self.members             : list[Genome] = [representative]
        self.best_fitness        : float        = 0.0
        self.staleness           : int          = 0
        self.adjusted_fitness_sum: float        = 0.0

    def update_staleness(self) -> None:
        """
        Reset the staleness counter if a member beat the species' best fitness,
        increment it otherwise.
        """
        best = max(genome.fitness for genome in self.members)
        if best > self.best_fitness:
            self.best_fitness = best
            self.staleness    = 0
        else:
            self.staleness += 1

    def adjust_fitness(self) -> None:
        """
        Explicit fitness sharing: each member's fitness is divided by the species size.
        """
        size = len(self.members)
        self.adjusted_fitness_sum = 0.0
        for genome in self.members:
            genome.adjusted_fitness = genome.fitness / size
            self.adjusted_fitness_sum += genome.adjusted_fitness

    def distance_to(self, genome: Genome, config: 'NEATConfig') -> float:
        return Genome.compatibility_distance(genome, self.representative, config.c1, config.c2, config.c3)

    def spawn(self, num_offspring: int, config: 'NEATConfig', tracker: InnovationTracker) -> list[Genome]:
        """
        Generate offspring for the next generation.

        The spawning process:
        1. Sort all members by fitness (highest first, ties keep member order)
        2. Transfer the champion unmutated
        3. Create the parent pool from the top 'survival_rate' fraction of members
        4. Fill the remaining slots by cloning (single parent, or with probability
           'clone_probability') or crossover, followed by mutation

        Parameters:
            num_offspring: Number of genomes this species should produce
            config:        Stores configuration parameters
            tracker:       Innovation tracker of the run

        Returns:
            List of offspring genomes
        """
        if num_offspring <= 0 or not self.members:
            return []

        sorted_members = sorted(self.members, key=lambda g: g.fitness, reverse=True)

        # The champion is transferred to the next generation unchanged
        offspring = [sorted_members[0].clone()]

        num_parents = max(1, math.ceil(len(sorted_members) * config.survival_rate))
        parent_pool = sorted_members[:num_parents]

        while len(offspring) < num_offspring:

            if len(parent_pool) == 1 or random.random() < config.clone_probability:
                child = random.choice(parent_pool).clone()
            else:
                parent1 = random.choice(parent_pool)
                parent2 = random.choice(parent_pool)
                if parent1.fitness >= parent2.fitness:
                    child = Genome.crossover(parent1, parent2)
                else:
                    child = Genome.crossover(parent2, parent1)

            child.mutate_weights(config.weight_mutation_rate, config.weight_mutation_strength)
            if random.random() < config.add_node_rate:
                child.mutate_add_node(tracker)
            if random.random() < config.add_connection_rate:
                child.mutate_add_connection(tracker)

            offspring.append(child)

        return offspring
