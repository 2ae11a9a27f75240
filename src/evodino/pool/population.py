"""
NEAT Population Module

This module implements the NEATPopulation class, the top-level orchestrator for the NEAT
evolutionary algorithm. The population manages speciation, fitness sharing, stagnation
removal, offspring allocation and reproduction, one generation at a time.

Classes:
    NEATPopulation: Top-level evolutionary coordinator managing genomes and species
"""

import math
import random
from typing import TYPE_CHECKING

from evodino.genotype     import Genome, InnovationTracker
from evodino.pool.species import Species
if TYPE_CHECKING:
    from evodino.run.config import NEATConfig

class NEATPopulation:
    """
    A population of evolving genomes in the NEAT algorithm.

    Each population owns the innovation tracker of its run: creating a new
    population starts a new numbering of innovations and node IDs.

    Public Attributes:
        genomes:    List of all genomes in the current generation
        species:    Species found in the last evaluated generation (never empty after 'evolve')
        generation: Number of completed 'evolve' calls
        tracker:    Innovation tracker of this run

    Public Methods:
        evolve(fitnesses): Create the next generation
        get_best():        Return the genome with the highest fitness
    """

    def __init__(self, config: 'NEATConfig'):
        """
        Create the initial population: fully connected genomes (inputs to outputs)
        with randomly perturbed weights.

        Parameters:
            config: Stores configuration parameters
        """
        self._config   : 'NEATConfig'      = config
        self.tracker   : InnovationTracker = InnovationTracker(config.input_size, config.output_size)
        self.species   : list[Species]     = []
        self.generation: int               = 0

        self.genomes: list[Genome] = []
        for _ in range(config.population_size):
            genome = Genome(config.input_size, config.output_size, self.tracker)
            genome.mutate_weights(1.0, config.initial_weight_strength)
            self.genomes.append(genome)

    def _speciate(self) -> None:
        """
        Assign all genomes to species based on genetic similarity.

        Each genome joins the first species (in creation order) whose representative
        is closer than the compatibility threshold; a genome fitting no species founds
        a new one. Species left without members are dropped and every surviving
        species picks a new random representative among its members.
        """
        for sp in self.species:
            sp.members = []

        threshold = self._config.compatibility_threshold
        for genome in self.genomes:
            for sp in self.species:
                if sp.distance_to(genome, self._config) < threshold:
                    sp.members.append(genome)
                    break
            else:
                self.species.append(Species(genome))

        self.species = [sp for sp in self.species if sp.members]
        for sp in self.species:
            sp.representative = random.choice(sp.members)

    def _remove_stale_species(self) -> None:
        """
        Remove species that have not improved for 'max_staleness' generations.
        At least one species always survives: if all are stale, the one with
        the best fitness ever is kept.
        """
        if len(self.species) <= 1:
            return

        survivors = [sp for sp in self.species if sp.staleness < self._config.max_staleness]
        if not survivors:
            survivors = [max(self.species, key=lambda sp: sp.best_fitness)]
        self.species = survivors

    def _calculate_offspring_allocations(self) -> list[int]:
        """
        Number of offspring of each species, proportional to its share of the total
        shared fitness (at least 1 each). When the total is not positive, the
        population is split evenly.
        """
        population_size = self._config.population_size
        total_adjusted  = sum(sp.adjusted_fitness_sum for sp in self.species)

        allocations = []
        for sp in self.species:
            if total_adjusted > 0:
                share = sp.adjusted_fitness_sum / total_adjusted
                allocations.append(max(1, math.floor(share * population_size)))
            else:
                allocations.append(max(1, population_size // len(self.species)))
        return allocations

    def evolve(self, fitnesses: list[float]) -> list[Genome]:
        """
        Create the next generation through speciation, selection, and reproduction.

        Step 1: assign the raw fitness of every genome
        Step 2: speciate
        Step 3: update species staleness and apply fitness sharing
        Step 4: remove stale species (never all of them)
        Step 5: allocate offspring to species
        Step 6: each species spawns its offspring (champion first)
        Step 7: pad with mutated clones or trim to the exact population size

        Parameters:
            fitnesses: Fitness of each genome, in population order

        Returns:
            The new generation

        Raises:
            ValueError: If 'fitnesses' does not match the population size
        """
        if len(fitnesses) != len(self.genomes):
            raise ValueError(f"Got {len(fitnesses)} fitness values for {len(self.genomes)} genomes")

        for genome, fitness in zip(self.genomes, fitnesses):
            genome.fitness = fitness

        self._speciate()

        for sp in self.species:
            sp.update_staleness()
            sp.adjust_fitness()

        self._remove_stale_species()

        allocations = self._calculate_offspring_allocations()
        next_generation = []
        for sp, num_offspring in zip(self.species, allocations):
            next_generation.extend(sp.spawn(num_offspring, self._config, self.tracker))

        # Rounding may leave the generation short, or (because of the
        # one-offspring minimum) make it overshoot
        population_size = self._config.population_size
        while len(next_generation) < population_size:
            sp   = random.choice(self.species)
            parent = random.choice(sp.members)
            child  = parent.clone()
            child.mutate_weights(self._config.weight_mutation_rate, self._config.weight_mutation_strength)
            next_generation.append(child)
        del next_generation[population_size:]

        self.genomes     = next_generation
        self.generation += 1
        return self.genomes

    def get_best(self) -> Genome:
        """
        Return the genome with the highest fitness (the first one in case of ties).
        """
        best = self.genomes[0]
        for genome in self.genomes:
            if genome.fitness > best.fitness:
                best = genome
        return best

    def __str__(self):
        return '\n'.join(str(genome) for genome in self.genomes)
