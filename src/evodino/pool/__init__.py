"""
Pool Package

This package contains the population-level engines: the genetic algorithm over
fixed-topology networks and the NEAT population with its species.

Modules:
    ga_population: Genetic algorithm over fixed-topology networks
    species:       NEAT species representation and reproduction
    population:    NEAT population management and evolution

Exported Classes:
    GAPopulation:   Population of fixed-topology networks
    Species:        A cluster of genetically similar genomes
    NEATPopulation: Top-level NEAT evolutionary coordinator
"""

from evodino.pool.ga_population import GAPopulation
from evodino.pool.species       import Species
from evodino.pool.population    import NEATPopulation

__all__ = [
    'GAPopulation',
    'Species',
    'NEATPopulation',
]
