"""
NEAT Mode Module

Classes:
    NEATMode: Trains NEAT genomes
"""

from evodino.genotype          import Genome
from evodino.pool              import NEATPopulation
from evodino.run.config        import NEATConfig
from evodino.run.environment   import Agent, Environment
from evodino.run.mode          import ModeController
from evodino.run.stats         import GenerationStats

class NEATMode(ModeController):
    """
    Mode controller running the NEAT algorithm. Genomes act as brains directly.

    Besides fitness, the statistics report the number of species of the evaluated
    generation and the size (nodes, enabled connections) of its best genome.

    Public Attributes:
        neat:        The NEAT engine of the current run
        best_genome: Clone of the best genome seen since training started
    """

    NAME = 'NEAT'

    def __init__(self, environment: Environment, suppress_output: bool = False):
        super().__init__(environment, suppress_output)
        self.neat       : NEATPopulation | None = None
        self.best_genome: Genome | None         = None

    def start_training(self, config: NEATConfig | None = None) -> None:
        super().start_training(config if config is not None else NEATConfig())

    def _reset(self) -> None:
        self.neat        = NEATPopulation(self._config)
        self.best_genome = None

    def _create_brains(self) -> list[Genome]:
        return list(self.neat.genomes)

    def _advance(self, dead_agents: list[Agent]) -> GenerationStats:
        genomes   = self.neat.genomes
        fitnesses = self._match_scores(genomes, dead_agents)
        best_fitness, avg_fitness = self._summary(fitnesses)

        best_index   = max(range(len(fitnesses)), key=lambda i: fitnesses[i])
        current_best = genomes[best_index]
        if self.best_genome is None or best_fitness > self.best_fitness_all_time:
            self.best_genome = current_best.clone()
            self.best_genome.fitness = best_fitness

        generation = self.neat.generation
        self.neat.evolve(fitnesses)

        return GenerationStats(generation,
                               best_fitness,
                               avg_fitness,
                               species_count    = len(self.neat.species),
                               node_count       = len(current_best.node_genes),
                               connection_count = current_best.num_enabled_connections)

    def _report_progress(self, stat: GenerationStats) -> None:
        print(f"NEAT Gen {stat.generation} - Best: {stat.best_fitness:.2f}, "
              f"Avg: {stat.avg_fitness:.2f}, Species: {stat.species_count}, "
              f"Nodes: {stat.node_count}, Connections: {stat.connection_count}")

    def export_model(self) -> str:
        if self.best_genome is None:
            raise RuntimeError("NEAT: no model to export")
        return self.best_genome.to_json()

    def import_model(self, text: str) -> None:
        """
        Load an exported genome as the best genome.

        When a run with matching input/output sizes exists, the genome's connections
        are registered with that run's innovation tracker, so that they align with
        the genes of the live population.

        Raises:
            InvalidModelError: If 'text' is not a valid genome (the current model is kept)
        """
        genome = Genome.from_json(text)

        config = self._config
        if self.neat is not None and \
           (genome.input_size, genome.output_size) == (config.input_size, config.output_size):
            genome = Genome.from_dict(genome.to_dict(), self.neat.tracker)

        self.best_genome = genome

    def _inference_brain(self) -> Genome | None:
        return self.best_genome
