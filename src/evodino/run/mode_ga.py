"""
GA Mode Module

Classes:
    GAMode: Trains fixed-topology networks with the genetic algorithm
"""

from evodino.phenotype         import NeuralNetwork, NetworkBrain
from evodino.pool              import GAPopulation
from evodino.run.config        import GAConfig
from evodino.run.environment   import Agent, Environment
from evodino.run.mode          import ModeController
from evodino.run.stats         import GenerationStats

class GAMode(ModeController):
    """
    Mode controller running the genetic algorithm over fixed-topology networks.

    The fitness of a network is the score of the agent that held it (0 when
    the environment did not report that agent).

    Public Attributes:
        ga:         The GA engine of the current run
        best_model: Clone of the best network seen since training started
    """

    NAME = 'GA'

    def __init__(self, environment: Environment, suppress_output: bool = False):
        super().__init__(environment, suppress_output)
        self.ga        : GAPopulation | None  = None
        self.best_model: NeuralNetwork | None = None
        self._brains   : list[NetworkBrain]   = []

    def start_training(self, config: GAConfig | None = None) -> None:
        super().start_training(config if config is not None else GAConfig())

    def _reset(self) -> None:
        self.ga = GAPopulation(self._config)
        self.ga.init_population()
        self.best_model = None

    def _create_brains(self) -> list[NetworkBrain]:
        self._brains = [NetworkBrain(network) for network in self.ga.population]
        return self._brains

    def _advance(self, dead_agents: list[Agent]) -> GenerationStats:
        fitnesses = self._match_scores(self._brains, dead_agents)
        best_fitness, avg_fitness = self._summary(fitnesses)

        # Keep the champion before 'evolve' replaces the population
        if self.best_model is None or best_fitness > self.best_fitness_all_time:
            self.best_model = self.ga.get_best(fitnesses).clone()

        stat = GenerationStats(self.ga.generation, best_fitness, avg_fitness)
        self.ga.evolve(fitnesses)
        return stat

    def _report_progress(self, stat: GenerationStats) -> None:
        print(f"Generation {stat.generation} - Best: {stat.best_fitness:.2f}, "
              f"Avg: {stat.avg_fitness:.2f}, "
              f"All-time: {max(self.best_fitness_all_time, stat.best_fitness):.2f}")

    def export_model(self) -> str:
        if self.best_model is None:
            raise RuntimeError("GA: no model to export")
        return self.best_model.to_json()

    def import_model(self, text: str) -> None:
        """
        Load an exported network as the best model.

        Raises:
            InvalidModelError: If 'text' is not a valid network (the current model is kept)
        """
        self.best_model = NeuralNetwork.from_json(text)

    def _inference_brain(self) -> NetworkBrain | None:
        if self.best_model is None:
            return None
        return NetworkBrain(self.best_model)
