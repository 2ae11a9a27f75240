"""
Mode Controller Module

This module defines the abstract base class shared by the three training modes.

A mode controller orchestrates one training engine against an environment:
it hands a cohort of agents to the environment, waits for the environment's
"all agents terminated" callback, extracts fitness (or returns) from the
terminated agents, advances its engine and dispatches the next cohort.
The environment drives scheduling; the controller never blocks.

Classes:
    ModeController: Abstract base class of the GA, NEAT and PPO modes
"""

from abc        import ABC, abstractmethod
from statistics import mean
from typing     import Callable

from evodino.phenotype.brain   import Brain
from evodino.run.config        import Config
from evodino.run.environment   import Agent, Environment
from evodino.run.stats         import GenerationStats

class ModeController(ABC):
    """
    Abstract base class for a training mode.

    Subclasses must implement:
    - _reset():                 Create a fresh engine for 'self._config'
    - _create_brains():         The brains of the next cohort
    - _advance(dead_agents):    Feed the cohort's results to the engine, return its statistics
    - _report_progress(stat):   Display progress after each generation
    - export_model():           Serialize the best (or current) model
    - import_model(text):       Load a previously exported model
    - _inference_brain():       The brain run by 'start_inference'

    Subclasses can override:
    - _terminate(): Custom termination logic (default: 'max_generations')

    Public Attributes:
        is_running:            True while training; cleared by 'stop_training'
        stats:                 One GenerationStats per finished generation
        best_fitness_all_time: Best fitness seen since training started
        on_stats_update:       Optional callable invoked with every new GenerationStats

    Public Methods:
        start_training(config): Validate 'config' and start training
        stop_training():        Stop at the next generation boundary
        start_inference():      Run the best or imported model without training
    """

    # Name used in progress reports
    NAME: str = ''

    def __init__(self, environment: Environment, suppress_output: bool = False):
        """
        Parameters:
            environment:     The game simulation
            suppress_output: If True, suppress progress and final reports
        """
        self._environment    : Environment   = environment
        self._suppress_output: bool          = suppress_output
        self._config         : Config | None = None

        self.is_running           : bool                  = False
        self.stats                : list[GenerationStats] = []
        self.best_fitness_all_time: float                 = 0.0
        self.on_stats_update      : Callable | None       = None

    def start_training(self, config: Config) -> None:
        """
        Start training with a new engine.

        Parameters:
            config: Configuration of this mode

        Raises:
            ConfigError: If 'config' holds invalid values (nothing is started)
        """
        config.validate()

        self._config               = config
        self.stats                 = []
        self.best_fitness_all_time = 0.0
        self._reset()

        self.is_running = True
        self._start_generation()

    def stop_training(self) -> None:
        """
        Request the end of training. The current generation is allowed to finish;
        the request is honoured when the environment reports its termination.
        """
        self.is_running = False

    def start_inference(self) -> None:
        """
        Stop training and hand the best (or imported) model to the environment,
        acting greedily and without learning.

        Raises:
            RuntimeError: If no model has been trained or imported yet
        """
        brain = self._inference_brain()
        if brain is None:
            raise RuntimeError(f"{self.NAME}: no model available, train or import one first")

        self.is_running = False
        self._environment.reset([Agent(brain)], self._end_inference)
        self._environment.start()

    def _start_generation(self) -> None:
        agents = [Agent(brain) for brain in self._create_brains()]
        self._environment.reset(agents, self._end_generation)
        self._environment.start()

    def _end_generation(self) -> None:
        """
        Callback of the environment: the current cohort has terminated.
        """
        if not self.is_running:
            if not self._suppress_output:
                self._final_report()
            return

        stat = self._advance(self._environment.dead_agents)
        self.best_fitness_all_time = max(self.best_fitness_all_time, stat.best_fitness)
        self.stats.append(stat)

        if self.on_stats_update is not None:
            self.on_stats_update(stat)

        if not self._suppress_output:
            self._report_progress(stat)

        # 'on_stats_update' may have stopped training as well
        if self._terminate():
            self.is_running = False
        if not self.is_running:
            if not self._suppress_output:
                self._final_report()
            return

        self._start_generation()

    def _end_inference(self) -> None:
        if not self._suppress_output:
            scores = [agent.score for agent in self._environment.dead_agents]
            print(f"{self.NAME} inference finished, score: {max(scores, default=0.0):.2f}")

    @staticmethod
    def _match_scores(brains: list, dead_agents: list[Agent]) -> list[float]:
        """
        Score of each brain, matched by identity with the agent that held it
        (0 for a brain without a terminated agent).
        """
        scores = {id(agent.brain): agent.score for agent in dead_agents}
        return [scores.get(id(brain), 0.0) for brain in brains]

    @staticmethod
    def _summary(fitnesses: list[float]) -> tuple[float, float]:
        """
        Best and average of 'fitnesses' (0 for an empty list).
        """
        if not fitnesses:
            return 0.0, 0.0
        return max(fitnesses), mean(fitnesses)

    def _terminate(self) -> bool:
        """
        Determine whether training should stop after the generation just finished.

        Returns:
            bool: True if training should stop, False otherwise
        """
        max_generations = getattr(self._config, 'max_generations', None)
        return max_generations is not None and len(self.stats) >= max_generations

    @abstractmethod
    def _reset(self) -> None:
        pass

    @abstractmethod
    def _create_brains(self) -> list[Brain]:
        pass

    @abstractmethod
    def _advance(self, dead_agents: list[Agent]) -> GenerationStats:
        """
        Extract the results of the finished cohort and advance the engine by one
        generation (or episode).

        Parameters:
            dead_agents: Terminated agents, in termination order

        Returns:
            The statistics of the finished generation
        """
        pass

    @abstractmethod
    def _report_progress(self, stat: GenerationStats) -> None:
        """
        Report progress after each generation.

        This method is suppressed by setting 'suppress_output' to True.
        """
        pass

    def _final_report(self) -> None:
        """
        Produce the final report at the end of training.

        This method is suppressed by setting 'suppress_output' to True.
        """
        print(f"{self.NAME} training finished after {len(self.stats)} generations, "
              f"best fitness: {self.best_fitness_all_time:.2f}")

    @abstractmethod
    def export_model(self) -> str:
        pass

    @abstractmethod
    def import_model(self, text: str) -> None:
        pass

    @abstractmethod
    def _inference_brain(self) -> Brain | None:
        pass
