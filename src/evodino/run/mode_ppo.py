"""
PPO Mode Module

Classes:
    PPOMode: Trains the PPO actor-critic
"""

from typing import Callable

from evodino.ppo               import PPOBrain, PPOTrainer, dino_reward
from evodino.run.config        import PPOConfig
from evodino.run.environment   import Agent, Environment
from evodino.run.mode          import ModeController
from evodino.run.stats         import GenerationStats

class PPOMode(ModeController):
    """
    Mode controller running PPO. Each cohort is one episode: its agents sample
    actions from the current policy, and when all of them have terminated their
    trajectories feed one trainer update.

    Public Attributes:
        trainer:   The PPO trainer of the current run (or the imported one)
        episode:   Number of finished episodes
        reward_fn: Reward shaping of the environment, handed to every trainer
    """

    NAME = 'PPO'

    def __init__(self,
                 environment    : Environment,
                 suppress_output: bool     = False,
                 reward_fn      : Callable = dino_reward):
        """
        Parameters:
            environment:     The game simulation
            suppress_output: If True, suppress progress and final reports
            reward_fn:       Computes the per-step rewards of one trajectory
                             (see evodino.ppo.rewards)
        """
        super().__init__(environment, suppress_output)
        self.trainer  : PPOTrainer | None = None
        self.episode  : int               = 0
        self.reward_fn: Callable          = reward_fn

    def start_training(self, config: PPOConfig | None = None) -> None:
        super().start_training(config if config is not None else PPOConfig())

    def _reset(self) -> None:
        self.trainer = PPOTrainer(self._config, self.reward_fn)
        self.episode = 0

    def _create_brains(self) -> list[PPOBrain]:
        return self.trainer.create_agents()

    def _advance(self, dead_agents: list[Agent]) -> GenerationStats:
        scores = [agent.score for agent in dead_agents]
        best_score, avg_score = self._summary(scores)

        brains = [agent.brain for agent in dead_agents if len(agent.brain.states) > 0]
        self.trainer.update(brains)
        self.episode += 1

        return GenerationStats(self.episode,
                               best_score,
                               avg_score,
                               policy_loss = self.trainer.last_policy_loss,
                               value_loss  = self.trainer.last_value_loss,
                               entropy     = self.trainer.last_entropy)

    def _report_progress(self, stat: GenerationStats) -> None:
        print(f"PPO Ep {stat.generation} - Best: {stat.best_fitness:.2f}, Avg: {stat.avg_fitness:.2f}, "
              f"P.Loss: {stat.policy_loss:.4f}, V.Loss: {stat.value_loss:.4f}, Entropy: {stat.entropy:.4f}")

    def export_model(self) -> str:
        if self.trainer is None:
            raise RuntimeError("PPO: no model to export")
        return self.trainer.to_json()

    def import_model(self, text: str) -> None:
        """
        Replace the trainer by an exported one.

        Raises:
            InvalidModelError: If 'text' is not a valid PPO model (the current trainer is kept)
        """
        config = self._config if self._config is not None else PPOConfig()
        self.trainer = PPOTrainer.from_json(text, config, self.reward_fn)

    def _inference_brain(self) -> PPOBrain | None:
        if self.trainer is None:
            return None
        return self.trainer.create_inference_agent()
