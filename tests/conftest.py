"""Pytest configuration and shared fixtures."""

import pytest
import random
import sys
import numpy as np
from pathlib import Path

# Add the 'src' directory to the Python path
src_dir = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_dir))

from evodino.run.environment import Environment


class FakeEnvironment(Environment):
    """
    Scriptable environment for tests: nothing happens until the test
    calls 'tick' (every live agent decides on a state) or 'finish'
    (every live agent terminates with a given score).
    """

    def __init__(self):
        super().__init__()
        self.start_count = 0
        self.cohorts     = []

    def reset(self, agents, on_all_dead):
        super().reset(agents, on_all_dead)
        self.cohorts.append(self.agents)

    def start(self):
        self.start_count += 1

    def tick(self, state):
        return [agent.brain.feedforward(state) for agent in self.agents if agent.alive]

    def finish(self, scores=None):
        """Terminate all agents of the current cohort, in cohort order."""
        agents = list(self.agents)
        if scores is None:
            scores = [0.0] * len(agents)
        for agent, score in zip(agents, scores):
            agent.score = score
        for agent in agents:
            self.terminate_agent(agent)


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Seed both random number generators for reproducibility."""
    np.random.seed(42)
    random.seed(42)
    yield
    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def fake_environment():
    return FakeEnvironment()
