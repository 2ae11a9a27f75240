"""
Shared fixtures for integration tests.

RunnerEnvironment is a small deterministic obstacle runner: obstacles approach
the dino at constant speed, a jump keeps it airborne for JUMP_TICKS ticks, and
an agent on the ground when an obstacle arrives is terminated. Every surviving
tick scores 1. Because all agents of a cohort see the same obstacle timeline,
a brain's score depends only on its own decisions.

'start' only marks the cohort as running; 'run' is the game loop that steps
the simulation until no cohort is scheduled anymore.
"""

import pytest

from evodino.run.environment import Agent, Environment


class RunnerEnvironment(Environment):

    SPEED      = 0.05
    JUMP_TICKS = 8

    def __init__(self, max_ticks=200):
        super().__init__()
        self.max_ticks = max_ticks
        self.running   = False
        self.episodes  = 0
        self._tick     = 0
        self._distance = 1.0
        self._airtime  = {}

    def reset(self, agents, on_all_dead):
        super().reset(agents, on_all_dead)
        self.running   = False
        self._tick     = 0
        self._distance = 1.0
        self._airtime  = {id(agent): 0 for agent in self.agents}

    def start(self):
        self.running = True
        self.episodes += 1

    def state(self, airtime):
        return [self._distance,
                0.5,
                0.2,
                self.SPEED * 10,
                1.0 if airtime > 0 else 0.0,
                airtime / self.JUMP_TICKS,
                1.0]

    def step(self):
        cohort = self.agents
        self._tick     += 1
        self._distance -= self.SPEED
        collision = self._distance <= 0.0

        dying = []
        for agent in cohort:
            if not agent.alive:
                continue
            airtime = self._airtime[id(agent)]
            action  = agent.brain.feedforward(self.state(airtime))

            if collision and airtime == 0:
                dying.append(agent)
                continue

            agent.score += 1.0
            if airtime > 0:
                self._airtime[id(agent)] = airtime - 1
            elif action == 1:
                self._airtime[id(agent)] = self.JUMP_TICKS

        if collision:
            self._distance = 1.0
        if self._tick >= self.max_ticks:
            dying = [agent for agent in cohort if agent.alive]

        if len(dying) == sum(agent.alive for agent in cohort):
            self.running = False
        for agent in dying:
            # May install and start the next cohort
            self.terminate_agent(agent)

    def run(self, max_steps=1_000_000):
        steps = 0
        while self.running and steps < max_steps:
            self.step()
            steps += 1


class ConstantBrain:
    def __init__(self, action):
        self.action = action

    def feedforward(self, inputs):
        return self.action


@pytest.fixture
def runner():
    return RunnerEnvironment()


@pytest.fixture
def play():
    """Return a function scoring a single brain on a fresh episode."""
    def score(environment, brain):
        agent = Agent(brain)
        environment.reset([agent], lambda: None)
        environment.start()
        environment.run()
        return agent.score
    return score


@pytest.fixture
def never_jump():
    return ConstantBrain(0)
