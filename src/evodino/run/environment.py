"""
Environment Contract Module

The game is not part of this package: it is supplied by the caller as an
Environment implementation. This module fixes the narrow interface the mode
controllers rely on.

A cohort of agents is handed to the environment with 'reset'; 'start' schedules
the simulation and returns without running it to completion. On every tick the
environment calls 'agent.brain.feedforward(state)' for each live agent, adds to
'agent.score' whatever the game rewards, and reports terminated agents through
'terminate_agent'. Once the last agent of the cohort has terminated, the
'on_all_dead' callback is invoked exactly once.

Classes:
    Agent:       Environment-facing handle around a Brain
    Environment: Abstract base class of a game simulation
"""

from abc    import ABC, abstractmethod
from typing import Callable

from evodino.phenotype.brain import Brain

class Agent:
    """
    One simulated player, driven by a Brain.

    Public Attributes:
        brain: Decides the action on every tick
        score: Cumulative score (fitness or return) achieved so far
        alive: False once the agent has terminated
    """

    def __init__(self, brain: Brain):
        self.brain: Brain = brain
        self.score: float = 0.0
        self.alive: bool  = True

    def __repr__(self):
        return f"Agent(score={self.score}, alive={self.alive})"

class Environment(ABC):
    """
    Abstract base class of a game simulation hosting a cohort of agents.

    Subclasses must implement:
    - start(): Schedule the simulation of the current cohort (must not block
               until the cohort has terminated)

    Public Attributes:
        agents:      The agents of the current cohort
        dead_agents: Terminated agents, in termination order

    Public Methods:
        reset(agents, on_all_dead): Install a new cohort
        start():                    Start simulating the current cohort
        terminate_agent(agent):     Record the termination of an agent
        all_dead():                 Whether every agent of the cohort has terminated
    """

    def __init__(self):
        self.agents      : list[Agent]     = []
        self.dead_agents : list[Agent]     = []
        self._on_all_dead: Callable | None = None

    def reset(self, agents: list[Agent], on_all_dead: Callable[[], None]) -> None:
        self.agents       = list(agents)
        self.dead_agents  = []
        self._on_all_dead = on_all_dead

    @abstractmethod
    def start(self) -> None:
        pass

    def all_dead(self) -> bool:
        return all(not agent.alive for agent in self.agents)

    def terminate_agent(self, agent: Agent) -> None:
        """
        Mark 'agent' as terminated. When it was the last live agent of the cohort,
        the 'on_all_dead' callback is invoked (once per cohort).
        """
        if not agent.alive:
            return
        agent.alive = False
        self.dead_agents.append(agent)

        if self.all_dead() and self._on_all_dead is not None:
            # The callback usually installs the next cohort through 'reset'
            callback, self._on_all_dead = self._on_all_dead, None
            callback()
