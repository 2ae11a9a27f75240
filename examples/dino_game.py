"""
Headless Dino Runner

This module implements a minimal side-scrolling runner as an Environment, so
the three training modes can be tried without a browser or a graphics layer.

The Game:
    The dino stands at a fixed horizontal position while obstacles (cacti of
    random height and width) scroll towards it. The scrolling speed grows
    slowly with time. The dino may jump while on the ground; gravity brings
    it back down. Touching an obstacle ends the run of that dino.

    State Space (7 values, all roughly in [0, 1]):
        - Distance to the next obstacle
        - Height of the next obstacle
        - Width of the next obstacle
        - Current speed
        - Jump flag (1 while airborne)
        - Vertical offset above the ground
        - Vertical velocity

    Action Space (2 discrete actions):
        0 - Do nothing
        1 - Jump

    Scoring:
        Every tick survived adds 1 to the score of a dino. A run is capped at
        'max_ticks' ticks.

Classes:
    Dino:     Per-agent physical state
    DinoGame: Environment running a whole cohort on a shared obstacle course

Usage:
    game = DinoGame(seed=0)
    mode = NEATMode(game)
    mode.start_training(NEATConfig(max_generations=50))
    game.run()
"""

import random
from dataclasses import dataclass

from evodino.run.environment import Agent, Environment

# Geometry (in screen widths / heights)
DINO_X         = 0.1
DINO_WIDTH     = 0.05
SPAWN_X        = 1.2
MIN_GAP        = 0.45
MAX_GAP        = 1.0

# Dynamics (per tick)
INITIAL_SPEED  = 0.012
MAX_SPEED      = 0.03
ACCELERATION   = 2e-6
JUMP_VELOCITY  = 0.045
GRAVITY        = 0.003

@dataclass
class Dino:
    y : float = 0.0
    vy: float = 0.0

    @property
    def airborne(self) -> bool:
        return self.y > 0.0

    def jump(self) -> None:
        if not self.airborne:
            self.vy = JUMP_VELOCITY

    def update(self) -> None:
        self.y  += self.vy
        self.vy -= GRAVITY
        if self.y <= 0.0:
            self.y  = 0.0
            self.vy = 0.0

@dataclass
class Obstacle:
    x     : float
    height: float
    width : float

class DinoGame(Environment):
    """
    Environment simulating one cohort of dinos on a shared obstacle course.

    'start' only schedules the cohort; 'run' is the game loop stepping the
    simulation until no cohort is scheduled anymore.

    Public Methods:
        start():         Schedule the current cohort
        step():          Advance the simulation by one tick
        run(max_steps):  Step until idle or until 'max_steps' ticks elapsed
    """

    def __init__(self, seed: int | None = None, max_ticks: int = 5000):
        super().__init__()
        self.max_ticks = max_ticks
        self.running   = False
        self._seed     = seed
        self._rng      = random.Random(seed)
        self._dinos    : dict[int, Dino] = {}
        self._obstacles: list[Obstacle]  = []
        self._speed    = INITIAL_SPEED
        self._tick     = 0

    def reset(self, agents: list[Agent], on_all_dead) -> None:
        super().reset(agents, on_all_dead)
        # Every cohort runs the same course when seeded
        self._rng       = random.Random(self._seed)
        self._dinos     = {id(agent): Dino() for agent in self.agents}
        self._obstacles = [self._new_obstacle(SPAWN_X)]
        self._speed     = INITIAL_SPEED
        self._tick      = 0
        self.running    = False

    def start(self) -> None:
        self.running = True

    def _new_obstacle(self, x: float) -> Obstacle:
        return Obstacle(x      = x,
                        height = self._rng.uniform(0.05, 0.15),
                        width  = self._rng.uniform(0.02, 0.08))

    def _next_obstacle(self) -> Obstacle:
        return next(o for o in self._obstacles if o.x + o.width >= DINO_X)

    def state(self, dino: Dino) -> list[float]:
        obstacle = self._next_obstacle()
        return [max(0.0, obstacle.x - DINO_X),
                obstacle.height * 5,
                obstacle.width * 10,
                self._speed / MAX_SPEED,
                1.0 if dino.airborne else 0.0,
                dino.y * 5,
                dino.vy / JUMP_VELOCITY]

    def _collides(self, dino: Dino) -> bool:
        obstacle = self._next_obstacle()
        overlaps = obstacle.x < DINO_X + DINO_WIDTH and DINO_X < obstacle.x + obstacle.width
        return overlaps and dino.y < obstacle.height

    def step(self) -> None:
        cohort = self.agents
        self._tick += 1

        for obstacle in self._obstacles:
            obstacle.x -= self._speed
        self._obstacles = [o for o in self._obstacles if o.x + o.width > 0.0]
        last = self._obstacles[-1]
        if last.x < SPAWN_X - MIN_GAP and self._rng.random() < 0.05 or last.x < SPAWN_X - MAX_GAP:
            self._obstacles.append(self._new_obstacle(SPAWN_X))
        self._speed = min(MAX_SPEED, self._speed + ACCELERATION)

        dying = []
        for agent in cohort:
            if not agent.alive:
                continue
            dino = self._dinos[id(agent)]
            if agent.brain.feedforward(self.state(dino)) == 1:
                dino.jump()
            dino.update()
            if self._collides(dino):
                dying.append(agent)
            else:
                agent.score += 1.0

        if self._tick >= self.max_ticks:
            dying = [agent for agent in cohort if agent.alive]
        if dying and len(dying) == sum(agent.alive for agent in cohort):
            self.running = False
        for agent in dying:
            # The last termination may install and start the next cohort
            self.terminate_agent(agent)

    def run(self, max_steps: int | None = None) -> None:
        steps = 0
        while self.running and (max_steps is None or steps < max_steps):
            self.step()
            steps += 1
