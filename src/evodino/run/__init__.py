"""
Run Package

This package connects the training engines to a game: configuration, the
environment contract, generation statistics and the three mode controllers.

Modules:
    config:      Configuration classes (GAConfig, NEATConfig, PPOConfig)
    environment: Agent handle and Environment base class
    stats:       GenerationStats record
    mode:        ModeController base class
    mode_ga:     GAMode
    mode_neat:   NEATMode
    mode_ppo:    PPOMode
"""

from evodino.run.config      import Config, GAConfig, NEATConfig, PPOConfig
from evodino.run.environment import Agent, Environment
from evodino.run.stats       import GenerationStats
from evodino.run.mode        import ModeController
from evodino.run.mode_ga     import GAMode
from evodino.run.mode_neat   import NEATMode
from evodino.run.mode_ppo    import PPOMode

__all__ = [
    'Config',
    'GAConfig',
    'NEATConfig',
    'PPOConfig',
    'Agent',
    'Environment',
    'GenerationStats',
    'ModeController',
    'GAMode',
    'NEATMode',
    'PPOMode',
]
