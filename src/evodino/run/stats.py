"""
Generation Statistics Module

Classes:
    GenerationStats: Summary of one finished generation (or PPO episode)
"""

from dataclasses import dataclass

@dataclass
class GenerationStats:
    """
    Summary of one finished generation, or of one episode for PPO.
    Fields that a strategy does not track are left at None.
    """
    generation      : int
    best_fitness    : float
    avg_fitness     : float
    species_count   : int   | None = None
    node_count      : int   | None = None
    connection_count: int   | None = None
    policy_loss     : float | None = None
    value_loss      : float | None = None
    entropy         : float | None = None
