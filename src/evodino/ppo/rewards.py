"""
Reward Functions Module

The PPO trainer does not know the game: per-step rewards are computed after the
episode from the recorded states and actions by a pluggable reward function

    reward_fn(states, actions) -> rewards

This module provides the reward shaping of the dino runner game. State features
used (all normalized): index 0 is the distance to the next obstacle, index 4 is
the jump flag (1 while airborne).

Functions:
    survival_reward(states, actions): +1 for every step survived
    dino_reward(states, actions):     Survival reward shaped for the dino runner
"""

import numpy as np

SURVIVAL_REWARD  = 1.0
EARLY_JUMP_COST  = 0.5
EARLY_JUMP_DIST  = 0.3
NEAR_MISS_BONUS  = 1.5
NEAR_MISS_DIST   = 0.15

def survival_reward(states, actions) -> np.ndarray:
    return np.full(len(actions), SURVIVAL_REWARD)

def dino_reward(states, actions) -> np.ndarray:
    """
    Base survival reward, a penalty for starting a jump from the ground while the
    next obstacle is still far away, and a bonus for surviving close to an obstacle.

    Parameters:
        states:  Recorded state vectors of one trajectory
        actions: Recorded actions of the same trajectory

    Returns:
        One reward per step
    """
    rewards = survival_reward(states, actions)
    for t, (state, action) in enumerate(zip(states, actions)):
        distance, airborne = state[0], state[4]
        if action == 1 and airborne < 0.5 and distance > EARLY_JUMP_DIST:
            rewards[t] -= EARLY_JUMP_COST
        if distance < NEAR_MISS_DIST:
            rewards[t] += NEAR_MISS_BONUS
    return rewards
