"""
PPO Package

This package implements Proximal Policy Optimization with hand-written
backpropagation: dense layers with Adam, the policy/value networks, the
trajectory-recording agent, reward shaping and the trainer.

Modules:
    layers:  DenseLayer class
    network: PPONetwork class
    agent:   PPOBrain class and softmax
    rewards: Pluggable reward functions
    trainer: PPOTrainer class

Exported Classes:
    DenseLayer: Fully connected layer with backward pass and Adam state
    PPONetwork: Stack of dense layers
    PPOBrain:   Agent sampling (training) or greedy (inference) actions
    PPOTrainer: Actor-critic trainer with GAE and the clipped surrogate objective
"""

from evodino.ppo.layers  import DenseLayer
from evodino.ppo.network import PPONetwork
from evodino.ppo.agent   import PPOBrain, softmax
from evodino.ppo.rewards import dino_reward, survival_reward
from evodino.ppo.trainer import PPOTrainer

__all__ = [
    'DenseLayer',
    'PPONetwork',
    'PPOBrain',
    'PPOTrainer',
    'dino_reward',
    'survival_reward',
    'softmax',
]
