"""
PPO Agent Module

This module implements PPOBrain, the environment-facing agent of the PPO trainer.
In training mode it samples actions from the policy and records its trajectory;
in inference mode it acts greedily and records nothing.

Classes:
    PPOBrain: Trajectory-recording agent sharing the trainer's networks

Functions:
    softmax(logits): Numerically stable softmax
"""

import numpy as np

from evodino.ppo.network import PPONetwork

MIN_PROBABILITY = 1e-8

def softmax(logits) -> np.ndarray:
    logits = np.asarray(logits, dtype=float)
    exps   = np.exp(logits - np.max(logits, axis=-1, keepdims=True))
    return exps / np.sum(exps, axis=-1, keepdims=True)

class PPOBrain:
    """
    An agent driven by the PPO policy network.

    The networks are shared with the trainer (not copied): all agents of an
    episode act with the current policy, and see the updated weights as soon
    as the trainer has run 'update'.

    Public Attributes:
        policy_net: Network producing the action logits
        value_net:  Network producing the state-value estimate
        training:   Sample actions and record the trajectory (True) or act greedily (False)
        states:     Recorded states, one per decision
        actions:    Recorded actions
        log_probs:  Log-probability of each recorded action under the acting policy
        values:     Value estimate of each recorded state
    """

    def __init__(self, policy_net: PPONetwork, value_net: PPONetwork, training: bool = True):
        self.policy_net: PPONetwork        = policy_net
        self.value_net : PPONetwork        = value_net
        self.training  : bool              = training
        self.states    : list[np.ndarray]  = []
        self.actions   : list[int]         = []
        self.log_probs : list[float]       = []
        self.values    : list[float]       = []

    def feedforward(self, inputs) -> int:
        """
        Choose an action for a game state.

        Parameters:
            inputs: The state vector

        Returns:
            The action index (0 = no-op, 1 = jump)
        """
        state = np.array(inputs, dtype=float)
        probs = softmax(self.policy_net.forward(state))

        if not self.training:
            # np.argmax resolves ties to the lowest index
            return int(np.argmax(probs))

        action = int(np.random.choice(len(probs), p=probs))
        value  = float(self.value_net.forward(state)[0])

        self.states.append(state)
        self.actions.append(action)
        self.log_probs.append(float(np.log(max(probs[action], MIN_PROBABILITY))))
        self.values.append(value)
        return action

    def reset(self) -> None:
        self.states    = []
        self.actions   = []
        self.log_probs = []
        self.values    = []
