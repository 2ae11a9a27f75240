"""
PPO Trainer Module

This module implements the on-policy actor-critic trainer: agents collect
trajectories with the current policy, the trainer turns them into rewards,
advantages and returns, then optimizes the clipped surrogate objective with
an entropy bonus and a value-function loss.

Classes:
    PPOTrainer: Owner of the policy and value networks and of the optimization loop
"""

import json
import numpy as np
from typing import TYPE_CHECKING, Callable

from evodino.errors      import InvalidModelError
from evodino.ppo.agent   import PPOBrain, softmax, MIN_PROBABILITY
from evodino.ppo.network import PPONetwork
from evodino.ppo.rewards import dino_reward
if TYPE_CHECKING:
    from evodino.run.config import PPOConfig

ADVANTAGE_EPSILON = 1e-8

class PPOTrainer:
    """
    Proximal Policy Optimization with Generalized Advantage Estimation.

    Two independent networks are trained:
        policy: input -> 64 (relu) -> 32 (relu) -> 2 (linear logits)
        value:  input -> 64 (relu) -> 32 (relu) -> 1 (linear)
    The last policy layer is initialized with a small scale, so that early
    action probabilities are close to uniform.

    Public Attributes:
        policy_net:       The policy network (shared with every agent)
        value_net:        The value network (shared with every agent)
        reward_fn:        Callable (states, actions) -> per-step rewards
        step:             Adam step counter (starts at 1, +1 per minibatch)
        last_policy_loss: Average clipped surrogate loss of the last update
        last_value_loss:  Average value loss of the last update
        last_entropy:     Average policy entropy of the last update

    Public Methods:
        create_agents(n):          Fresh trajectory-recording agents
        create_inference_agent():  A greedy, non-recording agent
        evaluate_actions(states, actions): Log-probabilities, values and entropies
        update(agents):            Optimize the networks on the agents' trajectories
        to_dict() / to_json():     Serialize the trainer

    Class Methods:
        from_dict(data, config) / from_json(text, config): Deserialize a trainer
    """

    HIDDEN_SIZES        = [64, 32]
    NUM_ACTIONS         = 2
    POLICY_OUTPUT_SCALE = 0.01

    def __init__(self, config: 'PPOConfig', reward_fn: Callable = dino_reward):
        """
        Parameters:
            config:    Stores configuration parameters
            reward_fn: Computes the per-step rewards of one trajectory
        """
        self._config  : 'PPOConfig' = config
        self.reward_fn: Callable    = reward_fn

        sizes = [config.input_size, *self.HIDDEN_SIZES]
        self.policy_net = PPONetwork(sizes + [self.NUM_ACTIONS], ['relu', 'relu', 'linear'],
                                     [None, None, self.POLICY_OUTPUT_SCALE])
        self.value_net  = PPONetwork(sizes + [1], ['relu', 'relu', 'linear'])

        self.step            : int   = 1
        self.last_policy_loss: float = 0.0
        self.last_value_loss : float = 0.0
        self.last_entropy    : float = 0.0

    def create_agents(self, n: int | None = None) -> list[PPOBrain]:
        if n is None:
            n = self._config.n_agents
        return [PPOBrain(self.policy_net, self.value_net) for _ in range(n)]

    def create_inference_agent(self) -> PPOBrain:
        return PPOBrain(self.policy_net, self.value_net, training=False)

    @staticmethod
    def compute_gae(rewards, values, gamma: float, lam: float) -> tuple[np.ndarray, np.ndarray]:
        """
        Generalized Advantage Estimation over one trajectory ending in a terminal state.

            delta_t     = r_t + gamma * V(s_t+1) * nonterminal - V(s_t)
            advantage_t = delta_t + gamma * lam * nonterminal * advantage_t+1
            return_t    = advantage_t + V(s_t)

        The last step is terminal: it bootstraps from a value of 0.

        Parameters:
            rewards: Per-step rewards
            values:  Value estimate of each visited state
            gamma:   Discount factor
            lam:     GAE smoothing factor

        Returns:
            (advantages, returns), both of the trajectory's length
        """
        rewards = np.asarray(rewards, dtype=float)
        values  = np.asarray(values, dtype=float)
        T = len(rewards)

        advantages = np.zeros(T)
        last_advantage = 0.0
        for t in reversed(range(T)):
            non_terminal = 1.0 if t < T - 1 else 0.0
            next_value   = values[t + 1] if t < T - 1 else 0.0
            delta = rewards[t] + gamma * next_value * non_terminal - values[t]
            last_advantage = delta + gamma * lam * non_terminal * last_advantage
            advantages[t] = last_advantage

        return advantages, advantages + values

    @staticmethod
    def normalize_advantages(advantages) -> np.ndarray:
        advantages = np.asarray(advantages, dtype=float)
        return (advantages - advantages.mean()) / (advantages.std() + ADVANTAGE_EPSILON)

    def evaluate_actions(self, states, actions) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Evaluate a batch of (state, action) pairs with the current networks.

        Returns:
            (log_probs, values, entropies), one entry per pair
        """
        states  = np.asarray(states, dtype=float)
        actions = np.asarray(actions, dtype=int)

        probs     = softmax(self.policy_net.forward(states))
        log_probs = np.log(np.maximum(probs, MIN_PROBABILITY))
        entropies = -np.sum(probs * log_probs, axis=1)
        values    = self.value_net.forward(states)[:, 0]

        return log_probs[np.arange(len(actions)), actions], values, entropies

    def update(self, agents: list[PPOBrain]) -> int:
        """
        Run one PPO update on the trajectories collected by 'agents'.

        1. Per agent: rewards from 'reward_fn', the last step overwritten with the
           terminal penalty, then GAE advantages and returns
        2. Pool all transitions and normalize the advantages across the pool
        3. 'epochs' passes over randomly shuffled minibatches, each followed by
           gradient clipping and an Adam step on both networks

        Agents without recorded steps are skipped. The trajectories are consumed:
        every agent is reset afterwards.

        Parameters:
            agents: The agents of the finished episode

        Returns:
            The number of transitions used
        """
        config = self._config

        states, actions, old_log_probs, advantages, returns = [], [], [], [], []
        for agent in agents:
            if len(agent.states) == 0:
                continue

            rewards = np.array(self.reward_fn(agent.states, agent.actions), dtype=float)
            rewards[-1] = config.terminal_penalty
            agent_advantages, agent_returns = self.compute_gae(rewards, agent.values, config.gamma, config.gae_lambda)

            states.extend(agent.states)
            actions.extend(agent.actions)
            old_log_probs.extend(agent.log_probs)
            advantages.extend(agent_advantages)
            returns.extend(agent_returns)

        for agent in agents:
            agent.reset()

        num_transitions = len(states)
        if num_transitions == 0:
            return 0

        states        = np.array(states, dtype=float)
        actions       = np.array(actions, dtype=int)
        old_log_probs = np.array(old_log_probs, dtype=float)
        advantages    = self.normalize_advantages(advantages)
        returns       = np.array(returns, dtype=float)

        total_policy_loss, total_value_loss, total_entropy = 0.0, 0.0, 0.0
        num_updates = 0

        for _ in range(config.epochs):
            order = np.random.permutation(num_transitions)
            for start in range(0, num_transitions, config.minibatch_size):
                batch = order[start:start + config.minibatch_size]
                policy_loss, value_loss, entropy = self._optimize_minibatch(states[batch],
                                                                            actions[batch],
                                                                            old_log_probs[batch],
                                                                            advantages[batch],
                                                                            returns[batch])
                total_policy_loss += policy_loss
                total_value_loss  += value_loss
                total_entropy     += entropy
                num_updates += 1

        self.last_policy_loss = total_policy_loss / num_updates
        self.last_value_loss  = total_value_loss  / num_updates
        self.last_entropy     = total_entropy     / num_updates
        return num_transitions

    def _optimize_minibatch(self, states, actions, old_log_probs, advantages, returns) -> tuple[float, float, float]:
        """
        One gradient step on a minibatch.

        The policy gradient with respect to the logits is
            -A * ratio * (onehot(action) - p)       where the unclipped surrogate is binding
            entropy_coeff * p_k * (log p_k + H)     for the entropy bonus
        the value gradient is value_coeff * (V - R); both are averaged over the minibatch.

        Returns:
            Mean policy loss, mean value loss and mean entropy of the minibatch
        """
        config = self._config
        batch_size = len(actions)

        self.policy_net.zero_grad()
        self.value_net.zero_grad()

        # Forward passes (the last 'forward' of each net is the one backpropagated)
        probs     = softmax(self.policy_net.forward(states))
        values    = self.value_net.forward(states)[:, 0]
        log_probs = np.log(np.maximum(probs, MIN_PROBABILITY))
        entropies = -np.sum(probs * log_probs, axis=1)

        new_log_probs = log_probs[np.arange(batch_size), actions]
        ratio   = np.exp(new_log_probs - old_log_probs)
        surr1   = ratio * advantages
        surr2   = np.clip(ratio, 1.0 - config.clip_epsilon, 1.0 + config.clip_epsilon) * advantages
        policy_losses = -np.minimum(surr1, surr2)
        value_losses  = 0.5 * (values - returns) ** 2

        # Policy gradient, zero where the clipped term is binding
        onehot = np.eye(probs.shape[1])[actions]
        unclipped = (surr1 <= surr2)[:, None]
        grad_logits = np.where(unclipped, -(advantages * ratio)[:, None] * (onehot - probs), 0.0)

        # Entropy bonus
        grad_logits += config.entropy_coeff * probs * (log_probs + entropies[:, None])

        self.policy_net.backward(grad_logits / batch_size)
        self.value_net.backward(((values - returns) * config.value_coeff / batch_size)[:, None])

        self.policy_net.clip_gradients(config.max_grad_norm)
        self.value_net.clip_gradients(config.max_grad_norm)

        self.policy_net.adam_step(config.learning_rate, self.step)
        self.value_net.adam_step(config.learning_rate, self.step)
        self.step += 1

        return float(policy_losses.mean()), float(value_losses.mean()), float(entropies.mean())

    def to_dict(self) -> dict:
        return {
            "policyNet": self.policy_net.to_dict(),
            "valueNet" : self.value_net.to_dict(),
            "step"     : self.step
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict, config: 'PPOConfig', reward_fn: Callable = dino_reward) -> 'PPOTrainer':
        """
        Create a trainer from its dictionary description.

        Both networks are validated into fresh objects before the new trainer
        is assembled; an existing trainer is never modified.

        Raises:
            InvalidModelError: If the description is malformed or does not fit 'config'
        """
        if not isinstance(data, dict) or "policyNet" not in data or "valueNet" not in data:
            raise InvalidModelError("A PPO model needs 'policyNet' and 'valueNet'")

        policy_net = PPONetwork.from_dict(data["policyNet"])
        value_net  = PPONetwork.from_dict(data["valueNet"])

        if policy_net.sizes[0] != config.input_size or value_net.sizes[0] != config.input_size:
            raise InvalidModelError(f"Networks take {policy_net.sizes[0]} and {value_net.sizes[0]} inputs, "
                                    f"the configuration expects {config.input_size}")
        if policy_net.sizes[-1] != cls.NUM_ACTIONS or value_net.sizes[-1] != 1:
            raise InvalidModelError(f"Expected {cls.NUM_ACTIONS} policy outputs and 1 value output, "
                                    f"got {policy_net.sizes[-1]} and {value_net.sizes[-1]}")

        step = data.get("step") or 1
        if isinstance(step, bool) or not isinstance(step, int) or step < 1:
            raise InvalidModelError(f"Invalid optimizer step {step!r}")

        trainer = cls(config, reward_fn)
        trainer.policy_net = policy_net
        trainer.value_net  = value_net
        trainer.step       = step
        return trainer

    @classmethod
    def from_json(cls, text: str, config: 'PPOConfig', reward_fn: Callable = dino_reward) -> 'PPOTrainer':
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidModelError(f"PPO model is not valid JSON: {e}") from e
        return cls.from_dict(data, config, reward_fn)
