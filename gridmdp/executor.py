"""
Policy Executor Module

Core Idea:
    Roll a computed policy out through the environment model's own
    transition distributions to check, empirically, that it reaches the
    positive exit and how much reward it collects on the way.

Mathematical Theory:
    **Episode return** with state-based rewards:

    .. math::
        G = \\sum_{t=0}^{T} R(s_t)

    where :math:`s_0` is the start state and :math:`s_T` is the first
    terminal state reached (or the step limit).

    **Monte Carlo estimate** over N episodes:

    .. math::
        \\hat{\\mu} = \\frac{1}{N} \\sum_{i=1}^{N} G_i

Summary:
    Rollouts are sampled from the model, never from a live game; they are a
    sanity check on solver output rather than an interaction loop.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from .algorithms import PolicyMap, state_reward
from .environment import Coordinate, GridWorld

logger = logging.getLogger(__name__)


class PolicyExecutor:
    """
    Execute and evaluate policies in GridWorld environments.

    Attributes:
        env: GridWorld environment instance
        rng: NumPy random number generator for reproducibility

    Example:
        >>> executor = PolicyExecutor(env, seed=42)
        >>> reward, steps, trajectory = executor.run_episode(policy, start=(0, 2))
        >>> stats = executor.evaluate_policy(policy, start=(0, 2), num_episodes=100)
    """

    def __init__(self, env: GridWorld, seed: Optional[int] = None):
        """
        Initialize policy executor.

        Args:
            env: GridWorld environment
            seed: Random seed for reproducibility. If None, uses system entropy.
        """
        self.env = env
        self.rng = np.random.default_rng(seed)

    def run_episode(
        self,
        policy: PolicyMap,
        start: Coordinate,
        max_steps: int = 100,
    ) -> Tuple[float, int, List[Coordinate]]:
        """
        Execute a single episode following the given policy.

        The reward of every visited state is collected, the start state and
        the terminal state included.

        Args:
            policy: Direction to attempt in each state
            start: Starting state
            max_steps: Maximum moves before forced termination

        Returns:
            Tuple of:
                - total_reward: Cumulative undiscounted reward
                - steps: Number of moves made
                - trajectory: List of visited states including start
        """
        state = Coordinate(*start)
        total_reward = state_reward(self.env, state)
        trajectory = [state]

        for step in range(max_steps):
            if self.env.is_terminal(state):
                logger.debug("Terminal %s reached after %d steps", state, step)
                return total_reward, step, trajectory

            direction = policy[state]
            transitions = self.env.transitions(state, direction)
            probs = [prob for _, prob in transitions]
            idx = self.rng.choice(len(transitions), p=probs)
            next_state = Coordinate(*transitions[idx][0])

            logger.debug("Step %d: %s --[%s]--> %s", step + 1, state, direction.name, next_state)

            total_reward += state_reward(self.env, next_state)
            state = next_state
            trajectory.append(state)

        logger.debug("Step limit reached, total reward: %.3f", total_reward)
        return total_reward, max_steps, trajectory

    def evaluate_policy(
        self,
        policy: PolicyMap,
        start: Coordinate,
        num_episodes: int = 100,
        max_steps: int = 100,
    ) -> Dict[str, float]:
        """
        Evaluate policy performance over multiple episodes.

        Args:
            policy: Policy to evaluate
            start: Starting state of every episode
            num_episodes: Number of episodes to run
            max_steps: Maximum moves per episode

        Raises:
            ValueError: If num_episodes is less than 1.

        Returns:
            Dictionary with statistics:
                - mean_reward: Average episode return
                - std_reward: Standard deviation of returns
                - mean_steps: Average episode length
                - success_rate: Fraction ending on the positive terminal
        """
        if num_episodes < 1:
            raise ValueError(f"num_episodes must be at least 1, got: {num_episodes}")

        rewards = []
        steps_list = []
        successes = 0

        for _ in range(num_episodes):
            reward, steps, trajectory = self.run_episode(policy, start, max_steps)
            rewards.append(reward)
            steps_list.append(steps)

            if trajectory[-1] == self.env.positive_terminal:
                successes += 1

        return {
            'mean_reward': float(np.mean(rewards)),
            'std_reward': float(np.std(rewards)),
            'mean_steps': float(np.mean(steps_list)),
            'success_rate': successes / num_episodes,
        }

    def greedy_path(self, policy: PolicyMap, start: Coordinate) -> List[Coordinate]:
        """
        Follow the most likely outcome of each chosen direction.

        Stops at a terminal state, on a cycle, or after twice the number of
        states.

        Args:
            policy: Policy defining the direction in each state
            start: Starting state

        Returns:
            List of states from start onwards.
        """
        state = Coordinate(*start)
        path = [state]
        visited = {state}
        max_steps = len(self.env.states) * 2

        for _ in range(max_steps):
            if self.env.is_terminal(state):
                break

            transitions = self.env.transitions(state, policy[state])
            next_state = Coordinate(*max(transitions, key=lambda t: t[1])[0])

            # Cycle detection
            if next_state in visited:
                break

            visited.add(next_state)
            path.append(next_state)
            state = next_state

        return path
