"""
Unit Tests for Policy Rollouts
"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gridmdp.algorithms import extract_policy, solve
from gridmdp.config import SolverConfig
from gridmdp.environment import Coordinate, GridWorld, GridWorldConfig
from gridmdp.executor import PolicyExecutor


class TestDeterministicRollout(unittest.TestCase):
    """Rollouts in a grid without slipping."""

    def setUp(self):
        self.env = GridWorld(GridWorldConfig(slip_probability=0.0))
        self.policy = extract_policy(solve(self.env, SolverConfig(gamma=0.9)), self.env)
        self.executor = PolicyExecutor(self.env, seed=42)
        self.start = Coordinate(0, 2)

    def test_episode_reaches_positive_exit(self):
        """Verify the optimal policy walks the shortest route to +1."""
        reward, steps, trajectory = self.executor.run_episode(self.policy, self.start)

        self.assertEqual(trajectory[0], self.start)
        self.assertEqual(trajectory[-1], self.env.positive_terminal)
        self.assertEqual(steps, 5)
        self.assertAlmostEqual(reward, 5 * -0.04 + 1.0)

    def test_greedy_path(self):
        """Verify the greedy path matches the sampled trajectory."""
        path = self.executor.greedy_path(self.policy, self.start)
        _, _, trajectory = self.executor.run_episode(self.policy, self.start)

        self.assertEqual(path, trajectory)

    def test_episode_from_terminal(self):
        """Verify an episode starting on a terminal ends immediately."""
        reward, steps, trajectory = self.executor.run_episode(
            self.policy, self.env.negative_terminal
        )
        self.assertEqual(steps, 0)
        self.assertEqual(reward, -1.0)
        self.assertEqual(trajectory, [self.env.negative_terminal])

    def test_step_limit(self):
        """Verify the step limit truncates an episode."""
        _, steps, trajectory = self.executor.run_episode(self.policy, self.start, max_steps=2)
        self.assertEqual(steps, 2)
        self.assertEqual(len(trajectory), 3)

    def test_evaluation_success(self):
        """Verify every deterministic episode succeeds."""
        stats = self.executor.evaluate_policy(self.policy, self.start, num_episodes=20)

        self.assertEqual(stats['success_rate'], 1.0)
        self.assertAlmostEqual(stats['std_reward'], 0.0)
        self.assertAlmostEqual(stats['mean_steps'], 5.0)


class TestStochasticRollout(unittest.TestCase):
    """Rollouts in the slippery default grid."""

    def setUp(self):
        self.env = GridWorld()
        self.policy = extract_policy(solve(self.env, SolverConfig(gamma=1.0)), self.env)

    def test_evaluation_statistics(self):
        """Verify evaluation returns valid statistics."""
        stats = PolicyExecutor(self.env, seed=0).evaluate_policy(
            self.policy, Coordinate(0, 2), num_episodes=50
        )

        for key in ('mean_reward', 'std_reward', 'mean_steps', 'success_rate'):
            self.assertIn(key, stats)
        self.assertGreaterEqual(stats['success_rate'], 0.0)
        self.assertLessEqual(stats['success_rate'], 1.0)
        self.assertGreater(stats['mean_steps'], 0.0)

    def test_evaluation_requires_episodes(self):
        with self.assertRaises(ValueError):
            PolicyExecutor(self.env).evaluate_policy(self.policy, Coordinate(0, 2), num_episodes=0)

    def test_seed_reproducibility(self):
        """Verify identical seeds give identical rollouts."""
        first = PolicyExecutor(self.env, seed=7).evaluate_policy(
            self.policy, Coordinate(0, 2), num_episodes=10
        )
        second = PolicyExecutor(self.env, seed=7).evaluate_policy(
            self.policy, Coordinate(0, 2), num_episodes=10
        )
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
