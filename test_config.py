#!/usr/bin/env python
"""
Tests for SearchConfig validation, presets and serialization.
"""
import math
import unittest

from mcts_ai.core.errors import ConfigurationError
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.engine import run
from mcts_ai.mcts.policies import first_move_rollout, random_rollout
from mcts_ai.games.nim import Nim


class TestValidation(unittest.TestCase):
    """Invalid configurations are rejected before any search work."""

    def test_budget_required(self):
        with self.assertRaises(ConfigurationError):
            SearchConfig()
        with self.assertRaises(ConfigurationError):
            SearchConfig(iterations=None, time_limit=None, seed=3)

    def test_budget_alone_is_enough(self):
        self.assertIn(run(Nim(pile=5), SearchConfig(iterations=20, seed=0)), [1, 2, 3])
        self.assertIn(run(Nim(pile=5), SearchConfig(time_limit=0.02, seed=0)), [1, 2, 3])

    def test_invalid_values(self):
        invalid = [
            dict(iterations=0),
            dict(iterations=-5),
            dict(iterations=2.5),
            dict(iterations=True),
            dict(time_limit=0),
            dict(iterations=10, exploration_constant=-0.1),
            dict(iterations=10, exploration_constant=float("nan")),
            dict(iterations=10, num_workers=0),
            dict(iterations=10, parallel_mode="per_node"),
            dict(iterations=10, virtual_loss=0.0),
            dict(iterations=10, rollout_policy="random"),
        ]
        for kwargs in invalid:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ConfigurationError):
                    SearchConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            SearchConfig(iterations=10, exploration_constant=-1)

    def test_valid_values(self):
        config = SearchConfig(iterations=10, exploration_constant=0.0)
        self.assertEqual(config.exploration_constant, 0.0)
        self.assertAlmostEqual(SearchConfig(time_limit=1.0).exploration_constant, math.sqrt(2))
        self.assertFalse(config.is_parallel)
        self.assertTrue(SearchConfig(iterations=10, num_workers=2).is_parallel)

    def test_replace_validates(self):
        config = SearchConfig(iterations=10)
        self.assertEqual(config.replace(seed=3).seed, 3)
        with self.assertRaises(ConfigurationError):
            config.replace(iterations=None)


class TestPresets(unittest.TestCase):

    def test_presets(self):
        self.assertEqual(SearchConfig.default().iterations, 1000)
        self.assertEqual(SearchConfig.fast().iterations, 100)
        deep = SearchConfig.deep()
        self.assertEqual(deep.iterations, 5000)
        self.assertEqual(deep.exploration_constant, 1.2)
        timed = SearchConfig.timed(0.25, seed=1)
        self.assertIsNone(timed.iterations)
        self.assertEqual(timed.time_limit, 0.25)
        self.assertEqual(timed.seed, 1)

    def test_dict_round_trip(self):
        config = SearchConfig(iterations=50, seed=7, num_workers=2)
        restored = SearchConfig.from_dict(dict(config.to_dict(), unknown_key=1))
        self.assertEqual(restored, config)

    def test_to_dict_names_policy(self):
        config = SearchConfig(iterations=5, rollout_policy=first_move_rollout)
        self.assertEqual(config.to_dict()["rollout_policy"], "first_move_rollout")
        self.assertIn("iterations=5", str(config))

    def test_dict_round_trip_with_policy(self):
        config = SearchConfig(iterations=5, rollout_policy=first_move_rollout)
        restored = SearchConfig.from_dict(config.to_dict())
        self.assertIs(restored.rollout_policy, first_move_rollout)
        self.assertEqual(restored, config)
        self.assertIs(SearchConfig.from_dict(
            {"iterations": 5, "rollout_policy": "random_rollout"}
        ).rollout_policy, random_rollout)

    def test_from_dict_unknown_policy(self):
        with self.assertRaises(ConfigurationError):
            SearchConfig.from_dict({"iterations": 5, "rollout_policy": "greedy"})


if __name__ == "__main__":
    unittest.main()
