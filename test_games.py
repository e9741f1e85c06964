#!/usr/bin/env python
"""
Tests for the example games and the game-state contract helpers.
"""
import unittest

from mcts_ai.core.errors import PreconditionError
from mcts_ai.core.game import GameState, reward_for, zero_sum_outcome
from mcts_ai.games import MiniGame, Nim, TicTacToe


class TestContract(unittest.TestCase):
    """Test the structural GameState protocol."""

    def test_games_satisfy_protocol(self):
        for state in (TicTacToe(), MiniGame(), Nim()):
            self.assertIsInstance(state, GameState)

    def test_zero_sum_outcome(self):
        self.assertEqual(zero_sum_outcome("X", ("X", "O")), {"X": 1.0, "O": -1.0})
        self.assertEqual(zero_sum_outcome(None, ("X", "O")), {"X": 0.0, "O": 0.0})

    def test_reward_for(self):
        self.assertEqual(reward_for({0: 1, 1: -1}, 1), -1.0)
        with self.assertRaises(PreconditionError):
            reward_for({0: 1.0}, 1)
        with self.assertRaises(PreconditionError):
            reward_for(1.0, 0)


class TestTicTacToe(unittest.TestCase):

    def test_initial_state(self):
        state = TicTacToe()
        self.assertEqual(state.current_player, "X")
        self.assertEqual(state.legal_moves(), list(range(9)))
        self.assertFalse(state.is_terminal())

    def test_apply_move_is_pure(self):
        state = TicTacToe()
        after = state.apply_move(4)
        self.assertEqual(state.board, (None,) * 9)
        self.assertEqual(after.board[4], "X")
        self.assertEqual(after.current_player, "O")
        with self.assertRaises(PreconditionError):
            after.apply_move(4)

    def test_from_string(self):
        state = TicTacToe.from_string("XX. OO. ...")
        self.assertEqual(state.current_player, "X")
        self.assertEqual(state.legal_moves(), [2, 5, 6, 7, 8])
        with self.assertRaises(ValueError):
            TicTacToe.from_string("XXX......")
        with self.assertRaises(ValueError):
            TicTacToe.from_string("XO")

    def test_win_and_draw(self):
        won = TicTacToe.from_string("X.OX.OX..")
        self.assertEqual(won.winner(), "X")
        self.assertTrue(won.is_terminal())
        self.assertEqual(won.legal_moves(), [])
        self.assertEqual(won.outcome(), {"X": 1.0, "O": -1.0})

        drawn = TicTacToe.from_string("XOXXOOOXX")
        self.assertIsNone(drawn.winner())
        self.assertTrue(drawn.is_terminal())
        self.assertEqual(drawn.outcome(), {"X": 0.0, "O": 0.0})

    def test_outcome_requires_terminal(self):
        with self.assertRaises(PreconditionError):
            TicTacToe().outcome()

    def test_str(self):
        self.assertEqual(str(TicTacToe().apply_move(0)), "X| | \n-+-+-\n | | \n-+-+-\n | | ")


class TestNim(unittest.TestCase):

    def test_moves(self):
        self.assertEqual(Nim(pile=2).legal_moves(), [1, 2])
        self.assertEqual(Nim(pile=9).legal_moves(), [1, 2, 3])
        self.assertEqual(Nim(pile=9).apply_move(3), Nim(pile=6, player=1))
        with self.assertRaises(PreconditionError):
            Nim(pile=2).apply_move(3)

    def test_last_taker_wins(self):
        final = Nim(pile=1, player=1).apply_move(1)
        self.assertTrue(final.is_terminal())
        self.assertEqual(final.outcome(), {0: -1.0, 1: 1.0})
        with self.assertRaises(PreconditionError):
            Nim(pile=1).outcome()


class TestMiniGame(unittest.TestCase):

    def test_rules(self):
        self.assertEqual(MiniGame().legal_moves(), [3, 4, 5])
        self.assertEqual(MiniGame(total=7).apply_move(4).outcome(), {0: 1.0})
        self.assertEqual(MiniGame(total=9).apply_move(3).outcome(), {0: -1.0})
        self.assertEqual(MiniGame(total=12).legal_moves(), [])
        with self.assertRaises(PreconditionError):
            MiniGame().apply_move(6)
        with self.assertRaises(PreconditionError):
            MiniGame(total=10).outcome()


if __name__ == "__main__":
    unittest.main()
