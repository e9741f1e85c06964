#!/usr/bin/env python
"""
Tests for the MCTS node and arena-backed tree.

Covers root creation, expansion rules, the fully-expanded check, exclusive
ownership and re-rooting with tree reuse.
"""
import unittest

from mcts_ai.core.errors import (
    DuplicateMoveError, InvalidStateError, PreconditionError,
    SearchInProgressError,
)
from mcts_ai.games.nim import Nim
from mcts_ai.games.tictactoe import TicTacToe
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.engine import SearchEngine, SearchStatus
from mcts_ai.mcts.tree import MCTSTree, create_root


class TestTreeCreation(unittest.TestCase):
    """Test root creation."""

    def test_create_root(self):
        """A new tree holds a single unexpanded, unvisited root."""
        state = TicTacToe()
        tree = create_root(state)

        self.assertEqual(len(tree), 1)
        root = tree.root
        self.assertIs(root.state, state)
        self.assertIsNone(root.parent)
        self.assertIsNone(root.move)
        self.assertIsNone(root.mover)
        self.assertEqual(root.player, "X")
        self.assertEqual(root.visits, 0)
        self.assertEqual(root.children, [])
        self.assertFalse(root.terminal)
        self.assertFalse(tree.is_fully_expanded(root))

    def test_create_root_rejects_terminal_state(self):
        """Searching from a finished game is refused up front."""
        finished = TicTacToe.from_string("XXXOO....")
        with self.assertRaises(InvalidStateError):
            MCTSTree.create_root(finished)

    def test_mean_reward_undefined_without_visits(self):
        """Mean reward must never be evaluated for an unvisited node."""
        tree = create_root(Nim(pile=3))
        with self.assertRaises(PreconditionError):
            tree.root.mean_reward

        tree.root.update(1.0)
        tree.root.update(0.0)
        self.assertAlmostEqual(tree.root.mean_reward, 0.5)


class TestExpansion(unittest.TestCase):
    """Test tree mutation."""

    def setUp(self):
        self.state = Nim(pile=5)
        self.tree = create_root(self.state)

    def test_expand_attaches_child(self):
        """Expansion records the move, its index and the mover."""
        root = self.tree.root
        child = self.tree.expand(root, 2, self.state.apply_move(2))

        self.assertEqual(child.index, 1)
        self.assertEqual(child.parent, root.index)
        self.assertEqual(child.move, 2)
        self.assertEqual(child.move_index, 1)
        self.assertEqual(child.mover, 0)
        self.assertEqual(child.player, 1)
        self.assertEqual(root.children, [1])
        self.assertIs(self.tree.parent(child), root)
        self.assertEqual(self.tree.path_to(child), [root, child])

    def test_duplicate_move_rejected(self):
        """A second child for the same move is a contract violation."""
        root = self.tree.root
        self.tree.expand(root, 1, self.state.apply_move(1))
        with self.assertRaises(DuplicateMoveError):
            self.tree.expand(root, 1, self.state.apply_move(1))

    def test_illegal_move_rejected(self):
        """Moves outside the legal-move enumeration cannot be expanded."""
        with self.assertRaises(PreconditionError):
            self.tree.expand(self.tree.root, 7, Nim(pile=0, player=1))

    def test_fully_expanded(self):
        """A node is fully expanded once every legal move has a child."""
        root = self.tree.root
        self.assertEqual(self.tree.untried_moves(root), [1, 2, 3])

        for move in (3, 1):
            self.tree.expand(root, move, self.state.apply_move(move))
            self.assertFalse(self.tree.is_fully_expanded(root))
        self.assertEqual(self.tree.untried_moves(root), [2])

        self.tree.expand(root, 2, self.state.apply_move(2))
        self.assertTrue(self.tree.is_fully_expanded(root))
        self.assertEqual(self.tree.untried_moves(root), [])

    def test_terminal_child(self):
        """Children reached by a game-ending move are marked terminal."""
        tree = create_root(Nim(pile=2))
        child = tree.expand(tree.root, 2, Nim(pile=2).apply_move(2))
        self.assertTrue(child.terminal)
        self.assertEqual(child.legal_moves, [])
        self.assertTrue(tree.is_fully_expanded(child))

    def test_depth(self):
        """Depth counts moves along the longest path."""
        root = self.tree.root
        child = self.tree.expand(root, 1, self.state.apply_move(1))
        self.tree.expand(child, 1, child.state.apply_move(1))
        self.assertEqual(self.tree.depth(), 2)


class TestOwnership(unittest.TestCase):
    """Test exclusive tree ownership."""

    def test_exclusive_is_not_reentrant(self):
        """A tree can only be owned by one search at a time."""
        tree = create_root(Nim(pile=4))
        with tree.exclusive():
            with self.assertRaises(SearchInProgressError):
                with tree.exclusive():
                    pass
        # Released afterwards
        with tree.exclusive():
            pass

    def test_search_on_owned_tree_fails(self):
        """The engine refuses a tree already owned by another search."""
        tree = create_root(Nim(pile=4))
        engine = SearchEngine()
        with tree.exclusive():
            with self.assertRaises(SearchInProgressError):
                engine.search(tree, SearchConfig(iterations=5))
            with self.assertRaises(SearchInProgressError):
                engine.search(tree, SearchConfig(iterations=5, num_workers=2))
            with self.assertRaises(SearchInProgressError):
                list(engine.iterate(tree, SearchConfig(iterations=5)))
        # A search that never started leaves no status behind
        self.assertEqual(engine.status, SearchStatus.IDLE)
        self.assertIsNone(engine.last_status)
        self.assertEqual(tree.root.visits, 0)


class TestAdvance(unittest.TestCase):
    """Test re-rooting the tree after a move is played."""

    def setUp(self):
        self.tree = create_root(Nim(pile=8))
        SearchEngine().search(self.tree, SearchConfig(iterations=300, seed=1))

    def test_advance_keeps_subtree(self):
        """The chosen child becomes the root with its statistics intact."""
        child = next(c for c in self.tree.children(self.tree.root) if c.move == 1)
        visits, state = child.visits, child.state
        subtree_size = self._subtree_size(child)

        self.tree.advance(1)

        root = self.tree.root
        self.assertIs(root, child)
        self.assertEqual(root.state, state)
        self.assertEqual(root.visits, visits)
        self.assertIsNone(root.parent)
        self.assertIsNone(root.move)
        self.assertIsNone(root.mover)
        self.assertEqual(len(self.tree), subtree_size)

        for i, node in enumerate(self.tree.nodes()):
            self.assertEqual(node.index, i)
            for c in node.children:
                self.assertEqual(self.tree.node(c).parent, i)

    def test_advance_then_search(self):
        """A re-rooted tree can be searched again."""
        self.tree.advance(3)
        before = self.tree.root.visits
        result = SearchEngine().search(self.tree, SearchConfig(iterations=50, seed=2))
        self.assertEqual(self.tree.root.visits, before + 50)
        self.assertIn(result.best_move, Nim(pile=5, player=1).legal_moves())

    def test_advance_unexpanded_move(self):
        """Advancing through a move without a child builds a fresh tree."""
        tree = create_root(Nim(pile=8))
        tree.advance(2)
        self.assertEqual(len(tree), 1)
        self.assertEqual(tree.root.state, Nim(pile=6, player=1))

    def test_advance_illegal_move(self):
        with self.assertRaises(PreconditionError):
            self.tree.advance(4)

    def test_advance_into_terminal_state(self):
        tree = create_root(Nim(pile=2))
        with self.assertRaises(InvalidStateError):
            tree.advance(2)

    def _subtree_size(self, node):
        size = 1
        for c in node.children:
            size += self._subtree_size(self.tree.node(c))
        return size


if __name__ == "__main__":
    unittest.main()
