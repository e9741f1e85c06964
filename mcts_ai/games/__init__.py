"""
Example games implementing the GameState contract.

These are not part of the engine; they serve as references for writing an
adapter and as fixtures for the tests.
"""

from mcts_ai.games.tictactoe import TicTacToe
from mcts_ai.games.minigame import MiniGame
from mcts_ai.games.nim import Nim

__all__ = ['TicTacToe', 'MiniGame', 'Nim']
