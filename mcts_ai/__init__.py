"""
MCTS AI - A generic Monte Carlo Tree Search engine for turn-based games.

This package provides a reusable search core that any perfect-information,
turn-based game can plug into by implementing a small state/move contract,
along with agents and example games.
"""

__version__ = "0.1.0"
__author__ = "MCTS AI Team"

# Make key components available at package level
from mcts_ai.core.game import GameState
from mcts_ai.core.errors import MCTSError
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.engine import SearchEngine, run

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
