"""
Core contracts shared by the engine and the games.

This package defines the game-state protocol the engine searches over and
the exception hierarchy raised by every component.
"""

from mcts_ai.core.errors import (
    MCTSError,
    ConfigurationError,
    InvalidStateError,
    DuplicateMoveError,
    PreconditionError,
    EmptyTreeError,
    SearchInProgressError,
)
from mcts_ai.core.game import GameState, zero_sum_outcome, reward_for

__all__ = [
    'GameState',
    'zero_sum_outcome',
    'reward_for',
    'MCTSError',
    'ConfigurationError',
    'InvalidStateError',
    'DuplicateMoveError',
    'PreconditionError',
    'EmptyTreeError',
    'SearchInProgressError',
]
