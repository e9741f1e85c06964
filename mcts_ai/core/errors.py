"""
Exception hierarchy for the MCTS engine.

Configuration and state errors are raised before any search work begins.
Contract errors (duplicate moves, missing outcomes) point at a broken game
implementation and are never recovered from inside the engine.
"""


class MCTSError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(MCTSError, ValueError):
    """The search configuration is invalid (no budget, negative constant, ...)."""


class InvalidStateError(MCTSError, ValueError):
    """A search was requested from a state that cannot be searched."""


class DuplicateMoveError(MCTSError, ValueError):
    """A child for the given move already exists under the node."""


class PreconditionError(MCTSError, RuntimeError):
    """A game-state or node operation was called outside its contract."""


class EmptyTreeError(MCTSError, RuntimeError):
    """The root has no children to pick a move from."""


class SearchInProgressError(MCTSError, RuntimeError):
    """The engine or tree is already owned by a running search."""
