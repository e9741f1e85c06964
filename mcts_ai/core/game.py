"""
Game-state contract consumed by the search engine.

The engine never inspects a game's internals. It only needs a state object
that can:
- enumerate its legal moves in a fixed order
- produce a successor state for a move without mutating itself
- report whether it is terminal and, if so, the per-player outcome
- report the player to move

Any class with these members satisfies :class:`GameState`; no inheritance
is required.

Outcome convention
------------------
``outcome()`` returns a mapping from every player id to that player's reward.
Two-player zero-sum games return +1 for the winner, -1 for the loser and 0
for both players on a draw (see :func:`zero_sum_outcome`). The engine credits
each tree node with the reward of the player who chose the move into it, so
rewards alternate between the players along a path without any sign flipping
in the engine.
"""
from __future__ import annotations
from typing import (
    Any, Hashable, Mapping, Optional, Protocol, Sequence, TypeVar,
    runtime_checkable,
)

from mcts_ai.core.errors import PreconditionError

Move = TypeVar("Move")
PlayerId = Hashable
Outcome = Mapping[Any, float]


@runtime_checkable
class GameState(Protocol[Move]):
    """Structural interface every searchable game state implements."""

    @property
    def current_player(self) -> PlayerId:
        """The player to move in this state."""
        ...

    def legal_moves(self) -> Sequence[Move]:
        """Legal moves in a deterministic, restartable order."""
        ...

    def apply_move(self, move: Move) -> "GameState[Move]":
        """Return the successor state. Must not mutate ``self``."""
        ...

    def is_terminal(self) -> bool:
        """Whether the game is over."""
        ...

    def outcome(self) -> Outcome:
        """
        Per-player rewards of a finished game.

        Raises:
            PreconditionError: if the state is not terminal
        """
        ...


def zero_sum_outcome(
    winner: Optional[PlayerId],
    players: Sequence[PlayerId],
    win: float = 1.0,
) -> dict:
    """
    Build a two-player zero-sum outcome mapping.

    Args:
        winner: The winning player, or None for a draw
        players: All player ids
        win: Reward for the winner (the loser gets ``-win``)

    Returns:
        Dictionary mapping each player to its reward
    """
    if winner is None:
        return {player: 0.0 for player in players}
    return {player: (win if player == winner else -win) for player in players}


def reward_for(outcome: Outcome, player: PlayerId) -> float:
    """
    Extract the reward for ``player`` from an outcome mapping.

    Raises:
        PreconditionError: if the game did not report a reward for the player
    """
    try:
        return float(outcome[player])
    except KeyError:
        raise PreconditionError(
            f"outcome {dict(outcome)!r} has no reward for player {player!r}"
        ) from None
    except TypeError:
        raise PreconditionError(
            f"outcome must be a mapping of player rewards, got {outcome!r}"
        ) from None
