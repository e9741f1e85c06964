"""
A minimal single-player counting game.

The player repeatedly adds 3, 4 or 5 to a running sum. The game ends as soon
as the sum reaches the target: landing exactly on it scores +1, overshooting
scores -1.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from mcts_ai.core.errors import PreconditionError

WINNING_SUM = 11
ADDS = (3, 4, 5)
PLAYER = 0


@dataclass(frozen=True)
class MiniGame:
    total: int = 0

    @property
    def current_player(self) -> int:
        return PLAYER

    def legal_moves(self) -> List[int]:
        return [] if self.is_terminal() else list(ADDS)

    def apply_move(self, move: int) -> 'MiniGame':
        if move not in ADDS:
            raise PreconditionError(f"cannot add {move}")
        return MiniGame(self.total + move)

    def is_terminal(self) -> bool:
        return self.total >= WINNING_SUM

    def outcome(self) -> Dict[int, float]:
        if not self.is_terminal():
            raise PreconditionError("outcome is only defined for finished games")
        return {PLAYER: 1.0 if self.total == WINNING_SUM else -1.0}

    def __str__(self) -> str:
        return f"sum={self.total}"
