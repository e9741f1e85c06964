"""
Single-pile Nim.

Two players alternately take 1 to 3 objects from a pile; whoever takes the
last object wins. Positions with a multiple of four objects are lost for the
player to move, which makes the game a convenient check of search strength.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from mcts_ai.core.errors import PreconditionError
from mcts_ai.core.game import zero_sum_outcome

MAX_TAKE = 3


@dataclass(frozen=True)
class Nim:
    pile: int = 10
    player: int = 0

    @property
    def current_player(self) -> int:
        return self.player

    def legal_moves(self) -> List[int]:
        return list(range(1, min(MAX_TAKE, self.pile) + 1))

    def apply_move(self, move: int) -> 'Nim':
        if not 1 <= move <= min(MAX_TAKE, self.pile):
            raise PreconditionError(f"cannot take {move} from a pile of {self.pile}")
        return Nim(pile=self.pile - move, player=1 - self.player)

    def is_terminal(self) -> bool:
        return self.pile == 0

    def outcome(self) -> Dict[int, float]:
        if not self.is_terminal():
            raise PreconditionError("outcome is only defined for finished games")
        # The player who took the last object is the one not to move now
        return zero_sum_outcome(1 - self.player, (0, 1))
