"""
Tic-Tac-Toe on a 3x3 board.

Cells are numbered 0..8 in row-major order and a move is the index of an
empty cell. ``"X"`` moves first. The state is immutable: ``apply_move``
returns a new board.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from mcts_ai.core.errors import PreconditionError
from mcts_ai.core.game import zero_sum_outcome

CROSS = "X"
CIRCLE = "O"
PLAYERS = (CROSS, CIRCLE)

LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)

CENTER = 4
CORNERS = (0, 2, 6, 8)
EDGES = (1, 3, 5, 7)


@dataclass(frozen=True)
class TicTacToe:
    """Immutable Tic-Tac-Toe position."""
    board: Tuple[Optional[str], ...] = (None,) * 9
    next_player: str = CROSS

    @classmethod
    def from_string(cls, rows: str) -> 'TicTacToe':
        """
        Build a position from a 9-character string such as ``"XX.OO...."``.

        ``.`` marks an empty cell; whitespace is ignored. The player to move
        is derived from the piece counts.
        """
        cells = [c for c in rows if not c.isspace()]
        if len(cells) != 9 or any(c not in "XO." for c in cells):
            raise ValueError(f"invalid board string {rows!r}")
        board = tuple(None if c == "." else c for c in cells)
        crosses, circles = board.count(CROSS), board.count(CIRCLE)
        if crosses - circles not in (0, 1):
            raise ValueError(f"impossible piece counts in {rows!r}")
        return cls(board=board, next_player=CROSS if crosses == circles else CIRCLE)

    @property
    def current_player(self) -> str:
        return self.next_player

    def winner(self) -> Optional[str]:
        for a, b, c in LINES:
            if self.board[a] is not None and self.board[a] == self.board[b] == self.board[c]:
                return self.board[a]
        return None

    def legal_moves(self) -> List[int]:
        if self.winner() is not None:
            return []
        return [i for i, cell in enumerate(self.board) if cell is None]

    def apply_move(self, move: int) -> 'TicTacToe':
        if not 0 <= move < 9 or self.board[move] is not None:
            raise PreconditionError(f"cell {move} is not available")
        board = list(self.board)
        board[move] = self.next_player
        other = CIRCLE if self.next_player == CROSS else CROSS
        return TicTacToe(board=tuple(board), next_player=other)

    def is_terminal(self) -> bool:
        return self.winner() is not None or all(cell is not None for cell in self.board)

    def outcome(self) -> Dict[str, float]:
        if not self.is_terminal():
            raise PreconditionError("outcome is only defined for finished games")
        return zero_sum_outcome(self.winner(), PLAYERS)

    def __str__(self) -> str:
        marks = [cell or " " for cell in self.board]
        rows = ["|".join(marks[r * 3:r * 3 + 3]) for r in range(3)]
        return "\n-+-+-\n".join(rows)
