"""
Monte Carlo Tree Search node.

This module defines the MCTSNode class which represents one explored
position in the search tree. Nodes live in the arena of an
:class:`~mcts_ai.mcts.tree.MCTSTree` and refer to their parent and children
by arena index, never by object reference, so the tree is the only owner of
every node.
"""
from __future__ import annotations
from typing import Any, List, Optional, Sequence

from mcts_ai.core.errors import PreconditionError
from mcts_ai.core.game import GameState, PlayerId


class MCTSNode:
    """
    A node in the Monte Carlo Tree Search.

    Each node stores the game state it represents, the move that produced it
    and statistics about the iterations that passed through it. Rewards are
    accumulated from the perspective of ``mover``, the player who chose the
    move into this node.
    """

    __slots__ = (
        "index", "state", "move", "move_index", "parent", "children",
        "player", "mover", "terminal", "visits", "total_reward",
        "virtual_loss", "_legal_moves",
    )

    def __init__(
        self,
        index: int,
        state: GameState,
        parent: Optional[int] = None,
        move: Any = None,
        move_index: Optional[int] = None,
        mover: Optional[PlayerId] = None,
    ):
        """
        Initialize an MCTS node.

        Args:
            index: Position of this node in the tree's arena
            state: The game state this node represents
            parent: Arena index of the parent node (None for root)
            move: The move that led to this state (None for root)
            move_index: Position of ``move`` in the parent's legal moves
            mover: The player who played ``move`` (None for root)
        """
        self.index = index
        self.state = state
        self.parent = parent
        self.move = move
        self.move_index = move_index
        self.children: List[int] = []

        self.player = state.current_player
        self.mover = mover
        self.terminal = bool(state.is_terminal())

        # Node statistics
        self.visits = 0
        self.total_reward = 0.0
        self.virtual_loss = 0

        # Legal moves are computed lazily and cached
        self._legal_moves: Optional[Sequence[Any]] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def legal_moves(self) -> Sequence[Any]:
        """
        Legal moves from this node's state, in the game's enumeration order.

        Terminal nodes have no legal moves regardless of what the game
        reports, so rollouts never generate moves from them.
        """
        if self._legal_moves is None:
            self._legal_moves = [] if self.terminal else list(self.state.legal_moves())
        return self._legal_moves

    @property
    def perspective(self) -> PlayerId:
        """The player whose reward is accumulated at this node."""
        return self.player if self.mover is None else self.mover

    @property
    def mean_reward(self) -> float:
        """
        Average reward over all visits.

        Raises:
            PreconditionError: if the node has never been visited
        """
        if self.visits == 0:
            raise PreconditionError("mean reward is undefined for an unvisited node")
        return self.total_reward / self.visits

    def update(self, reward: float) -> None:
        """Record one visit with the given reward."""
        self.visits += 1
        self.total_reward += reward

    def __str__(self) -> str:
        label = "Root" if self.move is None else repr(self.move)
        return (f"MCTSNode({label}, player={self.player!r}, "
                f"visits={self.visits}, "
                f"reward={self.total_reward:.2f}, "
                f"children={len(self.children)}, "
                f"terminal={self.terminal})")

    __repr__ = __str__
