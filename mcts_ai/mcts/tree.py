"""
Arena-backed search tree.

The tree owns every node in a flat list; nodes refer to each other by index.
Parent indices exist only to walk a path back to the root and never imply
ownership. Nodes are never removed while a search is running.
"""
from __future__ import annotations
from contextlib import contextmanager
from collections import deque
from typing import Any, Iterator, List, Optional
import threading

from mcts_ai.core.errors import (
    DuplicateMoveError, InvalidStateError, PreconditionError,
    SearchInProgressError,
)
from mcts_ai.core.game import GameState
from mcts_ai.mcts.node import MCTSNode


class MCTSTree:
    """
    Search tree rooted at a non-terminal game state.

    Use :meth:`create_root` (or the module-level :func:`create_root`) to build
    a tree; the constructor is an implementation detail.
    """

    def __init__(self, root_state: GameState):
        self._nodes: List[MCTSNode] = [MCTSNode(0, root_state)]
        self._owner = threading.Lock()

    @classmethod
    def create_root(cls, initial_state: GameState) -> 'MCTSTree':
        """
        Create a tree with a single unexpanded root bound to ``initial_state``.

        Raises:
            InvalidStateError: if the state is already terminal
        """
        if initial_state.is_terminal():
            raise InvalidStateError("cannot search from a terminal state")
        return cls(initial_state)

    # Access

    @property
    def root(self) -> MCTSNode:
        return self._nodes[0]

    def node(self, index: int) -> MCTSNode:
        return self._nodes[index]

    def parent(self, node: MCTSNode) -> Optional[MCTSNode]:
        return None if node.parent is None else self._nodes[node.parent]

    def children(self, node: MCTSNode) -> List[MCTSNode]:
        """Children of ``node`` in expansion order."""
        return [self._nodes[i] for i in node.children]

    def path_to(self, node: MCTSNode) -> List[MCTSNode]:
        """Nodes from the root down to ``node``, inclusive."""
        path = [node]
        while node.parent is not None:
            node = self._nodes[node.parent]
            path.append(node)
        path.reverse()
        return path

    def nodes(self) -> Iterator[MCTSNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def depth(self) -> int:
        """Length of the longest root-to-leaf path, in moves."""
        best = 0
        stack = [(self.root, 0)]
        while stack:
            node, d = stack.pop()
            best = max(best, d)
            stack.extend((self._nodes[i], d + 1) for i in node.children)
        return best

    # Mutation

    def is_fully_expanded(self, node: MCTSNode) -> bool:
        """True iff every legal move of ``node`` has a child."""
        return len(node.children) >= len(node.legal_moves)

    def untried_moves(self, node: MCTSNode) -> List[Any]:
        """Legal moves without a child, in enumeration order."""
        tried = {self._nodes[i].move_index for i in node.children}
        return [m for i, m in enumerate(node.legal_moves) if i not in tried]

    def expand(self, node: MCTSNode, move: Any, resulting_state: GameState) -> MCTSNode:
        """
        Attach a new child for ``move`` under ``node``.

        Args:
            node: Node to expand
            move: A legal move of ``node`` with no child yet
            resulting_state: State reached by playing ``move``

        Returns:
            The new child node

        Raises:
            DuplicateMoveError: if ``node`` already has a child for ``move``
            PreconditionError: if ``move`` is not legal at ``node``
        """
        for i in node.children:
            if self._nodes[i].move == move:
                raise DuplicateMoveError(f"node {node.index} already has a child for {move!r}")

        move_index = _position(node.legal_moves, move)
        if move_index is None:
            raise PreconditionError(f"{move!r} is not a legal move at node {node.index}")

        child = MCTSNode(
            index=len(self._nodes),
            state=resulting_state,
            parent=node.index,
            move=move,
            move_index=move_index,
            mover=node.player,
        )
        self._nodes.append(child)
        node.children.append(child.index)
        return child

    def advance(self, move: Any) -> 'MCTSTree':
        """
        Re-root the tree at the child reached by ``move``.

        The subtree below that child is kept with its statistics so the next
        search starts warm. Nodes outside it are dropped and the arena is
        renumbered. When the move was never expanded a fresh tree is built.

        Returns:
            self

        Raises:
            PreconditionError: if ``move`` is not legal at the root
            InvalidStateError: if ``move`` ends the game
            SearchInProgressError: if a search currently owns the tree
        """
        with self.exclusive():
            root = self.root
            child = next((self._nodes[i] for i in root.children
                          if self._nodes[i].move == move), None)
            if child is None:
                if _position(root.legal_moves, move) is None:
                    raise PreconditionError(f"{move!r} is not a legal move at the root")
                state = root.state.apply_move(move)
                if state.is_terminal():
                    raise InvalidStateError("cannot search from a terminal state")
                self._nodes = [MCTSNode(0, state)]
                return self

            if child.terminal:
                raise InvalidStateError("cannot search from a terminal state")

            kept: List[MCTSNode] = []
            renumber = {}
            queue = deque([child.index])
            while queue:
                old = self._nodes[queue.popleft()]
                renumber[old.index] = len(kept)
                kept.append(old)
                queue.extend(old.children)

            for node in kept:
                node.index = renumber[node.index]
                node.children = [renumber[i] for i in node.children]
                node.parent = None if node is child else renumber[node.parent]
            child.move = None
            child.move_index = None
            child.mover = None
            self._nodes = kept
            return self

    @contextmanager
    def exclusive(self) -> Iterator['MCTSTree']:
        """
        Hold exclusive ownership of the tree for the duration of the block.

        Raises:
            SearchInProgressError: if another search already owns the tree
        """
        if not self._owner.acquire(blocking=False):
            raise SearchInProgressError("tree is already owned by a running search")
        try:
            yield self
        finally:
            self._owner.release()

    def __str__(self) -> str:
        return f"MCTSTree(nodes={len(self)}, root_visits={self.root.visits})"


def create_root(initial_state: GameState) -> MCTSTree:
    """Create a search tree for ``initial_state``; see :meth:`MCTSTree.create_root`."""
    return MCTSTree.create_root(initial_state)


def _position(moves, move) -> Optional[int]:
    for i, candidate in enumerate(moves):
        if candidate == move:
            return i
    return None
