"""
Monte Carlo Tree Search (MCTS) phases.

This module implements the four standard phases on an MCTSTree:
1. Selection: Descend with UCT until a node that is terminal or not fully expanded
2. Expansion: Attach one child for the lowest-index untried move
3. Simulation: Play out from the new node to the end of the game
4. Backpropagation: Credit the outcome to every node on the path exactly once

It also provides the read-only helpers used to inspect a finished search:
best-move extraction, principal variation, per-move statistics and a rich
tree rendering.
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import io
import math

import numpy as np
from rich.console import Console
from rich.text import Text
from rich.tree import Tree as RichTree

from mcts_ai.core.errors import EmptyTreeError, PreconditionError
from mcts_ai.core.game import Outcome, reward_for
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.node import MCTSNode
from mcts_ai.mcts.policies import RolloutPolicy, select_child, simulate, uct_score
from mcts_ai.mcts.tree import MCTSTree


@dataclass
class IterationRecord:
    """What one select-expand-simulate-backpropagate cycle did."""
    path: List[int]
    """Arena indices from the root to the simulated node"""

    outcome: Dict[Any, float]
    """Per-player outcome of the rollout"""

    steps: int = 0
    """Number of rollout moves played"""

    expanded: Optional[int] = None
    """Arena index of the node created by expansion, if any"""


def select_node(
    tree: MCTSTree,
    exploration: float,
    virtual_loss: Optional[float] = None,
) -> List[MCTSNode]:
    """
    Select a node for expansion or simulation.

    Starting at the root, descend through fully expanded non-terminal nodes
    by UCT. When ``virtual_loss`` is given every node on the returned path
    carries one extra unit of virtual loss until :func:`backpropagate`
    removes it.

    Args:
        tree: Search tree
        exploration: UCT exploration constant
        virtual_loss: Reward charged per in-flight visit, or None when searching alone

    Returns:
        Path of nodes from the root to the selected node, inclusive

    Raises:
        PreconditionError: if a non-terminal state has no legal moves
    """
    node = tree.root
    path = [node]
    while not node.terminal:
        if not node.legal_moves:
            raise PreconditionError("non-terminal state reported no legal moves")
        if not tree.is_fully_expanded(node):
            break
        node = select_child(tree, node, exploration, virtual_loss or 0.0)
        path.append(node)

    if virtual_loss is not None:
        for visited in path:
            visited.virtual_loss += 1
    return path


def expand_node(tree: MCTSTree, node: MCTSNode) -> MCTSNode:
    """
    Expand a node by adding a child for its lowest-index untried move.

    Args:
        tree: Search tree
        node: Non-terminal node that is not fully expanded

    Returns:
        New child node
    """
    untried = tree.untried_moves(node)
    if node.terminal or not untried:
        raise PreconditionError(f"node {node.index} has nothing to expand")

    move = untried[0]
    return tree.expand(node, move, node.state.apply_move(move))


def simulate_game(
    node: MCTSNode,
    policy: Optional[RolloutPolicy] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[Outcome, int]:
    """
    Run a simulation from a node to estimate its value.

    Terminal nodes are scored directly; otherwise a playout is run on copies
    of the node's state. The tree is never touched.

    Returns:
        Tuple of (outcome mapping, number of rollout moves)
    """
    if node.terminal:
        return node.state.outcome(), 0
    return simulate(node.state, policy, rng)


def backpropagate(
    path: List[MCTSNode],
    outcome: Outcome,
    virtual_loss: bool = False,
) -> None:
    """
    Update statistics along the path.

    Each node gets exactly one visit and the reward of the player who chose
    the move into it (the root uses its own player to move).

    Args:
        path: Nodes from the root to the simulated node
        outcome: Per-player rollout outcome
        virtual_loss: Whether to remove the virtual loss added at selection

    Raises:
        PreconditionError: if the outcome lacks a reward for a node's player;
            no node is updated in that case
    """
    rewards = [reward_for(outcome, node.perspective) for node in path]
    for node, reward in zip(reversed(path), reversed(rewards)):
        node.update(reward)
        if virtual_loss:
            node.virtual_loss -= 1


def release_virtual_loss(path: List[MCTSNode]) -> None:
    """Remove the virtual loss charged at selection without recording a visit."""
    for node in path:
        node.virtual_loss -= 1


def run_iteration(
    tree: MCTSTree,
    config: SearchConfig,
    rng: np.random.Generator,
) -> IterationRecord:
    """Run one full select-expand-simulate-backpropagate cycle."""
    path = select_node(tree, config.exploration_constant)

    expanded = None
    if not path[-1].terminal:
        child = expand_node(tree, path[-1])
        path.append(child)
        expanded = child.index

    outcome, steps = simulate_game(path[-1], config.rollout_policy, rng)
    backpropagate(path, outcome)

    return IterationRecord(
        path=[node.index for node in path],
        outcome=dict(outcome),
        steps=steps,
        expanded=expanded,
    )


def best_child(tree: MCTSTree) -> MCTSNode:
    """
    Pick the robust child of the root.

    The most visited child wins; ties go to the higher mean reward, then to
    the lower move index.

    Raises:
        EmptyTreeError: if the root has no children
    """
    children = tree.children(tree.root)
    if not children:
        raise EmptyTreeError("root has no children to choose from")

    def key(child: MCTSNode):
        mean = child.mean_reward if child.visits else -math.inf
        return (child.visits, mean, -child.move_index)

    return max(children, key=key)


def count_nodes(tree: MCTSTree) -> int:
    """
    Count the total number of nodes in the tree.

    Returns:
        Total number of nodes
    """
    return len(tree)


def get_principal_variation(tree: MCTSTree, max_depth: int = 10) -> List[Tuple[Any, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        tree: Search tree
        max_depth: Maximum depth to explore

    Returns:
        List of (move, mean reward) pairs representing the principal variation
    """
    result = []
    current = tree.root
    depth = 0

    while current.children and depth < max_depth:
        # Most visits first, earliest move on ties
        best = max(tree.children(current), key=lambda c: (c.visits, -c.move_index))
        if best.visits == 0:
            break

        result.append((best.move, best.mean_reward))
        current = best
        depth += 1

    return result


def get_action_statistics(
    tree: MCTSTree,
    exploration: float = math.sqrt(2),
) -> Dict[str, Dict[str, float]]:
    """
    Get statistics for all moves from the root.

    Moves are keyed by ``str(move)``. Moves that share a string form are
    keyed ``"<move>#<move index>"`` instead so no entry is overwritten.

    Args:
        tree: Search tree
        exploration: Exploration constant used for the reported UCT value

    Returns:
        Dictionary mapping move strings to statistics
    """
    root = tree.root
    children = tree.children(root)
    labels = Counter(str(child.move) for child in children)
    result = {}

    for child in children:
        label = str(child.move)
        key = label if labels[label] == 1 else f"{label}#{child.move_index}"
        result[key] = {
            "visits": child.visits,
            "reward": child.total_reward,
            "value": child.total_reward / max(1, child.visits),
            "uct": uct_score(root, child, exploration),
        }

    return result


def render_tree(tree: MCTSTree, max_depth: Optional[int] = None) -> RichTree:
    """
    Build a rich tree widget showing ``move q=<reward> n=<visits>`` per node.

    Args:
        tree: Search tree
        max_depth: Deepest level to include (None = everything)
    """
    def label(node: MCTSNode) -> Text:
        name = "Root" if node.move is None else repr(node.move)
        return Text(f"{name} q={node.total_reward:g} n={node.visits}")

    widget = RichTree(label(tree.root))
    stack = [(tree.root, widget, 0)]
    while stack:
        node, branch, depth = stack.pop()
        if max_depth is not None and depth >= max_depth:
            continue
        for child in tree.children(node):
            stack.append((child, branch.add(label(child)), depth + 1))
    return widget


def format_tree(tree: MCTSTree, max_depth: Optional[int] = None, width: int = 120) -> str:
    """Render the tree as plain indented text."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, color_system=None, force_terminal=False)
    console.print(render_tree(tree, max_depth))
    return buffer.getvalue()
