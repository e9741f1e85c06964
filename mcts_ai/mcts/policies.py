"""
Selection and rollout policies.

Selection uses UCT (UCB1 applied to trees):

    UCT(i) = mean(i) + C * sqrt(ln(visits(parent)) / visits(i))

Unvisited children score +inf so every child is tried once before the
formula starts trading exploration against exploitation. Ties go to the
child whose move comes first in the game's move enumeration.

Rollouts play a game to the end on throwaway states. The default policy
picks uniformly at random with a numpy Generator so a seeded search is
reproducible.
"""
from __future__ import annotations
from typing import Any, Optional, Protocol, Sequence, Tuple
import math

import numpy as np

from mcts_ai.core.errors import PreconditionError
from mcts_ai.core.game import GameState, Outcome, PlayerId, reward_for
from mcts_ai.mcts.node import MCTSNode


def uct_score(
    parent: MCTSNode,
    child: MCTSNode,
    exploration: float,
    virtual_loss: float = 0.0,
) -> float:
    """
    Calculate the UCT score for a child node.

    Args:
        parent: Parent node
        child: Child node to calculate score for
        exploration: Exploration constant C
        virtual_loss: Reward charged per in-flight visit (parallel search)

    Returns:
        UCT score, +inf for an unvisited child
    """
    visits = child.visits + child.virtual_loss
    if visits == 0:
        return math.inf

    total = child.total_reward - child.virtual_loss * virtual_loss
    exploitation = total / visits

    parent_visits = parent.visits + parent.virtual_loss
    if parent_visits <= 1:
        # ln(1) == 0: nothing to explore yet
        return exploitation
    return exploitation + exploration * math.sqrt(math.log(parent_visits) / visits)


def select_child(
    tree,
    node: MCTSNode,
    exploration: float,
    virtual_loss: float = 0.0,
) -> MCTSNode:
    """
    Select the child of ``node`` with the highest UCT score.

    Raises:
        PreconditionError: if the node has no children
    """
    if not node.children:
        raise PreconditionError("cannot select a child from a node with no children")

    best: Optional[MCTSNode] = None
    best_key: Tuple[float, int] = (-math.inf, 0)
    for child in tree.children(node):
        key = (uct_score(node, child, exploration, virtual_loss), -child.move_index)
        if best is None or key > best_key:
            best, best_key = child, key
    return best


class RolloutPolicy(Protocol):
    """Chooses a move during simulation."""

    def __call__(self, state: GameState, moves: Sequence[Any], rng: np.random.Generator) -> Any:
        ...


def random_rollout(state: GameState, moves: Sequence[Any], rng: np.random.Generator) -> Any:
    """Uniformly random move choice."""
    return moves[int(rng.integers(len(moves)))]


def first_move_rollout(state: GameState, moves: Sequence[Any], rng: np.random.Generator) -> Any:
    """Always plays the first enumerated move. Deterministic; for testing."""
    return moves[0]


# Built-in policies by name, used to restore a serialized SearchConfig
ROLLOUT_POLICIES = {
    "random_rollout": random_rollout,
    "first_move_rollout": first_move_rollout,
}


def simulate(
    state: GameState,
    policy: Optional[RolloutPolicy] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[Outcome, int]:
    """
    Play from ``state`` to the end of the game.

    A terminal state is scored directly without applying any move.

    Args:
        state: Starting state; never mutated
        policy: Rollout move chooser (default: uniform random)
        rng: Random generator passed to the policy

    Returns:
        Tuple of (outcome mapping, number of moves played)

    Raises:
        PreconditionError: if a non-terminal state has no legal moves
    """
    policy = policy or random_rollout
    rng = rng if rng is not None else np.random.default_rng()

    steps = 0
    while not state.is_terminal():
        moves = state.legal_moves()
        if not moves:
            raise PreconditionError("non-terminal state reported no legal moves")
        state = state.apply_move(policy(state, moves, rng))
        steps += 1

    return state.outcome(), steps


def expected_reward(
    state: GameState,
    player: PlayerId,
    n_samples: int,
    policy: Optional[RolloutPolicy] = None,
    seed: Optional[int] = None,
) -> float:
    """
    Estimate the value of ``state`` for ``player`` from random playouts.

    Args:
        state: State to evaluate
        player: Player whose reward is averaged
        n_samples: Number of playouts
        policy: Rollout move chooser (default: uniform random)
        seed: Seed for the playout generator

    Returns:
        Mean reward over all playouts
    """
    if n_samples <= 0:
        raise ValueError("n_samples must be positive")

    rng = np.random.default_rng(seed)
    rewards = np.empty(n_samples)
    for i in range(n_samples):
        outcome, _ = simulate(state, policy, rng)
        rewards[i] = reward_for(outcome, player)
    return float(rewards.mean())
