"""
Monte Carlo Tree Search (MCTS) engine.

This package provides a game-independent MCTS engine. The algorithm works by:

1. Selection: Starting from the root node, select child nodes using UCT until reaching
   a terminal node or a node that hasn't been fully expanded.
2. Expansion: Create a new child node for the first untried move.
3. Simulation: From the new node, perform a random playout to the end of the game.
4. Backpropagation: Update the statistics of all nodes in the path with the result.

The engine can be configured with an iteration and/or time budget, the
exploration constant, the rollout policy and optional parallel workers.
"""

from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.node import MCTSNode
from mcts_ai.mcts.tree import MCTSTree, create_root
from mcts_ai.mcts.policies import (
    uct_score,
    select_child,
    random_rollout,
    first_move_rollout,
    ROLLOUT_POLICIES,
    simulate,
    expected_reward,
)
from mcts_ai.mcts.search import (
    IterationRecord,
    select_node,
    expand_node,
    simulate_game,
    backpropagate,
    release_virtual_loss,
    run_iteration,
    best_child,
    count_nodes,
    get_principal_variation,
    get_action_statistics,
    render_tree,
    format_tree,
)
from mcts_ai.mcts.engine import (
    SearchEngine,
    SearchStatus,
    SearchProgress,
    SearchResult,
    run,
)
from mcts_ai.mcts.agent import (
    MCTSAgent,
    MCTSAgentFactory,
    RandomAgent,
    MatchResult,
    play_match,
    evaluate_agents,
)

# Default configuration
DEFAULT_CONFIG = SearchConfig(
    iterations=1000,                 # Number of MCTS iterations per move
    exploration_constant=1.41,       # UCT exploration parameter (sqrt(2))
)

__all__ = [
    'SearchConfig',
    'MCTSNode',
    'MCTSTree',
    'create_root',
    'uct_score',
    'select_child',
    'random_rollout',
    'first_move_rollout',
    'ROLLOUT_POLICIES',
    'simulate',
    'expected_reward',
    'IterationRecord',
    'select_node',
    'expand_node',
    'simulate_game',
    'backpropagate',
    'release_virtual_loss',
    'run_iteration',
    'best_child',
    'count_nodes',
    'get_principal_variation',
    'get_action_statistics',
    'render_tree',
    'format_tree',
    'SearchEngine',
    'SearchStatus',
    'SearchProgress',
    'SearchResult',
    'run',
    'MCTSAgent',
    'MCTSAgentFactory',
    'RandomAgent',
    'MatchResult',
    'play_match',
    'evaluate_agents',
    'DEFAULT_CONFIG',
]
