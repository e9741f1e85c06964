"""
Monte Carlo Tree Search agents.

This module provides the MCTSAgent class, a ready-to-use player that picks
moves with the search engine, a uniformly random baseline, and helpers to
play agents against each other on any game implementing the GameState
contract.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import json

import numpy as np
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from mcts_ai.core.game import GameState, PlayerId, reward_for
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.engine import SearchEngine, SearchResult
from mcts_ai.mcts.tree import MCTSTree


class MCTSAgent:
    """
    Monte Carlo Tree Search agent.

    This agent uses MCTS to select moves. It keeps the result of its most
    recent search and a history of every decision.
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        name: str = "MCTS Agent",
        verbose: bool = False,
        console: Optional[Console] = None,
    ):
        """
        Initialize an MCTS agent.

        Args:
            config: Search configuration (default: 1000 iterations)
            name: Name of the agent
            verbose: Whether to print a summary after every search
            console: Console used for verbose output
        """
        self.config = config or SearchConfig.default()
        self.name = name
        self.verbose = verbose
        self.console = console or Console()
        self.engine = SearchEngine()

        # Result of the most recent search
        self.last_result: Optional[SearchResult] = None

        # History of all moves and their statistics
        self.action_history: List[Tuple[Any, Dict[str, Any]]] = []

    def select_action(self, state: GameState, player_id: Optional[PlayerId] = None) -> Any:
        """
        Select a move using Monte Carlo Tree Search.

        Args:
            state: Current game state
            player_id: If given, the player the agent is playing for

        Returns:
            Selected move
        """
        # Check if it's actually our turn
        if player_id is not None and state.current_player != player_id:
            raise ValueError(f"Not player {player_id}'s turn")

        result = self.engine.search(MCTSTree.create_root(state), self.config)
        self.last_result = result

        stats = {
            "iterations": result.iterations,
            "time_elapsed": result.elapsed,
            "iterations_per_second": result.iterations_per_second,
            "node_count": len(result.tree),
            "max_depth": result.tree.depth(),
            "status": result.status.name,
        }
        self.action_history.append((result.best_move, stats))

        if self.verbose:
            self._print_search_info(result)

        return result.best_move

    def _print_search_info(self, result: SearchResult) -> None:
        """
        Print information about the search.

        Args:
            result: Result of the search
        """
        self.console.print(f"\n[bold]{self.name}[/bold] selected: {result.best_move!r}")
        self.console.print(
            f"Iterations: {result.iterations}  "
            f"Time: {result.elapsed:.3f}s ({result.iterations_per_second:.1f} it/s)  "
            f"Nodes: {len(result.tree)}"
        )

        table = Table(title="Top moves")
        table.add_column("#", justify="right")
        table.add_column("Move")
        table.add_column("Visits", justify="right")
        table.add_column("Value", justify="right")

        ranked = sorted(result.action_statistics.items(),
                        key=lambda item: item[1]["visits"], reverse=True)
        for i, (move_str, stats) in enumerate(ranked[:5]):
            table.add_row(str(i + 1), move_str, str(stats["visits"]), f"{stats['value']:.3f}")
        self.console.print(table)

    def get_action_callback(self) -> Callable[[GameState], Any]:
        """
        Get a callback function for selecting moves.

        Returns:
            Callback function that takes a game state and returns a move
        """
        return lambda state: self.select_action(state)

    def get_last_statistics(self) -> Dict[str, Any]:
        """Statistics from the most recent search."""
        return self.action_history[-1][1] if self.action_history else {}

    def get_principal_variation(self) -> List[Tuple[Any, float]]:
        """
        Get the principal variation (most visited path) from the last search.

        Returns:
            List of (move, value) pairs representing the principal variation
        """
        if self.last_result is None:
            return []
        return self.last_result.principal_variation

    def get_action_statistics(self) -> Dict[str, Dict[str, float]]:
        """
        Get statistics for all moves from the last search.

        Returns:
            Dictionary mapping move strings to statistics
        """
        if self.last_result is None:
            return {}
        return self.last_result.action_statistics

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_result = None
        self.action_history = []

    def save_statistics(self, filename: str) -> None:
        """
        Save statistics to a JSON file.

        Args:
            filename: Name of the file to save to
        """
        history = [{"action": str(move), "stats": stats}
                   for move, stats in self.action_history]

        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": history,
            "total_actions": len(self.action_history)
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        budget = []
        if self.config.iterations is not None:
            budget.append(f"{self.config.iterations} iterations")
        if self.config.time_limit is not None:
            budget.append(f"{self.config.time_limit}s")
        return f"{self.name} (MCTS, {', '.join(budget)})"


class RandomAgent:
    """Baseline agent that plays uniformly random legal moves."""

    def __init__(self, seed: Optional[int] = None, name: str = "Random Agent"):
        self.name = name
        self.rng = np.random.default_rng(seed)

    def select_action(self, state: GameState, player_id: Optional[PlayerId] = None) -> Any:
        moves = state.legal_moves()
        if not moves:
            raise ValueError("No legal moves available")
        return moves[int(self.rng.integers(len(moves)))]

    def get_action_callback(self) -> Callable[[GameState], Any]:
        return lambda state: self.select_action(state)

    def __str__(self) -> str:
        return self.name


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents with different configurations.
    """

    @staticmethod
    def create_fast() -> MCTSAgent:
        """Create a fast MCTS agent with fewer iterations."""
        return MCTSAgent(config=SearchConfig.fast(), name="Fast MCTS")

    @staticmethod
    def create_standard() -> MCTSAgent:
        """Create a standard MCTS agent with balanced parameters."""
        return MCTSAgent(config=SearchConfig.default(), name="Standard MCTS")

    @staticmethod
    def create_strong() -> MCTSAgent:
        """Create a strong MCTS agent with more iterations."""
        return MCTSAgent(config=SearchConfig.deep(), name="Strong MCTS")

    @staticmethod
    def create_custom(
        iterations: Optional[int] = 1000,
        time_limit: Optional[float] = None,
        exploration_constant: float = 1.41,
        seed: Optional[int] = None,
        name: str = "Custom MCTS"
    ) -> MCTSAgent:
        """
        Create a custom MCTS agent.

        Args:
            iterations: Number of MCTS iterations
            time_limit: Optional time limit in seconds
            exploration_constant: UCT exploration parameter
            seed: Seed for the rollout generator
            name: Name of the agent

        Returns:
            MCTSAgent
        """
        config = SearchConfig(
            iterations=iterations,
            time_limit=time_limit,
            exploration_constant=exploration_constant,
            seed=seed,
        )
        return MCTSAgent(config=config, name=name)


@dataclass
class MatchResult:
    """Record of one finished game."""
    final_state: GameState
    outcome: Dict[Any, float]
    moves: List[Tuple[PlayerId, Any]] = field(default_factory=list)

    @property
    def turns(self) -> int:
        return len(self.moves)

    @property
    def winner(self) -> Optional[PlayerId]:
        """
        The player with the strictly highest reward, or None on a tie.

        In a single-player game the player wins with a positive reward.
        """
        ranked = sorted(self.outcome.items(), key=lambda item: item[1], reverse=True)
        if not ranked:
            return None
        if len(ranked) == 1:
            return ranked[0][0] if ranked[0][1] > 0 else None
        if ranked[0][1] == ranked[1][1]:
            return None
        return ranked[0][0]


def play_match(
    initial_state: GameState,
    agents: Mapping[PlayerId, Any],
    max_turns: Optional[int] = None,
) -> MatchResult:
    """
    Play one game to completion.

    Args:
        initial_state: Starting position
        agents: Agent for each player id; agents expose ``select_action(state)``
        max_turns: Optional safety cap on the number of moves

    Returns:
        MatchResult with the final state, outcome and move list

    Raises:
        RuntimeError: if ``max_turns`` is reached before the game ends
    """
    state = initial_state
    moves = []
    while not state.is_terminal():
        if max_turns is not None and len(moves) >= max_turns:
            raise RuntimeError(f"game did not finish within {max_turns} turns")
        player = state.current_player
        move = agents[player].select_action(state)
        moves.append((player, move))
        state = state.apply_move(move)

    return MatchResult(final_state=state, outcome=dict(state.outcome()), moves=moves)


def evaluate_agents(
    initial_state: GameState,
    agents: Mapping[PlayerId, Any],
    n_games: int,
    show_progress: bool = True,
) -> Dict[str, Any]:
    """
    Play several games between the same agents and tally the results.

    Args:
        initial_state: Starting position of every game
        agents: Agent for each player id
        n_games: Number of games to play
        show_progress: Whether to display a progress bar

    Returns:
        Dictionary with ``games``, ``wins`` and ``total_reward`` per player and
        the number of ``draws``
    """
    wins = {player: 0 for player in agents}
    total_reward = {player: 0.0 for player in agents}
    draws = 0

    for _ in tqdm(range(n_games), desc="Evaluating", disable=not show_progress):
        result = play_match(initial_state, agents)
        for player in agents:
            total_reward[player] += reward_for(result.outcome, player)
        if result.winner is None:
            draws += 1
        else:
            wins[result.winner] += 1

    return {
        "games": n_games,
        "wins": wins,
        "draws": draws,
        "total_reward": total_reward,
    }
