#!/usr/bin/env python
"""
Micro-benchmarks for the MCTS engine.

Times the hot paths on the small reference games: a single rollout, an
expected-reward estimate, single iterations on a growing tree, short
searches, and a parallel search for comparison with the serial one.

Usage:
    python benchmark.py
    python benchmark.py --repeat 500 --seed 1
"""
import argparse
import logging
import time
from dataclasses import dataclass
from typing import Callable, List

import numpy as np
from rich.console import Console
from rich.table import Table

from mcts_ai.games.minigame import MiniGame
from mcts_ai.games.tictactoe import TicTacToe
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.engine import SearchEngine
from mcts_ai.mcts.policies import expected_reward, simulate
from mcts_ai.mcts.search import run_iteration
from mcts_ai.mcts.tree import create_root


@dataclass
class BenchmarkResult:
    """Timing of one benchmark."""
    name: str
    runs: int
    total: float

    @property
    def mean_us(self) -> float:
        return 1e6 * self.total / self.runs

    @property
    def per_second(self) -> float:
        return self.runs / max(1e-9, self.total)


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Benchmark the MCTS engine")
    parser.add_argument("--repeat", type=int, default=200, help="Runs per benchmark")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--workers", type=int, default=4, help="Workers for the parallel search")
    return parser.parse_args()


def time_it(name: str, func: Callable[[], object], repeat: int) -> BenchmarkResult:
    """Call ``func`` ``repeat`` times and record the wall-clock total."""
    func()  # warm up
    start = time.perf_counter()
    for _ in range(repeat):
        func()
    return BenchmarkResult(name=name, runs=repeat, total=time.perf_counter() - start)


def run_benchmarks(repeat: int = 200, seed: int = 42, workers: int = 4) -> List[BenchmarkResult]:
    """
    Run every benchmark.

    Args:
        repeat: Runs per benchmark
        seed: Seed for rollouts and searches
        workers: Number of workers for the parallel search

    Returns:
        List of benchmark results in run order
    """
    rng = np.random.default_rng(seed)
    game = MiniGame()

    minigame_tree = create_root(game)
    minigame_config = SearchConfig(iterations=10, seed=seed)

    iteration_tree = create_root(TicTacToe())
    iteration_config = SearchConfig(iterations=1, seed=seed)

    engine = SearchEngine()
    serial = SearchConfig(iterations=200, seed=seed)
    parallel = serial.replace(num_workers=workers)

    return [
        time_it("playout (MiniGame)", lambda: simulate(game, rng=rng), repeat),
        time_it("expected_reward x100 (MiniGame)",
                lambda: expected_reward(game, 0, 100, seed=seed), max(1, repeat // 10)),
        time_it("iteration (TicTacToe)",
                lambda: run_iteration(iteration_tree, iteration_config, rng), repeat),
        time_it("search 10 iterations (MiniGame)",
                lambda: engine.search(minigame_tree, minigame_config), max(1, repeat // 10)),
        time_it("search 200 iterations (TicTacToe)",
                lambda: engine.search(create_root(TicTacToe()), serial), max(1, repeat // 50)),
        time_it(f"search 200 iterations, {workers} workers (TicTacToe)",
                lambda: engine.search(create_root(TicTacToe()), parallel), max(1, repeat // 50)),
    ]


def print_results(results: List[BenchmarkResult], console: Console = None) -> None:
    """Print benchmark results as a table."""
    console = console or Console()
    table = Table(title="MCTS benchmarks")
    table.add_column("Benchmark")
    table.add_column("Runs", justify="right")
    table.add_column("Mean (us)", justify="right")
    table.add_column("Per second", justify="right")
    for result in results:
        table.add_row(
            result.name,
            str(result.runs),
            f"{result.mean_us:,.1f}",
            f"{result.per_second:,.1f}",
        )
    console.print(table)


def main():
    """Main function."""
    args = parse_args()
    # Searches log at INFO; keep the table readable
    logging.getLogger("mcts_ai").setLevel(logging.WARNING)
    print_results(run_benchmarks(args.repeat, args.seed, args.workers))


if __name__ == "__main__":
    main()
