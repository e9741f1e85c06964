"""
Search engine driving the MCTS budget loop.

The engine moves through ``IDLE -> RUNNING -> (EXHAUSTED | CANCELLED) -> IDLE``.
While running it executes complete select-expand-simulate-backpropagate
cycles and checks, after each one, whether the iteration or time budget is
spent and whether cancellation was requested. The tree is therefore always
structurally consistent when the loop stops. A cancelled search is not an
error: it returns the best move found so far.

Parallel search
---------------
With ``num_workers > 1`` several threads run iterations against the same
tree. In ``global_lock`` mode each whole iteration holds the tree lock, which
keeps the statistics exact but serializes the work. In ``virtual_loss`` mode
only selection, expansion and backpropagation hold the lock; rollouts run
concurrently. A worker charges one unit of virtual loss (a pessimistic
placeholder reward) to every node on its path so other workers are steered
elsewhere, and removes it when the real outcome is backpropagated. Virtual
loss biases selection slightly and is an approximation of sequential UCT.
Parallel searches are not reproducible even with a fixed seed.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
import logging
import threading
import time

import numpy as np
from tqdm import tqdm

from mcts_ai.core.errors import SearchInProgressError
from mcts_ai.core.game import GameState
from mcts_ai.mcts.config import SearchConfig
from mcts_ai.mcts.search import (
    IterationRecord, backpropagate, best_child, expand_node,
    get_action_statistics, get_principal_variation, release_virtual_loss,
    run_iteration, select_node, simulate_game,
)
from mcts_ai.mcts.tree import MCTSTree

logger = logging.getLogger(__name__)


class SearchStatus(Enum):
    """Lifecycle states of a :class:`SearchEngine`."""
    IDLE = auto()
    RUNNING = auto()
    EXHAUSTED = auto()  # Budget spent
    CANCELLED = auto()  # Stopped on request


@dataclass
class SearchProgress:
    """Snapshot taken after each completed iteration."""
    iteration: int
    elapsed: float
    record: IterationRecord
    best_move: Any = None


@dataclass
class SearchResult:
    """Outcome of a finished search."""
    best_move: Any
    status: SearchStatus
    iterations: int
    elapsed: float
    tree: MCTSTree
    action_statistics: Dict[str, Dict[str, float]] = field(default_factory=dict)
    principal_variation: List[Tuple[Any, float]] = field(default_factory=list)

    @property
    def iterations_per_second(self) -> float:
        return self.iterations / max(0.001, self.elapsed)


class _Budget:
    def __init__(self, config: SearchConfig):
        self.iterations = config.iterations
        self.time_limit = config.time_limit
        self.start = time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start

    def exhausted(self, iterations: int) -> bool:
        if self.iterations is not None and iterations >= self.iterations:
            return True
        return self.time_limit is not None and self.elapsed >= self.time_limit


class SearchEngine:
    """
    Runs Monte Carlo Tree Search under an iteration and/or time budget.

    An engine runs one search at a time; reuse it sequentially or create one
    engine per concurrent search.
    """

    def __init__(self, on_iteration: Optional[Callable[[SearchProgress], None]] = None):
        """
        Initialize the engine.

        Args:
            on_iteration: Optional callback invoked with every SearchProgress
        """
        self.on_iteration = on_iteration
        self._status = SearchStatus.IDLE
        self._last_status: Optional[SearchStatus] = None
        self._status_lock = threading.Lock()
        self._cancel = threading.Event()

    @property
    def status(self) -> SearchStatus:
        return self._status

    @property
    def last_status(self) -> Optional[SearchStatus]:
        """How the most recent search ended (EXHAUSTED or CANCELLED)."""
        return self._last_status

    def cancel(self) -> None:
        """Ask the running search to stop after the current iteration."""
        self._cancel.set()

    def run(self, initial_state: GameState, config: SearchConfig) -> Any:
        """
        Search from ``initial_state`` and return the best move.

        Raises:
            InvalidStateError: if the state is terminal
            SearchInProgressError: if this engine is already running
        """
        tree = MCTSTree.create_root(initial_state)
        return self.search(tree, config).best_move

    def search(
        self,
        tree: MCTSTree,
        config: SearchConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> SearchResult:
        """
        Run a full search on an existing tree.

        Args:
            tree: Tree to grow; its statistics are kept between searches
            config: Search configuration
            cancel_event: Optional external cancellation signal

        Returns:
            SearchResult with the robust-child move and search statistics
        """
        budget = _Budget(config)
        if config.is_parallel:
            iterations = self._search_parallel(tree, config, cancel_event)
        else:
            iterations = 0
            for progress in self.iterate(tree, config, cancel_event):
                iterations = progress.iteration

        move = best_child(tree).move
        result = SearchResult(
            best_move=move,
            status=self._last_status,
            iterations=iterations,
            elapsed=budget.elapsed,
            tree=tree,
            action_statistics=get_action_statistics(tree, config.exploration_constant),
            principal_variation=get_principal_variation(tree),
        )
        logger.info(
            "Search %s after %d iterations in %.3fs (%.1f it/s), best move %r",
            result.status.name.lower(), result.iterations, result.elapsed,
            result.iterations_per_second, move,
        )
        return result

    def iterate(
        self,
        tree: MCTSTree,
        config: SearchConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[SearchProgress]:
        """
        Run the budget loop lazily, yielding a snapshot after each iteration.

        Closing the generator early counts as a cancellation.
        """
        with tree.exclusive():
            self._begin()
            status = SearchStatus.CANCELLED
            try:
                rng = np.random.default_rng(config.seed)
                budget = _Budget(config)
                logger.debug(
                    "Starting search: iterations=%s time_limit=%s C=%.3f",
                    config.iterations, config.time_limit, config.exploration_constant,
                )
                iterations = 0
                with tqdm(total=config.iterations, desc="MCTS", unit="it",
                          disable=not config.show_progress) as pbar:
                    while True:
                        record = run_iteration(tree, config, rng)
                        iterations += 1
                        pbar.update(1)

                        progress = SearchProgress(
                            iteration=iterations,
                            elapsed=budget.elapsed,
                            record=record,
                            best_move=best_child(tree).move,
                        )
                        if self.on_iteration is not None:
                            self.on_iteration(progress)
                        yield progress

                        if budget.exhausted(iterations):
                            status = SearchStatus.EXHAUSTED
                            break
                        if self._cancelled(cancel_event):
                            logger.info("Search cancelled after %d iterations", iterations)
                            break
            finally:
                self._end(status)

    def _search_parallel(
        self,
        tree: MCTSTree,
        config: SearchConfig,
        cancel_event: Optional[threading.Event],
    ) -> int:
        with tree.exclusive():
            self._begin()
            status = SearchStatus.CANCELLED
            try:
                lock = threading.Lock()
                budget = _Budget(config)
                counts = {"claimed": 0, "completed": 0}
                stop = threading.Event()
                penalty = config.virtual_loss
                seeds = np.random.SeedSequence(config.seed).spawn(config.num_workers)
                logger.debug(
                    "Starting parallel search: workers=%d mode=%s iterations=%s time_limit=%s",
                    config.num_workers, config.parallel_mode, config.iterations,
                    config.time_limit,
                )

                def claim() -> bool:
                    # Called with the lock held
                    if stop.is_set():
                        return False
                    # The first iteration always runs so the root has a child
                    if counts["claimed"] > 0 and (
                        budget.exhausted(counts["claimed"]) or self._cancelled(cancel_event)
                    ):
                        return False
                    counts["claimed"] += 1
                    return True

                def complete(record: IterationRecord, pbar) -> None:
                    # Called with the lock held
                    counts["completed"] += 1
                    pbar.update(1)
                    if self.on_iteration is not None:
                        self.on_iteration(SearchProgress(
                            iteration=counts["completed"],
                            elapsed=budget.elapsed,
                            record=record,
                            best_move=best_child(tree).move,
                        ))

                def worker(seed: np.random.SeedSequence, pbar) -> None:
                    rng = np.random.default_rng(seed)
                    try:
                        while True:
                            if config.parallel_mode == "global_lock":
                                with lock:
                                    if not claim():
                                        return
                                    complete(run_iteration(tree, config, rng), pbar)
                                continue

                            with lock:
                                if not claim():
                                    return
                                path = select_node(tree, config.exploration_constant, penalty)
                                expanded = None
                                if not path[-1].terminal:
                                    try:
                                        child = expand_node(tree, path[-1])
                                    except BaseException:
                                        release_virtual_loss(path)
                                        raise
                                    child.virtual_loss += 1
                                    path.append(child)
                                    expanded = child.index

                            try:
                                outcome, steps = simulate_game(
                                    path[-1], config.rollout_policy, rng
                                )
                                with lock:
                                    backpropagate(path, outcome, virtual_loss=True)
                            except BaseException:
                                # backpropagate updates nothing when it raises
                                with lock:
                                    release_virtual_loss(path)
                                raise

                            with lock:
                                complete(IterationRecord(
                                    path=[node.index for node in path],
                                    outcome=dict(outcome),
                                    steps=steps,
                                    expanded=expanded,
                                ), pbar)
                    except BaseException:
                        stop.set()
                        raise

                with tqdm(total=config.iterations, desc="MCTS", unit="it",
                          disable=not config.show_progress) as pbar:
                    with ThreadPoolExecutor(max_workers=config.num_workers,
                                            thread_name_prefix="mcts-worker") as pool:
                        futures = [pool.submit(worker, seed, pbar) for seed in seeds]
                        for future in futures:
                            future.result()

                if self._cancelled(cancel_event) and not budget.exhausted(counts["claimed"]):
                    logger.info("Search cancelled after %d iterations", counts["completed"])
                else:
                    status = SearchStatus.EXHAUSTED
                return counts["completed"]
            finally:
                self._end(status)

    def _begin(self) -> None:
        with self._status_lock:
            if self._status is SearchStatus.RUNNING:
                raise SearchInProgressError("engine is already running a search")
            self._status = SearchStatus.RUNNING
            self._cancel.clear()

    def _end(self, status: SearchStatus) -> None:
        with self._status_lock:
            self._last_status = status
            self._status = SearchStatus.IDLE

    def _cancelled(self, cancel_event: Optional[threading.Event]) -> bool:
        return self._cancel.is_set() or (cancel_event is not None and cancel_event.is_set())


def run(initial_state: GameState, config: SearchConfig) -> Any:
    """Search from ``initial_state`` with a fresh engine and return the best move."""
    return SearchEngine().run(initial_state, config)
