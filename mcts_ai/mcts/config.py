"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the configuration parameters for the search engine:
the search budget, the UCT exploration constant, the rollout strategy and
the optional parallel-search settings.
"""
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, ClassVar, Dict, Literal, Optional
import math

from mcts_ai.core.errors import ConfigurationError
from mcts_ai.mcts.policies import ROLLOUT_POLICIES


@dataclass
class SearchConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    At least one of ``iterations`` or ``time_limit`` must be set; when both
    are set the search stops at whichever is reached first.
    """
    # Search parameters
    exploration_constant: float = math.sqrt(2)
    """UCT exploration parameter C (default is sqrt(2))"""

    iterations: Optional[int] = None
    """Hard cap on the number of search iterations"""

    time_limit: Optional[float] = None
    """Hard cap on wall-clock search time in seconds"""

    seed: Optional[int] = None
    """Seed for the rollout random generator (None = nondeterministic)"""

    # Strategy parameters
    rollout_policy: Optional[Callable[..., Any]] = None
    """Rollout move chooser ``(state, moves, rng) -> move``; None = uniform random"""

    # Parallelization
    num_workers: int = 1
    """Number of worker threads sharing the tree (1 = single-threaded)"""

    parallel_mode: Literal["global_lock", "virtual_loss"] = "virtual_loss"
    """How workers share the tree when num_workers > 1"""

    virtual_loss: float = 1.0
    """Pessimistic reward recorded per in-flight visit in virtual-loss mode"""

    # Diagnostics
    show_progress: bool = False
    """Whether to display a progress bar while searching"""

    PARALLEL_MODES: ClassVar[tuple] = ("global_lock", "virtual_loss")

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.iterations is None and self.time_limit is None:
            raise ConfigurationError(
                "at least one of iterations or time_limit must be set"
            )

        if self.iterations is not None and (
            isinstance(self.iterations, bool) or not isinstance(self.iterations, int)
            or self.iterations <= 0
        ):
            raise ConfigurationError("iterations must be a positive integer or None")

        if self.time_limit is not None and not self.time_limit > 0:
            raise ConfigurationError("time_limit must be positive or None")

        if not self.exploration_constant >= 0:
            raise ConfigurationError("exploration_constant must be non-negative")

        if self.num_workers <= 0:
            raise ConfigurationError("num_workers must be positive")

        if self.parallel_mode not in self.PARALLEL_MODES:
            raise ConfigurationError(
                f"parallel_mode must be one of {', '.join(self.PARALLEL_MODES)}"
            )

        if not self.virtual_loss > 0:
            raise ConfigurationError("virtual_loss must be positive")

        if self.rollout_policy is not None and not callable(self.rollout_policy):
            raise ConfigurationError("rollout_policy must be callable")

    @classmethod
    def default(cls) -> 'SearchConfig':
        """
        Get the default configuration (1000 iterations).

        Returns:
            Default SearchConfig object
        """
        return cls(iterations=1000)

    @classmethod
    def fast(cls) -> 'SearchConfig':
        """
        Get a configuration optimized for speed (fewer iterations).

        Returns:
            Fast SearchConfig object
        """
        return cls(iterations=100)

    @classmethod
    def deep(cls) -> 'SearchConfig':
        """
        Get a configuration optimized for deep search.

        Returns:
            Deep SearchConfig object
        """
        return cls(
            iterations=5000,
            exploration_constant=1.2,  # Slightly less exploration
        )

    @classmethod
    def timed(cls, seconds: float, **kwargs) -> 'SearchConfig':
        """Get a configuration bounded only by wall-clock time."""
        return cls(time_limit=seconds, **kwargs)

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'SearchConfig':
        """
        Create a configuration from a dictionary.

        A rollout policy given by name (as written by :meth:`to_dict`) is
        resolved against the built-in policies.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            SearchConfig object

        Raises:
            ConfigurationError: if a policy name is not a built-in policy
        """
        # Filter out any keys that aren't valid parameters
        valid_params = {k: v for k, v in config_dict.items()
                        if k in cls.__dataclass_fields__}

        policy = valid_params.get("rollout_policy")
        if isinstance(policy, str):
            if policy not in ROLLOUT_POLICIES:
                raise ConfigurationError(f"unknown rollout policy {policy!r}")
            valid_params["rollout_policy"] = ROLLOUT_POLICIES[policy]
        return cls(**valid_params)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the configuration to a dictionary.

        The rollout policy is recorded by name so the result stays
        JSON-serializable.

        Returns:
            Dictionary of configuration parameters
        """
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.rollout_policy is not None:
            data["rollout_policy"] = getattr(
                self.rollout_policy, "__name__", repr(self.rollout_policy)
            )
        return data

    def replace(self, **changes) -> 'SearchConfig':
        """Return a validated copy with the given fields changed."""
        return replace(self, **changes)

    @property
    def is_parallel(self) -> bool:
        return self.num_workers > 1

    def __str__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"SearchConfig({params})"
