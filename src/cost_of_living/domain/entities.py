"""Mutable per-agent entities.

``AgentMemory`` and ``AgentState`` are created fresh for every city agent
and are owned exclusively by that agent's loop; nothing here is shared
between cities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .enums import Adaptation, ErrorPhase
from .values import AgentError, StrategyAttempt

# ---------------------------------------------------------------------------
# AgentMemory
# ---------------------------------------------------------------------------


@dataclass
class AgentMemory:
    """Strategy history and recovered errors for one city agent.

    The failed and successful sets are both append-only histories: a
    strategy name may sit in both for the same category when it failed in
    one iteration and succeeded in another. Selection treats the failed
    set as authoritative.
    """

    attempted_strategies: list[StrategyAttempt] = field(default_factory=list)
    failed_strategies_by_category: dict[str, set[str]] = field(default_factory=dict)
    successful_strategies_by_category: dict[str, set[str]] = field(default_factory=dict)
    errors: list[AgentError] = field(default_factory=list)

    def record_strategy(
        self,
        strategy: str,
        category: str,
        success: bool,
        confidence: float = 0.0,
        iteration: int = 0,
    ) -> StrategyAttempt:
        """Log an attempt and file the strategy under the category's outcome set."""
        attempt = StrategyAttempt(
            strategy=strategy,
            category=category,
            success=success,
            confidence=confidence,
            iteration=iteration,
        )
        self.attempted_strategies.append(attempt)
        target = (
            self.successful_strategies_by_category
            if success
            else self.failed_strategies_by_category
        )
        target.setdefault(category, set()).add(strategy)
        return attempt

    def failed_for(self, category: str) -> frozenset[str]:
        return frozenset(self.failed_strategies_by_category.get(category, ()))

    def successful_for(self, category: str) -> frozenset[str]:
        return frozenset(self.successful_strategies_by_category.get(category, ()))

    def add_error(
        self,
        phase: ErrorPhase,
        message: str,
        category: str | None = None,
        iteration: int = 0,
    ) -> AgentError:
        error = AgentError(phase=phase, message=message, category=category, iteration=iteration)
        self.errors.append(error)
        return error


# ---------------------------------------------------------------------------
# AgentState
# ---------------------------------------------------------------------------


@dataclass
class AgentState:
    """Iteration counter and quality readings of one city agent.

    ``iteration`` is 0-based and bounded by ``max_iterations``.
    ``pending_adaptations`` keeps insertion order; it is what the next
    perception pass applies to its queries.
    """

    max_iterations: int = 3
    iteration: int = 0
    confidence: float = 0.0
    completeness: float = 0.0
    goals_met: bool = False
    pending_adaptations: tuple[Adaptation, ...] = ()

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

    @property
    def exhausted(self) -> bool:
        return self.iteration >= self.max_iterations

    def has_adaptation(self, adaptation: Adaptation) -> bool:
        return adaptation in self.pending_adaptations

    def advance(self, adaptations: Iterable[Adaptation] = ()) -> None:
        """Move to the next iteration carrying the given adaptations."""
        self.iteration += 1
        self.pending_adaptations = tuple(dict.fromkeys(adaptations))
