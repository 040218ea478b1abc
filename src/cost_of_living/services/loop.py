"""Agent control loop for a single city.

An explicit two-state machine: ``RUNNING`` runs one perceive -> reason ->
reflect pass; the reflection decision is the typed input of the
transition, which either ends the run (``DONE``) or advances the
iteration carrying the decided adaptations.

Classes
-------
AgentRunResult
    Dataclass capturing the outcome of one city's run.
CityAgentLoop
    Runs the loop for one city with fresh memory and state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from cost_of_living.domain.entities import AgentMemory, AgentState
from cost_of_living.domain.enums import ErrorPhase, LoopPhase, StopReason
from cost_of_living.domain.values import (
    Category,
    City,
    CityAnalysis,
    PerceptionBundle,
    ReflectionDecision,
)
from cost_of_living.services.perception import Perceiver
from cost_of_living.services.reasoning import Reasoner, degraded_analysis
from cost_of_living.services.reflection import Reflector

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 3


# ===================================================================== #
#  Run Result                                                            #
# ===================================================================== #


@dataclass
class AgentRunResult:
    """Outcome of one city agent run.

    Attributes
    ----------
    city:
        The city analysed.
    analysis:
        Final analysis, with ``goals_met`` set from the last evaluation.
    state:
        The agent state when the loop terminated.
    memory:
        Strategy log and recovered errors.
    stopped_reason:
        Why the loop terminated.
    passes:
        Number of passes started.
    perception:
        The last perception bundle gathered, if any.
    started_at, completed_at:
        Wall-clock timestamps of the run.
    """

    city: City
    analysis: CityAnalysis
    state: AgentState
    memory: AgentMemory
    stopped_reason: StopReason
    passes: int = 0
    perception: PerceptionBundle | None = None
    started_at: float = 0.0
    completed_at: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def goals_met(self) -> bool:
        return self.analysis.goals_met

    @property
    def elapsed_seconds(self) -> float:
        return self.completed_at - self.started_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city.name,
            "country": self.city.country,
            "analysis": self.analysis.to_dict(),
            "perception": self.perception.to_dict() if self.perception else None,
            "agent": {
                "stopped_reason": self.stopped_reason.value,
                "passes": self.passes,
                "final_iteration": self.state.iteration,
                "confidence": self.state.confidence,
                "completeness": self.state.completeness,
                "goals_met": self.goals_met,
                "started_at": self.started_at,
                "completed_at": self.completed_at,
                "elapsed_seconds": self.elapsed_seconds,
                "attempted_strategies": [
                    {
                        "strategy": a.strategy,
                        "category": a.category,
                        "success": a.success,
                        "confidence": a.confidence,
                        "iteration": a.iteration,
                    }
                    for a in self.memory.attempted_strategies
                ],
                "errors": [e.to_dict() for e in self.memory.errors],
            },
            "metadata": dict(self.metadata),
        }


# ===================================================================== #
#  City Agent Loop                                                       #
# ===================================================================== #


class CityAgentLoop:
    """Adaptive perceive -> reason -> reflect loop for one city at a time.

    The loop object holds only collaborators; every :meth:`run` creates its
    own :class:`AgentMemory` and :class:`AgentState`, so one instance can
    serve several cities concurrently.

    Parameters
    ----------
    perceiver:
        Perception stage.
    reasoner:
        Reasoning stage.
    reflector:
        Reflection stage.
    categories:
        Categories to analyse, in processing order.
    max_iterations:
        Hard cap on passes per city.
    """

    def __init__(
        self,
        perceiver: Perceiver,
        reasoner: Reasoner,
        reflector: Reflector,
        categories: Sequence[Category],
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self._perceiver = perceiver
        self._reasoner = reasoner
        self._reflector = reflector
        self._categories = tuple(categories)
        self._max_iterations = max_iterations

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run(self, city: City) -> AgentRunResult:
        """Run the loop for *city* until goals are met or iterations run out."""
        started_at = time.time()
        memory = AgentMemory()
        state = AgentState(max_iterations=self._max_iterations)
        phase = LoopPhase.RUNNING
        stop_reason = StopReason.MAX_ITERATIONS
        passes = 0
        best: CityAnalysis | None = None
        bundle: PerceptionBundle | None = None

        logger.info("Starting agent for %s", city)
        while phase is LoopPhase.RUNNING:
            if state.exhausted:
                stop_reason = StopReason.MAX_ITERATIONS
                phase = LoopPhase.DONE
                continue

            passes += 1
            try:
                bundle = await self._perceiver.perceive(city, self._categories, memory, state)
                analysis = await self._reasoner.reason(bundle, self._categories, memory, state)
                decision = self._reflector.reflect(state, analysis.cost_categories)
            except Exception as exc:
                logger.exception("%s: error at iteration %d", city, state.iteration)
                memory.add_error(
                    ErrorPhase.AGENT_LOOP, f"Agent loop error: {exc}", iteration=state.iteration
                )
                state.iteration += 1
                continue

            state.goals_met = decision.evaluation.goals_met
            best = self._prefer(best, analysis, state.goals_met)
            phase, reason = self._transition(state, decision)
            if reason is not None:
                stop_reason = reason

        final = best or degraded_analysis(
            city.name,
            city.country,
            "No analysis produced",
            self._reasoner.ppp_table,
            state.iteration,
        )
        final = replace(final, goals_met=state.goals_met)
        completed_at = time.time()
        logger.info(
            "Agent for %s finished after %d pass(es): %s (confidence %.1f, goals met %s)",
            city,
            passes,
            stop_reason.value,
            final.overall_confidence,
            final.goals_met,
        )
        return AgentRunResult(
            city=city,
            analysis=final,
            state=state,
            memory=memory,
            stopped_reason=stop_reason,
            passes=passes,
            perception=bundle,
            started_at=started_at,
            completed_at=completed_at,
        )

    @staticmethod
    def _transition(
        state: AgentState,
        decision: ReflectionDecision,
    ) -> tuple[LoopPhase, StopReason | None]:
        if not decision.should_continue:
            if decision.evaluation.goals_met:
                return LoopPhase.DONE, StopReason.GOALS_MET
            return LoopPhase.DONE, StopReason.RETRY_NOT_WARRANTED

        # Failure history persists across passes; a strategy that failed for
        # a category is not offered for it again.
        state.advance(decision.adaptations)
        logger.debug(
            "Advancing to iteration %d with adaptations %s",
            state.iteration,
            [a.value for a in state.pending_adaptations],
        )
        return LoopPhase.RUNNING, None

    @staticmethod
    def _prefer(
        current: CityAnalysis | None,
        candidate: CityAnalysis,
        goals_met: bool,
    ) -> CityAnalysis:
        """Keep the goal-meeting analysis, else the most confident one so far."""
        if current is None or goals_met:
            return candidate
        if candidate.overall_confidence >= current.overall_confidence:
            return candidate
        return current
