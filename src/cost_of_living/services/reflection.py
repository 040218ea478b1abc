"""Reflection stage: goal evaluation and retry adaptation.

Pure functions over the agent's state and the latest per-category
results.  The loop owns the state; nothing here mutates it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cost_of_living.domain.entities import AgentState
from cost_of_living.domain.enums import Adaptation
from cost_of_living.domain.values import (
    CostCategoryResult,
    GoalEvaluation,
    Goals,
    ReflectionDecision,
)

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_THRESHOLD = 60.0
EXPAND_WHEN_MORE_THAN = 2


def evaluate_goals(state: AgentState, goals: Goals) -> GoalEvaluation:
    """Compare the state's readings against *goals*.

    A retry is warranted only while goals are unmet, iterations remain and
    confidence is at least the minimum acceptable value: below the minimum
    the evidence is considered unrecoverable.
    """
    confidence_met = state.confidence >= goals.confidence_target
    completeness_met = state.completeness >= goals.completeness_target
    min_acceptable = state.confidence >= goals.min_acceptable_confidence
    goals_met = confidence_met and completeness_met
    should_retry = not goals_met and not state.exhausted and min_acceptable
    return GoalEvaluation(
        confidence_met=confidence_met,
        completeness_met=completeness_met,
        min_acceptable=min_acceptable,
        goals_met=goals_met,
        should_retry=should_retry,
    )


def low_confidence_categories(
    results: Sequence[CostCategoryResult],
    threshold: float = LOW_CONFIDENCE_THRESHOLD,
) -> tuple[str, ...]:
    return tuple(r.category for r in results if r.confidence < threshold)


def derive_adaptations(low_confidence: Sequence[str]) -> tuple[Adaptation, ...]:
    """Adaptations for the next pass, in the order they are applied."""
    adaptations: list[Adaptation] = []
    if len(low_confidence) > EXPAND_WHEN_MORE_THAN:
        adaptations.append(Adaptation.EXPAND_SEARCH_TERMS)
    if low_confidence:
        adaptations.append(Adaptation.ALTERNATIVE_CATEGORY_APPROACH)
        adaptations.append(Adaptation.TRY_LOCAL_SOURCES)
    return tuple(adaptations)


class Reflector:
    """Decides whether another pass is worthwhile and how to adapt it.

    Parameters
    ----------
    goals:
        Thresholds the agent works towards.
    low_confidence_threshold:
        Scaled confidence below which a category is considered weak.
    """

    def __init__(
        self,
        goals: Goals | None = None,
        low_confidence_threshold: float = LOW_CONFIDENCE_THRESHOLD,
    ) -> None:
        self.goals = goals or Goals()
        self.low_confidence_threshold = low_confidence_threshold

    def reflect(
        self,
        state: AgentState,
        results: Sequence[CostCategoryResult],
    ) -> ReflectionDecision:
        evaluation = evaluate_goals(state, self.goals)
        if evaluation.goals_met or not evaluation.should_retry:
            return ReflectionDecision(should_continue=False, evaluation=evaluation)

        weak = low_confidence_categories(results, self.low_confidence_threshold)
        adaptations = derive_adaptations(weak)
        logger.debug(
            "Retry warranted (confidence %.1f): weak=%s adaptations=%s",
            state.confidence,
            weak,
            [a.value for a in adaptations],
        )
        return ReflectionDecision(
            should_continue=True,
            evaluation=evaluation,
            adaptations=adaptations,
            low_confidence_categories=weak,
        )
