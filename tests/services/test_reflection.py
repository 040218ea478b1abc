"""Tests for goal evaluation and retry adaptation."""

from __future__ import annotations

from cost_of_living.domain.entities import AgentState
from cost_of_living.domain.enums import Adaptation
from cost_of_living.domain.values import CostCategoryResult, Goals
from cost_of_living.services.reflection import (
    Reflector,
    derive_adaptations,
    evaluate_goals,
    low_confidence_categories,
)


def _state(confidence: float, completeness: float = 1.0, iteration: int = 0) -> AgentState:
    return AgentState(
        max_iterations=3, iteration=iteration, confidence=confidence, completeness=completeness
    )


def _results(*confidences: int) -> list[CostCategoryResult]:
    return [CostCategoryResult(f"c{i}", f"C{i}", c) for i, c in enumerate(confidences)]


class TestEvaluateGoals:
    def test_goals_met(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(80, 0.8), goals)
        assert evaluation.confidence_met
        assert evaluation.completeness_met
        assert evaluation.goals_met
        assert not evaluation.should_retry

    def test_confidence_short_of_target(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(74), goals)
        assert not evaluation.goals_met
        assert evaluation.min_acceptable
        assert evaluation.should_retry

    def test_completeness_short_of_target(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(90, 0.6), goals)
        assert evaluation.confidence_met
        assert not evaluation.completeness_met
        assert evaluation.should_retry

    def test_below_minimum_never_retries(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(49.9), goals)
        assert not evaluation.min_acceptable
        assert not evaluation.should_retry

    def test_no_retry_once_exhausted(self, goals: Goals) -> None:
        assert not evaluate_goals(_state(60, iteration=3), goals).should_retry
        assert evaluate_goals(_state(60, iteration=2), goals).should_retry

    def test_thresholds_are_inclusive(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(75, 0.8), goals)
        assert evaluation.goals_met
        assert evaluate_goals(_state(50, 0.5), goals).min_acceptable


class TestAdaptations:
    def test_low_confidence_categories(self) -> None:
        assert low_confidence_categories(_results(59, 60, 10)) == ("c0", "c2")

    def test_none_low(self) -> None:
        assert derive_adaptations(()) == ()

    def test_few_low(self) -> None:
        assert derive_adaptations(("a", "b")) == (
            Adaptation.ALTERNATIVE_CATEGORY_APPROACH,
            Adaptation.TRY_LOCAL_SOURCES,
        )

    def test_many_low_expands_terms(self) -> None:
        assert derive_adaptations(("a", "b", "c")) == (
            Adaptation.EXPAND_SEARCH_TERMS,
            Adaptation.ALTERNATIVE_CATEGORY_APPROACH,
            Adaptation.TRY_LOCAL_SOURCES,
        )


class TestReflector:
    def test_stop_when_goals_met(self) -> None:
        decision = Reflector().reflect(_state(99), _results(99, 99))
        assert not decision.should_continue
        assert decision.evaluation.goals_met
        assert decision.adaptations == ()

    def test_retry_with_adaptations(self) -> None:
        decision = Reflector().reflect(_state(74), _results(44, 44, 94, 94, 94))
        assert decision.should_continue
        assert decision.low_confidence_categories == ("c0", "c1")
        assert decision.adaptations == (
            Adaptation.ALTERNATIVE_CATEGORY_APPROACH,
            Adaptation.TRY_LOCAL_SOURCES,
        )

    def test_retry_without_weak_categories(self) -> None:
        decision = Reflector().reflect(_state(90, 0.6), _results(90, 90, 90))
        assert decision.should_continue
        assert decision.adaptations == ()

    def test_stop_below_minimum(self) -> None:
        decision = Reflector().reflect(_state(30), _results(30, 30, 30))
        assert not decision.should_continue
        assert not decision.evaluation.goals_met

    def test_custom_threshold(self) -> None:
        reflector = Reflector(goals=Goals(), low_confidence_threshold=95)
        decision = reflector.reflect(_state(74), _results(94, 94, 96))
        assert decision.low_confidence_categories == ("c0", "c1")


class TestReferenceCases:
    def test_goal_arithmetic(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(80, 0.85), goals)
        assert evaluation.confidence_met
        assert evaluation.completeness_met
        assert evaluation.goals_met
        assert not evaluation.should_retry

    def test_retry_gating(self, goals: Goals) -> None:
        evaluation = evaluate_goals(_state(55, 0.5, iteration=1), goals)
        assert evaluation.should_retry
