"""Tests for the strategy catalog and selector."""

from __future__ import annotations

import pytest

from cost_of_living.domain.entities import AgentMemory
from cost_of_living.domain.values import Category, Strategy
from cost_of_living.services.strategies import (
    DEFAULT_CATALOG,
    MULTI_SOURCE,
    NUMBEO_FOCUSED,
    REDDIT_LOCAL,
    StrategyCatalog,
    StrategySelector,
)


class TestStrategyCatalog:
    def test_default_catalog_contents(self) -> None:
        assert DEFAULT_CATALOG.names() == [
            "numbeo_focused",
            "expatistan_focused",
            "reddit_local",
            "multi_source",
            "government_stats",
            "expat_forums",
        ]
        modifiers = {s.name: s.confidence_modifier for s in DEFAULT_CATALOG}
        assert modifiers == {
            "numbeo_focused": 1.0,
            "expatistan_focused": 0.9,
            "reddit_local": 0.8,
            "multi_source": 1.1,
            "government_stats": 1.2,
            "expat_forums": 0.7,
        }
        assert DEFAULT_CATALOG.fallback is MULTI_SOURCE

    def test_get_unknown_strategy(self) -> None:
        with pytest.raises(KeyError, match="unknown strategy"):
            DEFAULT_CATALOG.get("nope")

    def test_rejects_unknown_fallback(self) -> None:
        with pytest.raises(ValueError, match="fallback"):
            StrategyCatalog([NUMBEO_FOCUSED], fallback="multi_source")

    def test_rejects_duplicate_names(self) -> None:
        with pytest.raises(ValueError, match="unique"):
            StrategyCatalog([NUMBEO_FOCUSED, NUMBEO_FOCUSED], fallback="numbeo_focused")

    def test_catalog_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            DEFAULT_CATALOG._strategies["x"] = NUMBEO_FOCUSED  # type: ignore[index]

    def test_multi_source_query(self, rent: Category) -> None:
        query = MULTI_SOURCE.build_query("Lisbon", "Portugal", rent)
        assert query == (
            "1BR Apartment Rent cost Lisbon Portugal "
            "site:numbeo.com OR site:expatistan.com OR site:livingcost.org"
        )


class TestStrategySelector:
    def test_fresh_memory_starts_with_fallback(
        self, memory: AgentMemory, rent: Category
    ) -> None:
        assert StrategySelector().select(memory, rent, iteration=0) is MULTI_SOURCE

    def test_retry_uses_priority_order(self, memory: AgentMemory, rent: Category) -> None:
        assert StrategySelector().select(memory, rent, iteration=1) is NUMBEO_FOCUSED

    def test_reuses_successful_strategy(self, memory: AgentMemory, rent: Category) -> None:
        memory.record_strategy("reddit_local", rent.name, success=True)
        assert StrategySelector().select(memory, rent, iteration=0) is REDDIT_LOCAL
        assert StrategySelector().select(memory, rent, iteration=2) is REDDIT_LOCAL

    def test_success_for_other_category_is_ignored(
        self, memory: AgentMemory, rent: Category
    ) -> None:
        memory.record_strategy("reddit_local", "groceries", success=True)
        assert StrategySelector().select(memory, rent, iteration=1) is NUMBEO_FOCUSED

    def test_failed_strategy_never_returned(self, memory: AgentMemory, rent: Category) -> None:
        selector = StrategySelector()
        memory.record_strategy("multi_source", rent.name, success=False)
        memory.record_strategy("numbeo_focused", rent.name, success=False)

        assert selector.select(memory, rent, iteration=0) is REDDIT_LOCAL
        assert selector.select(memory, rent, iteration=1) is REDDIT_LOCAL

    def test_failure_overrides_success_history(
        self, memory: AgentMemory, rent: Category
    ) -> None:
        memory.record_strategy("numbeo_focused", rent.name, success=True)
        memory.record_strategy("numbeo_focused", rent.name, success=False)
        chosen = StrategySelector().select(memory, rent, iteration=1)
        assert chosen.name != "numbeo_focused"

    def test_exclusion_holds_across_iterations(
        self, memory: AgentMemory, rent: Category
    ) -> None:
        selector = StrategySelector()
        for iteration in range(len(DEFAULT_CATALOG) - 1):
            chosen = selector.select(memory, rent, iteration)
            assert chosen.name not in memory.failed_for(rent.name)
            memory.record_strategy(chosen.name, rent.name, success=False, iteration=iteration)

    def test_fallback_when_everything_failed(
        self, memory: AgentMemory, rent: Category
    ) -> None:
        for name in DEFAULT_CATALOG.names():
            memory.record_strategy(name, rent.name, success=False)
        assert StrategySelector().select(memory, rent, iteration=2) is MULTI_SOURCE

    def test_later_failure_overrides_prior_success(
        self, memory: AgentMemory, rent: Category
    ) -> None:
        memory.record_strategy("reddit_local", rent.name, success=True)
        memory.record_strategy("reddit_local", rent.name, success=False)
        assert StrategySelector().select(memory, rent, iteration=1) is not REDDIT_LOCAL

    def test_catalog_without_priority(self, memory: AgentMemory, rent: Category) -> None:
        only = Strategy("only", "d", 1.0, "{city}")
        other = Strategy("other", "d", 1.0, "{city}")
        selector = StrategySelector(StrategyCatalog([only, other], fallback="other"))
        memory.record_strategy("other", rent.name, success=False)
        assert selector.select(memory, rent, iteration=0) is only
