"""Tests for domain value objects."""

from __future__ import annotations

import pytest

from cost_of_living.domain.enums import DataSource
from cost_of_living.domain.values import (
    Category,
    CategoryPerception,
    City,
    CityAnalysis,
    CostCategoryResult,
    Evidence,
    Goals,
    KnowledgePanel,
    OrganicResult,
    PerceptionBundle,
    Strategy,
)


def _perception(name: str, results: int = 3, quality: int = 40) -> CategoryPerception:
    return CategoryPerception(
        category=name,
        evidence=Evidence(organic=tuple(OrganicResult(title=f"r{i}") for i in range(results))),
        quality_score=quality,
        strategy_used="multi_source",
        confidence_modifier=1.1,
    )


class TestCity:
    def test_key_is_lowercase_with_underscores(self) -> None:
        assert City("Lisbon", "Portugal").key == "lisbon_portugal"
        assert City("Austin", "United States").key == "austin_united_states"

    def test_key_replaces_punctuation(self) -> None:
        assert City("St. John's", "Canada").key == "st__john_s_canada"

    def test_str(self) -> None:
        assert str(City("Bali", "Indonesia")) == "Bali, Indonesia"


class TestStrategy:
    def test_build_query_formats_all_placeholders(self) -> None:
        strategy = Strategy(
            name="s",
            description="d",
            confidence_modifier=1.0,
            query_template="{display_name}|{category}|{city}|{country}",
        )
        category = Category("rent_1br", "1BR Apartment Rent")
        assert strategy.build_query("Lisbon", "Portugal", category) == (
            "1BR Apartment Rent|rent_1br|Lisbon|Portugal"
        )

    def test_modifier_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="confidence_modifier"):
            Strategy(name="s", description="d", confidence_modifier=0.0, query_template="")


class TestGoals:
    def test_defaults(self) -> None:
        goals = Goals()
        assert goals.min_acceptable_confidence == 50
        assert goals.confidence_target == 75
        assert goals.completeness_target == 0.8

    def test_minimum_above_target_rejected(self) -> None:
        with pytest.raises(ValueError):
            Goals(min_acceptable_confidence=80, confidence_target=75)

    def test_completeness_is_a_fraction(self) -> None:
        with pytest.raises(ValueError):
            Goals(completeness_target=80)


class TestEvidence:
    def test_knowledge_panel_flag(self) -> None:
        assert not Evidence().has_knowledge_panel
        assert Evidence(knowledge=KnowledgePanel(description="x")).has_knowledge_panel

    def test_from_dict_skips_malformed_items(self) -> None:
        evidence = Evidence.from_dict(
            {"organic": [{"title": "a", "source": "numbeo.com"}, "junk"], "knowledge": "junk"}
        )
        assert len(evidence.organic) == 1
        assert evidence.organic[0].source == "numbeo.com"
        assert evidence.knowledge is None

    def test_knowledge_facts_round_trip(self) -> None:
        panel = KnowledgePanel(description="d", facts=(("Rent", "900 EUR"),))
        assert KnowledgePanel.from_dict(panel.to_dict()) == panel


class TestPerceptionBundle:
    def test_completeness_and_metadata(self) -> None:
        bundle = PerceptionBundle(
            city="Lisbon",
            country="Portugal",
            categories={
                "rent_1br": _perception("rent_1br", results=4, quality=60),
                "groceries": _perception("groceries", results=2, quality=40),
            },
            categories_searched=5,
        )
        assert bundle.successful_categories == 2
        assert bundle.completeness == pytest.approx(0.4)
        assert bundle.total_organic_results == 6
        assert bundle.average_data_quality_score == pytest.approx(50.0)

    def test_empty_bundle(self) -> None:
        bundle = PerceptionBundle(city="X", country="Y")
        assert bundle.completeness == 0.0
        assert bundle.average_data_quality_score == 0.0

    def test_serialisation_preserves_content(self) -> None:
        bundle = PerceptionBundle(
            city="Lisbon",
            country="Portugal",
            categories={"rent_1br": _perception("rent_1br")},
            categories_searched=5,
            iteration=1,
        )
        restored = PerceptionBundle.from_dict(bundle.to_dict())
        assert restored == bundle

    def test_with_source(self) -> None:
        bundle = PerceptionBundle(city="X", country="Y")
        assert bundle.with_source(DataSource.CACHED).data_source is DataSource.CACHED
        assert bundle.data_source is DataSource.FRESH_SEARCH


class TestCostCategoryResult:
    def test_confidence_range_enforced(self) -> None:
        with pytest.raises(ValueError):
            CostCategoryResult(category="c", display_name="C", confidence=101)

    def test_has_usd_amount(self) -> None:
        assert not CostCategoryResult("c", "C", 50).has_usd_amount
        assert not CostCategoryResult("c", "C", 50, usd_amount=0).has_usd_amount
        assert CostCategoryResult("c", "C", 50, usd_amount=10).has_usd_amount

    def test_internet_fields_only_serialised_when_present(self) -> None:
        plain = CostCategoryResult("rent_1br", "Rent", 80, usd_amount=900).to_dict()
        internet = CostCategoryResult("internet", "Internet", 80, speed_mbps=100).to_dict()
        assert "speed_mbps" not in plain
        assert internet["speed_mbps"] == 100


class TestCityAnalysis:
    def test_total_and_lookup(self) -> None:
        analysis = CityAnalysis(
            city="Lisbon",
            country="Portugal",
            cost_categories=(
                CostCategoryResult("rent_1br", "Rent", 80, usd_amount=900),
                CostCategoryResult("groceries", "Groceries", 70, usd_amount=300),
                CostCategoryResult("utilities", "Utilities", 40),
            ),
        )
        assert analysis.total_monthly_cost == pytest.approx(1200)
        assert analysis.category("groceries").usd_amount == 300
        assert analysis.category("internet") is None
        assert not analysis.degraded

    def test_degraded_when_error_set(self) -> None:
        analysis = CityAnalysis(city="X", country="Y", error="boom")
        assert analysis.degraded
        assert analysis.to_dict()["error"] == "boom"
