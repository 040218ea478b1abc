"""Value objects for the cost-of-living agent.

All types here are frozen dataclasses -- immutable, compared by value.
They describe the fixed vocabulary of the system (categories, strategies,
goals), the evidence gathered for a city, and the analyses produced from it.
"""

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .enums import Adaptation, DataSource, ErrorPhase

# ---------------------------------------------------------------------------
# City / Category
# ---------------------------------------------------------------------------

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class City:
    """A candidate city and the country used for PPP lookup."""

    name: str
    country: str

    @property
    def key(self) -> str:
        """Cache key unique per city and country (``lisbon_portugal``)."""
        return _NON_ALNUM.sub("_", f"{self.name}_{self.country}".lower())

    def __str__(self) -> str:
        return f"{self.name}, {self.country}"


@dataclass(frozen=True)
class Category:
    """A cost category the agent gathers evidence for.

    ``query_template`` is the category's generic search phrasing as
    configured; strategies build the queries that are actually sent.
    """

    name: str
    display_name: str
    query_template: str = ""


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Strategy:
    """A named, weighted way of constructing an evidence-gathering query.

    The query builder is data: ``query_template`` is formatted with
    ``city``, ``country``, ``category`` (machine name) and ``display_name``.
    ``confidence_modifier`` multiplies the confidence of figures extracted
    from evidence gathered with this strategy.
    """

    name: str
    description: str
    confidence_modifier: float
    query_template: str
    sites: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.confidence_modifier <= 0:
            raise ValueError(
                f"confidence_modifier must be positive, got {self.confidence_modifier}"
            )

    def build_query(self, city: str, country: str, category: Category) -> str:
        return self.query_template.format(
            city=city,
            country=country,
            category=category.name,
            display_name=category.display_name,
        )


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Goals:
    """Quality thresholds fixed at agent creation.

    Confidences are on the 0-100 scale; completeness is a fraction.
    """

    min_acceptable_confidence: float = 50.0
    confidence_target: float = 75.0
    completeness_target: float = 0.8

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_acceptable_confidence <= 100.0:
            raise ValueError(
                "min_acceptable_confidence must be in [0, 100], "
                f"got {self.min_acceptable_confidence}"
            )
        if not 0.0 <= self.confidence_target <= 100.0:
            raise ValueError(
                f"confidence_target must be in [0, 100], got {self.confidence_target}"
            )
        if self.min_acceptable_confidence > self.confidence_target:
            raise ValueError(
                "min_acceptable_confidence must not exceed confidence_target"
            )
        if not 0.0 <= self.completeness_target <= 1.0:
            raise ValueError(
                f"completeness_target must be in [0, 1], got {self.completeness_target}"
            )


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrganicResult:
    """One organic search hit, reduced to the fields the extractor reads."""

    title: str = ""
    description: str = ""
    link: str = ""
    source: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrganicResult:
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            link=str(data.get("link") or ""),
            source=str(data.get("source") or ""),
        )


@dataclass(frozen=True)
class KnowledgePanel:
    """A knowledge-graph / fact panel attached to a search response."""

    description: str = ""
    facts: tuple[tuple[str, str], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "facts": [{"key": k, "value": v} for k, v in self.facts],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> KnowledgePanel:
        facts = tuple(
            (str(f.get("key", "")), str(f.get("value", "")))
            for f in data.get("facts") or ()
            if isinstance(f, Mapping)
        )
        return cls(description=str(data.get("description") or ""), facts=facts)


@dataclass(frozen=True)
class Evidence:
    """Cleaned evidence for one category: organic hits plus optional panel."""

    organic: tuple[OrganicResult, ...] = ()
    knowledge: KnowledgePanel | None = None

    @property
    def has_knowledge_panel(self) -> bool:
        return self.knowledge is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "organic": [item.to_dict() for item in self.organic],
            "knowledge": self.knowledge.to_dict() if self.knowledge else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Evidence:
        knowledge = data.get("knowledge")
        return cls(
            organic=tuple(
                OrganicResult.from_dict(item)
                for item in data.get("organic") or ()
                if isinstance(item, Mapping)
            ),
            knowledge=KnowledgePanel.from_dict(knowledge) if isinstance(knowledge, Mapping) else None,
        )


@dataclass(frozen=True)
class CategoryPerception:
    """Evidence gathered for one category, tagged with the strategy used."""

    category: str
    evidence: Evidence
    quality_score: int
    strategy_used: str
    confidence_modifier: float = 1.0
    query: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "evidence": self.evidence.to_dict(),
            "quality_score": self.quality_score,
            "strategy_used": self.strategy_used,
            "confidence_modifier": self.confidence_modifier,
            "query": self.query,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CategoryPerception:
        return cls(
            category=str(data["category"]),
            evidence=Evidence.from_dict(data.get("evidence") or {}),
            quality_score=int(data.get("quality_score", 0)),
            strategy_used=str(data.get("strategy_used", "")),
            confidence_modifier=float(data.get("confidence_modifier", 1.0)),
            query=str(data.get("query", "")),
        )


@dataclass(frozen=True)
class PerceptionBundle:
    """Per-iteration evidence for a city, keyed by category name.

    Categories whose retrieval failed are simply absent from ``categories``.
    ``data_source`` records cache provenance; downstream processing ignores it.
    """

    city: str
    country: str
    categories: Mapping[str, CategoryPerception] = field(default_factory=dict)
    categories_searched: int = 0
    iteration: int = 0
    data_source: DataSource = DataSource.FRESH_SEARCH
    timestamp: float = field(default_factory=time.time)

    @property
    def successful_categories(self) -> int:
        return len(self.categories)

    @property
    def completeness(self) -> float:
        if self.categories_searched <= 0:
            return 0.0
        return self.successful_categories / self.categories_searched

    @property
    def total_organic_results(self) -> int:
        return sum(len(p.evidence.organic) for p in self.categories.values())

    @property
    def average_data_quality_score(self) -> float:
        if not self.categories:
            return 0.0
        return sum(p.quality_score for p in self.categories.values()) / len(self.categories)

    def get(self, category: str) -> CategoryPerception | None:
        return self.categories.get(category)

    def with_source(self, source: DataSource) -> PerceptionBundle:
        return replace(self, data_source=source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "country": self.country,
            "categories": {name: p.to_dict() for name, p in self.categories.items()},
            "categories_searched": self.categories_searched,
            "iteration": self.iteration,
            "data_source": self.data_source.value,
            "timestamp": self.timestamp,
            "metadata": {
                "total_organic_results": self.total_organic_results,
                "average_data_quality_score": self.average_data_quality_score,
                "successful_categories": self.successful_categories,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PerceptionBundle:
        categories = {
            name: CategoryPerception.from_dict(p)
            for name, p in (data.get("categories") or {}).items()
        }
        return cls(
            city=str(data["city"]),
            country=str(data["country"]),
            categories=categories,
            categories_searched=int(data.get("categories_searched", len(categories))),
            iteration=int(data.get("iteration", 0)),
            data_source=DataSource(data.get("data_source", DataSource.FRESH_SEARCH.value)),
            timestamp=float(data.get("timestamp", time.time())),
        )


# ---------------------------------------------------------------------------
# Cost results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CostCategoryResult:
    """A structured cost figure extracted for one category.

    ``confidence`` is an integer percentage. The internet category
    additionally carries ``speed_mbps``, ``reliability_score`` and
    ``fiber_availability``.
    """

    category: str
    display_name: str
    confidence: int
    amount: float | None = None
    currency: str | None = None
    usd_amount: float | None = None
    source: str | None = None
    context: str | None = None
    notes: str | None = None
    strategy_used: str = ""
    speed_mbps: float | None = None
    reliability_score: float | None = None
    fiber_availability: bool | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence must be in [0, 100], got {self.confidence}")

    @property
    def has_usd_amount(self) -> bool:
        return self.usd_amount is not None and self.usd_amount > 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "category": self.category,
            "display_name": self.display_name,
            "amount": self.amount,
            "currency": self.currency,
            "usd_amount": self.usd_amount,
            "confidence": self.confidence,
            "source": self.source,
            "context": self.context,
            "notes": self.notes,
            "strategy_used": self.strategy_used,
        }
        if self.speed_mbps is not None or self.reliability_score is not None:
            data["speed_mbps"] = self.speed_mbps
            data["reliability_score"] = self.reliability_score
            data["fiber_availability"] = self.fiber_availability
        return data


@dataclass(frozen=True)
class PPPAnalysis:
    """Purchasing-power adjustment of the extracted USD amounts."""

    original: Mapping[str, float] = field(default_factory=dict)
    adjusted: Mapping[str, float] = field(default_factory=dict)
    factor: float = 1.0
    explanation: str = "USD baseline"

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": dict(self.original),
            "ppp_adjusted": dict(self.adjusted),
            "ppp_factor": self.factor,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class CityAnalysis:
    """The per-city cost analysis handed to the reporting stage.

    A degraded analysis (reasoning failed outright) has ``error`` set,
    no categories and zero confidence.
    """

    city: str
    country: str
    cost_categories: tuple[CostCategoryResult, ...] = ()
    ppp: PPPAnalysis = field(default_factory=PPPAnalysis)
    remote_work_score: int = 0
    overall_confidence: float = 0.0
    goals_met: bool = False
    data_quality_score: float = 0.0
    sources_analyzed: int = 0
    data_availability: str = "poor"
    source_reliability: str = "low"
    summary: str = ""
    reasoning_model: str = ""
    iteration: int = 0
    error: str | None = None
    timestamp: float = field(default_factory=time.time)

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @property
    def total_monthly_cost(self) -> float:
        """Sum of all extracted USD amounts."""
        return sum(c.usd_amount for c in self.cost_categories if c.has_usd_amount)  # type: ignore[misc]

    def category(self, name: str) -> CostCategoryResult | None:
        for result in self.cost_categories:
            if result.category == name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "country": self.country,
            "cost_categories": [c.to_dict() for c in self.cost_categories],
            "ppp_analysis": self.ppp.to_dict(),
            "remote_work_score": self.remote_work_score,
            "overall_confidence": self.overall_confidence,
            "goals_met": self.goals_met,
            "data_quality_score": self.data_quality_score,
            "sources_analyzed": self.sources_analyzed,
            "overall_assessment": {
                "data_availability": self.data_availability,
                "source_reliability": self.source_reliability,
                "summary": self.summary,
            },
            "total_monthly_cost": self.total_monthly_cost,
            "reasoning_model": self.reasoning_model,
            "iteration": self.iteration,
            "error": self.error,
            "timestamp": self.timestamp,
        }


# ---------------------------------------------------------------------------
# Reflection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GoalEvaluation:
    """Outcome of checking agent state against its goals."""

    confidence_met: bool
    completeness_met: bool
    min_acceptable: bool
    goals_met: bool
    should_retry: bool


@dataclass(frozen=True)
class ReflectionDecision:
    """Whether to run another pass, and how to adapt it."""

    should_continue: bool
    evaluation: GoalEvaluation
    adaptations: tuple[Adaptation, ...] = ()
    low_confidence_categories: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Memory records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrategyAttempt:
    """One entry in an agent's strategy log."""

    strategy: str
    category: str
    success: bool
    confidence: float
    iteration: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AgentError:
    """An error recovered by a city agent."""

    phase: ErrorPhase
    message: str
    category: str | None = None
    iteration: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "message": self.message,
            "category": self.category,
            "iteration": self.iteration,
            "timestamp": self.timestamp,
        }
