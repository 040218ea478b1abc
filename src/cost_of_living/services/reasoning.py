"""Reasoning stage: from a perception bundle to a :class:`CityAnalysis`.

Each category with evidence is handed to the extractor; the returned
confidence is scaled by the confidence modifier of the strategy that
gathered the evidence, and the outcome is recorded against that strategy
in the agent's memory.  The per-category results are then aggregated into
average confidence, PPP-adjusted costs and the remote-work score.

A failing extraction costs only its category.  If the stage as a whole
fails the city still receives a degraded, zero-confidence analysis.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import replace

from cost_of_living.domain.entities import AgentMemory, AgentState
from cost_of_living.domain.enums import ErrorPhase
from cost_of_living.domain.values import (
    Category,
    CityAnalysis,
    CostCategoryResult,
    PerceptionBundle,
    PPPAnalysis,
)
from cost_of_living.services.extraction import (
    BaseCostExtractor,
    BaseSummaryWriter,
    TemplateSummaryWriter,
)
from cost_of_living.services.scoring import (
    DEFAULT_WEIGHTS,
    average_confidence,
    data_availability_label,
    ppp_adjusted_costs,
    ppp_factor,
    remote_work_score,
    scale_confidence,
    source_reliability_label,
)

logger = logging.getLogger(__name__)


def degraded_analysis(
    city: str,
    country: str,
    error: str,
    ppp_table: Mapping[str, float],
    iteration: int = 0,
) -> CityAnalysis:
    """Zero-confidence analysis used when no real analysis could be produced."""
    factor = ppp_factor(country, ppp_table)
    return CityAnalysis(
        city=city,
        country=country,
        ppp=PPPAnalysis(factor=factor, explanation="Analysis failed"),
        summary=f"Analysis failed: {error}",
        iteration=iteration,
        error=error,
    )


class Reasoner:
    """Extracts, scores and aggregates cost figures for one city.

    Parameters
    ----------
    extractor:
        Cost extraction collaborator.
    ppp_table:
        Country to PPP factor mapping.
    weights:
        Remote-work sub-score weights.
    summary_writer:
        Narrative summary writer; defaults to the template writer.
    success_threshold:
        Scaled confidence at or above which a strategy counts as successful.
    request_delay:
        Pause in seconds after each extraction call.
    """

    def __init__(
        self,
        extractor: BaseCostExtractor,
        ppp_table: Mapping[str, float] | None = None,
        weights: Mapping[str, float] = DEFAULT_WEIGHTS,
        summary_writer: BaseSummaryWriter | None = None,
        success_threshold: float = 60.0,
        request_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._extractor = extractor
        self._ppp_table = dict(ppp_table or {})
        self._weights = dict(weights)
        self._summary_writer = summary_writer or TemplateSummaryWriter()
        self._success_threshold = success_threshold
        self._request_delay = request_delay
        self._sleep = sleep

    @property
    def ppp_table(self) -> Mapping[str, float]:
        return self._ppp_table

    async def reason(
        self,
        bundle: PerceptionBundle,
        categories: Sequence[Category],
        memory: AgentMemory,
        state: AgentState,
    ) -> CityAnalysis:
        """Analyse *bundle* and set ``state.confidence``; never raises."""
        try:
            analysis = await self._analyze(bundle, categories, memory, state)
        except Exception as exc:
            logger.exception("Reasoning failed for %s, %s", bundle.city, bundle.country)
            memory.add_error(ErrorPhase.REASONING, f"Reasoning failed: {exc}", iteration=state.iteration)
            state.confidence = 0.0
            return degraded_analysis(
                bundle.city, bundle.country, str(exc), self._ppp_table, state.iteration
            )
        state.confidence = analysis.overall_confidence
        return analysis

    async def _analyze(
        self,
        bundle: PerceptionBundle,
        categories: Sequence[Category],
        memory: AgentMemory,
        state: AgentState,
    ) -> CityAnalysis:
        results: list[CostCategoryResult] = []
        for category in categories:
            result = await self._analyze_category(bundle, category, memory, state)
            if result is not None:
                results.append(result)

        confidence = average_confidence(results)
        ppp = ppp_adjusted_costs(
            {r.category: float(r.usd_amount) for r in results if r.has_usd_amount},  # type: ignore[arg-type]
            bundle.country,
            self._ppp_table,
        )
        score = remote_work_score(results, self._weights)
        summary = await self._summary_writer.write(
            bundle.city, bundle.country, results, confidence, score, ppp
        )
        logger.info(
            "%s, %s iteration %d: %d categories, confidence %.1f, remote-work score %d",
            bundle.city,
            bundle.country,
            state.iteration,
            len(results),
            confidence,
            score,
        )
        return CityAnalysis(
            city=bundle.city,
            country=bundle.country,
            cost_categories=tuple(results),
            ppp=ppp,
            remote_work_score=score,
            overall_confidence=confidence,
            data_quality_score=bundle.average_data_quality_score,
            sources_analyzed=bundle.total_organic_results,
            data_availability=data_availability_label(confidence),
            source_reliability=source_reliability_label(confidence),
            summary=summary,
            reasoning_model=self._extractor.model_name,
            iteration=state.iteration,
        )

    async def _analyze_category(
        self,
        bundle: PerceptionBundle,
        category: Category,
        memory: AgentMemory,
        state: AgentState,
    ) -> CostCategoryResult | None:
        perception = bundle.get(category.name)
        if perception is None:
            return None

        try:
            extracted = await self._extractor.extract(
                perception.evidence, category, bundle.city, bundle.country
            )
        except Exception as exc:
            logger.warning("%s/%s: extraction failed: %s", bundle.city, category.name, exc)
            memory.add_error(
                ErrorPhase.REASONING,
                f"Category analysis failed: {exc}",
                category=category.name,
                iteration=state.iteration,
            )
            return None
        finally:
            await self._sleep(self._request_delay)

        confidence = scale_confidence(extracted.confidence, perception.confidence_modifier)
        memory.record_strategy(
            perception.strategy_used,
            category.name,
            success=confidence >= self._success_threshold,
            confidence=confidence,
            iteration=state.iteration,
        )
        return replace(extracted, confidence=confidence, strategy_used=perception.strategy_used)
