"""Perception stage: adaptive evidence gathering for one city.

For every category the stage asks the :class:`StrategySelector` for a
strategy, builds the query (extended by any pending adaptations), calls
the search collaborator and scores the cleaned evidence.  A failed search
costs only its category: the error and a strategy failure are recorded in
the agent's memory and the stage moves on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from cost_of_living.domain.entities import AgentMemory, AgentState
from cost_of_living.domain.enums import Adaptation, DataSource, ErrorPhase
from cost_of_living.domain.values import (
    Category,
    CategoryPerception,
    City,
    PerceptionBundle,
    Strategy,
)
from cost_of_living.services.interfaces import BasePerceptionCache, BaseSearchClient
from cost_of_living.services.quality import build_evidence, score_evidence
from cost_of_living.services.strategies import StrategySelector

logger = logging.getLogger(__name__)

LOCAL_SOURCE_SITES = ("reddit.com", "expat.com", "nomadlist.com")


def _expand_terms(category: Category) -> str:
    name = category.display_name
    return f' OR "{name} price" OR "{name} budget" OR "{name} expense"'


def _local_sources(category: Category) -> str:
    return " " + " OR ".join(f"site:{site}" for site in LOCAL_SOURCE_SITES)


_QUERY_ADAPTERS: dict[Adaptation, Callable[[Category], str]] = {
    Adaptation.EXPAND_SEARCH_TERMS: _expand_terms,
    Adaptation.TRY_LOCAL_SOURCES: _local_sources,
}


def build_query(
    strategy: Strategy,
    city: City,
    category: Category,
    adaptations: Sequence[Adaptation] = (),
) -> str:
    """Strategy query plus one suffix per query-affecting adaptation, in order."""
    query = strategy.build_query(city.name, city.country, category)
    for adaptation in adaptations:
        adapter = _QUERY_ADAPTERS.get(adaptation)
        if adapter is not None:
            query += adapter(category)
    return query


class Perceiver:
    """Gathers a :class:`PerceptionBundle` for one city and iteration.

    Parameters
    ----------
    search_client:
        Retrieval collaborator.
    selector:
        Strategy selector; defaults to one over the built-in catalog.
    cache:
        Optional perception cache.  It is consulted on iteration 0 only,
        since retries exist to gather different evidence.
    max_results:
        Organic results requested and kept per category.
    request_delay:
        Pause in seconds after each search call.
    cache_expiry_days:
        Maximum age of a usable cache entry.
    sleep:
        Awaitable pause function (``asyncio.sleep``); injectable for tests.
    """

    def __init__(
        self,
        search_client: BaseSearchClient,
        selector: StrategySelector | None = None,
        cache: BasePerceptionCache | None = None,
        max_results: int = 25,
        request_delay: float = 2.0,
        cache_expiry_days: float = 7.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._search = search_client
        self._selector = selector or StrategySelector()
        self._cache = cache
        self._max_results = max_results
        self._request_delay = request_delay
        self._cache_expiry_days = cache_expiry_days
        self._sleep = sleep

    @property
    def selector(self) -> StrategySelector:
        return self._selector

    async def perceive(
        self,
        city: City,
        categories: Sequence[Category],
        memory: AgentMemory,
        state: AgentState,
    ) -> PerceptionBundle:
        """Gather evidence for every category and update ``state.completeness``."""
        cached = self._load_cached(city, state)
        if cached is not None:
            state.completeness = cached.completeness
            return cached

        gathered: dict[str, CategoryPerception] = {}
        for category in categories:
            perception = await self._perceive_category(city, category, memory, state)
            if perception is not None:
                gathered[category.name] = perception

        bundle = PerceptionBundle(
            city=city.name,
            country=city.country,
            categories=gathered,
            categories_searched=len(categories),
            iteration=state.iteration,
            data_source=DataSource.FRESH_SEARCH,
        )
        state.completeness = bundle.completeness
        logger.info(
            "%s iteration %d: evidence for %d/%d categories (avg quality %.1f)",
            city,
            state.iteration,
            bundle.successful_categories,
            bundle.categories_searched,
            bundle.average_data_quality_score,
        )
        self._store(city, bundle, memory, state)
        return bundle

    async def _perceive_category(
        self,
        city: City,
        category: Category,
        memory: AgentMemory,
        state: AgentState,
    ) -> CategoryPerception | None:
        strategy = self._selector.select(memory, category, state.iteration)
        query = build_query(strategy, city, category, state.pending_adaptations)
        logger.debug("%s/%s: strategy=%s query=%r", city, category.name, strategy.name, query)

        try:
            raw = await self._search.search(query, self._max_results)
        except Exception as exc:
            logger.warning("%s/%s: search failed: %s", city, category.name, exc)
            memory.add_error(
                ErrorPhase.PERCEPTION,
                f"Category search failed: {exc}",
                category=category.name,
                iteration=state.iteration,
            )
            memory.record_strategy(
                strategy.name, category.name, success=False, confidence=0.0,
                iteration=state.iteration,
            )
            return None
        finally:
            await self._sleep(self._request_delay)

        evidence = build_evidence(raw, self._max_results)
        return CategoryPerception(
            category=category.name,
            evidence=evidence,
            quality_score=score_evidence(evidence),
            strategy_used=strategy.name,
            confidence_modifier=strategy.confidence_modifier,
            query=query,
        )

    # -- cache ---------------------------------------------------------------

    def _load_cached(self, city: City, state: AgentState) -> PerceptionBundle | None:
        if self._cache is None or state.iteration != 0:
            return None
        if not self._cache.has(city.key, self._cache_expiry_days):
            return None
        bundle = self._cache.load(city.key)
        if bundle is None:
            return None
        logger.info("%s: using cached evidence from %.0f", city, bundle.timestamp)
        return bundle.with_source(DataSource.CACHED)

    def _store(
        self,
        city: City,
        bundle: PerceptionBundle,
        memory: AgentMemory,
        state: AgentState,
    ) -> None:
        if self._cache is None or bundle.successful_categories == 0:
            return
        if not self._cache.save(city.key, bundle, self._cache_expiry_days):
            logger.warning("%s: could not cache evidence", city)
            memory.add_error(
                ErrorPhase.CACHE, "Failed to cache perception bundle", iteration=state.iteration
            )
