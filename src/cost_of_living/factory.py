"""Assembly of city agents from an :class:`AppConfig`.

:class:`AgentFactory` wires the perception, reasoning and reflection
stages to their collaborators::

    loop = AgentFactory.create_llm_agent(config, search_client, model)
    result = await loop.run(City("Lisbon", "Portugal"))
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from langchain_core.language_models import BaseChatModel

from cost_of_living.infrastructure.cache import FileCache
from cost_of_living.infrastructure.config import AppConfig
from cost_of_living.services.extraction import (
    BaseCostExtractor,
    BaseSummaryWriter,
    LLMCostExtractor,
    LLMSummaryWriter,
)
from cost_of_living.services.interfaces import BasePerceptionCache, BaseSearchClient
from cost_of_living.services.loop import CityAgentLoop
from cost_of_living.services.perception import Perceiver
from cost_of_living.services.reasoning import Reasoner
from cost_of_living.services.reflection import Reflector
from cost_of_living.services.strategies import StrategySelector


class AgentFactory:
    """Static factory methods for city agents."""

    @staticmethod
    def create_cache(config: AppConfig) -> FileCache | None:
        if not config.cache.enabled:
            return None
        return FileCache(config.cache.cache_dir)

    @staticmethod
    def create_city_agent(
        config: AppConfig,
        search_client: BaseSearchClient,
        extractor: BaseCostExtractor,
        summary_writer: BaseSummaryWriter | None = None,
        cache: BasePerceptionCache | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> CityAgentLoop:
        """Build a loop from explicit collaborators.

        Parameters
        ----------
        config:
            Thresholds, delays, scoring tables and categories.
        search_client:
            Retrieval collaborator.
        extractor:
            Cost extraction collaborator.
        summary_writer:
            Optional narrative writer; the template writer when omitted.
        cache:
            Optional perception cache.
        sleep:
            Pacing function shared by both stages.
        """
        agent = config.agent
        perceiver = Perceiver(
            search_client,
            selector=StrategySelector(),
            cache=cache,
            max_results=config.search.max_results,
            request_delay=agent.request_delay_seconds,
            cache_expiry_days=config.cache.expiry_days,
            sleep=sleep,
        )
        reasoner = Reasoner(
            extractor,
            ppp_table=config.scoring.ppp,
            weights=config.scoring.remote_work_weights,
            summary_writer=summary_writer,
            success_threshold=agent.success_confidence_threshold,
            request_delay=agent.reasoning_delay_seconds,
            sleep=sleep,
        )
        reflector = Reflector(
            goals=agent.goals,
            low_confidence_threshold=agent.low_confidence_threshold,
        )
        return CityAgentLoop(
            perceiver,
            reasoner,
            reflector,
            categories=config.categories,
            max_iterations=agent.max_iterations,
        )

    @staticmethod
    def create_llm_agent(
        config: AppConfig,
        search_client: BaseSearchClient,
        model: BaseChatModel,
        use_cache: bool = True,
    ) -> CityAgentLoop:
        """Build a loop whose extraction and summaries use *model*."""
        timeout = config.model.timeout_seconds
        return AgentFactory.create_city_agent(
            config,
            search_client,
            extractor=LLMCostExtractor(model, timeout=timeout),
            summary_writer=LLMSummaryWriter(model, timeout=timeout),
            cache=AgentFactory.create_cache(config) if use_cache else None,
        )
