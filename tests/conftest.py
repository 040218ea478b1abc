"""Shared fixtures for the cost-of-living test suite."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable

import pytest

from cost_of_living.domain.entities import AgentMemory, AgentState
from cost_of_living.domain.values import Category, City, Goals
from cost_of_living.factory import AgentFactory
from cost_of_living.infrastructure.config import DEFAULT_CATEGORIES, AgentConfig, AppConfig
from cost_of_living.services.extraction import BaseCostExtractor
from cost_of_living.services.interfaces import BasePerceptionCache, BaseSearchClient
from cost_of_living.services.loop import CityAgentLoop
from cost_of_living.testing import FakeSearchClient, ScriptedExtractor, no_sleep

# ---------------------------------------------------------------------------
# Value-object fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def city() -> City:
    return City("Lisbon", "Portugal")


@pytest.fixture
def categories() -> tuple[Category, ...]:
    """The five default categories: rent, groceries, transport, utilities, internet."""
    return DEFAULT_CATEGORIES


@pytest.fixture
def rent(categories: tuple[Category, ...]) -> Category:
    return categories[0]


@pytest.fixture
def goals() -> Goals:
    return Goals(min_acceptable_confidence=50, confidence_target=75, completeness_target=0.8)


# ---------------------------------------------------------------------------
# Entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory() -> AgentMemory:
    return AgentMemory()


@pytest.fixture
def state() -> AgentState:
    return AgentState(max_iterations=3)


# ---------------------------------------------------------------------------
# Agent fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_config() -> AppConfig:
    """Default configuration with every pacing delay set to zero."""
    return dataclasses.replace(
        AppConfig(),
        agent=AgentConfig(request_delay_seconds=0.0, reasoning_delay_seconds=0.0),
        stagger_seconds=0.0,
    )


@pytest.fixture
def make_agent(
    fast_config: AppConfig,
) -> Callable[..., CityAgentLoop]:
    """Factory building a loop over fakes; override any collaborator by keyword."""

    def _make(
        search_client: BaseSearchClient | None = None,
        extractor: BaseCostExtractor | None = None,
        cache: BasePerceptionCache | None = None,
        config: AppConfig | None = None,
    ) -> CityAgentLoop:
        return AgentFactory.create_city_agent(
            config or fast_config,
            search_client or FakeSearchClient(),
            extractor or ScriptedExtractor(),
            cache=cache,
            sleep=no_sleep,
        )

    return _make
