"""Evidence-gathering strategies and the per-category strategy selector.

Implements the Strategy pattern as data: the catalog is a closed,
read-only mapping of :class:`Strategy` descriptors, each carrying its own
query template and confidence weighting.

Classes
-------
StrategyCatalog
    Immutable catalog with a designated fallback and a retry priority order.
StrategySelector
    Picks the next strategy for a category from an agent's memory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from types import MappingProxyType

from cost_of_living.domain.entities import AgentMemory
from cost_of_living.domain.values import Category, Strategy

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Built-in strategies                                                   #
# ===================================================================== #

NUMBEO_FOCUSED = Strategy(
    name="numbeo_focused",
    description="Focus on Numbeo.com data",
    confidence_modifier=1.0,
    query_template="{display_name} cost {city} {country} site:numbeo.com",
    sites=("numbeo.com",),
)

EXPATISTAN_FOCUSED = Strategy(
    name="expatistan_focused",
    description="Focus on Expatistan.com data",
    confidence_modifier=0.9,
    query_template="{display_name} price {city} {country} site:expatistan.com",
    sites=("expatistan.com",),
)

REDDIT_LOCAL = Strategy(
    name="reddit_local",
    description="Local Reddit discussions",
    confidence_modifier=0.8,
    query_template="{city} cost of living {category} site:reddit.com",
    sites=("reddit.com",),
)

MULTI_SOURCE = Strategy(
    name="multi_source",
    description="Multiple reliable sources",
    confidence_modifier=1.1,
    query_template=(
        "{display_name} cost {city} {country} "
        "site:numbeo.com OR site:expatistan.com OR site:livingcost.org"
    ),
    sites=("numbeo.com", "expatistan.com", "livingcost.org"),
)

GOVERNMENT_STATS = Strategy(
    name="government_stats",
    description="Official government statistics",
    confidence_modifier=1.2,
    query_template="{country} official statistics cost living {category} government data",
    sites=("gov", "statistics"),
)

EXPAT_FORUMS = Strategy(
    name="expat_forums",
    description="Expat community forums",
    confidence_modifier=0.7,
    query_template="expat {city} living costs {category} forum community",
    sites=("expat", "forum"),
)


# ===================================================================== #
#  Catalog                                                               #
# ===================================================================== #


class StrategyCatalog:
    """Read-only, ordered set of strategies.

    Parameters
    ----------
    strategies:
        Strategies in catalog order.  Names must be unique.
    fallback:
        Name of the broad strategy returned when nothing else is eligible
        and used for the first attempt at every category.
    priority:
        Names tried in order on retry iterations.
    """

    def __init__(
        self,
        strategies: Sequence[Strategy],
        fallback: str,
        priority: Sequence[str] = (),
    ) -> None:
        by_name = {s.name: s for s in strategies}
        if len(by_name) != len(strategies):
            raise ValueError("strategy names must be unique")
        if fallback not in by_name:
            raise ValueError(f"fallback strategy '{fallback}' is not in the catalog")
        unknown = [name for name in priority if name not in by_name]
        if unknown:
            raise ValueError(f"priority names not in the catalog: {unknown}")

        self._strategies = MappingProxyType(by_name)
        self._fallback = by_name[fallback]
        self._priority = tuple(by_name[name] for name in priority)

    @property
    def fallback(self) -> Strategy:
        return self._fallback

    @property
    def priority(self) -> tuple[Strategy, ...]:
        return self._priority

    def get(self, name: str) -> Strategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise KeyError(f"unknown strategy '{name}'") from None

    def names(self) -> list[str]:
        return list(self._strategies)

    def __iter__(self) -> Iterator[Strategy]:
        return iter(self._strategies.values())

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies


DEFAULT_CATALOG = StrategyCatalog(
    strategies=(
        NUMBEO_FOCUSED,
        EXPATISTAN_FOCUSED,
        REDDIT_LOCAL,
        MULTI_SOURCE,
        GOVERNMENT_STATS,
        EXPAT_FORUMS,
    ),
    fallback=MULTI_SOURCE.name,
    priority=(
        NUMBEO_FOCUSED.name,
        REDDIT_LOCAL.name,
        GOVERNMENT_STATS.name,
        EXPATISTAN_FOCUSED.name,
        EXPAT_FORUMS.name,
    ),
)


# ===================================================================== #
#  Selector                                                              #
# ===================================================================== #


class StrategySelector:
    """Deterministic strategy choice from an agent's memory.

    Policy, in order:

    1. Eligible strategies are the catalog minus the category's failures.
       If none remain, return the fallback.
    2. Reuse the first eligible strategy (catalog order) that already
       succeeded for the category.
    3. On iteration 0, start broad with the fallback.
    4. Otherwise take the first eligible strategy in priority order, or the
       first eligible one in catalog order.

    A strategy recorded as failed for a category is never returned for it
    again, except the fallback once every strategy has failed.
    """

    def __init__(self, catalog: StrategyCatalog = DEFAULT_CATALOG) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> StrategyCatalog:
        return self._catalog

    def eligible(self, memory: AgentMemory, category: Category) -> list[Strategy]:
        failed = memory.failed_for(category.name)
        return [s for s in self._catalog if s.name not in failed]

    def select(self, memory: AgentMemory, category: Category, iteration: int) -> Strategy:
        eligible = self.eligible(memory, category)
        if not eligible:
            logger.debug(
                "All strategies failed for %s; using fallback %s",
                category.name,
                self._catalog.fallback.name,
            )
            return self._catalog.fallback

        successful = memory.successful_for(category.name)
        for strategy in eligible:
            if strategy.name in successful:
                logger.debug("Reusing successful strategy %s for %s", strategy.name, category.name)
                return strategy

        if iteration == 0 and self._catalog.fallback in eligible:
            return self._catalog.fallback

        for strategy in self._catalog.priority:
            if strategy in eligible:
                return strategy
        return eligible[0]
