"""Multi-city orchestration.

One independent task per city, started with a staggered offset so the
shared retrieval service is not hit by every city at once.  A city whose
task raises is logged and dropped; the others are unaffected.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from cost_of_living.domain.values import City
from cost_of_living.services.loop import AgentRunResult, CityAgentLoop

logger = logging.getLogger(__name__)


@dataclass
class MultiCityResult:
    """Results of one multi-city run.

    Attributes
    ----------
    results:
        Completed runs, in the order the cities were given.
    failures:
        City name to error message for cities whose task raised.
    elapsed_seconds:
        Wall-clock duration of the whole run.
    """

    results: list[AgentRunResult] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return bool(self.results)


async def analyze_cities(
    loop: CityAgentLoop,
    cities: Sequence[City],
    stagger_seconds: float = 2.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> MultiCityResult:
    """Run *loop* for every city concurrently and collect what completes."""
    start = time.time()

    async def _run_one(index: int, city: City) -> AgentRunResult | BaseException:
        if index and stagger_seconds > 0:
            await sleep(index * stagger_seconds)
        try:
            return await loop.run(city)
        except Exception as exc:
            logger.exception("Agent for %s failed", city)
            return exc

    outcomes = await asyncio.gather(*(_run_one(i, c) for i, c in enumerate(cities)))

    summary = MultiCityResult()
    for city, outcome in zip(cities, outcomes):
        if isinstance(outcome, AgentRunResult):
            summary.results.append(outcome)
        else:
            summary.failures[city.name] = str(outcome)
    summary.elapsed_seconds = time.time() - start
    logger.info(
        "Analysed %d/%d cities in %.1fs",
        len(summary.results),
        len(cities),
        summary.elapsed_seconds,
    )
    return summary
