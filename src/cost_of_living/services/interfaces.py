"""Abstract collaborators consumed by the agent stages.

Concrete implementations live in :mod:`cost_of_living.infrastructure`
(Bright Data search, on-disk cache) and :mod:`cost_of_living.testing`
(deterministic fakes).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from cost_of_living.domain.values import PerceptionBundle


class BaseSearchClient(ABC):
    """Web-search retrieval collaborator.

    ``search`` returns a mapping shaped like::

        {"organic": [{"title", "description", "link", "source"}, ...],
         "knowledge": {"description": ..., "facts": [{"key", "value"}]}}

    where ``knowledge`` may be absent.  Failures raise; the caller treats
    them as per-query, never fatal.
    """

    @abstractmethod
    async def search(self, query: str, limit: int) -> Mapping[str, Any]:
        """Run one query and return at most *limit* organic results."""


class BasePerceptionCache(ABC):
    """Time-bounded store of perception bundles keyed by city and country."""

    @abstractmethod
    def has(self, key: str, max_age_days: float) -> bool:
        """Return ``True`` if a fresh-enough entry exists for *key*."""

    @abstractmethod
    def load(self, key: str) -> PerceptionBundle | None:
        """Return the stored bundle, or ``None`` if it cannot be read."""

    @abstractmethod
    def save(self, key: str, bundle: PerceptionBundle, max_age_days: float) -> bool:
        """Store *bundle*; return ``False`` instead of raising on failure."""
