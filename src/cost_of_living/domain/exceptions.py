"""Domain exceptions for the cost-of-living agent.

All domain-specific exceptions inherit from ``CostOfLivingError`` so
callers can catch the full family with a single ``except`` clause when needed.
"""

from __future__ import annotations

from typing import Any


class CostOfLivingError(Exception):
    """Base exception for all cost-of-living agent errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class RetrievalError(CostOfLivingError):
    """Raised when the web-search collaborator fails for a single query.

    Covers transport failures, non-2xx responses and payloads that are not
    the expected JSON (e.g. an HTML page returned by a misconfigured proxy).
    """

    def __init__(
        self,
        message: str = "Search request failed",
        query: str = "",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.query = query
        self.status_code = status_code


class ExtractionError(CostOfLivingError):
    """Raised when structured cost extraction fails for one category."""

    def __init__(
        self,
        message: str = "Cost extraction failed",
        category: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.category = category


class CacheError(CostOfLivingError):
    """Raised when a cache entry cannot be written."""

    def __init__(
        self,
        message: str = "Cache write failed",
        key: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.key = key


class ConfigurationError(CostOfLivingError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        path: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
