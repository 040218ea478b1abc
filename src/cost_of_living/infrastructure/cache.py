"""On-disk JSON cache of perception bundles.

One file per city, ``<cache_dir>/<city_country>_cache.json``::

    {
      "timestamp": "2026-01-01T12:00:00+00:00",
      "city": "Lisbon",
      "country": "Portugal",
      "perception": {...},
      "metadata": {"cache_version": "1.0", "expiry_days": 7}
    }

The cache is best-effort: unreadable or expired entries are misses and a
failed write is reported by a ``False`` return, never an exception.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from cost_of_living.domain.exceptions import CacheError
from cost_of_living.domain.values import PerceptionBundle
from cost_of_living.services.interfaces import BasePerceptionCache

logger = logging.getLogger(__name__)

CACHE_VERSION = "1.0"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileCache(BasePerceptionCache):
    """Perception cache backed by one JSON file per city key.

    Parameters
    ----------
    cache_dir:
        Directory holding the cache files; created on first write.
    clock:
        Returns the current aware ``datetime``; injectable for tests.
    """

    def __init__(
        self,
        cache_dir: str | Path = "cache",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self._clock = clock

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}_cache.json"

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.debug("Unreadable cache entry %s: %s", path, exc)
            return None
        return data if isinstance(data, dict) else None

    def has(self, key: str, max_age_days: float) -> bool:
        data = self._read(key)
        if data is None:
            return False
        try:
            stored_at = datetime.fromisoformat(str(data["timestamp"]))
        except (KeyError, ValueError):
            return False
        if stored_at.tzinfo is None:
            stored_at = stored_at.replace(tzinfo=timezone.utc)
        return self._clock() - stored_at <= timedelta(days=max_age_days)

    def load(self, key: str) -> PerceptionBundle | None:
        data = self._read(key)
        if data is None or not isinstance(data.get("perception"), dict):
            return None
        try:
            return PerceptionBundle.from_dict(data["perception"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed cache entry for %s: %s", key, exc)
            return None

    def write(self, key: str, bundle: PerceptionBundle, max_age_days: float) -> Path:
        """Write *bundle* to disk; raises :class:`CacheError` on failure."""
        path = self.path_for(key)
        payload = {
            "timestamp": self._clock().isoformat(),
            "city": bundle.city,
            "country": bundle.country,
            "perception": bundle.to_dict(),
            "metadata": {"cache_version": CACHE_VERSION, "expiry_days": max_age_days},
        }
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as exc:
            raise CacheError(f"Could not write {path}: {exc}", key=key) from exc
        return path

    def save(self, key: str, bundle: PerceptionBundle, max_age_days: float) -> bool:
        try:
            path = self.write(key, bundle, max_age_days)
        except CacheError as exc:
            logger.warning("%s", exc)
            return False
        logger.debug("Cached perception for %s at %s", key, path)
        return True
