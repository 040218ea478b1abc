"""Tests for the on-disk perception cache."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from cost_of_living.domain.exceptions import CacheError
from cost_of_living.domain.values import (
    CategoryPerception,
    Evidence,
    KnowledgePanel,
    OrganicResult,
    PerceptionBundle,
)
from cost_of_living.infrastructure.cache import CACHE_VERSION, FileCache

KEY = "lisbon_portugal"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock(NOW)


@pytest.fixture
def cache(tmp_path: Path, clock: _Clock) -> FileCache:
    return FileCache(tmp_path / "cache", clock=clock)


@pytest.fixture
def bundle() -> PerceptionBundle:
    evidence = Evidence(
        organic=(OrganicResult("Rent in Lisbon", "900 EUR", "https://numbeo.com/x", "numbeo.com"),),
        knowledge=KnowledgePanel("Lisbon", (("Population", "545,000"),)),
    )
    return PerceptionBundle(
        city="Lisbon",
        country="Portugal",
        categories={
            "rent_1br": CategoryPerception(
                category="rent_1br",
                evidence=evidence,
                quality_score=45,
                strategy_used="multi_source",
                confidence_modifier=1.1,
                query="rent Lisbon",
            )
        },
        categories_searched=5,
        timestamp=1_700_000_000.0,
    )


class TestFileCache:
    def test_miss_when_nothing_stored(self, cache: FileCache) -> None:
        assert not cache.has(KEY, 7)
        assert cache.load(KEY) is None

    def test_save_then_load(self, cache: FileCache, bundle: PerceptionBundle) -> None:
        assert cache.save(KEY, bundle, 7)
        assert cache.path_for(KEY).name == "lisbon_portugal_cache.json"
        assert cache.has(KEY, 7)
        assert cache.load(KEY) == bundle

    def test_file_layout(self, cache: FileCache, bundle: PerceptionBundle) -> None:
        cache.save(KEY, bundle, 7)
        data = json.loads(cache.path_for(KEY).read_text(encoding="utf-8"))

        assert data["timestamp"] == NOW.isoformat()
        assert data["city"] == "Lisbon"
        assert data["country"] == "Portugal"
        assert data["metadata"] == {"cache_version": CACHE_VERSION, "expiry_days": 7}
        assert data["perception"]["categories"]["rent_1br"]["strategy_used"] == "multi_source"

    def test_expiry(self, cache: FileCache, bundle: PerceptionBundle, clock: _Clock) -> None:
        cache.save(KEY, bundle, 7)

        clock.now = NOW + timedelta(days=6, hours=23)
        assert cache.has(KEY, 7)
        clock.now = NOW + timedelta(days=7, minutes=1)
        assert not cache.has(KEY, 7)
        assert cache.has(KEY, 8)

    def test_naive_timestamp_treated_as_utc(self, cache: FileCache) -> None:
        cache.cache_dir.mkdir(parents=True)
        cache.path_for(KEY).write_text(
            json.dumps({"timestamp": "2026-03-01T10:00:00", "perception": {}}), encoding="utf-8"
        )
        assert cache.has(KEY, 1)

    def test_corrupt_entry_is_a_miss(self, cache: FileCache) -> None:
        cache.cache_dir.mkdir(parents=True)
        cache.path_for(KEY).write_text("{not json", encoding="utf-8")
        assert not cache.has(KEY, 7)
        assert cache.load(KEY) is None

    def test_entry_without_timestamp(self, cache: FileCache) -> None:
        cache.cache_dir.mkdir(parents=True)
        cache.path_for(KEY).write_text(json.dumps({"perception": {}}), encoding="utf-8")
        assert not cache.has(KEY, 7)

    def test_malformed_perception(self, cache: FileCache) -> None:
        cache.cache_dir.mkdir(parents=True)
        cache.path_for(KEY).write_text(
            json.dumps({"timestamp": NOW.isoformat(), "perception": {"country": "Portugal"}}),
            encoding="utf-8",
        )
        assert cache.load(KEY) is None

    def test_unwritable_directory(self, tmp_path: Path, bundle: PerceptionBundle) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        cache = FileCache(blocker)

        with pytest.raises(CacheError) as info:
            cache.write(KEY, bundle, 7)
        assert info.value.key == KEY
        assert cache.save(KEY, bundle, 7) is False
