"""Configuration dataclasses for the cost-of-living agent.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations, plus ``to_dict()`` / ``from_dict()``
helpers.  ``load_config()`` layers a YAML or JSON file and environment
variables over the built-in defaults.

Configs are **frozen** (``frozen=True``): one instance is shared read-only
by every city agent of a run.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from cost_of_living.domain.exceptions import ConfigurationError
from cost_of_living.domain.values import Category, City, Goals


def _filtered(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    valid_keys = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_keys}


# ===================================================================== #
#  Agent Configuration                                                   #
# ===================================================================== #


@dataclass(frozen=True)
class AgentConfig:
    """Parameters governing one city agent's perceive-reason-reflect loop.

    Attributes
    ----------
    max_iterations:
        Hard upper limit on passes per city.
    min_acceptable_confidence:
        Below this average confidence a retry is considered pointless.
    confidence_target:
        Average confidence at which the confidence goal is met.
    completeness_target:
        Fraction of categories that must yield evidence.
    low_confidence_threshold:
        Per-category confidence below which reflection asks for adaptations.
    success_confidence_threshold:
        Scaled confidence at which a strategy counts as successful.
    request_delay_seconds:
        Pause after each retrieval call.
    reasoning_delay_seconds:
        Pause after each extraction call.
    """

    max_iterations: int = 3
    min_acceptable_confidence: float = 50.0
    confidence_target: float = 75.0
    completeness_target: float = 0.8
    low_confidence_threshold: float = 60.0
    success_confidence_threshold: float = 60.0
    request_delay_seconds: float = 2.0
    reasoning_delay_seconds: float = 0.5

    def validate(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        for name in (
            "min_acceptable_confidence",
            "confidence_target",
            "low_confidence_threshold",
            "success_confidence_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be in [0, 100], got {value}")
        if self.min_acceptable_confidence > self.confidence_target:
            raise ValueError(
                "min_acceptable_confidence must not exceed confidence_target"
            )
        if not 0.0 <= self.completeness_target <= 1.0:
            raise ValueError(
                f"completeness_target must be in [0, 1], got {self.completeness_target}"
            )
        if self.request_delay_seconds < 0 or self.reasoning_delay_seconds < 0:
            raise ValueError("delays must be >= 0")

    @property
    def goals(self) -> Goals:
        return Goals(
            min_acceptable_confidence=self.min_acceptable_confidence,
            confidence_target=self.confidence_target,
            completeness_target=self.completeness_target,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AgentConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Search Configuration                                                  #
# ===================================================================== #


@dataclass(frozen=True)
class SearchConfig:
    """Bright Data SERP proxy settings.

    Attributes
    ----------
    customer_id, zone, password:
        Proxy credentials.  Usually supplied through ``BRIGHT_DATA_*``
        environment variables.
    proxy_host, proxy_port:
        Super-proxy endpoint.
    max_results:
        Organic results requested per query and kept per category.
    timeout_seconds:
        Per-request timeout.
    verify_ssl:
        Whether to verify TLS through the proxy.  The proxy re-signs
        traffic, so this is off by default.
    """

    customer_id: str = ""
    zone: str = ""
    password: str = ""
    proxy_host: str = "brd.superproxy.io"
    proxy_port: int = 33335
    max_results: int = 25
    timeout_seconds: float = 30.0
    verify_ssl: bool = False

    def validate(self) -> None:
        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 0 < self.proxy_port < 65536:
            raise ValueError(f"proxy_port out of range: {self.proxy_port}")

    @property
    def has_credentials(self) -> bool:
        return bool(self.customer_id and self.zone and self.password)

    @property
    def proxy_url(self) -> str:
        return (
            f"http://brd-customer-{self.customer_id}-zone-{self.zone}:{self.password}"
            f"@{self.proxy_host}:{self.proxy_port}"
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Cache Configuration                                                   #
# ===================================================================== #


@dataclass(frozen=True)
class CacheConfig:
    """On-disk perception cache settings."""

    enabled: bool = True
    cache_dir: str = "cache"
    expiry_days: float = 7.0

    def validate(self) -> None:
        if self.expiry_days < 0:
            raise ValueError(f"expiry_days must be >= 0, got {self.expiry_days}")
        if self.enabled and not self.cache_dir:
            raise ValueError("cache_dir must not be empty when the cache is enabled")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CacheConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Scoring Configuration                                                 #
# ===================================================================== #

DEFAULT_PPP: dict[str, float] = {
    "Germany": 0.721158,
    "Portugal": 0.547768,
    "Thailand": 12.5736324625,
    "Indonesia": 4743.33744682,
    "United States": 1.0,
}


@dataclass(frozen=True)
class ScoringConfig:
    """Remote-work weights and the PPP factor table (2019 values)."""

    remote_work_weights: dict[str, float] = field(
        default_factory=lambda: {"cost_of_living": 0.70, "internet_quality": 0.30}
    )
    ppp: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PPP))

    def validate(self) -> None:
        for name, weight in self.remote_work_weights.items():
            if weight < 0:
                raise ValueError(f"remote_work_weights[{name!r}] must be >= 0, got {weight}")
        for country, factor in self.ppp.items():
            if factor <= 0:
                raise ValueError(f"ppp[{country!r}] must be positive, got {factor}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScoringConfig:
        kwargs = _filtered(cls, data)
        if "remote_work_weights" in kwargs:
            kwargs["remote_work_weights"] = {
                str(k): float(v) for k, v in kwargs["remote_work_weights"].items()
            }
        if "ppp" in kwargs:
            kwargs["ppp"] = {str(k): float(v) for k, v in kwargs["ppp"].items()}
        cfg = cls(**kwargs)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Model Configuration                                                   #
# ===================================================================== #

_VALID_PROVIDERS = frozenset({"openai", "anthropic"})


@dataclass(frozen=True)
class ModelConfig:
    """Chat model used for cost extraction and summaries."""

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    timeout_seconds: float = 60.0
    max_retries: int = 2

    def validate(self) -> None:
        if self.provider not in _VALID_PROVIDERS:
            raise ValueError(
                f"provider must be one of {sorted(_VALID_PROVIDERS)}, got '{self.provider}'"
            )
        if not self.model:
            raise ValueError("model must not be empty")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be in [0, 2], got {self.temperature}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Application Configuration                                             #
# ===================================================================== #

DEFAULT_CITIES: tuple[City, ...] = (
    City("Lisbon", "Portugal"),
    City("Austin", "United States"),
    City("Bali", "Indonesia"),
    City("Berlin", "Germany"),
    City("Bangkok", "Thailand"),
)

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(
        name="rent_1br",
        display_name="1BR Apartment Rent",
        query_template=(
            "average rent 1 bedroom apartment {city} "
            "site:numbeo.com OR site:expatistan.com"
        ),
    ),
    Category(
        name="groceries",
        display_name="Monthly Groceries",
        query_template="average monthly grocery cost {city} site:numbeo.com OR site:expatistan.com",
    ),
    Category(
        name="transportation",
        display_name="Public Transportation Monthly Pass",
        query_template=(
            "public transportation monthly pass cost {city} "
            "site:numbeo.com OR site:expatistan.com"
        ),
    ),
    Category(
        name="utilities",
        display_name="Monthly Utilities",
        query_template=(
            "monthly utilities electricity water gas cost {city} "
            "site:numbeo.com OR site:expatistan.com"
        ),
    ),
    Category(
        name="internet",
        display_name="Internet Speed & Cost",
        query_template=(
            "average internet speed cost fiber broadband {city} "
            "site:numbeo.com OR site:expatistan.com OR site:speedtest.net"
        ),
    ),
)


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration for a multi-city run.

    Attributes
    ----------
    stagger_seconds:
        Offset between city agent starts.  ``None`` reuses the agent's
        request delay.
    """

    agent: AgentConfig = field(default_factory=AgentConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    cities: tuple[City, ...] = DEFAULT_CITIES
    categories: tuple[Category, ...] = DEFAULT_CATEGORIES
    monthly_budget_usd: float = 2000.0
    data_dir: str = "data"
    stagger_seconds: float | None = None

    def validate(self) -> None:
        self.agent.validate()
        self.search.validate()
        self.cache.validate()
        self.scoring.validate()
        self.model.validate()
        if not self.categories:
            raise ValueError("at least one cost category is required")
        names = [c.name for c in self.categories]
        if len(set(names)) != len(names):
            raise ValueError(f"category names must be unique, got {names}")
        if self.monthly_budget_usd <= 0:
            raise ValueError(
                f"monthly_budget_usd must be positive, got {self.monthly_budget_usd}"
            )
        if self.stagger_seconds is not None and self.stagger_seconds < 0:
            raise ValueError(f"stagger_seconds must be >= 0, got {self.stagger_seconds}")

    @property
    def effective_stagger(self) -> float:
        if self.stagger_seconds is None:
            return self.agent.request_delay_seconds
        return self.stagger_seconds

    def find_city(self, name: str) -> City | None:
        wanted = name.strip().lower()
        for city in self.cities:
            if city.name.lower() == wanted:
                return city
        return None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["cities"] = [asdict(c) for c in self.cities]
        data["categories"] = [asdict(c) for c in self.categories]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConfig:
        kwargs: dict[str, Any] = {}
        sections: dict[str, Any] = {
            "agent": AgentConfig,
            "search": SearchConfig,
            "cache": CacheConfig,
            "scoring": ScoringConfig,
            "model": ModelConfig,
        }
        for section, section_cls in sections.items():
            if isinstance(data.get(section), Mapping):
                kwargs[section] = section_cls.from_dict(data[section])
        if "cities" in data:
            kwargs["cities"] = tuple(
                City(name=str(c["name"]), country=str(c["country"])) for c in data["cities"]
            )
        if "categories" in data:
            kwargs["categories"] = tuple(
                Category(
                    name=str(c["name"]),
                    display_name=str(c.get("display_name") or c["name"]),
                    query_template=str(c.get("query_template", "")),
                )
                for c in data["categories"]
            )
        for key in ("monthly_budget_usd", "data_dir", "stagger_seconds"):
            if key in data:
                kwargs[key] = data[key]
        cfg = cls(**kwargs)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Loader                                                                #
# ===================================================================== #

ENV_PREFIX = "COST_OF_LIVING_"


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file: {exc}", path=str(path)) from exc
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot parse config file: {exc}", path=str(path)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Top-level config must be a mapping", path=str(path))
    return data


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}

    # Search credentials
    for env_key, cfg_key in (
        ("BRIGHT_DATA_CUSTOMER_ID", "customer_id"),
        ("BRIGHT_DATA_ZONE", "zone"),
        ("BRIGHT_DATA_PASSWORD", "password"),
    ):
        value = env.get(env_key)
        if value:
            data.setdefault("search", {})[cfg_key] = value

    cache_dir = env.get(f"{ENV_PREFIX}CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["cache_dir"] = cache_dir

    data_dir = env.get(f"{ENV_PREFIX}DATA_DIR")
    if data_dir:
        data["data_dir"] = data_dir

    model = env.get(f"{ENV_PREFIX}MODEL")
    if model:
        data.setdefault("model", {})["model"] = model

    provider = env.get(f"{ENV_PREFIX}PROVIDER")
    if provider:
        data.setdefault("model", {})["provider"] = provider

    budget = env.get(f"{ENV_PREFIX}BUDGET")
    if budget:
        try:
            data["monthly_budget_usd"] = float(budget)
        except ValueError as exc:
            raise ConfigurationError(
                f"{ENV_PREFIX}BUDGET must be a number, got {budget!r}"
            ) from exc

    return data


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build an :class:`AppConfig` from defaults, an optional file and env.

    Parameters
    ----------
    path:
        YAML (``.yaml``/``.yml``) or JSON (``.json``) file whose sections
        are deep-merged over the defaults.  Lists such as ``cities`` replace
        the default list.
    env:
        Environment mapping; defaults to ``os.environ``.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed.
    ValueError
        If the merged configuration fails validation.
    """
    data = AppConfig().to_dict()
    if path is not None:
        data = _deep_merge(data, _read_config_file(Path(path)))
    data = _deep_merge(data, _env_overrides(os.environ if env is None else env))
    return AppConfig.from_dict(data)
