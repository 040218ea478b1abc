"""Infrastructure layer for the cost-of-living agent.

Re-exports the public API surface for convenience::

    from cost_of_living.infrastructure import (
        AppConfig, load_config,
        BrightDataSearchClient, FileCache, create_chat_model,
    )
"""

from cost_of_living.infrastructure.cache import FileCache
from cost_of_living.infrastructure.config import (
    AgentConfig,
    AppConfig,
    CacheConfig,
    ModelConfig,
    ScoringConfig,
    SearchConfig,
    load_config,
)
from cost_of_living.infrastructure.llm import create_chat_model
from cost_of_living.infrastructure.search import BrightDataSearchClient, normalize_serp

__all__ = [
    "AgentConfig",
    "AppConfig",
    "CacheConfig",
    "ModelConfig",
    "ScoringConfig",
    "SearchConfig",
    "load_config",
    "FileCache",
    "BrightDataSearchClient",
    "normalize_serp",
    "create_chat_model",
]
