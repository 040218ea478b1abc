"""Cost-of-living agent.

Adaptive multi-city agent that gathers web evidence for living costs,
extracts structured figures with an LLM and retries with alternative
search strategies until its confidence and completeness goals are met.
"""

__version__ = "0.1.0"

from cost_of_living.domain.values import City, CityAnalysis
from cost_of_living.factory import AgentFactory
from cost_of_living.infrastructure.config import AppConfig, load_config
from cost_of_living.services.loop import AgentRunResult, CityAgentLoop
from cost_of_living.services.orchestration import analyze_cities

__all__ = [
    "AgentFactory",
    "AgentRunResult",
    "AppConfig",
    "City",
    "CityAgentLoop",
    "CityAnalysis",
    "analyze_cities",
    "load_config",
]
