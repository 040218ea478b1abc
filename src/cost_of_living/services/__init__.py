"""Service layer for the cost-of-living agent.

Re-exports public service types for convenient top-level access::

    from cost_of_living.services import (
        StrategyCatalog, StrategySelector, DEFAULT_CATALOG,
        Perceiver, Reasoner, Reflector,
        LLMCostExtractor, LLMSummaryWriter,
        CityAgentLoop, AgentRunResult, analyze_cities,
    )
"""

from cost_of_living.services.extraction import (
    BaseCostExtractor,
    BaseSummaryWriter,
    CostExtractionOutput,
    InternetExtractionOutput,
    LLMCostExtractor,
    LLMSummaryWriter,
    SummaryOutput,
    TemplateSummaryWriter,
    fallback_summary,
)
from cost_of_living.services.interfaces import BasePerceptionCache, BaseSearchClient
from cost_of_living.services.loop import AgentRunResult, CityAgentLoop
from cost_of_living.services.orchestration import MultiCityResult, analyze_cities
from cost_of_living.services.perception import Perceiver, build_query
from cost_of_living.services.quality import build_evidence, score_evidence
from cost_of_living.services.reasoning import Reasoner, degraded_analysis
from cost_of_living.services.reflection import Reflector, derive_adaptations, evaluate_goals
from cost_of_living.services.scoring import (
    ppp_adjusted_costs,
    ppp_factor,
    remote_work_score,
    scale_confidence,
)
from cost_of_living.services.strategies import (
    DEFAULT_CATALOG,
    StrategyCatalog,
    StrategySelector,
)

__all__ = [
    # strategies
    "DEFAULT_CATALOG",
    "StrategyCatalog",
    "StrategySelector",
    # quality / scoring
    "build_evidence",
    "score_evidence",
    "ppp_factor",
    "ppp_adjusted_costs",
    "remote_work_score",
    "scale_confidence",
    # collaborators
    "BaseSearchClient",
    "BasePerceptionCache",
    "BaseCostExtractor",
    "LLMCostExtractor",
    "CostExtractionOutput",
    "InternetExtractionOutput",
    "SummaryOutput",
    "BaseSummaryWriter",
    "LLMSummaryWriter",
    "TemplateSummaryWriter",
    "fallback_summary",
    # stages
    "Perceiver",
    "build_query",
    "Reasoner",
    "degraded_analysis",
    "Reflector",
    "evaluate_goals",
    "derive_adaptations",
    # loop
    "CityAgentLoop",
    "AgentRunResult",
    "MultiCityResult",
    "analyze_cities",
]
