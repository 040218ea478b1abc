"""Domain layer for the cost-of-living agent.

Re-exports all public domain types so that consumers can write::

    from cost_of_living.domain import AgentMemory, Strategy, CityAnalysis
"""

# -- Enumerations -------------------------------------------------------------
from .enums import Adaptation, DataSource, ErrorPhase, LoopPhase, StopReason

# -- Value Objects ------------------------------------------------------------
from .values import (
    AgentError,
    Category,
    CategoryPerception,
    City,
    CityAnalysis,
    CostCategoryResult,
    Evidence,
    GoalEvaluation,
    Goals,
    KnowledgePanel,
    OrganicResult,
    PerceptionBundle,
    PPPAnalysis,
    ReflectionDecision,
    Strategy,
    StrategyAttempt,
)

# -- Entities -----------------------------------------------------------------
from .entities import AgentMemory, AgentState

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    CacheError,
    ConfigurationError,
    CostOfLivingError,
    ExtractionError,
    RetrievalError,
)

__all__ = [
    # Enums
    "Adaptation",
    "DataSource",
    "ErrorPhase",
    "LoopPhase",
    "StopReason",
    # Values
    "AgentError",
    "Category",
    "CategoryPerception",
    "City",
    "CityAnalysis",
    "CostCategoryResult",
    "Evidence",
    "GoalEvaluation",
    "Goals",
    "KnowledgePanel",
    "OrganicResult",
    "PerceptionBundle",
    "PPPAnalysis",
    "ReflectionDecision",
    "Strategy",
    "StrategyAttempt",
    # Entities
    "AgentMemory",
    "AgentState",
    # Exceptions
    "CacheError",
    "ConfigurationError",
    "CostOfLivingError",
    "ExtractionError",
    "RetrievalError",
]
