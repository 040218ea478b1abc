"""Domain enumerations for the cost-of-living agent.

These enums capture the fixed vocabularies used across the domain layer:
retry adaptations, loop phases, stop reasons, error phases and the
provenance of perception data.
"""

from enum import Enum


class Adaptation(Enum):
    """Tags that alter query construction or memory scope on a retry pass."""

    EXPAND_SEARCH_TERMS = "expand_search_terms"
    ALTERNATIVE_CATEGORY_APPROACH = "alternative_category_approach"
    TRY_LOCAL_SOURCES = "try_local_sources"


class LoopPhase(Enum):
    """Finite-state-machine states for a city agent."""

    RUNNING = "running"
    DONE = "done"


class StopReason(Enum):
    """Reason a city agent loop terminated."""

    GOALS_MET = "goals_met"
    RETRY_NOT_WARRANTED = "retry_not_warranted"
    MAX_ITERATIONS = "max_iterations"


class ErrorPhase(Enum):
    """Where an agent-level error was recorded."""

    PERCEPTION = "perception"
    REASONING = "reasoning"
    AGENT_LOOP = "agent_loop"
    CACHE = "cache"


class DataSource(Enum):
    """Origin of a perception bundle."""

    FRESH_SEARCH = "fresh_search"
    CACHED = "cached"
