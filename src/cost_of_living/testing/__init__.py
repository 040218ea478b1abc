"""Testing utilities: mock chat model and deterministic collaborator fakes."""

from cost_of_living.testing.fakes import (
    FakeSearchClient,
    InMemoryCache,
    ScriptedExtractor,
    no_sleep,
    sample_serp,
)
from cost_of_living.testing.mock_llm import MockStructuredChatModel

__all__ = [
    "FakeSearchClient",
    "InMemoryCache",
    "MockStructuredChatModel",
    "ScriptedExtractor",
    "no_sleep",
    "sample_serp",
]
