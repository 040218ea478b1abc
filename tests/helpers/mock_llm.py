"""Mock LLM for tests, re-exported from ``cost_of_living.testing``."""

from cost_of_living.testing.mock_llm import MockStructuredChatModel

__all__ = ["MockStructuredChatModel"]
