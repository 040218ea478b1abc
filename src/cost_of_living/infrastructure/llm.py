"""Chat-model factory.

Builds the LangChain chat model named by a :class:`ModelConfig`.
Provider packages are imported on demand so that only the selected one
has to be importable at runtime.
"""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel

from cost_of_living.domain.exceptions import ConfigurationError
from cost_of_living.infrastructure.config import ModelConfig

logger = logging.getLogger(__name__)


def create_chat_model(config: ModelConfig) -> BaseChatModel:
    """Return a chat model for ``config.provider``.

    Raises
    ------
    ConfigurationError
        If the provider is not supported.
    """
    logger.debug("Creating %s chat model %s", config.provider, config.model)
    if config.provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model,
            temperature=config.temperature,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )
    if config.provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.model,
            temperature=config.temperature,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )
    raise ConfigurationError(f"Unsupported model provider '{config.provider}'")
