"""LLM provider adapters."""

from storyboard_engine.adapters.llm.anthropic import AnthropicProvider
from storyboard_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from storyboard_engine.adapters.llm.openai import OpenAIProvider
from storyboard_engine.adapters.llm.stub import StubLLMProvider
from storyboard_engine.config import settings
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)


def get_llm_provider() -> LLMProvider:
    """Get the configured LLM provider, falling back on whichever key is set."""
    provider_name = settings.llm_provider.lower()

    if provider_name == "stub":
        return StubLLMProvider()
    if provider_name == "anthropic" and settings.anthropic_api_key:
        return AnthropicProvider()
    if provider_name == "openai" and settings.openai_api_key:
        return OpenAIProvider()

    if settings.openai_api_key:
        return OpenAIProvider()
    if settings.anthropic_api_key:
        return AnthropicProvider()

    logger.warning("No LLM API keys configured, using stub provider")
    return StubLLMProvider()


__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "AnthropicProvider",
    "OpenAIProvider",
    "StubLLMProvider",
    "get_llm_provider",
]
