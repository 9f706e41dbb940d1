"""Anthropic LLM provider implementation."""

from typing import Any

import httpx

from storyboard_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from storyboard_engine.config import settings
from storyboard_engine.domain.errors import ProviderError
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(LLMProvider):
    """Anthropic API provider for Claude models."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.anthropic.com/v1",
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.anthropic_model
        self.base_url = base_url
        self.timeout = timeout or settings.llm_timeout_seconds

        if not self.api_key:
            logger.warning("Anthropic API key not configured")

    @property
    def name(self) -> str:
        return f"anthropic:{self.model}"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion using Anthropic API."""
        if not self.api_key:
            raise ProviderError("Anthropic API key not configured", provider=self.name)

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

        # Anthropic takes the system prompt outside the conversation
        system_parts = []
        conversation_messages = []

        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                conversation_messages.append({"role": msg.role, "content": msg.content})

        system_message = "\n\n".join(system_parts)
        if json_mode:
            json_instruction = "\n\nIMPORTANT: You must respond with valid JSON only. No other text."
            system_message = system_message + json_instruction if system_message else json_instruction

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": conversation_messages,
            "max_tokens": max_tokens,
            "temperature": min(temperature, 1.0),
        }

        if system_message:
            payload["system"] = system_message

        logger.debug(
            "anthropic_request",
            model=self.model,
            message_count=len(conversation_messages),
            json_mode=json_mode,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers=headers,
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "anthropic_request_failed",
                status_code=e.response.status_code,
                error=e.response.text[:500],
            )
            raise ProviderError(
                f"Anthropic API error {e.response.status_code}", provider=self.name
            ) from e
        except httpx.HTTPError as e:
            logger.error("anthropic_transport_error", error=str(e))
            raise ProviderError(f"Anthropic transport error: {e}", provider=self.name) from e

        content = ""
        for block in data.get("content") or []:
            if block.get("type") == "text":
                content += block.get("text", "")

        usage = data.get("usage", {})

        logger.info(
            "anthropic_response",
            model=self.model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            stop_reason=data.get("stop_reason"),
        )

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("input_tokens", 0),
                "completion_tokens": usage.get("output_tokens", 0),
                "total_tokens": usage.get("input_tokens", 0) + usage.get("output_tokens", 0),
            },
            raw_response=data,
            finish_reason=data.get("stop_reason"),
        )

    async def health_check(self) -> bool:
        """Check credentials with a one-token request."""
        if not self.api_key:
            return False

        try:
            headers = {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            }
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers=headers,
                    json={
                        "model": self.model,
                        "messages": [{"role": "user", "content": "hi"}],
                        "max_tokens": 1,
                    },
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("anthropic_health_check_failed", error=str(e))
            return False
