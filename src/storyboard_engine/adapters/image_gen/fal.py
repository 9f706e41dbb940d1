"""fal.ai image generation provider."""

import os
from typing import Any

from storyboard_engine.adapters.image_gen.base import ImageGenProvider
from storyboard_engine.config import settings
from storyboard_engine.domain.errors import ProviderError
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)


class FalImageGenProvider(ImageGenProvider):
    """Hosted image models via fal.ai.

    Uses the fal-client SDK with subscribe_async(), which queues the request
    and polls until the result is ready.
    """

    def __init__(self, api_key: str | None = None) -> None:
        self.api_key = api_key or settings.fal_api_key
        if self.api_key:
            os.environ["FAL_KEY"] = self.api_key

        if not self.api_key and not os.environ.get("FAL_KEY"):
            logger.warning("FAL_KEY not configured for image provider")

    @property
    def name(self) -> str:
        return "fal"

    async def run(self, model_id: str, arguments: dict[str, Any]) -> Any:
        """Submit one generation and wait for its result."""
        if not self.api_key and not os.environ.get("FAL_KEY"):
            raise ProviderError("FAL_KEY not configured", provider=self.name)

        import fal_client

        logger.info(
            "fal_generation_started",
            model=model_id,
            prompt_length=len(arguments.get("prompt", "")),
            reference_count=len(arguments.get("image_urls", [])),
        )

        try:
            result = await fal_client.subscribe_async(model_id, arguments=arguments)
        except Exception as e:
            logger.error("fal_generation_error", model=model_id, error=str(e))
            raise ProviderError(f"fal.ai generation failed: {e}", provider=self.name) from e

        logger.info(
            "fal_generation_completed",
            model=model_id,
            result_keys=list(result.keys()) if isinstance(result, dict) else None,
        )
        return result

    async def health_check(self) -> bool:
        """Check if FAL_KEY is configured."""
        return bool(self.api_key or os.environ.get("FAL_KEY"))
