"""Stub image generation provider for testing."""

import asyncio
from typing import Any
from uuid import uuid4

from storyboard_engine.adapters.image_gen.base import ImageGenProvider
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)


class StubImageGenProvider(ImageGenProvider):
    """Returns placeholder images in fal's ``{"images": [{"url"}]}`` shape
    (``{"video": {"url"}}`` for video models).

    Records every call in ``calls`` so tests can inspect the arguments.
    """

    def __init__(self, latency_ms: int = 0) -> None:
        self.latency_ms = latency_ms
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def name(self) -> str:
        return "stub"

    async def run(self, model_id: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((model_id, arguments))
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)

        image_id = uuid4().hex[:8]

        if "video" in model_id:
            logger.info("stub_video_generated", model=model_id, video_id=image_id)
            return {"video": {"url": f"https://placehold.co/720x1280.mp4?text={image_id}"}}

        count = max(1, int(arguments.get("num_images", 1)))

        logger.info(
            "stub_image_generated",
            model=model_id,
            prompt_length=len(arguments.get("prompt", "")),
            image_id=image_id,
        )

        return {
            "images": [
                {"url": f"https://placehold.co/1024x1792/1a1a1a/ffffff?text={image_id}-{n}"}
                for n in range(count)
            ]
        }
