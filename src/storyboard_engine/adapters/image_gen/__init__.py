"""Image generation adapters."""

from storyboard_engine.adapters.image_gen.base import ImageGenProvider
from storyboard_engine.adapters.image_gen.fal import FalImageGenProvider
from storyboard_engine.adapters.image_gen.models import (
    MODEL_REGISTRY,
    ImageCallInput,
    ImageModelConfig,
    extract_urls,
    get_model_config,
)
from storyboard_engine.adapters.image_gen.stub import StubImageGenProvider
from storyboard_engine.adapters.image_gen.video_models import (
    VIDEO_MODEL_REGISTRY,
    VideoCallInput,
    VideoModelConfig,
    get_video_model_config,
)
from storyboard_engine.config import settings


def get_image_gen_provider() -> ImageGenProvider:
    """Get the configured image generation provider."""
    provider = settings.image_gen_provider.lower()

    if provider == "fal":
        return FalImageGenProvider()
    return StubImageGenProvider()


__all__ = [
    "MODEL_REGISTRY",
    "VIDEO_MODEL_REGISTRY",
    "FalImageGenProvider",
    "ImageCallInput",
    "ImageGenProvider",
    "ImageModelConfig",
    "StubImageGenProvider",
    "VideoCallInput",
    "VideoModelConfig",
    "extract_urls",
    "get_image_gen_provider",
    "get_model_config",
    "get_video_model_config",
]
