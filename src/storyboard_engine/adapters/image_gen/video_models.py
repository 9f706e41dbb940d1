"""Registry of supported image-to-video models.

Every model animates a single scene image (the first frame) and runs through
the same provider as the image models.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from storyboard_engine.adapters.image_gen.models import extract_urls
from storyboard_engine.domain.errors import ValidationError


@dataclass(frozen=True)
class VideoCallInput:
    """Values every video input builder works from."""

    prompt: str
    image_url: str
    duration: int
    resolution: str
    aspect_ratio: str
    fps: int = 24
    camera_fixed: bool = True
    last_frame_image_url: str | None = None


VEO_DURATIONS = (4, 6, 8)
VEO_DEFAULT_DURATION = 6


def _seedance_input(call: VideoCallInput) -> dict[str, Any]:
    arguments: dict[str, Any] = {
        "prompt": call.prompt,
        "image_url": call.image_url,
        "duration": str(call.duration),
        "resolution": call.resolution,
        "aspect_ratio": call.aspect_ratio,
        "fps": call.fps,
        "camera_fixed": call.camera_fixed,
    }
    if call.last_frame_image_url:
        arguments["end_image_url"] = call.last_frame_image_url
    return arguments


def _veo_input(call: VideoCallInput) -> dict[str, Any]:
    duration = call.duration if call.duration in VEO_DURATIONS else VEO_DEFAULT_DURATION
    arguments: dict[str, Any] = {
        "prompt": call.prompt,
        "duration": f"{duration}s",
        "resolution": call.resolution,
        "aspect_ratio": call.aspect_ratio,
        "generate_audio": False,
    }
    if call.last_frame_image_url:
        arguments["first_frame_url"] = call.image_url
        arguments["last_frame_url"] = call.last_frame_image_url
    else:
        arguments["image_url"] = call.image_url
    return arguments


@dataclass(frozen=True)
class VideoModelConfig:
    """One supported image-to-video model."""

    name: str
    model_id: str
    input_builder: Callable[[VideoCallInput], dict[str, Any]]
    last_frame_model_id: str | None = None

    def model_id_for(self, call: VideoCallInput) -> str:
        if call.last_frame_image_url and self.last_frame_model_id:
            return self.last_frame_model_id
        return self.model_id

    def build_input(self, call: VideoCallInput) -> dict[str, Any]:
        return self.input_builder(call)

    def extract_url(self, output: Any) -> str | None:
        urls = extract_urls(output)
        return urls[0] if urls else None


VIDEO_MODEL_REGISTRY: dict[str, VideoModelConfig] = {
    "seedance-1.5-pro": VideoModelConfig(
        name="seedance-1.5-pro",
        model_id="fal-ai/bytedance/seedance/v1.5/pro/image-to-video",
        input_builder=_seedance_input,
    ),
    "veo-3.1": VideoModelConfig(
        name="veo-3.1",
        model_id="fal-ai/veo3.1/image-to-video",
        input_builder=_veo_input,
        last_frame_model_id="fal-ai/veo3.1/first-last-frame-to-video",
    ),
}


def get_video_model_config(model: str) -> VideoModelConfig:
    """Look up a video model by name.

    Raises:
        ValidationError: If the model is not registered
    """
    config = VIDEO_MODEL_REGISTRY.get(model)
    if config is None:
        raise ValidationError(
            f"Unknown video model: {model}. Supported: {', '.join(sorted(VIDEO_MODEL_REGISTRY))}"
        )
    return config
