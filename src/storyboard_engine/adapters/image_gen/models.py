"""Registry of supported image models.

Each model config knows its provider model id, whether it edits from
reference images, how to build the call arguments and how to read URLs out
of whatever the provider returned.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from storyboard_engine.domain.errors import ValidationError


@dataclass(frozen=True)
class ImageCallInput:
    """Per-call values shared by every model's input builder."""

    prompt: str
    reference_image_urls: tuple[str, ...]
    aspect_ratio: str
    size: str
    num_images: int = 1


def get_dimensions(aspect_ratio: str, size: str) -> tuple[int, int]:
    """Pixel dimensions for an aspect ratio at "2K" or "4K" size."""
    multiplier = 2 if size == "4K" else 1
    base = 2048 if size == "4K" else 1024

    if aspect_ratio == "16:9":
        return round(base * multiplier), round(base * 9 / 16 * multiplier)
    if aspect_ratio == "1:1":
        return round(base * multiplier), round(base * multiplier)
    # 9:16 and anything unrecognized
    return round(base * 9 / 16 * multiplier), round(base * multiplier)


def _seedream_input(call: ImageCallInput) -> dict[str, Any]:
    width, height = get_dimensions(call.aspect_ratio, call.size)
    return {
        "prompt": call.prompt,
        "image_urls": list(call.reference_image_urls),
        "image_size": {"width": width, "height": height},
        "num_images": call.num_images,
        "max_images": call.num_images,
        "enable_safety_checker": True,
    }


def _nano_banana_pro_input(call: ImageCallInput) -> dict[str, Any]:
    return {
        "prompt": call.prompt,
        "image_urls": list(call.reference_image_urls),
        "aspect_ratio": call.aspect_ratio,
        "resolution": call.size,
        "num_images": call.num_images,
        "output_format": "png",
    }


def _nano_banana_input(call: ImageCallInput) -> dict[str, Any]:
    return {
        "prompt": call.prompt,
        "image_urls": list(call.reference_image_urls),
        "aspect_ratio": call.aspect_ratio,
        "num_images": call.num_images,
        "output_format": "jpeg",
    }


_FLUX_IMAGE_SIZES = {
    "9:16": "portrait_16_9",
    "16:9": "landscape_16_9",
    "1:1": "square_hd",
    "3:4": "portrait_4_3",
    "4:3": "landscape_4_3",
}


def _flux_schnell_input(call: ImageCallInput) -> dict[str, Any]:
    return {
        "prompt": call.prompt,
        "image_size": _FLUX_IMAGE_SIZES.get(call.aspect_ratio, "portrait_16_9"),
        "num_images": call.num_images,
        "num_inference_steps": 4,
    }


def extract_urls(output: Any) -> list[str]:
    """Normalize provider output to a flat list of URLs.

    Handles a bare URL string, lists of outputs, objects with a ``url``
    attribute or key, ``{"images": [...]}``, ``{"image": {...}}``,
    ``{"video": {...}}`` and ``{"output": ...}`` wrappers.
    """
    if output is None:
        return []
    if isinstance(output, str):
        return [output] if output else []
    if isinstance(output, list | tuple):
        urls: list[str] = []
        for item in output:
            urls.extend(extract_urls(item))
        return urls
    if isinstance(output, dict):
        if isinstance(output.get("url"), str):
            return [output["url"]] if output["url"] else []
        for key in ("images", "image", "video", "output"):
            if key in output:
                return extract_urls(output[key])
        return []

    url = getattr(output, "url", None)
    if callable(url):
        url = url()
    return [str(url)] if url else []


@dataclass(frozen=True)
class ImageModelConfig:
    """One supported image model."""

    name: str
    model_id: str
    requires_reference_images: bool
    input_builder: Callable[[ImageCallInput], dict[str, Any]]

    def build_input(self, call: ImageCallInput) -> dict[str, Any]:
        return self.input_builder(call)

    def extract_urls(self, output: Any) -> list[str]:
        return extract_urls(output)


MODEL_REGISTRY: dict[str, ImageModelConfig] = {
    "seedream-4.5": ImageModelConfig(
        name="seedream-4.5",
        model_id="fal-ai/bytedance/seedream/v4.5/edit",
        requires_reference_images=True,
        input_builder=_seedream_input,
    ),
    "nano-banana-pro": ImageModelConfig(
        name="nano-banana-pro",
        model_id="fal-ai/nano-banana-pro/edit",
        requires_reference_images=True,
        input_builder=_nano_banana_pro_input,
    ),
    "nano-banana": ImageModelConfig(
        name="nano-banana",
        model_id="fal-ai/nano-banana/edit",
        requires_reference_images=True,
        input_builder=_nano_banana_input,
    ),
    "flux-schnell": ImageModelConfig(
        name="flux-schnell",
        model_id="fal-ai/flux/schnell",
        requires_reference_images=False,
        input_builder=_flux_schnell_input,
    ),
}


def get_model_config(model: str) -> ImageModelConfig:
    """Look up a model by name.

    Raises:
        ValidationError: If the model is not registered
    """
    config = MODEL_REGISTRY.get(model)
    if config is None:
        raise ValidationError(
            f"Unknown image model: {model}. Supported: {', '.join(sorted(MODEL_REGISTRY))}"
        )
    return config
