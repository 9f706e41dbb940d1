"""Tests for the image model registry."""

from types import SimpleNamespace

import pytest

from storyboard_engine.adapters.image_gen import MODEL_REGISTRY, get_model_config
from storyboard_engine.adapters.image_gen.models import (
    ImageCallInput,
    extract_urls,
    get_dimensions,
)
from storyboard_engine.domain.errors import ValidationError

CALL = ImageCallInput(
    prompt="Image Prompt: sneaker on a pedestal",
    reference_image_urls=("https://cdn.example.com/a.png", "https://cdn.example.com/b.png"),
    aspect_ratio="9:16",
    size="2K",
)


def test_registry_models() -> None:
    """Every supported model is registered with its provider id."""
    assert set(MODEL_REGISTRY) == {"seedream-4.5", "nano-banana-pro", "nano-banana", "flux-schnell"}
    assert get_model_config("nano-banana-pro").model_id == "fal-ai/nano-banana-pro/edit"
    assert get_model_config("flux-schnell").requires_reference_images is False


def test_unknown_model() -> None:
    with pytest.raises(ValidationError, match="Supported: flux-schnell"):
        get_model_config("midjourney")


@pytest.mark.parametrize(
    ("aspect_ratio", "size", "expected"),
    [
        ("9:16", "2K", (576, 1024)),
        ("9:16", "4K", (2304, 4096)),
        ("16:9", "2K", (1024, 576)),
        ("1:1", "4K", (4096, 4096)),
        ("4:5", "2K", (576, 1024)),
    ],
)
def test_get_dimensions(aspect_ratio: str, size: str, expected: tuple[int, int]) -> None:
    assert get_dimensions(aspect_ratio, size) == expected


def test_seedream_input() -> None:
    arguments = get_model_config("seedream-4.5").build_input(CALL)

    assert arguments["image_urls"] == list(CALL.reference_image_urls)
    assert arguments["image_size"] == {"width": 576, "height": 1024}
    assert arguments["num_images"] == 1
    assert arguments["max_images"] == 1
    assert arguments["enable_safety_checker"] is True


def test_nano_banana_inputs() -> None:
    pro = get_model_config("nano-banana-pro").build_input(CALL)
    assert pro["resolution"] == "2K"
    assert pro["aspect_ratio"] == "9:16"
    assert pro["output_format"] == "png"

    basic = get_model_config("nano-banana").build_input(CALL)
    assert "resolution" not in basic
    assert basic["output_format"] == "jpeg"
    assert basic["image_urls"] == list(CALL.reference_image_urls)


def test_flux_input_ignores_references() -> None:
    arguments = get_model_config("flux-schnell").build_input(CALL)

    assert "image_urls" not in arguments
    assert arguments["image_size"] == "portrait_16_9"
    assert arguments["num_inference_steps"] == 4


class TestExtractUrls:
    def test_fal_images_shape(self) -> None:
        output = {"images": [{"url": "https://x/1.png"}, {"url": "https://x/2.png"}]}
        assert extract_urls(output) == ["https://x/1.png", "https://x/2.png"]

    def test_single_image_and_output_wrappers(self) -> None:
        assert extract_urls({"image": {"url": "https://x/1.png"}}) == ["https://x/1.png"]
        assert extract_urls({"output": ["https://x/1.png"]}) == ["https://x/1.png"]

    def test_bare_string_and_list(self) -> None:
        assert extract_urls("https://x/1.png") == ["https://x/1.png"]
        assert extract_urls(["https://x/1.png", {"url": "https://x/2.png"}]) == [
            "https://x/1.png",
            "https://x/2.png",
        ]

    def test_object_with_url_attribute_or_method(self) -> None:
        assert extract_urls(SimpleNamespace(url="https://x/1.png")) == ["https://x/1.png"]
        assert extract_urls(SimpleNamespace(url=lambda: "https://x/2.png")) == ["https://x/2.png"]

    def test_nothing_usable(self) -> None:
        assert extract_urls(None) == []
        assert extract_urls("") == []
        assert extract_urls({"images": []}) == []
        assert extract_urls({"status": "done"}) == []
