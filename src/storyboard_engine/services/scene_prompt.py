"""Assembly of the full image-model prompt for one persisted scene.

Scene text written by agents may still contain bracket placeholders such as
``[PRODUCT NAME]`` or ``[OFFER]``; they are filled from the raw request
inputs kept in the scene's generation context.
"""

import re
from collections.abc import Callable
from typing import Any

from storyboard_engine.services.inputs import get_path

# Keys rendered explicitly, or metadata that never belongs in an image prompt
KNOWN_SCENE_FIELDS = frozenset(
    {
        "id",
        "index",
        "purpose",
        "imagePrompt",
        "negativePrompt",
        "camera",
        "environment",
        "onScreenText",
        "compositionNotes",
        "agentContributions",
        "finalAssembler",
        "imageUrls",
        "generationContext",
        "shotType",
        "notes",
        "durationSeconds",
    }
)


def _join(value: Any) -> str | None:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) if value else None
    return str(value) if value not in (None, "") else None


# (placeholder names, input path, formatter)
PLACEHOLDERS: list[tuple[tuple[str, ...], str, Callable[[Any], str | None]]] = [
    (
        ("PRODUCT NAME", "PRODUCT_NAME", "SUBJECT NAME", "SUBJECT_NAME"),
        "subject.name",
        _join,
    ),
    (("PRODUCT CATEGORY", "PRODUCT_CATEGORY", "CATEGORY"), "subject.product.category", _join),
    (("PRODUCT MATERIAL", "PRODUCT_MATERIAL", "MATERIAL"), "subject.product.material", _join),
    (("PRODUCT FIT", "PRODUCT_FIT", "FIT"), "subject.product.fit", _join),
    (("PRODUCT COLORS", "PRODUCT_COLORS", "COLORS"), "subject.product.colors", _join),
    (
        ("PRODUCT FEATURES", "PRODUCT_FEATURES", "FEATURES", "KEY POINTS", "KEY_POINTS"),
        "subject.product.keyPoints",
        _join,
    ),
    (("OFFER", "OFFER TEXT", "OFFER_TEXT"), "offer.text", _join),
    (("TARGET AUDIENCE", "TARGET_AUDIENCE", "AUDIENCE"), "audience.description", _join),
    (("PLATFORM",), "platform", _join),
    (("GOAL",), "goal", _join),
    (("LANGUAGE",), "language", _join),
    (("TONE",), "tone", lambda v: _join(v) if isinstance(v, list) else None),
    (("BRAND NAME", "BRAND_NAME", "BRAND"), "brandCreator.brandName", _join),
    (("CHARACTERS",), "subject.story.characters", _join),
    (("SETTING",), "subject.story.setting", _join),
    (("THEME",), "subject.story.theme", _join),
    (("CONFLICT",), "subject.story.conflict", _join),
]


def _placeholder_pattern(name: str) -> re.Pattern[str]:
    # "PRODUCT NAME" also matches "product   name"
    body = r"\s+".join(re.escape(part) for part in name.split(" "))
    return re.compile(rf"\[{body}\]", re.IGNORECASE)


_COMPILED = [
    ([_placeholder_pattern(name) for name in names], path, fmt)
    for names, path, fmt in PLACEHOLDERS
]


def replace_placeholders(text: str, inputs: dict[str, Any] | None) -> str:
    """Fill bracket placeholders from raw request inputs; unknown ones are left as is."""
    if not text or not inputs:
        return text

    replaced = text
    for patterns, path, fmt in _COMPILED:
        value = fmt(get_path(inputs, path))
        if not value:
            continue
        for pattern in patterns:
            replaced = pattern.sub(lambda _m, v=value: v, replaced)
    return replaced


def _title(key: str) -> str:
    """``lightingSetup`` -> ``Lighting Setup``."""
    spaced = re.sub(r"([A-Z])", r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


def _compound(value: Any, keys: tuple[str, ...], inputs: Any, sep: str = ", ") -> str | None:
    if isinstance(value, str):
        return replace_placeholders(value, inputs) or None
    if not isinstance(value, dict):
        return None
    parts = [replace_placeholders(str(value[k]), inputs) for k in keys if value.get(k)]
    return sep.join(parts) if parts else None


def build_scene_prompt(scene: dict[str, Any], all_scenes: list[dict[str, Any]] | None = None) -> str:
    """Compose the labelled prompt sections for one scene.

    Inputs come from the scene's ``generationContext.inputs``, falling back
    to the first scene's. Returns an empty string when the scene has nothing
    to render.
    """
    inputs = (scene.get("generationContext") or {}).get("inputs")
    if not inputs and all_scenes:
        inputs = (all_scenes[0].get("generationContext") or {}).get("inputs")

    parts: list[str] = []

    if scene.get("imagePrompt"):
        parts.append(f"Image Prompt: {replace_placeholders(scene['imagePrompt'], inputs)}")
    if scene.get("negativePrompt"):
        parts.append(f"Negative Prompt: {replace_placeholders(scene['negativePrompt'], inputs)}")

    camera = _compound(scene.get("camera"), ("shot", "lens", "movement"), inputs)
    if camera:
        parts.append(f"Camera: {camera}")

    environment = _compound(
        scene.get("environment"), ("location", "timeOfDay", "lighting"), inputs
    )
    if environment:
        parts.append(f"Environment: {environment}")

    on_screen = scene.get("onScreenText")
    if isinstance(on_screen, dict):
        text_parts = []
        if on_screen.get("text"):
            text_parts.append(replace_placeholders(str(on_screen["text"]), inputs))
        if on_screen.get("styleNotes"):
            text_parts.append(f"({replace_placeholders(str(on_screen['styleNotes']), inputs)})")
        if text_parts:
            parts.append(f"On-screen Text: {' '.join(text_parts)}")
    elif isinstance(on_screen, str) and on_screen:
        parts.append(f"On-screen Text: {replace_placeholders(on_screen, inputs)}")

    if scene.get("compositionNotes"):
        parts.append(
            f"Composition Notes: {replace_placeholders(scene['compositionNotes'], inputs)}"
        )

    for key, value in scene.items():
        if key in KNOWN_SCENE_FIELDS or value is None or value == "":
            continue
        if isinstance(value, dict):
            rendered = ", ".join(
                f"{k}: {replace_placeholders(v, inputs) if isinstance(v, str) else v}"
                for k, v in value.items()
                if v is not None and v != ""
            )
            if rendered:
                parts.append(f"{_title(key)}: {rendered}")
        elif isinstance(value, str):
            parts.append(f"{_title(key)}: {replace_placeholders(value, inputs)}")
        elif isinstance(value, bool | int | float):
            parts.append(f"{_title(key)}: {str(value).lower() if isinstance(value, bool) else value}")

    return "\n\n".join(parts)
