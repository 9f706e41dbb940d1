"""Domain models - pure Python classes independent of the database.

Scene and output objects serialize to the camelCase JSON stored in
``content_creation_requests.generated_output`` (format ``storyboard_v1``).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storyboard_engine.domain.enums import (
    ExecutionOrder,
    ImageGenerationMode,
    InputFieldType,
    ProjectStatus,
)

OUTPUT_FORMAT = "storyboard_v1"
DEFAULT_THUMBNAIL_PROMPT = "Thumbnail for the content"


# =============================================================================
# Content type (template) definition
# =============================================================================


@dataclass(frozen=True)
class InputField:
    """One typed field of a content type's inputs contract."""

    key: str
    label: str
    type: InputFieldType = InputFieldType.STRING
    required: bool = False
    constraints: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SceneRules:
    """Planning hints; passed to the planner as instructions, not enforced."""

    must_start_strong: bool = False
    must_end_with_closure: bool = False
    avoid_repetition: bool = False
    platform_aware_ordering: bool = False

    def as_instructions(self) -> list[str]:
        instructions = []
        if self.must_start_strong:
            instructions.append("First scene must start strong (hook-like opening)")
        if self.must_end_with_closure:
            instructions.append("Last scene must end with closure (CTA, payoff, conclusion)")
        if self.avoid_repetition:
            instructions.append("Avoid repetition in purpose, shot, or location")
        if self.platform_aware_ordering:
            instructions.append("Order scenes appropriately for the platform")
        return instructions


@dataclass(frozen=True)
class SceneGenerationPolicy:
    """Scene count bounds and planning rules."""

    min_scenes: int = 1
    max_scenes: int = 8
    rules: SceneRules = field(default_factory=SceneRules)
    shot_library: tuple[str, ...] = ()


@dataclass(frozen=True)
class AgentSpec:
    """Normalized agent definition; every legacy agent shape maps onto this."""

    id: str
    name: str
    role: str
    system_prompt: str
    task_prompt: str = ""
    temperature: float = 0.7
    order: int = 1


@dataclass(frozen=True)
class AgentWorkflow:
    """Ordered agents run once per scene."""

    agents: tuple[AgentSpec, ...]
    execution_order: ExecutionOrder = ExecutionOrder.SEQUENTIAL

    @property
    def ordered_agents(self) -> list[AgentSpec]:
        return sorted(self.agents, key=lambda a: a.order)


@dataclass(frozen=True)
class ContentType:
    """Template controlling inputs, scene policy and the agent workflow."""

    id: str
    name: str
    category: str | None = None
    description: str | None = None
    version: int = 1
    inputs_contract: tuple[InputField, ...] = ()
    output_contract: dict[str, Any] = field(default_factory=dict)
    scene_generation_policy: SceneGenerationPolicy = field(default_factory=SceneGenerationPolicy)
    system_prompt_template: str = ""
    prompting: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Planning and scene output
# =============================================================================


@dataclass(frozen=True)
class ScenePurpose:
    """One planned scene: stable 1-based plan index and its purpose."""

    index: int
    purpose: str


@dataclass(frozen=True)
class ScenePlan:
    """Ordered scene purposes produced by the planner."""

    scenes: tuple[ScenePurpose, ...]

    @property
    def scene_count(self) -> int:
        return len(self.scenes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sceneCount": self.scene_count,
            "scenes": [{"index": s.index, "purpose": s.purpose} for s in self.scenes],
        }


@dataclass
class AgentContribution:
    """Provenance record of one agent step."""

    agent_id: str
    agent_name: str
    role: str
    order: int
    input: dict[str, Any]
    output: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "agentId": self.agent_id,
            "agentName": self.agent_name,
            "role": self.role,
            "order": self.order,
            "input": self.input,
            "output": self.output,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentContribution":
        return cls(
            agent_id=str(data.get("agentId", "")),
            agent_name=str(data.get("agentName", "")),
            role=str(data.get("role") or data.get("agentRole") or ""),
            order=int(data.get("order", 0)),
            input=data.get("input") or {},
            output=data.get("output") or data.get("contribution") or {},
        )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass
class Camera:
    shot: str = ""
    lens: str = ""
    movement: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"shot": self.shot, "lens": self.lens, "movement": self.movement}

    @classmethod
    def from_value(cls, value: Any) -> "Camera":
        if isinstance(value, dict):
            return cls(
                shot=_text(value.get("shot")),
                lens=_text(value.get("lens")),
                movement=_text(value.get("movement")),
            )
        # Older outputs stored the camera as a single free-text string
        return cls(shot=_text(value))


@dataclass
class Environment:
    location: str = ""
    time_of_day: str = ""
    lighting: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "location": self.location,
            "timeOfDay": self.time_of_day,
            "lighting": self.lighting,
        }

    @classmethod
    def from_value(cls, value: Any) -> "Environment":
        if isinstance(value, dict):
            return cls(
                location=_text(value.get("location")),
                time_of_day=_text(value.get("timeOfDay") or value.get("time_of_day")),
                lighting=_text(value.get("lighting")),
            )
        return cls(location=_text(value))


@dataclass
class OnScreenText:
    text: str = ""
    style_notes: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "styleNotes": self.style_notes}

    @classmethod
    def from_value(cls, value: Any) -> "OnScreenText":
        if isinstance(value, dict):
            return cls(
                text=_text(value.get("text")),
                style_notes=_text(value.get("styleNotes") or value.get("style_notes")),
            )
        return cls(text=_text(value))


# Keys owned by SceneResult; anything else round-trips through ``extra``
SCENE_KNOWN_KEYS = frozenset(
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
        "generationContext",
        "imageUrls",
    }
)


@dataclass
class SceneResult:
    """One materialized storyboard scene."""

    index: int
    purpose: str
    image_prompt: str
    negative_prompt: str = ""
    camera: Camera = field(default_factory=Camera)
    environment: Environment = field(default_factory=Environment)
    on_screen_text: OnScreenText = field(default_factory=OnScreenText)
    composition_notes: str = ""
    agent_contributions: list[AgentContribution] = field(default_factory=list)
    generation_context: dict[str, Any] = field(default_factory=dict)
    image_urls: list[str] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": f"scene-{self.index}",
                "index": self.index,
                "purpose": self.purpose,
                "imagePrompt": self.image_prompt,
                "negativePrompt": self.negative_prompt,
                "camera": self.camera.to_dict(),
                "environment": self.environment.to_dict(),
                "onScreenText": self.on_screen_text.to_dict(),
                "compositionNotes": self.composition_notes,
                "agentContributions": [c.to_dict() for c in self.agent_contributions],
                "generationContext": self.generation_context,
            }
        )
        if self.image_urls is not None:
            data["imageUrls"] = list(self.image_urls)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], position: int | None = None) -> "SceneResult":
        """Build from persisted JSON. ``position`` is the 1-based fallback index."""
        index = data.get("index")
        if index is None:
            index = position if position is not None else 1
        image_urls = data.get("imageUrls")
        return cls(
            index=int(index),
            purpose=_text(data.get("purpose")),
            image_prompt=_text(data.get("imagePrompt")),
            negative_prompt=_text(data.get("negativePrompt")),
            camera=Camera.from_value(data.get("camera")),
            environment=Environment.from_value(data.get("environment")),
            on_screen_text=OnScreenText.from_value(data.get("onScreenText")),
            composition_notes=_text(data.get("compositionNotes")),
            agent_contributions=[
                AgentContribution.from_dict(c) for c in data.get("agentContributions") or []
            ],
            generation_context=data.get("generationContext") or {},
            image_urls=list(image_urls) if isinstance(image_urls, list) else None,
            extra={k: v for k, v in data.items() if k not in SCENE_KNOWN_KEYS},
        )


@dataclass(frozen=True)
class ImageGenerationSettings:
    """Shared settings for every image unit of one generation run."""

    model: str
    num_images: int
    aspect_ratio: str
    size: str
    reference_image_urls: tuple[str, ...] = ()
    mode: ImageGenerationMode = ImageGenerationMode.FAST

    def to_dict(self) -> dict[str, Any]:
        return {
            "referenceImageUrls": list(self.reference_image_urls),
            "model": self.model,
            "numImages": self.num_images,
            "aspectRatio": self.aspect_ratio,
            "size": self.size,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageGenerationSettings":
        return cls(
            model=str(data["model"]),
            num_images=int(data["numImages"]),
            aspect_ratio=str(data["aspectRatio"]),
            size=str(data["size"]),
            reference_image_urls=tuple(normalize_url_list(data.get("referenceImageUrls"))),
            mode=ImageGenerationMode(data.get("mode") or ImageGenerationMode.FAST),
        )


@dataclass(frozen=True)
class VideoGenerationSettings:
    """Settings for animating one scene image into a short clip."""

    model: str = "seedance-1.5-pro"
    duration: int = 5
    resolution: str = "720p"
    aspect_ratio: str = "9:16"
    fps: int = 24
    camera_fixed: bool = True
    last_frame_image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "model": self.model,
            "duration": self.duration,
            "resolution": self.resolution,
            "aspectRatio": self.aspect_ratio,
            "fps": self.fps,
            "cameraFixed": self.camera_fixed,
        }
        if self.last_frame_image_url:
            data["lastFrameImage"] = self.last_frame_image_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VideoGenerationSettings":
        defaults = cls()
        camera_fixed = data.get("cameraFixed")
        return cls(
            model=str(data.get("model") or defaults.model),
            duration=int(data.get("duration") or defaults.duration),
            resolution=str(data.get("resolution") or defaults.resolution),
            aspect_ratio=str(data.get("aspectRatio") or defaults.aspect_ratio),
            fps=int(data.get("fps") or defaults.fps),
            camera_fixed=defaults.camera_fixed if camera_fixed is None else bool(camera_fixed),
            last_frame_image_url=data.get("lastFrameImage") or None,
        )


def normalize_url_list(value: Any) -> list[str]:
    """Accept a single URL, a list of URLs, or nothing."""
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v]


@dataclass
class GeneratedOutput:
    """The ``generated_output`` document of a project."""

    scenes: list[SceneResult] = field(default_factory=list)
    text_overlay_suggestions: list[str] = field(default_factory=list)
    thumbnail_prompt: str = DEFAULT_THUMBNAIL_PROMPT
    image_generation_settings: ImageGenerationSettings | None = None
    format: str = OUTPUT_FORMAT

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "format": self.format,
            "scenes": [s.to_dict() for s in self.scenes],
            "textOverlaySuggestions": list(self.text_overlay_suggestions),
            "thumbnailPrompt": self.thumbnail_prompt,
        }
        if self.image_generation_settings is not None:
            data["imageGenerationSettings"] = self.image_generation_settings.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "GeneratedOutput":
        if not data:
            return cls()
        settings_data = data.get("imageGenerationSettings")
        image_settings = None
        if isinstance(settings_data, dict):
            try:
                image_settings = ImageGenerationSettings.from_dict(settings_data)
            except (KeyError, TypeError, ValueError):
                image_settings = None
        return cls(
            scenes=[
                SceneResult.from_dict(s, position=i + 1)
                for i, s in enumerate(data.get("scenes") or [])
            ],
            text_overlay_suggestions=list(data.get("textOverlaySuggestions") or []),
            thumbnail_prompt=data.get("thumbnailPrompt") or DEFAULT_THUMBNAIL_PROMPT,
            image_generation_settings=image_settings,
            format=data.get("format") or OUTPUT_FORMAT,
        )


# =============================================================================
# Persisted records
# =============================================================================


@dataclass
class ProjectRecord:
    """A content creation request as the core sees it."""

    id: str
    status: ProjectStatus
    content_type_id: str | None = None
    inputs: dict[str, Any] = field(default_factory=dict)
    generated_output: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def output(self) -> GeneratedOutput:
        return GeneratedOutput.from_dict(self.generated_output)


@dataclass(frozen=True)
class GeneratedImage:
    """One generated media unit; unique per (project, scene, image index)."""

    project_id: str
    scene_index: int
    image_index: int
    image_url: str
    created_at: datetime | None = None

    @property
    def key(self) -> tuple[str, int, int]:
        return (self.project_id, self.scene_index, self.image_index)
