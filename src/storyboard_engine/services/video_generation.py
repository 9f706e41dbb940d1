"""Image-to-video generation for a single storyboard scene.

A scene's first generated image becomes the first frame of a short clip.
The scene's image prompt is rewritten into a motion-focused i2v prompt by
the LLM; when that fails the image prompt is used as-is.
"""

from dataclasses import dataclass

from storyboard_engine.adapters.image_gen import (
    ImageGenProvider,
    VideoCallInput,
    get_image_gen_provider,
    get_video_model_config,
)
from storyboard_engine.adapters.llm import LLMMessage, LLMProvider, get_llm_provider
from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.config import settings as app_settings
from storyboard_engine.domain.errors import ProviderError, ValidationError
from storyboard_engine.domain.models import VideoGenerationSettings
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)

VIDEO_PROMPT_HEADER = "## Video Prompt Request"

DEFAULT_VIDEO_PROMPT = "The subject moves naturally as the camera gently pushes in."

VIDEO_PROMPT_SYSTEM_PROMPT = """\
You are a professional prompt writer for image-to-video (i2v) generation.

Write one ready-to-use i2v prompt. Output only the prompt text, in English,
with no explanations, tips, emojis or commentary.

Rules:
- The input image is always provided and is the first frame. Preserve subject
  identity, composition, lighting and style; extend motion forward in time.
- Do not invent new characters or locations.
- Describe actions clearly and in time order. Avoid vague verbs.
- Use explicit camera language: push, pull, pan, tilt, track, follow, aerial,
  handheld, macro, close-up, wide shot, low-angle. Use "Camera switch." to
  separate shots.
- State framing and perspective. Keep style consistent.
- Describe mood through physical cues such as light, motion and spacing.
- Do not describe audio or add text overlays.

Example:
i2v: The camera gently pushes in as the woman lifts her eyes and breathes out."""


@dataclass
class SceneVideoResult:
    """Outcome of one scene video generation."""

    project_id: str
    scene_index: int
    model: str
    video_url: str
    prompt: str
    prompt_source: str
    image_url: str


class VideoGenerationService:
    """Animates persisted scene images into short clips."""

    def __init__(
        self,
        store: ProjectStore,
        provider: ImageGenProvider | None = None,
        llm_provider: LLMProvider | None = None,
    ) -> None:
        self.store = store
        self.provider = provider or get_image_gen_provider()
        self.llm = llm_provider or get_llm_provider()

    async def convert_prompt(self, source_prompt: str) -> str | None:
        """Rewrite an image prompt as an i2v prompt.

        Returns:
            The rewritten prompt, or None if the LLM failed or returned nothing
        """
        messages = [
            LLMMessage(role="system", content=VIDEO_PROMPT_SYSTEM_PROMPT),
            LLMMessage(role="user", content=f"{VIDEO_PROMPT_HEADER}\n{source_prompt}"),
        ]
        try:
            response = await self.llm.complete(
                messages=messages,
                temperature=app_settings.video_prompt_temperature,
                max_tokens=512,
            )
        except ProviderError as e:
            logger.warning("video_prompt_conversion_failed", error=str(e))
            return None

        content = response.content.strip()
        return content or None

    async def generate_scene_video(
        self,
        project_id: str,
        scene_index: int,
        video_settings: VideoGenerationSettings | None = None,
        prompt: str | None = None,
        image_url: str | None = None,
    ) -> SceneVideoResult:
        """Generate a clip for one scene.

        Args:
            project_id: Project the scene belongs to
            scene_index: 1-based index of the persisted scene
            video_settings: Model and clip options; defaults when omitted
            prompt: Explicit i2v prompt, skipping the LLM rewrite
            image_url: First frame; defaults to the scene's first generated image

        Returns:
            SceneVideoResult with the clip URL

        Raises:
            ValidationError: Unknown project, scene or model, or no first frame
            ProviderError: If the provider fails or returns no video URL
        """
        video_settings = video_settings or VideoGenerationSettings(
            model=app_settings.default_video_model
        )
        model = get_video_model_config(video_settings.model)

        project = await self.store.get_project(project_id)
        if project is None:
            raise ValidationError(f"Project {project_id} not found")

        scenes = (project.generated_output or {}).get("scenes") or []
        scene = next(
            (
                s for position, s in enumerate(scenes, start=1)
                if (s.get("index") or position) == scene_index
            ),
            None,
        )
        if scene is None:
            raise ValidationError(f"Scene {scene_index} not found")

        if not image_url:
            images = await self.store.list_images(project_id, scene_index=scene_index)
            if not images:
                raise ValidationError(f"No generated image for scene {scene_index}")
            image_url = images[0].image_url

        if prompt:
            prompt_source = "explicit"
        else:
            source_prompt = str(scene.get("imagePrompt") or "").strip()
            prompt = await self.convert_prompt(source_prompt) if source_prompt else None
            if prompt:
                prompt_source = "converted"
            elif source_prompt:
                prompt, prompt_source = source_prompt, "image_prompt"
            else:
                prompt, prompt_source = DEFAULT_VIDEO_PROMPT, "default"

        call = VideoCallInput(
            prompt=prompt,
            image_url=image_url,
            duration=video_settings.duration,
            resolution=video_settings.resolution,
            aspect_ratio=video_settings.aspect_ratio,
            fps=video_settings.fps,
            camera_fixed=video_settings.camera_fixed,
            last_frame_image_url=video_settings.last_frame_image_url,
        )
        model_id = model.model_id_for(call)

        logger.info(
            "scene_video_started",
            project_id=project_id,
            scene_index=scene_index,
            model=model.name,
            prompt_source=prompt_source,
        )

        output = await self.provider.run(model_id, model.build_input(call))
        video_url = model.extract_url(output)
        if not video_url:
            logger.error(
                "scene_video_missing_url",
                project_id=project_id,
                scene_index=scene_index,
                output=str(output)[:500],
            )
            raise ProviderError(
                f"{model.name} returned no video URL", provider=self.provider.name
            )

        logger.info(
            "scene_video_completed",
            project_id=project_id,
            scene_index=scene_index,
            video_url=video_url,
        )
        return SceneVideoResult(
            project_id=project_id,
            scene_index=scene_index,
            model=model.name,
            video_url=video_url,
            prompt=prompt,
            prompt_source=prompt_source,
            image_url=image_url,
        )
