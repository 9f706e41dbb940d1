"""Storyboard generation Celery tasks.

Pipeline stages:
1. generate_project - plan scenes, run each scene's agents, persist in order
2. generate_all_images - one image row per (scene, image index)
3. regenerate_images - clear and regenerate all images or one scene's
4. generate_scene_video - animate one scene's first image into a clip

Tasks are thin wrappers: the async orchestrators own status updates and
logging, the tasks build them from settings and report a summary dict.
"""

import asyncio
from dataclasses import asdict
from typing import Any

from storyboard_engine.adapters.store import get_project_store
from storyboard_engine.domain.models import ImageGenerationSettings, VideoGenerationSettings
from storyboard_engine.logging import get_logger
from storyboard_engine.services.image_generation import ImageGenerationService
from storyboard_engine.services.project_orchestrator import ProjectOrchestrator
from storyboard_engine.services.video_generation import VideoGenerationService
from storyboard_engine.utils import run_async
from storyboard_engine.worker import celery_app

logger = get_logger(__name__)


class CeleryImageDispatcher:
    """Hands image generation to the ``images`` queue."""

    async def dispatch(
        self,
        project_id: str,
        scenes: list[dict[str, Any]],
        image_settings: ImageGenerationSettings,
    ) -> None:
        # delay() is a blocking broker round-trip
        result = await asyncio.to_thread(
            generate_all_images_task.delay, project_id, scenes, image_settings.to_dict()
        )
        logger.info("image_generation_enqueued", project_id=project_id, task_id=result.id)


def _parse_settings(data: dict[str, Any] | None) -> ImageGenerationSettings | None:
    return ImageGenerationSettings.from_dict(data) if data else None


# =============================================================================
# Scene generation
# =============================================================================


@celery_app.task(bind=True, name="pipeline.generate_project")
def generate_project_task(
    self: Any,
    project_id: str,
    content_type_id: str | None = None,
    inputs: dict[str, Any] | None = None,
    image_settings: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Generate all scenes of a project, then enqueue its images.

    Args:
        project_id: UUID of the content creation request
        content_type_id: Content type override (defaults to the project's)
        inputs: Raw inputs override (defaults to the project's)
        image_settings: Camel-cased image settings; images are skipped without them

    Returns:
        Dict with the generation outcome
    """
    logger.info("generate_project_task_started", task_id=self.request.id, project_id=project_id)

    orchestrator = ProjectOrchestrator(
        store=get_project_store(),
        image_dispatcher=CeleryImageDispatcher(),
    )
    result = run_async(
        orchestrator.generate(
            project_id,
            content_type_id=content_type_id,
            inputs=inputs,
            image_settings=_parse_settings(image_settings),
        )
    )
    return {"success": result.error is None, **asdict(result)}


# =============================================================================
# Image generation
# =============================================================================


@celery_app.task(bind=True, name="images.generate_all")
def generate_all_images_task(
    self: Any,
    project_id: str,
    scenes: list[dict[str, Any]],
    image_settings: dict[str, Any],
) -> dict[str, Any]:
    """Generate ``numImages`` images for each persisted scene."""
    logger.info(
        "generate_all_images_task_started",
        task_id=self.request.id,
        project_id=project_id,
        scene_count=len(scenes),
    )
    service = ImageGenerationService(store=get_project_store())
    report = run_async(
        service.generate(project_id, scenes, ImageGenerationSettings.from_dict(image_settings))
    )
    return {"success": report.failed == 0, **asdict(report)}


@celery_app.task(bind=True, name="images.regenerate")
def regenerate_images_task(
    self: Any,
    project_id: str,
    image_settings: dict[str, Any] | None = None,
    scene_index: int | None = None,
    prompt_override: str | None = None,
) -> dict[str, Any]:
    """Clear and regenerate images for a project, or for one of its scenes."""
    logger.info(
        "regenerate_images_task_started",
        task_id=self.request.id,
        project_id=project_id,
        scene_index=scene_index,
    )
    service = ImageGenerationService(store=get_project_store())
    report = run_async(
        service.regenerate(
            project_id,
            image_settings=_parse_settings(image_settings),
            scene_index=scene_index,
            prompt_override=prompt_override,
        )
    )
    return {"success": report.failed == 0, **asdict(report)}


# =============================================================================
# Video generation
# =============================================================================


@celery_app.task(bind=True, name="video.generate_scene")
def generate_scene_video_task(
    self: Any,
    project_id: str,
    scene_index: int,
    video_settings: dict[str, Any] | None = None,
    prompt: str | None = None,
    image_url: str | None = None,
) -> dict[str, Any]:
    """Animate one scene's image into a short clip."""
    logger.info(
        "generate_scene_video_task_started",
        task_id=self.request.id,
        project_id=project_id,
        scene_index=scene_index,
    )
    service = VideoGenerationService(store=get_project_store())
    result = run_async(
        service.generate_scene_video(
            project_id,
            scene_index,
            video_settings=VideoGenerationSettings.from_dict(video_settings)
            if video_settings
            else None,
            prompt=prompt,
            image_url=image_url,
        )
    )
    return {"success": True, **asdict(result)}
