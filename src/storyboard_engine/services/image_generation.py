"""Image generation and regeneration for persisted storyboard scenes.

Every (scene, image index) pair is an independent unit: one provider call,
one ``generated_images`` row written as soon as the image exists. Unit
failures are logged and skipped so a partial set of images is still useful.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any

from storyboard_engine.adapters.image_gen import (
    ImageCallInput,
    ImageGenProvider,
    ImageModelConfig,
    get_image_gen_provider,
    get_model_config,
)
from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.config import settings as app_settings
from storyboard_engine.domain.enums import ImageGenerationMode
from storyboard_engine.domain.errors import PersistenceError, ValidationError
from storyboard_engine.domain.models import GeneratedImage, ImageGenerationSettings
from storyboard_engine.logging import get_logger
from storyboard_engine.services.cancellation import CancellationToken
from storyboard_engine.services.scene_prompt import build_scene_prompt

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageUnit:
    scene_index: int
    image_index: int
    prompt: str


@dataclass
class ImageGenerationReport:
    """Outcome of one generate/regenerate run."""

    project_id: str
    requested: int = 0
    persisted: int = 0
    failed: int = 0
    deleted: int = 0
    cancelled: bool = False
    scene_indices: list[int] = field(default_factory=list)


def default_image_settings(
    reference_image_urls: list[str] | None = None,
) -> ImageGenerationSettings:
    """Settings used when a regeneration has nothing persisted to fall back on."""
    return ImageGenerationSettings(
        model=app_settings.default_image_model,
        num_images=1,
        aspect_ratio=app_settings.default_aspect_ratio,
        size=app_settings.default_image_size,
        reference_image_urls=tuple(reference_image_urls or ()),
    )


def validate_image_settings(image_settings: ImageGenerationSettings) -> ImageModelConfig:
    """Check settings against the model registry.

    Raises:
        ValidationError: Unknown model, ``num_images < 1`` or missing reference images
    """
    model = get_model_config(image_settings.model)
    if image_settings.num_images < 1:
        raise ValidationError(f"num_images must be at least 1, got {image_settings.num_images}")
    if model.requires_reference_images and not image_settings.reference_image_urls:
        raise ValidationError(
            f"At least one reference image URL is required for model {model.name}"
        )
    if not image_settings.aspect_ratio or not image_settings.size:
        raise ValidationError("aspect_ratio and size are required")
    return model


def image_prerequisites_met(image_settings: ImageGenerationSettings | None) -> bool:
    """Whether automatic image generation can start after scene generation."""
    if image_settings is None:
        return False
    try:
        validate_image_settings(image_settings)
    except ValidationError:
        return False
    return True


class ImageGenerationService:
    """Generates and regenerates images for a project's scenes."""

    def __init__(
        self,
        store: ProjectStore,
        provider: ImageGenProvider | None = None,
        max_persist_attempts: int | None = None,
        persist_retry_delay_ms: int | None = None,
    ) -> None:
        self.store = store
        self.provider = provider or get_image_gen_provider()
        self.max_persist_attempts = max_persist_attempts or app_settings.image_persist_max_attempts
        self.persist_retry_delay_ms = (
            persist_retry_delay_ms
            if persist_retry_delay_ms is not None
            else app_settings.image_persist_retry_delay_ms
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def generate(
        self,
        project_id: str,
        scenes: list[dict[str, Any]],
        image_settings: ImageGenerationSettings,
        cancellation: CancellationToken | None = None,
    ) -> ImageGenerationReport:
        """Generate ``num_images`` images for every scene.

        Args:
            project_id: Project the images belong to
            scenes: Persisted scene dicts, in storyboard order
            image_settings: Model, count, aspect ratio, size, references and mode
            cancellation: Token checked before each scene's batch

        Returns:
            ImageGenerationReport with per-run counts

        Raises:
            ValidationError: If the settings are invalid
        """
        model = validate_image_settings(image_settings)
        cancellation = cancellation or CancellationToken(project_id, self.store)
        report = ImageGenerationReport(project_id=project_id)

        if await cancellation.is_cancelled():
            logger.info("image_generation_cancelled_before_start", project_id=project_id)
            report.cancelled = True
            return report

        batches = self._build_batches(scenes, image_settings.num_images)
        report.requested = sum(len(units) for units in batches.values())
        report.scene_indices = list(batches)

        logger.info(
            "image_generation_started",
            project_id=project_id,
            model=model.name,
            mode=image_settings.mode.value,
            scene_count=len(batches),
            unit_count=report.requested,
            reference_count=len(image_settings.reference_image_urls),
        )

        if image_settings.mode == ImageGenerationMode.SEQUENTIAL:
            await self._run_sequential(project_id, batches, model, image_settings, cancellation, report)
        else:
            await self._run_fast(project_id, batches, model, image_settings, cancellation, report)

        logger.info(
            "image_generation_finished",
            project_id=project_id,
            requested=report.requested,
            persisted=report.persisted,
            failed=report.failed,
            cancelled=report.cancelled,
        )
        return report

    async def regenerate(
        self,
        project_id: str,
        image_settings: ImageGenerationSettings | None = None,
        scene_index: int | None = None,
        prompt_override: str | None = None,
    ) -> ImageGenerationReport:
        """Discard and regenerate images for the whole project or one scene.

        With ``prompt_override`` the target scene's ``imagePrompt`` is rewritten
        in the persisted output first. Existing rows are always deleted before
        any new provider call.

        Raises:
            ValidationError: Unknown project or scene, no scenes, bad settings,
                or a prompt override without a scene index
        """
        project = await self.store.get_project(project_id)
        if project is None:
            raise ValidationError(f"Project {project_id} not found")

        generated_output = copy.deepcopy(project.generated_output or {})
        scenes: list[dict[str, Any]] = generated_output.get("scenes") or []
        if not scenes:
            raise ValidationError(f"No scenes found for project {project_id}")

        if prompt_override is not None and scene_index is None:
            raise ValidationError("A prompt override needs the scene index it applies to")

        targets = scenes
        if scene_index is not None:
            targets = [
                s for position, s in enumerate(scenes, start=1)
                if (s.get("index") or position) == scene_index
            ]
            if not targets:
                raise ValidationError(f"Scene {scene_index} not found")

        persisted_settings = project.output.image_generation_settings
        resolved = image_settings or persisted_settings or default_image_settings()
        validate_image_settings(resolved)

        output_changed = False
        if prompt_override is not None:
            targets[0]["imagePrompt"] = prompt_override
            output_changed = True
        if image_settings is not None and image_settings != persisted_settings:
            generated_output["imageGenerationSettings"] = image_settings.to_dict()
            output_changed = True
        if output_changed:
            await self.store.update_project(project_id, generated_output=generated_output)

        deleted = await self.store.delete_images(project_id, scene_index=scene_index)
        logger.info(
            "images_cleared_for_regeneration",
            project_id=project_id,
            scene_index=scene_index,
            deleted=deleted,
            prompt_override=prompt_override is not None,
        )

        report = await self._generate_subset(project_id, targets, scenes, resolved)
        report.deleted = deleted
        return report

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _generate_subset(
        self,
        project_id: str,
        targets: list[dict[str, Any]],
        all_scenes: list[dict[str, Any]],
        image_settings: ImageGenerationSettings,
    ) -> ImageGenerationReport:
        # Prompts fall back on the first scene's inputs, so render against the full list
        if len(targets) == len(all_scenes):
            return await self.generate(project_id, all_scenes, image_settings)

        first_inputs = (all_scenes[0].get("generationContext") or {}).get("inputs")
        prepared = []
        for scene in targets:
            scene = copy.deepcopy(scene)
            context = scene.setdefault("generationContext", {})
            if not context.get("inputs") and first_inputs:
                context["inputs"] = first_inputs
            prepared.append(scene)
        return await self.generate(project_id, prepared, image_settings)

    def _build_batches(
        self, scenes: list[dict[str, Any]], num_images: int
    ) -> dict[int, list[ImageUnit]]:
        batches: dict[int, list[ImageUnit]] = {}
        for position, scene in enumerate(scenes, start=1):
            scene_index = int(scene.get("index") or position)
            prompt = build_scene_prompt(scene, scenes)
            if not prompt:
                logger.warning("scene_prompt_empty_skipped", scene_index=scene_index)
                continue
            batches[scene_index] = [
                ImageUnit(scene_index=scene_index, image_index=i, prompt=prompt)
                for i in range(num_images)
            ]
        return dict(sorted(batches.items()))

    async def _run_fast(
        self,
        project_id: str,
        batches: dict[int, list[ImageUnit]],
        model: ImageModelConfig,
        image_settings: ImageGenerationSettings,
        cancellation: CancellationToken,
        report: ImageGenerationReport,
    ) -> None:
        async def run_batch(units: list[ImageUnit]) -> None:
            if await cancellation.is_cancelled():
                report.cancelled = True
                return
            await asyncio.gather(
                *(
                    self._run_unit(
                        project_id, unit, model, image_settings,
                        image_settings.reference_image_urls, report,
                    )
                    for unit in units
                )
            )

        await asyncio.gather(*(run_batch(units) for units in batches.values()))

    async def _run_sequential(
        self,
        project_id: str,
        batches: dict[int, list[ImageUnit]],
        model: ImageModelConfig,
        image_settings: ImageGenerationSettings,
        cancellation: CancellationToken,
        report: ImageGenerationReport,
    ) -> None:
        base_references = image_settings.reference_image_urls
        references = base_references

        for scene_index, units in batches.items():
            for unit in units:
                if await cancellation.is_cancelled():
                    logger.info(
                        "image_generation_stopped",
                        project_id=project_id,
                        scene_index=scene_index,
                        image_index=unit.image_index,
                    )
                    report.cancelled = True
                    return

                url = await self._run_unit(
                    project_id, unit, model, image_settings, references, report
                )
                # The first image of each scene becomes a reference for the next scenes
                if url and unit.image_index == 0 and model.requires_reference_images:
                    references = (*base_references, url)

    async def _run_unit(
        self,
        project_id: str,
        unit: ImageUnit,
        model: ImageModelConfig,
        image_settings: ImageGenerationSettings,
        references: tuple[str, ...],
        report: ImageGenerationReport,
    ) -> str | None:
        """Generate and persist one image. Returns its URL, or None on failure."""
        arguments = model.build_input(
            ImageCallInput(
                prompt=unit.prompt,
                reference_image_urls=references,
                aspect_ratio=image_settings.aspect_ratio,
                size=image_settings.size,
                num_images=1,
            )
        )

        try:
            output = await self.provider.run(model.model_id, arguments)
        except Exception as e:
            logger.error(
                "image_unit_generation_failed",
                project_id=project_id,
                scene_index=unit.scene_index,
                image_index=unit.image_index,
                error=str(e),
            )
            report.failed += 1
            return None

        urls = model.extract_urls(output)
        if not urls:
            logger.error(
                "image_unit_no_url",
                project_id=project_id,
                scene_index=unit.scene_index,
                image_index=unit.image_index,
            )
            report.failed += 1
            return None

        url = urls[0]
        row = GeneratedImage(
            project_id=project_id,
            scene_index=unit.scene_index,
            image_index=unit.image_index,
            image_url=url,
        )
        if not await self._persist_image(row):
            report.failed += 1
            return None

        report.persisted += 1
        return url

    async def _persist_image(self, row: GeneratedImage) -> bool:
        """Insert one image row, retrying transient store errors with linear backoff."""
        for attempt in range(self.max_persist_attempts):
            try:
                inserted = await self.store.insert_images([row])
            except PersistenceError as e:
                if attempt == self.max_persist_attempts - 1:
                    logger.error(
                        "image_persist_failed",
                        project_id=row.project_id,
                        scene_index=row.scene_index,
                        image_index=row.image_index,
                        attempts=self.max_persist_attempts,
                        error=str(e),
                    )
                    return False
                await asyncio.sleep(self.persist_retry_delay_ms * (attempt + 1) / 1000)
                continue

            logger.info(
                "image_saved",
                project_id=row.project_id,
                scene_index=row.scene_index,
                image_index=row.image_index,
                duplicate=inserted == 0,
            )
            return True
        return False
