"""Project-level generation: plan scenes, run them concurrently, persist in order.

Status lifecycle of the persisted project::

    pending --(last successful scene persisted)--> completed
    pending --(scene 1 failed / bad config / unexpected error)--> failed
    * --(external stop request)--> cancelled (never overwritten here)

Scenes run concurrently but are persisted strictly in plan order, one
targeted update per scene, so pollers always see a gap-free prefix of the
storyboard. Scenes after the first that fail are dropped and the survivors
renumbered ``1..K``. Scene writes are conditional on the project not being
``cancelled``, so a stop request landing mid-persistence ends the run.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.domain.enums import GenerationStage, ProjectStatus
from storyboard_engine.domain.errors import (
    ConfigurationError,
    GenerationCancelled,
    PersistenceError,
    StoryboardError,
    ValidationError,
)
from storyboard_engine.domain.models import (
    GeneratedOutput,
    ImageGenerationSettings,
    SceneResult,
)
from storyboard_engine.logging import get_logger
from storyboard_engine.services.cancellation import CancellationToken
from storyboard_engine.services.content_types import parse_content_type, resolve_agent_workflow
from storyboard_engine.services.image_generation import (
    ImageGenerationService,
    image_prerequisites_met,
)
from storyboard_engine.services.inputs import extract_inputs
from storyboard_engine.services.scene_planner import ScenePlanner
from storyboard_engine.services.scene_workflow import SceneWorkflowRunner
from storyboard_engine.services.session import GenerationSession

logger = get_logger(__name__)


class ImageDispatcher(Protocol):
    """Starts image generation for freshly persisted scenes."""

    async def dispatch(
        self,
        project_id: str,
        scenes: list[dict[str, Any]],
        image_settings: ImageGenerationSettings,
    ) -> None: ...


class InlineImageDispatcher:
    """Runs image generation in-process, awaiting it to completion."""

    def __init__(self, image_service: ImageGenerationService) -> None:
        self.image_service = image_service

    async def dispatch(
        self,
        project_id: str,
        scenes: list[dict[str, Any]],
        image_settings: ImageGenerationSettings,
    ) -> None:
        await self.image_service.generate(project_id, scenes, image_settings)


@dataclass
class ProjectGenerationResult:
    """Outcome of one project generation run."""

    project_id: str
    stage: GenerationStage = GenerationStage.PENDING
    planned_scenes: int = 0
    persisted_scenes: int = 0
    failed_plan_indices: list[int] = field(default_factory=list)
    images_dispatched: bool = False
    error: str | None = None


class ProjectOrchestrator:
    """Drives one project from inputs to a persisted storyboard."""

    def __init__(
        self,
        store: ProjectStore,
        planner: ScenePlanner | None = None,
        scene_runner: SceneWorkflowRunner | None = None,
        image_dispatcher: ImageDispatcher | None = None,
    ) -> None:
        self.store = store
        self.planner = planner or ScenePlanner()
        self.scene_runner = scene_runner or SceneWorkflowRunner()
        self.image_dispatcher = image_dispatcher

    async def generate(
        self,
        project_id: str,
        content_type_id: str | None = None,
        inputs: dict[str, Any] | None = None,
        image_settings: ImageGenerationSettings | None = None,
    ) -> ProjectGenerationResult:
        """Generate and persist all scenes of a project.

        Content type and inputs default to those stored on the project.
        Never raises for pipeline failures; the outcome is reflected in the
        persisted status and the returned result.
        """
        result = ProjectGenerationResult(project_id=project_id)
        cancellation = CancellationToken(project_id, self.store)

        try:
            await self._generate(
                project_id, content_type_id, inputs, image_settings, cancellation, result
            )
        except GenerationCancelled as e:
            logger.info("project_generation_cancelled", project_id=project_id, checkpoint=e.checkpoint)
            result.stage = GenerationStage.CANCELLED
        except (ConfigurationError, ValidationError) as e:
            logger.error("project_generation_rejected", project_id=project_id, error=str(e))
            result.error = str(e)
            await self._mark_failed(project_id, cancellation, result)
        except Exception as e:
            logger.exception("project_generation_error", project_id=project_id, error=str(e))
            result.error = str(e)
            await self._mark_failed(project_id, cancellation, result)

        logger.info(
            "project_generation_finished",
            project_id=project_id,
            stage=result.stage.value,
            planned_scenes=result.planned_scenes,
            persisted_scenes=result.persisted_scenes,
            failed_plan_indices=result.failed_plan_indices,
        )
        return result

    async def _generate(
        self,
        project_id: str,
        content_type_id: str | None,
        inputs: dict[str, Any] | None,
        image_settings: ImageGenerationSettings | None,
        cancellation: CancellationToken,
        result: ProjectGenerationResult,
    ) -> None:
        await cancellation.raise_if_cancelled("session_start")

        project = await self.store.get_project(project_id)
        if project is None:
            raise ValidationError(f"Project {project_id} not found")

        content_type_id = content_type_id or project.content_type_id
        raw_inputs = inputs if inputs is not None else project.inputs
        if not content_type_id:
            raise ConfigurationError(f"Project {project_id} has no content type")

        row = await self.store.get_content_type(content_type_id)
        if row is None:
            raise ConfigurationError(f"Content type {content_type_id} not found")

        content_type = parse_content_type(row)
        session = GenerationSession(
            project_id=project_id,
            content_type=content_type,
            workflow=resolve_agent_workflow(content_type),
            inputs=extract_inputs(content_type, raw_inputs),
            raw_inputs=raw_inputs,
            cancellation=cancellation,
        )
        session.scratchpad.reset()

        # Planning
        result.stage = GenerationStage.PLANNING
        await cancellation.raise_if_cancelled("before_planning")
        plan = await self.planner.plan(content_type, session.inputs, session.scratchpad)
        session.plan = plan
        result.planned_scenes = plan.scene_count

        # Fan-out: every scene starts at once, each with its own scratchpad
        result.stage = GenerationStage.GENERATING
        logger.info(
            "scenes_generation_started",
            project_id=project_id,
            scene_count=plan.scene_count,
            agent_count=len(session.workflow.agents),
        )
        outcomes = await asyncio.gather(
            *(self.scene_runner.run(scene, session) for scene in plan.scenes),
            return_exceptions=True,
        )

        # Fan-in
        if await cancellation.is_cancelled():
            raise GenerationCancelled(project_id, "after_fan_in")

        successes: list[SceneResult] = []
        for scene, outcome in zip(plan.scenes, outcomes, strict=True):
            if isinstance(outcome, SceneResult):
                successes.append(outcome)
                continue
            result.failed_plan_indices.append(scene.index)
            if isinstance(outcome, GenerationCancelled):
                logger.info("scene_skipped_cancelled", project_id=project_id, scene_index=scene.index)
            elif isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
            else:
                logger.warning(
                    "scene_generation_failed",
                    project_id=project_id,
                    scene_index=scene.index,
                    error=str(outcome),
                )

        if 1 in result.failed_plan_indices:
            logger.error("first_scene_failed", project_id=project_id)
            result.error = "First scene generation failed"
            await self._mark_failed(project_id, cancellation, result)
            return

        # Ordered persistence; every write yields to a stop request
        result.stage = GenerationStage.PERSISTING
        output = GeneratedOutput(
            image_generation_settings=(
                image_settings if image_prerequisites_met(image_settings) else None
            )
        )
        for position, scene_result in enumerate(successes, start=1):
            checkpoint = f"persist_{position}"
            await cancellation.raise_if_cancelled(checkpoint)

            scene_result.index = position
            output.scenes.append(scene_result)
            fields: dict[str, Any] = {"generated_output": output.to_dict()}
            if position == len(successes):
                fields["status"] = ProjectStatus.COMPLETED.value
            try:
                written = await self.store.update_project(
                    project_id, unless_cancelled=True, **fields
                )
            except PersistenceError as e:
                logger.error(
                    "scene_persist_failed",
                    project_id=project_id,
                    scene_index=position,
                    error=str(e),
                )
                result.error = str(e)
                result.stage = GenerationStage.FAILED
                return
            if not written:
                raise GenerationCancelled(project_id, checkpoint)
            result.persisted_scenes = position
            logger.info(
                "scene_persisted",
                project_id=project_id,
                scene_index=position,
                plan_index=scene_result.generation_context.get("planIndex"),
                status=fields.get("status", ProjectStatus.PENDING.value),
            )

        result.stage = GenerationStage.COMPLETED

        await self._dispatch_images(project_id, output, image_settings, result)

    async def _dispatch_images(
        self,
        project_id: str,
        output: GeneratedOutput,
        image_settings: ImageGenerationSettings | None,
        result: ProjectGenerationResult,
    ) -> None:
        if self.image_dispatcher is None or not output.scenes:
            return
        if not image_prerequisites_met(image_settings):
            logger.info(
                "image_generation_skipped",
                project_id=project_id,
                reason="missing model, count, aspect ratio, size or reference images",
            )
            return

        try:
            await self.image_dispatcher.dispatch(
                project_id, [s.to_dict() for s in output.scenes], image_settings
            )
            result.images_dispatched = True
        except Exception as e:
            # Scene completion stands even if images cannot be started
            logger.error("image_dispatch_failed", project_id=project_id, error=str(e))

    async def _mark_failed(
        self,
        project_id: str,
        cancellation: CancellationToken,
        result: ProjectGenerationResult,
    ) -> None:
        """Best-effort ``failed`` status; a stop request takes precedence."""
        if cancellation.cancelled:
            result.stage = GenerationStage.CANCELLED
            return
        result.stage = GenerationStage.FAILED
        try:
            written = await self.store.update_project(
                project_id, unless_cancelled=True, status=ProjectStatus.FAILED.value
            )
            if not written:
                result.stage = GenerationStage.CANCELLED
        except StoryboardError as e:
            logger.error("mark_failed_error", project_id=project_id, error=str(e))
