"""Runs the agent workflow for one scene."""

from storyboard_engine.domain.errors import GenerationCancelled, SceneGenerationError
from storyboard_engine.domain.models import (
    AgentContribution,
    Camera,
    Environment,
    OnScreenText,
    ScenePurpose,
    SceneResult,
)
from storyboard_engine.logging import get_logger
from storyboard_engine.services.agent_executor import AgentStepExecutor
from storyboard_engine.services.session import GenerationSession

logger = get_logger(__name__)


class SceneWorkflowRunner:
    """Executes a session's agents, in order, for one scene.

    Agents within a scene never run concurrently: each one builds on the
    outputs of the agents before it via the scene's scratchpad.
    """

    def __init__(self, executor: AgentStepExecutor | None = None) -> None:
        self.executor = executor or AgentStepExecutor()

    async def run(self, scene: ScenePurpose, session: GenerationSession) -> SceneResult:
        """Generate one scene.

        Raises:
            GenerationCancelled: If a stop was requested before the first agent
            SceneGenerationError: If any agent fails; later agents are skipped
        """
        await session.cancellation.raise_if_cancelled(f"scene_{scene.index}")

        scratchpad = session.scratchpad.for_scene(scene.index)
        agents = session.workflow.ordered_agents
        contributions: list[AgentContribution] = []

        logger.info(
            "scene_workflow_started",
            project_id=session.project_id,
            scene_index=scene.index,
            agent_count=len(agents),
        )

        for position, agent in enumerate(agents):
            is_final = position == len(agents) - 1
            try:
                contribution = await self.executor.execute(
                    agent, scene, scratchpad, session, is_final
                )
            except GenerationCancelled:
                raise
            except Exception as e:
                logger.warning(
                    "scene_agent_failed",
                    project_id=session.project_id,
                    scene_index=scene.index,
                    agent_id=agent.id,
                    role=agent.role,
                    error=str(e),
                )
                raise SceneGenerationError(scene.index, e) from e
            contributions.append(contribution)

        final = contributions[-1].output

        result = SceneResult(
            index=scene.index,
            purpose=scene.purpose,
            image_prompt=str(final.get("imagePrompt", "")),
            negative_prompt=str(final.get("negativePrompt") or ""),
            camera=Camera.from_value(final.get("camera")),
            environment=Environment.from_value(final.get("environment")),
            on_screen_text=OnScreenText.from_value(final.get("onScreenText")),
            composition_notes=str(final.get("compositionNotes") or ""),
            agent_contributions=contributions,
        )
        result.generation_context = {
            **session.generation_context,
            "planIndex": scene.index,
            "scenePurpose": scene.purpose,
            "sceneSpecificContext": {
                "purpose": scene.purpose,
                "camera": result.camera.to_dict(),
                "environment": result.environment.to_dict(),
                "onScreenText": result.on_screen_text.to_dict(),
            },
        }

        logger.info(
            "scene_workflow_completed",
            project_id=session.project_id,
            scene_index=scene.index,
            prompt_length=len(result.image_prompt),
        )
        return result
