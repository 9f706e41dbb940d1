"""Application services."""

from storyboard_engine.services.agent_executor import AgentStepExecutor
from storyboard_engine.services.cancellation import CancellationToken
from storyboard_engine.services.image_generation import (
    ImageGenerationReport,
    ImageGenerationService,
)
from storyboard_engine.services.project_orchestrator import (
    ImageDispatcher,
    InlineImageDispatcher,
    ProjectGenerationResult,
    ProjectOrchestrator,
)
from storyboard_engine.services.scene_planner import ScenePlanner
from storyboard_engine.services.scene_workflow import SceneWorkflowRunner
from storyboard_engine.services.scratchpad import Scratchpad, SessionScratchpad
from storyboard_engine.services.session import GenerationSession

__all__ = [
    "AgentStepExecutor",
    "CancellationToken",
    "GenerationSession",
    "ImageDispatcher",
    "ImageGenerationReport",
    "ImageGenerationService",
    "InlineImageDispatcher",
    "ProjectGenerationResult",
    "ProjectOrchestrator",
    "ScenePlanner",
    "SceneWorkflowRunner",
    "Scratchpad",
    "SessionScratchpad",
]
