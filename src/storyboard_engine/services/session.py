"""Per-invocation state of a project generation run."""

from dataclasses import dataclass, field
from typing import Any

from storyboard_engine.domain.models import AgentWorkflow, ContentType, ScenePlan
from storyboard_engine.services.cancellation import CancellationToken
from storyboard_engine.services.scratchpad import SessionScratchpad


@dataclass
class GenerationSession:
    """Everything one generation run shares across its scenes. Never persisted."""

    project_id: str
    content_type: ContentType
    workflow: AgentWorkflow
    inputs: dict[str, Any]
    raw_inputs: dict[str, Any]
    cancellation: CancellationToken
    scratchpad: SessionScratchpad = field(default_factory=SessionScratchpad)
    plan: ScenePlan | None = None

    @property
    def generation_context(self) -> dict[str, Any]:
        """Context shared by every scene's ``generationContext``."""
        return {
            "inputs": self.raw_inputs,
            "contentTypeName": self.content_type.name,
            "systemPrompt": self.content_type.system_prompt_template,
            "userPromptContext": self.inputs,
        }
