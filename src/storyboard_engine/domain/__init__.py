"""Domain layer."""

from storyboard_engine.domain.enums import (
    ExecutionOrder,
    GenerationStage,
    ImageGenerationMode,
    InputFieldType,
    ProjectStatus,
)
from storyboard_engine.domain.errors import (
    ConfigurationError,
    GenerationCancelled,
    NoAgentsConfigured,
    PersistenceError,
    ProviderError,
    SceneGenerationError,
    StoryboardError,
    ValidationError,
)
from storyboard_engine.domain.models import (
    AgentContribution,
    AgentSpec,
    AgentWorkflow,
    ContentType,
    GeneratedImage,
    GeneratedOutput,
    ImageGenerationSettings,
    InputField,
    ProjectRecord,
    SceneGenerationPolicy,
    ScenePlan,
    ScenePurpose,
    SceneResult,
)

__all__ = [
    # Enums
    "ExecutionOrder",
    "GenerationStage",
    "ImageGenerationMode",
    "InputFieldType",
    "ProjectStatus",
    # Errors
    "ConfigurationError",
    "GenerationCancelled",
    "NoAgentsConfigured",
    "PersistenceError",
    "ProviderError",
    "SceneGenerationError",
    "StoryboardError",
    "ValidationError",
    # Models
    "AgentContribution",
    "AgentSpec",
    "AgentWorkflow",
    "ContentType",
    "GeneratedImage",
    "GeneratedOutput",
    "ImageGenerationSettings",
    "InputField",
    "ProjectRecord",
    "SceneGenerationPolicy",
    "ScenePlan",
    "ScenePurpose",
    "SceneResult",
]
