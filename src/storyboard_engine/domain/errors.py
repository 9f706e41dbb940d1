"""Error taxonomy for the generation pipeline."""


class StoryboardError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(StoryboardError):
    """The content type cannot drive a generation run. Terminal, never retried."""


class NoAgentsConfigured(ConfigurationError):
    """The content type has no agent workflow."""

    def __init__(self, content_type_name: str) -> None:
        super().__init__(
            f'No agents configured for content type "{content_type_name}". '
            "Configure agents in the workflow editor before generating content."
        )
        self.content_type_name = content_type_name


class ValidationError(StoryboardError):
    """Request inputs or generation settings are malformed."""


class ProviderError(StoryboardError):
    """A text or image generation provider call failed."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class PersistenceError(StoryboardError):
    """A data store read or write failed."""


class SceneGenerationError(StoryboardError):
    """One scene's agent workflow failed; carries the scene's plan index."""

    def __init__(self, plan_index: int, cause: BaseException) -> None:
        super().__init__(f"Scene {plan_index} generation failed: {cause}")
        self.plan_index = plan_index
        self.cause = cause


class GenerationCancelled(StoryboardError):
    """A cancellation checkpoint observed a stop request. Not a failure."""

    def __init__(self, project_id: str, checkpoint: str) -> None:
        super().__init__(f"Generation for project {project_id} cancelled at {checkpoint}")
        self.project_id = project_id
        self.checkpoint = checkpoint
