"""Domain enumerations."""

from enum import StrEnum


class ProjectStatus(StrEnum):
    """Persisted status of a content creation request."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class GenerationStage(StrEnum):
    """In-process stages of a project generation run (never persisted)."""

    PENDING = "pending"
    PLANNING = "planning"
    GENERATING = "generating"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class InputFieldType(StrEnum):
    """Types allowed in a content type's inputs contract."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    LIST = "list"


class ExecutionOrder(StrEnum):
    """How agents inside one scene workflow are scheduled."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    CUSTOM = "custom"


class ImageGenerationMode(StrEnum):
    """Scheduling of image units within one image generation run."""

    FAST = "fast"  # every unit concurrently
    SEQUENTIAL = "sequential"  # one at a time, chaining scene references
