"""Database layer. Import ``storyboard_engine.db.session`` for the engine."""

from storyboard_engine.db.models import (
    Base,
    ContentCreationRequestModel,
    ContentTypeModel,
    GeneratedImageModel,
)

__all__ = [
    "Base",
    "ContentCreationRequestModel",
    "ContentTypeModel",
    "GeneratedImageModel",
]
