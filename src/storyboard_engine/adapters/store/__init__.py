"""Project data store adapters."""

from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.adapters.store.memory import InMemoryProjectStore
from storyboard_engine.config import settings


def get_project_store() -> ProjectStore:
    """Get the configured project store."""
    if settings.store_backend == "memory":
        return InMemoryProjectStore()

    from storyboard_engine.adapters.store.sql import SqlProjectStore

    return SqlProjectStore()


__all__ = [
    "InMemoryProjectStore",
    "ProjectStore",
    "get_project_store",
]
