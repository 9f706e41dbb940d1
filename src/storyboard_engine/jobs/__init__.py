"""Celery job definitions."""

from storyboard_engine.jobs.pipeline import (
    CeleryImageDispatcher,
    generate_all_images_task,
    generate_project_task,
    regenerate_images_task,
)

__all__ = [
    "CeleryImageDispatcher",
    "generate_all_images_task",
    "generate_project_task",
    "regenerate_images_task",
]
