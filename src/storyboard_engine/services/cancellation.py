"""Cooperative cancellation for generation runs.

Stop requests are expressed by setting the project's status to
``cancelled`` in the store. Long-running work polls a ``CancellationToken``
at its checkpoints; in-flight provider calls are allowed to finish.
"""

from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.domain.enums import ProjectStatus
from storyboard_engine.domain.errors import GenerationCancelled, StoryboardError
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)


class CancellationToken:
    """Polls a project's status for a stop request. Sticky once observed."""

    def __init__(self, project_id: str, store: ProjectStore) -> None:
        self.project_id = project_id
        self.store = store
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has already been observed (no store read)."""
        return self._cancelled

    async def is_cancelled(self) -> bool:
        if self._cancelled:
            return True

        try:
            project = await self.store.get_project(self.project_id)
        except StoryboardError as e:
            # A failed read must not stop a healthy run
            logger.warning(
                "cancellation_check_failed",
                project_id=self.project_id,
                error=str(e),
            )
            return False

        if project is not None and project.status == ProjectStatus.CANCELLED:
            logger.info("cancellation_observed", project_id=self.project_id)
            self._cancelled = True
        return self._cancelled

    async def raise_if_cancelled(self, checkpoint: str) -> None:
        """Raise ``GenerationCancelled`` if a stop was requested."""
        if await self.is_cancelled():
            raise GenerationCancelled(self.project_id, checkpoint)

