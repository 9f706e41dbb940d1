"""Base interface for the project data store."""

from abc import ABC, abstractmethod
from typing import Any

from storyboard_engine.domain.enums import ProjectStatus
from storyboard_engine.domain.models import GeneratedImage, ProjectRecord


class ProjectStore(ABC):
    """Async access to content types, projects and generated image rows.

    Implementations:
    - SqlProjectStore: SQLAlchemy (PostgreSQL in production, SQLite in tests)
    - InMemoryProjectStore: Dict-backed store for tests and local runs

    Store failures are raised as ``PersistenceError``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name identifier."""
        ...

    @abstractmethod
    async def get_project(self, project_id: str) -> ProjectRecord | None:
        """Fetch a project, or None if it does not exist."""
        ...

    @abstractmethod
    async def create_project(
        self,
        content_type_id: str | None,
        inputs: dict[str, Any],
        project_id: str | None = None,
    ) -> ProjectRecord:
        """Create a ``pending`` project with an empty output."""
        ...

    @abstractmethod
    async def update_project(
        self, project_id: str, unless_cancelled: bool = False, **fields: Any
    ) -> bool:
        """Targeted update of the given columns (``status``, ``generated_output``).

        Args:
            project_id: Project to update
            unless_cancelled: Skip the write atomically if the project is ``cancelled``
            **fields: Column values to set

        Returns:
            False only when the write was skipped because of ``unless_cancelled``

        Raises:
            PersistenceError: If the write fails or the project does not exist
        """
        ...

    @abstractmethod
    async def insert_images(self, rows: list[GeneratedImage]) -> int:
        """Insert image rows, ignoring (project, scene, image index) conflicts.

        Returns:
            Number of rows actually inserted
        """
        ...

    @abstractmethod
    async def delete_images(self, project_id: str, scene_index: int | None = None) -> int:
        """Delete a project's image rows, optionally for one scene only.

        Returns:
            Number of rows deleted
        """
        ...

    @abstractmethod
    async def list_images(
        self, project_id: str, scene_index: int | None = None
    ) -> list[GeneratedImage]:
        """List image rows ordered by scene index then image index."""
        ...

    @abstractmethod
    async def get_content_type(self, content_type_id: str) -> dict[str, Any] | None:
        """Fetch the raw content type record (column name keys)."""
        ...

    @abstractmethod
    async def add_content_type(self, data: dict[str, Any]) -> str:
        """Store a raw content type record and return its id."""
        ...

    async def request_stop(self, project_id: str) -> None:
        """Ask a running generation to stop at its next checkpoint."""
        await self.update_project(project_id, status=ProjectStatus.CANCELLED.value)
