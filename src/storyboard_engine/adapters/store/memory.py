"""In-memory project store for tests and local runs."""

import copy
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.domain.enums import ProjectStatus
from storyboard_engine.domain.errors import PersistenceError
from storyboard_engine.domain.models import GeneratedImage, ProjectRecord
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)

PROJECT_COLUMNS = frozenset({"status", "generated_output", "inputs", "content_type_id"})


class InMemoryProjectStore(ProjectStore):
    """Dict-backed store. Returned records are copies, never live references."""

    def __init__(self) -> None:
        self.projects: dict[str, ProjectRecord] = {}
        self.content_types: dict[str, dict[str, Any]] = {}
        self.images: dict[tuple[str, int, int], GeneratedImage] = {}
        self.update_log: list[tuple[str, dict[str, Any]]] = []

    @property
    def name(self) -> str:
        return "memory"

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        record = self.projects.get(project_id)
        return copy.deepcopy(record) if record else None

    async def create_project(
        self,
        content_type_id: str | None,
        inputs: dict[str, Any],
        project_id: str | None = None,
    ) -> ProjectRecord:
        now = datetime.now(UTC)
        record = ProjectRecord(
            id=project_id or str(uuid4()),
            status=ProjectStatus.PENDING,
            content_type_id=content_type_id,
            inputs=copy.deepcopy(inputs),
            generated_output=None,
            created_at=now,
            updated_at=now,
        )
        self.projects[record.id] = record
        return copy.deepcopy(record)

    async def update_project(
        self, project_id: str, unless_cancelled: bool = False, **fields: Any
    ) -> bool:
        unknown = set(fields) - PROJECT_COLUMNS
        if unknown:
            raise PersistenceError(f"Unknown project columns: {sorted(unknown)}")

        record = self.projects.get(project_id)
        if record is None:
            raise PersistenceError(f"Project {project_id} not found")
        if unless_cancelled and record.status == ProjectStatus.CANCELLED:
            logger.info("project_update_skipped_cancelled", project_id=project_id)
            return False

        for key, value in fields.items():
            if key == "status":
                value = ProjectStatus(value)
            setattr(record, key, copy.deepcopy(value))
        record.updated_at = datetime.now(UTC)
        self.update_log.append((project_id, copy.deepcopy(fields)))
        return True

    async def insert_images(self, rows: list[GeneratedImage]) -> int:
        inserted = 0
        for row in rows:
            if row.key in self.images:
                continue
            self.images[row.key] = GeneratedImage(
                project_id=row.project_id,
                scene_index=row.scene_index,
                image_index=row.image_index,
                image_url=row.image_url,
                created_at=row.created_at or datetime.now(UTC),
            )
            inserted += 1
        return inserted

    async def delete_images(self, project_id: str, scene_index: int | None = None) -> int:
        doomed = [
            key
            for key in self.images
            if key[0] == project_id and (scene_index is None or key[1] == scene_index)
        ]
        for key in doomed:
            del self.images[key]
        return len(doomed)

    async def list_images(
        self, project_id: str, scene_index: int | None = None
    ) -> list[GeneratedImage]:
        return sorted(
            (
                image
                for key, image in self.images.items()
                if key[0] == project_id and (scene_index is None or key[1] == scene_index)
            ),
            key=lambda image: (image.scene_index, image.image_index),
        )

    async def get_content_type(self, content_type_id: str) -> dict[str, Any] | None:
        record = self.content_types.get(content_type_id)
        return copy.deepcopy(record) if record else None

    async def add_content_type(self, data: dict[str, Any]) -> str:
        record = copy.deepcopy(data)
        record["id"] = str(record.get("id") or uuid4())
        self.content_types[record["id"]] = record
        return record["id"]
