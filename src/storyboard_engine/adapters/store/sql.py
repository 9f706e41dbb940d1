"""SQLAlchemy-backed project store.

The ORM is synchronous; each store call runs its session work in a worker
thread so the generation pipeline's event loop is never blocked.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storyboard_engine.adapters.store.base import ProjectStore
from storyboard_engine.db.models import (
    ContentCreationRequestModel,
    ContentTypeModel,
    GeneratedImageModel,
)
from storyboard_engine.db.session import SessionLocal, get_session_context
from storyboard_engine.domain.enums import ProjectStatus
from storyboard_engine.domain.errors import PersistenceError, ValidationError
from storyboard_engine.domain.models import GeneratedImage, ProjectRecord
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PROJECT_COLUMNS = frozenset({"status", "generated_output", "inputs", "content_type_id"})
IMAGE_KEY_COLUMNS = ["content_creation_request_id", "scene_index", "image_index"]


def _uuid(value: str | UUID) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid id: {value}") from e


def _to_record(model: ContentCreationRequestModel) -> ProjectRecord:
    return ProjectRecord(
        id=str(model.id),
        status=ProjectStatus(model.status),
        content_type_id=str(model.content_type_id) if model.content_type_id else None,
        inputs=model.inputs or {},
        generated_output=model.generated_output,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_image(model: GeneratedImageModel) -> GeneratedImage:
    return GeneratedImage(
        project_id=str(model.content_creation_request_id),
        scene_index=model.scene_index,
        image_index=model.image_index,
        image_url=model.image_url,
        created_at=model.created_at,
    )


class SqlProjectStore(ProjectStore):
    """Project store over the ``content_types``, ``content_creation_requests``
    and ``generated_images`` tables."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory or SessionLocal

    @property
    def name(self) -> str:
        return "sql"

    async def _run(self, operation: str, fn: Callable[[Session], T]) -> T:
        """Run ``fn`` in a committed session on a worker thread."""

        def work() -> T:
            with get_session_context(self.session_factory) as session:
                return fn(session)

        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as e:
            logger.error("store_operation_failed", operation=operation, error=str(e))
            raise PersistenceError(f"{operation} failed: {e}") from e

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        pk = _uuid(project_id)

        def fn(session: Session) -> ProjectRecord | None:
            model = session.get(ContentCreationRequestModel, pk)
            return _to_record(model) if model else None

        return await self._run("get_project", fn)

    async def create_project(
        self,
        content_type_id: str | None,
        inputs: dict[str, Any],
        project_id: str | None = None,
    ) -> ProjectRecord:
        model = ContentCreationRequestModel(
            id=_uuid(project_id) if project_id else uuid4(),
            content_type_id=_uuid(content_type_id) if content_type_id else None,
            inputs=inputs,
            generated_output=None,
            status=ProjectStatus.PENDING.value,
        )

        def fn(session: Session) -> ProjectRecord:
            session.add(model)
            session.flush()
            session.refresh(model)
            return _to_record(model)

        return await self._run("create_project", fn)

    async def update_project(
        self, project_id: str, unless_cancelled: bool = False, **fields: Any
    ) -> bool:
        unknown = set(fields) - PROJECT_COLUMNS
        if unknown:
            raise PersistenceError(f"Unknown project columns: {sorted(unknown)}")

        pk = _uuid(project_id)
        values = dict(fields)
        if "status" in values:
            values["status"] = ProjectStatus(values["status"]).value
        if values.get("content_type_id"):
            values["content_type_id"] = _uuid(values["content_type_id"])

        def fn(session: Session) -> tuple[int, bool]:
            stmt = update(ContentCreationRequestModel).where(ContentCreationRequestModel.id == pk)
            if unless_cancelled:
                stmt = stmt.where(
                    ContentCreationRequestModel.status != ProjectStatus.CANCELLED.value
                )
            updated = session.execute(stmt.values(**values)).rowcount
            if updated or not unless_cancelled:
                return updated, updated > 0
            return 0, session.get(ContentCreationRequestModel, pk) is not None

        updated, exists = await self._run("update_project", fn)
        if not exists:
            raise PersistenceError(f"Project {project_id} not found")
        if not updated:
            logger.info("project_update_skipped_cancelled", project_id=project_id)
            return False
        return True

    async def insert_images(self, rows: list[GeneratedImage]) -> int:
        if not rows:
            return 0

        values = [
            {
                "id": uuid4(),
                "content_creation_request_id": _uuid(row.project_id),
                "scene_index": row.scene_index,
                "image_index": row.image_index,
                "image_url": row.image_url,
            }
            for row in rows
        ]

        def fn(session: Session) -> int:
            dialect = session.get_bind().dialect.name
            if dialect == "postgresql":
                from sqlalchemy.dialects.postgresql import insert
            elif dialect == "sqlite":
                from sqlalchemy.dialects.sqlite import insert
            else:
                return _insert_each_ignoring_conflicts(session, values)

            stmt = (
                insert(GeneratedImageModel)
                .values(values)
                .on_conflict_do_nothing(index_elements=IMAGE_KEY_COLUMNS)
            )
            return session.execute(stmt).rowcount

        return await self._run("insert_images", fn)

    async def delete_images(self, project_id: str, scene_index: int | None = None) -> int:
        pk = _uuid(project_id)

        def fn(session: Session) -> int:
            stmt = delete(GeneratedImageModel).where(
                GeneratedImageModel.content_creation_request_id == pk
            )
            if scene_index is not None:
                stmt = stmt.where(GeneratedImageModel.scene_index == scene_index)
            return session.execute(stmt).rowcount

        return await self._run("delete_images", fn)

    async def list_images(
        self, project_id: str, scene_index: int | None = None
    ) -> list[GeneratedImage]:
        pk = _uuid(project_id)

        def fn(session: Session) -> list[GeneratedImage]:
            stmt = select(GeneratedImageModel).where(
                GeneratedImageModel.content_creation_request_id == pk
            )
            if scene_index is not None:
                stmt = stmt.where(GeneratedImageModel.scene_index == scene_index)
            stmt = stmt.order_by(GeneratedImageModel.scene_index, GeneratedImageModel.image_index)
            return [_to_image(m) for m in session.scalars(stmt)]

        return await self._run("list_images", fn)

    async def get_content_type(self, content_type_id: str) -> dict[str, Any] | None:
        pk = _uuid(content_type_id)

        def fn(session: Session) -> dict[str, Any] | None:
            model = session.get(ContentTypeModel, pk)
            if model is None:
                return None
            return {
                "id": str(model.id),
                "name": model.name,
                "category": model.category,
                "description": model.description,
                "version": model.version,
                "inputs_contract": model.inputs_contract,
                "output_contract": model.output_contract,
                "scene_generation_policy": model.scene_generation_policy,
                "prompting": model.prompting,
            }

        return await self._run("get_content_type", fn)

    async def add_content_type(self, data: dict[str, Any]) -> str:
        model = ContentTypeModel(
            id=_uuid(data["id"]) if data.get("id") else uuid4(),
            name=data["name"],
            category=data.get("category"),
            description=data.get("description"),
            version=data.get("version") or 1,
            inputs_contract=data.get("inputs_contract"),
            output_contract=data.get("output_contract"),
            scene_generation_policy=data.get("scene_generation_policy"),
            prompting=data.get("prompting"),
        )

        def fn(session: Session) -> str:
            session.add(model)
            session.flush()
            return str(model.id)

        return await self._run("add_content_type", fn)


def _insert_each_ignoring_conflicts(session: Session, values: list[dict[str, Any]]) -> int:
    """Row-by-row insert for dialects without ON CONFLICT support."""
    inserted = 0
    for row in values:
        try:
            with session.begin_nested():
                session.add(GeneratedImageModel(**row))
            inserted += 1
        except IntegrityError:
            logger.debug(
                "generated_image_duplicate_ignored",
                scene_index=row["scene_index"],
                image_index=row["image_index"],
            )
    return inserted
