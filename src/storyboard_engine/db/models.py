"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ContentTypeModel(Base):
    """Content type (storyboard template) ORM model. Read-only to the pipeline."""

    __tablename__ = "content_types"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, server_default="1")
    # Legacy rows may hold the contract as a JSON-encoded string
    inputs_contract: Mapped[Any] = mapped_column(JSONType, nullable=True)
    output_contract: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    scene_generation_policy: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType, nullable=True
    )
    prompting: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    requests: Mapped[list["ContentCreationRequestModel"]] = relationship(
        "ContentCreationRequestModel", back_populates="content_type"
    )


class ContentCreationRequestModel(Base):
    """A storyboard project: user inputs plus the incrementally built output."""

    __tablename__ = "content_creation_requests"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    content_type_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("content_types.id", ondelete="SET NULL"), nullable=True, index=True
    )
    inputs: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    generated_output: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(String(50), server_default="pending", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    content_type: Mapped["ContentTypeModel | None"] = relationship(
        "ContentTypeModel", back_populates="requests"
    )
    images: Mapped[list["GeneratedImageModel"]] = relationship(
        "GeneratedImageModel", back_populates="request", cascade="all, delete-orphan"
    )


class GeneratedImageModel(Base):
    """One generated image; one row per (request, scene, image index)."""

    __tablename__ = "generated_images"
    __table_args__ = (
        UniqueConstraint(
            "content_creation_request_id",
            "scene_index",
            "image_index",
            name="uq_generated_images_request_scene_image",
        ),
    )

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    content_creation_request_id: Mapped[PyUUID] = mapped_column(
        Uuid,
        ForeignKey("content_creation_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scene_index: Mapped[int] = mapped_column(Integer, nullable=False)
    image_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    request: Mapped["ContentCreationRequestModel"] = relationship(
        "ContentCreationRequestModel", back_populates="images"
    )
