"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Content types table
    op.create_table(
        "content_types",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("inputs_contract", postgresql.JSONB(), nullable=True),
        sa.Column("output_contract", postgresql.JSONB(), nullable=True),
        sa.Column("scene_generation_policy", postgresql.JSONB(), nullable=True),
        sa.Column("prompting", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_content_types_name", "content_types", ["name"])

    # Content creation requests (projects) table
    op.create_table(
        "content_creation_requests",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("content_type_id", sa.UUID(), nullable=True),
        sa.Column("inputs", postgresql.JSONB(), nullable=True),
        sa.Column("generated_output", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["content_type_id"], ["content_types.id"], ondelete="SET NULL"
        ),
    )
    op.create_index(
        "ix_content_creation_requests_content_type_id",
        "content_creation_requests",
        ["content_type_id"],
    )
    op.create_index(
        "ix_content_creation_requests_status", "content_creation_requests", ["status"]
    )

    # Generated images table
    op.create_table(
        "generated_images",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("content_creation_request_id", sa.UUID(), nullable=False),
        sa.Column("scene_index", sa.Integer(), nullable=False),
        sa.Column("image_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["content_creation_request_id"],
            ["content_creation_requests.id"],
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "content_creation_request_id",
            "scene_index",
            "image_index",
            name="uq_generated_images_request_scene_image",
        ),
    )
    op.create_index(
        "ix_generated_images_content_creation_request_id",
        "generated_images",
        ["content_creation_request_id"],
    )


def downgrade() -> None:
    op.drop_table("generated_images")
    op.drop_table("content_creation_requests")
    op.drop_table("content_types")
