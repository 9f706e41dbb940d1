"""Tests for the SQLAlchemy project store against in-memory SQLite."""

from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storyboard_engine.adapters.store.sql import SqlProjectStore
from storyboard_engine.db.models import Base
from storyboard_engine.domain.enums import ProjectStatus
from storyboard_engine.domain.errors import PersistenceError, ValidationError
from storyboard_engine.domain.models import GeneratedImage


@pytest.fixture
def sql_store():
    """Get a SQL store over a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield SqlProjectStore(sessionmaker(bind=engine, autoflush=False))
    engine.dispose()


@pytest.fixture
def content_type_data(content_type_record):
    return {**content_type_record, "id": str(uuid4())}


def image(project_id: str, scene_index: int, image_index: int, url: str = "") -> GeneratedImage:
    return GeneratedImage(
        project_id=project_id,
        scene_index=scene_index,
        image_index=image_index,
        image_url=url or f"https://cdn.example.com/{scene_index}-{image_index}.png",
    )


@pytest.mark.asyncio
async def test_content_type_round_trip(sql_store, content_type_data) -> None:
    content_type_id = await sql_store.add_content_type(content_type_data)

    row = await sql_store.get_content_type(content_type_id)

    assert row["id"] == content_type_data["id"]
    assert row["name"] == "UGC Product Ad"
    assert row["scene_generation_policy"]["maxScenes"] == 4
    assert row["prompting"]["agentWorkflow"]["agents"][1]["role"] == "video_director"
    assert await sql_store.get_content_type(str(uuid4())) is None


@pytest.mark.asyncio
async def test_create_and_update_project(sql_store, content_type_data, sample_inputs) -> None:
    content_type_id = await sql_store.add_content_type(content_type_data)
    project = await sql_store.create_project(content_type_id, sample_inputs)

    assert project.status == ProjectStatus.PENDING
    assert project.content_type_id == content_type_id

    output = {"format": "storyboard_v1", "scenes": [{"index": 1, "imagePrompt": "p"}]}
    await sql_store.update_project(project.id, generated_output=output, status="completed")

    saved = await sql_store.get_project(project.id)
    assert saved.status == ProjectStatus.COMPLETED
    assert saved.generated_output == output
    assert saved.inputs == sample_inputs


@pytest.mark.asyncio
async def test_update_errors(sql_store) -> None:
    with pytest.raises(PersistenceError, match="not found"):
        await sql_store.update_project(str(uuid4()), status="failed")

    project = await sql_store.create_project(None, {})
    with pytest.raises(PersistenceError, match="Unknown project columns"):
        await sql_store.update_project(project.id, title="x")


@pytest.mark.asyncio
async def test_invalid_id(sql_store) -> None:
    with pytest.raises(ValidationError, match="Invalid id"):
        await sql_store.get_project("not-a-uuid")


@pytest.mark.asyncio
async def test_request_stop(sql_store) -> None:
    project = await sql_store.create_project(None, {})

    await sql_store.request_stop(project.id)

    assert (await sql_store.get_project(project.id)).status == ProjectStatus.CANCELLED


@pytest.mark.asyncio
async def test_images_insert_ignores_duplicates(sql_store) -> None:
    project = await sql_store.create_project(None, {})

    inserted = await sql_store.insert_images([image(project.id, 1, 0), image(project.id, 1, 1)])
    again = await sql_store.insert_images(
        [image(project.id, 1, 0, "https://cdn.example.com/other.png"), image(project.id, 2, 0)]
    )

    assert inserted == 2
    assert again == 1
    images = await sql_store.list_images(project.id)
    assert [(i.scene_index, i.image_index) for i in images] == [(1, 0), (1, 1), (2, 0)]
    assert images[0].image_url == "https://cdn.example.com/1-0.png"
    assert await sql_store.insert_images([]) == 0


@pytest.mark.asyncio
async def test_delete_images_by_scene(sql_store) -> None:
    project = await sql_store.create_project(None, {})
    other = await sql_store.create_project(None, {})
    await sql_store.insert_images(
        [image(project.id, 1, 0), image(project.id, 2, 0), image(project.id, 2, 1)]
    )
    await sql_store.insert_images([image(other.id, 2, 0)])

    assert await sql_store.delete_images(project.id, scene_index=2) == 2
    assert [i.scene_index for i in await sql_store.list_images(project.id)] == [1]

    assert await sql_store.delete_images(project.id) == 1
    assert await sql_store.list_images(project.id) == []
    assert len(await sql_store.list_images(other.id, scene_index=2)) == 1


@pytest.mark.asyncio
async def test_update_unless_cancelled(sql_store) -> None:
    project = await sql_store.create_project(None, {})

    assert await sql_store.update_project(project.id, unless_cancelled=True, status="pending")

    await sql_store.request_stop(project.id)
    written = await sql_store.update_project(
        project.id,
        unless_cancelled=True,
        generated_output={"scenes": []},
        status="completed",
    )

    assert written is False
    saved = await sql_store.get_project(project.id)
    assert saved.status == ProjectStatus.CANCELLED
    assert saved.generated_output is None

    with pytest.raises(PersistenceError, match="not found"):
        await sql_store.update_project(str(uuid4()), unless_cancelled=True, status="failed")
