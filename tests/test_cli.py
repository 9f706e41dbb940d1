"""Tests for the command-line interface."""

import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from storyboard_engine import cli
from storyboard_engine.domain.enums import ProjectStatus
from storyboard_engine.domain.models import GeneratedImage, ImageGenerationSettings
from storyboard_engine.utils import run_async

runner = CliRunner()

FLUX = ImageGenerationSettings(model="flux-schnell", num_images=1, aspect_ratio="9:16", size="2K")


@pytest.fixture(autouse=True)
def cli_store(store, monkeypatch):
    monkeypatch.setattr(cli, "_get_store", lambda: store)
    return store


def test_version() -> None:
    result = runner.invoke(cli.app, ["--version"])

    assert result.exit_code == 0
    assert "Storyboard Engine v" in result.stdout


def test_add_content_type(store, content_type_record, tmp_path) -> None:
    path = tmp_path / "ugc.json"
    path.write_text(json.dumps(content_type_record))

    result = runner.invoke(cli.app, ["add-content-type", str(path)])

    assert result.exit_code == 0
    assert "ct-ugc-ad" in result.stdout
    assert "ct-ugc-ad" in store.content_types


def test_add_content_type_rejects_invalid_definition(store, content_type_record, tmp_path) -> None:
    content_type_record["inputs_contract"] = "{not json"
    path = tmp_path / "broken.json"
    path.write_text(json.dumps(content_type_record))

    result = runner.invoke(cli.app, ["add-content-type", str(path)])

    assert result.exit_code == 1
    assert store.content_types == {}


def test_generate_inline(store, content_type_record, sample_inputs) -> None:
    run_async(store.add_content_type(content_type_record))

    result = runner.invoke(
        cli.app,
        [
            "generate",
            "ct-ugc-ad",
            "--inputs",
            json.dumps(sample_inputs),
            "--model",
            "flux-schnell",
            "--num-images",
            "2",
            "--inline",
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "3/3 scenes" in result.stdout
    (project,) = store.projects.values()
    assert project.status == ProjectStatus.COMPLETED
    assert len(run_async(store.list_images(project.id))) == 6


def test_generate_inline_failure_exits_nonzero(store) -> None:
    result = runner.invoke(cli.app, ["generate", "missing-type", "--inline"])

    assert result.exit_code == 1
    (project,) = store.projects.values()
    assert project.status == ProjectStatus.FAILED


def test_generate_rejects_non_object_inputs() -> None:
    result = runner.invoke(cli.app, ["generate", "ct-ugc-ad", "--inputs", "[1, 2]"])

    assert result.exit_code != 0


def test_generate_enqueues_task(store, sample_inputs) -> None:
    from storyboard_engine.jobs.pipeline import generate_project_task

    with patch.object(generate_project_task, "delay", return_value=MagicMock(id="task-42")) as delay:
        result = runner.invoke(
            cli.app, ["generate", "ct-ugc-ad", "--inputs", json.dumps(sample_inputs)]
        )

    assert result.exit_code == 0
    assert "task-42" in result.stdout
    (project,) = store.projects.values()
    delay.assert_called_once_with(
        project.id, content_type_id="ct-ugc-ad", inputs=sample_inputs, image_settings=None
    )


def test_images_inline_uses_persisted_settings(store, storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=2, image_settings=FLUX))

    result = runner.invoke(cli.app, ["images", project.id, "--inline"])

    assert result.exit_code == 0, result.stdout
    assert "2/2 images saved" in result.stdout


def test_images_without_settings(storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=2))

    result = runner.invoke(cli.app, ["images", project.id, "--inline"])

    assert result.exit_code == 1
    assert "No image settings" in result.stdout


def test_regenerate_scene_inline(store, storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=3, image_settings=FLUX))

    result = runner.invoke(
        cli.app,
        ["regenerate", project.id, "--scene", "2", "--prompt", "Scene 2: macro shot", "--inline"],
    )

    assert result.exit_code == 0, result.stdout
    assert [i.scene_index for i in run_async(store.list_images(project.id))] == [2]
    saved = run_async(store.get_project(project.id))
    assert saved.generated_output["scenes"][1]["imagePrompt"] == "Scene 2: macro shot"


def test_regenerate_invalid_request(storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=2, image_settings=FLUX))

    result = runner.invoke(cli.app, ["regenerate", project.id, "--scene", "7", "--inline"])

    assert result.exit_code == 1
    assert "Scene 7 not found" in result.stdout


def test_stop_and_status(store, storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=2))

    result = runner.invoke(cli.app, ["stop", project.id])
    assert result.exit_code == 0
    assert run_async(store.get_project(project.id)).status == ProjectStatus.CANCELLED

    result = runner.invoke(cli.app, ["status", project.id])
    assert result.exit_code == 0
    assert "cancelled" in result.stdout
    assert "Scenes" in result.stdout


def test_status_unknown_project() -> None:
    result = runner.invoke(cli.app, ["status", "nope"])

    assert result.exit_code == 1
    assert "Project not found" in result.stdout


def test_video_inline(store, storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=2))
    run_async(
        store.insert_images([GeneratedImage(project.id, 1, 0, "https://cdn.example.com/1-0.png")])
    )

    result = runner.invoke(
        cli.app, ["video", project.id, "--scene", "1", "--prompt", "i2v: push in", "--inline"]
    )

    assert result.exit_code == 0, result.stdout
    assert "Scene 1 video (seedance-1.5-pro)" in result.stdout
    assert "placehold.co" in result.stdout


def test_video_without_image_exits_nonzero(storyboard_project) -> None:
    project = run_async(storyboard_project(scene_count=2))

    result = runner.invoke(cli.app, ["video", project.id, "--scene", "2", "--inline"])

    assert result.exit_code == 1
    assert "No generated image for scene 2" in result.stdout


def test_video_enqueues_task(storyboard_project) -> None:
    from storyboard_engine.jobs.pipeline import generate_scene_video_task

    project = run_async(storyboard_project(scene_count=2))

    with patch.object(
        generate_scene_video_task, "delay", return_value=MagicMock(id="task-7")
    ) as delay:
        result = runner.invoke(
            cli.app, ["video", project.id, "-s", "2", "-m", "veo-3.1", "--camera-free"]
        )

    assert result.exit_code == 0
    assert "task-7" in result.stdout
    delay.assert_called_once()
    assert delay.call_args.args == (project.id, 2)
    video_settings = delay.call_args.kwargs["video_settings"]
    assert video_settings["model"] == "veo-3.1"
    assert video_settings["cameraFixed"] is False
