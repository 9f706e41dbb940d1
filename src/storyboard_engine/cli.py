"""Command-line interface using Typer."""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from storyboard_engine import __version__
from storyboard_engine.config import settings
from storyboard_engine.domain.enums import ImageGenerationMode
from storyboard_engine.domain.errors import StoryboardError
from storyboard_engine.domain.models import ImageGenerationSettings, VideoGenerationSettings
from storyboard_engine.logging import setup_logging
from storyboard_engine.utils import run_async

# Setup logging
setup_logging()

app = typer.Typer(
    name="storyboard",
    help="Storyboard Engine - multi-agent ad storyboard and image generation CLI",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Storyboard Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Storyboard Engine - plan, write and illustrate advertising storyboards."""
    pass


def _get_store():
    from storyboard_engine.adapters.store import get_project_store

    return get_project_store()


def _load_inputs(inputs: Optional[str], inputs_file: Optional[Path]) -> dict[str, Any]:
    if inputs_file is not None:
        data = json.loads(inputs_file.read_text())
    elif inputs:
        data = json.loads(inputs)
    else:
        data = {}
    if not isinstance(data, dict):
        raise typer.BadParameter("Inputs must be a JSON object")
    return data


def _build_image_settings(
    model: Optional[str],
    num_images: Optional[int],
    aspect_ratio: Optional[str],
    size: Optional[str],
    references: Optional[list[str]],
    mode: Optional[ImageGenerationMode],
) -> ImageGenerationSettings | None:
    """Settings from CLI options, or None when no image option was given."""
    if not any([model, num_images, aspect_ratio, size, references, mode]):
        return None
    return ImageGenerationSettings(
        model=model or settings.default_image_model,
        num_images=num_images or 1,
        aspect_ratio=aspect_ratio or settings.default_aspect_ratio,
        size=size or settings.default_image_size,
        reference_image_urls=tuple(references or ()),
        mode=mode or ImageGenerationMode.FAST,
    )


# Shared image options
ModelOption = typer.Option(
    None, "--model", "-m", help="Image model (seedream-4.5, nano-banana-pro, nano-banana, flux-schnell)"
)
NumImagesOption = typer.Option(None, "--num-images", "-n", min=1, help="Images per scene")
AspectRatioOption = typer.Option(None, "--aspect-ratio", help="Aspect ratio, e.g. 9:16")
SizeOption = typer.Option(None, "--size", help="Image size (1K, 2K, 4K)")
ReferenceOption = typer.Option(None, "--reference", "-r", help="Reference image URL (repeatable)")
ModeOption = typer.Option(None, "--mode", help="fast or sequential")


@app.command("add-content-type")
def add_content_type(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Content type JSON file"),
) -> None:
    """Register a content type from a JSON file."""
    from storyboard_engine.services.content_types import parse_content_type

    data = json.loads(path.read_text())
    try:
        # Reject unusable definitions before they are stored
        parse_content_type(data)
        content_type_id = run_async(_get_store().add_content_type(data))
    except StoryboardError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Content type registered: {content_type_id}[/green]")


@app.command()
def generate(
    content_type_id: str = typer.Argument(..., help="Content type to generate with"),
    inputs: Optional[str] = typer.Option(None, "--inputs", "-i", help="Inputs as a JSON object"),
    inputs_file: Optional[Path] = typer.Option(
        None, "--inputs-file", exists=True, dir_okay=False, help="Inputs JSON file"
    ),
    model: Optional[str] = ModelOption,
    num_images: Optional[int] = NumImagesOption,
    aspect_ratio: Optional[str] = AspectRatioOption,
    size: Optional[str] = SizeOption,
    references: Optional[list[str]] = ReferenceOption,
    mode: Optional[ImageGenerationMode] = ModeOption,
    inline: bool = typer.Option(
        False, "--inline", help="Run in this process instead of enqueueing a worker task"
    ),
) -> None:
    """Create a project and generate its storyboard (and images, if configured)."""
    raw_inputs = _load_inputs(inputs, inputs_file)
    image_settings = _build_image_settings(
        model, num_images, aspect_ratio, size, references, mode
    )

    store = _get_store()
    try:
        project = run_async(store.create_project(content_type_id, raw_inputs))
    except StoryboardError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(f"[bold blue]Project created: {project.id}[/bold blue]")

    if not inline:
        from storyboard_engine.jobs.pipeline import generate_project_task

        result = generate_project_task.delay(
            project.id,
            content_type_id=content_type_id,
            inputs=raw_inputs,
            image_settings=image_settings.to_dict() if image_settings else None,
        )
        console.print(f"[green]Task enqueued: {result.id}[/green]")
        return

    from storyboard_engine.services.image_generation import ImageGenerationService
    from storyboard_engine.services.project_orchestrator import (
        InlineImageDispatcher,
        ProjectOrchestrator,
    )

    orchestrator = ProjectOrchestrator(
        store=store,
        image_dispatcher=InlineImageDispatcher(ImageGenerationService(store)),
    )
    outcome = run_async(
        orchestrator.generate(
            project.id,
            content_type_id=content_type_id,
            inputs=raw_inputs,
            image_settings=image_settings,
        )
    )

    if outcome.error:
        console.print(f"[bold red]✗ Generation {outcome.stage.value}: {outcome.error}[/bold red]")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]✓ {outcome.persisted_scenes}/{outcome.planned_scenes} scenes "
        f"({outcome.stage.value})[/bold green]"
    )
    _print_project(store, project.id)


@app.command()
def images(
    project_id: str = typer.Argument(..., help="Project ID"),
    model: Optional[str] = ModelOption,
    num_images: Optional[int] = NumImagesOption,
    aspect_ratio: Optional[str] = AspectRatioOption,
    size: Optional[str] = SizeOption,
    references: Optional[list[str]] = ReferenceOption,
    mode: Optional[ImageGenerationMode] = ModeOption,
    inline: bool = typer.Option(False, "--inline", help="Run in this process"),
) -> None:
    """Generate images for a project's persisted scenes."""
    store = _get_store()
    project = run_async(store.get_project(project_id))
    if project is None:
        console.print(f"[bold red]Project not found: {project_id}[/bold red]")
        raise typer.Exit(code=1)

    output = project.output
    image_settings = (
        _build_image_settings(model, num_images, aspect_ratio, size, references, mode)
        or output.image_generation_settings
    )
    if image_settings is None:
        console.print("[bold red]No image settings given or stored for this project[/bold red]")
        raise typer.Exit(code=1)

    scenes = [scene.to_dict() for scene in output.scenes]

    if not inline:
        from storyboard_engine.jobs.pipeline import generate_all_images_task

        result = generate_all_images_task.delay(project_id, scenes, image_settings.to_dict())
        console.print(f"[green]Task enqueued: {result.id}[/green]")
        return

    from storyboard_engine.services.image_generation import ImageGenerationService

    try:
        report = run_async(
            ImageGenerationService(store).generate(project_id, scenes, image_settings)
        )
    except StoryboardError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(
        f"[bold green]✓ {report.persisted}/{report.requested} images saved[/bold green]"
        + (f" [red]({report.failed} failed)[/red]" if report.failed else "")
    )


@app.command()
def regenerate(
    project_id: str = typer.Argument(..., help="Project ID"),
    scene: Optional[int] = typer.Option(None, "--scene", "-s", min=1, help="Only this scene"),
    prompt: Optional[str] = typer.Option(
        None, "--prompt", "-p", help="New image prompt for the scene"
    ),
    model: Optional[str] = ModelOption,
    num_images: Optional[int] = NumImagesOption,
    aspect_ratio: Optional[str] = AspectRatioOption,
    size: Optional[str] = SizeOption,
    references: Optional[list[str]] = ReferenceOption,
    mode: Optional[ImageGenerationMode] = ModeOption,
    inline: bool = typer.Option(False, "--inline", help="Run in this process"),
) -> None:
    """Discard and regenerate images for a project or one scene."""
    image_settings = _build_image_settings(
        model, num_images, aspect_ratio, size, references, mode
    )

    if not inline:
        from storyboard_engine.jobs.pipeline import regenerate_images_task

        result = regenerate_images_task.delay(
            project_id,
            image_settings=image_settings.to_dict() if image_settings else None,
            scene_index=scene,
            prompt_override=prompt,
        )
        console.print(f"[green]Task enqueued: {result.id}[/green]")
        return

    from storyboard_engine.services.image_generation import ImageGenerationService

    try:
        report = run_async(
            ImageGenerationService(_get_store()).regenerate(
                project_id,
                image_settings=image_settings,
                scene_index=scene,
                prompt_override=prompt,
            )
        )
    except StoryboardError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(
        f"[bold green]✓ Cleared {report.deleted}, saved {report.persisted}/"
        f"{report.requested} images[/bold green]"
    )


@app.command()
def video(
    project_id: str = typer.Argument(..., help="Project ID"),
    scene: int = typer.Option(..., "--scene", "-s", min=1, help="Scene to animate"),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="Video model (seedance-1.5-pro, veo-3.1)"
    ),
    duration: int = typer.Option(5, "--duration", "-d", min=1, help="Clip length in seconds"),
    resolution: str = typer.Option("720p", "--resolution", help="Output resolution"),
    aspect_ratio: str = typer.Option("9:16", "--aspect-ratio", help="Output aspect ratio"),
    fps: int = typer.Option(24, "--fps", help="Frames per second"),
    camera_fixed: bool = typer.Option(
        True, "--camera-fixed/--camera-free", help="Lock the camera"
    ),
    last_frame: Optional[str] = typer.Option(None, "--last-frame", help="Last frame image URL"),
    image_url: Optional[str] = typer.Option(
        None, "--image-url", help="First frame (defaults to the scene's first image)"
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Explicit i2v prompt"),
    inline: bool = typer.Option(False, "--inline", help="Run in this process"),
) -> None:
    """Animate a scene's image into a short video clip."""
    video_settings = VideoGenerationSettings(
        model=model or settings.default_video_model,
        duration=duration,
        resolution=resolution,
        aspect_ratio=aspect_ratio,
        fps=fps,
        camera_fixed=camera_fixed,
        last_frame_image_url=last_frame,
    )

    if not inline:
        from storyboard_engine.jobs.pipeline import generate_scene_video_task

        result = generate_scene_video_task.delay(
            project_id,
            scene,
            video_settings=video_settings.to_dict(),
            prompt=prompt,
            image_url=image_url,
        )
        console.print(f"[green]Task enqueued: {result.id}[/green]")
        return

    from storyboard_engine.services.video_generation import VideoGenerationService

    try:
        result = run_async(
            VideoGenerationService(_get_store()).generate_scene_video(
                project_id,
                scene,
                video_settings=video_settings,
                prompt=prompt,
                image_url=image_url,
            )
        )
    except StoryboardError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(f"[bold green]✓ Scene {scene} video ({result.model}):[/bold green]")
    console.print(result.video_url)


@app.command()
def stop(
    project_id: str = typer.Argument(..., help="Project ID"),
) -> None:
    """Ask a running generation to stop at its next checkpoint."""
    try:
        run_async(_get_store().request_stop(project_id))
    except StoryboardError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(f"[yellow]Stop requested for {project_id}[/yellow]")


@app.command()
def status(
    project_id: str = typer.Argument(..., help="Project ID"),
) -> None:
    """Show a project's status, scenes and image counts."""
    _print_project(_get_store(), project_id)


def _print_project(store: Any, project_id: str) -> None:
    project = run_async(store.get_project(project_id))
    if project is None:
        console.print(f"[bold red]Project not found: {project_id}[/bold red]")
        raise typer.Exit(code=1)

    images_by_scene: dict[int, int] = {}
    for image in run_async(store.list_images(project_id)):
        images_by_scene[image.scene_index] = images_by_scene.get(image.scene_index, 0) + 1

    output = project.output

    table = Table(title="Project")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", project.id)
    table.add_row("Status", str(project.status))
    table.add_row("Content type", str(project.content_type_id))
    table.add_row("Scenes", str(len(output.scenes)))
    table.add_row("Images", str(sum(images_by_scene.values())))
    if output.image_generation_settings:
        s = output.image_generation_settings
        table.add_row("Image model", f"{s.model} x{s.num_images} {s.aspect_ratio} {s.size}")
    console.print(table)

    if not output.scenes:
        return

    scenes = Table(title="Scenes")
    scenes.add_column("#", style="cyan", justify="right")
    scenes.add_column("Purpose")
    scenes.add_column("Image prompt")
    scenes.add_column("Agents", justify="right")
    scenes.add_column("Images", justify="right")
    for scene in output.scenes:
        prompt = scene.image_prompt
        scenes.add_row(
            str(scene.index),
            scene.purpose,
            prompt[:80] + ("..." if len(prompt) > 80 else ""),
            str(len(scene.agent_contributions)),
            str(images_by_scene.get(scene.index, 0)),
        )
    console.print(scenes)


if __name__ == "__main__":
    app()
