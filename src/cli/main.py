"""mcphub CLI (Typer).

The CLI is the only layer that prints: it renders results with Rich, turns
typed core failures into a stderr message plus an exit code, and wires the
concrete adapters (Docker CLI, S3) into the core services.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from adapters.docker_engine import DockerCLIEngine
from adapters.manifest_writer import export_manifest_json
from adapters.s3_storage import S3ObjectStorage
from cli import doctor
from cli.ui_components import (
    build_manifest_panel,
    build_published_table,
    build_result_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import (
    ArchiveError,
    BuildFailure,
    EngineUnavailable,
    ExportFailure,
    FilesystemError,
    LoadFailure,
    ManifestInvalid,
    ManifestNotFound,
    MCPHubError,
    RunFailure,
    StorageError,
)
from core.domain.models import ContainerRunOptions, ImageReference
from core.interfaces.engine import ContainerEngine
from core.interfaces.storage import ObjectStorage
from core.services.build_pipeline import PipelineHooks, PipelineOptions, run_pipeline
from core.services.image_builder import ImageBuilder
from core.services.distribution import (
    fetch_archive,
    install_archive,
    list_published,
    publish_archive,
    start_container,
)
from core.services.manifest_scaffold import (
    DEFAULT_ARGS,
    DEFAULT_COMMAND,
    DEFAULT_LICENSE,
    DEFAULT_PORT,
    DEFAULT_REPOSITORY_TYPE,
    DEFAULT_VERSION,
    default_descriptor,
    descriptor_from_answers,
    project_name_for,
)

app = typer.Typer(
    no_args_is_help=True,
    help="mcphub: build, package and share MCP servers as container images.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

EXIT_CODES: dict[type[MCPHubError], int] = {
    ArchiveError: 3,
    FilesystemError: 4,
    ManifestNotFound: 5,
    ManifestInvalid: 6,
    EngineUnavailable: 7,
    BuildFailure: 8,
    ExportFailure: 9,
    LoadFailure: 10,
    RunFailure: 11,
    StorageError: 12,
}

_STAGE_LABELS = {
    "engine": "Checking container engine...",
    "extract": "Extracting archive...",
    "manifest": "Reading mcp.json...",
    "descriptor": "Generating Dockerfile...",
    "build": "Building image...",
    "export": "Saving image archive...",
}


def exit_code_for(exc: MCPHubError) -> int:
    for cls in type(exc).__mro__:
        if cls in EXIT_CODES:
            return EXIT_CODES[cls]
    return 1


def _fail(exc: MCPHubError) -> typer.Exit:
    _err_console.print(Text.assemble(("Error: ", "bold red"), str(exc)), highlight=False)
    return typer.Exit(code=exit_code_for(exc))


def build_engine(settings: AppSettings) -> ContainerEngine:
    return DockerCLIEngine(settings)


def build_storage(settings: AppSettings) -> ObjectStorage:
    return S3ObjectStorage(settings)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine and storage calls."),
) -> None:
    _configure_logging(verbose)


@app.command()
def init(
    yes: bool = typer.Option(False, "--yes", "-y", help="Use default values without prompting."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing mcp.json."),
    directory: Path = typer.Option(Path("."), "--dir", help="Directory where mcp.json is created."),
) -> None:
    """Initialize a new mcp.json file."""

    settings = AppSettings()
    output_path = directory / settings.manifest_filename

    if yes:
        descriptor = default_descriptor(project_name_for(directory))
    else:
        descriptor = descriptor_from_answers(
            name=typer.prompt("Project name", default=project_name_for(directory)),
            version=typer.prompt("Version", default=DEFAULT_VERSION),
            description=typer.prompt("Description", default="", show_default=False),
            author=typer.prompt("Author", default="", show_default=False),
            license=typer.prompt("License", default=DEFAULT_LICENSE),
            keywords=typer.prompt("Keywords (comma separated)", default="", show_default=False),
            repository_type=typer.prompt("Repository type", default=DEFAULT_REPOSITORY_TYPE),
            repository_url=typer.prompt("Repository URL", default="", show_default=False),
            command=typer.prompt("Run command", default=DEFAULT_COMMAND),
            args=typer.prompt("Run arguments (comma separated)", default=", ".join(DEFAULT_ARGS)),
            port=typer.prompt("Port", default=DEFAULT_PORT, type=int),
        )

    try:
        export_manifest_json(descriptor=descriptor, output_path=output_path, overwrite=force)
    except MCPHubError as exc:
        raise _fail(exc) from exc

    _console.print(f"[green]{settings.manifest_filename} created successfully![/green]")
    _console.print(build_manifest_panel(descriptor))


@app.command()
def push(
    archive: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Zip file of the MCP server."),
    skip_upload: bool = typer.Option(False, "--skip-upload", help="Build and export only; keep the .tar locally."),
) -> None:
    """Build a Docker image from an MCP server zip file and upload it."""

    settings = AppSettings()
    if archive.stat().st_size > settings.max_archive_bytes:
        limit_mb = settings.max_archive_bytes // (1024 * 1024)
        raise _fail(ArchiveError(f"file size exceeds {limit_mb}MB limit"))

    print_banner(_console)
    _console.print(f"Processing {archive.name}...")

    try:
        archive_bytes = archive.read_bytes()
        with _console.status("Starting...") as status:
            hooks = PipelineHooks(stage=lambda stage: status.update(_STAGE_LABELS.get(stage, stage)))
            result = run_pipeline(
                archive_bytes=archive_bytes,
                archive_name=archive.name,
                engine=build_engine(settings),
                options=PipelineOptions.from_settings(settings),
                hooks=hooks,
            )

        published_as: str | None = None
        if not skip_upload:
            reference = publish_archive(
                storage=build_storage(settings),
                result=result,
                default_author=settings.default_author,
            )
            published_as = reference.object_key
    except MCPHubError as exc:
        raise _fail(exc) from exc
    except OSError as exc:
        raise _fail(FilesystemError(f"failed to read zip file: {exc}", path=archive)) from exc

    _console.print("[green]Success![/green]")
    if result.message:
        _console.print(result.message, style="dim")
    _console.print(build_result_table(result, published_as=published_as))


@app.command()
def pull(
    reference: str = typer.Argument(..., help="Published image, as author/name."),
) -> None:
    """Download a published image and load it into Docker."""

    settings = AppSettings()
    try:
        ref = ImageReference.parse(reference)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="REFERENCE") from exc

    engine = build_engine(settings)
    try:
        ImageBuilder(engine).ensure_available()
        archive_path = fetch_archive(
            storage=build_storage(settings),
            reference=ref,
            download_dir=settings.download_dir,
        )
        _console.print(f"Loading Docker image from {archive_path}...")
        outcome = install_archive(engine=engine, archive_path=archive_path)
    except MCPHubError as exc:
        raise _fail(exc) from exc

    _console.print("[green]Image loaded successfully![/green]")
    if outcome.output:
        _console.print(f"Docker output: {outcome.output}", style="dim")
    if outcome.image:
        _console.print(f"Image: {outcome.image}")
        _console.print(f"You can now run: mcphub run {outcome.image.split(':')[0]}")


@app.command(name="run")
def run_container(
    image: str = typer.Argument(..., help="Image tag loaded with `mcphub pull`."),
    detach: bool = typer.Option(True, "--detach/--no-detach", "-d", help="Run container in detached mode."),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="Port mapping (e.g., 8080:8080)."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Container name (defaults to image name)."),
) -> None:
    """Run a Docker container from a loaded image."""

    settings = AppSettings()
    options = ContainerRunOptions(detached=detach, port_mapping=port, container_name=name)
    container_name = name or image

    _console.print(f"Running container from image '{image}'...")
    try:
        outcome = start_container(engine=build_engine(settings), image_tag=image, options=options)
    except MCPHubError as exc:
        raise _fail(exc) from exc

    if not detach:
        return

    _console.print("[green]Container started successfully![/green]")
    if outcome.container_id:
        _console.print(f"Container ID: {outcome.container_id}")
    _console.print(f"Container Name: {container_name}")
    if port:
        _console.print(f"Port mapping: {port}")
    _console.print(f"To view logs: docker logs {container_name}", style="dim")
    _console.print(f"To stop: docker stop {container_name}", style="dim")


@app.command(name="list")
def list_command(
    prefix: str = typer.Option("", "--prefix", help="Only list references under this author/prefix."),
) -> None:
    """List published MCP servers."""

    settings = AppSettings()
    try:
        references = list_published(storage=build_storage(settings), prefix=prefix)
    except MCPHubError as exc:
        raise _fail(exc) from exc

    if not references:
        _console.print("No published MCP servers found.")
        return
    _console.print(build_published_table(references))


def run() -> None:
    app()
