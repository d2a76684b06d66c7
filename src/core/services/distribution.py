"""Publishing and installing exported images.

These helpers sit after the build pipeline: `push` uploads the exported
archive, `pull` downloads it and loads it into the engine, `run` starts a
container from a loaded image. Storage and engine are injected so the CLI
stays a thin rendering layer.
"""

from __future__ import annotations

from pathlib import Path

from core.domain.errors import FilesystemError, LoadFailure, RunFailure
from core.domain.models import BuildResult, ContainerRunOptions, ImageReference
from core.interfaces.engine import ContainerEngine, EngineOutcome
from core.interfaces.storage import ObjectStorage
from core.services.image_builder import ImageBuilder

ARCHIVE_SUFFIX = ".tar"


def reference_for(result: BuildResult, *, default_author: str) -> ImageReference:
    """Storage reference of a build: `<author>/<name>` from the manifest."""

    author = result.descriptor.author.strip() or default_author
    return ImageReference(author=author, name=result.descriptor.name)


def publish_archive(
    *,
    storage: ObjectStorage,
    result: BuildResult,
    default_author: str,
    remove_local: bool = True,
) -> ImageReference:
    """Upload the exported archive; remove the local copy once stored."""

    reference = reference_for(result, default_author=default_author)
    try:
        data = result.archive_path.read_bytes()
    except OSError as exc:
        raise FilesystemError(
            f"error opening tar file: {exc}", path=result.archive_path
        ) from exc

    storage.put(reference.object_key, data)

    if remove_local:
        try:
            result.archive_path.unlink()
        except OSError as exc:
            raise FilesystemError(
                f"error removing local tar file: {exc}", path=result.archive_path
            ) from exc
    return reference


def fetch_archive(
    *,
    storage: ObjectStorage,
    reference: ImageReference,
    download_dir: Path,
) -> Path:
    """Download `reference` into `<download_dir>/<name>.tar`."""

    data = storage.get(reference.object_key)
    output_path = download_dir / f"{reference.name}{ARCHIVE_SUFFIX}"
    try:
        download_dir.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as exc:
        raise FilesystemError(f"error writing to file: {exc}", path=output_path) from exc
    return output_path


def install_archive(*, engine: ContainerEngine, archive_path: Path) -> EngineOutcome:
    """Load an image archive into the engine.

    Callers check engine availability before downloading, so it is not probed
    again here.
    """

    outcome = engine.load(archive_path)
    if not outcome.ok:
        raise LoadFailure(outcome.output, target=str(archive_path))
    return outcome


def start_container(
    *,
    engine: ContainerEngine,
    image_tag: str,
    options: ContainerRunOptions,
) -> EngineOutcome:
    ImageBuilder(engine).ensure_available()
    if options.container_name is None:
        options = options.model_copy(update={"container_name": image_tag})
    outcome = engine.run(image_tag, options)
    if not outcome.ok:
        raise RunFailure(outcome.output, target=image_tag)
    return outcome


def list_published(*, storage: ObjectStorage, prefix: str = "") -> list[str]:
    """References (`author/name`) of every published archive, sorted."""

    return sorted(
        key[: -len(ARCHIVE_SUFFIX)]
        for key in storage.list(prefix)
        if key.endswith(ARCHIVE_SUFFIX)
    )
