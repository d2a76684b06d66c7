"""Archive-to-image pipeline orchestration.

This module sequences normalization, manifest discovery, validation,
Dockerfile generation, image build and export. The CLI only hands over the
archive bytes and an engine; all scratch-directory handling lives here.
Progress is reported through `PipelineHooks`, never printed.
"""

from __future__ import annotations

import shutil
import tempfile
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Iterator

from core.config import DESCRIPTOR_FILENAME, MANIFEST_FILENAME, AppSettings
from core.domain.errors import FilesystemError
from core.domain.models import BuildResult
from core.interfaces.engine import ContainerEngine
from core.services.archive_normalizer import archive_stem, normalize_archive
from core.services.descriptor_generator import generate_descriptor_text
from core.services.image_builder import ImageBuilder
from core.services.manifest_locator import locate_manifest
from core.services.manifest_parser import parse_manifest

EXPORT_DIR_PREFIX = "mcphub-"

STAGE_ENGINE = "engine"
STAGE_EXTRACT = "extract"
STAGE_MANIFEST = "manifest"
STAGE_DESCRIPTOR = "descriptor"
STAGE_BUILD = "build"
STAGE_EXPORT = "export"


@dataclass
class PipelineOptions:
    """Explicit configuration for one pipeline run."""

    work_root: Path = Path("extracted")
    manifest_filename: str = MANIFEST_FILENAME
    descriptor_filename: str = DESCRIPTOR_FILENAME
    isolate_runs: bool = True
    run_id: str | None = None
    scratch_root: Path | None = None

    @classmethod
    def from_settings(cls, settings: AppSettings, **overrides: object) -> "PipelineOptions":
        options = cls(
            work_root=settings.work_root,
            manifest_filename=settings.manifest_filename,
            descriptor_filename=settings.descriptor_filename,
            isolate_runs=settings.isolate_runs,
        )
        return replace(options, **overrides)


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress)."""

    stage: Callable[[str], None] | None = None


@dataclass
class _TagLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


_TAG_LOCKS: dict[str, _TagLock] = {}
_TAG_LOCKS_GUARD = threading.Lock()


@contextmanager
def tag_lock(image_tag: str) -> Iterator[None]:
    """Serialize build/export for one image tag within this process.

    An entry lives only while some run holds or waits for it.
    """

    with _TAG_LOCKS_GUARD:
        entry = _TAG_LOCKS.setdefault(image_tag, _TagLock())
        entry.holders += 1
    try:
        with entry.lock:
            yield
    finally:
        with _TAG_LOCKS_GUARD:
            entry.holders -= 1
            if entry.holders == 0:
                del _TAG_LOCKS[image_tag]


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def run_root_for(options: PipelineOptions, run_id: str) -> Path:
    if options.isolate_runs:
        return options.work_root / run_id
    return options.work_root


def _write_descriptor(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"failed to write {path.name}: {exc}", path=path) from exc


def _relocate(source: Path, destination: Path) -> Path:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists():
            destination.unlink()
        shutil.move(str(source), str(destination))
    except OSError as exc:
        raise FilesystemError(
            f"failed to move exported image: {exc}", path=destination
        ) from exc
    return destination


def run_pipeline(
    *,
    archive_bytes: bytes,
    archive_name: str,
    engine: ContainerEngine,
    options: PipelineOptions | None = None,
    hooks: PipelineHooks | None = None,
) -> BuildResult:
    """Turn a zipped MCP server into a built image and an exported `.tar`.

    The first failing stage's typed error propagates unchanged. The temporary
    export directory is removed on every exit path; the extraction directory
    is left in place for inspection or upload.
    """

    options = options or PipelineOptions()
    hooks = hooks or PipelineHooks()

    def report(stage: str) -> None:
        if hooks.stage:
            hooks.stage(stage)

    run_id = options.run_id or new_run_id()
    stem = archive_stem(archive_name)
    builder = ImageBuilder(engine)

    report(STAGE_ENGINE)
    builder.ensure_available()

    run_root = run_root_for(options, run_id)
    extract_dir = run_root / stem

    report(STAGE_EXTRACT)
    normalize_archive(archive_bytes, extract_dir)

    report(STAGE_MANIFEST)
    manifest_path, manifest_dir = locate_manifest(extract_dir, options.manifest_filename)
    descriptor = parse_manifest(manifest_path)

    report(STAGE_DESCRIPTOR)
    descriptor_path = manifest_dir / options.descriptor_filename
    _write_descriptor(descriptor_path, generate_descriptor_text(descriptor))

    image_tag = descriptor.image_tag
    archive_filename = f"{stem}.tar"

    try:
        export_dir = Path(tempfile.mkdtemp(prefix=EXPORT_DIR_PREFIX, dir=options.scratch_root))
    except OSError as exc:
        raise FilesystemError(f"failed to create temp directory: {exc}") from exc

    try:
        with tag_lock(image_tag):
            report(STAGE_BUILD)
            builder.build(manifest_dir, image_tag)

            report(STAGE_EXPORT)
            exported = export_dir / archive_filename
            builder.export(image_tag, exported)

        archive_path = _relocate(exported, run_root / archive_filename)
    finally:
        shutil.rmtree(export_dir, ignore_errors=True)

    return BuildResult(
        extracted_path=extract_dir.resolve(),
        descriptor_path=descriptor_path.resolve(),
        archive_path=archive_path.resolve(),
        image_tag=image_tag,
        descriptor=descriptor,
        success=True,
        message=(
            f"Successfully processed {archive_name}. "
            f"Docker image saved as {archive_filename}"
        ),
        run_id=run_id,
    )
