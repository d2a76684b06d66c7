"""Zip extraction with single-folder flattening.

Users commonly zip the project folder itself (`demo/` -> `demo.zip`), which
puts every file under one shared top-level directory. When *every* regular
entry shares that first segment it is stripped, so the extracted tree looks
the same whether the folder or its contents were zipped.
"""

from __future__ import annotations

import io
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Sequence

from core.domain.errors import ArchiveError, FilesystemError

_ARCHIVE_SUFFIX = ".zip"


def archive_stem(archive_name: str) -> str:
    """Directory key for an archive: its basename without the `.zip` suffix."""

    base = PurePosixPath(archive_name.replace("\\", "/")).name
    if base.endswith(_ARCHIVE_SUFFIX):
        base = base[: -len(_ARCHIVE_SUFFIX)]
    if not base or base in (".", ".."):
        raise ArchiveError(f"archive name {archive_name!r} does not yield a directory name")
    return base


def flattening_prefix(names: Sequence[str]) -> str:
    """Return the shared top-level prefix (`"demo/"`) or `""` when mixed.

    `names` are the regular (non-directory) entry names in archive order. The
    first entry's top segment is the candidate; the first entry that does not
    start with it cancels flattening.
    """

    prefix = ""
    for index, name in enumerate(names):
        if index == 0:
            parts = name.split("/")
            if len(parts) > 1:
                prefix = parts[0] + "/"
        elif not name.startswith(prefix):
            return ""
    return prefix


def _relative_target(name: str, prefix: str) -> PurePosixPath:
    stripped = name[len(prefix):] if prefix else name
    path = PurePosixPath(stripped)
    if path.is_absolute() or ".." in path.parts or not path.parts:
        raise ArchiveError(f"unsafe archive entry path: {name!r}")
    return path


def _reset_directory(target_dir: Path) -> None:
    try:
        if target_dir.exists():
            shutil.rmtree(target_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"failed to prepare extraction directory: {exc}", path=target_dir
        ) from exc


def normalize_archive(archive_bytes: bytes, target_dir: Path) -> Path:
    """Extract `archive_bytes` into a freshly recreated `target_dir`.

    Raises:
    - `ArchiveError` for unreadable/corrupt zips and unsafe entry paths.
    - `FilesystemError` for IO failures while writing the tree.

    A half-written tree is left in place on failure.
    """

    try:
        bundle = zipfile.ZipFile(io.BytesIO(archive_bytes))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
        raise ArchiveError(f"failed to read zip file: {exc}") from exc

    with bundle:
        entries = [info for info in bundle.infolist() if not info.is_dir()]
        prefix = flattening_prefix([info.filename for info in entries])
        # Validate every path before the target is touched.
        targets = [(info, _relative_target(info.filename, prefix)) for info in entries]

        _reset_directory(target_dir)

        for info, relative in targets:
            destination = target_dir.joinpath(*relative.parts)
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                with bundle.open(info) as source, destination.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
            except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
                raise ArchiveError(f"corrupt archive entry {info.filename!r}: {exc}") from exc
            except OSError as exc:
                raise FilesystemError(
                    f"failed to extract {info.filename!r}: {exc}", path=destination
                ) from exc

    return target_dir
