"""Find the project manifest inside an extracted tree."""

from __future__ import annotations

import os
from pathlib import Path

from core.config import MANIFEST_FILENAME
from core.domain.errors import FilesystemError, ManifestNotFound


def _depth_then_path(root: Path, candidate: Path) -> tuple[int, str]:
    relative = candidate.relative_to(root)
    return len(relative.parts), relative.as_posix()


def find_manifests(root: Path, filename: str = MANIFEST_FILENAME) -> list[Path]:
    """Every file named exactly `filename` under `root`, in walk order."""

    def _raise(exc: OSError) -> None:
        raise FilesystemError(f"error walking extracted directory: {exc}", path=exc.filename)

    found: list[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        if filename in filenames:
            candidate = Path(dirpath) / filename
            if candidate.is_file():
                found.append(candidate)
    return found


def locate_manifest(root: Path, filename: str = MANIFEST_FILENAME) -> tuple[Path, Path]:
    """Return `(manifest_path, manifest_dir)` for the shallowest manifest.

    Equal depths are broken by the smallest relative POSIX path, so the result
    does not depend on filesystem traversal order.
    """

    candidates = find_manifests(root, filename)
    if not candidates:
        raise ManifestNotFound(root, filename)

    chosen = min(candidates, key=lambda path: _depth_then_path(root, path))
    return chosen, chosen.parent
