"""Typed failures raised by the core.

Every pipeline stage raises its own error class; the orchestrator lets them
propagate unchanged so the CLI can map each class to a message and an exit
code.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class MCPHubError(Exception):
    """Base class for every failure raised by mcphub."""


class ArchiveError(MCPHubError):
    """The uploaded bundle is not a readable zip archive (or is unsafe)."""


class FilesystemError(MCPHubError):
    """Extraction or local IO failed."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ManifestNotFound(MCPHubError):
    def __init__(self, root: Path, filename: str) -> None:
        super().__init__(f"{filename} not found under {root}")
        self.root = root
        self.filename = filename


class ManifestInvalid(MCPHubError):
    """The manifest could not be decoded or misses required fields."""

    def __init__(
        self,
        message: str,
        *,
        fields: Sequence[str] = (),
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.fields = tuple(fields)
        self.path = path


class EngineUnavailable(MCPHubError):
    """The container engine is not installed or not running."""


class EngineCommandFailure(MCPHubError):
    """An engine command exited non-zero; `output` holds its combined output."""

    action = "engine command"

    def __init__(self, output: str, *, target: str | None = None) -> None:
        label = f"{self.action} failed"
        if target:
            label = f"{label} for {target}"
        super().__init__(f"{label}\nOutput: {output}" if output else label)
        self.output = output
        self.target = target


class BuildFailure(EngineCommandFailure):
    action = "image build"


class ExportFailure(EngineCommandFailure):
    action = "image save"


class LoadFailure(EngineCommandFailure):
    action = "image load"


class RunFailure(EngineCommandFailure):
    action = "container run"


class StorageError(MCPHubError):
    """Upload, download or listing against the object storage failed."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
