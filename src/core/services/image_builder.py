"""Build and export an image through a `ContainerEngine`."""

from __future__ import annotations

from pathlib import Path

from core.domain.errors import BuildFailure, EngineUnavailable, ExportFailure
from core.interfaces.engine import ContainerEngine


class ImageBuilder:
    """Translates engine outcomes into typed failures.

    No retries and no partial-build reuse: a failed build is reported with the
    engine's captured output verbatim.
    """

    def __init__(self, engine: ContainerEngine) -> None:
        self._engine = engine

    def ensure_available(self) -> None:
        if not self._engine.is_available():
            raise EngineUnavailable(
                "container engine is not running or not installed; start it and try again"
            )

    def build(self, context_dir: Path, image_tag: str) -> None:
        outcome = self._engine.build(context_dir, image_tag)
        if not outcome.ok:
            raise BuildFailure(outcome.output, target=image_tag)

    def export(self, image_tag: str, dest_path: Path) -> None:
        outcome = self._engine.save(image_tag, dest_path)
        if not outcome.ok:
            raise ExportFailure(outcome.output, target=image_tag)
