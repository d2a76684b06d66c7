"""Exportación del manifest `mcp.json`.

Por qué JSON con formato estable:
- El manifest lo edita una persona: indentación de 2 espacios y orden de
  campos fijo (el del modelo) para diffs limpios.
- Se escribe con el mismo modelo que luego valida el pipeline.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.errors import FilesystemError
from core.domain.models import ServerDescriptor


def render_manifest(descriptor: ServerDescriptor) -> str:
    payload = descriptor.model_dump(mode="json")
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def export_manifest_json(
    *,
    descriptor: ServerDescriptor,
    output_path: Path,
    overwrite: bool = False,
) -> Path:
    """Escribe `descriptor` como JSON UTF-8; no pisa un manifest existente salvo `overwrite`."""

    if output_path.exists() and not overwrite:
        raise FilesystemError(
            f"{output_path.name} already exists (use --force to overwrite)",
            path=output_path,
        )
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(render_manifest(descriptor), encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"error writing {output_path.name}: {exc}", path=output_path) from exc
    return output_path
