"""Decode and validate `mcp.json` into a `ServerDescriptor`."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.domain.errors import FilesystemError, ManifestInvalid
from core.domain.models import ServerDescriptor


def _error_fields(exc: ValidationError) -> list[str]:
    fields: list[str] = []
    for error in exc.errors():
        label = ".".join(str(part) for part in error.get("loc", ()))
        if label and label not in fields:
            fields.append(label)
    return fields


def missing_required_fields(descriptor: ServerDescriptor) -> list[str]:
    missing: list[str] = []
    if not descriptor.name.strip():
        missing.append("name")
    if not descriptor.run.command.strip():
        missing.append("run.command")
    return missing


def descriptor_from_payload(payload: Any, *, path: Path | None = None) -> ServerDescriptor:
    """Validate an already-decoded JSON payload."""

    if not isinstance(payload, dict):
        raise ManifestInvalid(
            f"manifest must be a JSON object, got {type(payload).__name__}",
            path=path,
        )

    try:
        descriptor = ServerDescriptor.model_validate(payload)
    except ValidationError as exc:
        fields = _error_fields(exc)
        raise ManifestInvalid(
            f"failed to parse manifest: invalid field(s) {', '.join(fields)}",
            fields=fields,
            path=path,
        ) from exc

    missing = missing_required_fields(descriptor)
    if missing:
        quoted = " and ".join(f"'{field}'" for field in missing)
        raise ManifestInvalid(
            f"manifest missing required field(s) {quoted}",
            fields=missing,
            path=path,
        )
    return descriptor


def parse_manifest(path: Path) -> ServerDescriptor:
    """Read `path` and return a validated descriptor.

    Raises `FilesystemError` when the file cannot be read and `ManifestInvalid`
    on any decode or validation problem.
    """

    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise FilesystemError(f"failed to read manifest: {exc}", path=path) from exc

    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestInvalid(f"failed to parse manifest: {exc}", path=path) from exc

    return descriptor_from_payload(payload, path=path)
