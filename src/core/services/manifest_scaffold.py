"""Defaults and helpers for `mcphub init`."""

from __future__ import annotations

from pathlib import Path

from core.domain.models import Repository, RunSpec, ServerDescriptor

DEFAULT_PROJECT_NAME = "my-project"
DEFAULT_VERSION = "1.0.0"
DEFAULT_LICENSE = "MIT"
DEFAULT_REPOSITORY_TYPE = "git"
DEFAULT_COMMAND = "node"
DEFAULT_ARGS = ("index.js",)
DEFAULT_PORT = 5050


def split_csv(value: str) -> list[str]:
    """Split a comma separated answer, trimming blanks."""

    return [part.strip() for part in value.split(",") if part.strip()]


def project_name_for(directory: Path) -> str:
    return directory.resolve().name or DEFAULT_PROJECT_NAME


def default_descriptor(project_name: str = DEFAULT_PROJECT_NAME) -> ServerDescriptor:
    return ServerDescriptor(
        name=project_name,
        version=DEFAULT_VERSION,
        license=DEFAULT_LICENSE,
        repository=Repository(type=DEFAULT_REPOSITORY_TYPE),
        run=RunSpec(command=DEFAULT_COMMAND, args=list(DEFAULT_ARGS), port=DEFAULT_PORT),
    )


def descriptor_from_answers(
    *,
    name: str,
    version: str = "",
    description: str = "",
    author: str = "",
    license: str = "",
    keywords: str = "",
    repository_type: str = "",
    repository_url: str = "",
    command: str = "",
    args: str = "",
    port: int | None = None,
) -> ServerDescriptor:
    """Build a descriptor from interactive answers, applying the init defaults.

    Blank answers fall back to the defaults; a port of 0 or less does too.
    """

    return ServerDescriptor(
        name=name.strip(),
        version=version.strip() or DEFAULT_VERSION,
        description=description.strip(),
        author=author.strip(),
        license=license.strip() or DEFAULT_LICENSE,
        keywords=split_csv(keywords),
        repository=Repository(
            type=repository_type.strip() or DEFAULT_REPOSITORY_TYPE,
            url=repository_url.strip(),
        ),
        run=RunSpec(
            command=command.strip() or DEFAULT_COMMAND,
            args=split_csv(args) or list(DEFAULT_ARGS),
            port=port if port and port > 0 else DEFAULT_PORT,
        ),
    )
