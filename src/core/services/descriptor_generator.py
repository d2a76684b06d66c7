"""Dockerfile generation from a `ServerDescriptor`.

`RUNTIME_PROFILES` is the only place that knows which base image and which
install steps belong to a run command. Supporting a new language means adding
an entry to the table; nothing else branches on the command string.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from core.domain.build_descriptor import (
    BuildDescriptor,
    Cmd,
    Comment,
    Copy,
    Directive,
    Expose,
    From,
    Healthcheck,
    Label,
    Run,
    Workdir,
)
from core.domain.models import ServerDescriptor

WORKDIR = "/app"


@dataclass(frozen=True)
class RuntimeProfile:
    """Base image plus the install steps emitted for one command family.

    Every install step is a shell conditional on the language's dependency
    manifest, so it is a no-op when the project does not ship that file.
    """

    base_image: str
    install_steps: tuple[str, ...] = ()
    placeholder: str | None = None

    def install_directives(self) -> tuple[Directive, ...]:
        directives: list[Directive] = [Run(step) for step in self.install_steps]
        if self.placeholder:
            directives.append(Comment(self.placeholder))
        return tuple(directives)


def _when_present(manifest: str, command: str) -> str:
    return f"if [ -f {manifest} ]; then {command}; fi"


NODE_PROFILE = RuntimeProfile(
    base_image="node:18-alpine",
    install_steps=(
        _when_present("package.json", "npm install --only=production"),
        _when_present("yarn.lock", "yarn install --production"),
    ),
)

PYTHON_PROFILE = RuntimeProfile(
    base_image="python:3.11-slim",
    install_steps=(
        _when_present("requirements.txt", "pip install --no-cache-dir -r requirements.txt"),
        _when_present("pyproject.toml", "pip install uv && uv pip install --system ."),
        _when_present("Pipfile", "pip install pipenv && pipenv install --system --deploy"),
    ),
)

GO_PROFILE = RuntimeProfile(
    base_image="golang:1.21-alpine",
    install_steps=(
        _when_present("go.mod", "go mod download"),
        _when_present("go.mod", "go build -o main ."),
    ),
)

GENERIC_PROFILE = RuntimeProfile(
    base_image="ubuntu:22.04",
    placeholder="Add any custom installation commands here",
)

RUNTIME_PROFILES: Mapping[str, RuntimeProfile] = MappingProxyType(
    {
        "node": NODE_PROFILE,
        "python": PYTHON_PROFILE,
        "python3": PYTHON_PROFILE,
        "go": GO_PROFILE,
    }
)


def runtime_profile_for(command: str) -> RuntimeProfile:
    return RUNTIME_PROFILES.get(command, GENERIC_PROFILE)


def _metadata_block(descriptor: ServerDescriptor) -> tuple[Directive, ...]:
    labels: list[Directive] = [
        Label("name", descriptor.name),
        Label("version", descriptor.version),
        Label("description", descriptor.description),
    ]
    if descriptor.author:
        labels.append(Label("author", descriptor.author))
    return tuple(labels)


def build_descriptor_for(descriptor: ServerDescriptor) -> BuildDescriptor:
    """Structured Dockerfile for `descriptor` (pure, deterministic)."""

    profile = runtime_profile_for(descriptor.run.command)
    port = descriptor.run.port

    blocks: list[tuple[Directive, ...]] = [
        (From(profile.base_image),),
        (Workdir(WORKDIR),),
        _metadata_block(descriptor),
        (Copy(".", "."),),
        profile.install_directives(),
    ]
    if port > 0:
        blocks.append((Expose(port),))
        blocks.append((Healthcheck(port),))

    blocks.append((Cmd((descriptor.run.command, *descriptor.run.args)),))

    return BuildDescriptor(blocks=tuple(blocks))


def generate_descriptor_text(descriptor: ServerDescriptor) -> str:
    """Rendered Dockerfile text for `descriptor`."""

    return build_descriptor_for(descriptor).render()
