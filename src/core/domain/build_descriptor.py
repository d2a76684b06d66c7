"""Typed Dockerfile directives.

A `BuildDescriptor` is an ordered sequence of blocks, each block an ordered
sequence of directives. Rendering joins the lines of a block with newlines and
separates blocks with one blank line, so tests can assert on structure
(`descriptor.find(Expose)`) instead of substring matching.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Iterator, TypeVar, Union


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


@dataclass(frozen=True)
class From:
    image: str

    def render(self) -> str:
        return f"FROM {self.image}"


@dataclass(frozen=True)
class Workdir:
    path: str

    def render(self) -> str:
        return f"WORKDIR {self.path}"


@dataclass(frozen=True)
class Label:
    key: str
    value: str

    def render(self) -> str:
        return f"LABEL {self.key}={_quote(self.value)}"


@dataclass(frozen=True)
class Copy:
    source: str = "."
    destination: str = "."

    def render(self) -> str:
        return f"COPY {self.source} {self.destination}"


@dataclass(frozen=True)
class Run:
    command: str

    def render(self) -> str:
        return f"RUN {self.command}"


@dataclass(frozen=True)
class Comment:
    text: str

    def render(self) -> str:
        return f"# {self.text}"


@dataclass(frozen=True)
class Expose:
    port: int

    def render(self) -> str:
        return f"EXPOSE {self.port}"


@dataclass(frozen=True)
class Healthcheck:
    """HTTP probe against `http://localhost:<port><path>`."""

    port: int
    path: str = "/health"
    interval_seconds: int = 30
    timeout_seconds: int = 3
    start_period_seconds: int = 5
    retries: int = 3

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}{self.path}"

    def render(self) -> str:
        return (
            f"HEALTHCHECK --interval={self.interval_seconds}s"
            f" --timeout={self.timeout_seconds}s"
            f" --start-period={self.start_period_seconds}s"
            f" --retries={self.retries} \\\n"
            f"  CMD curl -f {self.url} || exit 1"
        )


@dataclass(frozen=True)
class Cmd:
    argv: tuple[str, ...]

    def render(self) -> str:
        if not self.argv:
            return 'CMD [""]'
        return "CMD [" + ", ".join(_quote(arg) for arg in self.argv) + "]"


Directive = Union[From, Workdir, Label, Copy, Run, Comment, Expose, Healthcheck, Cmd]

D = TypeVar("D")


@dataclass(frozen=True)
class BuildDescriptor:
    blocks: tuple[tuple[Directive, ...], ...] = field(default_factory=tuple)

    def directives(self) -> Iterator[Directive]:
        for block in self.blocks:
            yield from block

    def find(self, kind: type[D]) -> list[D]:
        """Return every directive of `kind`, in emission order."""

        return [d for d in self.directives() if isinstance(d, kind)]

    def render(self) -> str:
        rendered_blocks = [
            "\n".join(d.render() for d in block) for block in self.blocks if block
        ]
        if not rendered_blocks:
            return ""
        return "\n\n".join(rendered_blocks) + "\n"
