from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Callable

import pytest

from core.domain.errors import StorageError
from core.domain.models import ContainerRunOptions
from core.interfaces.engine import EngineOutcome


class FakeEngine:
    """In-memory `ContainerEngine` recording every call."""

    def __init__(
        self,
        *,
        available: bool = True,
        build_ok: bool = True,
        build_output: str = "Successfully built",
        save_ok: bool = True,
        save_output: str = "",
        load_outcome: EngineOutcome | None = None,
        run_outcome: EngineOutcome | None = None,
    ) -> None:
        self.available = available
        self.build_ok = build_ok
        self.build_output = build_output
        self.save_ok = save_ok
        self.save_output = save_output
        self.load_outcome = load_outcome or EngineOutcome(ok=True, output="Loaded image: demo:latest", image="demo:latest")
        self.run_outcome = run_outcome or EngineOutcome(ok=True, output="abc123\n", container_id="abc123")
        self.calls: list[tuple] = []
        self.dockerfiles: list[str] = []

    def is_available(self) -> bool:
        self.calls.append(("is_available",))
        return self.available

    def build(self, context_dir: Path, tag: str) -> EngineOutcome:
        self.calls.append(("build", context_dir, tag))
        dockerfile = context_dir / "Dockerfile"
        if dockerfile.exists():
            self.dockerfiles.append(dockerfile.read_text(encoding="utf-8"))
        return EngineOutcome(ok=self.build_ok, output=self.build_output)

    def save(self, tag: str, dest: Path) -> EngineOutcome:
        self.calls.append(("save", tag, dest))
        if self.save_ok:
            dest.write_bytes(b"image-tar:" + tag.encode())
        return EngineOutcome(ok=self.save_ok, output=self.save_output)

    def load(self, src: Path) -> EngineOutcome:
        self.calls.append(("load", src))
        return self.load_outcome

    def run(self, tag: str, options: ContainerRunOptions) -> EngineOutcome:
        self.calls.append(("run", tag, options))
        return self.run_outcome

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


class MemoryStorage:
    """In-memory `ObjectStorage`."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    def put(self, key: str, data: bytes) -> None:
        self.objects[key] = data

    def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise StorageError(f"error downloading from S3: NoSuchKey {key}", key=key)
        return self.objects[key]

    def list(self, prefix: str = "") -> list[str]:
        return [key for key in self.objects if key.startswith(prefix)]


def build_zip(files: dict[str, bytes | str], directories: tuple[str, ...] = ()) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as bundle:
        for directory in directories:
            bundle.writestr(zipfile.ZipInfo(directory.rstrip("/") + "/"), b"")
        for name, content in files.items():
            bundle.writestr(name, content)
    return buffer.getvalue()


def manifest_json(**overrides: object) -> str:
    payload: dict[str, object] = {
        "name": "demo",
        "version": "1.0.0",
        "description": "Demo server",
        "author": "alice",
        "license": "MIT",
        "keywords": ["demo"],
        "repository": {"type": "git", "url": "https://example.com/demo.git"},
        "run": {"command": "node", "args": ["index.js"], "port": 5050},
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    return build_zip


@pytest.fixture
def make_manifest() -> Callable[..., str]:
    return manifest_json


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def engine_factory() -> Callable[..., FakeEngine]:
    return FakeEngine


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def demo_zip(make_zip, make_manifest) -> bytes:
    return make_zip(
        {
            "demo/mcp.json": make_manifest(),
            "demo/index.js": "console.log('hi')\n",
        },
        directories=("demo/",),
    )
