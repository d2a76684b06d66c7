from __future__ import annotations

from pathlib import Path

import pytest

from core.domain.errors import LoadFailure, RunFailure, StorageError
from core.domain.models import (
    BuildResult,
    ContainerRunOptions,
    ImageReference,
    RunSpec,
    ServerDescriptor,
)
from core.interfaces.engine import EngineOutcome
from core.services.distribution import (
    fetch_archive,
    install_archive,
    list_published,
    publish_archive,
    reference_for,
    start_container,
)


def _result(tmp_path: Path, *, author: str = "alice") -> BuildResult:
    archive = tmp_path / "demo.tar"
    archive.write_bytes(b"tar-bytes")
    descriptor = ServerDescriptor(name="Demo", author=author, run=RunSpec(command="node"))
    return BuildResult(
        extracted_path=tmp_path,
        descriptor_path=tmp_path / "Dockerfile",
        archive_path=archive,
        image_tag="demo",
        descriptor=descriptor,
        run_id="r",
    )


def test_publish_uploads_under_author_and_removes_local(tmp_path, memory_storage):
    result = _result(tmp_path)

    reference = publish_archive(storage=memory_storage, result=result, default_author="anonymous")

    assert reference.object_key == "alice/Demo.tar"
    assert memory_storage.objects == {"alice/Demo.tar": b"tar-bytes"}
    assert not result.archive_path.exists()


def test_publish_keeps_local_copy_on_request(tmp_path, memory_storage):
    result = _result(tmp_path)

    publish_archive(storage=memory_storage, result=result, default_author="anonymous", remove_local=False)

    assert result.archive_path.exists()


def test_empty_author_falls_back_to_default(tmp_path):
    assert reference_for(_result(tmp_path, author=" "), default_author="team").object_key == "team/Demo.tar"


def test_upload_failure_keeps_local_archive(tmp_path):
    class BrokenStorage:
        def put(self, key, data):
            raise StorageError("error uploading to S3: AccessDenied", key=key)

    result = _result(tmp_path)

    with pytest.raises(StorageError):
        publish_archive(storage=BrokenStorage(), result=result, default_author="x")
    assert result.archive_path.exists()


def test_fetch_writes_into_download_dir(tmp_path, memory_storage):
    memory_storage.put("alice/demo.tar", b"payload")

    path = fetch_archive(
        storage=memory_storage,
        reference=ImageReference.parse("alice/demo"),
        download_dir=tmp_path / "downloaded",
    )

    assert path == tmp_path / "downloaded" / "demo.tar"
    assert path.read_bytes() == b"payload"


def test_fetch_missing_key_raises_storage_error(tmp_path, memory_storage):
    with pytest.raises(StorageError):
        fetch_archive(
            storage=memory_storage,
            reference=ImageReference(author="a", name="b"),
            download_dir=tmp_path,
        )


def test_install_archive(tmp_path, fake_engine):
    outcome = install_archive(engine=fake_engine, archive_path=tmp_path / "demo.tar")

    assert outcome.image == "demo:latest"
    assert ("load", tmp_path / "demo.tar") in fake_engine.calls


def test_install_failure(tmp_path, engine_factory):
    engine = engine_factory(load_outcome=EngineOutcome(ok=False, output="invalid tar header"))

    with pytest.raises(LoadFailure) as excinfo:
        install_archive(engine=engine, archive_path=tmp_path / "demo.tar")
    assert excinfo.value.output == "invalid tar header"


def test_start_container_defaults_name_to_tag(fake_engine):
    outcome = start_container(engine=fake_engine, image_tag="demo", options=ContainerRunOptions(port_mapping="5050:5050"))

    (call,) = [c for c in fake_engine.calls if c[0] == "run"]
    assert call[2].container_name == "demo"
    assert call[2].port_mapping == "5050:5050"
    assert outcome.container_id == "abc123"


def test_start_container_failure(engine_factory):
    engine = engine_factory(run_outcome=EngineOutcome(ok=False, output="port is already allocated"))

    with pytest.raises(RunFailure):
        start_container(engine=engine, image_tag="demo", options=ContainerRunOptions())


def test_list_published_strips_suffix_and_filters(memory_storage):
    for key in ("bob/b.tar", "alice/a.tar", "alice/notes.txt"):
        memory_storage.put(key, b"")

    assert list_published(storage=memory_storage) == ["alice/a", "bob/b"]
    assert list_published(storage=memory_storage, prefix="alice/") == ["alice/a"]


@pytest.mark.parametrize("value", ["demo", "a/b/c", "/demo", "alice/", ""])
def test_invalid_references(value):
    with pytest.raises(ValueError):
        ImageReference.parse(value)
