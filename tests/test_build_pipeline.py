from __future__ import annotations

import threading

import pytest

from core.config import AppSettings
from core.domain.errors import (
    ArchiveError,
    BuildFailure,
    EngineUnavailable,
    ExportFailure,
    ManifestInvalid,
    ManifestNotFound,
)
from core.services import build_pipeline
from core.services.build_pipeline import (
    PipelineHooks,
    PipelineOptions,
    run_pipeline,
    tag_lock,
)


@pytest.fixture
def options(tmp_path) -> PipelineOptions:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return PipelineOptions(work_root=tmp_path / "work", run_id="run1", scratch_root=scratch)


def _run(archive_bytes, engine, options, name="demo.zip", hooks=None):
    return run_pipeline(
        archive_bytes=archive_bytes,
        archive_name=name,
        engine=engine,
        options=options,
        hooks=hooks,
    )


def test_demo_archive_builds_and_exports(demo_zip, fake_engine, options):
    result = _run(demo_zip, fake_engine, options)

    assert result.success is True
    assert result.image_tag == "demo"
    assert result.run_id == "run1"
    assert result.extracted_path == (options.work_root / "run1" / "demo").resolve()
    assert result.extracted_path.is_absolute()
    assert result.descriptor_path == result.extracted_path / "Dockerfile"
    assert result.archive_path == (options.work_root / "run1" / "demo.tar").resolve()
    assert result.archive_path.read_bytes() == b"image-tar:demo"
    assert result.descriptor.run.port == 5050

    text = result.descriptor_path.read_text(encoding="utf-8")
    assert "FROM node:18-alpine" in text
    assert "EXPOSE 5050" in text
    assert 'CMD ["node", "index.js"]' in text
    assert fake_engine.dockerfiles == [text]

    assert ("build", options.work_root / "run1" / "demo", "demo") in fake_engine.calls


def test_temp_export_dir_removed_after_success(demo_zip, fake_engine, options):
    _run(demo_zip, fake_engine, options)

    assert list(options.scratch_root.iterdir()) == []


def test_missing_manifest_fails_before_build(make_zip, fake_engine, options):
    data = make_zip({"demo/index.js": "x", "demo/package.json": "{}"})

    with pytest.raises(ManifestNotFound):
        _run(data, fake_engine, options)

    assert not fake_engine.called("build")
    assert not fake_engine.called("save")


def test_empty_run_command_fails_with_manifest_invalid(make_zip, make_manifest, fake_engine, options):
    data = make_zip({"demo/mcp.json": make_manifest(run={"command": "", "args": [], "port": 0})})

    with pytest.raises(ManifestInvalid) as excinfo:
        _run(data, fake_engine, options)

    assert "run.command" in excinfo.value.fields
    assert not fake_engine.called("build")


def test_build_failure_skips_export_and_cleans_scratch(demo_zip, engine_factory, options):
    engine = engine_factory(build_ok=False, build_output="npm ERR! code E404")

    with pytest.raises(BuildFailure) as excinfo:
        _run(demo_zip, engine, options)

    assert excinfo.value.output == "npm ERR! code E404"
    assert not engine.called("save")
    assert list(options.scratch_root.iterdir()) == []
    # The extracted tree stays for inspection.
    assert (options.work_root / "run1" / "demo" / "Dockerfile").exists()


def test_export_failure_cleans_scratch(demo_zip, engine_factory, options):
    engine = engine_factory(save_ok=False, save_output="denied")

    with pytest.raises(ExportFailure):
        _run(demo_zip, engine, options)
    assert list(options.scratch_root.iterdir()) == []


def test_unavailable_engine_fails_before_extraction(demo_zip, engine_factory, options):
    with pytest.raises(EngineUnavailable):
        _run(demo_zip, engine_factory(available=False), options)

    assert not options.work_root.exists()


def test_corrupt_archive(fake_engine, options):
    with pytest.raises(ArchiveError):
        _run(b"PK\x03\x04 truncated", fake_engine, options)
    assert not fake_engine.called("build")


def test_nested_manifest_sets_build_context(make_zip, make_manifest, fake_engine, options):
    data = make_zip(
        {
            "repo/README.md": "readme",
            "repo/server/mcp.json": make_manifest(name="Nested"),
            "repo/server/index.js": "x",
            "repo/examples/other/mcp.json": make_manifest(name="other"),
        }
    )

    result = _run(data, fake_engine, options, name="repo.zip")

    assert result.image_tag == "nested"
    assert result.descriptor_path.parent.name == "server"
    assert ("build", options.work_root / "run1" / "repo" / "server", "nested") in fake_engine.calls
    assert result.extracted_path.name == "repo"


def test_without_isolation_uses_archive_keyed_directory(demo_zip, fake_engine, options):
    options.isolate_runs = False

    result = _run(demo_zip, fake_engine, options)

    assert result.extracted_path == (options.work_root / "demo").resolve()
    assert result.archive_path == (options.work_root / "demo.tar").resolve()


def test_generated_run_ids_are_unique(demo_zip, fake_engine, tmp_path):
    options = PipelineOptions(work_root=tmp_path / "work")

    first = _run(demo_zip, fake_engine, options)
    second = _run(demo_zip, fake_engine, options)

    assert first.run_id != second.run_id
    assert first.extracted_path != second.extracted_path
    assert first.extracted_path.exists()


def test_hooks_report_stages_in_order(demo_zip, fake_engine, options):
    stages: list[str] = []

    _run(demo_zip, fake_engine, options, hooks=PipelineHooks(stage=stages.append))

    assert stages == ["engine", "extract", "manifest", "descriptor", "build", "export"]


def test_options_from_settings(tmp_path):
    settings = AppSettings(work_root=tmp_path / "w", isolate_runs=False, manifest_filename="server.json")

    options = PipelineOptions.from_settings(settings, run_id="fixed")

    assert options.work_root == tmp_path / "w"
    assert options.isolate_runs is False
    assert options.manifest_filename == "server.json"
    assert options.run_id == "fixed"


def test_tag_lock_serializes_same_tag():
    events: list[str] = []
    entered = threading.Event()
    release = threading.Event()

    def holder() -> None:
        with tag_lock("same"):
            events.append("first-in")
            entered.set()
            release.wait(timeout=5)
            events.append("first-out")

    def contender() -> None:
        with tag_lock("same"):
            events.append("second-in")

    first = threading.Thread(target=holder)
    first.start()
    entered.wait(timeout=5)
    second = threading.Thread(target=contender)
    second.start()
    second.join(timeout=0.2)
    assert events == ["first-in"]

    release.set()
    first.join(timeout=5)
    second.join(timeout=5)
    assert events == ["first-in", "first-out", "second-in"]


def test_options_from_settings_rejects_unknown_override(tmp_path):
    settings = AppSettings(work_root=tmp_path / "w")

    with pytest.raises(TypeError):
        PipelineOptions.from_settings(settings, run_idd="typo")


def test_tag_lock_entries_are_released():
    with tag_lock("transient"):
        assert "transient" in build_pipeline._TAG_LOCKS

    with pytest.raises(RuntimeError):
        with tag_lock("transient"):
            raise RuntimeError("build crashed")

    assert "transient" not in build_pipeline._TAG_LOCKS


def test_pipeline_leaves_no_tag_locks_behind(demo_zip, fake_engine, options):
    _run(demo_zip, fake_engine, options)

    assert build_pipeline._TAG_LOCKS == {}
