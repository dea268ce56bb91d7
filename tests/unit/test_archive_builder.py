import threading
import zipfile
from pathlib import Path

import pytest

from pipemarket.core.errors import SourceNotFoundError, ValidationError
from pipemarket.infrastructure.archive.builder import ArchiveBuilder


def test_build_archive_zips_task_files(tmp_path: Path) -> None:
    catalog = tmp_path / "catalog"
    task_dir = catalog / "git-clone"
    (task_dir / "samples").mkdir(parents=True)
    (task_dir / "git-clone.yaml").write_text("kind: Task\n", encoding="utf-8")
    (task_dir / "samples" / "run.yaml").write_text("kind: TaskRun\n", encoding="utf-8")

    builder = ArchiveBuilder(catalog, tmp_path / "archive")
    path = builder.build_archive("git-clone")

    assert path == tmp_path / "archive" / "git-clone.zip"
    with zipfile.ZipFile(path) as zf:
        assert sorted(zf.namelist()) == ["git-clone/git-clone.yaml", "git-clone/samples/run.yaml"]
        assert zf.read("git-clone/git-clone.yaml") == b"kind: Task\n"
    assert list((tmp_path / "archive").glob("*.tmp")) == []


def test_build_archive_for_unknown_task(tmp_path: Path) -> None:
    builder = ArchiveBuilder(tmp_path / "catalog", tmp_path / "archive")

    with pytest.raises(SourceNotFoundError):
        builder.build_archive("nope")


@pytest.mark.parametrize("name", ["../etc", "", "a/b", ".hidden"])
def test_build_archive_rejects_unsafe_names(tmp_path: Path, name: str) -> None:
    builder = ArchiveBuilder(tmp_path / "catalog", tmp_path / "archive")

    with pytest.raises(ValidationError):
        builder.build_archive(name)


def test_concurrent_builds_of_same_task_do_not_collide(tmp_path: Path) -> None:
    catalog = tmp_path / "catalog"
    task_dir = catalog / "git-clone"
    task_dir.mkdir(parents=True)
    for index in range(200):
        (task_dir / f"step-{index:03d}.yaml").write_text(f"step: {index}\n" * 50, encoding="utf-8")

    builder = ArchiveBuilder(catalog, tmp_path / "archive")
    barrier = threading.Barrier(4)
    errors: list[Exception] = []

    def worker() -> None:
        barrier.wait()
        try:
            builder.build_archive("git-clone")
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    with zipfile.ZipFile(tmp_path / "archive" / "git-clone.zip") as zf:
        assert zf.testzip() is None
        assert len(zf.namelist()) == 200
    assert list((tmp_path / "archive").glob("*.tmp")) == []


def test_failed_build_removes_temp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    task_dir = tmp_path / "catalog" / "git-clone"
    task_dir.mkdir(parents=True)
    (task_dir / "git-clone.yaml").write_text("kind: Task\n", encoding="utf-8")

    def broken_write(self: zipfile.ZipFile, *args: object, **kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(zipfile.ZipFile, "write", broken_write)
    builder = ArchiveBuilder(tmp_path / "catalog", tmp_path / "archive")

    with pytest.raises(OSError, match="disk full"):
        builder.build_archive("git-clone")
    assert list((tmp_path / "archive").iterdir()) == []
