from __future__ import annotations

import re
import zipfile
from pathlib import Path

from pipemarket.core.errors import SourceNotFoundError, ValidationError
from pipemarket.core.files import ensure_directory, replace_atomic, temp_path_for

_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class ArchiveBuilder:
    """Bundles the files of a named task into a zip for download."""

    def __init__(self, catalog_dir: Path, archive_dir: Path) -> None:
        self.catalog_dir = catalog_dir
        self.archive_dir = archive_dir

    def archive_path_for(self, name: str) -> Path:
        return self.archive_dir / f"{name}.zip"

    def build_archive(self, name: str) -> Path:
        if not _SAFE_NAME.match(name or ""):
            raise ValidationError(f"Invalid task name: {name!r}")

        source_dir = self.catalog_dir / name
        if not source_dir.is_dir():
            raise SourceNotFoundError(f"No catalog files for task: {name}")

        files = sorted(p for p in source_dir.rglob("*") if p.is_file())
        if not files:
            raise SourceNotFoundError(f"No catalog files for task: {name}")

        ensure_directory(self.archive_dir)
        dst = self.archive_path_for(name)
        temp_path = temp_path_for(dst)
        try:
            with zipfile.ZipFile(temp_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for path in files:
                    zf.write(path, arcname=str(Path(name) / path.relative_to(source_dir)))
            replace_atomic(temp_path, dst)
        finally:
            temp_path.unlink(missing_ok=True)
        return dst
