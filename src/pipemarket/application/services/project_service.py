from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pipemarket.core.config import AppPaths
from pipemarket.core.files import ensure_directory
from pipemarket.infrastructure.db.sqlite import initialize_schema

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "infrastructure" / "db" / "schema.sql"


@dataclass(slots=True)
class InitResult:
    paths_created: list[Path]
    db_path: Path


class ProjectService:
    def __init__(self, paths: AppPaths) -> None:
        self.paths = paths

    def init_project(self) -> InitResult:
        paths_created: list[Path] = []

        for path in (
            self.paths.data_dir,
            self.paths.readme_dir,
            self.paths.tekton_dir,
            self.paths.catalog_dir,
            self.paths.archive_dir,
        ):
            if not path.exists():
                paths_created.append(path)
            ensure_directory(path)

        initialize_schema(self.paths.db_path, SCHEMA_PATH)

        return InitResult(paths_created=paths_created, db_path=self.paths.db_path)

    def is_initialized(self) -> bool:
        return self.paths.db_path.exists()
