from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pipemarket.application.services.resource_service import ResourceService
from pipemarket.core.errors import SourceNotFoundError


class SourceFetcher(Protocol):
    def fetch_file(self, owner: str, repository: str, path: str) -> str: ...


class ArchiveBuilder(Protocol):
    def build_archive(self, name: str) -> Path: ...


class SourceService:
    def __init__(
        self,
        resource_service: ResourceService,
        fetcher: SourceFetcher,
        archive_builder: ArchiveBuilder,
        tekton_dir: Path,
    ) -> None:
        self.resource_service = resource_service
        self.fetcher = fetcher
        self.archive_builder = archive_builder
        self.tekton_dir = tekton_dir

    def get_resource_yaml(self, resource_id: int) -> str:
        pointer = self.resource_service.get_github_details(resource_id)
        return self.fetcher.fetch_file(pointer.owner, pointer.repository, pointer.path)

    def get_readme_path(self, resource_id: int) -> Path | None:
        if not self.resource_service.does_readme_exist(resource_id):
            return None
        return self.resource_service.readme_path(resource_id)

    def download_task_file(self, resource_id: int) -> Path:
        path = self.tekton_dir / f"{int(resource_id)}.yaml"
        if not path.is_file():
            # Unknown ids report ResourceNotFoundError ahead of the missing file.
            self.resource_service.get_by_id(resource_id)
            raise SourceNotFoundError(f"Task file missing for resource: {resource_id}")
        self.resource_service.increment_downloads(resource_id)
        return path

    def build_task_archive(self, name: str) -> Path:
        return self.archive_builder.build_archive(name)
