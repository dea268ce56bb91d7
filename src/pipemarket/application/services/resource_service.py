from __future__ import annotations

from pathlib import Path

from pipemarket.core.errors import ResourceNotFoundError
from pipemarket.core.time import now_utc_iso
from pipemarket.domain.models.resource import GithubPointer, Resource, ResourceView
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo


class ResourceService:
    def __init__(self, resource_repo: ResourceRepo, readme_dir: Path) -> None:
        self.resource_repo = resource_repo
        self.readme_dir = readme_dir

    def create_resource(
        self,
        name: str,
        description: str,
        type: str,
        tags: list[str],
        github: GithubPointer,
        uploader_id: int,
    ) -> int:
        resource = Resource(
            name=name,
            description=description,
            type=type,
            tags=list(dict.fromkeys(tags)),
            github=github,
            uploader_id=uploader_id,
            created_at=now_utc_iso(),
        )
        return self.resource_repo.insert(resource)

    def increment_downloads(self, resource_id: int) -> None:
        if not self.resource_repo.increment_downloads(resource_id):
            raise ResourceNotFoundError(resource_id)

    def get_by_id(self, resource_id: int) -> ResourceView:
        view = self.resource_repo.get_view(resource_id)
        if view is None:
            raise ResourceNotFoundError(resource_id)
        return view

    def get_github_details(self, resource_id: int) -> GithubPointer:
        pointer = self.resource_repo.get_github_details(resource_id)
        if pointer is None:
            raise ResourceNotFoundError(resource_id)
        return pointer

    def readme_path(self, resource_id: int) -> Path:
        return self.readme_dir / f"{int(resource_id)}.md"

    def does_readme_exist(self, resource_id: int) -> bool:
        return self.readme_path(resource_id).is_file()
