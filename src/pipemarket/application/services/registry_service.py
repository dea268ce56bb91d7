from __future__ import annotations

from pipemarket.domain.models.resource import ResourceView
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo


class RegistryService:
    def __init__(self, resource_repo: ResourceRepo) -> None:
        self.resource_repo = resource_repo

    def get_all(self) -> list[ResourceView]:
        return self.resource_repo.list_views()

    def get_by_tags(self, tags: list[str] | set[str]) -> list[ResourceView]:
        wanted = sorted({str(tag).strip() for tag in tags if str(tag).strip()})
        if not wanted:
            return []
        return self.resource_repo.list_views_with_any_tag(wanted)

    def get_all_tags(self) -> list[str]:
        return self.resource_repo.list_tags()

    def get_all_by_user(self, user_id: int) -> list[ResourceView]:
        return self.resource_repo.list_views_by_uploader(user_id)
