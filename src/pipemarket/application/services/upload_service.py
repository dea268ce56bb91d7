from __future__ import annotations

import logging
from dataclasses import dataclass

from pipemarket.application.services.resource_service import ResourceService
from pipemarket.core.errors import InvalidResourceTypeError, ValidationError
from pipemarket.domain.models.resource import RESOURCE_TYPES, GithubPointer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadResult:
    resource_id: int
    name: str
    type: str
    tags: list[str]


class UploadService:
    def __init__(self, resource_service: ResourceService) -> None:
        self.resource_service = resource_service

    def new_upload(
        self,
        name: str,
        description: str | None,
        type: str,
        tags: list[str] | None,
        github: GithubPointer,
        user_id: int,
    ) -> UploadResult:
        clean_name = _opt_str(name)
        if not clean_name:
            raise ValidationError("Resource name must not be empty")

        resource_type = (_opt_str(type) or "").lower()
        if resource_type not in RESOURCE_TYPES:
            allowed = ", ".join(sorted(RESOURCE_TYPES))
            raise InvalidResourceTypeError(f"Unknown resource type {type!r}; expected one of: {allowed}")

        pointer = _clean_pointer(github)
        clean_tags = _dedupe_tags(tags or [])

        resource_id = self.resource_service.create_resource(
            name=clean_name,
            description=_opt_str(description) or "",
            type=resource_type,
            tags=clean_tags,
            github=pointer,
            uploader_id=user_id,
        )
        logger.info("User %s uploaded %s %r as resource %s", user_id, resource_type, clean_name, resource_id)
        return UploadResult(resource_id=resource_id, name=clean_name, type=resource_type, tags=clean_tags)


def _clean_pointer(github: GithubPointer | None) -> GithubPointer:
    if github is None:
        raise ValidationError("GitHub details are required")
    owner = _opt_str(github.owner)
    repository = _opt_str(github.repository)
    path = _opt_str(github.path)
    missing = [label for label, value in (("owner", owner), ("repository", repository), ("path", path)) if not value]
    if missing:
        raise ValidationError(f"GitHub details missing: {', '.join(missing)}")
    return GithubPointer(owner=owner, repository=repository, path=path)


def _dedupe_tags(tags: list[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        value = _opt_str(tag)
        if value and value not in seen:
            seen.append(value)
    return seen


def _opt_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None
