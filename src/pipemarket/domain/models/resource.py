from __future__ import annotations

from dataclasses import dataclass, field

RESOURCE_TYPES = frozenset({"task", "pipeline"})


@dataclass(slots=True, frozen=True)
class GithubPointer:
    owner: str
    repository: str
    path: str


@dataclass(slots=True)
class Resource:
    name: str
    description: str
    type: str
    tags: list[str]
    github: GithubPointer
    uploader_id: int
    created_at: str
    id: int | None = None


@dataclass(slots=True)
class ResourceView:
    """Catalog view of a resource with its aggregate rating joined in."""

    id: int
    name: str
    description: str
    type: str
    uploader_id: int
    downloads: int
    rating_count: int
    rating_mean: float
    created_at: str
    github: GithubPointer
    tags: list[str] = field(default_factory=list)
