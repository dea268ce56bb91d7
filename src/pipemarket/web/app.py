from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from pipemarket.application.services.auth_service import AuthService, IdentityProvider
from pipemarket.application.services.project_service import ProjectService
from pipemarket.application.services.rating_service import RatingService
from pipemarket.application.services.registry_service import RegistryService
from pipemarket.application.services.resource_service import ResourceService
from pipemarket.application.services.source_service import (
    ArchiveBuilder,
    SourceFetcher,
    SourceService,
)
from pipemarket.application.services.upload_service import UploadService
from pipemarket.core.config import AppPaths, load_github_settings
from pipemarket.core.errors import MarketError
from pipemarket.domain.models.resource import GithubPointer
from pipemarket.infrastructure.archive.builder import ArchiveBuilder as ZipArchiveBuilder
from pipemarket.infrastructure.db.repos.rating_repo import RatingRepo
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo
from pipemarket.infrastructure.db.repos.user_repo import UserRepo
from pipemarket.infrastructure.github.client import GithubIdentityProvider, GithubSourceFetcher

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    "not_found": 404,
    "validation": 400,
    "conflict": 409,
    "transient": 503,
}


class RatingRequest(BaseModel):
    user_id: int
    resource_id: int
    stars: int
    prev_stars: int | None = None


class PrevStarsRequest(BaseModel):
    user_id: int
    resource_id: int


class GithubDetailsBody(BaseModel):
    owner: str = ""
    repository: str = ""
    path: str = ""


class UploadRequest(BaseModel):
    name: str
    description: str = ""
    type: str
    tags: list[str] = Field(default_factory=list)
    github: GithubDetailsBody
    user_id: int


class OAuthCodeRequest(BaseModel):
    code: str


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


def create_app(
    paths: AppPaths,
    *,
    identity_provider: IdentityProvider | None = None,
    source_fetcher: SourceFetcher | None = None,
    archive_builder: ArchiveBuilder | None = None,
) -> FastAPI:
    app = FastAPI(title="Pipelines Marketplace", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    ProjectService(paths).init_project()
    github_settings = load_github_settings()
    identity = identity_provider or GithubIdentityProvider(github_settings)
    fetcher = source_fetcher or GithubSourceFetcher(github_settings)
    builder = archive_builder or ZipArchiveBuilder(paths.catalog_dir, paths.archive_dir)

    def get_resource_repo() -> ResourceRepo:
        return ResourceRepo(paths.db_path)

    def get_resource_service() -> ResourceService:
        return ResourceService(get_resource_repo(), readme_dir=paths.readme_dir)

    def get_rating_service() -> RatingService:
        return RatingService(RatingRepo(paths.db_path))

    def get_registry_service() -> RegistryService:
        return RegistryService(get_resource_repo())

    def get_upload_service() -> UploadService:
        return UploadService(get_resource_service())

    def get_auth_service() -> AuthService:
        return AuthService(identity=identity, user_repo=UserRepo(paths.db_path))

    def get_source_service() -> SourceService:
        return SourceService(
            resource_service=get_resource_service(),
            fetcher=fetcher,
            archive_builder=builder,
            tekton_dir=paths.tekton_dir,
        )

    @app.exception_handler(MarketError)
    async def handle_market_error(request: Request, exc: MarketError) -> JSONResponse:
        status_code = _STATUS_BY_KIND.get(exc.kind, 500)
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"ok": False, "kind": exc.kind, "detail": str(exc)},
        )

    @app.get("/resources")
    def api_resources() -> list[dict[str, Any]]:
        return _jsonable(get_registry_service().get_all())

    @app.get("/resources/filter")
    def api_resources_filter(tags: str = Query(default="")) -> list[dict[str, Any]]:
        return _jsonable(get_registry_service().get_by_tags(tags.split("|")))

    @app.get("/resources/user/{user_id}")
    def api_resources_by_user(user_id: int) -> list[dict[str, Any]]:
        return _jsonable(get_registry_service().get_all_by_user(user_id))

    @app.get("/tags")
    def api_tags() -> list[str]:
        return get_registry_service().get_all_tags()

    @app.get("/resource/{resource_id}")
    def api_resource_detail(resource_id: int) -> dict[str, Any]:
        return _jsonable(get_resource_service().get_by_id(resource_id))

    @app.get("/resource/{resource_id}/yaml")
    def api_resource_yaml(resource_id: int) -> PlainTextResponse:
        content = get_source_service().get_resource_yaml(resource_id)
        return PlainTextResponse(content, media_type="application/x-yaml")

    @app.get("/resource/{resource_id}/readme", response_model=None)
    def api_resource_readme(resource_id: int) -> FileResponse | JSONResponse:
        path = get_source_service().get_readme_path(resource_id)
        if path is None:
            return JSONResponse(content="noreadme")
        return FileResponse(path, media_type="text/markdown")

    @app.get("/download/{resource_id}")
    def api_download(resource_id: int) -> FileResponse:
        path = get_source_service().download_task_file(resource_id)
        return FileResponse(path, media_type="application/x-yaml", filename=path.name)

    @app.get("/task/{name}/files")
    def api_task_files(name: str) -> FileResponse:
        path = get_source_service().build_task_archive(name)
        return FileResponse(path, media_type="application/zip", filename=path.name)

    @app.get("/rating/{resource_id}")
    def api_rating_details(resource_id: int) -> dict[str, Any]:
        return _jsonable(get_rating_service().get_rating_details(resource_id))

    @app.post("/rating/prev")
    def api_rating_prev(req: PrevStarsRequest) -> dict[str, Any]:
        rating = get_rating_service().get_user_rating(req.user_id, req.resource_id)
        return {"ok": True, "rated": rating.is_rated, **_jsonable(rating)}

    @app.post("/rating")
    def api_rating_add(req: RatingRequest) -> dict[str, Any]:
        details = get_rating_service().add_rating(req.user_id, req.resource_id, req.stars, req.prev_stars)
        return {"ok": True, **_jsonable(details)}

    @app.put("/rating")
    def api_rating_update(req: RatingRequest) -> dict[str, Any]:
        details = get_rating_service().update_rating(req.user_id, req.resource_id, req.stars, req.prev_stars)
        return {"ok": True, **_jsonable(details)}

    @app.post("/upload")
    def api_upload(req: UploadRequest) -> dict[str, Any]:
        result = get_upload_service().new_upload(
            name=req.name,
            description=req.description,
            type=req.type,
            tags=req.tags,
            github=GithubPointer(
                owner=req.github.owner,
                repository=req.github.repository,
                path=req.github.path,
            ),
            user_id=req.user_id,
        )
        return {"ok": True, **_jsonable(result)}

    @app.post("/oauth/redirect")
    def api_oauth_redirect(req: OAuthCodeRequest) -> dict[str, Any]:
        result = get_auth_service().login_with_github(req.code)
        return {"ok": True, "token": result.session_token, "user_id": result.user_id, "username": result.username}

    return app
