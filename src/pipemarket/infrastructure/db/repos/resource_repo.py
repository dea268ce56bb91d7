from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from pipemarket.domain.models.resource import GithubPointer, Resource, ResourceView
from pipemarket.domain.models.rating import mean_of
from pipemarket.infrastructure.db.sqlite import get_connection, immediate_transaction

_VIEW_SELECT = """
    SELECT
        r.id,
        r.name,
        r.description,
        r.type,
        r.uploader_id,
        r.downloads,
        r.rating_count,
        r.rating_sum,
        r.created_at,
        g.owner AS github_owner,
        g.repository AS github_repository,
        g.path AS github_path,
        (
            SELECT json_group_array(tag)
            FROM (SELECT t.tag FROM resource_tags t WHERE t.resource_id = r.id ORDER BY t.tag)
        ) AS tags_json
    FROM resources r
    LEFT JOIN github_details g ON g.resource_id = r.id
"""

class ResourceRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, resource: Resource) -> int:
        with immediate_transaction(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO resources (
                    name,
                    description,
                    type,
                    uploader_id,
                    created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    resource.name,
                    resource.description,
                    resource.type,
                    resource.uploader_id,
                    resource.created_at,
                ),
            )
            resource_id = int(cursor.lastrowid)
            conn.executemany(
                "INSERT OR IGNORE INTO resource_tags (resource_id, tag) VALUES (?, ?)",
                [(resource_id, tag) for tag in resource.tags],
            )
            conn.execute(
                """
                INSERT INTO github_details (resource_id, owner, repository, path)
                VALUES (?, ?, ?, ?)
                """,
                (
                    resource_id,
                    resource.github.owner,
                    resource.github.repository,
                    resource.github.path,
                ),
            )
        resource.id = resource_id
        return resource_id

    def increment_downloads(self, resource_id: int) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE resources SET downloads = downloads + 1 WHERE id = ?",
                (resource_id,),
            )
            conn.commit()
        return cursor.rowcount > 0

    def get_view(self, resource_id: int) -> ResourceView | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(f"{_VIEW_SELECT} WHERE r.id = ?", (resource_id,)).fetchone()
        return self._to_view(row) if row else None

    def list_views(self) -> list[ResourceView]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(f"{_VIEW_SELECT} ORDER BY r.id").fetchall()
        return [self._to_view(row) for row in rows]

    def list_views_with_any_tag(self, tags: list[str]) -> list[ResourceView]:
        if not tags:
            return []
        placeholders = ", ".join("?" for _ in tags)
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                f"""
                {_VIEW_SELECT}
                WHERE r.id IN (
                    SELECT DISTINCT resource_id FROM resource_tags WHERE tag IN ({placeholders})
                )
                ORDER BY r.id
                """,
                tuple(tags),
            ).fetchall()
        return [self._to_view(row) for row in rows]

    def list_views_by_uploader(self, uploader_id: int) -> list[ResourceView]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                f"{_VIEW_SELECT} WHERE r.uploader_id = ? ORDER BY r.id",
                (uploader_id,),
            ).fetchall()
        return [self._to_view(row) for row in rows]

    def list_tags(self) -> list[str]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT DISTINCT tag FROM resource_tags ORDER BY tag").fetchall()
        return [row["tag"] for row in rows]

    def get_github_details(self, resource_id: int) -> GithubPointer | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT owner, repository, path FROM github_details WHERE resource_id = ?",
                (resource_id,),
            ).fetchone()
        if row is None:
            return None
        return GithubPointer(owner=row["owner"], repository=row["repository"], path=row["path"])

    @staticmethod
    def _to_view(row: sqlite3.Row) -> ResourceView:
        tags = json.loads(row["tags_json"]) if row["tags_json"] else []
        return ResourceView(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            type=row["type"],
            uploader_id=row["uploader_id"],
            downloads=row["downloads"],
            rating_count=row["rating_count"],
            rating_mean=mean_of(row["rating_sum"], row["rating_count"]),
            created_at=row["created_at"],
            github=GithubPointer(
                owner=row["github_owner"] or "",
                repository=row["github_repository"] or "",
                path=row["github_path"] or "",
            ),
            tags=tags,
        )
