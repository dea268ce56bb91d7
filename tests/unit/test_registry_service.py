from pathlib import Path

from pipemarket.application.services.rating_service import RatingService
from pipemarket.application.services.registry_service import RegistryService
from pipemarket.application.services.resource_service import ResourceService
from pipemarket.domain.models.resource import GithubPointer
from pipemarket.infrastructure.db.repos.rating_repo import RatingRepo
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo
from pipemarket.infrastructure.db.sqlite import initialize_schema


def _bootstrap(tmp_path: Path) -> tuple[RegistryService, ResourceService, RatingService]:
    db_path = tmp_path / "pipemarket.db"
    schema_path = (
        Path(__file__).resolve().parents[2]
        / "src"
        / "pipemarket"
        / "infrastructure"
        / "db"
        / "schema.sql"
    )
    initialize_schema(db_path, schema_path)
    resource_repo = ResourceRepo(db_path)
    return (
        RegistryService(resource_repo),
        ResourceService(resource_repo, readme_dir=tmp_path / "readme"),
        RatingService(RatingRepo(db_path)),
    )


def _add(resources: ResourceService, name: str, tags: list[str], uploader_id: int = 1) -> int:
    return resources.create_resource(
        name=name,
        description="",
        type="task",
        tags=tags,
        github=GithubPointer(owner="o", repository="r", path=f"{name}.yaml"),
        uploader_id=uploader_id,
    )


def test_tag_filter_matches_any_requested_tag(tmp_path: Path) -> None:
    registry, resources, _ = _bootstrap(tmp_path)
    only_a = _add(resources, "only-a", ["a"])
    a_and_c = _add(resources, "a-and-c", ["a", "c"])
    only_c = _add(resources, "only-c", ["c"])
    only_b = _add(resources, "only-b", ["b"])

    matched = [r.id for r in registry.get_by_tags({"a", "b"})]

    assert matched == [only_a, a_and_c, only_b]
    assert only_c not in matched


def test_empty_tag_filter_returns_nothing(tmp_path: Path) -> None:
    registry, resources, _ = _bootstrap(tmp_path)
    _add(resources, "x", ["a"])

    assert registry.get_by_tags(set()) == []
    assert registry.get_by_tags(["", "  "]) == []


def test_get_all_is_ordered_by_id_and_embeds_ratings(tmp_path: Path) -> None:
    registry, resources, ratings = _bootstrap(tmp_path)
    first = _add(resources, "first", ["a"])
    second = _add(resources, "second", ["b"])
    ratings.add_rating(1, second, 5)
    ratings.add_rating(2, second, 4)
    resources.increment_downloads(first)

    views = registry.get_all()

    assert [v.id for v in views] == [first, second]
    assert views[0].downloads == 1
    assert views[0].rating_count == 0
    assert views[1].rating_count == 2
    assert views[1].rating_mean == 4.5


def test_all_tags_are_distinct_and_sorted(tmp_path: Path) -> None:
    registry, resources, _ = _bootstrap(tmp_path)
    _add(resources, "x", ["git", "cli"])
    _add(resources, "y", ["cli", "build"])

    assert registry.get_all_tags() == ["build", "cli", "git"]


def test_listing_by_uploader(tmp_path: Path) -> None:
    registry, resources, _ = _bootstrap(tmp_path)
    mine = _add(resources, "mine", ["a"], uploader_id=10)
    _add(resources, "theirs", ["a"], uploader_id=20)
    also_mine = _add(resources, "also-mine", [], uploader_id=10)

    assert [v.id for v in registry.get_all_by_user(10)] == [mine, also_mine]
    assert registry.get_all_by_user(99) == []
    assert registry.get_all_by_user(10)[1].tags == []
