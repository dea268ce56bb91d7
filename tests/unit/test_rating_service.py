from __future__ import annotations

import random
import threading
from pathlib import Path

import pytest

from pipemarket.application.services.rating_service import RatingService
from pipemarket.application.services.resource_service import ResourceService
from pipemarket.core.errors import (
    InvalidRatingValueError,
    RatingConflictError,
    ResourceNotFoundError,
)
from pipemarket.domain.models.resource import GithubPointer
from pipemarket.infrastructure.db.repos.rating_repo import RatingRepo
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo
from pipemarket.infrastructure.db.sqlite import initialize_schema


def _bootstrap(tmp_path: Path) -> tuple[RatingService, RatingRepo, int]:
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

    resource_service = ResourceService(ResourceRepo(db_path), readme_dir=tmp_path / "readme")
    resource_id = resource_service.create_resource(
        name="git-clone",
        description="Clone a repository",
        type="task",
        tags=["git"],
        github=GithubPointer(owner="tektoncd", repository="catalog", path="task/git-clone/git-clone.yaml"),
        uploader_id=1,
    )
    rating_repo = RatingRepo(db_path)
    return RatingService(rating_repo), rating_repo, resource_id


def test_add_then_revise_keeps_running_mean(tmp_path: Path) -> None:
    service, _, resource_id = _bootstrap(tmp_path)

    details = service.get_rating_details(resource_id)
    assert details.rating_count == 0
    assert details.rating_mean == 0.0

    details = service.add_rating(101, resource_id, 4)
    assert (details.rating_count, details.rating_mean) == (1, 4.0)

    details = service.add_rating(102, resource_id, 2)
    assert (details.rating_count, details.rating_mean) == (2, 3.0)

    details = service.update_rating(101, resource_id, 5, prev_stars=4)
    assert (details.rating_count, details.rating_mean) == (2, 3.5)
    assert details.rating_sum == 7

    with pytest.raises(RatingConflictError):
        service.update_rating(101, resource_id, 5, prev_stars=4)

    details = service.get_rating_details(resource_id)
    assert (details.rating_count, details.rating_mean) == (2, 3.5)


def test_user_rating_reports_not_rated_explicitly(tmp_path: Path) -> None:
    service, _, resource_id = _bootstrap(tmp_path)

    rating = service.get_user_rating(7, resource_id)
    assert rating.stars is None
    assert rating.is_rated is False

    service.add_rating(7, resource_id, 3)
    rating = service.get_user_rating(7, resource_id)
    assert rating.stars == 3
    assert rating.is_rated is True


def test_second_add_for_same_user_is_rejected(tmp_path: Path) -> None:
    service, _, resource_id = _bootstrap(tmp_path)

    service.add_rating(1, resource_id, 4)
    with pytest.raises(RatingConflictError, match="already rated"):
        service.add_rating(1, resource_id, 2)

    details = service.get_rating_details(resource_id)
    assert details.rating_count == 1
    assert details.rating_sum == 4


def test_add_with_previous_value_is_rejected(tmp_path: Path) -> None:
    service, _, resource_id = _bootstrap(tmp_path)

    with pytest.raises(RatingConflictError):
        service.add_rating(1, resource_id, 4, prev_stars=3)
    assert service.get_rating_details(resource_id).rating_count == 0


def test_update_without_existing_rating_is_a_conflict(tmp_path: Path) -> None:
    service, _, resource_id = _bootstrap(tmp_path)

    with pytest.raises(RatingConflictError):
        service.update_rating(1, resource_id, 4, prev_stars=2)
    with pytest.raises(RatingConflictError):
        service.update_rating(1, resource_id, 4, prev_stars=None)

    assert service.get_user_rating(1, resource_id).stars is None
    assert service.get_rating_details(resource_id).rating_sum == 0


@pytest.mark.parametrize("stars", [0, 6, -1, 10])
def test_out_of_range_stars_leave_state_untouched(tmp_path: Path, stars: int) -> None:
    service, _, resource_id = _bootstrap(tmp_path)
    service.add_rating(1, resource_id, 3)

    with pytest.raises(InvalidRatingValueError):
        service.add_rating(2, resource_id, stars)
    with pytest.raises(InvalidRatingValueError):
        service.update_rating(1, resource_id, stars, prev_stars=3)

    details = service.get_rating_details(resource_id)
    assert (details.rating_count, details.rating_sum) == (1, 3)
    assert service.get_user_rating(1, resource_id).stars == 3


@pytest.mark.parametrize("prev_stars", [0, 6])
def test_impossible_prev_stars_is_a_conflict(tmp_path: Path, prev_stars: int) -> None:
    service, _, resource_id = _bootstrap(tmp_path)
    service.add_rating(1, resource_id, 3)

    with pytest.raises(RatingConflictError):
        service.update_rating(1, resource_id, 4, prev_stars=prev_stars)
    with pytest.raises(ResourceNotFoundError):
        service.update_rating(1, 9999, 4, prev_stars=prev_stars)

    details = service.get_rating_details(resource_id)
    assert (details.rating_count, details.rating_sum) == (1, 3)
    assert service.get_user_rating(1, resource_id).stars == 3


def test_non_integer_prev_stars_is_invalid(tmp_path: Path) -> None:
    service, _, resource_id = _bootstrap(tmp_path)
    service.add_rating(1, resource_id, 3)

    with pytest.raises(InvalidRatingValueError):
        service.update_rating(1, resource_id, 4, prev_stars="3")  # type: ignore[arg-type]
    with pytest.raises(InvalidRatingValueError):
        service.update_rating(1, resource_id, 4, prev_stars=True)


def test_unknown_resource_raises_not_found(tmp_path: Path) -> None:
    service, _, _ = _bootstrap(tmp_path)

    with pytest.raises(ResourceNotFoundError):
        service.add_rating(1, 9999, 4)
    with pytest.raises(ResourceNotFoundError):
        service.update_rating(1, 9999, 4, prev_stars=3)
    with pytest.raises(ResourceNotFoundError):
        service.get_rating_details(9999)
    with pytest.raises(ResourceNotFoundError):
        service.get_user_rating(1, 9999)


def test_aggregate_matches_votes_after_mixed_sequence(tmp_path: Path) -> None:
    service, repo, resource_id = _bootstrap(tmp_path)
    rng = random.Random(1234)
    current: dict[int, int] = {}

    for _ in range(60):
        user_id = rng.randint(1, 8)
        stars = rng.randint(1, 5)
        if user_id in current:
            details = service.update_rating(user_id, resource_id, stars, prev_stars=current[user_id])
        else:
            details = service.add_rating(user_id, resource_id, stars)
        current[user_id] = stars

        assert details.rating_count == len(current)
        assert details.rating_sum == sum(current.values())
        assert details.rating_mean == pytest.approx(sum(current.values()) / len(current))

    assert repo.sum_active_stars(resource_id) == (len(current), sum(current.values()))


def test_racing_updates_with_same_prev_stars_apply_once(tmp_path: Path) -> None:
    service, repo, resource_id = _bootstrap(tmp_path)
    service.add_rating(1, resource_id, 4)

    barrier = threading.Barrier(2)
    outcomes: dict[int, str] = {}

    def _revise(new_stars: int) -> None:
        barrier.wait()
        try:
            service.update_rating(1, resource_id, new_stars, prev_stars=4)
            outcomes[new_stars] = "applied"
        except RatingConflictError:
            outcomes[new_stars] = "conflict"

    threads = [threading.Thread(target=_revise, args=(stars,)) for stars in (2, 5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(outcomes.values()) == ["applied", "conflict"]
    winner = next(stars for stars, outcome in outcomes.items() if outcome == "applied")

    details = service.get_rating_details(resource_id)
    assert details.rating_count == 1
    assert details.rating_sum == winner
    assert repo.sum_active_stars(resource_id) == (1, winner)
