from __future__ import annotations

import logging

from pipemarket.core.errors import (
    InvalidRatingValueError,
    RatingConflictError,
    ResourceNotFoundError,
)
from pipemarket.core.time import now_utc_iso
from pipemarket.domain.models.rating import MAX_STARS, MIN_STARS, RatingDetails, UserRating
from pipemarket.infrastructure.db.repos.rating_repo import RatingRepo, RatingWrite

logger = logging.getLogger(__name__)


class RatingService:
    """Per-user votes and the running aggregate stored on each resource.

    Writes are incremental: a first vote adds to ``rating_count`` and
    ``rating_sum``; a revision adjusts ``rating_sum`` by the difference
    between the new value and ``prev_stars``. Callers pass back the value
    they last read from :meth:`get_user_rating` so that a revision computed
    from stale state is rejected instead of applied twice.
    """

    def __init__(self, rating_repo: RatingRepo) -> None:
        self.rating_repo = rating_repo

    def get_user_rating(self, user_id: int, resource_id: int) -> UserRating:
        self._require_resource(resource_id)
        stars = self.rating_repo.get_user_stars(user_id, resource_id)
        return UserRating(user_id=user_id, resource_id=resource_id, stars=stars)

    def get_rating_details(self, resource_id: int) -> RatingDetails:
        return self._require_resource(resource_id)

    def add_rating(
        self,
        user_id: int,
        resource_id: int,
        stars: int,
        prev_stars: int | None = None,
    ) -> RatingDetails:
        _validate_stars(stars)
        if prev_stars is not None:
            raise RatingConflictError(
                f"User {user_id} already holds a rating for resource {resource_id}; use update instead"
            )

        result = self.rating_repo.insert_first(user_id, resource_id, stars, now_utc_iso())
        details = self._unwrap(result, user_id, resource_id, prev_stars)
        logger.info("User %s rated resource %s with %s stars", user_id, resource_id, stars)
        return details

    def update_rating(
        self,
        user_id: int,
        resource_id: int,
        stars: int,
        prev_stars: int | None,
    ) -> RatingDetails:
        _validate_stars(stars)
        if prev_stars is None:
            raise RatingConflictError(
                f"User {user_id} has no previous rating for resource {resource_id}; use add instead"
            )
        if isinstance(prev_stars, bool) or not isinstance(prev_stars, int):
            raise InvalidRatingValueError(f"prev_stars must be an integer, got {prev_stars!r}")

        result = self.rating_repo.replace(user_id, resource_id, stars, prev_stars, now_utc_iso())
        details = self._unwrap(result, user_id, resource_id, prev_stars)
        logger.info(
            "User %s revised rating of resource %s from %s to %s stars",
            user_id,
            resource_id,
            prev_stars,
            stars,
        )
        return details

    def _require_resource(self, resource_id: int) -> RatingDetails:
        details = self.rating_repo.get_details(resource_id)
        if details is None:
            raise ResourceNotFoundError(resource_id)
        return details

    @staticmethod
    def _unwrap(
        result: RatingWrite,
        user_id: int,
        resource_id: int,
        prev_stars: int | None,
    ) -> RatingDetails:
        if result.status == "applied" and result.details is not None:
            return result.details
        if result.status == "resource_missing":
            raise ResourceNotFoundError(resource_id)
        if result.status == "already_rated":
            raise RatingConflictError(
                f"User {user_id} already rated resource {resource_id} "
                f"({result.stored_stars} stars); use update instead"
            )
        if result.status == "stale":
            stored = "no rating" if result.stored_stars is None else f"{result.stored_stars} stars"
            raise RatingConflictError(
                f"Stale prev_stars for user {user_id} on resource {resource_id}: "
                f"expected {prev_stars}, stored value is {stored}"
            )
        raise RuntimeError(f"Unexpected rating write status: {result.status}")


def _validate_stars(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRatingValueError(f"stars must be an integer, got {value!r}")
    if not MIN_STARS <= value <= MAX_STARS:
        raise InvalidRatingValueError(f"stars must be between {MIN_STARS} and {MAX_STARS}, got {value}")
