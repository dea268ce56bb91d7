from __future__ import annotations

from dataclasses import dataclass

MIN_STARS = 1
MAX_STARS = 5


def mean_of(rating_sum: int, rating_count: int) -> float:
    if rating_count <= 0:
        return 0.0
    return rating_sum / rating_count


@dataclass(slots=True, frozen=True)
class UserRating:
    """A single user's current vote; ``stars is None`` means not rated yet."""

    user_id: int
    resource_id: int
    stars: int | None

    @property
    def is_rated(self) -> bool:
        return self.stars is not None


@dataclass(slots=True, frozen=True)
class RatingDetails:
    resource_id: int
    rating_count: int
    rating_sum: int
    rating_mean: float

    @classmethod
    def from_totals(cls, resource_id: int, rating_count: int, rating_sum: int) -> RatingDetails:
        return cls(
            resource_id=resource_id,
            rating_count=rating_count,
            rating_sum=rating_sum,
            rating_mean=mean_of(rating_sum, rating_count),
        )
