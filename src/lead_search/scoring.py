"""Lead quality scoring and size estimation rules."""

from __future__ import annotations

from collections.abc import Sequence

from .models import UNKNOWN

BASE_SCORE = 0.5
PHONE_BONUS = 0.2
WEBSITE_BONUS = 0.2
RATING_BONUS = 0.1
REVIEWS_BONUS = 0.1
HIGH_RATING = 4.0
MANY_REVIEWS = 50

# (minimum review count, band), checked from the largest threshold down
EMPLOYEE_BANDS: tuple[tuple[int, str], ...] = (
    (1000, "500+"),
    (500, "201-500"),
    (200, "51-200"),
    (50, "11-50"),
    (0, "1-10"),
)
REVENUE_BANDS: tuple[tuple[int, str], ...] = (
    (1000, "50M+"),
    (500, "10M-50M"),
    (200, "2M-10M"),
    (50, "500K-2M"),
    (0, "0-500K"),
)


def has_value(value: str | None) -> bool:
    return bool(value) and value != UNKNOWN


def compute_quality(
    *,
    phone: str | None,
    website: str | None,
    rating: float | None,
    review_count: int | None,
) -> float:
    """Score a lead between 0.0 and 1.0 from the contact data it carries."""
    score = BASE_SCORE
    if has_value(phone):
        score += PHONE_BONUS
    if has_value(website):
        score += WEBSITE_BONUS
    if rating is not None and rating >= HIGH_RATING:
        score += RATING_BONUS
    if review_count is not None and review_count > MANY_REVIEWS:
        score += REVIEWS_BONUS
    return round(min(1.0, max(0.0, score)), 2)


def estimate_band(
    review_count: int | None,
    bands: Sequence[tuple[int, str]],
    *,
    explicit: str | None = None,
) -> str:
    """Echo an explicit band, else map the review count onto ``bands``.

    ``bands`` must be sorted by threshold, largest first, which keeps the
    estimate monotonic in the review count.
    """
    if explicit:
        return explicit
    if review_count is None or review_count < 0:
        return UNKNOWN
    for threshold, band in bands:
        if review_count >= threshold:
            return band
    return UNKNOWN
