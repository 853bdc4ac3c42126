"""
Rating and catalog aggregation.

Pure functions over stored documents, shared by the rating rollup and the
statistics readout.
"""

from typing import Any, Iterable

from bizdirectory.models.schemas import BusinessStats, ProductKind, RatingSummary


def summarize_ratings(reviews: Iterable[dict[str, Any]]) -> RatingSummary:
    """Arithmetic mean and count of review ratings.

    An empty review set yields a mean of 0.
    """
    total = 0
    rating_sum = 0.0
    for review in reviews:
        rating_sum += float(review["rating"])
        total += 1
    return rating_summary(rating_sum, total)


def rating_summary(rating_sum: float, total_reviews: int) -> RatingSummary:
    """Summary for stored totals. The mean is 0 when there are no reviews."""
    average = rating_sum / total_reviews if total_reviews > 0 else 0.0
    return RatingSummary(
        average_rating=average,
        total_reviews=total_reviews,
        rating_sum=rating_sum,
    )


def build_business_stats(
    products: Iterable[dict[str, Any]],
    reviews: Iterable[dict[str, Any]],
) -> BusinessStats:
    """Count catalog items by kind and fold in the review summary."""
    total_products = 0
    total_services = 0
    featured = 0

    for product in products:
        kind = product.get("kind")
        if kind == ProductKind.PRODUCT.value:
            total_products += 1
        elif kind == ProductKind.SERVICE.value:
            total_services += 1
        if product.get("featured"):
            featured += 1

    ratings = summarize_ratings(reviews)

    return BusinessStats(
        total_products=total_products,
        total_services=total_services,
        featured_products=featured,
        average_rating=ratings.average_rating,
        total_reviews=ratings.total_reviews,
    )
