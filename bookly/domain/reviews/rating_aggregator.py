"""
Rating aggregation for services and providers.

Ratings are always recomputed in full from the active reviews instead of
being adjusted incrementally, so a removed or deleted review can never leave
a stale contribution behind. Concurrent recomputes are last-writer-wins.
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Review, Service, User

logger = logging.getLogger(__name__)


def round_rating(average) -> float:
    """Round half up to one decimal: 4.25 -> 4.3"""
    if average is None:
        return 0.0
    return int(float(average) * 10 + 0.5) / 10


class RatingAggregator:
    """Recomputes rating_average/rating_count on services and providers"""

    def __init__(self, db: Session):
        self.db = db

    def _active_stats(self, *criteria) -> tuple[float, int]:
        average, count = (
            self.db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.status == "active", *criteria)
            .one()
        )
        return round_rating(average), int(count or 0)

    def recompute_service(self, service_id: int) -> tuple[float, int]:
        average, count = self._active_stats(Review.service_id == service_id)
        service = self.db.query(Service).filter(Service.id == service_id).first()
        if service:
            service.rating_average = average
            service.rating_count = count
        return average, count

    def recompute_provider(self, provider_id: int) -> tuple[float, int]:
        average, count = self._active_stats(Review.provider_id == provider_id)
        provider = self.db.query(User).filter(User.id == provider_id).first()
        if provider:
            # Reassign the JSON column so the change is flushed
            provider.provider_info = {**(provider.provider_info or {}), "rating": average, "reviewCount": count}
        return average, count

    def recompute(self, service_id: int, provider_id: int) -> None:
        """Refresh both aggregates a review contributes to and commit"""
        service_stats = self.recompute_service(service_id)
        provider_stats = self.recompute_provider(provider_id)
        self.db.commit()
        logger.info(
            f"⭐ Ratings recomputed: service {service_id} -> {service_stats}, "
            f"provider {provider_id} -> {provider_stats}"
        )
