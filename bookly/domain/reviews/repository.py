"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Review

REVIEW_SORTS = {
    "newest": (Review.created_at.desc(), Review.id.desc()),
    "oldest": (Review.created_at.asc(), Review.id.asc()),
    "highest": (Review.rating.desc(), Review.created_at.desc()),
    "lowest": (Review.rating.asc(), Review.created_at.desc()),
    "helpful": (Review.helpful_count.desc(), Review.created_at.desc()),
}


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_review(db: Session, review_id: int) -> Optional[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.customer))
            .filter(Review.id == review_id)
            .first()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_review_for_booking(db: Session, booking_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def save(db: Session, review: Review) -> Review:
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def delete_review(db: Session, review: Review) -> None:
        db.delete(review)
        db.commit()

    @staticmethod
    def list_active_reviews(
        db: Session,
        *,
        service_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Review], int]:
        """Active reviews for a service or provider. Returns (reviews, total_count)."""
        query = db.query(Review).filter(Review.status == "active")
        if service_id is not None:
            query = query.filter(Review.service_id == service_id)
        if provider_id is not None:
            query = query.filter(Review.provider_id == provider_id)

        total = query.count()
        reviews = (
            query.options(joinedload(Review.customer))
            .order_by(*REVIEW_SORTS.get(sort, REVIEW_SORTS["newest"]))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return reviews, total

    @staticmethod
    def get_rating_distribution(db: Session, service_id: int) -> dict[int, int]:
        """Count of active reviews per star rating, every star present"""
        rows = (
            db.query(Review.rating, func.count(Review.id))
            .filter(Review.service_id == service_id, Review.status == "active")
            .group_by(Review.rating)
            .all()
        )
        distribution = {star: 0 for star in range(1, 6)}
        for rating, count in rows:
            distribution[int(rating)] = int(count)
        return distribution
