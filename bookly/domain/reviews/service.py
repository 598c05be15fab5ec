"""Review service - Business logic for reviews and their rating side effects"""

import logging
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Review, User
from ...services.notification_service import create_notification
from ...shared.errors import Conflict, Forbidden, NotFound, ValidationError
from ...shared.time_utils import utc_now
from .rating_aggregator import RatingAggregator
from .repository import ReviewRepository
from .schemas import ReviewCreate

logger = logging.getLogger(__name__)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session, clock: Callable = utc_now):
        self.db = db
        self.repo = ReviewRepository()
        self.ratings = RatingAggregator(db)
        self.clock = clock

    def get_review(self, review_id: int) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise NotFound("Review not found")
        return review

    def create_review(self, data: ReviewCreate, customer: User) -> Review:
        """Review a completed booking; one review per booking"""
        booking = self.repo.get_booking(self.db, data.bookingId)
        if not booking:
            raise NotFound("Booking not found")

        if booking.customer_id != customer.id:
            raise Forbidden("You can only review your own bookings")

        if booking.status != "completed":
            raise ValidationError("You can only review completed bookings")

        if self.repo.get_review_for_booking(self.db, booking.id):
            raise Conflict("You have already reviewed this booking")

        if data.serviceId != booking.service_id or data.providerId != booking.provider_id:
            raise ValidationError("Review service and provider must match the booking")

        try:
            review = self.repo.create_review(
                self.db,
                booking_id=booking.id,
                service_id=booking.service_id,
                provider_id=booking.provider_id,
                customer_id=customer.id,
                rating=data.rating,
                title=data.title,
                content=data.content,
                is_recommended=data.isRecommended,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise Conflict("You have already reviewed this booking") from e

        logger.info(f"✅ Review {review.id} created for booking {booking.id} (rating={review.rating})")
        self.ratings.recompute(review.service_id, review.provider_id)

        create_notification(
            self.db,
            recipient_id=review.provider_id,
            sender_id=customer.id,
            notification_type="new-review",
            title="New Review",
            message=f"{customer.full_name} left a {review.rating}-star review",
            data={"reviewId": review.id, "bookingId": booking.id},
        )
        return self.get_review(review.id)

    def list_service_reviews(self, service_id: int, sort: str = "newest", page: int = 1, limit: int = 10):
        """Active reviews for a service plus its star distribution"""
        reviews, total = self.repo.list_active_reviews(
            self.db, service_id=service_id, sort=sort, page=page, limit=limit
        )
        return reviews, total, self.repo.get_rating_distribution(self.db, service_id)

    def list_provider_reviews(self, provider_id: int, page: int = 1, limit: int = 10):
        return self.repo.list_active_reviews(self.db, provider_id=provider_id, page=page, limit=limit)

    def remove_review(self, review_id: int, admin: User) -> Review:
        """Moderation: hide a review from listings and ratings without deleting it"""
        review = self.get_review(review_id)
        review.status = "removed"
        self.repo.save(self.db, review)
        logger.info(f"🚫 Review {review.id} removed by admin {admin.id}")
        self.ratings.recompute(review.service_id, review.provider_id)
        return self.get_review(review.id)

    def delete_review(self, review_id: int, user: User) -> None:
        review = self.get_review(review_id)
        if review.customer_id != user.id and user.role != "admin":
            raise Forbidden("Not authorized to delete this review")

        service_id, provider_id = review.service_id, review.provider_id
        self.repo.delete_review(self.db, review)
        logger.info(f"🗑️ Review {review_id} deleted by user {user.id}")
        self.ratings.recompute(service_id, provider_id)

    def vote_helpful(self, review_id: int, user: User, is_helpful: bool) -> Review:
        """Record or withdraw a helpful vote; voting twice is a no-op"""
        review = self.get_review(review_id)
        if review.customer_id == user.id:
            raise ValidationError("You cannot vote on your own review")

        voters = [voter for voter in (review.helpful_voters or []) if voter != user.id]
        if is_helpful:
            voters.append(user.id)
        review.helpful_voters = voters
        review.helpful_count = len(voters)
        return self.repo.save(self.db, review)

    def respond(self, review_id: int, provider: User, content: str) -> Review:
        """The reviewed provider's public reply"""
        review = self.get_review(review_id)
        if review.provider_id != provider.id:
            raise Forbidden("Only the reviewed provider can respond to this review")
        if review.status != "active":
            raise ValidationError("Cannot respond to a review that is not active")

        review.response = {
            "content": content,
            "respondedAt": self.clock().isoformat(),
            "respondedBy": provider.id,
        }
        return self.repo.save(self.db, review)
