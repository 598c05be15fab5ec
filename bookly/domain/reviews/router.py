"""Review router - FastAPI endpoints for reviews"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_customer
from ...database import get_db
from ...models import User
from ...shared.responses import paginated_response, success_response
from .schemas import HelpfulVote, ProviderResponseCreate, ReviewCreate, ReviewResponse
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("", status_code=201)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(require_customer),
    service: ReviewService = Depends(get_review_service),
):
    """Review a completed booking"""
    review = service.create_review(data, current_user)
    return success_response(
        ReviewResponse.from_review(review).model_dump(), "Review created successfully", status_code=201
    )


@router.get("/service/{service_id}")
async def get_service_reviews(
    service_id: int,
    sort: str = Query("newest", pattern="^(newest|oldest|highest|lowest|helpful)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    """Active reviews for a service with the star distribution"""
    reviews, total, distribution = service.list_service_reviews(service_id, sort, page, limit)
    return paginated_response(
        [ReviewResponse.from_review(r).model_dump() for r in reviews],
        page,
        limit,
        total,
        "Reviews retrieved successfully",
        ratingDistribution={str(star): count for star, count in distribution.items()},
    )


@router.get("/provider/{provider_id}")
async def get_provider_reviews(
    provider_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    reviews, total = service.list_provider_reviews(provider_id, page, limit)
    return paginated_response(
        [ReviewResponse.from_review(r).model_dump() for r in reviews],
        page,
        limit,
        total,
        "Provider reviews retrieved successfully",
    )


@router.patch("/{review_id}/remove")
async def remove_review(
    review_id: int,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    """Admin moderation: mark a review removed"""
    review = service.remove_review(review_id, current_user)
    return success_response(ReviewResponse.from_review(review).model_dump(), "Review removed successfully")


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    service.delete_review(review_id, current_user)
    return success_response(None, "Review deleted successfully")


@router.put("/{review_id}/helpful")
async def vote_helpful(
    review_id: int,
    data: HelpfulVote,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review = service.vote_helpful(review_id, current_user, data.isHelpful)
    return success_response(ReviewResponse.from_review(review).model_dump(), "Vote updated successfully")


@router.put("/{review_id}/response")
async def respond_to_review(
    review_id: int,
    data: ProviderResponseCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Provider reply to a review of their service"""
    review = service.respond(review_id, current_user, data.content)
    return success_response(ReviewResponse.from_review(review).model_dump(), "Response added successfully")
