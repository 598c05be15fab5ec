"""Review domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Review
from ...utils.sanitization import validate_and_sanitize_input


class ReviewCreate(BaseModel):
    """Schema for creating a review. Rating aggregates are never accepted here."""

    bookingId: int
    serviceId: int
    providerId: int
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = None
    content: str
    isRecommended: bool = False

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return validate_and_sanitize_input(v, max_length=100)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        cleaned = validate_and_sanitize_input(v, max_length=500)
        if not cleaned or len(cleaned) < 10:
            raise ValueError("Review content must be between 10 and 500 characters")
        return cleaned


class HelpfulVote(BaseModel):
    isHelpful: bool = True


class ProviderResponseCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        cleaned = validate_and_sanitize_input(v, max_length=500)
        if not cleaned:
            raise ValueError("Response content is required")
        return cleaned


class ReviewerSummary(BaseModel):
    id: int
    firstName: str
    lastName: str


class ReviewResponse(BaseModel):
    """Schema for review response"""

    id: int
    bookingId: int
    serviceId: int
    providerId: int
    customerId: int
    customer: Optional[ReviewerSummary] = None
    rating: int
    title: Optional[str] = None
    content: str
    isRecommended: bool
    status: str
    helpfulCount: int
    response: Optional[dict] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        customer = review.customer
        return cls(
            id=review.id,
            bookingId=review.booking_id,
            serviceId=review.service_id,
            providerId=review.provider_id,
            customerId=review.customer_id,
            customer=(
                ReviewerSummary(id=customer.id, firstName=customer.first_name, lastName=customer.last_name)
                if customer
                else None
            ),
            rating=review.rating,
            title=review.title,
            content=review.content,
            isRecommended=review.is_recommended,
            status=review.status,
            helpfulCount=review.helpful_count,
            response=review.response,
            createdAt=review.created_at,
            updatedAt=review.updated_at,
        )
