"""Catalog domain schemas - Pydantic models for services and categories"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Category, Service
from ...shared.validators import validate_weekly_schedule
from ...utils.sanitization import validate_and_sanitize_input

LOCATION_TYPES = ("provider-location", "customer-location", "online")
CANCEL_POLICIES = ("flexible", "moderate", "strict")


class ServiceCreate(BaseModel):
    """Schema for creating a service. Rating and booking counters are not accepted."""

    title: str
    description: str
    categoryId: Optional[int] = None
    duration: int = Field(..., gt=0, le=24 * 60)
    price: float = Field(..., ge=0)
    currency: str = "USD"
    locationType: str = "provider-location"
    cancelPolicy: str = "moderate"
    availability: Optional[dict] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        cleaned = validate_and_sanitize_input(v, max_length=100)
        if not cleaned:
            raise ValueError("Service title is required")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        cleaned = validate_and_sanitize_input(v, max_length=2000)
        if not cleaned:
            raise ValueError("Service description is required")
        return cleaned

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        if not v or len(v) != 3:
            raise ValueError("Currency must be a 3-letter code")
        return v.upper()

    @field_validator("locationType")
    @classmethod
    def validate_location_type(cls, v):
        if v not in LOCATION_TYPES:
            raise ValueError(f"locationType must be one of {', '.join(LOCATION_TYPES)}")
        return v

    @field_validator("cancelPolicy")
    @classmethod
    def validate_cancel_policy(cls, v):
        if v not in CANCEL_POLICIES:
            raise ValueError(f"cancelPolicy must be one of {', '.join(CANCEL_POLICIES)}")
        return v

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v):
        return validate_weekly_schedule(v)


class ServiceUpdate(BaseModel):
    """Schema for updating a service. Rating and booking counters are not accepted."""

    title: Optional[str] = None
    description: Optional[str] = None
    categoryId: Optional[int] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    locationType: Optional[str] = None
    cancelPolicy: Optional[str] = None
    availability: Optional[dict] = None
    isActive: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return validate_and_sanitize_input(v, max_length=100)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        if v is not None and len(v) != 3:
            raise ValueError("Currency must be a 3-letter code")
        return v.upper() if v else v

    @field_validator("locationType")
    @classmethod
    def validate_location_type(cls, v):
        if v is not None and v not in LOCATION_TYPES:
            raise ValueError(f"locationType must be one of {', '.join(LOCATION_TYPES)}")
        return v

    @field_validator("cancelPolicy")
    @classmethod
    def validate_cancel_policy(cls, v):
        if v is not None and v not in CANCEL_POLICIES:
            raise ValueError(f"cancelPolicy must be one of {', '.join(CANCEL_POLICIES)}")
        return v

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v):
        return validate_weekly_schedule(v)


class ServiceResponse(BaseModel):
    """Schema for service response"""

    id: int
    providerId: int
    categoryId: Optional[int] = None
    title: str
    description: str
    duration: int
    price: float
    currency: str
    locationType: str
    cancelPolicy: str
    availability: Optional[dict] = None
    isActive: bool
    isApproved: bool
    rating: dict
    totalBookings: int
    createdAt: Optional[datetime] = None

    @classmethod
    def from_service(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            providerId=service.provider_id,
            categoryId=service.category_id,
            title=service.title,
            description=service.description,
            duration=service.duration,
            price=service.price,
            currency=service.currency,
            locationType=service.location_type,
            cancelPolicy=service.cancel_policy,
            availability=service.availability,
            isActive=service.is_active,
            isApproved=service.is_approved,
            rating={"average": service.rating_average, "count": service.rating_count},
            totalBookings=service.total_bookings,
            createdAt=service.created_at,
        )


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parentId: Optional[int] = None
    level: int
    isFeatured: bool
    serviceCount: int
    children: list["CategoryResponse"] = []

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            description=category.description,
            parentId=category.parent_id,
            level=category.level,
            isFeatured=category.is_featured,
            serviceCount=category.service_count,
        )
