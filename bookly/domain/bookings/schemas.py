"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Booking, User
from ...shared.validators import validate_hhmm
from ...utils.sanitization import validate_and_sanitize_input


class BookingCreate(BaseModel):
    """Schema for creating a booking"""

    serviceId: int
    providerId: int
    scheduledDate: date
    scheduledTime: str
    notes: Optional[str] = None

    @field_validator("scheduledTime")
    @classmethod
    def validate_time(cls, v):
        return validate_hhmm(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=500)


class StatusUpdate(BaseModel):
    """Schema for a generic status change"""

    status: str
    note: Optional[str] = None
    providerNotes: Optional[str] = None

    @field_validator("note", "providerNotes")
    @classmethod
    def validate_text(cls, v):
        return validate_and_sanitize_input(v, max_length=500)


class CancelRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        return validate_and_sanitize_input(v, max_length=200)


class ProviderAction(BaseModel):
    """Optional note for accept/reject/start/complete/no-show"""

    note: Optional[str] = None

    @field_validator("note")
    @classmethod
    def validate_note(cls, v):
        return validate_and_sanitize_input(v, max_length=500)


class ParticipantSummary(BaseModel):
    id: int
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None

    @classmethod
    def from_user(cls, user: Optional[User]) -> Optional["ParticipantSummary"]:
        if user is None:
            return None
        return cls(
            id=user.id,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            phone=user.phone,
        )


class ServiceSummary(BaseModel):
    id: int
    title: str
    duration: int
    price: float
    currency: str


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    bookingCode: str
    customerId: int
    providerId: int
    serviceId: int
    customer: Optional[ParticipantSummary] = None
    provider: Optional[ParticipantSummary] = None
    service: Optional[ServiceSummary] = None
    scheduledDate: date
    startTime: str
    endTime: str
    duration: int
    status: str
    pricing: dict
    timeline: list[dict]
    cancellation: Optional[dict] = None
    notes: Optional[str] = None
    providerNotes: Optional[str] = None
    reminderSentAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        service = booking.service
        return cls(
            id=booking.id,
            bookingCode=booking.booking_code,
            customerId=booking.customer_id,
            providerId=booking.provider_id,
            serviceId=booking.service_id,
            customer=ParticipantSummary.from_user(booking.customer),
            provider=ParticipantSummary.from_user(booking.provider),
            service=(
                ServiceSummary(
                    id=service.id,
                    title=service.title,
                    duration=service.duration,
                    price=service.price,
                    currency=service.currency,
                )
                if service
                else None
            ),
            scheduledDate=booking.scheduled_date,
            startTime=booking.start_time,
            endTime=booking.end_time,
            duration=booking.duration,
            status=booking.status,
            pricing=booking.pricing or {},
            timeline=booking.timeline or [],
            cancellation=booking.cancellation,
            notes=booking.notes,
            providerNotes=booking.provider_notes,
            reminderSentAt=booking.reminder_sent_at,
            createdAt=booking.created_at,
            updatedAt=booking.updated_at,
        )


class BookedIntervalResponse(BaseModel):
    bookingId: int
    startTime: str
    endTime: str
    status: str
