"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_customer, require_provider
from ...database import get_db
from ...models import Booking, User
from ...services.notification_service import send_booking_event_emails
from ...shared.responses import paginated_response, success_response
from .schemas import (
    BookedIntervalResponse,
    BookingCreate,
    BookingResponse,
    CancelRequest,
    ProviderAction,
    StatusUpdate,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _booking_data(booking: Booking) -> dict:
    return BookingResponse.from_booking(booking).model_dump()


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    """Book a service time slot"""
    booking = service.create_booking(data, current_user)
    background_tasks.add_task(send_booking_event_emails, booking.id, "created", current_user.id)
    return success_response(_booking_data(booking), "Booking created successfully", status_code=201)


@router.get("/my-bookings")
async def get_my_bookings(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings made by the current customer"""
    bookings, total = service.list_customer_bookings(current_user, status, page, limit)
    return paginated_response(
        [_booking_data(b) for b in bookings], page, limit, total, "Bookings retrieved successfully"
    )


@router.get("/provider")
async def get_provider_bookings(
    status: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings received by the current provider"""
    bookings, total = service.list_provider_bookings(current_user, status, start_date, end_date, page, limit)
    return paginated_response(
        [_booking_data(b) for b in bookings], page, limit, total, "Provider bookings retrieved successfully"
    )


@router.get("/stats")
async def get_booking_stats(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Booking counts and revenue by status and by month"""
    return success_response(service.get_stats(current_user), "Booking statistics retrieved successfully")


@router.get("/availability")
async def get_provider_availability(
    provider_id: int = Query(..., alias="providerId"),
    scheduled_date: date = Query(..., alias="date"),
    service: BookingService = Depends(get_booking_service),
):
    """Intervals already taken by active bookings for a provider on a date"""
    bookings = service.get_provider_active_bookings(provider_id, scheduled_date)
    intervals = [
        BookedIntervalResponse(bookingId=b.id, startTime=b.start_time, endTime=b.end_time, status=b.status)
        for b in bookings
    ]
    return success_response(
        {"providerId": provider_id, "date": scheduled_date, "bookedSlots": [i.model_dump() for i in intervals]},
        "Availability retrieved successfully",
    )


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Get a single booking (participants and admins only)"""
    booking = service.get_booking(booking_id, current_user)
    return success_response(_booking_data(booking), "Booking retrieved successfully")


@router.patch("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[CancelRequest] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a pending or confirmed booking"""
    reason = data.reason if data else None
    booking = service.cancel_booking(booking_id, current_user, reason)
    background_tasks.add_task(send_booking_event_emails, booking.id, "cancelled", current_user.id)
    return success_response(_booking_data(booking), "Booking cancelled successfully")


@router.patch("/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    data: StatusUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Generic status change through the transition table"""
    booking = service.update_status(booking_id, data.status, current_user, data.note, data.providerNotes)
    background_tasks.add_task(send_booking_event_emails, booking.id, booking.status, current_user.id, data.note)
    return success_response(_booking_data(booking), f"Booking status updated to {booking.status}")


# ============================================================================
# PROVIDER ACTIONS
# ============================================================================


def _provider_action_response(
    booking: Booking, background_tasks: BackgroundTasks, actor: User, note: Optional[str], message: str
):
    background_tasks.add_task(send_booking_event_emails, booking.id, booking.status, actor.id, note)
    return success_response(_booking_data(booking), message)


@router.patch("/{booking_id}/accept")
async def accept_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[ProviderAction] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Provider confirms a pending booking"""
    note = data.note if data else None
    booking = service.accept_booking(booking_id, current_user, note)
    return _provider_action_response(booking, background_tasks, current_user, note, "Booking accepted")


@router.patch("/{booking_id}/reject")
async def reject_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[ProviderAction] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Provider declines a pending booking"""
    note = data.note if data else None
    booking = service.reject_booking(booking_id, current_user, note)
    return _provider_action_response(booking, background_tasks, current_user, note, "Booking rejected")


@router.patch("/{booking_id}/start")
async def start_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[ProviderAction] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    note = data.note if data else None
    booking = service.start_booking(booking_id, current_user, note)
    return _provider_action_response(booking, background_tasks, current_user, note, "Booking started")


@router.patch("/{booking_id}/complete")
async def complete_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[ProviderAction] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    note = data.note if data else None
    booking = service.complete_booking(booking_id, current_user, note)
    return _provider_action_response(booking, background_tasks, current_user, note, "Booking completed")


@router.patch("/{booking_id}/no-show")
async def mark_no_show(
    booking_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[ProviderAction] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    note = data.note if data else None
    booking = service.mark_no_show(booking_id, current_user, note)
    return _provider_action_response(booking, background_tasks, current_user, note, "Booking marked as no-show")
