"""Booking service - Business logic for the booking lifecycle"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY, PLATFORM_FEE_RATE, TAX_RATE
from ...models import Booking, Service, User
from ...services.notification_service import notify_booking_created, notify_booking_status
from ...shared.errors import Conflict, Forbidden, InvalidConfiguration, InvalidTransition, NotFound, ValidationError
from ...shared.time_utils import combine_date_and_time, utc_now
from ..scheduling.time_calculator import add_minutes, intervals_overlap
from .lifecycle import (
    CANCELLABLE_STATUSES,
    apply_transition,
    authorize_transition,
    build_timeline_entry,
    calculate_cancellation_fee,
)
from .repository import BookingRepository
from .schemas import BookingCreate

logger = logging.getLogger(__name__)


def build_pricing_snapshot(service: Service) -> dict:
    """Price breakdown frozen onto the booking at creation time"""
    service_fee = round(float(service.price), 2)
    platform_fee = round(service_fee * PLATFORM_FEE_RATE, 2)
    taxes = round((service_fee + platform_fee) * TAX_RATE, 2)
    discount = 0.0
    return {
        "serviceFee": service_fee,
        "platformFee": platform_fee,
        "taxes": taxes,
        "discount": discount,
        "totalAmount": round(service_fee + platform_fee + taxes - discount, 2),
        "currency": service.currency or DEFAULT_CURRENCY,
        "cancellationFee": 0.0,
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.repo = BookingRepository()
        self.clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: int, user: User) -> Booking:
        """Get a booking visible to its participants and admins"""
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found")
        if user.role != "admin" and user.id not in (booking.customer_id, booking.provider_id):
            raise Forbidden("Not authorized to view this booking")
        return booking

    def list_customer_bookings(
        self, user: User, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> tuple[list[Booking], int]:
        return self.repo.list_bookings(self.db, customer_id=user.id, status=status, page=page, limit=limit)

    def list_provider_bookings(
        self,
        user: User,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must be on or before endDate")
        return self.repo.list_bookings(
            self.db,
            provider_id=user.id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )

    def get_provider_active_bookings(self, provider_id: int, scheduled_date: date) -> list[Booking]:
        """Active bookings occupying a provider's time on a date"""
        return self.repo.get_active_bookings_for_date(self.db, provider_id, scheduled_date)

    def get_stats(self, user: User) -> dict:
        """
        Booking counts and revenue grouped by status, plus per-month totals for
        bookings created in the last 12 months. Admins see everything,
        providers and customers their own bookings. Grouping runs in the database.
        """
        if user.role == "admin":
            scope = {}
        elif user.role == "provider":
            scope = {"provider_id": user.id}
        else:
            scope = {"customer_id": user.id}

        status_rows = self.repo.get_status_stats(self.db, **scope)
        monthly_rows = self.repo.get_monthly_stats(self.db, self.clock() - timedelta(days=365), **scope)

        return {
            "totalBookings": sum(row.bookings for row in status_rows),
            "statusStats": [
                {"status": row.status, "count": row.bookings, "totalRevenue": round(float(row.revenue), 2)}
                for row in status_rows
            ],
            "monthlyStats": [
                {
                    "year": int(row.year),
                    "month": int(row.month),
                    "count": row.bookings,
                    "revenue": round(float(row.revenue), 2),
                }
                for row in monthly_rows
            ],
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate, customer: User) -> Booking:
        """Create a pending booking after checking the service, parties, time and slot"""
        logger.info(f"📥 Creating booking for customer {customer.id} on service {data.serviceId}")

        service = self.repo.get_service(self.db, data.serviceId)
        if not service or not service.is_active or not service.is_approved:
            raise NotFound("Service not found or unavailable")

        if data.providerId != service.provider_id:
            raise ValidationError("Provider does not match the service")

        if customer.id == service.provider_id:
            raise ValidationError("You cannot book your own service")

        now = self.clock()
        start = combine_date_and_time(data.scheduledDate, data.scheduledTime)
        if start <= now:
            raise ValidationError("Booking must be scheduled for a future date and time")

        try:
            end_time = add_minutes(data.scheduledTime, service.duration)
        except InvalidConfiguration as e:
            raise ValidationError("Booking must end on the same day it starts") from e

        for existing in self.repo.get_active_bookings_for_date(self.db, service.provider_id, data.scheduledDate):
            if intervals_overlap(data.scheduledTime, end_time, existing.start_time, existing.end_time):
                logger.warning(
                    f"⚠️ Slot conflict for provider {service.provider_id} on "
                    f"{data.scheduledDate} {data.scheduledTime} (booking {existing.id})"
                )
                raise Conflict("This time slot is already booked")

        try:
            booking = self.repo.create_booking(
                self.db,
                customer_id=customer.id,
                provider_id=service.provider_id,
                service_id=service.id,
                scheduled_date=data.scheduledDate,
                start_time=data.scheduledTime,
                end_time=end_time,
                duration=service.duration,
                status="pending",
                pricing=build_pricing_snapshot(service),
                timeline=[build_timeline_entry("pending", customer.id, now, "Booking created")],
                notes=data.notes,
            )
        except IntegrityError as e:
            # A concurrent request took the same slot between the check and the insert
            self.db.rollback()
            logger.warning(f"⚠️ Active-slot index rejected booking for provider {service.provider_id}: {e.orig}")
            raise Conflict("This time slot is already booked") from e

        logger.info(f"✅ Booking {booking.booking_code} created (id={booking.id})")
        notify_booking_created(self.db, booking)
        return self.repo.get_booking(self.db, booking.id)

    def cancel_booking(self, booking_id: int, actor: User, reason: Optional[str] = None) -> Booking:
        """Cancel a pending or confirmed booking, charging the late fee when it applies"""
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found")

        authorize_transition(booking, actor, "cancelled")
        if booking.status not in CANCELLABLE_STATUSES:
            raise InvalidTransition(
                booking.status, "cancelled", f"Cannot cancel booking with status: {booking.status}"
            )

        now = self.clock()
        start = combine_date_and_time(booking.scheduled_date, booking.start_time)
        pricing = booking.pricing or {}
        fee = calculate_cancellation_fee(pricing.get("totalAmount", 0), start, now)

        apply_transition(booking, "cancelled", actor, now, reason or "Booking cancelled")
        booking.cancellation = {
            "cancelledBy": actor.id,
            "cancelledAt": now.isoformat(),
            "reason": reason,
            "refundEligible": fee == 0,
            "fee": fee,
        }
        booking.pricing = {**pricing, "cancellationFee": fee}

        self._save(booking)
        logger.info(f"✅ Booking {booking.booking_code} cancelled by user {actor.id} (fee={fee})")
        notify_booking_status(self.db, booking, actor)
        return self.repo.get_booking(self.db, booking.id)

    def update_status(
        self,
        booking_id: int,
        target: str,
        actor: User,
        note: Optional[str] = None,
        provider_notes: Optional[str] = None,
    ) -> Booking:
        """Move a booking to another status through the transition table"""
        if target == "cancelled":
            return self.cancel_booking(booking_id, actor, reason=note)

        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFound("Booking not found")

        previous = apply_transition(booking, target, actor, self.clock(), note)
        if provider_notes:
            booking.provider_notes = provider_notes
        if target == "completed":
            self.repo.increment_service_bookings(self.db, booking.service_id)

        self._save(booking)
        logger.info(f"✅ Booking {booking.booking_code} moved {previous} -> {target} by user {actor.id}")
        notify_booking_status(self.db, booking, actor)
        return self.repo.get_booking(self.db, booking.id)

    def accept_booking(self, booking_id: int, actor: User, note: Optional[str] = None) -> Booking:
        return self.update_status(booking_id, "confirmed", actor, note or "Booking accepted")

    def reject_booking(self, booking_id: int, actor: User, note: Optional[str] = None) -> Booking:
        return self.update_status(booking_id, "rejected", actor, note or "Booking rejected")

    def start_booking(self, booking_id: int, actor: User, note: Optional[str] = None) -> Booking:
        return self.update_status(booking_id, "in-progress", actor, note or "Service started")

    def complete_booking(self, booking_id: int, actor: User, note: Optional[str] = None) -> Booking:
        return self.update_status(booking_id, "completed", actor, note or "Service completed")

    def mark_no_show(self, booking_id: int, actor: User, note: Optional[str] = None) -> Booking:
        return self.update_status(booking_id, "no-show", actor, note or "Customer did not show up")

    def mark_reminder_sent(self, booking: Booking) -> None:
        """Record that the reminder went out; the status is never touched"""
        booking.reminder_sent_at = self.clock()
        self._save(booking)

    def _save(self, booking: Booking) -> Booking:
        try:
            return self.repo.save(self.db, booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save booking {booking.id}: {e}")
            raise
