"""Booking repository - Database operations for bookings"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import extract, func, update
from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_BOOKING_STATUSES, Booking, Service

# pricing.totalAmount read inside the database for aggregates
TOTAL_AMOUNT = Booking.pricing["totalAmount"].as_float()


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        """Get a booking with its participants and service loaded"""
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.customer),
                joinedload(Booking.provider),
                joinedload(Booking.service),
            )
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_active_bookings_for_date(db: Session, provider_id: int, scheduled_date: date) -> list[Booking]:
        """Active bookings occupying the provider's time on a date, ordered by start"""
        return (
            db.query(Booking)
            .filter(
                Booking.provider_id == provider_id,
                Booking.scheduled_date == scheduled_date,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            .order_by(Booking.start_time)
            .all()
        )

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Insert a booking; the caller handles IntegrityError from the active-slot index"""
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def save(db: Session, booking: Booking) -> Booking:
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def increment_service_bookings(db: Session, service_id: int) -> None:
        """Atomic counter bump, no read-modify-write"""
        db.execute(
            update(Service)
            .where(Service.id == service_id)
            .values(total_bookings=Service.total_bookings + 1)
        )

    @staticmethod
    def list_bookings(
        db: Session,
        *,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        """
        Paginated booking list filtered by participant, status and date range.
        Returns (bookings, total_count).
        """
        query = db.query(Booking)
        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        if status:
            query = query.filter(Booking.status == status)
        if start_date:
            query = query.filter(Booking.scheduled_date >= start_date)
        if end_date:
            query = query.filter(Booking.scheduled_date <= end_date)

        total = query.count()
        bookings = (
            query.options(
                joinedload(Booking.customer),
                joinedload(Booking.provider),
                joinedload(Booking.service),
            )
            .order_by(Booking.scheduled_date.desc(), Booking.start_time.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total

    @staticmethod
    def _scoped(query, customer_id: Optional[int], provider_id: Optional[int]):
        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        return query

    @staticmethod
    def get_status_stats(
        db: Session,
        *,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
    ) -> list:
        """(status, bookings, revenue) rows grouped by booking status"""
        query = db.query(
            Booking.status,
            func.count(Booking.id).label("bookings"),
            func.coalesce(func.sum(TOTAL_AMOUNT), 0).label("revenue"),
        )
        query = BookingRepository._scoped(query, customer_id, provider_id)
        return query.group_by(Booking.status).order_by(Booking.status).all()

    @staticmethod
    def get_monthly_stats(
        db: Session,
        since: datetime,
        *,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list:
        """(year, month, bookings, revenue) rows for bookings created since a point in time"""
        year = extract("year", Booking.created_at)
        month = extract("month", Booking.created_at)
        query = db.query(
            year.label("year"),
            month.label("month"),
            func.count(Booking.id).label("bookings"),
            func.coalesce(func.sum(TOTAL_AMOUNT), 0).label("revenue"),
        ).filter(Booking.created_at >= since)
        query = BookingRepository._scoped(query, customer_id, provider_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.group_by(year, month).order_by(year, month).all()

    @staticmethod
    def list_recent_bookings(
        db: Session,
        *,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        limit: int = 5,
    ) -> list[Booking]:
        query = BookingRepository._scoped(db.query(Booking), customer_id, provider_id)
        return (
            query.options(
                joinedload(Booking.customer),
                joinedload(Booking.provider),
                joinedload(Booking.service),
            )
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_upcoming_bookings(
        db: Session,
        start_date: date,
        end_date: Optional[date] = None,
        *,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        limit: int = 10,
    ) -> list[Booking]:
        """Pending or confirmed bookings from start_date on, soonest first"""
        query = BookingRepository._scoped(db.query(Booking), customer_id, provider_id).filter(
            Booking.status.in_(("pending", "confirmed")),
            Booking.scheduled_date >= start_date,
        )
        if end_date:
            query = query.filter(Booking.scheduled_date <= end_date)
        return (
            query.options(
                joinedload(Booking.customer),
                joinedload(Booking.provider),
                joinedload(Booking.service),
            )
            .order_by(Booking.scheduled_date, Booking.start_time)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_bookings_needing_reminder(db: Session, scheduled_date: date) -> list[Booking]:
        """Pending or confirmed bookings on a date that have not been reminded yet"""
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.customer),
                joinedload(Booking.provider),
                joinedload(Booking.service),
            )
            .filter(
                Booking.scheduled_date == scheduled_date,
                Booking.status.in_(("pending", "confirmed")),
                Booking.reminder_sent_at.is_(None),
            )
            .all()
        )
