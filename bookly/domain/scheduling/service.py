"""Scheduling service - slot availability for a service on a date"""

import logging
from datetime import date, datetime
from typing import Callable

from sqlalchemy.orm import Session

from ...shared.errors import InvalidConfiguration, NotFound, ValidationError
from ...shared.time_utils import utc_now
from ..bookings.repository import BookingRepository
from .availability_service import BookedInterval, TimeSlot, compute_availability, resolve_working_windows

logger = logging.getLogger(__name__)


class SchedulingService:
    """Reads the persisted inputs of the slot calculator and runs it"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.bookings = BookingRepository()
        self.clock = clock

    def get_service_slots(self, service_id: int, target_date: date) -> list[TimeSlot]:
        service = self.bookings.get_service(self.db, service_id)
        if not service or not service.is_active or not service.is_approved:
            raise NotFound("Service not found or unavailable")

        booked = [
            BookedInterval(start=b.start_time, end=b.end_time)
            for b in self.bookings.get_active_bookings_for_date(self.db, service.provider_id, target_date)
        ]

        try:
            windows = resolve_working_windows(service.availability, target_date)
            return compute_availability(service.duration, target_date, booked, self.clock(), windows)
        except InvalidConfiguration as e:
            logger.error(f"❌ Service {service.id} has an unusable schedule: {e}")
            raise ValidationError(str(e)) from e
