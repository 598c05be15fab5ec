"""
Booking state machine.

    pending      -> confirmed | cancelled | rejected
    confirmed    -> in-progress | cancelled | no-show
    in-progress  -> completed | cancelled

completed, cancelled, no-show, rejected and refunded are terminal. Moving a
booking into the status it already has is never a valid transition.
"""

from datetime import datetime
from typing import Optional

from ...config import CANCELLATION_FEE_RATE, CANCELLATION_WINDOW_HOURS
from ...models import Booking, User
from ...shared.errors import Forbidden, InvalidTransition, ValidationError

BOOKING_STATUSES = (
    "pending",
    "confirmed",
    "in-progress",
    "completed",
    "cancelled",
    "no-show",
    "rejected",
    "refunded",
)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled", "rejected"}),
    "confirmed": frozenset({"in-progress", "cancelled", "no-show"}),
    "in-progress": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
    "no-show": frozenset(),
    "rejected": frozenset(),
    "refunded": frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)

# The explicit cancel operation is narrower than the transition table
CANCELLABLE_STATUSES = ("pending", "confirmed")


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(current: str, target: str) -> None:
    if target not in BOOKING_STATUSES:
        raise ValidationError(f"Invalid booking status: {target}")
    if not can_transition(current, target):
        raise InvalidTransition(current, target)


def authorize_transition(booking: Booking, actor: User, target: str) -> None:
    """
    Cancellation is open to both participants; every other transition belongs
    to the booking's provider. Admins may do anything.
    """
    if actor.role == "admin":
        return

    if target == "cancelled":
        if actor.id in (booking.customer_id, booking.provider_id):
            return
        raise Forbidden("Not authorized to cancel this booking")

    if actor.id != booking.provider_id:
        raise Forbidden("Only the provider can update booking status")


def hours_until(start: datetime, now: datetime) -> float:
    return (start - now).total_seconds() / 3600


def calculate_cancellation_fee(total_amount: float, scheduled_start: datetime, now: datetime) -> float:
    """
    Late-cancellation fee.

    Strictly less than CANCELLATION_WINDOW_HOURS before the start is late:
    23h59m out pays the fee, exactly 24h00m out does not.
    """
    if hours_until(scheduled_start, now) < CANCELLATION_WINDOW_HOURS:
        return round((total_amount or 0) * CANCELLATION_FEE_RATE, 2)
    return 0.0


def build_timeline_entry(status: str, actor_id: int, timestamp: datetime, note: Optional[str] = None) -> dict:
    return {
        "status": status,
        "timestamp": timestamp.isoformat(),
        "updatedBy": actor_id,
        "note": note,
    }


def append_timeline(booking: Booking, entry: dict) -> None:
    # Reassign so the JSON column is flagged dirty; existing entries are never touched
    booking.timeline = [*(booking.timeline or []), entry]


def apply_transition(
    booking: Booking, target: str, actor: User, now: datetime, note: Optional[str] = None
) -> str:
    """
    Validate and apply a status change in memory. Returns the previous status.

    Checks run in order: known status, actor authorization, transition table.
    On failure the booking is left unchanged.
    """
    if target not in BOOKING_STATUSES:
        raise ValidationError(f"Invalid booking status: {target}")
    authorize_transition(booking, actor, target)
    validate_transition(booking.status, target)

    previous = booking.status
    booking.status = target
    append_timeline(booking, build_timeline_entry(target, actor.id, now, note))
    return previous
