"""
Unified Notification Service
Writes in-app notification rows and sends booking emails for lifecycle events.
Every function here is best-effort: failures are logged and never reach the
operation that triggered them.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ..database import SessionLocal
from ..email_service import dispatch_email
from ..models import Booking, Notification, User

logger = logging.getLogger(__name__)

# booking status -> (notification type, title, message)
BOOKING_STATUS_NOTIFICATIONS = {
    "confirmed": ("booking-confirmed", "Booking Confirmed", "Your booking {code} has been confirmed"),
    "rejected": ("booking-rejected", "Booking Declined", "Your booking {code} was declined by the provider"),
    "in-progress": ("booking-started", "Booking Started", "Your booking {code} is now in progress"),
    "completed": ("booking-completed", "Booking Completed", "Your booking {code} is complete"),
    "no-show": ("booking-no-show", "Marked as No-Show", "Your booking {code} was marked as a no-show"),
}


def create_notification(
    db: Session,
    recipient_id: int,
    notification_type: str,
    title: str,
    message: str,
    sender_id: Optional[int] = None,
    data: Optional[dict] = None,
) -> Optional[Notification]:
    """Persist one in-app notification. Returns None if it could not be saved."""
    try:
        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=notification_type,
            title=title,
            message=message,
            data=data or {},
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to create {notification_type} notification for user {recipient_id}: {e}")
        return None


def notify_booking_created(db: Session, booking: Booking) -> None:
    create_notification(
        db,
        recipient_id=booking.provider_id,
        sender_id=booking.customer_id,
        notification_type="booking-request",
        title="New Booking Request",
        message=f"You have a new booking request for {booking.scheduled_date} at {booking.start_time}",
        data={"bookingId": booking.id, "bookingCode": booking.booking_code},
    )


def notify_booking_status(db: Session, booking: Booking, actor: User) -> None:
    """In-app notification for a status change, sent to whoever did not make it"""
    booking_data = {"bookingId": booking.id, "bookingCode": booking.booking_code, "status": booking.status}

    if booking.status == "cancelled":
        recipients = {booking.customer_id, booking.provider_id} - {actor.id}
        for recipient_id in recipients:
            create_notification(
                db,
                recipient_id=recipient_id,
                sender_id=actor.id,
                notification_type="booking-cancelled",
                title="Booking Cancelled",
                message=f"Booking {booking.booking_code} has been cancelled",
                data=booking_data,
            )
        return

    entry = BOOKING_STATUS_NOTIFICATIONS.get(booking.status)
    if entry is None:
        return
    notification_type, title, message = entry
    create_notification(
        db,
        recipient_id=booking.customer_id,
        sender_id=actor.id,
        notification_type=notification_type,
        title=title,
        message=message.format(code=booking.booking_code),
        data=booking_data,
    )


def booking_email_data(booking: Booking) -> dict:
    """Template fields shared by every booking email"""
    return {
        "service_title": booking.service.title if booking.service else "Your booking",
        "scheduled_date": booking.scheduled_date.strftime("%A, %B %d, %Y"),
        "start_time": booking.start_time,
        "booking_code": booking.booking_code,
    }


def _load_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return (
        db.query(Booking)
        .options(joinedload(Booking.customer), joinedload(Booking.provider), joinedload(Booking.service))
        .filter(Booking.id == booking_id)
        .first()
    )


async def send_booking_event_emails(
    booking_id: int,
    event: str,
    actor_id: Optional[int] = None,
    note: Optional[str] = None,
) -> list[dict]:
    """
    Background task: email the participants about a booking event.

    Opens its own session because it runs after the request's session is closed.
    Events: "created", "cancelled", or any status name for a status update.
    """
    results: list[dict] = []
    db = SessionLocal()
    try:
        booking = _load_booking(db, booking_id)
        if not booking:
            logger.warning(f"⚠️ Booking {booking_id} not found for {event} email")
            return results

        customer, provider = booking.customer, booking.provider
        base = booking_email_data(booking)

        if event == "created":
            results.append(
                await dispatch_email(
                    "booking-request",
                    provider.email,
                    {
                        **base,
                        "provider_name": provider.first_name,
                        "customer_name": customer.full_name,
                        "notes": booking.notes,
                    },
                )
            )
            pricing = booking.pricing or {}
            results.append(
                await dispatch_email(
                    "booking-confirmation",
                    customer.email,
                    {
                        **base,
                        "customer_name": customer.first_name,
                        "total_amount": pricing.get("totalAmount", 0),
                        "currency": pricing.get("currency", "USD"),
                    },
                )
            )
        elif event == "cancelled":
            cancellation = booking.cancellation or {}
            cancelled_by = customer if cancellation.get("cancelledBy") == customer.id else provider
            if actor_id not in (customer.id, provider.id):
                cancelled_by_name = "Bookly support"
                recipients = [customer, provider]
            else:
                cancelled_by_name = cancelled_by.full_name
                recipients = [provider if cancelled_by is customer else customer]
            for recipient in recipients:
                results.append(
                    await dispatch_email(
                        "booking-cancelled",
                        recipient.email,
                        {
                            **base,
                            "recipient_name": recipient.first_name,
                            "cancelled_by_name": cancelled_by_name,
                            "reason": cancellation.get("reason"),
                            "fee": cancellation.get("fee", 0),
                            "currency": (booking.pricing or {}).get("currency", "USD"),
                        },
                    )
                )
        else:
            results.append(
                await dispatch_email(
                    "booking-status-update",
                    customer.email,
                    {**base, "recipient_name": customer.first_name, "status": event, "note": note},
                )
            )
        return results
    except Exception as e:
        logger.error(f"❌ Failed to send {event} emails for booking {booking_id}: {e}")
        return results
    finally:
        db.close()
