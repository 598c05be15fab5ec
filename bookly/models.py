import secrets

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .shared.time_utils import utc_now

# Statuses that occupy a provider's time slot
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed", "in-progress")

_ACTIVE_SLOT_CLAUSE = text("status IN ('pending', 'confirmed', 'in-progress')")


def generate_booking_code() -> str:
    """Human-readable booking reference, distinct from the primary key"""
    return f"BK-{utc_now():%Y%m%d}-{secrets.token_hex(4).upper()}"


def default_provider_info() -> dict:
    return {"bio": None, "specialties": [], "rating": 0, "reviewCount": 0}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), default="user", nullable=False)  # user, provider, admin
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    # Account lock after repeated failed logins (set by the login flow)
    login_attempts = Column(Integer, default=0, nullable=False)
    lock_until = Column(DateTime, nullable=True)
    # Provider projection: bio, specialties, rating, reviewCount
    # rating/reviewCount are owned by the rating aggregator
    provider_info = Column(JSON, default=default_provider_info, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    services = relationship("Service", back_populates="provider")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    description = Column(String(500), nullable=True)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    level = Column(Integer, default=0, nullable=False)  # 0 for root categories
    order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    # Refreshed periodically by the worker, not on every service change
    service_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent")
    services = relationship("Service", back_populates="category")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    location_type = Column(String(30), default="provider-location", nullable=False)
    # {"monday": {"available": true, "slots": [{"start": "09:00", "end": "17:00"}]}, ...}
    availability = Column(JSON, nullable=True)
    cancel_policy = Column(String(20), default="moderate", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_approved = Column(Boolean, default=True, nullable=False)
    # Derived from reviews, never written directly
    rating_average = Column(Float, default=0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    total_bookings = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("User", back_populates="services")
    category = relationship("Category", back_populates="services")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # At most one active booking per provider per start slot
        Index(
            "uq_bookings_active_slot",
            "provider_id",
            "scheduled_date",
            "start_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_CLAUSE,
            sqlite_where=_ACTIVE_SLOT_CLAUSE,
        ),
        Index("ix_bookings_provider_date", "provider_id", "scheduled_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_code = Column(String(40), unique=True, index=True, nullable=False, default=generate_booking_code)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False)  # minutes
    status = Column(String(20), default="pending", nullable=False, index=True)
    # Snapshot at creation: serviceFee, platformFee, taxes, discount, totalAmount, currency
    pricing = Column(JSON, nullable=False)
    # Append-only list of {status, timestamp, updatedBy, note}
    timeline = Column(JSON, default=list, nullable=False)
    # {cancelledBy, cancelledAt, reason, refundEligible, fee}
    cancellation = Column(JSON, nullable=True)
    notes = Column(String(500), nullable=True)
    provider_notes = Column(String(500), nullable=True)
    reminder_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    service = relationship("Service")
    review = relationship("Review", back_populates="booking", uselist=False)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    title = Column(String(100), nullable=True)
    content = Column(String(1000), nullable=False)
    is_recommended = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="active", nullable=False, index=True)  # active, reported, hidden, removed
    helpful_count = Column(Integer, default=0, nullable=False)
    helpful_voters = Column(JSON, default=list, nullable=False)
    # {content, respondedAt, respondedBy}
    response = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="review")
    customer = relationship("User", foreign_keys=[customer_id])


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    type = Column(String(40), nullable=False)  # booking-request, booking-confirmed, ...
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    data = Column(JSON, nullable=True)  # {bookingId, reviewId, ...}
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
