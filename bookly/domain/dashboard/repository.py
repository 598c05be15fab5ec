"""Dashboard repository - Aggregate queries not owned by another domain"""

from datetime import datetime

from sqlalchemy import case, extract, func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Category, Review, Service, User


class DashboardRepository:
    """Repository for dashboard aggregates"""

    @staticmethod
    def get_provider_service_stats(db: Session, provider_id: int):
        """(services, average_rating, reviews) over the provider's active services"""
        rated_average = case((Service.rating_count > 0, Service.rating_average))
        return (
            db.query(
                func.count(Service.id).label("services"),
                func.avg(rated_average).label("average_rating"),
                func.coalesce(func.sum(Service.rating_count), 0).label("reviews"),
            )
            .filter(Service.provider_id == provider_id, Service.is_active.is_(True))
            .one()
        )

    @staticmethod
    def list_bookings_awaiting_review(db: Session, customer_id: int, limit: int = 5) -> list[Booking]:
        """Completed bookings of a customer that have no review yet"""
        return (
            db.query(Booking)
            .outerjoin(Review, Review.booking_id == Booking.id)
            .options(joinedload(Booking.provider), joinedload(Booking.service))
            .filter(
                Booking.customer_id == customer_id,
                Booking.status == "completed",
                Review.id.is_(None),
            )
            .order_by(Booking.scheduled_date.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_favorite_categories(db: Session, customer_id: int, limit: int = 5) -> list:
        """(id, name, bookings) rows for the categories a customer books most"""
        bookings = func.count(Booking.id).label("bookings")
        return (
            db.query(Category.id, Category.name, bookings)
            .join(Service, Service.category_id == Category.id)
            .join(Booking, Booking.service_id == Service.id)
            .filter(Booking.customer_id == customer_id)
            .group_by(Category.id, Category.name)
            .order_by(bookings.desc(), Category.name)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_user_role_counts(db: Session) -> dict[str, int]:
        rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
        return {role: int(count) for role, count in rows}

    @staticmethod
    def get_monthly_signups(db: Session, since: datetime) -> list:
        """(year, month, role, users) rows for accounts created since a point in time"""
        year = extract("year", User.created_at)
        month = extract("month", User.created_at)
        return (
            db.query(year.label("year"), month.label("month"), User.role, func.count(User.id).label("users"))
            .filter(User.created_at >= since)
            .group_by(year, month, User.role)
            .order_by(year, month, User.role)
            .all()
        )

    @staticmethod
    def get_service_totals(db: Session):
        """(total, active, approved) service counts"""
        return db.query(
            func.count(Service.id).label("total"),
            func.coalesce(func.sum(case((Service.is_active.is_(True), 1), else_=0)), 0).label("active"),
            func.coalesce(func.sum(case((Service.is_approved.is_(True), 1), else_=0)), 0).label("approved"),
        ).one()

    @staticmethod
    def count_pending_approvals(db: Session) -> int:
        """Active services still waiting for admin approval"""
        return (
            db.query(func.count(Service.id))
            .filter(Service.is_active.is_(True), Service.is_approved.is_(False))
            .scalar()
            or 0
        )
