"""Catalog repository - Database operations for services and categories"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Category, Service

SERVICE_SORTS = {
    "newest": (Service.created_at.desc(), Service.id.desc()),
    "rating": (Service.rating_average.desc(), Service.rating_count.desc()),
    "price-asc": (Service.price.asc(),),
    "price-desc": (Service.price.desc(),),
    "popular": (Service.total_bookings.desc(),),
}


class CatalogRepository:
    """Repository for service and category database operations"""

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_category(db: Session, category_id: int) -> Optional[Category]:
        return db.query(Category).filter(Category.id == category_id).first()

    @staticmethod
    def create_service(db: Session, provider_id: int, **service_data) -> Service:
        service = Service(provider_id=provider_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a service with provided fields; None clears a column"""
        for key, value in updates.items():
            if hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def list_services(
        db: Session,
        *,
        category_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[Service], int]:
        """Bookable (active and approved) services. Returns (services, total_count)."""
        query = db.query(Service).filter(Service.is_active.is_(True), Service.is_approved.is_(True))
        if category_id is not None:
            query = query.filter(Service.category_id == category_id)
        if provider_id is not None:
            query = query.filter(Service.provider_id == provider_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Service.title.ilike(pattern), Service.description.ilike(pattern)))
        if min_price is not None:
            query = query.filter(Service.price >= min_price)
        if max_price is not None:
            query = query.filter(Service.price <= max_price)

        total = query.count()
        services = (
            query.order_by(*SERVICE_SORTS.get(sort, SERVICE_SORTS["newest"]))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return services, total

    @staticmethod
    def get_active_categories(db: Session) -> list[Category]:
        return (
            db.query(Category)
            .filter(Category.is_active.is_(True))
            .order_by(Category.level, Category.order, Category.name)
            .all()
        )

    @staticmethod
    def refresh_category_counts(db: Session) -> int:
        """Recount bookable services per category. Returns the number of categories updated."""
        counts = dict(
            db.query(Service.category_id, func.count(Service.id))
            .filter(
                Service.category_id.isnot(None),
                Service.is_active.is_(True),
                Service.is_approved.is_(True),
            )
            .group_by(Service.category_id)
            .all()
        )

        updated = 0
        for category in db.query(Category).all():
            count = int(counts.get(category.id, 0))
            if category.service_count != count:
                category.service_count = count
                updated += 1
        db.commit()
        return updated
