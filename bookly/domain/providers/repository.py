"""Provider repository - Database queries for the public provider directory"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Service, User

# providerInfo aggregates read inside the database for sorting
PROVIDER_RATING = func.coalesce(User.provider_info["rating"].as_float(), 0)
PROVIDER_REVIEW_COUNT = func.coalesce(User.provider_info["reviewCount"].as_integer(), 0)

PROVIDER_SORTS = {
    "newest": (User.created_at.desc(), User.id.desc()),
    "rating": (PROVIDER_RATING.desc(), PROVIDER_REVIEW_COUNT.desc(), User.id.asc()),
}


class ProviderRepository:
    """Repository for provider lookups"""

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[User]:
        """An active provider account, or None"""
        return (
            db.query(User)
            .filter(User.id == provider_id, User.role == "provider", User.is_active.is_(True))
            .first()
        )

    @staticmethod
    def list_providers(
        db: Session,
        *,
        search: Optional[str] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[User], int]:
        """Active providers. Returns (providers, total_count)."""
        query = db.query(User).filter(User.role == "provider", User.is_active.is_(True))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern)))

        total = query.count()
        providers = (
            query.order_by(*PROVIDER_SORTS.get(sort, PROVIDER_SORTS["newest"]))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return providers, total

    @staticmethod
    def list_bookable_services(db: Session, provider_id: int) -> list[Service]:
        return (
            db.query(Service)
            .filter(
                Service.provider_id == provider_id,
                Service.is_active.is_(True),
                Service.is_approved.is_(True),
            )
            .order_by(Service.created_at.desc(), Service.id.desc())
            .all()
        )
