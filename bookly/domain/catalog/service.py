"""Catalog service - Business logic for services and categories"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Category, Service, User
from ...shared.errors import Forbidden, NotFound, ValidationError
from .repository import CatalogRepository
from .schemas import CategoryResponse, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

# ServiceUpdate field -> column
SERVICE_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "categoryId": "category_id",
    "duration": "duration",
    "price": "price",
    "currency": "currency",
    "locationType": "location_type",
    "cancelPolicy": "cancel_policy",
    "availability": "availability",
    "isActive": "is_active",
}

# Fields a PATCH may clear with an explicit null
NULLABLE_SERVICE_FIELDS = {"categoryId", "availability"}


class CatalogService:
    """Service layer for the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        category = self.repo.get_category(self.db, category_id)
        if not category or not category.is_active:
            raise ValidationError("Category not found or inactive")

    def get_service(self, service_id: int, viewer: Optional[User] = None) -> Service:
        """Bookable services are public; inactive ones are visible to their owner and admins"""
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFound("Service not found")
        if not (service.is_active and service.is_approved):
            if not viewer or (viewer.role != "admin" and viewer.id != service.provider_id):
                raise NotFound("Service not found")
        return service

    def list_services(self, **filters) -> tuple[list[Service], int]:
        min_price, max_price = filters.get("min_price"), filters.get("max_price")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("minPrice must not exceed maxPrice")
        return self.repo.list_services(self.db, **filters)

    def create_service(self, data: ServiceCreate, provider: User) -> Service:
        logger.info(f"📥 Creating service for provider {provider.id}")
        self._check_category(data.categoryId)

        service = self.repo.create_service(
            self.db,
            provider.id,
            title=data.title,
            description=data.description,
            category_id=data.categoryId,
            duration=data.duration,
            price=data.price,
            currency=data.currency,
            location_type=data.locationType,
            cancel_policy=data.cancelPolicy,
            availability=data.availability,
        )
        logger.info(f"✅ Service {service.id} created")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate, user: User) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFound("Service not found")
        if user.role != "admin" and service.provider_id != user.id:
            raise Forbidden("Not authorized to update this service")

        self._check_category(data.categoryId)
        updates = {}
        for field, column in SERVICE_FIELD_MAP.items():
            if field not in data.model_fields_set:
                continue
            value = getattr(data, field)
            if value is None and field not in NULLABLE_SERVICE_FIELDS:
                continue
            updates[column] = value
        service = self.repo.update_service(self.db, service, **updates)
        logger.info(f"✅ Service {service.id} updated: {sorted(updates)}")
        return service

    def get_category_tree(self) -> list[CategoryResponse]:
        """Active categories nested under their parents, roots first"""
        categories: list[Category] = self.repo.get_active_categories(self.db)
        nodes = {c.id: CategoryResponse.from_category(c) for c in categories}

        roots = []
        for category in categories:
            node = nodes[category.id]
            parent = nodes.get(category.parent_id) if category.parent_id else None
            if parent is not None:
                parent.children.append(node)
            elif category.parent_id is None:
                roots.append(node)
        return roots
