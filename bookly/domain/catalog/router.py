"""Catalog router - FastAPI endpoints for services and categories"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user, require_provider
from ...database import get_db
from ...models import User
from ...shared.responses import paginated_response, success_response
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.post("/services", status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: User = Depends(require_provider),
    service: CatalogService = Depends(get_catalog_service),
):
    created = service.create_service(data, current_user)
    return success_response(
        ServiceResponse.from_service(created).model_dump(), "Service created successfully", status_code=201
    )


@router.get("/services")
async def list_services(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    provider_id: Optional[int] = Query(None, alias="providerId"),
    search: Optional[str] = Query(None, max_length=100),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    sort: str = Query("newest", pattern="^(newest|rating|price-asc|price-desc|popular)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    service: CatalogService = Depends(get_catalog_service),
):
    """Browse bookable services"""
    services, total = service.list_services(
        category_id=category_id,
        provider_id=provider_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        page=page,
        limit=limit,
    )
    return paginated_response(
        [ServiceResponse.from_service(s).model_dump() for s in services],
        page,
        limit,
        total,
        "Services retrieved successfully",
    )


@router.get("/services/{service_id}")
async def get_service(
    service_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: CatalogService = Depends(get_catalog_service),
):
    found = service.get_service(service_id, current_user)
    return success_response(ServiceResponse.from_service(found).model_dump(), "Service retrieved successfully")


@router.patch("/services/{service_id}")
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Owner or admin update; rating and booking counters are not writable"""
    updated = service.update_service(service_id, data, current_user)
    return success_response(ServiceResponse.from_service(updated).model_dump(), "Service updated successfully")


@router.get("/categories")
async def list_categories(service: CatalogService = Depends(get_catalog_service)):
    """Active category tree"""
    tree = service.get_category_tree()
    return success_response([node.model_dump() for node in tree], "Categories retrieved successfully")
