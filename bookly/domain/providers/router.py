"""Provider router - Public provider directory endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.responses import paginated_response, success_response
from .schemas import ProviderResponse
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


@router.get("")
async def list_providers(
    search: Optional[str] = Query(None, max_length=100),
    sort: str = Query("newest", pattern="^(newest|rating)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    service: ProviderService = Depends(get_provider_service),
):
    """Browse active providers with their rating aggregates"""
    providers, total = service.list_providers(search=search, sort=sort, page=page, limit=limit)
    return paginated_response(
        [ProviderResponse.from_user(p).model_dump() for p in providers],
        page,
        limit,
        total,
        "Providers retrieved successfully",
    )


@router.get("/{provider_id}")
async def get_provider(provider_id: int, service: ProviderService = Depends(get_provider_service)):
    profile = service.get_provider(provider_id)
    return success_response(profile.model_dump(), "Provider retrieved successfully")
