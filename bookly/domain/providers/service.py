"""Provider service - Business logic for the provider directory"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...shared.errors import NotFound
from ..catalog.schemas import ServiceResponse
from .repository import ProviderRepository
from .schemas import ProviderDetailResponse, ProviderResponse

logger = logging.getLogger(__name__)


class ProviderService:
    """Service layer for public provider profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def list_providers(
        self, *, search: Optional[str] = None, sort: str = "newest", page: int = 1, limit: int = 12
    ) -> tuple[list[User], int]:
        return self.repo.list_providers(self.db, search=search, sort=sort, page=page, limit=limit)

    def get_provider(self, provider_id: int) -> ProviderDetailResponse:
        """Profile with rating aggregates and the provider's bookable services"""
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            logger.warning(f"⚠️ Provider {provider_id} not found or inactive")
            raise NotFound("Provider not found")

        services = self.repo.list_bookable_services(self.db, provider.id)
        return ProviderDetailResponse(
            **ProviderResponse.from_user(provider).model_dump(),
            services=[ServiceResponse.from_service(s) for s in services],
        )
