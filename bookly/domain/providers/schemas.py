"""Provider schemas - Public provider profiles"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import User, default_provider_info
from ..catalog.schemas import ServiceResponse


class ProviderResponse(BaseModel):
    """Public profile; contact details stay private until a booking exists"""

    id: int
    firstName: str
    lastName: str
    isVerified: bool
    providerInfo: dict
    createdAt: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "ProviderResponse":
        return cls(
            id=user.id,
            firstName=user.first_name,
            lastName=user.last_name,
            isVerified=user.is_verified,
            providerInfo={**default_provider_info(), **(user.provider_info or {})},
            createdAt=user.created_at,
        )


class ProviderDetailResponse(ProviderResponse):
    services: list[ServiceResponse] = []
