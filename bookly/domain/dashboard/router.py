"""Dashboard router - Role dashboards"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin, require_customer, require_provider
from ...database import get_db
from ...models import User
from ...shared.responses import success_response
from .service import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


@router.get("/provider")
async def get_provider_dashboard(
    current_user: User = Depends(require_provider),
    service: DashboardService = Depends(get_dashboard_service),
):
    return success_response(
        service.provider_dashboard(current_user), "Provider dashboard data retrieved successfully"
    )


@router.get("/user")
async def get_user_dashboard(
    current_user: User = Depends(require_customer),
    service: DashboardService = Depends(get_dashboard_service),
):
    return success_response(service.customer_dashboard(current_user), "User dashboard data retrieved successfully")


@router.get("/admin")
async def get_admin_dashboard(
    current_user: User = Depends(require_admin),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Platform-wide totals for administrators"""
    return success_response(service.admin_dashboard(), "Admin dashboard data retrieved successfully")
