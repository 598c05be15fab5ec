"""Scheduling router - public slot availability"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.responses import success_response
from .service import SchedulingService

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


@router.get("/availability")
async def get_service_availability(
    service_id: int = Query(..., alias="serviceId"),
    target_date: date = Query(..., alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Time slots for a service on a date, each flagged available or taken"""
    slots = service.get_service_slots(service_id, target_date)
    return success_response(
        {
            "serviceId": service_id,
            "date": target_date,
            "slots": [slot.model_dump(by_alias=True) for slot in slots],
            "availableCount": sum(1 for slot in slots if slot.available),
        },
        "Availability retrieved successfully",
    )
