"""Analytics tracking and reporting endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.api.deps import client_info
from zentro.db.session import get_db
from zentro.schemas.models import AnalyticsTrack, ClientInfo
from zentro.services.analytics_service import DEFAULT_RETENTION_DAYS, analytics_service
from zentro.services.auth_service import require_admin
from zentro.services.params import period_days

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post("/track", status_code=201)
async def track_event(
    payload: AnalyticsTrack,
    client: ClientInfo = Depends(client_info),
    db: AsyncSession = Depends(get_db)
):
    """Record one analytics event from the public site."""
    event = await analytics_service.track(db, payload, client)
    return {
        "message": "Analytics event tracked",
        "event": {"id": event.id, "tracked_at": event.created_at},
    }


@router.get("/overview")
async def overview(
    period: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await analytics_service.overview(db, period_days(period))


@router.get("/properties/{property_id}")
async def property_analytics(
    property_id: int,
    period: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await analytics_service.property_report(db, property_id, period_days(period))


@router.get("/traffic-sources")
async def traffic_sources(
    period: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await analytics_service.traffic_sources(db, period_days(period))


@router.get("/devices")
async def devices(
    period: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await analytics_service.devices(db, period_days(period))


@router.get("/searches")
async def searches(
    period: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await analytics_service.searches(db, period_days(period))


@router.delete("/cleanup")
async def cleanup(
    days: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete events older than the retention window (365 days by default)."""
    kept_days = period_days(days, default=DEFAULT_RETENTION_DAYS)
    deleted = await analytics_service.cleanup(db, kept_days)
    return {
        "message": "Analytics data cleaned up successfully",
        "deleted_records": deleted,
        "kept_days": kept_days,
    }
