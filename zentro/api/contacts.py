"""Contact inquiry endpoints."""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.api.deps import client_info, query_values
from zentro.db.session import get_db
from zentro.schemas.models import (
    ClientInfo,
    ContactCreate,
    ContactListResponse,
    ContactResponse,
    ContactStatusUpdate,
)
from zentro.services.auth_service import require_admin
from zentro.services.contact_service import contact_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.post("", status_code=201)
async def submit_inquiry(
    payload: ContactCreate,
    client: ClientInfo = Depends(client_info),
    db: AsyncSession = Depends(get_db)
):
    """Submit a contact inquiry from the public site."""
    inquiry = await contact_service.submit(db, payload, client)
    return {
        "message": "Contact inquiry submitted successfully",
        "inquiry": {
            "id": inquiry.id,
            "uuid": inquiry.uuid,
            "submitted_at": inquiry.created_at,
        },
    }


@router.get("/property/{property_id}/count")
async def inquiry_count_for_property(
    property_id: int,
    db: AsyncSession = Depends(get_db)
):
    return await contact_service.property_counts(db, property_id)


@router.get("", response_model=ContactListResponse)
async def list_inquiries(
    values: Dict[str, Any] = Depends(query_values),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await contact_service.list(db, values)


@router.get("/stats/summary")
async def inquiry_stats(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await contact_service.summary_stats(db)


@router.get("/{identifier}", response_model=ContactResponse)
async def get_inquiry(
    identifier: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get one inquiry by id or UUID."""
    return await contact_service.get(db, identifier)


@router.put("/{identifier}/status")
async def update_inquiry_status(
    identifier: str,
    payload: ContactStatusUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    inquiry = await contact_service.update_status(db, identifier, payload)
    return {
        "message": "Contact inquiry updated successfully",
        "inquiry": {
            "id": inquiry.id,
            "status": inquiry.status,
            "priority": inquiry.priority,
            "assigned_to": inquiry.assigned_to,
            "updated_at": inquiry.updated_at,
            "contacted_at": inquiry.contacted_at,
        },
    }


@router.delete("/{identifier}")
async def delete_inquiry(
    identifier: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await contact_service.delete(db, identifier)
    return {"message": "Contact inquiry deleted successfully"}
