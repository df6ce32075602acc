"""Public property endpoints."""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.api.deps import query_values
from zentro.db.session import get_db
from zentro.schemas.models import (
    PropertyDetailResponse,
    PropertyListResponse,
    PropertySearchResponse,
    PropertyTypeResponse,
)
from zentro.services.params import page_params
from zentro.services.property_service import property_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get("", response_model=PropertyListResponse)
async def list_properties(
    values: Dict[str, Any] = Depends(query_values),
    db: AsyncSession = Depends(get_db)
):
    """List published properties with filters, sorting and pagination."""
    return await property_service.list_properties(db, values)


@router.get("/search/{term}", response_model=PropertySearchResponse)
async def search_properties(
    term: str,
    values: Dict[str, Any] = Depends(query_values),
    db: AsyncSession = Depends(get_db)
):
    return await property_service.search(db, term, values)


@router.get("/featured/list")
async def featured_properties(
    values: Dict[str, Any] = Depends(query_values),
    db: AsyncSession = Depends(get_db)
):
    limit, _ = page_params(values, default_limit=6)
    properties = await property_service.featured(db, limit)
    return {"properties": properties}


@router.get("/type/{property_type}", response_model=PropertyTypeResponse)
async def properties_by_type(
    property_type: str,
    values: Dict[str, Any] = Depends(query_values),
    db: AsyncSession = Depends(get_db)
):
    return await property_service.by_type(db, property_type, values)


@router.get("/stats/summary")
async def property_stats(db: AsyncSession = Depends(get_db)):
    """Aggregate counts and price range over live listings."""
    return await property_service.summary_stats(db)


@router.get("/{identifier}", response_model=PropertyDetailResponse)
async def get_property(
    identifier: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a property by numeric id or slug. Each call records one view."""
    return await property_service.get_public(db, identifier)
