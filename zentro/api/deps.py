"""Shared request dependencies."""
from typing import Any, Dict

from fastapi import Request

from zentro.schemas.models import ClientInfo
from zentro.services.storage_service import UploadStorage


def client_info(request: Request) -> ClientInfo:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return ClientInfo(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
    )


def query_values(request: Request) -> Dict[str, Any]:
    """Raw query parameters; services coerce the ones they recognise."""
    return dict(request.query_params)


def get_storage(request: Request) -> UploadStorage:
    return request.app.state.storage
