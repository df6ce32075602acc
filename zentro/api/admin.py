"""Admin endpoints: authentication, dashboard, property management and uploads."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.api.deps import client_info, get_storage, query_values
from zentro.db.session import get_db
from zentro.errors import NotFoundError
from zentro.schemas.models import (
    AdminInfo,
    AdminSessionResponse,
    ClientInfo,
    LoginRequest,
    LoginResponse,
    PropertyCreate,
    PropertyListResponse,
    PropertyMutationResponse,
    PropertyRef,
    PropertyResponse,
    UploadedFile,
    VerifyResponse,
)
from zentro.services.admin_service import admin_service
from zentro.services.auth_service import AuthService, bearer_token, get_auth_service, require_admin
from zentro.services.property_service import property_service
from zentro.services.storage_service import UploadStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _admin_info(claims: Dict[str, Any]) -> AdminInfo:
    return AdminInfo(
        username=claims.get("sub", ""),
        name=claims.get("name", ""),
        role=claims.get("role", ""),
        login_time=claims.get("login_time"),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    client: ClientInfo = Depends(client_info),
    auth: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db)
):
    """Exchange the admin credentials for a bearer token."""
    issued = auth.login(payload.login_name, payload.password)
    await admin_service.record_session(db, issued.claims["sub"], issued.token, issued.expires_at, client)
    logger.info(f"Admin login from {client.ip_address}")

    return LoginResponse(
        message="Login successful",
        token=issued.token,
        expires_at=issued.expires_at,
        admin=_admin_info(issued.claims),
    )


@router.post("/logout")
async def logout(
    admin: dict = Depends(require_admin),
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db)
):
    await admin_service.deactivate_session(db, token)
    return {"message": "Logout successful"}


@router.get("/verify", response_model=VerifyResponse)
async def verify(admin: dict = Depends(require_admin)):
    return VerifyResponse(valid=True, admin=_admin_info(admin))


@router.get("/dashboard/stats")
async def dashboard_stats(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await admin_service.dashboard_stats(db)


@router.get("/sessions", response_model=List[AdminSessionResponse])
async def sessions(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Unexpired admin sessions, most recently active first."""
    return await admin_service.active_sessions(db)


# Properties

@router.get("/properties", response_model=PropertyListResponse)
async def list_properties(
    values: Dict[str, Any] = Depends(query_values),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """All properties, including unpublished and unavailable ones."""
    return await property_service.admin_list(db, values)


@router.post("/properties", status_code=201, response_model=PropertyMutationResponse)
async def create_property(
    payload: PropertyCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    prop = await property_service.create(db, payload)
    return PropertyMutationResponse(
        message="Property created successfully",
        property=PropertyRef.model_validate(prop),
    )


@router.get("/properties/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await property_service.get_by_id(db, property_id)


@router.put("/properties/{property_id}", response_model=PropertyMutationResponse)
async def update_property(
    property_id: int,
    body: Dict[str, Any] = Body(...),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Partial update. Unknown or read-only fields are rejected by name."""
    prop = await property_service.update(db, property_id, body)
    return PropertyMutationResponse(
        message="Property updated successfully",
        property=PropertyRef.model_validate(prop),
    )


@router.delete("/properties/{property_id}")
async def delete_property(
    property_id: int,
    admin: dict = Depends(require_admin),
    storage: UploadStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db)
):
    deleted = await property_service.delete(db, storage, property_id)
    return {"message": "Property deleted successfully", "property": deleted}


# Uploads

async def _store_upload(
    db: AsyncSession,
    storage: UploadStorage,
    upload: UploadFile,
    property_id: Optional[int],
    alt: Optional[str]
) -> UploadedFile:
    data = await upload.read()
    relative = storage.save(property_id, upload.filename or "file", data, upload.content_type)
    url = storage.public_url(relative)
    if property_id is not None:
        if upload.content_type.startswith("image/"):
            await property_service.attach_image(db, property_id, url, alt)
        else:
            await property_service.attach_video(db, property_id, url)
    return UploadedFile(
        filename=relative.rsplit("/", 1)[-1],
        url=url,
        size=len(data),
        content_type=upload.content_type,
        property_id=property_id,
    )


async def _require_property(db: AsyncSession, property_id: Optional[int]) -> None:
    if property_id is not None and not await property_service.exists(db, property_id):
        raise NotFoundError("Property not found")


@router.post("/upload", status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    property_id: Optional[int] = Form(None),
    alt: Optional[str] = Form(None),
    admin: dict = Depends(require_admin),
    storage: UploadStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db)
):
    """Upload one image or video, optionally attaching it to a property."""
    await _require_property(db, property_id)
    uploaded = await _store_upload(db, storage, file, property_id, alt)
    return {"message": "File uploaded successfully", "file": uploaded}


@router.post("/upload/multiple", status_code=201)
async def upload_files(
    files: List[UploadFile] = File(...),
    property_id: Optional[int] = Form(None),
    admin: dict = Depends(require_admin),
    storage: UploadStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db)
):
    await _require_property(db, property_id)
    uploaded = [await _store_upload(db, storage, f, property_id, None) for f in files]
    return {"message": f"{len(uploaded)} files uploaded successfully", "files": uploaded}


@router.delete("/upload/{property_id}/{filename}")
async def delete_upload(
    property_id: int,
    filename: str,
    admin: dict = Depends(require_admin),
    storage: UploadStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db)
):
    storage.delete_file(property_id, filename)
    await property_service.detach_media(db, property_id, storage.public_url(f"{property_id}/{filename}"))
    return {"message": "File deleted successfully"}
