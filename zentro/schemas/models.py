from datetime import datetime
from typing import Optional, List, Dict, Any, Annotated
from uuid import UUID
from pydantic import BaseModel, BeforeValidator, EmailStr, Field

from zentro.db.models import PropertyType, PropertyStatus, InquiryStatus, InquiryPriority


class PropertyImage(BaseModel):
    url: str
    alt: Optional[str] = None
    is_primary: bool = False
    display_order: int = 0


def _coerce_images(value: Any) -> Any:
    # Plain URL strings are accepted alongside full image objects
    if isinstance(value, list):
        return [{"url": item} if isinstance(item, str) else item for item in value]
    return value


ImageList = Annotated[List[PropertyImage], BeforeValidator(_coerce_images)]


class PropertyFields(BaseModel):
    currency: str = "KES"
    location_country: str = "Kenya"
    coordinates_lat: Optional[float] = None
    coordinates_lng: Optional[float] = None
    parking: int = 0
    size_unit: str = "m²"
    year_built: Optional[int] = None
    furnished: bool = True
    short_description: Optional[str] = None
    images: ImageList = []
    videos: List[str] = []
    virtual_tour_url: Optional[str] = None
    youtube_url: Optional[str] = None
    amenities: List[str] = []
    features: Dict[str, Any] = {}
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: List[str] = []
    available: bool = True
    featured: bool = False
    published: bool = True


class PropertyCreate(PropertyFields):
    title: str = Field(..., min_length=1)
    type: PropertyType
    status: PropertyStatus
    price: int = Field(..., gt=0)
    location_area: str = Field(..., min_length=1)
    location_city: str = Field(..., min_length=1)
    bedrooms: int = Field(..., gt=0)
    bathrooms: int = Field(..., gt=0)
    size: int = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    slug: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class PropertyUpdate(BaseModel):
    """Partial update; any field outside this model is rejected."""

    title: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1)
    type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    price: Optional[int] = Field(None, gt=0)
    currency: Optional[str] = None
    location_area: Optional[str] = None
    location_city: Optional[str] = None
    location_country: Optional[str] = None
    coordinates_lat: Optional[float] = None
    coordinates_lng: Optional[float] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    parking: Optional[int] = Field(None, ge=0)
    size: Optional[int] = Field(None, gt=0)
    size_unit: Optional[str] = None
    year_built: Optional[int] = None
    furnished: Optional[bool] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    images: Optional[ImageList] = None
    videos: Optional[List[str]] = None
    virtual_tour_url: Optional[str] = None
    youtube_url: Optional[str] = None
    amenities: Optional[List[str]] = None
    features: Optional[Dict[str, Any]] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[List[str]] = None
    available: Optional[bool] = None
    featured: Optional[bool] = None
    published: Optional[bool] = None

    class Config:
        extra = "forbid"
        str_strip_whitespace = True


class PropertyResponse(BaseModel):
    id: int
    uuid: UUID
    title: str
    slug: str
    type: str
    status: str
    price: int
    currency: Optional[str] = None
    location_area: str
    location_city: str
    location_country: Optional[str] = None
    coordinates_lat: Optional[float] = None
    coordinates_lng: Optional[float] = None
    bedrooms: int
    bathrooms: int
    parking: Optional[int] = 0
    size: int
    size_unit: Optional[str] = None
    year_built: Optional[int] = None
    furnished: Optional[bool] = None
    description: str
    short_description: Optional[str] = None
    images: ImageList = []
    videos: List[str] = []
    virtual_tour_url: Optional[str] = None
    youtube_url: Optional[str] = None
    amenities: List[str] = []
    features: Dict[str, Any] = {}
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: List[str] = []
    available: bool
    featured: bool
    published: bool
    views_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    hasNext: bool
    hasPrev: bool


class PropertyListResponse(BaseModel):
    properties: List[PropertyResponse]
    pagination: Pagination


class PropertyDetailResponse(BaseModel):
    property: PropertyResponse
    related: List[PropertyResponse] = []


class PropertySearchResponse(BaseModel):
    results: List[PropertyResponse]
    searchTerm: str
    pagination: Pagination


class PropertyTypeResponse(BaseModel):
    properties: List[PropertyResponse]
    type: str
    pagination: Pagination


class PropertyRef(BaseModel):
    id: int
    uuid: Optional[UUID] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PropertyMutationResponse(BaseModel):
    message: str
    property: PropertyRef


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)
    phone: Optional[str] = None
    property_id: Optional[int] = None
    inquiry_type: str = "general"
    subject: Optional[str] = None
    preferred_contact_method: str = "email"
    preferred_contact_time: Optional[str] = None
    source: str = "website"

    class Config:
        str_strip_whitespace = True


class ContactStatusUpdate(BaseModel):
    status: Optional[InquiryStatus] = None
    priority: Optional[InquiryPriority] = None
    assigned_to: Optional[str] = None
    admin_notes: Optional[str] = None


class ContactResponse(BaseModel):
    id: int
    uuid: UUID
    name: str
    email: str
    phone: Optional[str] = None
    property_id: Optional[int] = None
    inquiry_type: Optional[str] = None
    subject: Optional[str] = None
    message: str
    preferred_contact_method: Optional[str] = None
    preferred_contact_time: Optional[str] = None
    status: str
    priority: str
    assigned_to: Optional[str] = None
    admin_notes: Optional[str] = None
    source: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    referrer: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    contacted_at: Optional[datetime] = None
    property_title: Optional[str] = None
    property_type: Optional[str] = None
    location_area: Optional[str] = None
    location_city: Optional[str] = None

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    inquiries: List[ContactResponse]
    pagination: Pagination


class AnalyticsTrack(BaseModel):
    event_type: str = Field(..., min_length=1)
    page_url: Optional[str] = None
    property_id: Optional[int] = None
    session_id: Optional[str] = None
    event_data: Dict[str, Any] = {}
    duration: Optional[int] = None
    country: Optional[str] = None
    city: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @property
    def login_name(self) -> Optional[str]:
        return self.username or self.email


class AdminInfo(BaseModel):
    username: str
    name: str
    role: str
    login_time: Optional[str] = None


class LoginResponse(BaseModel):
    message: str
    token: str
    expires_at: datetime
    admin: AdminInfo


class VerifyResponse(BaseModel):
    valid: bool
    admin: AdminInfo


class UploadedFile(BaseModel):
    filename: str
    url: str
    size: int
    content_type: Optional[str] = None
    property_id: Optional[int] = None


class AdminSessionResponse(BaseModel):
    id: int
    admin_username: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    active: bool
    expires_at: datetime
    last_activity: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ClientInfo(BaseModel):
    """Request provenance stored alongside inquiries, events and sessions."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
