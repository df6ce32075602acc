import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, BigInteger, Float, Text, DateTime,
    ForeignKey, JSON, Boolean, Uuid
)
from sqlalchemy.orm import relationship, DeclarativeBase
import enum


class Base(DeclarativeBase):
    pass


class PropertyType(str, enum.Enum):
    VILLA = "Villa"
    APARTMENT = "Apartment"
    PENTHOUSE = "Penthouse"
    CONDO = "Condo"


class PropertyStatus(str, enum.Enum):
    FOR_SALE = "For Sale"
    FOR_RENT = "For Rent"


class InquiryStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    CONTACTED = "contacted"
    RESOLVED = "resolved"
    CLOSED = "closed"


class InquiryPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, nullable=False, unique=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    type = Column(String(50), nullable=False, index=True)
    status = Column(String(50), nullable=False, index=True)
    price = Column(BigInteger, nullable=False, index=True)
    currency = Column(String(10), default="KES")

    location_area = Column(String(100), nullable=False)
    location_city = Column(String(100), nullable=False, index=True)
    location_country = Column(String(100), default="Kenya")
    coordinates_lat = Column(Float, nullable=True)
    coordinates_lng = Column(Float, nullable=True)

    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)
    parking = Column(Integer, default=0)
    size = Column(Integer, nullable=False)
    size_unit = Column(String(20), default="m²")
    year_built = Column(Integer, nullable=True)
    furnished = Column(Boolean, default=True)

    description = Column(Text, nullable=False)
    short_description = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    videos = Column(JSON, nullable=False, default=list)
    virtual_tour_url = Column(String(500), nullable=True)
    youtube_url = Column(String(500), nullable=True)
    amenities = Column(JSON, nullable=False, default=list)
    features = Column(JSON, nullable=False, default=dict)

    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    meta_keywords = Column(JSON, nullable=False, default=list)

    available = Column(Boolean, default=True, index=True)
    featured = Column(Boolean, default=False, index=True)
    published = Column(Boolean, default=True, index=True)
    views_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    published_at = Column(DateTime, nullable=True)

    inquiries = relationship("ContactInquiry", back_populates="property", passive_deletes=True)


class ContactInquiry(Base):
    __tablename__ = "contact_inquiries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, nullable=False, unique=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True)
    inquiry_type = Column(String(50), default="general")
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    preferred_contact_method = Column(String(20), default="email")
    preferred_contact_time = Column(String(100), nullable=True)

    status = Column(String(20), default=InquiryStatus.NEW.value, index=True)
    priority = Column(String(20), default=InquiryPriority.NORMAL.value, index=True)
    assigned_to = Column(String(100), nullable=True)
    admin_notes = Column(Text, nullable=True)

    source = Column(String(50), default="website")
    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
    referrer = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    contacted_at = Column(DateTime, nullable=True)

    property = relationship("Property", back_populates="inquiries")


class AnalyticsEvent(Base):
    __tablename__ = "website_analytics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(50), nullable=False, index=True)
    page_url = Column(Text, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True)
    session_id = Column(String(100), nullable=True, index=True)
    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
    referrer = Column(Text, nullable=True)
    event_data = Column(JSON, nullable=False, default=dict)
    duration = Column(Integer, nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    device_type = Column(String(20), nullable=True)
    browser = Column(String(50), nullable=True)
    os = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class AdminSession(Base):
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_username = Column(String(100), nullable=False)
    session_token = Column(Text, nullable=False, unique=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    active = Column(Boolean, default=True)
    expires_at = Column(DateTime, nullable=False)
    last_activity = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
