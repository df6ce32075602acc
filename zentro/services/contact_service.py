"""Contact inquiry intake and admin triage."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.db.models import ContactInquiry, InquiryPriority, InquiryStatus, Property
from zentro.db.query_builder import Filter, QueryBuilder, pagination_info, select_list
from zentro.errors import NotFoundError, ValidationError
from zentro.schemas.models import (
    ClientInfo,
    ContactCreate,
    ContactListResponse,
    ContactResponse,
    ContactStatusUpdate,
)
from zentro.services.params import is_numeric_id, page_params, parse_uuid, to_int

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "updated_at", "status", "priority", "name", "email")

FILTERS = (
    Filter("status", "equals", ("status",)),
    Filter("priority", "equals", ("priority",)),
    Filter("inquiry_type", "equals", ("inquiry_type",)),
    Filter("property_id", "equals", ("property_id",), to_int("property_id")),
    Filter("assigned_to", "equals", ("assigned_to",)),
    Filter("search", "search", ("name", "email", "message")),
)


def _with_property(inquiry: ContactInquiry, prop: Optional[Property]) -> ContactResponse:
    response = ContactResponse.model_validate(inquiry)
    if prop is None:
        return response
    return response.model_copy(update={
        "property_title": prop.title,
        "property_type": prop.type,
        "location_area": prop.location_area,
        "location_city": prop.location_city,
    })


class ContactService:
    """Service for contact inquiries."""

    async def submit(self, db: AsyncSession, payload: ContactCreate, client: ClientInfo) -> ContactInquiry:
        if payload.property_id is not None:
            found = await db.scalar(
                select(Property.id).where(Property.id == payload.property_id, Property.published.is_(True))
            )
            if found is None:
                raise ValidationError("Property not found")

        inquiry = ContactInquiry(
            name=payload.name,
            email=str(payload.email).strip().lower(),
            phone=payload.phone or None,
            property_id=payload.property_id,
            inquiry_type=payload.inquiry_type,
            subject=payload.subject or None,
            message=payload.message,
            preferred_contact_method=payload.preferred_contact_method,
            preferred_contact_time=payload.preferred_contact_time,
            source=payload.source,
            user_agent=client.user_agent,
            ip_address=client.ip_address,
            referrer=client.referrer,
            status=InquiryStatus.NEW.value,
            priority=InquiryPriority.NORMAL.value,
        )
        db.add(inquiry)
        await db.commit()
        await db.refresh(inquiry)
        logger.info(f"Received inquiry {inquiry.id} ({inquiry.inquiry_type})")
        return inquiry

    async def _properties_for(self, db: AsyncSession, inquiries: Iterable[ContactInquiry]) -> Dict[int, Property]:
        ids = {i.property_id for i in inquiries if i.property_id is not None}
        if not ids:
            return {}
        result = await db.execute(select(Property).where(Property.id.in_(ids)))
        return {p.id: p for p in result.scalars().all()}

    async def list(self, db: AsyncSession, values: Mapping[str, Any]) -> ContactListResponse:
        limit, offset = page_params(values, default_limit=50)

        builder = (
            QueryBuilder(select_list(ContactInquiry.__table__), "contact_inquiries")
            .apply_filters(FILTERS, values)
            .order_by(values.get("sort_by"), values.get("sort_order"), allowed=SORT_FIELDS, default="created_at")
            .paginate(limit, offset)
        )
        built = builder.build()
        result = await db.execute(
            select(ContactInquiry).from_statement(built.statement(*ContactInquiry.__table__.columns))
        )
        inquiries = list(result.scalars().all())
        total = int((await db.execute(builder.build_count().statement())).scalar() or 0)

        properties = await self._properties_for(db, inquiries)
        return ContactListResponse(
            inquiries=[_with_property(i, properties.get(i.property_id)) for i in inquiries],
            pagination=pagination_info(total, limit, offset)
        )

    async def _find(self, db: AsyncSession, identifier: str) -> ContactInquiry:
        stmt = select(ContactInquiry).execution_options(populate_existing=True)
        if is_numeric_id(identifier):
            stmt = stmt.where(ContactInquiry.id == int(identifier))
        else:
            inquiry_uuid = parse_uuid(identifier)
            if inquiry_uuid is None:
                raise NotFoundError("Contact inquiry not found")
            stmt = stmt.where(ContactInquiry.uuid == inquiry_uuid)

        inquiry = (await db.execute(stmt)).scalar_one_or_none()
        if inquiry is None:
            raise NotFoundError("Contact inquiry not found")
        return inquiry

    async def get(self, db: AsyncSession, identifier: str) -> ContactResponse:
        inquiry = await self._find(db, identifier)
        properties = await self._properties_for(db, [inquiry])
        return _with_property(inquiry, properties.get(inquiry.property_id))

    async def update_status(
        self,
        db: AsyncSession,
        identifier: str,
        payload: ContactStatusUpdate
    ) -> ContactInquiry:
        inquiry = await self._find(db, identifier)
        provided = payload.model_fields_set
        now = datetime.utcnow()

        if payload.status is not None:
            inquiry.status = payload.status.value
            if payload.status == InquiryStatus.CONTACTED:
                inquiry.contacted_at = now
        if payload.priority is not None:
            inquiry.priority = payload.priority.value
        if "assigned_to" in provided:
            inquiry.assigned_to = payload.assigned_to
        if "admin_notes" in provided:
            inquiry.admin_notes = payload.admin_notes
        inquiry.updated_at = now

        await db.commit()
        await db.refresh(inquiry)
        logger.info(f"Updated inquiry {inquiry.id}: status={inquiry.status} priority={inquiry.priority}")
        return inquiry

    async def delete(self, db: AsyncSession, identifier: str) -> None:
        inquiry = await self._find(db, identifier)
        await db.delete(inquiry)
        await db.commit()
        logger.info(f"Deleted inquiry {inquiry.id}")

    async def summary_stats(self, db: AsyncSession) -> Dict[str, Any]:
        now = datetime.utcnow()

        def count_when(condition):
            return func.count(case((condition, 1)))

        result = await db.execute(
            select(
                func.count().label("total_inquiries"),
                count_when(ContactInquiry.status == "new").label("new_count"),
                count_when(ContactInquiry.status == "in_progress").label("in_progress_count"),
                count_when(ContactInquiry.status == "contacted").label("contacted_count"),
                count_when(ContactInquiry.status == "resolved").label("resolved_count"),
                count_when(ContactInquiry.status == "closed").label("closed_count"),
                count_when(ContactInquiry.priority == "urgent").label("urgent_count"),
                count_when(ContactInquiry.priority == "high").label("high_priority_count"),
                count_when(ContactInquiry.created_at >= now - timedelta(hours=24)).label("today_count"),
                count_when(ContactInquiry.created_at >= now - timedelta(days=7)).label("week_count"),
                count_when(ContactInquiry.created_at >= now - timedelta(days=30)).label("month_count"),
                count_when(ContactInquiry.property_id.isnot(None)).label("property_specific_count"),
                count_when(ContactInquiry.inquiry_type == "viewing").label("viewing_requests"),
            ).select_from(ContactInquiry)
        )
        stats = dict(result.mappings().one())

        # Response time is computed here so the same code runs on every backend
        pairs = await db.execute(
            select(ContactInquiry.created_at, ContactInquiry.contacted_at)
            .where(ContactInquiry.contacted_at.isnot(None))
        )
        hours: List[float] = [
            (contacted - created).total_seconds() / 3600
            for created, contacted in pairs.all()
            if created is not None
        ]
        stats["avg_response_hours"] = round(sum(hours) / len(hours), 2) if hours else None
        stats["min_response_hours"] = round(min(hours), 2) if hours else None
        stats["max_response_hours"] = round(max(hours), 2) if hours else None
        return stats

    async def property_counts(self, db: AsyncSession, property_id: int) -> Dict[str, int]:
        month_ago = datetime.utcnow() - timedelta(days=30)
        result = await db.execute(
            select(
                func.count().label("total_inquiries"),
                func.count(case((ContactInquiry.created_at >= month_ago, 1))).label("recent_inquiries"),
            ).where(ContactInquiry.property_id == property_id)
        )
        row = result.mappings().one()
        return {"total_inquiries": int(row["total_inquiries"]), "recent_inquiries": int(row["recent_inquiries"])}


# Singleton instance
contact_service = ContactService()
