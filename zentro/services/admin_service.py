"""Admin dashboard aggregates and the admin session audit trail."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.db.models import AdminSession, ContactInquiry, Property
from zentro.schemas.models import ClientInfo

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def _count_when(condition):
    return func.count(case((condition, 1)))


class AdminService:
    """Service for the admin dashboard and session bookkeeping."""

    async def dashboard_stats(self, db: AsyncSession) -> Dict[str, Any]:
        now = datetime.utcnow()

        properties = await db.execute(
            select(
                func.count().label("total_properties"),
                _count_when(Property.status == "For Sale").label("for_sale_count"),
                _count_when(Property.status == "For Rent").label("for_rent_count"),
                _count_when(Property.featured.is_(True)).label("featured_count"),
                _count_when(Property.published.is_(False)).label("unpublished_count"),
                _count_when(Property.available.is_(False)).label("unavailable_count"),
                _count_when(Property.created_at >= now - timedelta(days=30)).label("new_this_month"),
                func.avg(Property.price).label("average_price"),
                func.sum(Property.views_count).label("total_views"),
            ).select_from(Property)
        )
        property_stats = dict(properties.mappings().one())
        average = property_stats["average_price"]
        property_stats["average_price"] = int(average) if average is not None else 0
        property_stats["total_views"] = int(property_stats["total_views"] or 0)

        contacts = await db.execute(
            select(
                func.count().label("total_inquiries"),
                _count_when(ContactInquiry.status == "new").label("new_inquiries"),
                _count_when(ContactInquiry.status == "in_progress").label("in_progress_inquiries"),
                _count_when(ContactInquiry.status == "resolved").label("resolved_inquiries"),
                _count_when(ContactInquiry.priority == "urgent").label("urgent_inquiries"),
                _count_when(ContactInquiry.created_at >= now - timedelta(hours=24)).label("today_inquiries"),
                _count_when(ContactInquiry.created_at >= now - timedelta(days=7)).label("week_inquiries"),
            ).select_from(ContactInquiry)
        )

        recent_properties = await db.execute(
            select(Property.id, Property.title, Property.type, Property.status, Property.created_at)
            .order_by(Property.created_at.desc())
            .limit(RECENT_LIMIT)
        )
        recent_inquiries = await db.execute(
            select(
                ContactInquiry.id,
                ContactInquiry.name,
                ContactInquiry.email,
                ContactInquiry.inquiry_type,
                ContactInquiry.status,
                ContactInquiry.created_at,
                Property.title.label("property_title"),
            )
            .outerjoin(Property, ContactInquiry.property_id == Property.id)
            .order_by(ContactInquiry.created_at.desc())
            .limit(RECENT_LIMIT)
        )

        return {
            "properties": property_stats,
            "contacts": dict(contacts.mappings().one()),
            "recent": {
                "properties": [dict(row) for row in recent_properties.mappings().all()],
                "inquiries": [dict(row) for row in recent_inquiries.mappings().all()],
            },
            "generated_at": now.isoformat(),
        }

    async def record_session(
        self,
        db: AsyncSession,
        username: str,
        token: str,
        expires_at: datetime,
        client: ClientInfo
    ) -> None:
        """Store the issued token for auditing. Failures never block login."""
        try:
            db.add(AdminSession(
                admin_username=username,
                session_token=token,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
                expires_at=expires_at,
            ))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Could not record admin session: {e}")

    async def deactivate_session(self, db: AsyncSession, token: str) -> None:
        try:
            await db.execute(
                update(AdminSession)
                .where(AdminSession.session_token == token)
                .values(active=False, last_activity=datetime.utcnow())
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Could not deactivate admin session: {e}")

    async def active_sessions(self, db: AsyncSession) -> List[AdminSession]:
        result = await db.execute(
            select(AdminSession)
            .where(AdminSession.expires_at > datetime.utcnow(), AdminSession.active.is_(True))
            .order_by(AdminSession.last_activity.desc())
        )
        return list(result.scalars().all())


# Singleton instance
admin_service = AdminService()
