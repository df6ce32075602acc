"""
Analytics Service

Append-only event tracking plus admin reports over a trailing window of days.
The window start is always bound as a timestamp parameter.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.db.models import AnalyticsEvent, Property
from zentro.errors import NotFoundError
from zentro.schemas.models import AnalyticsTrack, ClientInfo

logger = logging.getLogger(__name__)

REFERRER_SOURCES = (
    ("google", "Google"),
    ("facebook", "Facebook"),
    ("instagram", "Instagram"),
    ("twitter", "Twitter"),
    ("linkedin", "LinkedIn"),
    ("bing", "Bing"),
    ("yahoo", "Yahoo"),
)

TOP_LIMIT = 10
POPULAR_SEARCH_LIMIT = 20
DEFAULT_RETENTION_DAYS = 365

E = AnalyticsEvent


def _count_when(condition):
    return func.count(case((condition, 1)))


def _distinct(column):
    return func.count(func.distinct(column))


def _number(value: Any) -> Any:
    if value is None:
        return None
    return round(float(value), 2)


def _rows(result) -> List[Dict[str, Any]]:
    return [dict(row) for row in result.mappings().all()]


def classify_referrer(referrer: str) -> str:
    """Bucket a referrer URL into a named traffic source."""
    if not referrer:
        return "Direct"
    lowered = referrer.lower()
    for needle, label in REFERRER_SOURCES:
        if needle in lowered:
            return label
    return "Other"


class AnalyticsService:
    """Service for analytics events and reports."""

    async def track(self, db: AsyncSession, payload: AnalyticsTrack, client: ClientInfo) -> AnalyticsEvent:
        property_id = payload.property_id
        if property_id is not None:
            found = await db.scalar(select(Property.id).where(Property.id == property_id))
            if found is None:
                logger.debug(f"Tracking event for unknown property {property_id}; storing without it")
                property_id = None

        event = AnalyticsEvent(
            event_type=payload.event_type,
            page_url=payload.page_url,
            property_id=property_id,
            session_id=payload.session_id,
            user_agent=client.user_agent,
            ip_address=client.ip_address,
            referrer=client.referrer,
            event_data=payload.event_data,
            duration=payload.duration,
            country=payload.country,
            city=payload.city,
            device_type=payload.device_type,
            browser=payload.browser,
            os=payload.os,
        )
        db.add(event)
        await db.commit()
        await db.refresh(event)
        return event

    def _since(self, days: int) -> datetime:
        return datetime.utcnow() - timedelta(days=days)

    async def _daily(self, db: AsyncSession, *conditions) -> List[Dict[str, Any]]:
        day = func.date(E.created_at)
        result = await db.execute(
            select(
                day.label("date"),
                func.count().label("total_events"),
                _distinct(E.session_id).label("unique_sessions"),
                _count_when(E.event_type == "page_view").label("page_views"),
                _count_when(E.event_type == "property_view").label("property_views"),
            )
            .where(*conditions)
            .group_by(day)
            .order_by(day.desc())
        )
        rows = _rows(result)
        for row in rows:
            row["date"] = str(row["date"])
        return rows

    async def overview(self, db: AsyncSession, days: int) -> Dict[str, Any]:
        since = self._since(days)

        totals = await db.execute(
            select(
                func.count().label("total_events"),
                _distinct(E.session_id).label("unique_sessions"),
                _distinct(E.ip_address).label("unique_visitors"),
                _count_when(E.event_type == "page_view").label("page_views"),
                _count_when(E.event_type == "property_view").label("property_views"),
                _count_when(E.event_type == "contact_form").label("contact_forms"),
                _count_when(E.event_type == "search").label("searches"),
                func.avg(E.duration).label("avg_session_duration"),
                _count_when(E.device_type == "mobile").label("mobile_users"),
                _count_when(E.device_type == "desktop").label("desktop_users"),
                _count_when(E.device_type == "tablet").label("tablet_users"),
            ).where(E.created_at >= since)
        )
        overview = dict(totals.mappings().one())
        overview["avg_session_duration"] = _number(overview["avg_session_duration"])

        views = func.count().label("views")
        top_pages = await db.execute(
            select(E.page_url, views, _distinct(E.session_id).label("unique_views"))
            .where(E.event_type == "page_view", E.created_at >= since, E.page_url.isnot(None))
            .group_by(E.page_url)
            .order_by(views.desc())
            .limit(TOP_LIMIT)
        )

        top_properties = await db.execute(
            select(
                E.property_id,
                Property.title,
                Property.type,
                Property.location_area,
                Property.location_city,
                views,
                _distinct(E.session_id).label("unique_views"),
            )
            .join(Property, Property.id == E.property_id)
            .where(E.event_type == "property_view", E.created_at >= since)
            .group_by(E.property_id, Property.title, Property.type, Property.location_area, Property.location_city)
            .order_by(views.desc())
            .limit(TOP_LIMIT)
        )

        return {
            "overview": overview,
            "top_pages": _rows(top_pages),
            "top_properties": _rows(top_properties),
            "daily_stats": await self._daily(db, E.created_at >= since),
            "period_days": days,
            "generated_at": datetime.utcnow().isoformat(),
        }

    async def property_report(self, db: AsyncSession, property_id: int, days: int) -> Dict[str, Any]:
        prop = (await db.execute(
            select(Property.id, Property.title, Property.type).where(Property.id == property_id)
        )).mappings().one_or_none()
        if prop is None:
            raise NotFoundError("Property not found")

        since = self._since(days)
        scope = (E.property_id == property_id, E.created_at >= since)

        totals = await db.execute(
            select(
                func.count().label("total_events"),
                _distinct(E.session_id).label("unique_sessions"),
                _distinct(E.ip_address).label("unique_visitors"),
                _count_when(E.event_type == "property_view").label("property_views"),
                _count_when(E.event_type == "contact_form").label("contact_forms"),
                _count_when(E.event_type == "phone_click").label("phone_clicks"),
                _count_when(E.event_type == "email_click").label("email_clicks"),
                func.avg(E.duration).label("avg_time_on_property"),
                _count_when(E.device_type == "mobile").label("mobile_views"),
                _count_when(E.device_type == "desktop").label("desktop_views"),
            ).where(*scope)
        )
        analytics = dict(totals.mappings().one())
        analytics["avg_time_on_property"] = _number(analytics["avg_time_on_property"])

        sources = [
            {"source": row["source"], "visits": row["visits"]}
            for row in await self._sources(db, *scope)
        ]

        return {
            "property": dict(prop),
            "analytics": analytics,
            "daily_views": await self._daily(db, *scope),
            "traffic_sources": sources,
            "period_days": days,
            "generated_at": datetime.utcnow().isoformat(),
        }

    async def _sources(self, db: AsyncSession, *conditions) -> List[Dict[str, Any]]:
        """Visits per referrer source."""
        result = await db.execute(
            select(E.referrer, E.session_id, E.ip_address, E.duration).where(*conditions)
        )
        buckets: Dict[str, Dict[str, Any]] = {}
        for referrer, session_id, ip_address, duration in result.all():
            bucket = buckets.setdefault(
                classify_referrer(referrer),
                {"visits": 0, "sessions": set(), "visitors": set(), "durations": []}
            )
            bucket["visits"] += 1
            if session_id is not None:
                bucket["sessions"].add(session_id)
            if ip_address is not None:
                bucket["visitors"].add(ip_address)
            if duration is not None:
                bucket["durations"].append(duration)

        rows = [
            {
                "source": source,
                "visits": bucket["visits"],
                "unique_sessions": len(bucket["sessions"]),
                "unique_visitors": len(bucket["visitors"]),
                "avg_duration": _number(sum(bucket["durations"]) / len(bucket["durations"])) if bucket["durations"] else None,
            }
            for source, bucket in buckets.items()
        ]
        rows.sort(key=lambda row: row["visits"], reverse=True)
        return rows

    async def traffic_sources(self, db: AsyncSession, days: int) -> Dict[str, Any]:
        return {
            "traffic_sources": await self._sources(db, E.created_at >= self._since(days)),
            "period_days": days,
            "generated_at": datetime.utcnow().isoformat(),
        }

    async def _breakdown(self, db: AsyncSession, column, label: str, since: datetime, limit=None):
        sessions = func.count().label("sessions")
        stmt = (
            select(column.label(label), sessions, _distinct(E.ip_address).label("unique_visitors"))
            .where(E.created_at >= since)
            .group_by(column)
            .order_by(sessions.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        rows = _rows(await db.execute(stmt))
        for row in rows:
            row[label] = row[label] or "Unknown"
        return rows

    async def devices(self, db: AsyncSession, days: int) -> Dict[str, Any]:
        since = self._since(days)
        return {
            "devices": await self._breakdown(db, E.device_type, "device_type", since),
            "browsers": await self._breakdown(db, E.browser, "browser", since, TOP_LIMIT),
            "operating_systems": await self._breakdown(db, E.os, "operating_system", since, TOP_LIMIT),
            "period_days": days,
            "generated_at": datetime.utcnow().isoformat(),
        }

    async def searches(self, db: AsyncSession, days: int) -> Dict[str, Any]:
        """Popular and zero-result search terms, aggregated from event payloads."""
        result = await db.execute(
            select(E.event_data, E.session_id)
            .where(E.event_type == "search", E.created_at >= self._since(days))
        )

        counts: Counter = Counter()
        sessions: Dict[Any, set] = {}
        no_results: Counter = Counter()
        for event_data, session_id in result.all():
            data = event_data or {}
            term = data.get("search_term") if isinstance(data, dict) else None
            # Free-form payloads: only plain string terms are counted
            if not isinstance(term, str) or not term.strip():
                continue
            results_count = data.get("results_count")
            key = (term, None if results_count is None else str(results_count))
            counts[key] += 1
            sessions.setdefault(key, set()).add(session_id)
            if results_count is not None and str(results_count).strip() == "0":
                no_results[term] += 1

        popular = [
            {
                "search_term": term,
                "results_count": results_count,
                "search_count": count,
                "unique_searches": len({s for s in sessions[(term, results_count)] if s is not None}),
            }
            for (term, results_count), count in counts.most_common(POPULAR_SEARCH_LIMIT)
        ]
        zero = [
            {"search_term": term, "search_count": count}
            for term, count in no_results.most_common(TOP_LIMIT)
        ]
        return {
            "popular_searches": popular,
            "no_results_searches": zero,
            "period_days": days,
            "generated_at": datetime.utcnow().isoformat(),
        }

    async def cleanup(self, db: AsyncSession, days: int = DEFAULT_RETENTION_DAYS) -> int:
        result = await db.execute(
            delete(AnalyticsEvent)
            .where(AnalyticsEvent.created_at < self._since(days))
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        deleted = result.rowcount or 0
        logger.info(f"Removed {deleted} analytics events older than {days} days")
        return deleted


# Singleton instance
analytics_service = AnalyticsService()
