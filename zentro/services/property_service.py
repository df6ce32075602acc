"""Property listing, lookup, search and admin management."""
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.db.models import Property, PropertyType
from zentro.db.query_builder import BuiltQuery, Filter, QueryBuilder, pagination_info, select_list
from zentro.errors import NotFoundError, ValidationError
from zentro.schemas.models import (
    PropertyCreate,
    PropertyDetailResponse,
    PropertyImage,
    PropertyListResponse,
    PropertyResponse,
    PropertySearchResponse,
    PropertyTypeResponse,
    PropertyUpdate,
)
from zentro.services.params import is_numeric_id, page_params, to_bool, to_int
from zentro.services.storage_service import UploadStorage

logger = logging.getLogger(__name__)

PUBLIC_SORT_FIELDS = ("created_at", "updated_at", "price", "title", "views_count", "bedrooms", "size")
ADMIN_SORT_FIELDS = ("created_at", "updated_at", "title", "price", "views_count")

PUBLIC_FILTERS = (
    Filter("type", "equals", ("type",)),
    Filter("status", "equals", ("status",)),
    Filter("location", "search", ("location_city", "location_area")),
    Filter("location_city", "like", ("location_city",)),
    Filter("location_area", "like", ("location_area",)),
    Filter("search", "search", ("title", "description", "location_area", "location_city")),
    Filter("min_price", "min", ("price",), to_int("min_price")),
    Filter("max_price", "max", ("price",), to_int("max_price")),
    Filter("bedrooms", "equals", ("bedrooms",), to_int("bedrooms")),
    Filter("bathrooms", "equals", ("bathrooms",), to_int("bathrooms")),
    Filter("min_size", "min", ("size",), to_int("min_size")),
    Filter("max_size", "max", ("size",), to_int("max_size")),
    Filter("furnished", "flag", ("furnished",), to_bool("furnished")),
    Filter("featured", "flag", ("featured",), to_bool("featured")),
    Filter("available", "flag", ("available",), to_bool("available")),
    Filter("published", "flag", ("published",), to_bool("published")),
)

ADMIN_FILTERS = (
    Filter("published", "flag", ("published",), to_bool("published")),
    Filter("available", "flag", ("available",), to_bool("available")),
    Filter("featured", "flag", ("featured",), to_bool("featured")),
    Filter("type", "equals", ("type",)),
    Filter("status", "equals", ("status",)),
    Filter("search", "search", ("title", "description", "location_area", "location_city")),
)

SEARCH_COLUMNS = ("title", "description", "short_description", "location_area", "location_city")

READ_ONLY_FIELDS = ("id", "uuid", "created_at", "updated_at", "views_count", "published_at")

RELATED_LIMIT = 4
MIN_SEARCH_LENGTH = 2

_SLUG_UNSAFE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    slug = _SLUG_UNSAFE.sub("-", title.lower()).strip("-")
    return slug[:200] or "property"


def _property_query() -> QueryBuilder:
    return QueryBuilder(select_list(Property.__table__), "properties")


def _first_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


class PropertyService:
    """Service for public and admin property operations."""

    async def _fetch_page(self, db: AsyncSession, built: BuiltQuery) -> List[Property]:
        stmt = select(Property).from_statement(built.statement(*Property.__table__.columns))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def _count(self, db: AsyncSession, built: BuiltQuery) -> int:
        result = await db.execute(built.statement())
        return int(result.scalar() or 0)

    async def _run(
        self,
        db: AsyncSession,
        builder: QueryBuilder
    ) -> Tuple[List[Property], int]:
        rows = await self._fetch_page(db, builder.build())
        total = await self._count(db, builder.build_count())
        return rows, total

    async def list_properties(self, db: AsyncSession, values: Mapping[str, Any]) -> PropertyListResponse:
        """Filtered, sorted, paginated public listing."""
        limit, offset = page_params(values, default_limit=50)

        builder = _property_query().apply_filters(PUBLIC_FILTERS, values)
        if values.get("published") in (None, ""):
            builder.where_raw("published = true")
        builder.order_by(
            values.get("sort_by"),
            values.get("sort_order"),
            allowed=PUBLIC_SORT_FIELDS,
            default="created_at",
            tiebreak="featured DESC"
        ).paginate(limit, offset)

        rows, total = await self._run(db, builder)
        return PropertyListResponse(
            properties=[PropertyResponse.model_validate(row) for row in rows],
            pagination=pagination_info(total, limit, offset)
        )

    async def _find_public(self, db: AsyncSession, identifier: str) -> Optional[Property]:
        stmt = select(Property).where(Property.published.is_(True), Property.available.is_(True))
        if is_numeric_id(identifier):
            stmt = stmt.where(Property.id == int(identifier))
        else:
            stmt = stmt.where(Property.slug == identifier)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_public(self, db: AsyncSession, identifier: str) -> PropertyDetailResponse:
        """
        Fetch a published, available property by id or slug, with related listings.

        The returned view count is the value read before this view is recorded.
        """
        prop = await self._find_public(db, identifier)
        if prop is None:
            raise NotFoundError("Property not found")

        detail = PropertyResponse.model_validate(prop)

        related_result = await db.execute(
            select(Property)
            .where(
                Property.type == prop.type,
                Property.location_city == prop.location_city,
                Property.id != prop.id,
                Property.published.is_(True),
                Property.available.is_(True)
            )
            .order_by(Property.featured.desc(), Property.created_at.desc())
            .limit(RELATED_LIMIT)
        )
        related = [PropertyResponse.model_validate(row) for row in related_result.scalars().all()]

        # Keep updated_at untouched; a view is not an edit
        await db.execute(
            update(Property)
            .where(Property.id == prop.id)
            .values(views_count=Property.views_count + 1, updated_at=Property.updated_at)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        return PropertyDetailResponse(property=detail, related=related)

    async def search(self, db: AsyncSession, term: str, values: Mapping[str, Any]) -> PropertySearchResponse:
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise ValidationError("Search term must be at least 2 characters long")
        limit, offset = page_params(values, default_limit=20)

        builder = (
            _property_query()
            .where_search(SEARCH_COLUMNS, term)
            .where_raw("published = true")
            .where_raw("available = true")
            .order_by("featured", "desc", allowed=("featured",), default="featured", tiebreak="created_at DESC")
            .paginate(limit, offset)
        )
        rows, total = await self._run(db, builder)
        return PropertySearchResponse(
            results=[PropertyResponse.model_validate(row) for row in rows],
            searchTerm=term,
            pagination=pagination_info(total, limit, offset)
        )

    async def featured(self, db: AsyncSession, limit: int = 6) -> List[PropertyResponse]:
        result = await db.execute(
            select(Property)
            .where(
                Property.featured.is_(True),
                Property.published.is_(True),
                Property.available.is_(True)
            )
            .order_by(Property.created_at.desc())
            .limit(limit)
        )
        return [PropertyResponse.model_validate(row) for row in result.scalars().all()]

    async def by_type(self, db: AsyncSession, property_type: str, values: Mapping[str, Any]) -> PropertyTypeResponse:
        if property_type not in [t.value for t in PropertyType]:
            raise ValidationError("Invalid property type")
        limit, offset = page_params(values, default_limit=12)

        conditions = (
            Property.type == property_type,
            Property.published.is_(True),
            Property.available.is_(True)
        )
        result = await db.execute(
            select(Property)
            .where(*conditions)
            .order_by(Property.featured.desc(), Property.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.scalar(select(func.count()).select_from(Property).where(*conditions))

        return PropertyTypeResponse(
            properties=[PropertyResponse.model_validate(row) for row in result.scalars().all()],
            type=property_type,
            pagination=pagination_info(int(total or 0), limit, offset)
        )

    async def summary_stats(self, db: AsyncSession) -> Dict[str, Any]:
        """Aggregates over published, available listings."""
        month_ago = datetime.utcnow() - timedelta(days=30)

        def count_when(condition):
            return func.count(case((condition, 1)))

        result = await db.execute(
            select(
                func.count().label("total_properties"),
                count_when(Property.status == "For Sale").label("for_sale_count"),
                count_when(Property.status == "For Rent").label("for_rent_count"),
                count_when(Property.featured.is_(True)).label("featured_count"),
                count_when(Property.type == "Villa").label("villa_count"),
                count_when(Property.type == "Apartment").label("apartment_count"),
                count_when(Property.type == "Penthouse").label("penthouse_count"),
                count_when(Property.type == "Condo").label("condo_count"),
                func.avg(Property.price).label("average_price"),
                func.min(Property.price).label("min_price"),
                func.max(Property.price).label("max_price"),
                func.sum(Property.views_count).label("total_views"),
                count_when(Property.created_at >= month_ago).label("new_this_month"),
            ).where(Property.published.is_(True), Property.available.is_(True))
        )
        stats = dict(result.mappings().one())
        stats["average_price"] = int(stats["average_price"]) if stats["average_price"] is not None else 0
        stats["total_views"] = int(stats["total_views"] or 0)
        return stats

    # Admin

    async def admin_list(self, db: AsyncSession, values: Mapping[str, Any]) -> PropertyListResponse:
        limit, offset = page_params(values, default_limit=50)

        builder = (
            _property_query()
            .apply_filters(ADMIN_FILTERS, values)
            .order_by(
                values.get("sort_by"),
                values.get("sort_order"),
                allowed=ADMIN_SORT_FIELDS,
                default="created_at"
            )
            .paginate(limit, offset)
        )
        rows, total = await self._run(db, builder)
        return PropertyListResponse(
            properties=[PropertyResponse.model_validate(row) for row in rows],
            pagination=pagination_info(total, limit, offset)
        )

    async def get_by_id(self, db: AsyncSession, property_id: int) -> Property:
        result = await db.execute(
            select(Property)
            .where(Property.id == property_id)
            .execution_options(populate_existing=True)
        )
        prop = result.scalar_one_or_none()
        if prop is None:
            raise NotFoundError("Property not found")
        return prop

    async def exists(self, db: AsyncSession, property_id: int, published_only: bool = False) -> bool:
        stmt = select(Property.id).where(Property.id == property_id)
        if published_only:
            stmt = stmt.where(Property.published.is_(True))
        return (await db.scalar(stmt)) is not None

    async def _unique_slug(self, db: AsyncSession, base: str, exclude_id: Optional[int] = None) -> str:
        stmt = select(Property.slug).where(Property.slug.like(f"{base}%"))
        if exclude_id is not None:
            stmt = stmt.where(Property.id != exclude_id)
        taken = set((await db.execute(stmt)).scalars().all())

        candidate, suffix = base, 2
        while candidate in taken:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    async def create(self, db: AsyncSession, payload: PropertyCreate) -> Property:
        data = payload.model_dump()
        data["type"] = payload.type.value
        data["status"] = payload.status.value
        data["slug"] = await self._unique_slug(db, slugify(payload.slug or payload.title))
        if payload.published:
            data["published_at"] = datetime.utcnow()

        prop = Property(**data)
        db.add(prop)
        await db.commit()
        await db.refresh(prop)
        logger.info(f"Created property {prop.id} ({prop.slug})")
        return prop

    def _validate_update(self, body: Mapping[str, Any]) -> Dict[str, Any]:
        if not body:
            raise ValidationError("No update data provided")

        read_only = sorted(k for k in body if k in READ_ONLY_FIELDS)
        if read_only:
            raise ValidationError(f"Read-only fields cannot be updated: {', '.join(read_only)}")
        unknown = sorted(k for k in body if k not in PropertyUpdate.model_fields)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(unknown)}")

        try:
            parsed = PropertyUpdate.model_validate(dict(body))
        except PydanticValidationError as e:
            raise ValidationError(_first_error(e))

        changes = parsed.model_dump(include=parsed.model_fields_set)
        if "type" in changes and changes["type"] is not None:
            changes["type"] = parsed.type.value
        if "status" in changes and changes["status"] is not None:
            changes["status"] = parsed.status.value

        required = ("title", "type", "status", "price", "location_area", "location_city",
                    "bedrooms", "bathrooms", "size", "description", "slug")
        nulled = sorted(k for k in required if k in changes and changes[k] is None)
        if nulled:
            raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")
        return changes

    async def update(self, db: AsyncSession, property_id: int, body: Mapping[str, Any]) -> Property:
        """
        Partial update with last-write-wins semantics.

        Raises:
            ValidationError: empty body, unknown or read-only fields, invalid values
            NotFoundError: no property with this id
        """
        changes = self._validate_update(body)

        if "slug" in changes:
            changes["slug"] = slugify(changes["slug"])
            clash = await db.scalar(
                select(Property.id).where(Property.slug == changes["slug"], Property.id != property_id)
            )
            if clash is not None:
                raise ValidationError(f"Slug already in use: {changes['slug']}")

        changes["updated_at"] = datetime.utcnow()
        result = await db.execute(
            update(Property)
            .where(Property.id == property_id)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise NotFoundError("Property not found")
        await db.commit()

        logger.info(f"Updated property {property_id}: {', '.join(sorted(changes))}")
        return await self.get_by_id(db, property_id)

    async def delete(self, db: AsyncSession, storage: UploadStorage, property_id: int) -> Dict[str, Any]:
        prop = await self.get_by_id(db, property_id)
        deleted = {"id": prop.id, "title": prop.title}

        await db.delete(prop)
        await db.commit()
        logger.info(f"Deleted property {property_id}")

        try:
            storage.remove_property_dir(property_id)
        except OSError as e:
            logger.warning(f"Could not remove uploads for property {property_id}: {e}")

        return deleted

    async def attach_image(
        self,
        db: AsyncSession,
        property_id: int,
        url: str,
        alt: Optional[str] = None
    ) -> Property:
        prop = await self.get_by_id(db, property_id)
        images = list(prop.images or [])
        image = PropertyImage(
            url=url,
            alt=alt or prop.title,
            is_primary=not images,
            display_order=len(images)
        )
        images.append(image.model_dump())
        prop.images = images
        prop.updated_at = datetime.utcnow()
        await db.commit()
        await db.refresh(prop)
        return prop

    async def attach_video(self, db: AsyncSession, property_id: int, url: str) -> Property:
        prop = await self.get_by_id(db, property_id)
        prop.videos = list(prop.videos or []) + [url]
        prop.updated_at = datetime.utcnow()
        await db.commit()
        await db.refresh(prop)
        return prop

    async def detach_media(self, db: AsyncSession, property_id: int, url: str) -> None:
        """Drop an image or video entry by URL, promoting the next image to primary if needed."""
        prop = await db.get(Property, property_id)
        if prop is None:
            return

        videos = [v for v in (prop.videos or []) if v != url]
        images = [dict(img) for img in (prop.images or []) if img.get("url") != url]
        if len(videos) == len(prop.videos or []) and len(images) == len(prop.images or []):
            return

        for order, img in enumerate(images):
            img["display_order"] = order
        if images and not any(img.get("is_primary") for img in images):
            images[0]["is_primary"] = True
        prop.images = images
        prop.videos = videos
        prop.updated_at = datetime.utcnow()
        await db.commit()


# Singleton instance
property_service = PropertyService()
