#!/usr/bin/env python
"""Create database tables and seed sample listings and inquiries."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import logging
from datetime import datetime

from sqlalchemy import func, select

from zentro.config import get_settings
from zentro.db.models import ContactInquiry, Property
from zentro.db.session import Database
from zentro.schemas.models import PropertyCreate
from zentro.seed_data import SAMPLE_INQUIRIES, SAMPLE_PROPERTIES
from zentro.services.property_service import slugify

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def check_data_exists(db: Database) -> bool:
    """Check if the properties table already has rows."""
    async with db.session() as session:
        count = await session.scalar(select(func.count()).select_from(Property))
        return bool(count)


async def seed_data(db: Database) -> None:
    if await check_data_exists(db):
        logger.info("Data already exists in database, skipping seed")
        return

    now = datetime.utcnow()
    properties = []
    for sample in SAMPLE_PROPERTIES:
        payload = PropertyCreate.model_validate(sample)
        data = payload.model_dump()
        data.update(
            type=payload.type.value,
            status=payload.status.value,
            slug=slugify(payload.title),
            published_at=now if payload.published else None,
        )
        properties.append(Property(**data))

    async with db.session() as session:
        session.add_all(properties)
        await session.flush()

        # The first inquiry asks about the first listing
        inquiries = []
        for index, sample in enumerate(SAMPLE_INQUIRIES):
            inquiry = ContactInquiry(**sample)
            if index == 0:
                inquiry.property_id = properties[0].id
            if inquiry.status == "contacted":
                inquiry.contacted_at = now
            inquiries.append(inquiry)
        session.add_all(inquiries)
        await session.commit()

    logger.info(f"Inserted {len(properties)} properties and {len(inquiries)} inquiries")


async def main():
    settings = get_settings()
    db = Database(settings.database_url)
    try:
        logger.info("Creating database tables...")
        await db.create_all()
        await seed_data(db)
        logger.info("Database initialization complete")
    finally:
        await db.dispose()


if __name__ == "__main__":
    asyncio.run(main())
