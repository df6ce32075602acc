"""Database model tests."""
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zentro.db.models import AnalyticsEvent, ContactInquiry, Property


def make_property(**overrides) -> Property:
    values = dict(
        title="Test Villa",
        slug="test-villa",
        type="Villa",
        status="For Sale",
        price=1000000,
        location_area="Karen",
        location_city="Nairobi",
        bedrooms=3,
        bathrooms=2,
        size=100,
        description="A test villa",
    )
    values.update(overrides)
    return Property(**values)


@pytest.mark.asyncio
async def test_create_property_defaults(test_db: AsyncSession):
    """Test property creation fills in defaults."""
    prop = make_property()
    test_db.add(prop)
    await test_db.commit()
    await test_db.refresh(prop)

    assert prop.id is not None
    assert prop.uuid is not None
    assert prop.currency == "KES"
    assert prop.views_count == 0
    assert prop.images == []
    assert prop.published is True
    assert prop.featured is False
    assert prop.created_at is not None


@pytest.mark.asyncio
async def test_inquiry_links_to_property(test_db: AsyncSession):
    """Test inquiry with property relationship."""
    prop = make_property()
    test_db.add(prop)
    await test_db.commit()

    inquiry = ContactInquiry(
        name="Jane",
        email="jane@example.com",
        message="Is it still available?",
        property_id=prop.id
    )
    test_db.add(inquiry)
    await test_db.commit()

    result = await test_db.execute(
        select(ContactInquiry).where(ContactInquiry.property_id == prop.id)
    )
    stored = result.scalar_one()
    assert stored.status == "new"
    assert stored.priority == "normal"
    assert stored.inquiry_type == "general"
    assert stored.uuid is not None


@pytest.mark.asyncio
async def test_analytics_event_payload(test_db: AsyncSession):
    """Test analytics event stores its JSON payload."""
    event = AnalyticsEvent(event_type="search", event_data={"search_term": "villa", "results_count": 2})
    test_db.add(event)
    await test_db.commit()
    await test_db.refresh(event)

    assert event.event_data["search_term"] == "villa"
    assert event.property_id is None
