"""Sample listings and inquiries used to bootstrap a database and as the offline fallback."""
from datetime import datetime
from typing import Any, Dict, List

from zentro.services.property_service import slugify

SAMPLE_PROPERTIES: List[Dict[str, Any]] = [
    {
        "title": "Luxury Villa in Kilimani",
        "type": "Villa",
        "status": "For Sale",
        "price": 283000000,
        "location_area": "Kilimani",
        "location_city": "Nairobi",
        "bedrooms": 8,
        "bathrooms": 8,
        "parking": 6,
        "size": 545,
        "description": (
            "A stunning villa with panoramic city views, private pool, and luxury amenities. "
            "This exceptional property offers the perfect blend of modern luxury and comfort "
            "in one of Nairobi's most prestigious neighborhoods."
        ),
        "short_description": "Stunning villa with panoramic city views and luxury amenities in prestigious Kilimani.",
        "images": [
            {"url": "wp-content/uploads/2025/02/A-scaled.jpg", "alt": "Villa exterior view", "is_primary": True, "display_order": 0},
            {"url": "wp-content/uploads/2025/02/B.jpg", "alt": "Swimming pool area", "is_primary": False, "display_order": 1},
        ],
        "amenities": ["Swimming Pool", "Garden", "Security", "Parking", "Modern Kitchen", "Balcony", "Roof Terrace", "City View"],
        "featured": True,
        "published": True,
    },
    {
        "title": "Modern Apartment in Westlands",
        "type": "Apartment",
        "status": "For Rent",
        "price": 450000,
        "location_area": "Westlands",
        "location_city": "Nairobi",
        "bedrooms": 3,
        "bathrooms": 2,
        "parking": 2,
        "size": 120,
        "description": (
            "Modern apartment with contemporary design and premium finishes. Located in the heart "
            "of Westlands with easy access to shopping and business districts."
        ),
        "short_description": "Contemporary apartment in the heart of Westlands with premium finishes.",
        "images": [
            {"url": "wp-content/uploads/2025/02/unsplash.jpg", "alt": "Apartment living room", "is_primary": True, "display_order": 0},
        ],
        "amenities": ["Gym", "Swimming Pool", "Security", "Parking", "Elevator", "Air Conditioning"],
        "featured": False,
        "published": True,
    },
    {
        "title": "Penthouse Suite in Karen",
        "type": "Penthouse",
        "status": "For Sale",
        "price": 150000000,
        "location_area": "Karen",
        "location_city": "Nairobi",
        "bedrooms": 4,
        "bathrooms": 3,
        "parking": 3,
        "size": 280,
        "description": (
            "Exclusive penthouse with breathtaking views of the Ngong Hills. Features high-end "
            "finishes, spacious terraces, and access to premium amenities."
        ),
        "short_description": "Exclusive penthouse with breathtaking views of the Ngong Hills.",
        "images": [
            {"url": "wp-content/uploads/2025/02/top_img.png", "alt": "Penthouse terrace view", "is_primary": True, "display_order": 0},
        ],
        "amenities": ["Private Elevator", "Terrace", "Security", "Parking", "Garden", "Pool Access"],
        "featured": True,
        "published": True,
    },
    {
        "title": "Family Condo in Lavington",
        "type": "Condo",
        "status": "For Rent",
        "price": 320000,
        "location_area": "Lavington",
        "location_city": "Nairobi",
        "bedrooms": 2,
        "bathrooms": 2,
        "parking": 1,
        "size": 95,
        "description": (
            "Perfect family condo in the quiet neighborhood of Lavington. Close to schools, "
            "shopping centers, and public transport."
        ),
        "short_description": "Perfect family condo in quiet Lavington neighborhood.",
        "images": [
            {"url": "wp-content/uploads/2025/02/B.png", "alt": "Condo interior", "is_primary": True, "display_order": 0},
        ],
        "amenities": ["Security", "Parking", "Garden", "Playground", "Shopping Access"],
        "featured": False,
        "published": True,
    },
]

SAMPLE_INQUIRIES: List[Dict[str, Any]] = [
    {
        "name": "John Doe",
        "email": "john.doe@example.com",
        "phone": "+254712345678",
        "inquiry_type": "viewing",
        "subject": "Property Viewing Request",
        "message": "I am interested in viewing the villa in Kilimani. Please let me know available times.",
        "status": "new",
        "priority": "normal",
    },
    {
        "name": "Sarah Johnson",
        "email": "sarah.j@example.com",
        "phone": "+254723456789",
        "inquiry_type": "general",
        "subject": "Rental Information",
        "message": "I would like more information about rental properties in Westlands area.",
        "status": "contacted",
        "priority": "normal",
    },
]


def seed_listings() -> List[Dict[str, Any]]:
    """Sample properties shaped like API responses, with stable local ids."""
    created = datetime(2025, 2, 1).isoformat()
    listings = []
    for index, sample in enumerate(SAMPLE_PROPERTIES, start=1):
        listing = {
            "id": index,
            "slug": slugify(sample["title"]),
            "currency": "KES",
            "location_country": "Kenya",
            "available": True,
            "views_count": 0,
            "created_at": created,
            "updated_at": created,
        }
        listing.update(sample)
        listing["images"] = [dict(image) for image in sample["images"]]
        listing["amenities"] = list(sample["amenities"])
        listings.append(listing)
    return listings
