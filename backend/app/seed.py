"""Seed script for the GlampSpot development database."""

import asyncio
import uuid
from decimal import Decimal

from sqlalchemy import select

from app.database import async_session_factory
from app.models.property import Property
from app.models.user import User

# ── Users ──────────────────────────────────────────────────────────────────────
# Ids must match the identity provider's token subjects; the defaults below
# are the fixed ids used by the local dev identity stub.

USERS = [
    {
        "id": "00000000-0000-4000-8000-000000000001",
        "email": "admin@glampspot.com",
        "first_name": "Admin",
        "last_name": "User",
        "role": "admin",
    },
    {
        "id": "00000000-0000-4000-8000-000000000002",
        "email": "maya@glampspot.com",
        "first_name": "Maya",
        "last_name": "Fields",
        "role": "host",
    },
    {
        "id": "00000000-0000-4000-8000-000000000003",
        "email": "sam@example.com",
        "first_name": "Sam",
        "last_name": "Rivera",
        "role": "guest",
        "phone_number": "+1 555 0134",
    },
]

# ── Properties ─────────────────────────────────────────────────────────────────

PROPERTIES = [
    {
        "name": "Starlight Geodesic Dome",
        "slug": "starlight-dome",
        "property_type": "dome",
        "short_description": "Panoramic skylight dome with a wood-fired hot tub.",
        "max_guests": 4,
        "min_nights": 2,
        "base_price": Decimal("199.00"),
        "cleaning_fee": Decimal("50.00"),
        "service_fee_pct": Decimal("12.00"),
        "tax_rate_pct": Decimal("8.00"),
    },
    {
        "name": "Cedar Ridge Treehouse",
        "slug": "cedar-ridge-treehouse",
        "property_type": "treehouse",
        "short_description": "Suspended cabin among old-growth cedars.",
        "max_guests": 2,
        "min_nights": 1,
        "base_price": Decimal("245.00"),
        "cleaning_fee": Decimal("65.00"),
        "service_fee_pct": Decimal("12.00"),
        "tax_rate_pct": Decimal("8.00"),
    },
    {
        "name": "Meadow Safari Tent",
        "slug": "meadow-safari-tent",
        "property_type": "safari_tent",
        "short_description": "Canvas tent with a king bed and private deck.",
        "max_guests": 6,
        "min_nights": 1,
        "base_price": Decimal("149.00"),
        "cleaning_fee": Decimal("40.00"),
        "service_fee_pct": Decimal("10.00"),
        "tax_rate_pct": Decimal("8.00"),
    },
]


async def seed():
    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            print("Database already seeded. Skipping.")
            return

        for u in USERS:
            db.add(User(**{**u, "id": uuid.UUID(u["id"])}))
        print(f"Created {len(USERS)} users ({', '.join(u['email'] for u in USERS)})")

        for p in PROPERTIES:
            db.add(Property(**p))
        print(f"Created {len(PROPERTIES)} properties")

        await db.commit()
        print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
