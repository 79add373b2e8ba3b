#!/usr/bin/env python3
"""Setup script for the adventure booking API: creates tables and seeds demo data."""

import asyncio
import logging
import os
from datetime import datetime, timedelta

from sqlalchemy import func, select

from adventure_api.core.database import async_session_factory, init_db
from adventure_api.core.security import hash_password
from adventure_api.models import Event, User, UserRole
from adventure_api.services.settings_service import SettingsService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "change-me-now")


def _sample_event(admin: User) -> Event:
    first = datetime.utcnow() + timedelta(days=45)
    month, year = first.strftime("%B"), first.year
    days = sorted({first.day, min(first.day + 7, 28)})

    return Event(
        title="Kedarkantha Winter Trek",
        slug="kedarkantha-winter-trek",
        description="A six-day snow trek to the Kedarkantha summit through pine forests and alpine meadows.",
        short_description="Classic beginner-friendly winter summit trek.",
        price=9999,
        discounted_price=8999,
        duration="6 Days / 5 Nights",
        category="TREKKING",
        difficulty="MODERATE",
        location={"name": "Sankri", "state": "Uttarakhand", "country": "India"},
        inclusions=["Meals on trek", "Tents and sleeping bags", "Certified trek leader"],
        exclusions=["Personal expenses", "Travel insurance"],
        highlights=["Summit sunrise", "Juda ka Talab"],
        max_participants=20,
        min_participants=1,
        available_dates=[],
        departures=[
            {
                "label": "Delhi to Delhi",
                "origin": "Delhi",
                "destination": "Delhi",
                "price": 12999,
                "transportOptions": [
                    {"mode": "AC_TRAIN", "price": 1500},
                    {"mode": "BUS", "price": 0},
                ],
                "availableDates": [
                    {
                        "month": month,
                        "year": year,
                        "dates": days,
                        "availableSeats": 20,
                        "totalSeats": 20,
                        "availableTransportModes": ["AC_TRAIN", "BUS"],
                    }
                ],
            },
            {
                "label": "Dehradun to Dehradun",
                "origin": "Dehradun",
                "destination": "Dehradun",
                "availableDates": [
                    {"month": month, "year": year, "dates": days, "availableSeats": 15, "totalSeats": 15}
                ],
            },
        ],
        itinerary=[
            {"day": 1, "title": "Dehradun to Sankri", "description": "Drive through the Mussoorie hills.",
             "activities": ["Drive"], "meals": ["Dinner"]},
            {"day": 2, "title": "Sankri to Juda ka Talab", "description": "Forest trail to a frozen lake.",
             "activities": ["Trek"], "meals": ["Breakfast", "Lunch", "Dinner"]},
        ],
        is_active=True,
        is_featured=True,
        created_by=admin.id,
    )


async def setup_database() -> None:
    """Create all tables."""
    logger.info("Setting up database...")
    await init_db()
    logger.info("Database schema ready")


async def create_sample_data() -> None:
    """Seed an administrator, the default site settings and one demo event."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            admin = (await db.execute(select(User).where(User.email == ADMIN_EMAIL))).scalar_one_or_none()
            if admin is None:
                admin = User(
                    name="Administrator",
                    email=ADMIN_EMAIL,
                    password_hash=hash_password(ADMIN_PASSWORD),
                    role=UserRole.ADMIN,
                    is_verified=True,
                )
                db.add(admin)
                await db.flush()
                logger.info(f"Created admin account {ADMIN_EMAIL}")

            event_count = await db.scalar(select(func.count(Event.id)))
            if not event_count:
                db.add(_sample_event(admin))

            await db.commit()
            await SettingsService(db).get_active()
            logger.info("Sample data created successfully!")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def main() -> None:
    logger.info("Starting adventure booking API setup...")

    await setup_database()
    await create_sample_data()

    logger.info("Setup completed successfully!")
    logger.info("Start the API server with: uvicorn adventure_api.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
