"""Seed script for the CourseMarket API.

Creates the default admin user and the default category set if they don't
exist. It is idempotent and safe to run on every container start.
"""

import asyncio
import logging
from sqlalchemy import select

from app.database import AsyncSessionLocal
from app.models.category import Category
from app.models.user import User, UserRole
from app.auth.security import hash_password
from app.config import settings

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Mixing Fundamentals", "mixing-fundamentals",
     "Master the basics of beatmatching, EQing, and smooth transitions"),
    ("Scratching & Turntablism", "scratching-turntablism",
     "Learn scratch techniques from basic to advanced"),
    ("Music Production", "music-production",
     "Create your own tracks, remixes, and edits"),
    ("DJ Software", "dj-software",
     "Master Serato, Rekordbox, Traktor, and more"),
    ("Business & Marketing", "business-marketing",
     "Build your brand and grow your DJ career"),
    ("Genre Techniques", "genre-techniques",
     "Genre-specific mixing and selection techniques"),
]


async def seed_admin(session) -> bool:
    """Create default admin user if it doesn't exist. Returns True if created."""
    result = await session.execute(
        select(User).where(User.email == settings.ADMIN_EMAIL.lower())
    )
    if result.scalar_one_or_none():
        logger.info("Admin user already exists, skipping")
        return False

    session.add(User(
        name=settings.ADMIN_NAME,
        email=settings.ADMIN_EMAIL.lower(),
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        user_role=UserRole.ADMIN.value,
        status="active",
    ))
    await session.commit()

    logger.info(f"Admin user created: {settings.ADMIN_EMAIL}")
    return True


async def seed_categories(session) -> int:
    """Insert any default categories missing by slug. Returns how many were added."""
    result = await session.execute(select(Category.slug))
    existing = {row[0] for row in result.all()}

    added = 0
    for sort_order, (name, slug, description) in enumerate(DEFAULT_CATEGORIES, start=1):
        if slug in existing:
            continue
        session.add(Category(name=name, slug=slug, description=description, sort_order=sort_order))
        added += 1

    await session.commit()
    logger.info(f"Seeded {added} categories")
    return added


async def seed():
    async with AsyncSessionLocal() as session:
        await seed_admin(session)
        await seed_categories(session)


def main():
    """Entry point for the seed script."""
    asyncio.run(seed())


if __name__ == "__main__":
    main()
