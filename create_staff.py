"""
Create a staff account for the appointments dashboard.
Usage: python create_staff.py <email> <password> [full name]
"""
import asyncio
import logging
import sys

from app.core.db import async_session_maker
from app.services.auth_service import create_staff_user, get_staff_by_email

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def create_staff(email: str, password: str, full_name: str | None) -> None:
    async with async_session_maker() as session:
        if await get_staff_by_email(session, email):
            logger.error("Staff account already exists: %s", email)
            sys.exit(1)
        staff = await create_staff_user(session, email, password, full_name)
        await session.commit()
    logger.info("Created staff account %s (id=%s)", staff.email, staff.id)


if __name__ == "__main__":
    if len(sys.argv) < 3:
        logger.error("Usage: python create_staff.py <email> <password> [full name]")
        sys.exit(1)
    name = " ".join(sys.argv[3:]) or None
    asyncio.run(create_staff(sys.argv[1], sys.argv[2], name))
