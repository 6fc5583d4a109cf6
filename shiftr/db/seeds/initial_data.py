import logging
from datetime import datetime, timedelta, timezone
from typing import Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from shiftr.models.auth.user import User
from shiftr.models.hr.shift import Shift
from shiftr.models.shared.enums import UserRole
from shiftr.core.security import get_password_hash

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"name": "adminuser", "password": "adminpass", "role": UserRole.ADMIN},
    {"name": "testuser", "password": "testpass", "role": UserRole.USER},
]

async def create_initial_data(session: AsyncSession) -> Dict[str, User]:
    """Create the demo admin, the demo user and one eight hour shift; safe to run twice"""
    try:
        logger.info("📋 Creating initial data...")

        users = {}
        for demo in DEMO_USERS:
            users[demo["name"]] = await create_demo_user(session, **demo)

        await create_demo_shift(session, users["testuser"])

        await session.commit()
        logger.info("✅ Initial data created successfully")
        return users

    except Exception as e:
        logger.error(f"❌ Error creating initial data: {str(e)}")
        await session.rollback()
        raise

async def create_demo_user(session: AsyncSession, name: str, password: str, role: UserRole) -> User:
    result = await session.execute(select(User).where(User.name == name))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            name=name,
            hashed_password=get_password_hash(password),
            role=role.value,
        )
        session.add(user)
        await session.flush()
        logger.info(f"✅ Demo user created: {name} ({role.value})")

    return user

async def create_demo_shift(session: AsyncSession, user: User):
    result = await session.execute(select(Shift.id).where(Shift.user_id == user.id).limit(1))
    if result.scalar_one_or_none() is not None:
        return

    start = datetime.now(timezone.utc).replace(microsecond=0)
    session.add(Shift(user_id=user.id, start=start, end=start + timedelta(hours=8)))
    logger.info(f"✅ Demo shift created for {user.name}")
