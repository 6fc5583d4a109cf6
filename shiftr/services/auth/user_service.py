import logging
from typing import List, Optional
from fastapi import HTTPException
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shiftr.auth.permissions import PermissionChecker
from shiftr.core.exceptions import ConflictError, NotFoundError, StorageError
from shiftr.core.security import get_password_hash
from shiftr.models.auth.user import User
from shiftr.models.hr.shift import Shift
from shiftr.models.shared.enums import Action
from shiftr.schemas.auth.user import UserCreate, UserUpdate
from shiftr.utils.user_locks import user_locks

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_name(self, name: str) -> Optional[User]:
        """Get user by login name"""
        result = await self.session.execute(
            select(User).where(User.name == name)
        )
        return result.scalar_one_or_none()

    async def find_user(self, user_id: str, checker: PermissionChecker) -> User:
        """Get a user the caller is allowed to see"""
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")

        checker.require(Action.READ, user.id)
        return user

    async def list_users(self, checker: PermissionChecker, limit: int = 0) -> List[User]:
        """List users; a limit of zero or less returns everyone"""
        checker.require(Action.MANAGE, custom_message="Only admins can list users")

        stmt = select(User).order_by(User.created_at, User.id)
        if limit > 0:
            stmt = stmt.limit(limit)

        result = await self.session.scalars(stmt)
        return list(result.all())

    async def create_user(self, data: UserCreate, checker: PermissionChecker) -> User:
        """Create new user"""
        checker.require(Action.MANAGE, custom_message="Only admins can create users")

        try:
            if await self.get_user_by_name(data.name) is not None:
                raise ConflictError("user already exists")

            user = User(
                name=data.name,
                hashed_password=get_password_hash(data.password),
                role=data.role.value,
            )
            self.session.add(user)
            await self.session.commit()
            await self.session.refresh(user)

            logger.info(f"User created: {user.name} ({user.id}) by user {checker.user_id}")
            return user

        except HTTPException:
            await self.session.rollback()
            raise
        except IntegrityError:
            # Lost a race with another request taking the same name
            await self.session.rollback()
            logger.warning(f"Duplicate user name on create: {data.name}")
            raise ConflictError("user already exists")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error creating user {data.name}: {e}")
            raise StorageError("Error creating user")

    async def update_user(self, user_id: str, data: UserUpdate, checker: PermissionChecker) -> User:
        """Replace a user's fields, keeping stored values for fields not sent"""
        user = await self.find_user(user_id, checker)
        checker.require(Action.UPDATE, user.id)

        if data.role is not None and data.role.value != user.role:
            checker.require(Action.CHANGE_ROLE, user.id, "Cannot change your own role")

        try:
            if data.name is not None and data.name != user.name:
                if await self.get_user_by_name(data.name) is not None:
                    raise ConflictError("user already exists")
                user.name = data.name

            if data.password is not None:
                user.hashed_password = get_password_hash(data.password)

            if data.role is not None:
                user.role = data.role.value

            await self.session.commit()
            await self.session.refresh(user)

            logger.info(f"User updated: {user.name} ({user.id}) by user {checker.user_id}")
            return user

        except HTTPException:
            await self.session.rollback()
            raise
        except IntegrityError:
            await self.session.rollback()
            logger.warning(f"Duplicate user name on update of user {user_id}: {data.name}")
            raise ConflictError("user already exists")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error updating user {user_id}: {e}")
            raise StorageError("Error updating user")

    async def delete_user(self, user_id: str, checker: PermissionChecker) -> None:
        """Delete a user together with every shift they own"""
        checker.require(Action.MANAGE, custom_message="Only admins can delete users")

        # Holding the owner's lock keeps a concurrent shift write from landing mid-delete
        async with user_locks.hold(user_id):
            try:
                user = await self.get_user(user_id)
                if user is None:
                    raise NotFoundError("User not found")

                removed = await self.session.execute(
                    delete(Shift).where(Shift.user_id == user_id)
                )
                await self.session.delete(user)
                await self.session.commit()

                logger.info(
                    f"User deleted: {user.name} ({user_id}) with {removed.rowcount} shifts "
                    f"by user {checker.user_id}"
                )

            except HTTPException:
                await self.session.rollback()
                raise
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Error deleting user {user_id}: {e}")
                raise StorageError("Error deleting user")
