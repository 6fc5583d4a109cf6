import logging
from typing import Iterable, List, Optional, Tuple
from datetime import datetime
from fastapi import HTTPException
from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shiftr.auth.permissions import PermissionChecker
from shiftr.core.exceptions import ConflictError, NotFoundError, OverlapError, StorageError, ValidationError
from shiftr.db.types import as_utc
from shiftr.models.auth.user import User
from shiftr.models.hr.shift import Shift
from shiftr.models.shared.enums import Action
from shiftr.schemas.hr.shift_schema import ShiftCreate, ShiftQuery, ShiftUpdate
from shiftr.services.overlap import find_overlapping
from shiftr.utils.user_locks import user_locks

logger = logging.getLogger(__name__)


def validate_span(start: Optional[datetime], end: Optional[datetime]) -> Tuple[datetime, datetime]:
    """Check a shift's time span and return it as UTC"""
    if start is None:
        raise ValidationError("start time required")

    if end is None:
        raise ValidationError("end time required")

    start, end = as_utc(start), as_utc(end)
    if start >= end:
        raise ValidationError("shift start time must precede shift end time")

    return start, end


class ShiftService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # region Queries

    @staticmethod
    def build_statement(query: ShiftQuery) -> Select:
        """Translate a ShiftQuery into a SELECT ordered by start time"""
        stmt = select(Shift).order_by(Shift.start, Shift.id)

        if query.user_id:
            stmt = stmt.where(Shift.user_id == query.user_id)

        if query.start is not None:
            stmt = stmt.where(Shift.start >= query.start)

        if query.end is not None:
            stmt = stmt.where(Shift.end <= query.end)

        if query.limit > 0:
            stmt = stmt.limit(query.limit)

        return stmt

    async def list_shifts(self, query: ShiftQuery) -> List[Shift]:
        """Return the shifts matching every filter set on ``query``"""
        if query.start is not None and query.end is not None:
            if as_utc(query.start) > as_utc(query.end):
                raise ValidationError("filter span start time must precede span end time")

        result = await self.session.scalars(self.build_statement(query))
        return list(result.all())

    async def get_shift(self, shift_id: str) -> Optional[Shift]:
        result = await self.session.execute(
            select(Shift).where(Shift.id == shift_id)
        )
        return result.scalar_one_or_none()

    async def find_shift(self, shift_id: str, checker: PermissionChecker) -> Shift:
        """Get a shift the caller is allowed to see"""
        shift = await self.get_shift(shift_id)
        if shift is None:
            raise NotFoundError("Shift not found")

        checker.require(Action.READ, shift.user_id)
        return shift

    # endregion

    # region Overlap checks

    async def _lock_owners(self, user_ids: Iterable[str]) -> None:
        """
        Lock the owning user rows for the rest of the transaction.

        On PostgreSQL this serialises concurrent writers for the same user
        across processes; SQLite ignores FOR UPDATE and relies on user_locks.
        """
        ids = sorted(set(user_ids))
        result = await self.session.scalars(
            select(User.id).where(User.id.in_(ids)).order_by(User.id).with_for_update()
        )
        found = set(result.all())
        missing = [uid for uid in ids if uid not in found]
        if missing:
            raise NotFoundError(f"User not found: {', '.join(missing)}")

    async def _ensure_no_overlap(
        self,
        shift_id: Optional[str],
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> None:
        """Reject [start, end) if another shift of ``user_id`` intersects it"""
        stmt = self.build_statement(ShiftQuery(user_id=user_id)).where(
            Shift.end > start,
            Shift.start < end,
        )
        candidates = (await self.session.scalars(stmt)).all()

        conflicts = find_overlapping(shift_id, start, end, candidates)
        if conflicts:
            logger.info(
                f"Shift {shift_id or '(new)'} for user {user_id} overlaps "
                f"{', '.join(s.id for s in conflicts)}"
            )
            raise OverlapError()

    # endregion

    # region Writes

    async def create_shift(self, data: ShiftCreate, checker: PermissionChecker) -> Shift:
        user_id = data.user_id or checker.user_id
        checker.require(Action.CREATE, user_id, "Cannot create shifts for another user")
        start, end = validate_span(data.start, data.end)

        async with user_locks.hold(user_id):
            try:
                await self._lock_owners([user_id])
                await self._ensure_no_overlap(None, user_id, start, end)

                shift = Shift(user_id=user_id, start=start, end=end)
                self.session.add(shift)
                await self.session.commit()
                await self.session.refresh(shift)

                logger.info(f"Shift created: {shift.id} for user {user_id} by user {checker.user_id}")
                return shift

            except HTTPException:
                await self.session.rollback()
                raise
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Error creating shift for user {user_id}: {e}")
                raise StorageError("Error creating shift")

    async def _reload_locked(self, shift_id: str, owner_id: str) -> Shift:
        """
        Re-read a shift once its owner's lock is held.

        The caller checked permissions against an earlier read; a shift that
        vanished or changed owner since then is not touched.
        """
        result = await self.session.execute(
            select(Shift)
            .where(Shift.id == shift_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        shift = result.scalar_one_or_none()
        if shift is None:
            raise NotFoundError("Shift not found")
        if shift.user_id != owner_id:
            raise ConflictError("shift was modified by another request")
        return shift

    async def update_shift(self, shift_id: str, data: ShiftUpdate, checker: PermissionChecker) -> Shift:
        """Replace a shift's fields, keeping stored values for fields not sent"""
        shift = await self.get_shift(shift_id)
        if shift is None:
            raise NotFoundError("Shift not found")

        owner_id = shift.user_id
        checker.require(Action.UPDATE, owner_id)

        new_user_id = data.user_id or owner_id
        if new_user_id != owner_id:
            checker.require(Action.UPDATE, new_user_id, "Cannot move a shift to another user")

        async with user_locks.hold(owner_id, new_user_id):
            try:
                shift = await self._reload_locked(shift_id, owner_id)

                # Omitted fields take the values stored now, not at the first read
                start, end = validate_span(
                    data.start if data.start is not None else shift.start,
                    data.end if data.end is not None else shift.end,
                )

                await self._lock_owners([owner_id, new_user_id])
                await self._ensure_no_overlap(shift.id, new_user_id, start, end)

                shift.user_id = new_user_id
                shift.start = start
                shift.end = end
                await self.session.commit()
                await self.session.refresh(shift)

                logger.info(f"Shift updated: {shift.id} for user {new_user_id} by user {checker.user_id}")
                return shift

            except HTTPException:
                await self.session.rollback()
                raise
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Error updating shift {shift_id}: {e}")
                raise StorageError("Error updating shift")

    async def delete_shift(self, shift_id: str, checker: PermissionChecker) -> None:
        shift = await self.find_shift(shift_id, checker)
        owner_id = shift.user_id
        checker.require(Action.DELETE, owner_id)

        async with user_locks.hold(owner_id):
            try:
                shift = await self._reload_locked(shift_id, owner_id)
                await self.session.delete(shift)
                await self.session.commit()
                logger.info(f"Shift deleted: {shift_id} by user {checker.user_id}")

            except HTTPException:
                await self.session.rollback()
                raise
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Error deleting shift {shift_id}: {e}")
                raise StorageError("Error deleting shift")

    # endregion
