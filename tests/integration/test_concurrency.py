import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from fastapi import status
from sqlalchemy import func, select

from shiftr.auth.permissions import PermissionChecker
from shiftr.core.exceptions import ConflictError, OverlapError
from shiftr.models.auth.user import User
from shiftr.models.hr.shift import Shift
from shiftr.models.shared.enums import UserRole
from shiftr.schemas.auth.user import UserCreate, UserUpdate
from shiftr.schemas.hr.shift_schema import ShiftCreate, ShiftUpdate
from shiftr.services.auth.user_service import UserService
from shiftr.services.hr.shift_service import ShiftService
from shiftr.utils.user_locks import user_locks

START = datetime(2031, 5, 1, 8, tzinfo=timezone.utc)
ATTEMPTS = 8


async def count_shifts(session_maker, user_id: str) -> int:
    async with session_maker() as session:
        return await session.scalar(
            select(func.count()).select_from(Shift).where(Shift.user_id == user_id)
        )


@pytest.mark.asyncio
class TestConcurrentCreates:
    """Overlapping writes for one user racing each other"""

    async def test_only_one_overlapping_create_wins(self, session_maker, demo_users):
        admin = demo_users["adminuser"]
        owner = demo_users["testuser"]
        checker = PermissionChecker(UserRole.ADMIN.value, admin.id)

        async def attempt(offset: int):
            # Every candidate covers 12:00, so any two of them overlap
            data = ShiftCreate(
                user_id=owner.id,
                start=START + timedelta(minutes=offset),
                end=START + timedelta(hours=8, minutes=offset),
            )
            async with session_maker() as session:
                return await ShiftService(session).create_shift(data, checker)

        results = await asyncio.gather(
            *(attempt(i * 15) for i in range(ATTEMPTS)),
            return_exceptions=True,
        )

        created = [r for r in results if isinstance(r, Shift)]
        rejected = [r for r in results if isinstance(r, OverlapError)]
        assert len(created) == 1
        assert len(rejected) == ATTEMPTS - 1

        # One seeded shift plus the winner
        assert await count_shifts(session_maker, owner.id) == 2

    async def test_other_users_are_not_blocked(self, session_maker, demo_users, client, admin_headers, create_user):
        admin = demo_users["adminuser"]
        checker = PermissionChecker(UserRole.ADMIN.value, admin.id)
        users = [await create_user(f"worker{i}") for i in range(3)]

        async def attempt(user_id: str):
            data = ShiftCreate(user_id=user_id, start=START, end=START + timedelta(hours=8))
            async with session_maker() as session:
                return await ShiftService(session).create_shift(data, checker)

        results = await asyncio.gather(*(attempt(u["id"]) for u in users), return_exceptions=True)

        assert all(isinstance(r, Shift) for r in results), results
        for user in users:
            assert await count_shifts(session_maker, user["id"]) == 1

    async def test_racing_http_requests(self, client, user_headers, session_maker, demo_users):
        async def attempt(offset: int):
            start = START + timedelta(minutes=offset)
            return await client.post(
                "/api/v1/shifts",
                json={
                    "start": start.isoformat(),
                    "end": (start + timedelta(hours=4)).isoformat(),
                },
                headers=user_headers,
            )

        responses = await asyncio.gather(*(attempt(i * 10) for i in range(ATTEMPTS)))
        codes = sorted(r.status_code for r in responses)

        assert codes.count(status.HTTP_201_CREATED) == 1
        assert codes.count(status.HTTP_409_CONFLICT) == ATTEMPTS - 1
        assert await count_shifts(session_maker, demo_users["testuser"].id) == 2


@pytest.mark.asyncio
class TestWritesWaitingOnTheUserLock:
    """A request blocked on the owner's lock acts on what is stored when it gets the lock"""

    @pytest.fixture
    async def shift(self, session_maker, demo_users) -> Shift:
        checker = PermissionChecker(UserRole.ADMIN.value, demo_users["adminuser"].id)
        data = ShiftCreate(
            user_id=demo_users["testuser"].id,
            start=datetime(2032, 1, 1, 8, tzinfo=timezone.utc),
            end=datetime(2032, 1, 1, 16, tzinfo=timezone.utc),
        )
        async with session_maker() as session:
            return await ShiftService(session).create_shift(data, checker)

    async def test_partial_update_keeps_end_committed_meanwhile(self, session_maker, demo_users, shift):
        checker = PermissionChecker(UserRole.ADMIN.value, demo_users["adminuser"].id)
        new_start = datetime(2032, 1, 1, 9, tzinfo=timezone.utc)
        new_end = datetime(2032, 1, 1, 18, tzinfo=timezone.utc)

        async def update_start():
            async with session_maker() as session:
                return await ShiftService(session).update_shift(shift.id, ShiftUpdate(start=new_start), checker)

        async with user_locks.hold(shift.user_id):
            task = asyncio.create_task(update_start())
            await asyncio.sleep(0.1)
            assert not task.done()

            async with session_maker() as other:
                stored = await other.get(Shift, shift.id)
                stored.end = new_end
                await other.commit()

        updated = await task
        assert updated.start == new_start
        assert updated.end == new_end

        async with session_maker() as session:
            stored = await session.get(Shift, shift.id)
            assert (stored.start, stored.end) == (new_start, new_end)

    async def test_delete_refuses_shift_moved_meanwhile(self, session_maker, demo_users, shift):
        admin_id = demo_users["adminuser"].id
        checker = PermissionChecker(UserRole.ADMIN.value, admin_id)

        async def delete():
            async with session_maker() as session:
                await ShiftService(session).delete_shift(shift.id, checker)

        async with user_locks.hold(shift.user_id):
            task = asyncio.create_task(delete())
            await asyncio.sleep(0.1)
            assert not task.done()

            async with session_maker() as other:
                stored = await other.get(Shift, shift.id)
                stored.user_id = admin_id
                await other.commit()

        with pytest.raises(ConflictError):
            await task

        async with session_maker() as session:
            stored = await session.get(Shift, shift.id)
            assert stored is not None
            assert stored.user_id == admin_id


@pytest.mark.asyncio
class TestConcurrentUserNames:

    async def test_racing_creates_with_same_name(self, session_maker, demo_users):
        checker = PermissionChecker(UserRole.ADMIN.value, demo_users["adminuser"].id)

        async def attempt():
            data = UserCreate(name="twin", password="secret", role=UserRole.USER)
            async with session_maker() as session:
                return await UserService(session).create_user(data, checker)

        results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

        created = [r for r in results if isinstance(r, User)]
        rejected = [r for r in results if isinstance(r, ConflictError)]
        assert len(created) == 1, results
        assert len(rejected) == 1, results
        assert rejected[0].status_code == status.HTTP_409_CONFLICT

        async with session_maker() as session:
            count = await session.scalar(select(func.count()).select_from(User).where(User.name == "twin"))
            assert count == 1

    async def test_racing_renames_to_same_name(self, session_maker, demo_users, create_user):
        checker = PermissionChecker(UserRole.ADMIN.value, demo_users["adminuser"].id)
        first = await create_user("first")
        second = await create_user("second")

        async def rename(user_id: str):
            async with session_maker() as session:
                return await UserService(session).update_user(user_id, UserUpdate(name="taken"), checker)

        results = await asyncio.gather(rename(first["id"]), rename(second["id"]), return_exceptions=True)

        assert sum(isinstance(r, User) for r in results) == 1, results
        assert sum(isinstance(r, ConflictError) for r in results) == 1, results
