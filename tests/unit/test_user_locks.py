import asyncio
import pytest
from shiftr.utils.user_locks import UserLocks


@pytest.mark.asyncio
class TestUserLocks:

    async def test_same_user_is_serialised(self):
        locks = UserLocks()
        events = []

        async def worker(name: str):
            async with locks.hold("usr00001"):
                events.append(f"{name}:in")
                await asyncio.sleep(0.01)
                events.append(f"{name}:out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a:in", "a:out", "b:in", "b:out"],
            ["b:in", "b:out", "a:in", "a:out"],
        )

    async def test_different_users_run_concurrently(self):
        locks = UserLocks()
        entered = asyncio.Event()

        async def first():
            async with locks.hold("usr00001"):
                # Would deadlock if usr00002 shared the lock
                await asyncio.wait_for(entered.wait(), timeout=1)

        async def second():
            async with locks.hold("usr00002"):
                entered.set()

        await asyncio.gather(first(), second())

    async def test_multiple_ids_are_all_held(self):
        locks = UserLocks()
        async with locks.hold("usr00002", "usr00001", "usr00001", None):
            assert locks.is_locked("usr00001")
            assert locks.is_locked("usr00002")
        assert not locks.is_locked("usr00001")
        assert not locks.is_locked("usr00002")

    async def test_lock_released_on_error(self):
        locks = UserLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("usr00001"):
                raise RuntimeError("boom")
        assert not locks.is_locked("usr00001")

    async def test_idle_locks_are_dropped(self):
        locks = UserLocks()
        async with locks.hold("usr00001"):
            pass
        assert "usr00001" not in locks._locks
