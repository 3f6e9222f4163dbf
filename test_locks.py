"""
Identifier lock tests
"""

import asyncio

import pytest

from services.locks import IdentifierLocks, identifier_lock_keys, root_lock_keys


def test_lock_keys_skip_absent_values():
    assert identifier_lock_keys("a@x.com", None) == ["email:a@x.com"]
    assert identifier_lock_keys(None, "222") == ["phone:222"]
    assert identifier_lock_keys("a@x.com", "222") == ["email:a@x.com", "phone:222"]


def test_root_lock_keys_are_unique_and_sorted():
    assert root_lock_keys([7, 3, 7]) == ["root:3", "root:7"]
    assert root_lock_keys(set()) == []
    # Identifier keys always sort ahead of root keys
    assert sorted(identifier_lock_keys("z@x.com", "999") + root_lock_keys([1])) == [
        "email:z@x.com", "phone:999", "root:1"
    ]


@pytest.mark.asyncio
async def test_overlapping_keys_run_one_at_a_time():
    locks = IdentifierLocks()
    events = []

    async def worker(name, keys):
        async with locks.hold(keys):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(
        worker("first", ["email:a@x.com", "phone:111"]),
        worker("second", ["phone:111", "email:b@x.com"]),
    )

    assert events == ["first-start", "first-end", "second-start", "second-end"]


@pytest.mark.asyncio
async def test_disjoint_keys_run_concurrently():
    locks = IdentifierLocks()
    events = []

    async def worker(name, keys):
        async with locks.hold(keys):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(worker("first", ["phone:111"]), worker("second", ["phone:222"]))

    assert events[:2] == ["first-start", "second-start"]
