import asyncio

from kubemanifest._cogs.aiokits.aiotime import sleep


async def test_sleep_without_event(timer):
    async with timer:
        result = await sleep(0.1)
    assert result is None
    assert 0.1 <= timer.seconds < 0.5


async def test_sleep_with_unset_event(timer):
    event = asyncio.Event()
    async with timer:
        result = await sleep(0.1, event)
    assert result is None
    assert 0.1 <= timer.seconds < 0.5


async def test_sleep_with_preset_event(timer):
    event = asyncio.Event()
    event.set()
    async with timer:
        result = await sleep(10, event)
    assert result == 10
    assert timer.seconds < 0.1


async def test_sleep_interrupted_by_event(timer):
    event = asyncio.Event()
    asyncio.get_running_loop().call_later(0.1, event.set)
    async with timer:
        result = await sleep(10, event)
    assert result is not None
    assert 9 < result < 10
    assert timer.seconds < 1.0


async def test_zero_sleep_is_instant(timer):
    async with timer:
        result = await sleep(0)
    assert result is None
    assert timer.seconds < 0.1


async def test_negative_sleep_is_instant(timer):
    async with timer:
        result = await sleep(-1, asyncio.Event())
    assert result is None
    assert timer.seconds < 0.1
