"""
Advanced modes of sleeping.
"""
import asyncio
from typing import Optional


async def sleep(
        delay: float,
        wakeup: Optional[asyncio.Event] = None,
) -> Optional[float]:
    """
    Measure the sleep time: either until the timeout, or until the event is set.

    Returns the number of seconds left to sleep, or ``None`` if the sleep was
    not interrupted and reached its specified delay (an equivalent of ``0``).
    In theory, the result can be ``0`` if the sleep was interrupted precisely
    the last moment before timing out; this is unlikely to happen though.

    Without the event, it is a regular sleep. Zero or negative delays
    do not sleep at all, but still check the event for being already set.
    """
    if wakeup is not None and wakeup.is_set():
        return max(0, delay)
    elif delay <= 0:
        await asyncio.sleep(0)  # let other tasks run, even in the tightest loops.
        return None
    elif wakeup is None:
        await asyncio.sleep(delay)
        return None

    loop = asyncio.get_running_loop()
    try:
        start_time = loop.time()
        await asyncio.wait_for(wakeup.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return None  # interruptable sleep is over: uninterrupted.
    else:
        end_time = loop.time()
        duration = end_time - start_time
        return max(0, delay - duration)
