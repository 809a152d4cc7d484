"""
Polling of the objects' states until they reach the target states.

The poller is a simple state machine: every tick fetches & classifies
the object's state; the waiting loop ticks on a fixed cadence until
the state is one of the target states, or until the deadline.

The ticks are performed by the externally provided callables,
so the poller knows nothing about the API or the objects themselves,
and can be tested with no network at all.
"""
import asyncio
import enum
from typing import Awaitable, Callable, Collection, Generic, Optional, TypeVar

from kubemanifest._cogs.aiokits import aiotime
from kubemanifest._cogs.helpers import errors, typedefs

StateT = TypeVar('StateT', bound=enum.Enum)


class Poller(Generic[StateT]):
    """
    Tick until the target state: first after the delay, then every interval.

    The deadline is counted from the start of the wait. If the next tick
    cannot happen before the deadline, the wait fails with a timeout
    without that tick. If the stop-flag is set, the wait is interrupted
    at the nearest sleep.
    """

    def __init__(
            self,
            fn: Callable[[], Awaitable[StateT]],
            *,
            targets: Collection[StateT],
            delay: float,
            interval: float,
            timeout: float,
            stop: Optional[asyncio.Event] = None,
            key: Optional[str] = None,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self.fn = fn
        self.targets = frozenset(targets)
        self.delay = delay
        self.interval = interval
        self.timeout = timeout
        self.stop = stop
        self.key = key
        self.logger = logger
        self.state: Optional[StateT] = None
        self.ticks = 0

    async def tick(self) -> StateT:
        self.state = await self.fn()
        self.ticks += 1
        self.logger.debug(f"Polled the state #{self.ticks}: {self.state.value}")
        return self.state

    async def wait(self) -> StateT:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        pause = self.delay
        while True:
            remaining = deadline - loop.time()
            if pause > remaining:
                unslept = await aiotime.sleep(remaining, self.stop)
                self._check_interrupted(unslept)
                raise errors.WaitTimeoutError(self._describe_timeout(), key=self.key,
                                              state=self._state_name())

            unslept = await aiotime.sleep(pause, self.stop)
            self._check_interrupted(unslept)

            state = await self.tick()
            if state in self.targets:
                return state
            pause = self.interval

    def _check_interrupted(self, unslept: Optional[float]) -> None:
        if unslept is not None:
            raise errors.WaitInterruptedError(f"The wait was interrupted in the state "
                                              f"{self._state_name()!r} after {self.ticks} checks.")

    def _state_name(self) -> Optional[str]:
        return None if self.state is None else str(self.state.value)

    def _describe_timeout(self) -> str:
        targets = ', '.join(sorted(str(target.value) for target in self.targets))
        what = f"{self.key!r}" if self.key else "the object"
        return (f"Timed out after {self.timeout}s waiting for {what} to become {targets}; "
                f"last state: {self._state_name() or 'never checked'}.")
