"""
Debouncing for user-triggered generation.

Only the last call within the delay window fires. Superseded calls get a
cancelled future. A call that already fired is not affected by later calls;
it keeps running to completion unless cancel_in_flight() is used.
"""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Optional, Set


class Debouncer:

    def __init__(self, func: Callable[..., Awaitable[Any]], delay: float):
        """
        Args:
            func: Coroutine function to debounce
            delay: Quiet period in seconds
        """
        self.func = func
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._waiter: Optional[asyncio.Future] = None
        self._tasks: Set[asyncio.Task] = set()

    def __call__(self, *args, **kwargs) -> asyncio.Future:
        self.cancel()
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._waiter = waiter
        self._handle = loop.call_later(self.delay, self._fire, waiter, args, kwargs)
        return waiter

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def in_flight(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    def cancel(self) -> None:
        """Drop a call that has not fired yet."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._waiter is not None and not self._waiter.done():
            self._waiter.cancel()
        self._waiter = None

    def cancel_in_flight(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _fire(self, waiter: asyncio.Future, args, kwargs) -> None:
        self._handle = None
        self._waiter = None
        task = asyncio.ensure_future(self.func(*args, **kwargs))
        self._tasks.add(task)
        task.add_done_callback(partial(self._settle, waiter))

    def _settle(self, waiter: asyncio.Future, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if waiter.done():
            return
        if task.cancelled():
            waiter.cancel()
        elif task.exception() is not None:
            waiter.set_exception(task.exception())
        else:
            waiter.set_result(task.result())
