import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional


class Timer(ABC):
    """
    Handle for a callback scheduled on a Clock.
    """

    @abstractmethod
    def cancel(self):
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Clock(ABC):
    """
    Single-threaded time source that every animation tick and game timer runs on.
    """

    @abstractmethod
    def now(self) -> float:
        """
        Monotonic seconds, only meaningful relative to other now() values.
        """
        pass

    @abstractmethod
    def datetime_now(self) -> datetime:
        """
        Local wall-clock time, used for dates and the midnight countdown.
        """
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        pass


class _AsyncioTimer(Timer):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self):
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioClock(Clock):
    """
    Production clock backed by the running asyncio event loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def datetime_now(self) -> datetime:
        return datetime.now()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        return _AsyncioTimer(self.loop.call_later(max(0.0, delay), callback))


class _FakeTimer(Timer):
    def __init__(self, when: float, seq: int, callback: Callable[[], None]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __lt__(self, other: "_FakeTimer") -> bool:
        return (self.when, self.seq) < (other.when, other.seq)


class FakeClock(Clock):
    """
    Manually advanced clock for tests. Timers fire in due-time order, ties in
    the order they were scheduled.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._start = start or datetime(2025, 1, 14, 12, 0, 0)
        self._now = 0.0
        self._seq = itertools.count()
        self._timers: List[_FakeTimer] = []

    def now(self) -> float:
        return self._now

    def datetime_now(self) -> datetime:
        return self._start + timedelta(seconds=self._now)

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        timer = _FakeTimer(self._now + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._timers, timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float):
        """
        Moves time forward, firing every timer that comes due on the way,
        including timers scheduled by the callbacks themselves.
        """
        deadline = self._now + seconds
        while True:
            timer = self._pop_next()
            if timer is None or timer.when > deadline + 1e-9:
                if timer is not None:
                    heapq.heappush(self._timers, timer)
                break
            self._now = max(self._now, timer.when)
            timer.callback()
        self._now = deadline

    def run_until_idle(self, max_steps: int = 100_000):
        steps = 0
        while True:
            timer = self._pop_next()
            if timer is None:
                return
            steps += 1
            if steps > max_steps:
                raise RuntimeError(f"FakeClock still busy after {max_steps} timers")
            self._now = max(self._now, timer.when)
            timer.callback()

    def _pop_next(self) -> Optional[_FakeTimer]:
        while self._timers:
            timer = heapq.heappop(self._timers)
            if not timer.cancelled:
                return timer
        return None
