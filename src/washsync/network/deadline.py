"""
Request deadlines as explicit cancellation signals.

A ``Deadline`` arms a timer that trips a ``CancellationSignal``. The
network client races the in-flight call against the signal. The timer
comes from an injectable scheduler so tests can fire deadlines by hand.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule ``callback`` on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class CancellationSignal:
    """One-shot signal that an operation should be abandoned."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class Deadline:
    """
    Trips a cancellation signal once ``seconds`` have elapsed.

    Usage:
        with Deadline(10.0) as signal:
            ...  # race work against signal.wait()
    """

    def __init__(
        self,
        seconds: float,
        signal: CancellationSignal | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.seconds = seconds
        self.signal = signal or CancellationSignal()
        self._scheduler = scheduler or loop_scheduler
        self._handle: TimerHandle | None = None

    @property
    def expired(self) -> bool:
        return self.signal.cancelled and self.signal.reason == "deadline"

    def start(self) -> CancellationSignal:
        if self._handle is None:
            self._handle = self._scheduler(self.seconds, self._expire)
        return self.signal

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self) -> None:
        self._handle = None
        self.signal.cancel("deadline")

    def __enter__(self) -> CancellationSignal:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
