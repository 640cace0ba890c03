from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import anyio


class ReadWriteLock:
    """
    Async reader/writer lock for a single event loop.

    Any number of readers, or exactly one writer. Waiting writers block new
    readers so a steady stream of reads can't starve navigation. Not reentrant.
    anyio primitives are created lazily so the lock can be built outside a
    running loop.
    """

    def __init__(self) -> None:
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._changed: Optional[anyio.Event] = None

    @property
    def locked(self) -> bool:
        return self._writer or self._readers > 0

    def _event(self) -> anyio.Event:
        if self._changed is None:
            self._changed = anyio.Event()
        return self._changed

    def _notify(self) -> None:
        if self._changed is not None:
            self._changed.set()
            self._changed = None

    async def acquire_read(self) -> None:
        while self._writer or self._writers_waiting:
            await self._event().wait()
        self._readers += 1

    def release_read(self) -> None:
        self._readers -= 1
        if self._readers == 0:
            self._notify()

    async def acquire_write(self) -> None:
        self._writers_waiting += 1
        acquired = False
        try:
            while self._writer or self._readers:
                await self._event().wait()
            self._writer = True
            acquired = True
        finally:
            self._writers_waiting -= 1
            if not acquired:
                # readers held back by this writer may proceed
                self._notify()

    def release_write(self) -> None:
        self._writer = False
        self._notify()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        await self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        await self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


__all__ = ["ReadWriteLock"]
