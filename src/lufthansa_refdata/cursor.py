"""
Cursor over a paged reference resource.

A cursor holds exactly one page and the links that came with it. Navigation
fetches the page a relation points at and swaps it in whole; a failed fetch
leaves the held page alone and records the error. Running off either end
keeps first/last and points the opposite direction back at the page that was
current, so the caller can turn around or restart.

States:
  Empty     - only the seed "next" link; nothing fetched yet
  Populated - a decoded page with the server's links
  Exhausted - a boundary link set synthesized after next/previous found no link

A navigation returning False is either a boundary (error() is None) or a
failure (error() says what happened).
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Generic, List, Optional, Protocol

import anyio

from .errors import (
    LufthansaCancelledError,
    LufthansaClientError,
    LufthansaSchemaVersionError,
)
from .hal import LinkSet, Relation
from .locks import ReadWriteLock
from .models import META_VERSION, Page, R
from .observability import log_event
from .reference import ResourceSpec

log = logging.getLogger("lufthansa_refdata.cursor")


class PageFetcher(Protocol):
    async def fetch_page(self, spec: ResourceSpec[R], url: str) -> Page[R]: ...


class Cursor(Generic[R]):
    def __init__(self, client: PageFetcher, spec: ResourceSpec[R], seed_url: str):
        self._client = client
        self.spec = spec
        self.seed_url = seed_url
        self._page: Page[R] = Page.seed(seed_url)
        self._error: Optional[Exception] = None
        self._seeded = False
        self._seed_flight: Optional[anyio.Event] = None
        self._seed_result = False
        self._lock = ReadWriteLock()

    # --- Read-only views of the held page ---
    # No lock here: a navigation replaces _page in one assignment, and all
    # tasks share one event loop, so these always see a whole page (the old
    # one while a fetch is in flight). has_self/error/copy take the lock.

    @property
    def client(self) -> PageFetcher:
        return self._client

    @property
    def page(self) -> Page[R]:
        return self._page

    @property
    def items(self) -> List[R]:
        return self._page.items

    @property
    def total_count(self) -> int:
        return self._page.total_count

    @property
    def links(self) -> LinkSet:
        return self._page.links

    async def has_self(self) -> bool:
        """True when the cursor holds a page it can refetch: usable data."""
        async with self._lock.read():
            page = self._page
            return Relation.SELF in page.links and page.version_ok

    async def error(self) -> Optional[Exception]:
        """Last error recorded by a navigation. Reading it changes nothing."""
        async with self._lock.read():
            return self._error

    async def copy(self, client: Optional[PageFetcher] = None) -> "Cursor[R]":
        """
        Independent deep copy of the held page, navigating through `client`
        (or this cursor's client). The copy starts without an error.
        """
        async with self._lock.read():
            dup: Cursor[R] = Cursor(client or self._client, self.spec, self.seed_url)
            dup._page = self._page.deep_copy()
            dup._seeded = self._seeded
            return dup

    # --- Navigation ---

    async def next(self, timeout: Optional[float] = None) -> bool:
        if not self._seeded:
            return await self._seed(timeout)
        return await self._navigate(Relation.NEXT, timeout)

    async def previous(self, timeout: Optional[float] = None) -> bool:
        return await self._navigate(Relation.PREVIOUS, timeout)

    async def refresh(self, timeout: Optional[float] = None) -> bool:
        """Refetch the held page through its self link."""
        return await self._navigate(Relation.SELF, timeout)

    async def first(self, timeout: Optional[float] = None) -> bool:
        return await self._navigate(Relation.FIRST, timeout)

    async def last(self, timeout: Optional[float] = None) -> bool:
        return await self._navigate(Relation.LAST, timeout)

    async def related(self, timeout: Optional[float] = None) -> bool:
        return await self._navigate(Relation.RELATED, timeout)

    async def pages(self, timeout: Optional[float] = None) -> AsyncIterator[Page[R]]:
        """
        Yield pages from the current position forward until the last one.
        Raises the recorded error if a fetch fails along the way.
        """
        while await self.next(timeout):
            yield self._page
        err = await self.error()
        if err is not None:
            raise err

    def __aiter__(self) -> AsyncIterator[Page[R]]:
        return self.pages()

    async def _seed(self, timeout: Optional[float]) -> bool:
        # concurrent first calls share one seed fetch and its outcome
        if self._seed_flight is not None:
            await self._seed_flight.wait()
            return self._seed_result

        flight = self._seed_flight = anyio.Event()
        self._seed_result = False
        try:
            async with self._lock.write():
                if self._seeded:
                    self._seed_result = await self._step(Relation.NEXT, timeout)
                else:
                    url = self._page.links.href(Relation.NEXT) or self.seed_url
                    self._seed_result = await self._load(url, timeout)
            return self._seed_result
        finally:
            self._seed_flight = None
            flight.set()

    async def _navigate(self, rel: Relation, timeout: Optional[float]) -> bool:
        async with self._lock.write():
            return await self._step(rel, timeout)

    async def _step(self, rel: Relation, timeout: Optional[float]) -> bool:
        # caller holds the write lock
        page = self._page
        if not page.version_ok:
            # mismatch was reported when the page arrived; links stay closed
            self._error = None
            return False

        url = page.links.href(rel)
        if url is None:
            self._error = None
            if rel in (Relation.NEXT, Relation.PREVIOUS):
                self._page = page.with_links(page.links.boundary(rel))
                log_event(
                    "cursor.exhausted",
                    logger=log,
                    level=logging.DEBUG,
                    resource=self.spec.name,
                    rel=rel.value,
                )
            return False

        return await self._load(url, timeout)

    async def _load(self, url: str, timeout: Optional[float]) -> bool:
        # caller holds the write lock
        try:
            with anyio.fail_after(timeout):
                page = await self._client.fetch_page(self.spec, url)
        except TimeoutError:
            self._error = LufthansaCancelledError(
                f"Deadline of {timeout}s exceeded fetching {url}"
            )
            return False
        except anyio.get_cancelled_exc_class():
            self._error = LufthansaCancelledError(f"Cancelled while fetching {url}")
            raise
        except LufthansaClientError as exc:
            self._error = exc
            log_event(
                "cursor.fetch_failed",
                logger=log,
                level=logging.WARNING,
                resource=self.spec.name,
                url=url,
                error_type=type(exc).__name__,
            )
            return False

        self._page = page
        self._seeded = True
        if not page.version_ok:
            self._error = LufthansaSchemaVersionError(
                expected=META_VERSION, actual=page.schema_version
            )
            return False
        self._error = None
        return True

    def __str__(self) -> str:
        return str(self._page)


__all__ = ["Cursor", "PageFetcher"]
