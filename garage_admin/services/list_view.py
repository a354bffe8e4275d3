"""
Client-side state of one list view.

``ListView`` owns the current ``SearchQuery`` and the last page it applied.
Any parameter change drops the held page; a new term, field or filter also
goes back to page 1. ``refresh`` cancels the request still in flight for the
view and only applies a result if no newer request was started meanwhile,
so a slow, stale response can never replace a fresh one.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from garage_admin.exceptions import GarageAdminError
from garage_admin.schemas.search import Page
from garage_admin.services.search import SearchQuery

logger = logging.getLogger(__name__)

Fetch = Callable[[SearchQuery], Awaitable[Page]]


class ListView:
    def __init__(self, fetch: Fetch, query: Optional[SearchQuery] = None):
        self._fetch = fetch
        self.query = query or SearchQuery()
        self.result: Optional[Page] = None
        self.error: Optional[GarageAdminError] = None
        self._sequence = 0
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def loading(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def _change(self, **changes) -> None:
        query = self.query.changed(**changes)
        if query != self.query:
            self.query = query
            self.result = None

    def set_term(self, term: Optional[str]) -> None:
        self._change(term=term)

    def set_field(self, field: str) -> None:
        self._change(field=field)

    def set_filter(self, filter_: str) -> None:
        self._change(filter=filter_)

    def set_page(self, page: int) -> None:
        self._change(page=page)

    def set_page_size(self, page_size: int) -> None:
        self._change(page_size=page_size)

    def cancel(self) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        self._in_flight = None

    async def refresh(self) -> Optional[Page]:
        """Fetch the current query.

        Returns the applied page, or None when this request was superseded
        before it finished. Timeouts and store errors are kept on ``error``
        and re-raised so the caller can offer a retry.
        """
        self.cancel()
        self._sequence += 1
        sequence = self._sequence
        query = self.query

        task = asyncio.ensure_future(self._fetch(query))
        self._in_flight = task
        try:
            page = await task
        except asyncio.CancelledError:
            if sequence != self._sequence:
                logger.debug("List request %d superseded", sequence)
                return None
            raise
        except GarageAdminError as e:
            if sequence != self._sequence:
                return None
            self.result = None
            self.error = e
            raise
        finally:
            if self._in_flight is task:
                self._in_flight = None

        if sequence != self._sequence:
            logger.debug("Discarding stale list response %d (latest %d)", sequence, self._sequence)
            return None

        self.result = page
        self.error = None
        return page
