"""Page-by-page fetchers over paginated Graph collections."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.models import (
    ODATA_DELTA_LINK,
    ODATA_NEXT_LINK,
    ODATA_VALUE,
    DriveItem,
)

if TYPE_CHECKING:
    from onedrive_client.graph.client import GraphClient

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of a collection, in server order."""

    items: list[DriveItem] = field(default_factory=list)
    next_link: str | None = None
    delta_link: str | None = None

    @property
    def has_next(self) -> bool:
        return self.next_link is not None


class PageFetcher:
    """Forward-only cursor over a paginated collection.

    The first :meth:`next_page` requests the initial path; every later call
    requests the previous page's ``@odata.nextLink`` verbatim, since it already
    encodes the original query options. Each call performs one request.
    """

    def __init__(self, client: GraphClient, initial_url: str) -> None:
        """Create a fetcher that has not issued any request yet.

        Args:
            client: GraphClient used to fetch pages.
            initial_url: Relative path (with query options) or absolute URL of
                the first page.
        """
        self._client = client
        self._cursor: str | None = initial_url
        self._pages_fetched = 0

    @property
    def cursor(self) -> str | None:
        """URL of the next page, or None once the collection is exhausted."""
        return self._cursor

    @property
    def is_exhausted(self) -> bool:
        return self._cursor is None

    def next_page(self) -> Page:
        """Fetch the next page and advance the cursor.

        Raises:
            MisuseError: If the last page has already been fetched.
            ProtocolError: If the response is not a collection page.
        """
        if self._cursor is None:
            raise MisuseError(f"{type(self).__name__} has no more pages")
        raw = self._client.execute("GET", self._cursor).json()
        page = self._parse_page(raw)
        self._advance(page)
        self._pages_fetched += 1
        logger.debug(
            "[next_page] fetched page; page:%d;item_count:%d;has_next:%s",
            self._pages_fetched,
            len(page.items),
            page.has_next,
        )
        return page

    def _parse_page(self, raw: Any) -> Page:
        if not isinstance(raw, dict) or not isinstance(raw.get(ODATA_VALUE), list):
            raise ProtocolError("collection response has no 'value' list")
        return Page(
            items=[DriveItem.from_json(v) for v in raw[ODATA_VALUE]],
            next_link=raw.get(ODATA_NEXT_LINK),
            delta_link=raw.get(ODATA_DELTA_LINK),
        )

    def _advance(self, page: Page) -> None:
        self._cursor = page.next_link

    def __iter__(self) -> Iterator[DriveItem]:
        """Lazily yield the remaining items across pages."""
        while not self.is_exhausted:
            yield from self.next_page().items

    def fetch_all(self) -> list[DriveItem]:
        """Fetch every remaining page and return their items in order."""
        return list(self)


class ListChildrenFetcher(PageFetcher):
    """Enumerates the children of a folder.

    Enumeration ends at the first page without ``@odata.nextLink``; calling
    :meth:`next_page` after that raises MisuseError rather than returning an
    empty page.
    """
