"""Delta (track changes) fetcher with delta link persistence in Azure Blob Storage."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.paging import Page, PageFetcher

if TYPE_CHECKING:
    from onedrive_client.config import AppConfig
    from onedrive_client.graph.client import GraphClient
    from onedrive_client.graph.models import DriveItem

logger = logging.getLogger(__name__)

DEFAULT_DELTA_CONTAINER = "onedrive-client-state"
DEFAULT_DELTA_BLOB = "delta-link/current.txt"


class TrackChangeFetcher(PageFetcher):
    """Enumerates items changed since a point in time.

    Pages are linked by ``@odata.nextLink``; the last page carries
    ``@odata.deltaLink`` instead. That link is captured verbatim in
    :attr:`delta_link` so that a later sync can start from it with
    :meth:`resume_from` instead of enumerating the whole drive again.

    Deleted items are returned like any other item, with ``deleted`` set.
    """

    def __init__(self, client: GraphClient, initial_url: str) -> None:
        super().__init__(client, initial_url)
        self._delta_link: str | None = None

    @classmethod
    def resume_from(cls, client: GraphClient, delta_link: str) -> TrackChangeFetcher:
        """Create a fetcher starting from a delta link saved by a previous sync.

        An expired link is reported by the server when the first page is
        fetched (typically HTTP 410); the caller should then start over with a
        full enumeration.
        """
        return cls(client, delta_link)

    @property
    def delta_link(self) -> str | None:
        """The ``@odata.deltaLink`` of the last page, once it has been fetched."""
        return self._delta_link

    def _parse_page(self, raw: Any) -> Page:
        page = super()._parse_page(raw)
        if page.next_link is None and page.delta_link is None:
            raise ProtocolError("delta response has neither nextLink nor deltaLink")
        return page

    def _advance(self, page: Page) -> None:
        super()._advance(page)
        if page.next_link is None:
            self._delta_link = page.delta_link
            logger.info("[next_page] reached end of changes; delta link captured")

    def fetch_changes(self) -> tuple[list[DriveItem], str]:
        """Fetch every remaining page.

        Returns:
            A tuple of (items, delta_link) where delta_link resumes the next sync.

        Raises:
            MisuseError: If the fetcher was already exhausted.
        """
        if self.is_exhausted:
            raise MisuseError("TrackChangeFetcher has no more pages")
        items = self.fetch_all()
        if self._delta_link is None:
            raise ProtocolError("Delta response did not contain an @odata.deltaLink")
        return items, self._delta_link


class DeltaLinkStore:
    """Persists the latest delta link as a UTF-8 blob."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_DELTA_CONTAINER,
        blob: str = DEFAULT_DELTA_BLOB,
    ) -> None:
        """Initialise the store.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container name for delta link storage.
            blob: Blob path of the delta link file.
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob = blob

    def get(self) -> str | None:
        """Read the persisted delta link.

        Returns:
            The stored link, or None if none has been saved yet (first run).
        """
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(self._blob)
            data = blob_client.download_blob().readall()
            return data.decode("utf-8")
        except ResourceNotFoundError:
            logger.info("[get] no delta link found in blob storage; first run")
            return None

    def save(self, delta_link: str) -> None:
        """Write the delta link, creating the container if needed."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceExistsError):
            container_client.create_container()

        blob_client = container_client.get_blob_client(self._blob)
        blob_client.upload_blob(delta_link.encode("utf-8"), overwrite=True)
        logger.info("[save] saved delta link to blob storage; container:%s", self._container)

    def clear(self) -> None:
        """Forget the stored delta link so the next sync enumerates everything."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceNotFoundError):
            container_client.get_blob_client(self._blob).delete_blob()
        logger.info("[clear] cleared delta link")


def delta_link_store_from_config(config: AppConfig) -> DeltaLinkStore:
    """Construct a DeltaLinkStore from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DeltaLinkStore instance.
    """
    return DeltaLinkStore(
        storage_connection_string=config.storage_connection_string,
        container=config.delta_container,
        blob=config.delta_blob,
    )
