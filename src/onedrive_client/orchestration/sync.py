"""Drive sync: incremental change tracking with a persisted delta link."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from onedrive_client.graph.delta import DeltaLinkStore, delta_link_store_from_config
from onedrive_client.graph.drive import DriveClient, drive_client_from_config
from onedrive_client.graph.errors import ApiError, GoneError
from onedrive_client.graph.models import DriveItem
from onedrive_client.graph.query import CollectionOption

if TYPE_CHECKING:
    from onedrive_client.config import AppConfig
    from onedrive_client.graph.delta import TrackChangeFetcher
    from onedrive_client.graph.locations import ItemLocation

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync cycle."""

    items: list[DriveItem] = field(default_factory=list)
    delta_link: str = ""
    full_resync: bool = False

    @property
    def changed(self) -> list[DriveItem]:
        """Items created or modified since the previous sync."""
        return [i for i in self.items if not i.is_deleted]

    @property
    def deleted(self) -> list[DriveItem]:
        """Items deleted since the previous sync."""
        return [i for i in self.items if i.is_deleted]


def requires_resync(exc: ApiError) -> bool:
    """Return True if the server rejected a delta link and wants a full enumeration."""
    if isinstance(exc, GoneError):
        return True
    return any((e.code or "").startswith("resync") for e in exc.error.chain())


class DriveSync:
    """Runs one change-tracking cycle and persists where it stopped."""

    def __init__(
        self,
        drive: DriveClient,
        store: DeltaLinkStore,
        folder: ItemLocation | None = None,
        page_size: int | None = None,
    ) -> None:
        """Initialise the sync.

        Args:
            drive: DriveClient for the drive to track.
            store: Store holding the delta link between runs.
            folder: Folder to track; defaults to the drive root.
            page_size: Page size hint for the initial enumeration.
        """
        self._drive = drive
        self._store = store
        self._folder = folder
        self._page_size = page_size

    def _full_enumeration(self) -> TrackChangeFetcher:
        option = None
        if self._page_size is not None:
            option = CollectionOption(DriveItem).top(self._page_size)
        return self._drive.track_changes_from_initial(self._folder, option)

    def run(self) -> SyncResult:
        """Fetch changes since the stored delta link and save the new one.

        Steps:
            1. Read the stored delta link (None on first run).
            2. Resume from it, or enumerate everything when there is none.
            3. If the server rejects the link, enumerate everything instead.
            4. Save the new delta link.

        The link is only saved after every page was fetched, so a failed cycle
        is retried from the same point on the next run.

        Returns:
            SyncResult with the changed items and the new delta link.
        """
        logger.info("[run] starting sync cycle")
        delta_link = self._store.get()
        full_resync = delta_link is None
        if delta_link is None:
            fetcher = self._full_enumeration()
        else:
            fetcher = self._drive.track_changes_from_delta_link(delta_link)

        try:
            items, new_link = fetcher.fetch_changes()
        except ApiError as exc:
            if full_resync or not requires_resync(exc):
                raise
            logger.warning(
                "[run] delta link rejected, enumerating everything; status:%d;code:%s",
                exc.status_code,
                exc.code,
            )
            full_resync = True
            items, new_link = self._full_enumeration().fetch_changes()

        self._store.save(new_link)
        result = SyncResult(items=items, delta_link=new_link, full_resync=full_resync)
        logger.info(
            "[run] sync complete; changed:%d;deleted:%d;full_resync:%s",
            len(result.changed),
            len(result.deleted),
            full_resync,
        )
        return result


def drive_sync_from_config(config: AppConfig) -> DriveSync:
    """Construct a DriveSync from application configuration.

    Creates a DriveClient and a DeltaLinkStore from the config, then
    wires them into a DriveSync tracking the whole drive.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DriveSync instance.
    """
    return DriveSync(
        drive=drive_client_from_config(config),
        store=delta_link_store_from_config(config),
        page_size=config.page_size,
    )
