"""OneDrive operations on one drive, built on GraphClient."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from onedrive_client.graph.client import graph_client_from_config
from onedrive_client.graph.copy import CopyProgressMonitor
from onedrive_client.graph.delta import TrackChangeFetcher
from onedrive_client.graph.errors import MisuseError, ProtocolError, TransportError
from onedrive_client.graph.locations import DriveLocation, ItemLocation, validate_file_name
from onedrive_client.graph.models import (
    ANNOTATION_CONFLICT_BEHAVIOR,
    ODATA_DELTA_LINK,
    ConflictBehavior,
    Drive,
    DriveItem,
)
from onedrive_client.graph.paging import ListChildrenFetcher
from onedrive_client.graph.query import CollectionOption, ObjectOption
from onedrive_client.graph.upload import UploadSession

if TYPE_CHECKING:
    from onedrive_client.config import AppConfig
    from onedrive_client.graph.client import GraphClient

logger = logging.getLogger(__name__)

# Largest body accepted by a single-request content upload
MAX_SMALL_UPLOAD_SIZE = 4 * 1024 * 1024


class DriveClient:
    """Item operations and protocol entry points for one drive."""

    def __init__(self, graph_client: GraphClient, drive: DriveLocation) -> None:
        """Initialise the drive client.

        Args:
            graph_client: Authenticated GraphClient instance.
            drive: Drive every operation targets.
        """
        self._graph = graph_client
        self._drive = drive

    @property
    def graph(self) -> GraphClient:
        return self._graph

    @property
    def drive(self) -> DriveLocation:
        return self._drive

    def item_path(self, item: ItemLocation) -> str:
        """Graph path of ``item`` within this drive."""
        return f"{self._drive.path}{item.path}"

    def get_drive(self, option: ObjectOption[Drive] | None = None) -> Drive:
        """Fetch the drive resource."""
        path = option.apply(self._drive.path) if option is not None else self._drive.path
        return Drive.from_json(self._graph.get(path))

    def get_item(
        self, item: ItemLocation, option: ObjectOption[DriveItem] | None = None
    ) -> DriveItem | None:
        """Fetch an item's metadata.

        Returns:
            The item, or None when ``option`` carries ``If-None-Match`` and the
            item is unchanged (HTTP 304).
        """
        path = self.item_path(item)
        headers = None
        if option is not None:
            path = option.apply(path)
            headers = option.headers()
        try:
            resp = self._graph.execute("GET", path, headers=headers)
        except TransportError as exc:
            if exc.status_code == 304:
                return None
            raise
        return DriveItem.from_json(resp.json_object())

    def get_item_download_url(self, item: ItemLocation) -> str:
        """Return the pre-authenticated, short-lived download URL of a file.

        Raises:
            ProtocolError: If the item has no download URL (e.g. a folder).
        """
        fetched = self.get_item(item)
        if fetched is None or fetched.download_url is None:
            raise ProtocolError("item has no @microsoft.graph.downloadUrl")
        return fetched.download_url

    def download(self, item: ItemLocation) -> bytes:
        """Download a file's content through its pre-authenticated URL."""
        url = self.get_item_download_url(item)
        return self._graph.execute("GET", url, headers={"Accept": "*/*"}, authenticated=False).body

    def create_folder(
        self,
        parent: ItemLocation,
        name: str,
        conflict_behavior: ConflictBehavior = ConflictBehavior.FAIL,
    ) -> DriveItem:
        """Create a folder named ``name`` inside ``parent``."""
        body = {
            "name": validate_file_name(name),
            "folder": {},
            ANNOTATION_CONFLICT_BEHAVIOR: conflict_behavior.value,
        }
        resp = self._graph.post(f"{self.item_path(parent)}/children", body=body)
        logger.info("[create_folder] created folder; name:%s", name)
        return DriveItem.from_json(resp.json_object())

    def update_item(
        self, item: ItemLocation, patch: dict[str, Any], if_match: str | None = None
    ) -> DriveItem:
        """Apply a partial update to an item's metadata."""
        headers = {"If-Match": if_match} if if_match else None
        return DriveItem.from_json(self._graph.patch(self.item_path(item), patch, headers=headers))

    def move(
        self,
        item: ItemLocation,
        new_parent_id: str | None = None,
        new_name: str | None = None,
        if_match: str | None = None,
    ) -> DriveItem:
        """Move and/or rename an item.

        Raises:
            MisuseError: If neither a new parent nor a new name is given.
        """
        patch: dict[str, Any] = {}
        if new_parent_id is not None:
            patch["parentReference"] = {"id": new_parent_id}
        if new_name is not None:
            patch["name"] = validate_file_name(new_name)
        if not patch:
            raise MisuseError("move requires a new parent or a new name")
        return self.update_item(item, patch, if_match=if_match)

    def delete(self, item: ItemLocation, if_match: str | None = None) -> None:
        """Delete an item (moved to the recycle bin)."""
        headers = {"If-Match": if_match} if if_match else None
        self._graph.delete(self.item_path(item), headers=headers)
        logger.info("[delete] deleted item; path:%s", item.path)

    def upload_small(
        self,
        item: ItemLocation,
        content: bytes,
        conflict_behavior: ConflictBehavior = ConflictBehavior.REPLACE,
    ) -> DriveItem:
        """Upload a file of at most 4 MB in a single request.

        Args:
            item: Location of the file, e.g. ``ItemLocation.child_of_id(parent, name)``.
            content: File content.
            conflict_behavior: What to do if the file already exists.

        Raises:
            MisuseError: If the content exceeds 4 MB; use an upload session instead.
        """
        if len(content) > MAX_SMALL_UPLOAD_SIZE:
            raise MisuseError(
                f"content of {len(content)} bytes exceeds {MAX_SMALL_UPLOAD_SIZE}; "
                "use new_upload_session"
            )
        path = (
            f"{self.item_path(item)}/content"
            f"?{quote(ANNOTATION_CONFLICT_BEHAVIOR)}={conflict_behavior.value}"
        )
        return DriveItem.from_json(self._graph.put_content(path, content))

    def new_upload_session(
        self,
        item: ItemLocation,
        file_size: int,
        conflict_behavior: ConflictBehavior = ConflictBehavior.FAIL,
    ) -> UploadSession:
        """Start a resumable upload session for the file at ``item``."""
        return UploadSession.create(self._graph, self.item_path(item), file_size, conflict_behavior)

    def copy(
        self,
        source: ItemLocation,
        dest_parent_id: str,
        new_name: str | None = None,
        dest_drive_id: str | None = None,
    ) -> CopyProgressMonitor:
        """Start a server-side copy of ``source`` into folder ``dest_parent_id``."""
        reference = {"id": dest_parent_id}
        if dest_drive_id is not None:
            reference["driveId"] = dest_drive_id
        if new_name is not None:
            validate_file_name(new_name)
        return CopyProgressMonitor.start(self._graph, self.item_path(source), reference, new_name)

    def list_children(
        self,
        item: ItemLocation,
        option: CollectionOption[DriveItem] | None = None,
    ) -> ListChildrenFetcher:
        """Return a fetcher over the children of folder ``item``.

        Page size and other query options go into ``option`` and only apply
        to the first request; later pages follow ``@odata.nextLink``.
        """
        path = f"{self.item_path(item)}/children"
        return ListChildrenFetcher(self._graph, option.apply(path) if option is not None else path)

    def track_changes_from_initial(
        self,
        folder: ItemLocation | None = None,
        option: CollectionOption[DriveItem] | None = None,
    ) -> TrackChangeFetcher:
        """Return a fetcher enumerating every item under ``folder`` (default: root)."""
        path = f"{self.item_path(folder or ItemLocation.root())}/delta"
        return TrackChangeFetcher(self._graph, option.apply(path) if option is not None else path)

    def track_changes_from_delta_link(self, delta_link: str) -> TrackChangeFetcher:
        """Return a fetcher over changes made after ``delta_link`` was issued."""
        return TrackChangeFetcher.resume_from(self._graph, delta_link)

    def get_latest_delta_link(self, folder: ItemLocation | None = None) -> str:
        """Return a delta link for "now", skipping enumeration of existing items.

        Raises:
            ProtocolError: If the response carries no delta link.
        """
        path = f"{self.item_path(folder or ItemLocation.root())}/delta?token=latest"
        raw = self._graph.get(path)
        delta_link = raw.get(ODATA_DELTA_LINK)
        if not delta_link:
            raise ProtocolError("latest delta response has no @odata.deltaLink")
        return str(delta_link)


def drive_client_from_config(config: AppConfig) -> DriveClient:
    """Construct a DriveClient for the configured user's drive.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DriveClient instance.
    """
    return DriveClient(
        graph_client=graph_client_from_config(config),
        drive=DriveLocation.from_user(config.drive_user),
    )
