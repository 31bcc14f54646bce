"""Integration tests for Microsoft Graph API connectivity.

These tests require real Azure credentials and are skipped in CI/CD unless
the OD_CLIENT_ID environment variable is set.
"""

import os

import pytest

pytestmark = pytest.mark.skipif(
    not os.getenv("OD_CLIENT_ID"),
    reason="Real Graph credentials not available",
)


def test_list_root_children_real() -> None:
    """Connect to the real Graph API and walk the root folder's children."""
    from onedrive_client.config import load_config
    from onedrive_client.graph.drive import drive_client_from_config
    from onedrive_client.graph.locations import ItemLocation
    from onedrive_client.graph.models import DriveItem, DriveItemField
    from onedrive_client.graph.query import CollectionOption

    config = load_config()
    drive = drive_client_from_config(config)
    option = CollectionOption(DriveItem).select(DriveItemField.id, DriveItemField.name).top(5)
    items = drive.list_children(ItemLocation.root(), option).fetch_all()

    assert isinstance(items, list)


def test_latest_delta_link_real() -> None:
    """A latest delta link can be resumed and yields a new delta link."""
    from onedrive_client.config import load_config
    from onedrive_client.graph.drive import drive_client_from_config

    config = load_config()
    drive = drive_client_from_config(config)
    link = drive.get_latest_delta_link()
    _, new_link = drive.track_changes_from_delta_link(link).fetch_changes()

    assert new_link.startswith("https://")
