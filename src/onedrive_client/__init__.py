"""Synchronous OneDrive client for the Microsoft Graph API."""

from onedrive_client.graph.client import GraphClient
from onedrive_client.graph.copy import (
    Completed,
    CopyProgressMonitor,
    CopyStatus,
    Failed,
    InProgress,
    NotStarted,
)
from onedrive_client.graph.delta import DeltaLinkStore, TrackChangeFetcher
from onedrive_client.graph.drive import DriveClient
from onedrive_client.graph.errors import (
    ApiError,
    DriveError,
    GraphAuthError,
    MisuseError,
    ProtocolError,
    TransportError,
)
from onedrive_client.graph.fields import FieldDescriptor
from onedrive_client.graph.locations import DriveLocation, ItemLocation
from onedrive_client.graph.models import (
    ByteRange,
    ConflictBehavior,
    Drive,
    DriveField,
    DriveItem,
    DriveItemField,
    ErrorObject,
)
from onedrive_client.graph.paging import ListChildrenFetcher, Page
from onedrive_client.graph.query import CollectionOption, ObjectOption
from onedrive_client.graph.upload import UploadSession

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ByteRange",
    "CollectionOption",
    "Completed",
    "ConflictBehavior",
    "CopyProgressMonitor",
    "CopyStatus",
    "DeltaLinkStore",
    "Drive",
    "DriveClient",
    "DriveError",
    "DriveField",
    "DriveItem",
    "DriveItemField",
    "DriveLocation",
    "ErrorObject",
    "Failed",
    "FieldDescriptor",
    "GraphAuthError",
    "GraphClient",
    "InProgress",
    "ItemLocation",
    "ListChildrenFetcher",
    "MisuseError",
    "NotStarted",
    "ObjectOption",
    "Page",
    "ProtocolError",
    "TrackChangeFetcher",
    "TransportError",
    "UploadSession",
    "__version__",
]
