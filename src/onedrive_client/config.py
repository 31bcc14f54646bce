"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Protocol tuning
    constants have sensible defaults but can be overridden via environment
    variables.
    """

    # Required: no defaults, fail at startup if missing
    client_id: str
    client_secret: str
    tenant_id: str
    drive_user: str
    storage_connection_string: str

    # Protocol tuning: defaults provided, overridable via env
    delta_container: str = "onedrive-client-state"
    delta_blob: str = "delta-link/current.txt"
    page_size: int = 200
    upload_chunk_size: int = 10 * 1024 * 1024
    max_retries: int = 3
    request_timeout: float = 30.0
    copy_poll_interval: float = 1.0

    def __post_init__(self) -> None:
        # Graph rejects upload chunks that are not multiples of 320 KiB.
        if self.upload_chunk_size <= 0 or self.upload_chunk_size % (320 * 1024):
            raise ValueError(
                f"upload_chunk_size must be a positive multiple of 327680, "
                f"got {self.upload_chunk_size}"
            )
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        OD_CLIENT_ID: Azure AD application (client) ID.
        OD_CLIENT_SECRET: Azure AD application client secret.
        OD_TENANT_ID: Azure AD tenant ID.
        OD_DRIVE_USER: UPN or object ID of the OneDrive user.
        AzureWebJobsStorage: Azure Storage account connection string.

    Optional environment variables (with defaults):
        OD_DELTA_CONTAINER: Blob container for delta link storage.
        OD_DELTA_BLOB: Blob path for the delta link file.
        OD_PAGE_SIZE: Page size hint for listings (default: 200).
        OD_UPLOAD_CHUNK_SIZE: Upload chunk size in bytes (default: 10 MiB).
        OD_MAX_RETRIES: Retry attempts per upload chunk (default: 3).
        OD_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 30).
        OD_COPY_POLL_INTERVAL: Seconds between copy monitor polls (default: 1).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["OD_CLIENT_ID"],
        client_secret=os.environ["OD_CLIENT_SECRET"],
        tenant_id=os.environ["OD_TENANT_ID"],
        drive_user=os.environ["OD_DRIVE_USER"],
        storage_connection_string=os.environ["AzureWebJobsStorage"],  # noqa: SIM112
        delta_container=os.environ.get("OD_DELTA_CONTAINER", "onedrive-client-state"),
        delta_blob=os.environ.get("OD_DELTA_BLOB", "delta-link/current.txt"),
        page_size=int(os.environ.get("OD_PAGE_SIZE", "200")),
        upload_chunk_size=int(os.environ.get("OD_UPLOAD_CHUNK_SIZE", str(10 * 1024 * 1024))),
        max_retries=int(os.environ.get("OD_MAX_RETRIES", "3")),
        request_timeout=float(os.environ.get("OD_REQUEST_TIMEOUT", "30")),
        copy_poll_interval=float(os.environ.get("OD_COPY_POLL_INTERVAL", "1")),
    )
