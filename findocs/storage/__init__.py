from typing import Optional

from findocs.storage.base import StorageProvider
from findocs.storage.google_drive_provider import GoogleDriveProvider
from findocs.storage.local_provider import LocalStorageProvider


# Per-request choice: Drive whenever the request carries an access token
def get_storage_provider(access_token: Optional[str]) -> StorageProvider:
    if access_token:
        return GoogleDriveProvider(access_token)
    return LocalStorageProvider()


__all__ = [
    "StorageProvider",
    "GoogleDriveProvider",
    "LocalStorageProvider",
    "get_storage_provider",
]
