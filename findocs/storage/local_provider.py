import asyncio
import logging
from pathlib import Path
from typing import Optional

from findocs.core.config import settings
from findocs.core.errors import ProviderIOError
from findocs.schemas.submission_schema import FileRef, FolderRef
from findocs.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """Directory-per-submission fallback for when no access token is available."""

    name = "local"

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path or settings.LOCAL_STORAGE_PATH)

    async def create_folder(self, folder_name: str) -> FolderRef:
        folder_path = self.base_path / folder_name
        try:
            await asyncio.to_thread(folder_path.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create local folder {folder_path}: {e}")
            raise ProviderIOError("Failed to create submission folder") from e
        return FolderRef(folder_id=str(folder_path), folder_link=folder_path.resolve().as_uri())

    async def upload_file(self, folder_id: str, file_name: str, mime_type: str, data: bytes) -> FileRef:
        file_path = Path(folder_id) / file_name
        try:
            await asyncio.to_thread(file_path.write_bytes, data)
        except OSError as e:
            logger.error(f"Failed to write local file {file_path}: {e}")
            raise ProviderIOError(f"Failed to store {file_name}") from e
        logger.info(f"Stored {file_name} ({len(data)} bytes) in {folder_id}")
        return FileRef(file_id=str(file_path), file_link=file_path.resolve().as_uri())
