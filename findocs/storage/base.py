from abc import ABC, abstractmethod
from typing import Any, Dict, List

from findocs.core.errors import UnsupportedOperationError
from findocs.schemas.submission_schema import FileRef, FolderRef


class StorageProvider(ABC):
    """Folder/file creation against one concrete backend.

    ``create_folder`` and ``upload_file`` are required. Structured records and
    folder listing are optional capabilities; backends that lack them keep
    ``supports_metadata = False`` and the defaults below.
    """

    name: str = "base"
    supports_metadata: bool = False

    @abstractmethod
    async def create_folder(self, folder_name: str) -> FolderRef:
        ...

    @abstractmethod
    async def upload_file(self, folder_id: str, file_name: str, mime_type: str, data: bytes) -> FileRef:
        ...

    async def upload_json(self, folder_id: str, file_name: str, record: Dict[str, Any]) -> FileRef:
        raise UnsupportedOperationError(f"Structured records are not supported by {self.name} storage")

    async def list_submission_folders(self) -> List[Dict[str, Any]]:
        raise UnsupportedOperationError("Submission history only available with Google Drive storage")
