"""
Google Drive (v3) storage backed by the user's own delegated access token.

Every folder created here is tagged with ``appProperties`` so submissions can
be listed later without an index of our own. The Drive client is synchronous,
so each request runs in a worker thread.
"""
import asyncio
import io
import json
import logging
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from findocs.core.config import settings
from findocs.core.errors import ProviderAuthError, ProviderError, ProviderIOError, ProviderQuotaError
from findocs.schemas.submission_schema import FileRef, FolderRef
from findocs.storage.base import StorageProvider

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
LIST_PAGE_SIZE = 100

QUOTA_REASONS = {
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "storageQuotaExceeded",
    "quotaExceeded",
    "dailyLimitExceeded",
    "sharingRateLimitExceeded",
    "RATE_LIMIT_EXCEEDED",
}


def folder_link(folder_id: str) -> str:
    return f"https://drive.google.com/drive/folders/{folder_id}"


def file_link(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}"


def _error_reasons(error: HttpError) -> List[str]:
    details = getattr(error, "error_details", None)
    if not isinstance(details, list):
        return []
    return [d["reason"] for d in details if isinstance(d, dict) and d.get("reason")]


def _retry_after(error: HttpError) -> Optional[int]:
    value = error.resp.get("retry-after") if error.resp is not None else None
    if value and str(value).isdigit():
        return int(value)
    return None


# Maps a Drive client failure onto the provider error taxonomy
def to_provider_error(error: Exception, operation: str) -> ProviderError:
    if isinstance(error, RefreshError):
        # The token carries no refresh capability, so a 401 surfaces as a refresh failure
        logger.warning(f"Drive {operation} rejected the access token")
        return ProviderAuthError()

    if not isinstance(error, HttpError):
        logger.error(f"Drive {operation} transport error: {type(error).__name__}")
        if isinstance(error, TimeoutError):
            return ProviderIOError("Storage provider timed out")
        return ProviderIOError()

    status = int(error.resp.status)
    reasons = _error_reasons(error)
    logger.warning(f"Drive {operation} failed: status={status} reasons={reasons}")

    if status == 429 or (status == 403 and QUOTA_REASONS.intersection(reasons)):
        return ProviderQuotaError(retry_after=_retry_after(error))
    if status == 401:
        return ProviderAuthError()
    if status == 403:
        return ProviderAuthError("Storage provider denied access to this operation", status_code=403)
    return ProviderIOError()


class GoogleDriveProvider(StorageProvider):
    name = "google-drive"
    supports_metadata = True

    def __init__(self, access_token: str, service: Any = None):
        if not access_token:
            raise ValueError("GoogleDriveProvider requires an access token")
        self._access_token = access_token
        self._service = service

    def _build_service(self) -> Any:
        credentials = Credentials(token=self._access_token)
        http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=settings.HTTP_TIMEOUT_SECONDS))
        return build("drive", "v3", http=http, cache_discovery=False)

    async def _execute(self, operation: str, make_request) -> Dict[str, Any]:
        def _call() -> Dict[str, Any]:
            if self._service is None:
                self._service = self._build_service()
            return make_request(self._service.files()).execute()

        try:
            return await asyncio.to_thread(_call)
        except (HttpError, RefreshError, httplib2.HttpLib2Error, OSError) as e:
            raise to_provider_error(e, operation) from e

    async def create_folder(self, folder_name: str) -> FolderRef:
        body = {
            "name": folder_name,
            "mimeType": FOLDER_MIME_TYPE,
            "appProperties": {
                "createdBy": settings.DRIVE_APP_TAG,
                "type": "submission",
            },
        }
        data = await self._execute(
            "files.create.folder",
            lambda files: files.create(body=body, fields="id, webViewLink"),
        )
        folder_id = data["id"]
        logger.info(f"Created Drive folder {folder_name} ({folder_id})")
        return FolderRef(folder_id=folder_id, folder_link=data.get("webViewLink") or folder_link(folder_id))

    async def upload_file(self, folder_id: str, file_name: str, mime_type: str, data: bytes) -> FileRef:
        body = {"name": file_name, "parents": [folder_id]}
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)
        result = await self._execute(
            "files.create.upload",
            lambda files: files.create(body=body, media_body=media, fields="id, webViewLink"),
        )
        file_id = result["id"]
        logger.info(f"Uploaded {file_name} ({len(data)} bytes, {mime_type}) to folder {folder_id}")
        return FileRef(file_id=file_id, file_link=result.get("webViewLink") or file_link(file_id))

    async def upload_json(self, folder_id: str, file_name: str, record: Dict[str, Any]) -> FileRef:
        payload = json.dumps(record, indent=2).encode("utf-8")
        return await self.upload_file(folder_id, file_name, "application/json", payload)

    async def list_submission_folders(self) -> List[Dict[str, Any]]:
        """Newest-first folders carrying our app tag. Capped at one page of 100."""
        tag = settings.DRIVE_APP_TAG.replace("\\", "\\\\").replace("'", "\\'")
        query = (
            f"mimeType='{FOLDER_MIME_TYPE}' and "
            f"appProperties has {{ key='createdBy' and value='{tag}' }} and trashed=false"
        )
        data = await self._execute(
            "files.list.submissions",
            lambda files: files.list(
                q=query,
                spaces="drive",
                fields="files(id, name, webViewLink, createdTime, appProperties)",
                orderBy="createdTime desc",
                pageSize=LIST_PAGE_SIZE,
            ),
        )
        return data.get("files") or []
