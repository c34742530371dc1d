import pytest

from findocs.core.config import settings
from findocs.core.errors import ProviderIOError, UnsupportedOperationError
from findocs.storage import GoogleDriveProvider, LocalStorageProvider, get_storage_provider
from tests.fakes import PDF_BYTES


def test_provider_selection_follows_access_token(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path))

    assert isinstance(get_storage_provider("ya29.token"), GoogleDriveProvider)
    assert isinstance(get_storage_provider(None), LocalStorageProvider)
    assert isinstance(get_storage_provider(""), LocalStorageProvider)


def test_drive_requires_token():
    with pytest.raises(ValueError):
        GoogleDriveProvider("")


@pytest.mark.asyncio
async def test_local_provider_writes_files(tmp_path):
    provider = LocalStorageProvider(str(tmp_path))

    folder = await provider.create_folder("John_Doe_MH12AB1234_20260211_A1B2C3D4")
    stored = await provider.upload_file(folder.folder_id, "PAN.pdf", "application/pdf", PDF_BYTES)

    assert (tmp_path / "John_Doe_MH12AB1234_20260211_A1B2C3D4" / "PAN.pdf").read_bytes() == PDF_BYTES
    assert folder.folder_link.startswith("file://")
    assert stored.file_link.endswith("PAN.pdf")
    assert provider.supports_metadata is False


@pytest.mark.asyncio
async def test_local_provider_has_no_history_or_records(tmp_path):
    provider = LocalStorageProvider(str(tmp_path))

    with pytest.raises(UnsupportedOperationError) as exc_info:
        await provider.list_submission_folders()
    assert exc_info.value.message == "Submission history only available with Google Drive storage"

    with pytest.raises(UnsupportedOperationError):
        await provider.upload_json(str(tmp_path), "submission.json", {})


@pytest.mark.asyncio
async def test_local_provider_write_failure_is_provider_io(tmp_path):
    provider = LocalStorageProvider(str(tmp_path))

    with pytest.raises(ProviderIOError):
        await provider.upload_file(str(tmp_path / "missing-folder"), "PAN.pdf", "application/pdf", PDF_BYTES)
