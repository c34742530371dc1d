import io
import logging

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from findocs.core.config import settings
from findocs.core.errors import (
    ProviderAuthError,
    ProviderIOError,
    ProviderQuotaError,
    SecurityRejectionError,
    SubmissionIncompleteError,
    UnsupportedOperationError,
    ValidationError,
)
from findocs.services.submission_service import METADATA_FILENAME, SubmissionService, collect_documents
from findocs.storage.local_provider import LocalStorageProvider
from tests.fakes import (
    JPEG_BYTES,
    PDF_BYTES,
    PNG_BYTES,
    VALID_FORM,
    FakeStorageProvider,
    make_document,
)

USER = "john@example.com"


class SteppingClock:
    def __init__(self, *readings):
        self.readings = list(readings)

    def __call__(self):
        if len(self.readings) > 1:
            return self.readings.pop(0)
        return self.readings[0]


def upload(filename, content, content_type):
    return UploadFile(file=io.BytesIO(content), filename=filename, headers=Headers({"content-type": content_type}))


@pytest.mark.asyncio
async def test_submission_without_documents_creates_folder_and_record():
    provider = FakeStorageProvider()

    result = await SubmissionService().create_submission(provider, VALID_FORM, [], USER)

    assert len(provider.created_folders) == 1
    assert provider.created_folders[0].startswith("John_Doe_MH12AB1234_")
    assert provider.created_folders[0].endswith(f"_{result.submission_id}")
    assert provider.uploads == []
    assert len(provider.records) == 1
    record = provider.records[0]
    assert record["file_name"] == METADATA_FILENAME
    assert record["record"]["submissionId"] == result.submission_id
    assert record["record"]["vehicleNumber"] == "MH12AB1234"
    assert record["record"]["userEmail"] == USER
    assert result.uploaded_files == []
    assert result.folder_link == "https://drive.google.com/drive/folders/folder-1"


@pytest.mark.asyncio
async def test_documents_upload_in_fixed_order_with_canonical_names():
    provider = FakeStorageProvider()
    documents = [
        make_document("insurance", PDF_BYTES, "application/pdf"),
        make_document("aadhaar", JPEG_BYTES, "image/jpeg"),
        make_document("rc", PNG_BYTES, "image/png"),
    ]

    result = await SubmissionService().create_submission(provider, VALID_FORM, documents, USER)

    assert provider.uploaded_names == ["Aadhaar.jpg", "RC.png", "Insurance.pdf"]
    assert result.uploaded_files == ["Aadhaar.jpg", "RC.png", "Insurance.pdf"]
    assert provider.uploads[0]["data"] == JPEG_BYTES
    assert provider.records[0]["record"]["documentsUploaded"] == ["aadhaar", "rc", "insurance"]


@pytest.mark.asyncio
async def test_signature_mismatch_is_rejected_before_any_folder(caplog):
    provider = FakeStorageProvider()
    documents = [make_document("aadhaar", PNG_BYTES, "image/png"), make_document("pan", PDF_BYTES, "image/png")]

    with caplog.at_level(logging.WARNING, logger="findocs.security"):
        with pytest.raises(SecurityRejectionError) as exc_info:
            await SubmissionService().create_submission(provider, VALID_FORM, documents, USER)

    assert exc_info.value.message == "Invalid file content for pan."
    assert exc_info.value.status_code == 400
    assert provider.created_folders == []
    assert provider.uploads == []
    security_records = [r for r in caplog.records if r.name == "findocs.security"]
    assert len(security_records) == 1
    assert security_records[0].levelno == logging.WARNING
    assert USER in security_records[0].getMessage()


@pytest.mark.asyncio
async def test_unsupported_type_is_a_validation_error():
    provider = FakeStorageProvider()

    with pytest.raises(ValidationError) as exc_info:
        await SubmissionService().create_submission(
            provider, VALID_FORM, [make_document("rc", b"GIF89a" + b"\x00" * 10, "image/gif")], USER
        )

    assert "rc" in exc_info.value.field_errors
    assert provider.created_folders == []


@pytest.mark.asyncio
async def test_oversized_file_is_rejected():
    provider = FakeStorageProvider()
    too_big = PDF_BYTES + b"0" * settings.MAX_FILE_SIZE

    with pytest.raises(ValidationError) as exc_info:
        await SubmissionService().create_submission(
            provider, VALID_FORM, [make_document("invoice", too_big, "application/pdf")], USER
        )

    assert exc_info.value.message == "File too large for invoice. Maximum size is 5MB."
    assert provider.created_folders == []


@pytest.mark.asyncio
async def test_total_size_is_checked_after_each_file_passes(monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 1024 * 1024)
    monkeypatch.setattr(settings, "MAX_TOTAL_SIZE", 4 * 1024 * 1024)
    provider = FakeStorageProvider()
    just_under = PDF_BYTES + b"0" * (1024 * 1024 - len(PDF_BYTES) - 1)
    documents = [make_document(t, just_under, "application/pdf") for t in ("aadhaar", "pan", "rc", "invoice", "insurance")]

    with pytest.raises(ValidationError) as exc_info:
        await SubmissionService().create_submission(provider, VALID_FORM, documents, USER)

    assert exc_info.value.message == "Total upload size exceeds 4MB limit."
    assert provider.created_folders == []


@pytest.mark.asyncio
async def test_invalid_form_creates_nothing():
    provider = FakeStorageProvider()

    with pytest.raises(ValidationError) as exc_info:
        await SubmissionService().create_submission(provider, {**VALID_FORM, "mobileNumber": "12345"}, [], USER)

    assert "mobileNumber" in exc_info.value.field_errors
    assert provider.created_folders == []


@pytest.mark.asyncio
async def test_failure_mid_upload_reports_partial_progress():
    provider = FakeStorageProvider(fail_on_file="RC.png", upload_error=ProviderIOError())
    documents = [
        make_document("aadhaar", JPEG_BYTES, "image/jpeg"),
        make_document("pan", PDF_BYTES, "application/pdf"),
        make_document("rc", PNG_BYTES, "image/png"),
        make_document("invoice", PDF_BYTES, "application/pdf"),
    ]

    with pytest.raises(SubmissionIncompleteError) as exc_info:
        await SubmissionService().create_submission(provider, VALID_FORM, documents, USER)

    error = exc_info.value
    assert error.uploaded_files == ["Aadhaar.jpg", "PAN.pdf"]
    assert error.folder_link == "https://drive.google.com/drive/folders/folder-1"
    assert provider.created_folders[0].endswith(f"_{error.submission_id}")
    assert error.status_code == 502
    assert isinstance(error.cause, ProviderIOError)
    assert provider.records == []


@pytest.mark.asyncio
async def test_quota_failure_keeps_quota_status():
    provider = FakeStorageProvider(fail_on_file="PAN.pdf", upload_error=ProviderQuotaError(retry_after=30))

    with pytest.raises(SubmissionIncompleteError) as exc_info:
        await SubmissionService().create_submission(
            provider, VALID_FORM, [make_document("pan", PDF_BYTES, "application/pdf")], USER
        )

    assert exc_info.value.status_code == 429
    assert exc_info.value.cause.retry_after == 30


@pytest.mark.asyncio
async def test_folder_creation_failure_propagates_unwrapped():
    provider = FakeStorageProvider(folder_error=ProviderAuthError())

    with pytest.raises(ProviderAuthError):
        await SubmissionService().create_submission(provider, VALID_FORM, [make_document("pan", PDF_BYTES, "application/pdf")], USER)
    assert provider.uploads == []


@pytest.mark.asyncio
async def test_deadline_stops_between_documents():
    provider = FakeStorageProvider()
    # start, check before aadhaar, check before pan
    clock = SteppingClock(0.0, 1.0, 500.0)
    documents = [make_document("aadhaar", JPEG_BYTES, "image/jpeg"), make_document("pan", PDF_BYTES, "application/pdf")]

    with pytest.raises(SubmissionIncompleteError) as exc_info:
        await SubmissionService(clock=clock).create_submission(provider, VALID_FORM, documents, USER, deadline_seconds=120)

    assert exc_info.value.status_code == 504
    assert exc_info.value.uploaded_files == ["Aadhaar.jpg"]
    assert provider.uploaded_names == ["Aadhaar.jpg"]


@pytest.mark.asyncio
async def test_local_storage_skips_metadata(tmp_path):
    provider = LocalStorageProvider(str(tmp_path))

    result = await SubmissionService().create_submission(
        provider, VALID_FORM, [make_document("pan", PDF_BYTES, "application/pdf")], USER
    )

    folders = list(tmp_path.iterdir())
    assert len(folders) == 1
    assert [p.name for p in folders[0].iterdir()] == ["PAN.pdf"]
    assert result.uploaded_files == ["PAN.pdf"]


@pytest.mark.asyncio
async def test_history_recovers_ids_from_folder_names():
    provider = FakeStorageProvider(folders=[
        {"id": "fld2", "name": "Jane_KA01AB0001_20260212_BBBB2222", "webViewLink": "https://drive.google.com/drive/folders/fld2", "createdTime": "2026-02-12T10:00:00.000Z"},
        {"id": "fld1", "name": "Renamed folder"},
    ])

    summaries = await SubmissionService().list_submissions(provider)

    assert [s.submission_id for s in summaries] == ["BBBB2222", "fld1"]
    assert summaries[0].created_time == "2026-02-12T10:00:00.000Z"
    assert summaries[1].folder_link == "https://drive.google.com/drive/folders/fld1"


@pytest.mark.asyncio
async def test_history_without_folders_is_empty():
    assert await SubmissionService().list_submissions(FakeStorageProvider(folders=[])) == []


@pytest.mark.asyncio
async def test_history_is_unsupported_on_local_storage(tmp_path):
    with pytest.raises(UnsupportedOperationError):
        await SubmissionService().list_submissions(LocalStorageProvider(str(tmp_path)))


@pytest.mark.asyncio
async def test_collect_documents_skips_absent_fields_and_keeps_order():
    uploads = {
        "invoice": upload("bill.pdf", PDF_BYTES, "application/pdf"),
        "aadhaar": upload("front.jpg", JPEG_BYTES, "image/jpeg"),
        "pan": None,
        "rc": upload("", b"", "application/octet-stream"),
    }

    documents = await collect_documents(uploads)

    assert [d.doc_type for d in documents] == ["aadhaar", "invoice"]
    assert documents[0].content == JPEG_BYTES
    assert documents[1].content_type == "application/pdf"
