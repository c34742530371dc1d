import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from fastapi import UploadFile

from findocs.core.config import settings
from findocs.core.errors import (
    ProviderError,
    SecurityRejectionError,
    SubmissionIncompleteError,
    ValidationError,
)
from findocs.schemas.submission_schema import (
    DOCUMENT_TYPES,
    DocumentUpload,
    SubmissionMetadata,
    SubmissionResult,
    SubmissionSummary,
    parse_submission_form,
)
from findocs.storage.base import StorageProvider
from findocs.utils.file_utils import (
    generate_document_filename,
    is_valid_mime_type,
    validate_file_content,
    validate_file_size,
)
from findocs.utils.folder_naming import build_folder_name, extract_submission_id, generate_submission_id

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("findocs.security")

METADATA_FILENAME = "submission.json"


# Failure is not a state value; it surfaces as the raised error
class SubmissionState(str, Enum):
    VALIDATING = "validating"
    FOLDER_CREATED = "folder_created"
    UPLOADING_DOCUMENTS = "uploading_documents"
    METADATA_WRITTEN = "metadata_written"
    DONE = "done"


# Reads an optional multipart file; at most one byte past the per-file limit is kept
async def read_upload(doc_type: str, upload: Optional[UploadFile]) -> Optional[DocumentUpload]:
    if upload is None:
        return None
    await upload.seek(0)
    content = await upload.read(settings.MAX_FILE_SIZE + 1)
    if not upload.filename and not content:
        return None
    return DocumentUpload(
        doc_type=doc_type,
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=content,
    )


async def collect_documents(uploads: Dict[str, Optional[UploadFile]]) -> List[DocumentUpload]:
    documents = []
    for doc_type in DOCUMENT_TYPES:
        document = await read_upload(doc_type, uploads.get(doc_type))
        if document is not None:
            documents.append(document)
    return documents


class SubmissionService:
    """Runs one submission from validation to metadata inside a single request.

    There is no persisted checkpoint. A failure after the folder exists leaves
    the folder with whatever was uploaded; the caller is told what made it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock

    # Validates per-document type, size and signature, then the aggregate size
    def validate_documents(self, documents: List[DocumentUpload], user_email: Optional[str] = None) -> None:
        total_size = 0
        for doc in documents:
            total_size += doc.size

            if not is_valid_mime_type(doc.content_type):
                message = f"Invalid file type for {doc.doc_type}: {doc.content_type}"
                raise ValidationError(message, field_errors={doc.doc_type: [message]})

            if not validate_file_size(doc.size):
                limit_mb = settings.MAX_FILE_SIZE // (1024 * 1024)
                message = f"File too large for {doc.doc_type}. Maximum size is {limit_mb}MB."
                raise ValidationError(message, field_errors={doc.doc_type: [message]})

            if not validate_file_content(doc.content, doc.content_type):
                security_logger.warning(
                    f"Suspicious file upload attempt for {doc.doc_type} from user {user_email}: "
                    f"declared {doc.content_type}, leading bytes {doc.content[:8].hex()}"
                )
                raise SecurityRejectionError(f"Invalid file content for {doc.doc_type}.")

        if total_size > settings.MAX_TOTAL_SIZE:
            limit_mb = settings.MAX_TOTAL_SIZE // (1024 * 1024)
            raise ValidationError(f"Total upload size exceeds {limit_mb}MB limit.")

    async def create_submission(
        self,
        provider: StorageProvider,
        form_data: Dict[str, Optional[str]],
        documents: List[DocumentUpload],
        user_email: Optional[str],
        deadline_seconds: Optional[float] = None,
    ) -> SubmissionResult:
        state = SubmissionState.VALIDATING
        try:
            form = parse_submission_form(form_data)
            by_type = {doc.doc_type: doc for doc in documents}
            ordered = [by_type[t] for t in DOCUMENT_TYPES if t in by_type]
            self.validate_documents(ordered, user_email)
        except ValidationError as e:
            logger.info(f"Submission rejected for {user_email}: {e.message} {e.field_errors or ''}")
            raise

        started = self._clock()
        deadline = started + (deadline_seconds if deadline_seconds is not None else settings.SUBMISSION_DEADLINE_SECONDS)

        submission_id = generate_submission_id()
        timestamp = datetime.now(timezone.utc)
        folder_name = build_folder_name(form.customer_name, form.vehicle_number, timestamp, submission_id)

        # Nothing exists yet, so a failure here needs no cleanup
        folder = await provider.create_folder(folder_name)
        state = SubmissionState.FOLDER_CREATED
        logger.debug(f"Submission {submission_id}: {state.value} ({folder.folder_id})")

        uploaded_files: List[str] = []
        state = SubmissionState.UPLOADING_DOCUMENTS
        try:
            for doc in ordered:
                if self._clock() > deadline:
                    skipped = [d.doc_type for d in ordered[len(uploaded_files):]]
                    logger.warning(f"Submission {submission_id} hit its deadline; skipped {skipped}")
                    raise SubmissionIncompleteError(
                        "Submission timed out before all documents were uploaded",
                        submission_id=submission_id,
                        folder_link=folder.folder_link,
                        uploaded_files=uploaded_files,
                        status_code=504,
                    )
                file_name = generate_document_filename(doc.doc_type, doc.content_type)
                await provider.upload_file(folder.folder_id, file_name, doc.content_type, doc.content)
                uploaded_files.append(file_name)

            if provider.supports_metadata:
                metadata = SubmissionMetadata(
                    submission_id=submission_id,
                    customer_name=form.customer_name,
                    mobile_number=form.mobile_number,
                    vehicle_number=form.vehicle_number,
                    bank_name=form.bank_name,
                    timestamp=timestamp.isoformat(),
                    uploaded_files=uploaded_files,
                    documents_uploaded=[doc.doc_type for doc in ordered],
                    user_email=user_email,
                )
                await provider.upload_json(folder.folder_id, METADATA_FILENAME, metadata.model_dump(by_alias=True))
                state = SubmissionState.METADATA_WRITTEN
        except ProviderError as e:
            logger.error(
                f"Submission {submission_id} failed in state {state.value} after "
                f"{len(uploaded_files)} uploads: {type(e).__name__}"
            )
            raise SubmissionIncompleteError(
                e.message,
                submission_id=submission_id,
                folder_link=folder.folder_link,
                uploaded_files=uploaded_files,
                status_code=e.status_code,
                cause=e,
            ) from e
        except asyncio.CancelledError:
            logger.warning(
                f"Submission {submission_id} cancelled in state {state.value}; "
                f"folder keeps {uploaded_files}"
            )
            raise

        state = SubmissionState.DONE
        logger.info(
            f"Submission {submission_id} {state.value} for user {user_email} "
            f"with {len(uploaded_files)} documents via {provider.name}"
        )
        return SubmissionResult(
            submission_id=submission_id,
            folder_link=folder.folder_link,
            uploaded_files=uploaded_files,
            customer_name=form.customer_name,
            mobile_number=form.mobile_number,
            vehicle_number=form.vehicle_number,
            bank_name=form.bank_name,
            timestamp=timestamp.isoformat(),
        )

    # Derives the history from tagged folders; re-queried on every call
    async def list_submissions(self, provider: StorageProvider) -> List[SubmissionSummary]:
        folders = await provider.list_submission_folders()
        summaries = []
        for folder in folders:
            folder_id = folder.get("id") or ""
            folder_name = folder.get("name") or ""
            summaries.append(
                SubmissionSummary(
                    submission_id=extract_submission_id(folder_name, folder_id),
                    folder_name=folder_name,
                    folder_id=folder_id,
                    folder_link=folder.get("webViewLink") or f"https://drive.google.com/drive/folders/{folder_id}",
                    created_time=folder.get("createdTime") or "",
                )
            )
        return summaries


submission_service = SubmissionService()
