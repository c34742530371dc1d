from findocs.schemas.user_schemas import (
    AuthCheckResponse,
    CredentialEnvelope,
    FreshCredential,
    GoogleLoginRequest,
    LoginResponse,
    SessionUser,
)
from findocs.schemas.submission_schema import (
    DOCUMENT_TYPES,
    DocumentUpload,
    FileRef,
    FolderRef,
    SubmissionForm,
    SubmissionMetadata,
    SubmissionResult,
    SubmissionSummary,
    parse_submission_form,
)
