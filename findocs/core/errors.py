from typing import Dict, List, Optional


class FinDocsError(Exception):
    """Base class for errors rendered as ``{"success": false, ...}`` responses.

    ``message`` is always safe to show to the client; provider payloads and
    other internals belong in the server log only.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FinDocsError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field_errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class SecurityRejectionError(FinDocsError):
    """File content does not match its declared type."""

    status_code = 400
    default_message = "Invalid file content"


class AuthenticationError(FinDocsError):
    status_code = 401
    default_message = "Invalid or expired token"


class SessionExpiredError(AuthenticationError):
    default_message = "Session expired. Please login again."


class OAuthExchangeError(FinDocsError):
    status_code = 400
    default_message = "Failed to exchange authorization code"


class UnsupportedOperationError(FinDocsError):
    status_code = 400
    default_message = "Operation not supported by the current storage provider"


class ProviderError(FinDocsError):
    status_code = 502
    default_message = "Storage provider request failed"
    retryable = False


class ProviderAuthError(ProviderError):
    status_code = 401
    default_message = "Storage provider rejected the credentials. Please login again."

    def __init__(self, message: Optional[str] = None, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class ProviderQuotaError(ProviderError):
    status_code = 429
    default_message = "Storage provider limit reached. Please try again later."
    retryable = True

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ProviderIOError(ProviderError):
    status_code = 502
    default_message = "Storage provider request failed"


class SubmissionIncompleteError(FinDocsError):
    """Raised after the folder exists but not every step finished.

    Nothing is rolled back: the folder keeps whatever was uploaded, and the
    caller gets the submission id, folder link and uploaded files.
    """

    status_code = 502
    default_message = "Submission was only partially stored"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        submission_id: str,
        folder_link: str,
        uploaded_files: List[str],
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.submission_id = submission_id
        self.folder_link = folder_link
        self.uploaded_files = list(uploaded_files)
        self.cause = cause
        if status_code is not None:
            self.status_code = status_code
