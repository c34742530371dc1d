from findocs.core.config import Settings, settings
from findocs.core.errors import (
    AuthenticationError,
    FinDocsError,
    ProviderAuthError,
    ProviderError,
    ProviderIOError,
    ProviderQuotaError,
    SecurityRejectionError,
    SessionExpiredError,
    SubmissionIncompleteError,
    UnsupportedOperationError,
    ValidationError,
)
