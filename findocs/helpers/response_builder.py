from typing import Any, Dict, List, Optional

from findocs.core.errors import FinDocsError, SubmissionIncompleteError, ValidationError
from findocs.schemas.submission_schema import SubmissionResult, SubmissionSummary


def build_submission_response(result: SubmissionResult) -> Dict[str, Any]:
    return {"success": True, "data": result.model_dump(by_alias=True)}


def build_history_response(summaries: List[SubmissionSummary]) -> Dict[str, Any]:
    return {"success": True, "data": [s.model_dump(by_alias=True) for s in summaries]}


def build_error_response(exc: FinDocsError, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message or exc.message}

    if isinstance(exc, ValidationError) and exc.field_errors:
        body["errors"] = exc.field_errors

    # Partial progress stays visible to the caller
    if isinstance(exc, SubmissionIncompleteError):
        body["data"] = {
            "submissionId": exc.submission_id,
            "folderLink": exc.folder_link,
            "uploadedFiles": exc.uploaded_files,
        }
    return body
