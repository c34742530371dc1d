from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Any, Dict, Optional
import logging

from findocs.core.auth_dependencies import get_fresh_credential
from findocs.helpers.response_builder import build_history_response, build_submission_response
from findocs.schemas.user_schemas import FreshCredential
from findocs.services.submission_service import collect_documents, submission_service
from findocs.storage import get_storage_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/submit", tags=["Submissions"])


# Creates a submission folder in the user's storage with the provided documents
@router.post("")
async def create_submission(
    customerName: Optional[str] = Form(None),
    mobileNumber: Optional[str] = Form(None),
    vehicleNumber: Optional[str] = Form(None),
    bankName: Optional[str] = Form(None),
    aadhaar: Optional[UploadFile] = File(None),
    pan: Optional[UploadFile] = File(None),
    rc: Optional[UploadFile] = File(None),
    invoice: Optional[UploadFile] = File(None),
    insurance: Optional[UploadFile] = File(None),
    credential: FreshCredential = Depends(get_fresh_credential),
) -> Dict[str, Any]:
    form_data = {
        "customerName": customerName,
        "mobileNumber": mobileNumber,
        "vehicleNumber": vehicleNumber,
        "bankName": bankName,
    }
    documents = await collect_documents({
        "aadhaar": aadhaar,
        "pan": pan,
        "rc": rc,
        "invoice": invoice,
        "insurance": insurance,
    })

    provider = get_storage_provider(credential.access_token)
    result = await submission_service.create_submission(provider, form_data, documents, credential.email)
    return build_submission_response(result)


# Lists the user's previous submissions from their tagged Drive folders
@router.get("/history")
async def submission_history(credential: FreshCredential = Depends(get_fresh_credential)) -> Dict[str, Any]:
    provider = get_storage_provider(credential.access_token)
    summaries = await submission_service.list_submissions(provider)
    logger.info(f"Listed {len(summaries)} submissions for {credential.email}")
    return build_history_response(summaries)
