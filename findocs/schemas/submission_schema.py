import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from findocs.core.errors import ValidationError

MOBILE_NUMBER_PATTERN = re.compile(r"^[6-9]\d{9}$")
VEHICLE_NUMBER_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{1,2}[A-Z]{0,3}[0-9]{4}$")

# Upload order is fixed; it decides the order of files in the folder and in responses
DOCUMENT_TYPES = ("aadhaar", "pan", "rc", "invoice", "insurance")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_length(value: str, label: str) -> str:
    value = value.strip()
    if len(value) < 2:
        raise ValueError(f"{label} must be at least 2 characters")
    if len(value) > 100:
        raise ValueError(f"{label} must be less than 100 characters")
    return value


class SubmissionForm(CamelModel):
    customer_name: str
    mobile_number: str
    vehicle_number: str
    bank_name: str

    @field_validator("customer_name")
    @classmethod
    def validate_customer_name(cls, v: str) -> str:
        return _check_length(v, "Customer name")

    @field_validator("bank_name")
    @classmethod
    def validate_bank_name(cls, v: str) -> str:
        return _check_length(v, "Bank name")

    @field_validator("mobile_number")
    @classmethod
    def validate_mobile_number(cls, v: str) -> str:
        if not MOBILE_NUMBER_PATTERN.match(v):
            raise ValueError("Invalid Indian mobile number (10 digits, starting with 6-9)")
        return v

    @field_validator("vehicle_number", mode="before")
    @classmethod
    def normalize_vehicle_number(cls, v):
        if isinstance(v, str):
            return re.sub(r"\s", "", v.upper())
        return v

    @field_validator("vehicle_number")
    @classmethod
    def validate_vehicle_number(cls, v: str) -> str:
        if not VEHICLE_NUMBER_PATTERN.match(v):
            raise ValueError("Invalid Indian vehicle number format (e.g., MH12AB1234)")
        return v


# Validates raw form values, collecting messages per form field name
def parse_submission_form(data: Dict[str, Optional[str]]) -> SubmissionForm:
    try:
        return SubmissionForm.model_validate({k: v for k, v in data.items() if v is not None})
    except PydanticValidationError as e:
        field_errors: Dict[str, List[str]] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err.get("loc") else "__root__"
            message = err.get("msg", "Invalid value")
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            field_errors.setdefault(field, []).append(message)
        raise ValidationError("Validation failed", field_errors=field_errors) from e


class DocumentUpload(BaseModel):
    doc_type: str
    filename: Optional[str] = None
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FolderRef(BaseModel):
    folder_id: str
    folder_link: str


class FileRef(BaseModel):
    file_id: str
    file_link: str


class SubmissionMetadata(CamelModel):
    submission_id: str
    customer_name: str
    mobile_number: str
    vehicle_number: str
    bank_name: str
    timestamp: str
    uploaded_files: List[str] = Field(default_factory=list)
    documents_uploaded: List[str] = Field(default_factory=list)
    user_email: Optional[str] = None


class SubmissionResult(CamelModel):
    submission_id: str
    folder_link: str
    uploaded_files: List[str] = Field(default_factory=list)
    customer_name: str
    mobile_number: str
    vehicle_number: str
    bank_name: str
    timestamp: str


class SubmissionSummary(CamelModel):
    submission_id: str
    folder_name: str
    folder_id: str
    folder_link: str
    created_time: str = ""
