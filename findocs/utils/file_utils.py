from findocs.core.config import settings

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "application/pdf")

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}

# Leading bytes each declared type must start with
FILE_SIGNATURES = {
    "image/jpeg": [b"\xff\xd8\xff"],
    "image/png": [b"\x89PNG"],
    "application/pdf": [b"%PDF"],
}

CANONICAL_NAMES = {
    "aadhaar": "Aadhaar",
    "pan": "PAN",
    "rc": "RC",
    "invoice": "Invoice",
    "insurance": "Insurance",
}


def get_file_extension(mime_type: str) -> str:
    return MIME_EXTENSIONS.get(mime_type, "")


def is_valid_mime_type(mime_type: str) -> bool:
    return mime_type in ALLOWED_MIME_TYPES


def validate_file_size(size: int) -> bool:
    return size <= settings.MAX_FILE_SIZE


# Checks the content's leading bytes against the declared type
def validate_file_content(content: bytes, declared_mime_type: str) -> bool:
    if len(content) < 4:
        return False
    signatures = FILE_SIGNATURES.get(declared_mime_type)
    if not signatures:
        return False
    return any(content.startswith(sig) for sig in signatures)


def generate_document_filename(doc_type: str, mime_type: str) -> str:
    return f"{CANONICAL_NAMES.get(doc_type, doc_type)}{get_file_extension(mime_type)}"
