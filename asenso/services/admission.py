from typing import Optional
from asenso.config import settings
from asenso.errors import ValidationError

ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
ACCEPTED_DOC_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
) + ACCEPTED_IMAGE_TYPES

def admit_upload(filename: Optional[str], content_type: Optional[str], size: int, kind: str) -> None:
    """Reject an uploaded file before it is encoded. `kind` is "id" or "document"."""
    label = filename or "upload"
    if size > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationError(f"{label}: max file size is {limit_mb}MB.")
    if kind == "id":
        if content_type not in ACCEPTED_IMAGE_TYPES:
            raise ValidationError(f"{label}: only .jpg, .jpeg, .png and .webp formats are supported.")
    elif content_type not in ACCEPTED_DOC_TYPES:
        raise ValidationError(f"{label}: only .jpg, .jpeg, .png, .webp, .pdf, .doc, and .docx formats are supported.")
