"""Upload intake checks, run before anything is stored or sent to the model."""

from typing import Iterable, Optional

from cv_intake_ai.config import ALLOWED_MIME_TYPES, MAX_UPLOAD_BYTES
from cv_intake_ai.cv_pipeline.errors import (
    EmptyFileError,
    MissingFileError,
    TooLargeError,
    UnsupportedTypeError,
)
from cv_intake_ai.schemas.upload import UploadedFile


def validate_upload(
    upload: Optional[UploadedFile],
    allowed_mime_types: Iterable[str] = ALLOWED_MIME_TYPES,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> UploadedFile:
    """
    Validate an uploaded file and return it unchanged, or raise an IntakeError.

    Order: missing payload, empty (declared size or materialized bytes), too large
    (declared size or materialized bytes), unsupported MIME type. Emptiness is checked
    before the type so an empty upload is reported as empty whatever it claims to be.
    """
    if upload is None:
        raise MissingFileError("No file provided")

    if upload.declared_size <= 0:
        raise EmptyFileError(
            "Uploaded file is empty",
            details=f"File '{upload.filename}' was received with a size of 0 bytes.",
        )
    if len(upload.data) == 0:
        raise EmptyFileError(
            "Uploaded file is empty",
            details=(
                f"File '{upload.filename}' declared {upload.declared_size} bytes "
                "but no content could be read."
            ),
        )

    if upload.declared_size > max_bytes or len(upload.data) > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        raise TooLargeError(f"File too large. Maximum size: {max_mb:g}MB")

    allowed = tuple(allowed_mime_types)
    if upload.content_type not in allowed:
        raise UnsupportedTypeError(f"Invalid file type. Allowed types: {', '.join(allowed)}")

    return upload
