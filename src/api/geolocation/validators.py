from fastapi import UploadFile, status

from src.api.core.constants import HEIC_HEIF_EXTENSIONS, IMAGE_CONTENT_TYPES
from src.api.core.exceptions.base import GeoSpyException
from src.api.core.messages import MessageCode


async def validate_image_upload(file: UploadFile, max_size_bytes: int) -> bytes:
    """Validate uploaded image content type and size, return bytes."""
    content = await file.read()

    # HEIC/HEIF is accepted by extension when the browser sends no usable type
    if not file.content_type or (
        not file.content_type.startswith("image/")
        and file.content_type not in IMAGE_CONTENT_TYPES
    ):
        if not (file.filename and file.filename.lower().endswith(HEIC_HEIF_EXTENSIONS)):
            raise GeoSpyException(
                MessageCode.INVALID_FILE_TYPE,
                status.HTTP_400_BAD_REQUEST,
                details={"content_type": file.content_type},
            )

    if len(content) > max_size_bytes:
        raise GeoSpyException(
            MessageCode.FILE_TOO_LARGE,
            status.HTTP_400_BAD_REQUEST,
            details={"max_size_bytes": max_size_bytes},
        )

    return content


def normalize_preference(preference: str | None) -> str | None:
    """Blank preferences are treated as absent."""
    if preference is None:
        return None
    preference = preference.strip()
    return preference or None
