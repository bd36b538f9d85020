"""Image decoding helpers shared by the upload path and the local engine."""

import io

import pillow_heif  # type: ignore
from PIL import Image, ImageOps, UnidentifiedImageError

# Register HEIF support for PIL
pillow_heif.register_heif_opener()

MAX_IMAGE_SIDE = 2048
JPEG_QUALITY = 90


class ImageDecodeError(ValueError):
    """Raised when uploaded bytes are not a decodable image."""


def open_image(image_data: bytes) -> Image.Image:
    """Decode bytes into an RGB image with EXIF orientation applied."""
    try:
        image = Image.open(io.BytesIO(image_data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e

    image = ImageOps.exif_transpose(image)
    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def to_jpeg_bytes(image_data: bytes, max_side: int = MAX_IMAGE_SIDE) -> bytes:
    """Re-encode any supported image (HEIC included) as a bounded-size JPEG.

    Remote engines and the reverse-search relay are all sent image/jpeg,
    so every upload is normalized once before the pipeline starts.
    """
    image = open_image(image_data)
    if max(image.size) > max_side:
        image.thumbnail((max_side, max_side))

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()
