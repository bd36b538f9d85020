API_VERSION_HEADER = "X-GeoSpy-Version"
REQUEST_ID_HEADER = "X-Request-ID"

# Submissions carrying the same session id replace each other
SESSION_HEADER = "X-Session-ID"

# Upload limits
MAX_UPLOAD_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
MAX_PREFERENCE_LENGTH = 200

IMAGE_CONTENT_TYPES = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/tiff",
    "image/webp",
    "image/heic",
    "image/heif",
    "application/octet-stream",  # Some HEIC files are sent as this
]

HEIC_HEIF_EXTENSIONS = (".heic", ".heif")
