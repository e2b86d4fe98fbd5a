"""
Validation of image references: HTTPS URLs or base64 data URIs
"""
import base64
import binascii
from urllib.parse import urlparse

from services.exceptions import ValidationError

MAX_URL_LENGTH = 4096
COVER_IMAGE_MAX_BYTES = 500 * 1024
PHOTO_MAX_BYTES = 5 * 1024 * 1024

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
}


def sanitize_image(raw: str, field: str, max_bytes: int, size_label: str) -> str:
    """
    Returns the trimmed value or raises ValidationError.

    Data URIs must carry an allowed image MIME type and valid base64 whose
    estimated decoded size (len * 3 / 4) fits max_bytes. Anything else must be
    an https URL with a host, at most MAX_URL_LENGTH characters.
    """
    value = (raw or "").strip()
    if not value:
        return ""

    if value.startswith("data:"):
        header, sep, payload = value.partition(",")
        if not sep:
            raise ValidationError(f"{field} data URI is invalid")

        mime_type = header[len("data:"):]
        if mime_type.endswith(";base64"):
            mime_type = mime_type[:-len(";base64")]
        if mime_type.lower() not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"{field} must be a valid image type (JPEG, PNG, GIF, WebP, or SVG)")

        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(f"{field} must contain valid base64 image data")

        if len(payload) * 3 // 4 > max_bytes:
            raise ValidationError(f"{field} must be smaller than {size_label}")
        return value

    if len(value) > MAX_URL_LENGTH:
        raise ValidationError(f"{field} must be shorter than {MAX_URL_LENGTH} characters")

    parsed = urlparse(value)
    if parsed.scheme != "https":
        raise ValidationError(f"{field} URL must use HTTPS")
    if not parsed.hostname:
        raise ValidationError(f"{field} URL must have a valid host")
    return value


def sanitize_cover_image(raw: str) -> str:
    return sanitize_image(raw, "coverImage", COVER_IMAGE_MAX_BYTES, "500KB")


def sanitize_photo_url(raw: str) -> str:
    return sanitize_image(raw, "photoUrl", PHOTO_MAX_BYTES, "5MB")
