import base64

import pytest

from services.exceptions import ValidationError
from services.images import sanitize_cover_image, sanitize_photo_url

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


def data_uri(mime, payload: bytes):
    return f"data:{mime};base64,{base64.b64encode(payload).decode()}"


def test_empty_cover_is_allowed():
    assert sanitize_cover_image("   ") == ""


def test_https_url_is_kept():
    assert sanitize_cover_image(" https://covers.example.com/a.jpg ") == "https://covers.example.com/a.jpg"


def test_html_data_uri_is_rejected():
    with pytest.raises(ValidationError, match="valid image type"):
        sanitize_cover_image(data_uri("text/html", b"<script>alert(1)</script>"))


def test_oversized_png_is_rejected():
    oversized = data_uri("image/png", PNG_HEADER + b"\x00" * (600 * 1024))
    with pytest.raises(ValidationError, match="smaller than 500KB"):
        sanitize_cover_image(oversized)


def test_small_png_is_accepted():
    small = data_uri("image/png", PNG_HEADER + b"\x00" * 128)
    assert sanitize_cover_image(small) == small


def test_photo_allows_larger_images():
    photo = data_uri("image/jpeg", b"\xff\xd8" + b"\x00" * (600 * 1024))
    assert sanitize_photo_url(photo) == photo


@pytest.mark.parametrize("value, message", [
    ("data:image/png;base64", "coverImage data URI is invalid"),
    ("data:image/png;base64,@@@@", "coverImage must contain valid base64 image data"),
    ("http://covers.example.com/a.jpg", "coverImage URL must use HTTPS"),
    ("https:///a.jpg", "coverImage URL must have a valid host"),
    ("https://example.com/" + "a" * 4096, "coverImage must be shorter than 4096 characters"),
])
def test_invalid_cover_values(value, message):
    with pytest.raises(ValidationError) as excinfo:
        sanitize_cover_image(value)
    assert excinfo.value.message == message
