"""Image payload inspection.

The browser sends the photo as a data URL (``data:image/jpeg;base64,...``).
Bare base64 and http(s) URLs are passed through to the gateway as well.
Uses stdlib base64/binascii only.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from recyclebud_scan.exceptions import InvalidInputError

DATA_URL_PREFIX = "data:"
REMOTE_URL_PREFIXES: tuple[str, ...] = ("http://", "https://")


@dataclass
class ImagePayload:
    """What we know about an inbound image without decoding it twice."""

    kind: str  # "data_url", "remote_url", "base64"
    mime_type: str
    size: int  # decoded bytes, 0 for remote URLs

    def describe(self) -> str:
        if self.kind == "remote_url":
            return f"remote image ({self.mime_type})"
        return f"{self.mime_type}, {self.size} bytes"


def inspect_image(image: object, max_bytes: int) -> ImagePayload:
    """Validate an inbound image payload and describe it.

    Raises:
        InvalidInputError: If the payload is missing, empty, not an image,
            not decodable, or larger than ``max_bytes``.
    """
    if not isinstance(image, str) or not image.strip():
        raise InvalidInputError("No image provided")

    value = image.strip()

    if value.lower().startswith(REMOTE_URL_PREFIXES):
        return ImagePayload(kind="remote_url", mime_type=_guess_from_url(value), size=0)

    if value.lower().startswith(DATA_URL_PREFIX):
        header, sep, body = value.partition(",")
        if not sep:
            raise InvalidInputError("Malformed image data URL")
        media = header[len(DATA_URL_PREFIX):]
        declared_mime = media.split(";", 1)[0].strip().lower()
        if not declared_mime.startswith("image/"):
            raise InvalidInputError("Uploaded file is not an image")
        if ";base64" not in media.lower():
            raise InvalidInputError("Image data URL must be base64 encoded")
        data = _decode(body)
        kind = "data_url"
    else:
        data = _decode(value)
        declared_mime = ""
        kind = "base64"

    if not data:
        raise InvalidInputError("No image provided")
    if len(data) > max_bytes:
        raise InvalidInputError(
            f"Image is too large ({len(data)} bytes, limit {max_bytes} bytes)"
        )

    sniffed = sniff_image_type(data)
    if kind == "base64" and sniffed == "application/octet-stream":
        raise InvalidInputError("Uploaded file is not an image")

    return ImagePayload(kind=kind, mime_type=declared_mime or sniffed, size=len(data))


def sniff_image_type(data: bytes) -> str:
    """Basic magic byte detection for common image types."""
    if len(data) < 4:
        return "application/octet-stream"

    # JPEG
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    # PNG
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    # GIF
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    # WEBP
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    # BMP
    if data[:2] == b"BM":
        return "image/bmp"
    # HEIC / AVIF (ISO BMFF)
    if data[4:8] == b"ftyp":
        brand = data[8:12]
        if brand in (b"heic", b"heix", b"mif1", b"msf1"):
            return "image/heic"
        if brand in (b"avif", b"avis"):
            return "image/avif"

    return "application/octet-stream"


def _decode(body: str) -> bytes:
    try:
        return base64.b64decode("".join(body.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("Image payload is not valid base64") from e


def _guess_from_url(url: str) -> str:
    path = url.split("?", 1)[0].lower()
    for ext, mime in (
        (".jpg", "image/jpeg"),
        (".jpeg", "image/jpeg"),
        (".png", "image/png"),
        (".webp", "image/webp"),
        (".gif", "image/gif"),
    ):
        if path.endswith(ext):
            return mime
    return "image/*"
