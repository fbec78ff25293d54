import base64
import re
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError

SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

# roughly 4.5MB in base64
MAX_PROMPT_LENGTH = 6_464_471
MAX_IMAGE_BYTES = int(4.5 * 1024 * 1024)

# The payload may not contain a line terminator (\n, \r, U+2028, U+2029).
_DATA_URI_RE = re.compile(r"data:([A-Za-z\-+/]+);base64,([^\n\r\u2028\u2029]+)")


@dataclass(frozen=True)
class DecodedImage:
    """An image lifted out of a data-URI. ``data`` stays base64 text."""

    mime_type: str
    data: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


def utf16_length(value: str) -> int:
    """Length of *value* in UTF-16 code units, as a browser counts it."""
    return len(value.encode("utf-16-le", "surrogatepass")) // 2


def is_supported_image_type(mime_type: str | None) -> bool:
    return mime_type in SUPPORTED_IMAGE_TYPES


def decode_data_uri(value: str) -> DecodedImage | None:
    """Split ``data:<mime>;base64,<payload>`` into its parts.

    Returns *None* when the whole string does not follow that shape.  The
    payload itself is not base64-validated here; the model provider rejects
    garbage on its own.
    """
    match = _DATA_URI_RE.fullmatch(value)
    if not match:
        return None
    mime_type, data = match.groups()
    if not mime_type or not data:
        return None
    return DecodedImage(mime_type=mime_type, data=data)


def encode_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


def sniff_mime_type(data: bytes) -> str:
    """Return the MIME type Pillow recognises in *data*.

    Falls back to ``application/octet-stream`` for anything Pillow cannot
    open, which the allow-list then rejects.
    """
    try:
        with Image.open(BytesIO(data)) as image:
            fmt = image.format
    except (UnidentifiedImageError, OSError):
        return "application/octet-stream"
    return Image.MIME.get(fmt or "", "application/octet-stream")
