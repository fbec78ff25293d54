"""Client side of Handgrade.

Every input channel (a file path, bytes piped or pasted on stdin, the OS
clipboard) produces an :class:`ImageUpload` and goes through :func:`ingest`,
which runs the same checks as the relay before anything touches the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Tuple

import httpx
from loguru import logger
from PIL import Image, ImageGrab

from handgrade.errors import ClipboardAccessError, PayloadTooLargeError, RelayError, UnsupportedFormatError
from handgrade.images import (
    MAX_IMAGE_BYTES,
    MAX_PROMPT_LENGTH,
    encode_data_uri,
    is_supported_image_type,
    sniff_mime_type,
)
from handgrade.llm import SENTINEL


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    mime_type: str
    source: str = "file"


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

def ingest(upload: ImageUpload) -> str:
    """Validate *upload* and return it as a data-URI ready for the relay."""
    if not is_supported_image_type(upload.mime_type):
        raise UnsupportedFormatError(data={"mime_type": upload.mime_type, "source": upload.source})

    if len(upload.data) > MAX_IMAGE_BYTES:
        raise PayloadTooLargeError(data={"bytes": len(upload.data), "source": upload.source})

    data_uri = encode_data_uri(upload.data, upload.mime_type)

    # roughly 4.5MB in base64
    if len(data_uri) > MAX_PROMPT_LENGTH:
        raise PayloadTooLargeError(data={"length": len(data_uri), "source": upload.source})

    return data_uri


def from_bytes(data: bytes, source: str = "file") -> ImageUpload:
    return ImageUpload(data=data, mime_type=sniff_mime_type(data), source=source)


def from_path(path: str | Path) -> ImageUpload:
    return from_bytes(Path(path).read_bytes(), source="file")


def from_stream(fp: BinaryIO) -> ImageUpload:
    return from_bytes(fp.read(), source="paste")


def from_clipboard() -> ImageUpload:
    """Read an image (or a copied image file) from the OS clipboard.

    Any failure to reach the clipboard is reported as a single
    ``ClipboardAccessError``; a clipboard without an image is an unsupported
    format.
    """
    try:
        content = ImageGrab.grabclipboard()
    except Exception as exc:
        logger.debug(f"Clipboard read failed: {exc}")
        raise ClipboardAccessError() from exc

    if isinstance(content, Image.Image):
        buffer = BytesIO()
        content.save(buffer, format="PNG")
        return ImageUpload(data=buffer.getvalue(), mime_type="image/png", source="clipboard")

    if isinstance(content, list) and content:
        upload = from_path(content[0])
        return ImageUpload(data=upload.data, mime_type=upload.mime_type, source="clipboard")

    raise UnsupportedFormatError(data={"source": "clipboard"})


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def split_completion(completion: str) -> Tuple[str, str]:
    """Split a (possibly partial) completion into ``(description, text)``.

    Without a sentinel the whole completion is description.  Everything
    after the first sentinel is text, further sentinels included.
    """
    description, _, text = completion.partition(SENTINEL)
    return description, text


@dataclass
class DisplayState:
    completion: str = ""
    finished: bool = False
    is_loading: bool = False

    def start(self) -> None:
        self.completion = ""
        self.finished = False
        self.is_loading = True

    def feed(self, chunk: str) -> None:
        self.completion += chunk

    def finish(self) -> None:
        self.finished = True
        self.is_loading = False

    def fail(self) -> None:
        self.completion = ""
        self.finished = False
        self.is_loading = False

    @property
    def description(self) -> str:
        return split_completion(self.completion)[0]

    @property
    def text(self) -> str:
        return split_completion(self.completion)[1]

    @property
    def can_copy_both(self) -> bool:
        return self.finished and bool(self.text)

    def both(self) -> Optional[str]:
        if not self.can_copy_both:
            return None
        return "\n".join([self.description, self.text])


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class RelayClient:
    """Thin httpx wrapper around ``POST /api/completion``."""

    def __init__(self, api_url: str, transport: httpx.BaseTransport | None = None) -> None:
        self.api_url = api_url
        self._transport = transport

    def stream(self, data_uri: str) -> Iterator[str]:
        with httpx.Client(timeout=None, transport=self._transport) as client:
            with client.stream("POST", self.api_url, json={"prompt": data_uri}) as response:
                if response.status_code != 200:
                    response.read()
                    raise RelayError(response.text or response.reason_phrase, http_status=response.status_code)
                yield from response.iter_text()

    def grade(self, data_uri: str, state: DisplayState | None = None) -> DisplayState:
        """Stream a full response into *state* and return it."""
        state = state or DisplayState()
        state.start()
        try:
            for chunk in self.stream(data_uri):
                state.feed(chunk)
        except Exception:
            state.fail()
            raise
        state.finish()
        return state
