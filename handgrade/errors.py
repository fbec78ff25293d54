from __future__ import annotations

"""Centralised error types for Handgrade.

Every error carries a machine-readable ``code`` and the HTTP status the relay
answers with.  The human-readable ``message`` is exactly what the caller sees,
so the browser page and the CLI can show it verbatim.
"""

from typing import Any, Dict, Optional


class HandgradeError(Exception):
    """Base class for all structured Handgrade exceptions."""

    code: str = "HANDGRADE_ERROR"
    http_status: int = 400

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None) -> None:  # noqa: D401 – simple init
        super().__init__(message)
        self.message = message
        self.data = data or {}

    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – utility
        return {
            "code": self.code,
            "status": self.http_status,
            "message": self.message,
            "data": self.data,
        }

    def __str__(self) -> str:  # noqa: D401 – friendly repr
        return f"{self.code}: {self.message}"


class PayloadTooLargeError(HandgradeError):
    code = "PAYLOAD_TOO_LARGE"

    def __init__(self, message: str = "Image too large, maximum file size is 4.5MB.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class InvalidImageDataError(HandgradeError):
    code = "INVALID_IMAGE_DATA"

    def __init__(self, message: str = "Invalid image data", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class UnsupportedFormatError(HandgradeError):
    code = "UNSUPPORTED_FORMAT"

    def __init__(
        self,
        message: str = "Unsupported format. Only JPEG, PNG, GIF, and WEBP files are supported.",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


# ---------------------------------------------------------------------------
# Client-side only
# ---------------------------------------------------------------------------

class ClipboardAccessError(HandgradeError):
    code = "CLIPBOARD_DENIED"

    def __init__(self, message: str = "Permission to read clipboard was denied.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class RelayError(HandgradeError):
    """The relay answered with a non-200 status."""

    code = "RELAY_ERROR"

    def __init__(self, message: str, *, http_status: int, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.http_status = http_status
