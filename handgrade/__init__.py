from .images import decode_data_uri, is_supported_image_type  # noqa: F401

# ---------------------------------------------------------------------------
# Public library API – import-light facade
# ---------------------------------------------------------------------------

from .client import DisplayState, RelayClient, ingest, split_completion  # noqa: F401
from .llm import SENTINEL, stream_completion  # noqa: F401

__all__ = [
    "SENTINEL",
    "DisplayState",
    "RelayClient",
    "decode_data_uri",
    "ingest",
    "is_supported_image_type",
    "split_completion",
    "stream_completion",
]
