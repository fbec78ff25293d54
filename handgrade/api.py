from pathlib import Path
from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, StreamingResponse
from loguru import logger

from handgrade import llm
from handgrade.errors import InvalidImageDataError, PayloadTooLargeError, UnsupportedFormatError
from handgrade.images import MAX_PROMPT_LENGTH, DecodedImage, decode_data_uri, is_supported_image_type, utf16_length
from handgrade.schemas import CompletionRequest

router = APIRouter()

_INDEX_HTML = Path(__file__).parent / "static" / "index.html"


def validate_prompt(prompt: str) -> DecodedImage:
    """Run the fail-fast checks on a request payload.

    Raises the matching ``HandgradeError`` subclass on the first failure.
    """
    length = utf16_length(prompt)
    if length > MAX_PROMPT_LENGTH:
        raise PayloadTooLargeError(data={"length": length})

    image = decode_data_uri(prompt)
    if image is None:
        raise InvalidImageDataError()

    if not is_supported_image_type(image.mime_type):
        raise UnsupportedFormatError(data={"mime_type": image.mime_type})

    return image


async def _relay(first: str | None, rest: AsyncIterator[str]) -> AsyncIterator[str]:
    if first is not None:
        yield first
    try:
        async for chunk in rest:
            yield chunk
    except Exception as e:
        logger.error(f"[RELAY] Upstream stream failed mid-response: {e}")
        raise


@router.post("/api/completion")
async def completion_endpoint(request: CompletionRequest):
    prompt = request.prompt
    logger.info(f"Received /api/completion request: length={len(prompt)}")

    image = validate_prompt(prompt)
    logger.info(f"[RELAY] Valid {image.mime_type} image, calling model.")

    stream = llm.stream_completion(image)

    # Pull the first chunk before committing to a 200 so that a failing model
    # call surfaces as a server error rather than an empty stream.
    try:
        first = await anext(stream)
    except StopAsyncIteration:
        first = None
    except Exception as e:
        logger.error(f"[RELAY] Model call failed: {e}")
        raise

    return StreamingResponse(_relay(first, stream), media_type="text/plain; charset=utf-8")


@router.get("/", response_class=HTMLResponse)
def index():
    """Upload page: drop, paste, click, or hold to paste from the clipboard."""
    return _INDEX_HTML.read_text(encoding="utf-8")
