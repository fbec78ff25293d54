import json
from typing import Any, AsyncIterator, Dict, List

import httpx
from google import genai
from google.genai import types
from loguru import logger

from handgrade.images import DecodedImage
from handgrade.prompts import render_prompt
from handgrade.settings import settings

# Seeded as the assistant's first token so that whatever the model writes
# before it ends up in the description section and the rest in the text section.
SENTINEL = "▲"

GRADING_PROMPT = "grade_solution"

_gemini_client = None


def get_gemini_client() -> genai.Client:
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = genai.Client(api_key=settings.GOOGLE_API_KEY)
        logger.info(f"Created Gemini client for model: {settings.LLM_MODEL}")
    return _gemini_client


def build_messages(image: DecodedImage) -> List[Dict[str, Any]]:
    """Return the provider-neutral two-message conversation for *image*."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": render_prompt(GRADING_PROMPT)},
                {"type": "image", "image": image.data, "mime_type": image.mime_type},
            ],
        },
        {
            "role": "assistant",
            "content": [{"type": "text", "text": SENTINEL}],
        },
    ]


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------

def to_gemini_contents(messages: List[Dict[str, Any]]) -> List[types.Content]:
    contents = []
    for message in messages:
        parts = []
        for part in message["content"]:
            if part["type"] == "text":
                parts.append(types.Part.from_text(text=part["text"]))
            elif part["type"] == "image":
                image = DecodedImage(mime_type=part["mime_type"], data=part["image"])
                parts.append(types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type))
        role = "model" if message["role"] == "assistant" else message["role"]
        contents.append(types.Content(role=role, parts=parts))
    return contents


async def _stream_gemini(messages: List[Dict[str, Any]]) -> AsyncIterator[str]:
    client = get_gemini_client()
    stream = await client.aio.models.generate_content_stream(
        model=settings.LLM_MODEL,
        contents=to_gemini_contents(messages),
    )
    async for chunk in stream:
        if chunk.text:
            yield chunk.text


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------

def to_ollama_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Ollama wants plain string content with images in a side list."""
    converted = []
    for message in messages:
        texts = [part["text"] for part in message["content"] if part["type"] == "text"]
        images = [part["image"] for part in message["content"] if part["type"] == "image"]
        entry: Dict[str, Any] = {"role": message["role"], "content": "".join(texts)}
        if images:
            entry["images"] = images
        converted.append(entry)
    return converted


async def _stream_ollama(messages: List[Dict[str, Any]], transport: httpx.AsyncBaseTransport | None = None) -> AsyncIterator[str]:
    """Streams a response from the Ollama chat API."""
    payload = {
        "model": settings.OLLAMA_MODEL,
        "messages": to_ollama_messages(messages),
        "stream": True,
    }
    base_url = str(settings.OLLAMA_BASE_URL).rstrip("/")

    async with httpx.AsyncClient(timeout=None, transport=transport) as client:
        async with client.stream("POST", f"{base_url}/api/chat", json=payload) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                if not line:
                    continue
                try:
                    chunk = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"[LLM_STREAM] Failed to decode JSON line: {line}")
                    continue
                if chunk.get("error"):
                    raise RuntimeError(f"Ollama error: {chunk['error']}")
                content = chunk.get("message", {}).get("content", "")
                if content:
                    yield content
                if chunk.get("done"):
                    break


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

async def stream_completion(image: DecodedImage) -> AsyncIterator[str]:
    """Ask the configured model to grade *image* and yield its text chunks in order.

    Errors from the provider are not caught here; the relay decides what the
    caller sees.
    """
    messages = build_messages(image)
    provider = settings.MODEL_PROVIDER
    if provider == "ollama":
        logger.info(f"[LLM_STREAM] Streaming from Ollama model {settings.OLLAMA_MODEL}.")
        stream = _stream_ollama(messages)
    else:
        logger.info(f"[LLM_STREAM] Streaming from Gemini model {settings.LLM_MODEL}.")
        stream = _stream_gemini(messages)

    count = 0
    async for chunk in stream:
        count += 1
        yield chunk
    logger.info(f"[LLM_STREAM] Stream finished after {count} chunks.")
