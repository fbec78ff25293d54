import os
import tempfile

# Settings are read at import time, so the environment has to be ready first.
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "handgrade-test-logs"))
os.environ.setdefault("MODEL_PROVIDER", "gemini")
os.environ.setdefault("PROMPT_HOT_RELOAD", "false")

import pytest

# A small 1x1 PNG base64 image (black pixel)
SAMPLE_IMAGE_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/w8AAn8B9pQn2wAAAABJRU5ErkJggg=="
)
SAMPLE_DATA_URI = f"data:image/png;base64,{SAMPLE_IMAGE_BASE64}"


class FakeModel:
    """Stands in for ``handgrade.llm.stream_completion`` and records each call."""

    def __init__(self, chunks=None, error=None):
        self.chunks = list(chunks or [])
        self.error = error
        self.calls = []

    def __call__(self, image):
        self.calls.append(image)
        return self._stream()

    async def _stream(self):
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk


@pytest.fixture
def sample_data_uri():
    return SAMPLE_DATA_URI


@pytest.fixture
def fake_model(monkeypatch):
    model = FakeModel(
        [
            "The problem is the linear equation 2x + 3 = 7.\n",
            "▲",
            "2x = 4 (correct)\n",
            "x = 2 (correct)\n",
            "Final score: 5/5",
        ]
    )
    monkeypatch.setattr("handgrade.llm.stream_completion", model)
    return model


def png_bytes(size=(10, 10)):
    """Encode a small solid-colour PNG with Pillow."""
    from io import BytesIO

    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", size, color="white").save(buffer, format="PNG")
    return buffer.getvalue()
