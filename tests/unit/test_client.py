"""
Tests for the client-side ingestion path, display state and relay client.
"""

import json
from io import BytesIO

import httpx
import pytest
from PIL import Image

from handgrade import client as client_module
from handgrade.client import (
    DisplayState,
    ImageUpload,
    RelayClient,
    from_clipboard,
    from_path,
    from_stream,
    ingest,
    split_completion,
)
from handgrade.errors import ClipboardAccessError, PayloadTooLargeError, RelayError, UnsupportedFormatError
from handgrade.images import MAX_IMAGE_BYTES

API_URL = "http://relay.test/api/completion"


def _png_bytes(size=(10, 10)):
    buffer = BytesIO()
    Image.new("RGB", size, color="black").save(buffer, format="PNG")
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# split_completion
# ---------------------------------------------------------------------------

class TestSplitCompletion:
    def test_single_sentinel(self):
        assert split_completion("a linear equation▲x = 2") == ("a linear equation", "x = 2")

    def test_no_sentinel_is_all_description(self):
        assert split_completion("still streaming") == ("still streaming", "")

    def test_empty(self):
        assert split_completion("") == ("", "")

    def test_leading_sentinel(self):
        assert split_completion("▲x = 2") == ("", "x = 2")

    def test_extra_sentinels_stay_in_text(self):
        assert split_completion("desc▲step ▲ one▲two") == ("desc", "step ▲ one▲two")


# ---------------------------------------------------------------------------
# DisplayState
# ---------------------------------------------------------------------------

class TestDisplayState:
    def test_lifecycle(self):
        state = DisplayState()
        state.start()
        assert state.is_loading and not state.finished

        for chunk in ["Problem: 2x+3=7", "▲", "x = 2"]:
            state.feed(chunk)
        assert state.description == "Problem: 2x+3=7"
        assert state.text == "x = 2"
        assert not state.can_copy_both
        assert state.both() is None

        state.finish()
        assert state.finished and not state.is_loading
        assert state.can_copy_both
        assert state.both() == "Problem: 2x+3=7\nx = 2"

    def test_copy_both_needs_text(self):
        state = DisplayState()
        state.start()
        state.feed("only a description")
        state.finish()
        assert not state.can_copy_both

    def test_fail_discards_progress(self):
        state = DisplayState()
        state.start()
        state.feed("partial▲")
        state.fail()
        assert state.completion == ""
        assert not state.is_loading and not state.finished

    def test_start_resets(self):
        state = DisplayState(completion="old▲text", finished=True)
        state.start()
        assert state.completion == "" and not state.finished


# ---------------------------------------------------------------------------
# ingest + adapters
# ---------------------------------------------------------------------------

class TestIngest:
    def test_valid_png(self):
        data = _png_bytes()
        data_uri = ingest(ImageUpload(data=data, mime_type="image/png"))
        assert data_uri.startswith("data:image/png;base64,")

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedFormatError) as exc:
            ingest(ImageUpload(data=b"BM", mime_type="image/bmp"))
        assert exc.value.message == "Unsupported format. Only JPEG, PNG, GIF, and WEBP files are supported."

    def test_type_checked_before_size(self):
        with pytest.raises(UnsupportedFormatError):
            ingest(ImageUpload(data=b"\0" * (MAX_IMAGE_BYTES + 1), mime_type="image/bmp"))

    def test_raw_bytes_too_large(self):
        with pytest.raises(PayloadTooLargeError) as exc:
            ingest(ImageUpload(data=b"\0" * (MAX_IMAGE_BYTES + 1), mime_type="image/png"))
        assert exc.value.message == "Image too large, maximum file size is 4.5MB."

    def test_raw_bytes_at_limit(self):
        assert ingest(ImageUpload(data=b"\0" * MAX_IMAGE_BYTES, mime_type="image/png"))

    def test_encoded_length_too_large(self, monkeypatch):
        monkeypatch.setattr(client_module, "MAX_PROMPT_LENGTH", 30)
        with pytest.raises(PayloadTooLargeError):
            ingest(ImageUpload(data=b"\0" * 16, mime_type="image/png"))


def test_from_path(tmp_path):
    path = tmp_path / "answer.png"
    path.write_bytes(_png_bytes())
    upload = from_path(path)
    assert upload.mime_type == "image/png"
    assert upload.source == "file"


def test_from_path_not_an_image(tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("x = 2")
    upload = from_path(path)
    assert upload.mime_type == "application/octet-stream"
    with pytest.raises(UnsupportedFormatError):
        ingest(upload)


def test_from_stream():
    upload = from_stream(BytesIO(_png_bytes()))
    assert upload.mime_type == "image/png"
    assert upload.source == "paste"


class TestFromClipboard:
    def test_image(self, monkeypatch):
        monkeypatch.setattr(client_module.ImageGrab, "grabclipboard", lambda: Image.new("RGB", (4, 4)))
        upload = from_clipboard()
        assert upload.mime_type == "image/png"
        assert upload.source == "clipboard"
        assert ingest(upload).startswith("data:image/png;base64,")

    def test_copied_file(self, monkeypatch, tmp_path):
        path = tmp_path / "answer.png"
        path.write_bytes(_png_bytes())
        monkeypatch.setattr(client_module.ImageGrab, "grabclipboard", lambda: [str(path)])
        upload = from_clipboard()
        assert upload.mime_type == "image/png"
        assert upload.source == "clipboard"

    def test_empty(self, monkeypatch):
        monkeypatch.setattr(client_module.ImageGrab, "grabclipboard", lambda: None)
        with pytest.raises(UnsupportedFormatError):
            from_clipboard()

    def test_denied(self, monkeypatch):
        def denied():
            raise NotImplementedError("ImageGrab.grabclipboard() is not supported here")

        monkeypatch.setattr(client_module.ImageGrab, "grabclipboard", denied)
        with pytest.raises(ClipboardAccessError) as exc:
            from_clipboard()
        assert exc.value.message == "Permission to read clipboard was denied."


# ---------------------------------------------------------------------------
# RelayClient
# ---------------------------------------------------------------------------

def test_relay_client_streams():
    seen = {}

    def handler(request):
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, text="desc▲x = 2")

    relay = RelayClient(API_URL, transport=httpx.MockTransport(handler))
    state = relay.grade("data:image/png;base64,AAAA")

    assert seen["payload"] == {"prompt": "data:image/png;base64,AAAA"}
    assert state.finished
    assert (state.description, state.text) == ("desc", "x = 2")


def test_relay_client_error_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(400, text="Invalid image data"))
    relay = RelayClient(API_URL, transport=transport)
    state = DisplayState()

    with pytest.raises(RelayError) as exc:
        relay.grade("garbage", state)

    assert exc.value.message == "Invalid image data"
    assert exc.value.http_status == 400
    assert state.completion == "" and not state.is_loading
