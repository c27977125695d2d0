"""
Tests for the Gemini-backed collaborators.

The network client is replaced by a fake exposing
`models.generate_content`, so these tests never touch the API.
"""

import base64
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from studio.ai import (
    EDIT_FAILED,
    EDIT_PRESETS,
    IMAGE_TOO_LARGE,
    INVALID_FILE_TYPE,
    MAX_IMAGE_BYTES,
    AiDesigner,
    DesignHistory,
    ImageEditError,
    ImageEditor,
    ImageEditRequest,
    clean_svg_markup,
    edit_image,
    generate_svg_from_prompt,
    make_client,
)

SVG = '<svg viewBox="0 0 500 500"><circle cx="250" cy="250" r="100"/></svg>'
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class FakeModels:
    """Records calls and replays a canned response (or raises it)."""

    def __init__(self, response=None, error: Exception | None = None, on_call=None) -> None:
        self.response = response
        self.error = error
        self.on_call = on_call
        self.calls: list[dict] = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(response=None, error=None, on_call=None):
    return SimpleNamespace(models=FakeModels(response, error, on_call))


def text_response(text):
    return SimpleNamespace(text=text)


def image_response(data: bytes | None):
    inline = SimpleNamespace(data=data, mime_type="image/png") if data is not None else None
    part = SimpleNamespace(inline_data=inline, text=None if data else "no image")
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


class TestSvgGeneration:
    """Tests for prompt-to-SVG."""

    def test_returns_markup(self) -> None:
        """Model text is returned as SVG markup."""
        client = fake_client(text_response(SVG))
        assert generate_svg_from_prompt("a circle", client) == SVG

    def test_request_settings(self) -> None:
        """Model, prompt, system instruction and temperature are sent."""
        client = fake_client(text_response(SVG))
        generate_svg_from_prompt("a lattice", client)
        call = client.models.calls[0]
        assert call["model"] == "gemini-2.5-flash"
        assert call["contents"] == "a lattice"
        assert call["config"].temperature == pytest.approx(0.7)
        assert 'viewBox="0 0 500 500"' in str(call["config"].system_instruction)

    @pytest.mark.parametrize("fence", ["```xml", "```svg", "```"])
    def test_strips_markdown_fences(self, fence: str) -> None:
        """Fenced responses are unwrapped."""
        client = fake_client(text_response(f"{fence}\n{SVG}\n```"))
        assert generate_svg_from_prompt("x", client) == SVG

    def test_clean_plain_markup_unchanged(self) -> None:
        """Unfenced markup only loses surrounding whitespace."""
        assert clean_svg_markup(f"  {SVG}\n") == SVG

    def test_empty_response_placeholder(self) -> None:
        """No text gives the 'Error generating' placeholder."""
        result = generate_svg_from_prompt("x", fake_client(text_response("")))
        assert "Error generating" in result
        assert result.startswith("<svg")

    def test_client_error_placeholder(self) -> None:
        """Client failures give the 'Generation Failed' placeholder, never raise."""
        result = generate_svg_from_prompt("x", fake_client(error=ConnectionError("down")))
        assert "Generation Failed" in result

    def test_missing_key_placeholder(self, monkeypatch) -> None:
        """Without a client or key the call still returns a placeholder."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert "Generation Failed" in generate_svg_from_prompt("x")


class TestImageEdit:
    """Tests for image editing."""

    def test_returns_png_data_url(self) -> None:
        """The first inline image comes back as a PNG data URL."""
        client = fake_client(image_response(PNG_BYTES))
        payload = base64.b64encode(b"source").decode()
        url = edit_image(payload, "image/jpeg", "make it blue", client)
        assert url == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

    def test_request_contents(self) -> None:
        """The image and the edit instruction are both sent."""
        client = fake_client(image_response(PNG_BYTES))
        payload = base64.b64encode(b"source").decode()
        edit_image(payload, "image/png", "sketch it", client)
        call = client.models.calls[0]
        assert call["model"] == "gemini-2.5-flash-image"
        image_part, text = call["contents"]
        assert image_part.inline_data.data == b"source"
        assert text == "Edit this image: sketch it. Return the edited image."

    def test_no_image_raises(self) -> None:
        """A response without an image raises ImageEditError."""
        client = fake_client(image_response(None))
        with pytest.raises(ImageEditError):
            edit_image(base64.b64encode(b"x").decode(), "image/png", "p", client)

    def test_client_error_wrapped(self) -> None:
        """Client failures are re-raised as ImageEditError."""
        client = fake_client(error=TimeoutError("slow"))
        with pytest.raises(ImageEditError):
            edit_image(base64.b64encode(b"x").decode(), "image/png", "p", client)

    def test_request_validation(self) -> None:
        """Non-image MIME types and oversized payloads are rejected."""
        small = base64.b64encode(b"x").decode()
        with pytest.raises(ValidationError):
            ImageEditRequest(image_b64=small, mime_type="text/plain", prompt="p")

        big = base64.b64encode(b"\0" * (MAX_IMAGE_BYTES + 1)).decode()
        with pytest.raises(ValidationError):
            ImageEditRequest(image_b64=big, mime_type="image/png", prompt="p")

        with pytest.raises(ValidationError):
            ImageEditRequest(image_b64="not base64!", mime_type="image/png", prompt="p")


class TestDesignHistory:
    """Tests for bounded history."""

    def test_newest_first_and_bounded(self) -> None:
        """Only the newest `limit` entries are kept, newest first."""
        history = DesignHistory(limit=5)
        for i in range(8):
            history.add(i)
        assert history.items == [7, 6, 5, 4, 3]
        assert history.latest() == 7
        assert len(history) == 5

    def test_invalid_limit(self) -> None:
        """A limit below 1 is rejected."""
        with pytest.raises(ValueError):
            DesignHistory(limit=0)


class TestAiDesigner:
    """Tests for the prompt-to-SVG session."""

    def test_success_added_to_history(self) -> None:
        """Successful designs become current and enter the history."""
        designer = AiDesigner(fake_client(text_response(SVG)))
        result = designer.submit("a dome")
        assert designer.current_svg == SVG
        assert not result.is_error
        assert designer.history.latest() is result

    def test_errors_shown_but_not_kept(self) -> None:
        """Placeholders are shown but stay out of the history."""
        designer = AiDesigner(fake_client(error=RuntimeError("quota")))
        result = designer.submit("a dome")
        assert result.is_error
        assert "Generation Failed" in designer.current_svg
        assert len(designer.history) == 0

    def test_blank_prompt_ignored(self) -> None:
        """Whitespace-only prompts do nothing."""
        client = fake_client(text_response(SVG))
        assert AiDesigner(client).submit("   ") is None
        assert client.models.calls == []

    def test_overlapping_submission_refused(self) -> None:
        """A submission while a request is in flight returns None."""
        nested = []
        designer = AiDesigner()
        designer.client = fake_client(
            text_response(SVG), on_call=lambda: nested.append(designer.submit("again"))
        )
        assert designer.submit("first") is not None
        assert nested == [None]
        assert len(designer.client.models.calls) == 1
        assert not designer.is_busy

    def test_history_keeps_five(self) -> None:
        """Only the last five designs are kept."""
        designer = AiDesigner(fake_client(text_response(SVG)))
        for i in range(7):
            designer.submit(f"design {i}")
        assert [r.prompt for r in designer.history] == [f"design {i}" for i in range(6, 1, -1)]

    def test_save_current(self, tmp_path) -> None:
        """The current design is saved as ai-design-<ms>.svg."""
        designer = AiDesigner(fake_client(text_response(SVG)))
        assert designer.save_current(tmp_path) is None
        result = designer.submit("a dome")
        path = designer.save_current(tmp_path)
        assert path.name == f"ai-design-{result.timestamp_ms}.svg"
        assert path.read_text(encoding="utf-8") == SVG


class TestImageEditor:
    """Tests for the image editing session."""

    def test_load_rejects_large_files(self) -> None:
        """Files over 5MB are refused with a message."""
        editor = ImageEditor(fake_client())
        assert not editor.load_image(b"\0" * (MAX_IMAGE_BYTES + 1), "image/png")
        assert editor.error == IMAGE_TOO_LARGE
        assert editor.source is None

    def test_load_rejects_non_images(self) -> None:
        """Non-image MIME types are refused with a message."""
        editor = ImageEditor(fake_client())
        assert not editor.load_image(b"hello", "text/plain")
        assert editor.error == INVALID_FILE_TYPE

    def test_load_then_edit(self) -> None:
        """A successful edit records the before/after pair."""
        editor = ImageEditor(fake_client(image_response(PNG_BYTES)))
        assert editor.load_image(b"source", "image/jpeg")
        assert editor.source.startswith("data:image/jpeg;base64,")

        result = editor.submit("make it vintage")
        assert result.original == editor.source
        assert editor.edited == result.edited
        assert editor.error is None
        assert editor.history.latest() is result

    def test_failure_sets_error(self) -> None:
        """Failed edits set the error message instead of raising."""
        editor = ImageEditor(fake_client(image_response(None)))
        editor.load_image(b"source", "image/png")
        assert editor.submit("anything") is None
        assert editor.error == EDIT_FAILED
        assert editor.edited is None
        assert len(editor.history) == 0

    def test_nothing_loaded(self) -> None:
        """Submitting without an image does nothing."""
        client = fake_client(image_response(PNG_BYTES))
        assert ImageEditor(client).submit("p") is None
        assert client.models.calls == []

    def test_preset(self) -> None:
        """Presets submit their stored instruction."""
        editor = ImageEditor(fake_client(image_response(PNG_BYTES)))
        editor.load_image(b"source", "image/png")
        result = editor.apply_preset("Sketch")
        assert result.prompt == EDIT_PRESETS["Sketch"]

    def test_save_edited(self, tmp_path) -> None:
        """The edit is written as edited-design.png."""
        editor = ImageEditor(fake_client(image_response(PNG_BYTES)))
        editor.load_image(b"source", "image/png")
        editor.submit("p")
        path = editor.save_edited(tmp_path)
        assert path.name == "edited-design.png"
        assert path.read_bytes() == PNG_BYTES

    def test_clear(self) -> None:
        """Clearing drops the loaded image."""
        editor = ImageEditor(fake_client())
        editor.load_image(b"source", "image/png")
        editor.clear()
        assert editor.source is None


class TestMakeClient:
    """Tests for client construction."""

    def test_missing_key(self, monkeypatch) -> None:
        """No key anywhere raises RuntimeError."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(RuntimeError):
            make_client()
