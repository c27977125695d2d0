"""
Generative collaborators backed by the Gemini API.

Two services:
    generate_svg_from_prompt: text prompt -> SVG markup. Never raises;
        failures come back as a small placeholder SVG.
    edit_image: image + instruction -> edited image as a PNG data URL.
        Raises ImageEditError on any failure.

AiDesigner and ImageEditor wrap them in the session state of the studio
modes: current result, a short newest-first history, an error message
and a busy flag. At most one request per session is in flight; a
submission made while another is outstanding is refused and returns
None.

The network client is injected. Any object exposing
`models.generate_content(model=..., contents=..., config=...)` works,
which is how the tests substitute a fake.
"""

import base64
import binascii
import logging
import os
import threading
import time
from collections.abc import Iterator
from pathlib import Path

from google import genai
from google.genai import types
from google.genai.types import Modality
from pydantic import BaseModel, Field, field_validator

from studio.export import (
    download_name,
    parse_data_url,
    placeholder_svg,
    to_data_url,
    write_svg,
)

logger = logging.getLogger(__name__)

SVG_MODEL = "gemini-2.5-flash"
IMAGE_MODEL = "gemini-2.5-flash-image"
SVG_TEMPERATURE = 0.7
MAX_IMAGE_BYTES = 5 * 1024 * 1024
HISTORY_LIMIT = 5

SVG_SYSTEM_INSTRUCTION = """\
You are a world-class Computational Design expert and Generative Artist.
Your task is to generate highly aesthetic, clean, and optimized SVG code based on the user's design prompt.

Key Requirements:
1. Return ONLY the raw <svg>...</svg> code. No markdown, no JSON, no text explanations.
2. The SVG must have viewBox="0 0 500 500" and preserveAspectRatio="xMidYMid meet".
3. Design Style: Use sophisticated geometry, parametric patterns, organic wireframes, or isometric structures.
4. Color Palette: Use a "Light Mode" friendly palette (Deep Cyan #0e7490, Purple #7e22ce, Emerald #047857, Slate #334155). Avoid white or very light lines. Background should be transparent.
5. Complexity: Ensure the design is detailed enough to look "computational" but efficient enough to render instantly.
6. If the user asks for a specific object (e.g., "chair"), interpret it through a computational/wireframe lens.
"""

EMPTY_RESPONSE_SVG = placeholder_svg("Error generating")
FAILED_SVG = placeholder_svg("Generation Failed")

# Quick-apply instructions of the image editor (label -> prompt)
EDIT_PRESETS: dict[str, str] = {
    "Cyberpunk": "Apply a futuristic cyberpunk neon color filter with high contrast and cyan/magenta highlights",
    "Sketch": "Convert this image into a detailed architectural pencil sketch on textured paper",
    "Vintage": "Apply a worn vintage 1970s photo effect with grain, scratches, and warm sepia tones",
    "Surreal": "Make the image dreamlike and surreal with melting objects and vibrant colors",
    "Vector": "Convert to a clean, flat vector art style with bold outlines and limited color palette",
    "Cleanup": "Enhance clarity, remove noise, and improve lighting",
}

IMAGE_TOO_LARGE = "Image too large (Max 5MB)."
INVALID_FILE_TYPE = "Invalid file type."
EDIT_FAILED = "Failed to process. Try a different prompt."


class ImageEditError(RuntimeError):
    """The image model failed or returned no image."""


def _now_ms() -> int:
    return int(time.time() * 1000)


# =============================================================================
# SCHEMAS
# =============================================================================

class SvgRequest(BaseModel):
    """Prompt-to-SVG request."""

    prompt: str = Field(description="Design prompt in natural language")
    model: str = Field(default=SVG_MODEL, description="Text model name")
    temperature: float = Field(default=SVG_TEMPERATURE, ge=0.0, le=2.0)


class SvgResult(BaseModel):
    """Outcome of one prompt-to-SVG request."""

    prompt: str
    svg: str = Field(description="SVG markup, or a placeholder on failure")
    is_error: bool = Field(default=False, description="True when svg is a placeholder")
    timestamp_ms: int = Field(default_factory=_now_ms)


class ImageEditRequest(BaseModel):
    """Image edit request: base64 image payload plus an instruction."""

    image_b64: str = Field(description="Base64 image bytes (no data: prefix)")
    mime_type: str = Field(description="MIME type of the image")
    prompt: str = Field(description="Edit instruction")
    model: str = Field(default=IMAGE_MODEL, description="Image model name")

    @field_validator("mime_type")
    @classmethod
    def check_mime_type(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError(INVALID_FILE_TYPE)
        return value

    @field_validator("image_b64")
    @classmethod
    def check_payload(cls, value: str) -> str:
        try:
            raw = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Image payload is not valid base64") from e
        if len(raw) > MAX_IMAGE_BYTES:
            raise ValueError(IMAGE_TOO_LARGE)
        return value

    def image_bytes(self) -> bytes:
        return base64.b64decode(self.image_b64)

    def instruction(self) -> str:
        return f"Edit this image: {self.prompt}. Return the edited image."


class ImageEditResult(BaseModel):
    """Outcome of one image edit: the source and edited images as data URLs."""

    original: str
    edited: str
    prompt: str
    timestamp_ms: int = Field(default_factory=_now_ms)


# =============================================================================
# SERVICES
# =============================================================================

def make_client(api_key: str | None = None) -> genai.Client:
    """
    Build a Gemini client.

    Raises:
        RuntimeError: if no key is given and GEMINI_API_KEY is unset
    """
    key = api_key or os.environ.get("GEMINI_API_KEY")
    if not key:
        raise RuntimeError("GEMINI_API_KEY is not set")
    return genai.Client(api_key=key)


def clean_svg_markup(text: str) -> str:
    """Strip a markdown fence (```xml, ```svg or ```) wrapped around SVG."""
    markup = text.strip()
    for fence in ("```xml", "```svg", "```"):
        if markup.startswith(fence):
            markup = markup[len(fence):]
            if markup.endswith("```"):
                markup = markup[:-3]
            break
    return markup.strip()


def request_svg(request: SvgRequest, client=None) -> SvgResult:
    """
    Run a prompt-to-SVG request.

    An empty model response yields the "Error generating" placeholder and
    any client failure the "Generation Failed" placeholder; both are
    flagged with is_error. Never raises.
    """
    try:
        if client is None:
            client = make_client()
        response = client.models.generate_content(
            model=request.model,
            contents=request.prompt,
            config=types.GenerateContentConfig(
                system_instruction=SVG_SYSTEM_INSTRUCTION,
                temperature=request.temperature,
            ),
        )
        text = response.text
    except Exception:
        logger.exception("SVG generation failed")
        return SvgResult(prompt=request.prompt, svg=FAILED_SVG, is_error=True)

    if not text:
        logger.warning("SVG generation returned no text")
        return SvgResult(prompt=request.prompt, svg=EMPTY_RESPONSE_SVG, is_error=True)

    return SvgResult(prompt=request.prompt, svg=clean_svg_markup(text))


def generate_svg_from_prompt(prompt: str, client=None, model: str = SVG_MODEL) -> str:
    """Generate SVG markup for a design prompt (placeholder SVG on failure)."""
    return request_svg(SvgRequest(prompt=prompt, model=model), client).svg


def _first_inline_image(response):
    for candidate in response.candidates or []:
        content = candidate.content
        if content is None or not content.parts:
            continue
        for part in content.parts:
            if part.inline_data is not None and part.inline_data.data:
                return part.inline_data.data
    return None


def edit_image(
    image_b64: str,
    mime_type: str,
    prompt: str,
    client=None,
    model: str = IMAGE_MODEL,
) -> str:
    """
    Apply an edit instruction to an image.

    Args:
        image_b64: Base64 image bytes (no data: prefix)
        mime_type: Image MIME type (must start with image/)
        prompt: Edit instruction
        client: Gemini client (built from GEMINI_API_KEY if None)
        model: Image model name

    Returns:
        The edited image as a data:image/png;base64 URL

    Raises:
        pydantic.ValidationError: if the payload or MIME type is rejected
        ImageEditError: if the request fails or yields no image
    """
    request = ImageEditRequest(
        image_b64=image_b64, mime_type=mime_type, prompt=prompt, model=model
    )
    try:
        if client is None:
            client = make_client()
        response = client.models.generate_content(
            model=request.model,
            contents=[
                types.Part.from_bytes(data=request.image_bytes(), mime_type=request.mime_type),
                request.instruction(),
            ],
            config=types.GenerateContentConfig(response_modalities=[Modality.IMAGE]),
        )
    except Exception as e:
        logger.exception("Image edit failed")
        raise ImageEditError(str(e)) from e

    data = _first_inline_image(response)
    if data is None:
        logger.error("Image edit returned no image")
        raise ImageEditError("No image generated")
    return to_data_url(data, "image/png")


# =============================================================================
# SESSIONS
# =============================================================================

class DesignHistory:
    """Bounded, newest-first list of results."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._items: list = []

    def add(self, item) -> None:
        self._items.insert(0, item)
        del self._items[self.limit:]

    @property
    def items(self) -> list:
        return list(self._items)

    def latest(self):
        return self._items[0] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator:
        return iter(list(self._items))


class _Session:
    """Busy flag shared by the AI-backed modes."""

    def __init__(self, client=None, history_limit: int = HISTORY_LIMIT) -> None:
        self.client = client
        self.history = DesignHistory(history_limit)
        self._busy = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    def _acquire(self) -> bool:
        if not self._busy.acquire(blocking=False):
            logger.info("%s: request already in flight; submission ignored", type(self).__name__)
            return False
        return True


class AiDesigner(_Session):
    """Prompt-to-SVG mode."""

    def __init__(self, client=None, model: str = SVG_MODEL, history_limit: int = HISTORY_LIMIT) -> None:
        super().__init__(client, history_limit)
        self.model = model
        self.current: SvgResult | None = None

    @property
    def current_svg(self) -> str | None:
        return self.current.svg if self.current is not None else None

    def submit(self, prompt: str) -> SvgResult | None:
        """
        Generate a design for the prompt.

        Blank prompts and submissions made while a request is in flight
        are ignored (None). Placeholders are shown as the current result
        but kept out of the history.
        """
        if not prompt.strip():
            return None
        if not self._acquire():
            return None
        try:
            result = request_svg(SvgRequest(prompt=prompt, model=self.model), self.client)
        finally:
            self._busy.release()

        self.current = result
        if not result.is_error:
            self.history.add(result)
        return result

    def select(self, result: SvgResult) -> None:
        """Show a history entry again."""
        self.current = result

    def save_current(self, directory: str | Path = ".") -> Path | None:
        """Write the current design as ai-design-<ms>.svg."""
        if self.current is None:
            return None
        name = download_name("ai-design", self.current.timestamp_ms)
        return write_svg(Path(directory) / name, self.current.svg)


class ImageEditor(_Session):
    """Image editing mode."""

    DOWNLOAD_NAME = "edited-design.png"

    def __init__(self, client=None, model: str = IMAGE_MODEL, history_limit: int = HISTORY_LIMIT) -> None:
        super().__init__(client, history_limit)
        self.model = model
        self.source: str | None = None  # data URL of the loaded image
        self.edited: str | None = None  # data URL of the last edit
        self.error: str | None = None

    def load_image(self, data: bytes, mime_type: str) -> bool:
        """
        Load a picked file. Size and type problems are stored in `error`.

        Returns:
            True if the image was accepted
        """
        if len(data) > MAX_IMAGE_BYTES:
            self.error = IMAGE_TOO_LARGE
            return False
        if not mime_type.startswith("image/"):
            self.error = INVALID_FILE_TYPE
            return False
        self.source = to_data_url(data, mime_type)
        self.edited = None
        self.error = None
        return True

    def clear(self) -> None:
        """Drop the loaded image and any edit of it."""
        self.source = None
        self.edited = None
        self.error = None

    def submit(self, prompt: str) -> ImageEditResult | None:
        """
        Edit the loaded image. Failures set `error` instead of raising.

        Returns None when there is nothing to do (blank prompt, no image)
        or a request is already in flight.
        """
        if not prompt.strip() or self.source is None:
            return None
        if not self._acquire():
            return None

        source = self.source
        self.edited = None
        self.error = None
        try:
            mime_type, payload = parse_data_url(source)
            edited = edit_image(payload, mime_type, prompt, self.client, self.model)
        except (ImageEditError, ValueError):
            self.error = EDIT_FAILED
            return None
        finally:
            self._busy.release()

        self.edited = edited
        result = ImageEditResult(original=source, edited=edited, prompt=prompt)
        self.history.add(result)
        return result

    def apply_preset(self, label: str) -> ImageEditResult | None:
        """Submit one of EDIT_PRESETS by label."""
        return self.submit(EDIT_PRESETS[label])

    def save_edited(self, directory: str | Path = ".") -> Path | None:
        """Write the last edit as edited-design.png."""
        if self.edited is None:
            return None
        _, payload = parse_data_url(self.edited)
        path = Path(directory) / self.DOWNLOAD_NAME
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(base64.b64decode(payload))
        logger.info("Saved to %s", path)
        return path
