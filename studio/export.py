"""
Vector export of generated geometry.

Every document uses a fixed 500 x 500 logical frame with
preserveAspectRatio="xMidYMid meet". Geometry that does not already live
in that frame can be fitted into it with a uniform scale (aspect
preserving) and centred.

Also holds the small file helpers shared by the studio modes: download
names, data URLs and the placeholder SVG shown when AI generation fails.
"""

import base64
import logging
import time
from pathlib import Path

import numpy as np

from studio.config import StudioConfig
from studio.fractal import FractalTree, segment_color, segment_width

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
FRAME_SIZE = 500.0
_FLOAT_DECIMALS = 2


def _fmt(value: float, decimals: int = _FLOAT_DECIMALS) -> str:
    """Deterministic coordinate text; -0 is printed as 0."""
    text = f"{float(value):.{decimals}f}"
    if text.startswith("-") and float(text) == 0.0:
        return text[1:]
    return text


def _svg_open(frame: float) -> str:
    size = _fmt(frame, 0)
    return (
        f'<svg xmlns="{SVG_NS}" viewBox="0 0 {size} {size}" '
        f'width="{size}" height="{size}" preserveAspectRatio="xMidYMid meet">'
    )


# =============================================================================
# FITTING
# =============================================================================

def frame_transform(
    points: np.ndarray,
    frame: float = FRAME_SIZE,
    margin: float = 20.0,
) -> tuple[float, float, float]:
    """
    Uniform scale and offset that fit points inside the frame.

    Returns (scale, dx, dy) such that p' = p * scale + (dx, dy). The point
    cloud's bounding box is scaled to the largest size that fits within
    the margins on both axes and centred. A box with zero extent is only
    translated to the centre.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    center = frame / 2.0
    if len(pts) == 0:
        return 1.0, 0.0, 0.0

    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    extent = hi - lo
    available = max(frame - 2.0 * margin, 1e-9)

    largest = float(extent.max())
    scale = 1.0 if largest <= 1e-12 else available / largest

    mid = (lo + hi) / 2.0
    dx = center - mid[0] * scale
    dy = center - mid[1] * scale
    return scale, float(dx), float(dy)


def fit_to_frame(points, frame: float = FRAME_SIZE, margin: float = 20.0) -> np.ndarray:
    """Scale and centre points into the frame, preserving aspect ratio."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    scale, dx, dy = frame_transform(pts, frame, margin)
    return pts * scale + np.array([dx, dy])


# =============================================================================
# DOCUMENTS
# =============================================================================

def points_attribute(points, decimals: int = 1) -> str:
    """SVG `points` attribute text: "x,y x,y ..."."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    return " ".join(f"{_fmt(x, decimals)},{_fmt(y, decimals)}" for x, y in pts)


def superformula_to_svg(
    points,
    markers=None,
    fit: bool = False,
    frame: float = FRAME_SIZE,
) -> str:
    """
    Serialise a superformula outline as an SVG document.

    Args:
        points: Closed polyline of shape (N, 2), already closed at φ = 2π
        markers: Optional vertex subset drawn as small dots
        fit: Fit the outline into the frame instead of using raw coordinates
        frame: Frame size in logical units

    Returns:
        SVG markup
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    marks = None if markers is None else np.asarray(markers, dtype=float).reshape(-1, 2)

    if fit:
        scale, dx, dy = frame_transform(pts, frame)
        offset = np.array([dx, dy])
        pts = pts * scale + offset
        if marks is not None:
            marks = marks * scale + offset

    lines = [
        _svg_open(frame),
        "<defs>",
        '<linearGradient id="paramGradient" x1="0%" y1="0%" x2="100%" y2="100%">',
        '<stop offset="0%" stop-color="#06b6d4" stop-opacity="0.2"/>',
        '<stop offset="100%" stop-color="#3b82f6" stop-opacity="0.1"/>',
        "</linearGradient>",
        "</defs>",
        f'<polygon points="{points_attribute(pts)}" fill="url(#paramGradient)" '
        'stroke="#0891b2" stroke-width="1.5" stroke-linejoin="round"/>',
    ]
    if marks is not None:
        for x, y in marks:
            lines.append(f'<circle cx="{_fmt(x, 1)}" cy="{_fmt(y, 1)}" r="2" fill="#0e7490"/>')
    lines.append("</svg>")
    return "\n".join(lines)


def fractal_to_svg(
    tree: FractalTree,
    fit: bool = True,
    frame: float = FRAME_SIZE,
    config: StudioConfig | None = None,
) -> str:
    """
    Serialise a fractal tree as an SVG document.

    Segments are grouped per depth level into one path each, carrying the
    level's colour and stroke width.

    Args:
        tree: Generated tree
        fit: Fit the tree into the frame (aspect preserving)
        frame: Frame size in logical units
        config: Style constants (the tree's own config if None)

    Returns:
        SVG markup
    """
    if config is None:
        config = tree.config

    starts = np.asarray(tree.starts, dtype=float)
    ends = np.asarray(tree.ends, dtype=float)
    if fit and len(tree):
        scale, dx, dy = frame_transform(np.concatenate([starts, ends], axis=0), frame)
        offset = np.array([dx, dy])
        starts = starts * scale + offset
        ends = ends * scale + offset

    lines = [_svg_open(frame), '<g fill="none" stroke-linecap="round">']
    for depth in range(tree.max_depth + 1):
        mask = tree.depths == depth
        if not np.any(mask):
            continue
        parts = [
            f"M {_fmt(s[0])} {_fmt(s[1])} L {_fmt(e[0])} {_fmt(e[1])}"
            for s, e in zip(starts[mask], ends[mask])
        ]
        color = segment_color(depth, tree.max_depth, config)
        width = segment_width(depth, tree.max_depth, config)
        lines.append(
            f'<path data-depth="{depth}" stroke="{color}" '
            f'stroke-width="{_fmt(width)}" d="{" ".join(parts)}"/>'
        )
    lines.append("</g>")
    lines.append("</svg>")
    return "\n".join(lines)


def placeholder_svg(message: str, frame: float = FRAME_SIZE) -> str:
    """Small SVG carrying an error message, shown in place of a design."""
    size = _fmt(frame, 0)
    text = (
        message.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    )
    return (
        f'<svg viewBox="0 0 {size} {size}"><text x="50%" y="50%" fill="#ef4444" '
        f'text-anchor="middle" font-family="monospace">{text}</text></svg>'
    )


# =============================================================================
# FILES AND DATA URLS
# =============================================================================

def download_name(prefix: str, timestamp_ms: int | None = None, suffix: str = ".svg") -> str:
    """File name in the studio's `<prefix>-<milliseconds>.svg` pattern."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix}-{int(timestamp_ms)}{suffix}"


def write_svg(filepath: str | Path, markup: str) -> Path:
    """Write SVG markup to a file (UTF-8) and return its path."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(markup, encoding="utf-8")
    logger.info("Saved SVG to %s", path)
    return path


def to_data_url(data: bytes | str, mime_type: str) -> str:
    """Build a base64 data URL from raw bytes or an existing base64 string."""
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{data}"


def parse_data_url(url: str) -> tuple[str, str]:
    """
    Split a base64 data URL into (mime_type, base64 payload).

    Raises:
        ValueError: if the URL is not a base64 data URL
    """
    if not url.startswith("data:") or "," not in url:
        raise ValueError("Not a data URL")
    meta, payload = url.split(",", 1)
    header = meta[len("data:"):]
    if not header.endswith(";base64"):
        raise ValueError("Data URL is not base64 encoded")
    mime_type = header[: -len(";base64")]
    if not mime_type:
        raise ValueError("Data URL has no MIME type")
    return mime_type, payload
