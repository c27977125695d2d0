"""
Shape analysis of evaluated superformula curves.

Provides the read-outs shown next to the parametric viewport:
- Polygon metrics (vertex count, area, perimeter, bounds, centroid)
- The decorative "real-time analysis" series plotted beside the shape
"""

from typing import NamedTuple

import numpy as np
from shapely.geometry import Polygon as ShapelyPolygon

from studio.config import SuperformulaParams


class ShapeMetrics(NamedTuple):
    """Geometric summary of a closed polyline."""

    vertices: int  # Number of emitted points (including the closing one)
    area: float
    perimeter: float
    bounds: tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)
    centroid: tuple[float, float]
    is_valid: bool  # False for self-intersecting or degenerate outlines


def shape_metrics(points) -> ShapeMetrics:
    """
    Summarise a closed superformula polyline.

    Curves that collapse to fewer than three distinct points (e.g. r = 0
    everywhere) are reported with zero area instead of raising.

    Args:
        points: Array-like of shape (N, 2)

    Returns:
        ShapeMetrics for the outline
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) == 0:
        return ShapeMetrics(0, 0.0, 0.0, (0.0, 0.0, 0.0, 0.0), (0.0, 0.0), False)

    min_xy = pts.min(axis=0)
    max_xy = pts.max(axis=0)
    bounds = (float(min_xy[0]), float(min_xy[1]), float(max_xy[0]), float(max_xy[1]))

    distinct = np.unique(np.round(pts, 9), axis=0)
    if len(distinct) < 3:
        steps = np.diff(pts, axis=0)
        perimeter = float(np.sum(np.hypot(steps[:, 0], steps[:, 1])))
        centroid = pts.mean(axis=0)
        return ShapeMetrics(
            vertices=len(pts),
            area=0.0,
            perimeter=perimeter,
            bounds=bounds,
            centroid=(float(centroid[0]), float(centroid[1])),
            is_valid=False,
        )

    polygon = ShapelyPolygon(pts)
    centroid = polygon.centroid
    return ShapeMetrics(
        vertices=len(pts),
        area=float(polygon.area),
        perimeter=float(polygon.exterior.length),
        bounds=bounds,
        centroid=(float(centroid.x), float(centroid.y)),
        is_valid=bool(polygon.is_valid),
    )


def analysis_series(params: SuperformulaParams, steps: int = 12) -> dict[str, np.ndarray]:
    """
    Compute the stress/material series plotted beside the shape.

    stress(i) = |sin(0.5 i + m) * 80| + 20
    material(i) = |cos(0.5 i) * n1 * 10| + 40

    Returns:
        Dictionary with "step", "stress" and "material" arrays of length `steps`
    """
    i = np.arange(steps, dtype=float)
    return {
        "step": i,
        "stress": np.abs(np.sin(i * 0.5 + params.m) * 80.0) + 20.0,
        "material": np.abs(np.cos(i * 0.5) * params.n1 * 10.0) + 40.0,
    }
