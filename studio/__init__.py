"""
Computational Design Studio

Procedural and generative design tools: a superformula shape explorer, an
animated recursive fractal tree, and Gemini-backed SVG generation and
image editing.

Modules:
    config: Parameter sets, presets and shared constants
    superformula: Differentiable superformula sampling and randomisation
    analysis: Polygon metrics and the analysis chart series
    gradcheck: Gradient health of the superformula radius
    fractal: Level-order branching tree generation
    growth: Growth animation state machine
    animation: Frame-driven animator and offline growth runs
    render: matplotlib rendering and animation
    export: SVG documents, data URLs and download names
    ai: Prompt-to-SVG and image editing collaborators
    logging_config: Logger setup for entry points
"""

from studio.ai import (
    EDIT_PRESETS,
    AiDesigner,
    DesignHistory,
    ImageEditError,
    ImageEditor,
    ImageEditRequest,
    ImageEditResult,
    SvgRequest,
    SvgResult,
    edit_image,
    generate_svg_from_prompt,
    make_client,
)
from studio.analysis import ShapeMetrics, analysis_series, shape_metrics
from studio.animation import FractalAnimator, GrowthTrajectory, final_tree, run_growth
from studio.config import (
    SUPERFORMULA_PRESETS,
    FractalParams,
    StudioConfig,
    SuperformulaParams,
)
from studio.export import (
    download_name,
    fit_to_frame,
    fractal_to_svg,
    parse_data_url,
    superformula_to_svg,
    to_data_url,
    write_svg,
)
from studio.fractal import (
    FractalFrame,
    FractalTree,
    Segment,
    generate_fractal,
    segment_color,
    segment_count,
    segment_width,
    wind_angle,
)
from studio.growth import GrowthPhase, GrowthState
from studio.logging_config import setup_logging
from studio.render import (
    ShapeStyle,
    animate_fractal,
    render_fractal,
    render_superformula,
    save_fractal,
    save_growth_animation,
    save_superformula,
)
from studio.superformula import (
    complexity,
    evaluate_superformula,
    marker_points,
    randomize_params,
    superformula_radius,
)

__all__ = [
    # Config
    "FractalParams",
    "StudioConfig",
    "SuperformulaParams",
    "SUPERFORMULA_PRESETS",
    # Superformula
    "complexity",
    "evaluate_superformula",
    "marker_points",
    "randomize_params",
    "superformula_radius",
    "ShapeMetrics",
    "analysis_series",
    "shape_metrics",
    # Fractal
    "FractalFrame",
    "FractalTree",
    "Segment",
    "generate_fractal",
    "segment_color",
    "segment_count",
    "segment_width",
    "wind_angle",
    # Animation
    "FractalAnimator",
    "GrowthPhase",
    "GrowthState",
    "GrowthTrajectory",
    "final_tree",
    "run_growth",
    # Rendering
    "ShapeStyle",
    "animate_fractal",
    "render_fractal",
    "render_superformula",
    "save_fractal",
    "save_growth_animation",
    "save_superformula",
    # Export
    "download_name",
    "fit_to_frame",
    "fractal_to_svg",
    "parse_data_url",
    "superformula_to_svg",
    "to_data_url",
    "write_svg",
    # AI collaborators
    "EDIT_PRESETS",
    "AiDesigner",
    "DesignHistory",
    "ImageEditError",
    "ImageEditor",
    "ImageEditRequest",
    "ImageEditResult",
    "SvgRequest",
    "SvgResult",
    "edit_image",
    "generate_svg_from_prompt",
    "make_client",
    # Logging
    "setup_logging",
]
