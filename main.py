"""
Computational Design Studio - demo

Walks through the studio modes without a display:
1. Superformula presets and a seeded random shape
2. Fractal tree growth, rolled out frame by frame
3. SVG / PNG export into ./output
4. Prompt-to-SVG generation (only when GEMINI_API_KEY is set)
"""

import logging
import os
from pathlib import Path

import jax.random as jr
import matplotlib
from dotenv import load_dotenv

matplotlib.use("Agg")

from studio import (  # noqa: E402
    SUPERFORMULA_PRESETS,
    AiDesigner,
    FractalParams,
    analysis_series,
    complexity,
    download_name,
    evaluate_superformula,
    final_tree,
    fractal_to_svg,
    marker_points,
    randomize_params,
    run_growth,
    save_fractal,
    save_superformula,
    setup_logging,
    shape_metrics,
    superformula_to_svg,
    write_svg,
)

OUTPUT_DIR = Path("output")


def superformula_demo() -> None:
    print("\n" + "=" * 60)
    print("PARAMETRIC: Superformula presets")
    print("=" * 60)

    for name, params in SUPERFORMULA_PRESETS.items():
        points = evaluate_superformula(params)
        metrics = shape_metrics(points)
        print(f"  {name:<10} vertices={metrics.vertices:>4}  "
              f"complexity={complexity(params):6.2f}  area={metrics.area:10.1f}")

    params = randomize_params(jr.PRNGKey(42))
    print(f"\nRandom shape: m={params.m} n1={params.n1} n2={params.n2} n3={params.n3}")

    series = analysis_series(params)
    print(f"  Peak stress: {series['stress'].max():.1f}  "
          f"Peak material: {series['material'].max():.1f}")

    points = evaluate_superformula(params)
    markers = marker_points(points, params.resolution)
    write_svg(OUTPUT_DIR / download_name("parametric-shape"),
              superformula_to_svg(points, markers))
    save_superformula(str(OUTPUT_DIR / "superformula.png"), params)


def fractal_demo() -> None:
    print("\n" + "=" * 60)
    print("ALGORITHMIC: Fractal growth")
    print("=" * 60)

    params = FractalParams(angle=25.0, depth=9, length_multiplier=0.72)
    trajectory = run_growth(params, num_frames=120, wind_enabled=True)
    trajectory.print_summary()

    tree = final_tree(params)
    write_svg(OUTPUT_DIR / "fractal-tree.svg", fractal_to_svg(tree))
    save_fractal(str(OUTPUT_DIR / "fractal-tree.png"), tree)


def ai_demo() -> None:
    print("\n" + "=" * 60)
    print("AI GENERATIVE: Prompt to SVG")
    print("=" * 60)

    if not os.environ.get("GEMINI_API_KEY"):
        print("  GEMINI_API_KEY not set; skipping.")
        return

    designer = AiDesigner()
    result = designer.submit("A parametric pavilion with a hexagonal lattice roof")
    if result is None or result.is_error:
        print("  Generation failed.")
        return
    path = designer.save_current(OUTPUT_DIR)
    print(f"  {len(result.svg)} characters of SVG written to {path}")


def main() -> None:
    load_dotenv()
    setup_logging(logging.INFO)
    OUTPUT_DIR.mkdir(exist_ok=True)

    print("\n" + "=" * 60)
    print("  COMPUTATIONAL DESIGN STUDIO")
    print("=" * 60)

    superformula_demo()
    fractal_demo()
    ai_demo()

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)
    print(f"\nOutputs written to {OUTPUT_DIR.resolve()}")


if __name__ == "__main__":
    main()
