#!/usr/bin/env python3
"""
Find a print orientation for a mesh file.

Loads the mesh, runs the orientation search, and prints a JSON report
(result + persistable snapshot) to stdout. Optionally writes the report
and the re-oriented mesh, resting on the bed, to disk.

Usage:
    venv/bin/python3 scripts/orient_mesh.py --input part.stl
    venv/bin/python3 scripts/orient_mesh.py --input part.stl --mode flat --max-duration-ms 250 --output oriented.stl

Exit codes:
    0: orientation found by the full search
    1: mesh could not be loaded
    2: search timed out (a heuristic result is still reported)
"""
import sys
import argparse
import json
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geometry_primitives import MeshLoadError, load_print_mesh
from materials import MATERIALS, support_weight_g
from orientation import OrientationOptions, compute_orientation
from orientation_snapshot import apply_orientation, snapshot_from_result
from overhang_detector import OverhangConfig
from scoring import OrientMode

logger = logging.getLogger("orient_mesh")


def main():
    parser = argparse.ArgumentParser(
        description="Compute a support-minimizing print orientation"
    )
    parser.add_argument(
        "--input", required=True, type=str, help="Mesh file (STL/OBJ/PLY/GLB/3MF)"
    )
    parser.add_argument(
        "--mode", type=str, default=OrientMode.UPRIGHT.value,
        choices=[m.value for m in OrientMode],
        help="Height treatment (default: upright)",
    )
    parser.add_argument(
        "--direction-samples", type=int, default=96,
        help="Fibonacci sphere samples, clamped to 24-200 (default: 96)",
    )
    parser.add_argument(
        "--vertex-samples", type=int, default=8000,
        help="Vertex cap for extent measurement, clamped to 1000-20000 (default: 8000)",
    )
    parser.add_argument(
        "--max-duration-ms", type=float, default=None,
        help="Wall-clock budget for the search (default: unbounded)",
    )
    parser.add_argument(
        "--threshold", type=float, default=45.0,
        help="Overhang angle in degrees from straight down (default: 45)",
    )
    parser.add_argument(
        "--material", type=str, default="pla",
        choices=list(MATERIALS.keys()),
        help="Support material for weight estimate (default: pla)",
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Write the oriented mesh here (format from extension)",
    )
    parser.add_argument(
        "--report", type=str, default=None,
        help="Also write the JSON report to this path",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="DEBUG logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Step 1: Load mesh
    try:
        print_mesh, tri_mesh = load_print_mesh(args.input)
    except MeshLoadError as e:
        logger.error("%s", e)
        return 1

    # Step 2: Search
    options = OrientationOptions(
        direction_samples=args.direction_samples,
        vertex_samples=args.vertex_samples,
        max_duration_ms=args.max_duration_ms,
        overhang_threshold_deg=args.threshold,
        overhang=OverhangConfig(
            material_density_g_per_mm3=MATERIALS[args.material].density_g_per_mm3,
        ),
    )
    result = compute_orientation(print_mesh, args.mode, options)
    snapshot = snapshot_from_result(print_mesh, result)

    # Step 3: Report
    report = {
        "input": args.input,
        "mode": args.mode,
        "material": args.material,
        "result": result.to_dict(),
        "snapshot": snapshot.to_dict(),
        "supportWeightG": support_weight_g(result.metrics.support_volume, args.material),
    }
    text = json.dumps(report, indent=2)
    print(text)

    if args.report:
        report_path = Path(args.report)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(text)
        logger.info("Report written to: %s", report_path)

    # Step 4: Oriented mesh
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        apply_orientation(tri_mesh, snapshot).export(str(out_path))
        logger.info("Oriented mesh written to: %s", out_path)

    return 2 if result.timed_out else 0


if __name__ == "__main__":
    sys.exit(main())
