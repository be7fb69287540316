#!/usr/bin/env python3
"""Apply a JSON cutting job to a panel and report the cutting statistics.

Job format:
    {
      "name": "shelf",
      "panel": {"length": 300, "width": 200, "thickness": 18},
      "shape": "rectangle",            # or "circle"
      "circle_diameter": null,
      "cuts": [{"type": "rectangle", "id": "a", "positionX": 100, ...}]
    }
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from panel_cutting import CutConfigurationError, PanelEngine
from panel_cutting.config import EngineConfig
from panel_cutting.run_protocol import (
    keep_job_copy,
    load_job,
    open_run_folder,
    point_latest_at,
    result_metrics,
    write_run,
)

EXIT_CONFIG_ERROR = 2
EXIT_KERNEL_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cut rectangular/circular pockets and holes into a panel"
    )
    parser.add_argument("--job", required=True, help="Path to the JSON cutting job")
    parser.add_argument("--name", default=None, help="Run name (defaults to job name)")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--deflection-mm",
        type=float,
        default=None,
        help="Tessellation and edge deflection in mm",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    job = load_job(args.job)

    config = EngineConfig()
    if args.deflection_mm is not None:
        config = EngineConfig(
            linear_deflection_mm=args.deflection_mm,
            edge_deflection_mm=args.deflection_mm,
        )

    engine = PanelEngine(config)
    if not engine.init():
        print("Geometry kernel could not be initialized", file=sys.stderr)
        return EXIT_KERNEL_ERROR

    started = time.perf_counter()
    try:
        result = engine.create_panel_with_cuts(
            job.dimensions, job.cuts, job.shape, job.circle_diameter
        )
    except CutConfigurationError as exc:
        for message in exc.errors:
            print(f"error: {message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    elapsed = time.perf_counter() - started

    folder = open_run_folder(args.runs_dir, args.name or job.name)
    keep_job_copy(folder, args.job)
    write_run(folder, result_metrics(folder.run_id, result, elapsed))
    point_latest_at(args.runs_dir, folder)

    print(f"Run ID: {folder.run_id}")
    print(f"Failed cuts: {len(result.cutting_info.failed_cuts)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
