"""Cutting jobs on disk: JSON job files in, run folders with metrics out."""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from panel_cutting.contracts import (
    Cut,
    PanelDimensions,
    PanelShape,
    PanelWithCutsResult,
    cut_from_dict,
)


@dataclass
class CuttingJob:
    """One panel and its cut list, as read from a job file."""
    name: str
    dimensions: PanelDimensions
    shape: PanelShape = PanelShape.RECTANGLE
    circle_diameter: Optional[float] = None
    cuts: List[Cut] = field(default_factory=list)


@dataclass
class RunFolder:
    run_id: str
    root: Path

    @property
    def job_copy_dir(self) -> Path:
        return self.root / "input"

    @property
    def metrics_path(self) -> Path:
        return self.root / "metrics.json"

    @property
    def summary_path(self) -> Path:
        return self.root / "summary.md"


def load_job(path: str) -> CuttingJob:
    """Parse a job file; cut entries accept the same keys as ``cut_from_dict``."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return CuttingJob(
        name=data.get("name") or Path(path).stem,
        dimensions=PanelDimensions(**data["panel"]),
        shape=PanelShape(data.get("shape", PanelShape.RECTANGLE.value)),
        circle_diameter=data.get("circle_diameter"),
        cuts=[cut_from_dict(c) for c in data.get("cuts", [])],
    )


def _slug(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug or "job"


def open_run_folder(runs_root: str, job_name: str) -> RunFolder:
    """Create ``<runs_root>/<utc stamp>_<job slug>/input``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_id = f"{stamp}_{_slug(job_name)}"
    folder = RunFolder(run_id=run_id, root=Path(runs_root) / run_id)
    folder.job_copy_dir.mkdir(parents=True, exist_ok=True)
    return folder


def keep_job_copy(folder: RunFolder, job_path: str) -> Path:
    src = Path(job_path)
    dst = folder.job_copy_dir / src.name
    if src.resolve() != dst.resolve():
        shutil.copy2(src, dst)
    return dst


def result_metrics(run_id: str, result: PanelWithCutsResult, elapsed_s: float) -> Dict[str, Any]:
    return {
        "run_id": run_id,
        "elapsed_s": round(elapsed_s, 3),
        "cuttingInfo": result.cutting_info.to_payload(),
        "vertices": result.geometry.vertex_count,
        "triangles": result.geometry.triangle_count,
        "indexDtype": result.geometry.indices.dtype.name,
        "edges": len(result.edges),
        "warnings": list(result.validation_warnings),
    }


def render_summary(metrics: Dict[str, Any]) -> str:
    info = metrics["cuttingInfo"]
    lines = [
        f"# Run {metrics['run_id']}",
        "",
        f"- Duration: {metrics['elapsed_s']:.2f}s",
        f"- Cuts: {info['totalCuts']} ({info['rectangularCuts']} rectangular, "
        f"{info['circularCuts']} circular, {info['totalInstances']} instances)",
        f"- Nominal cut area: {info['totalCutArea']:.2f} mm2",
        f"- Nominal cut volume: {info['totalCutVolume']:.2f} mm3",
        f"- Failed cuts: {', '.join(info['failedCuts']) or 'none'}",
        f"- Mesh: {metrics['vertices']} vertices, {metrics['triangles']} triangles "
        f"({metrics['indexDtype']} indices), {metrics['edges']} edges",
    ]
    lines.extend(f"- Warning: {w}" for w in metrics["warnings"])
    lines.append("")
    return "\n".join(lines)


def write_run(folder: RunFolder, metrics: Dict[str, Any]) -> None:
    with folder.metrics_path.open("w", encoding="utf-8") as f:
        json.dump(metrics, f, indent=2)
    folder.summary_path.write_text(render_summary(metrics), encoding="utf-8")


def point_latest_at(runs_root: str, folder: RunFolder) -> None:
    """Repoint ``<runs_root>/latest`` at the newest run."""
    latest = Path(runs_root) / "latest"
    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.is_dir():
        shutil.rmtree(latest)
    try:
        latest.symlink_to(os.path.relpath(folder.root, runs_root))
    except OSError:
        # no symlinks on this filesystem
        latest.mkdir(parents=True, exist_ok=True)
        (latest / "latest_run.txt").write_text(folder.run_id, encoding="utf-8")
