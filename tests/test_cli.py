"""Tests for the cut_panel command-line script."""
import json
import subprocess
import sys
from pathlib import Path

from panel_cutting.contracts import PanelDimensions, PanelShape
from panel_cutting.run_protocol import load_job

SCRIPT = Path(__file__).parent.parent / "scripts" / "cut_panel.py"


def _write_job(tmp_path, spacing_x):
    job = {
        "name": "Shelf Slots",
        "panel": {"length": 300, "width": 200, "thickness": 18},
        "shape": "rectangle",
        "cuts": [
            {
                "type": "rectangle",
                "id": "slot",
                "positionX": 100,
                "positionY": 100,
                "length": 50,
                "width": 30,
                "depth": 18,
                "repetitionX": 2,
                "spacingX": spacing_x,
            }
        ],
    }
    path = tmp_path / "job.json"
    path.write_text(json.dumps(job), encoding="utf-8")
    return path


def _run(tmp_path, job_path):
    return subprocess.run(
        [sys.executable, str(SCRIPT), "--job", str(job_path), "--runs-dir", str(tmp_path / "runs")],
        capture_output=True,
        text=True,
        timeout=300,
    )


class TestLoadJob:

    def test_parses_panel_and_cuts(self, tmp_path):
        job = load_job(str(_write_job(tmp_path, 60)))
        assert job.name == "Shelf Slots"
        assert job.dimensions == PanelDimensions(300, 200, 18)
        assert job.shape is PanelShape.RECTANGLE
        assert len(job.cuts) == 1
        assert job.cuts[0].spacing_x == 60

    def test_circle_panel_and_default_name(self, tmp_path):
        path = tmp_path / "disc.json"
        path.write_text(json.dumps({
            "panel": {"length": 300, "width": 200, "thickness": 18},
            "shape": "circle",
            "circle_diameter": 150,
        }), encoding="utf-8")
        job = load_job(str(path))
        assert job.name == "disc"
        assert job.shape is PanelShape.CIRCLE
        assert job.circle_diameter == 150
        assert job.cuts == []


class TestCutPanelCli:

    def test_successful_run_writes_metrics(self, tmp_path):
        proc = _run(tmp_path, _write_job(tmp_path, 60))
        assert proc.returncode == 0, proc.stderr
        assert "Run ID:" in proc.stdout
        assert "Failed cuts: 0" in proc.stdout

        run_dirs = [p for p in (tmp_path / "runs").iterdir() if p.name.endswith("shelf-slots")]
        assert len(run_dirs) == 1
        metrics = json.loads((run_dirs[0] / "metrics.json").read_text(encoding="utf-8"))
        assert metrics["cuttingInfo"]["totalCuts"] == 1
        assert metrics["cuttingInfo"]["totalCutVolume"] == 27000
        assert metrics["indexDtype"] == "uint16"
        assert (run_dirs[0] / "summary.md").exists()
        assert (run_dirs[0] / "input" / "job.json").exists()

    def test_invalid_spacing_exit_code(self, tmp_path):
        proc = _run(tmp_path, _write_job(tmp_path, 40))
        assert proc.returncode == 2
        assert "spacingX must be at least 51.00mm" in proc.stderr
