"""Tests for the orient_mesh.py command-line script."""
import json
import subprocess
import sys
from pathlib import Path

import pytest
import trimesh

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "orient_mesh.py"


def _run(*args):
    cmd = [sys.executable, str(SCRIPT), *args]
    return subprocess.run(cmd, capture_output=True, text=True)


class TestOrientMeshCli:
    """Run the script end to end on an exported box."""

    def test_reports_orientation(self, box_mesh_file, tmp_path):
        output = tmp_path / "oriented.stl"
        report = tmp_path / "report" / "orientation.json"
        proc = _run(
            "--input", box_mesh_file,
            "--output", str(output),
            "--report", str(report),
        )
        assert proc.returncode == 0, proc.stderr

        payload = json.loads(proc.stdout)
        assert payload["result"]["timedOut"] is False
        assert payload["result"]["metrics"]["height"] == pytest.approx(10.0)
        assert len(payload["snapshot"]["quaternion"]) == 4
        assert json.loads(report.read_text()) == payload

        oriented = trimesh.load(str(output))
        assert oriented.bounds[0][1] == pytest.approx(0.0, abs=1e-4)
        assert oriented.bounds[1][1] == pytest.approx(10.0, abs=1e-4)

    def test_timeout_exit_code(self, box_mesh_file):
        proc = _run("--input", box_mesh_file, "--max-duration-ms", "0")
        assert proc.returncode == 2, proc.stderr
        payload = json.loads(proc.stdout)
        assert payload["result"]["timedOut"] is True
        assert payload["result"]["usedFallback"] is True

    def test_missing_input(self, tmp_path):
        proc = _run("--input", str(tmp_path / "missing.stl"))
        assert proc.returncode == 1
        assert "not found" in proc.stderr

    def test_rejects_unknown_mode(self, box_mesh_file):
        proc = _run("--input", box_mesh_file, "--mode", "sideways")
        assert proc.returncode != 0
