"""Smoke tests for example scripts.

These tests ensure that the example scripts run their main execution paths
without raising exceptions.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

# Determine the repo root
ROOT = Path(__file__).resolve().parents[1]


@pytest.mark.parametrize(
    "script_name, expected",
    [
        ("weather_demo.py", "Weather demo finished"),
        ("continuous_learning_demo.py", "Continuous learning demo finished"),
    ],
)
def test_example_runs(script_name: str, expected: str) -> None:
    """Run an example script and check its closing message."""
    script = ROOT / "examples" / script_name
    assert script.exists(), f"Example script not found: {script}"

    result = subprocess.run(
        [sys.executable, str(script)],
        capture_output=True,
        text=True,
        check=False,
        timeout=120,
        cwd=ROOT,
    )

    assert result.returncode == 0, (
        f"Example script failed with return code {result.returncode}.\n"
        f"STDOUT:\n{result.stdout}\n"
        f"STDERR:\n{result.stderr}"
    )
    assert expected in result.stdout, "Expected output message not found in script output"


def test_weather_demo_decodes_reference_path() -> None:
    result = subprocess.run(
        [sys.executable, str(ROOT / "examples" / "weather_demo.py")],
        capture_output=True,
        text=True,
        check=False,
        timeout=120,
        cwd=ROOT,
    )
    assert "{x(0)=0, x(1)=2, x(2)=2}" in result.stdout
