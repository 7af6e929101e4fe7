"""Tests that entry-point modules import in a fresh interpreter."""

import os
import subprocess
import sys

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "boardauth.config",
        "boardauth.cli",
        "boardauth.main",
        "boardauth.core.jobs.worker",
    ],
)
def test_module_imports_cold(module: str) -> None:
    """Each module imports first, before anything else has loaded config."""
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(sys.path)}

    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
        env=env,
        check=False,
    )

    assert result.returncode == 0, result.stderr
