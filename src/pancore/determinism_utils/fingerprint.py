"""Environment fingerprint for reproducibility tracking."""

from __future__ import annotations

import os
import platform
import subprocess
import sys
from typing import Any

import numpy as np
import pandas as pd
import scipy


def _git_sha() -> str:
    """Get current git SHA, return 'unknown' if not available."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        return "unknown"


def env_fingerprint() -> dict[str, Any]:
    """Capture interpreter, platform and library versions for a run summary.

    Returns:
        Dictionary with Python/platform details, NumPy, SciPy and pandas
        versions, best-effort git SHA and CPU count
    """
    return {
        "python_version": sys.version,
        "platform": platform.platform(),
        "machine": platform.machine(),
        "cpu_count": os.cpu_count(),
        "git_sha": _git_sha(),
        "numpy_version": np.__version__,
        "scipy_version": scipy.__version__,
        "pandas_version": pd.__version__,
    }
