"""Climb Chart - comparative elevation profiles with toggleable climbs."""

import subprocess
from pathlib import Path

__version_date__ = "2026-10-18"

PACKAGE_DIR = Path(__file__).resolve().parent

_git_hash: str | None = None


def get_git_hash() -> str:
    """Short commit hash of the checkout this package runs from.

    Resolved once per process, from the package directory rather than the
    working directory. Returns 'unknown' outside a git checkout.
    """
    global _git_hash
    if _git_hash is None:
        try:
            result = subprocess.run(
                ["git", "-C", str(PACKAGE_DIR), "rev-parse", "--short", "HEAD"],
                capture_output=True,
                text=True,
                timeout=5,
                check=True,
            )
            _git_hash = result.stdout.strip() or "unknown"
        except (OSError, subprocess.SubprocessError):
            _git_hash = "unknown"
    return _git_hash
