"""Version reporting for the --version flag.

Prefers the installed distribution's metadata and appends the short git
commit when running from a source checkout, so editable installs still say
which code is running.
"""

import os
import subprocess
from importlib import metadata

PACKAGE_NAME = "stepgen"
FALLBACK_VERSION = "0.1.0"

_SOURCE_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _git_commit() -> str | None:
    """Short HEAD hash of the source checkout, or None outside a git repo."""
    try:
        result = subprocess.run(
            ["git", "-C", _SOURCE_ROOT, "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def package_version() -> str:
    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return FALLBACK_VERSION


def get_version() -> str:
    """Return a version string like '0.1.0' or '0.1.0 (g3a7f2c1)'."""
    commit = _git_commit()
    if commit:
        return f"{package_version()} (g{commit})"
    return package_version()
