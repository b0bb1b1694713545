from __future__ import annotations

import os
import subprocess
from datetime import datetime, timezone
from functools import lru_cache
from importlib import metadata
from typing import Optional

DISTRIBUTION_NAME = "propertyhub"
UNKNOWN = "unknown"


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _git_head() -> str:
    try:
        output = subprocess.run(
            ["git", "rev-parse", "--short=12", "HEAD"],
            capture_output=True,
            check=True,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return UNKNOWN
    return output.stdout.strip() or UNKNOWN


def _package_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@lru_cache
def get_version_info() -> dict[str, str]:
    """Build metadata for ``/system/version``; env vars win over local discovery."""
    return {
        "version": _package_version(),
        "gitSha": _first_env("GIT_SHA") or _git_head(),
        "buildTime": _first_env("BUILD_TIME") or datetime.now(timezone.utc).isoformat(),
        "env": _first_env("APP_ENV", "ENV") or UNKNOWN,
    }
