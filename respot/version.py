"""Version strings reported to the service and in logs."""

from __future__ import annotations

import os
import platform
import sys

SPOTIFY_VERSION_CODE = 125200442

# Filled in by the release process; empty for development builds.
VERSION = ""
COMMIT = ""

_BUILD_COMMIT_ENV = "RESPOT_BUILD_COMMIT"


def _commit_hash() -> str:
    """Return the commit hash recorded for this build, if any."""
    return os.environ.get(_BUILD_COMMIT_ENV, "")


def version_number_string() -> str:
    """Return the bare version number, a short commit hash or ``dev``."""
    if VERSION:
        return VERSION.removeprefix("v")
    if len(COMMIT) >= 8:
        return COMMIT[:8]
    commit = _commit_hash()
    if len(commit) >= 8:
        return commit[:8]
    return "dev"


def spotify_like_client_version() -> str:
    """Return a version string shaped like the official client's."""
    if not VERSION:
        return "0.0.0"
    if len(COMMIT) >= 8:
        return f"{VERSION}.g{COMMIT[:8]}"
    commit = _commit_hash()
    if len(commit) >= 8:
        return f"{VERSION}.g{commit[:8]}"
    return VERSION


def version_string() -> str:
    return f"respot {version_number_string()}"


def system_info_string() -> str:
    return (
        f"{version_string()}; Python {platform.python_version()} "
        f"({sys.platform} {platform.machine()})"
    )


def user_agent() -> str:
    return f"respot/{version_number_string()} Python/{platform.python_version()}"