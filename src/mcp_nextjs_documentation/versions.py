"""Next.js version detection and documentation version mapping."""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

AVAILABLE_VERSIONS = ("13", "14", "15", "16", "latest")

NEXTJS_DOCS_BASE_URL = "https://nextjs.org/docs"

_SEMVER = re.compile(r"(\d+)\.(\d+)\.(\d+)")


@dataclass(frozen=True)
class VersionInfo:
    """Next.js version declared by a project."""

    next_version: str
    major: int
    minor: int
    patch: int
    is_canary: bool


def detect_framework_version(project_path: Path | None = None) -> VersionInfo | None:
    """Read the Next.js version range declared in a project's package.json.

    Args:
        project_path: Project root. Defaults to the current directory.

    Returns:
        VersionInfo instance or None if no parseable ``next`` dependency exists.
    """
    package_json = (project_path or Path.cwd()) / "package.json"
    try:
        package = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("No readable package.json at %s: %s", package_json, exc)
        return None

    if not isinstance(package, dict):
        return None

    declared = (package.get("dependencies") or {}).get("next") or (package.get("devDependencies") or {}).get("next")
    if not isinstance(declared, str):
        return None

    match = _SEMVER.search(declared)
    if not match:
        return None

    major, minor, patch = (int(part) for part in match.groups())
    return VersionInfo(
        next_version=re.sub(r"[^0-9.-]", "", declared),
        major=major,
        minor=minor,
        patch=patch,
        is_canary="canary" in declared,
    )


def doc_version_for(info: VersionInfo) -> str:
    """Map a Next.js version to the documentation version label.

    Args:
        info: Detected version.

    Returns:
        One of ``AVAILABLE_VERSIONS``.
    """
    if info.is_canary:
        return "latest"
    if info.major >= 16:
        return "16"
    if info.major in (13, 14, 15):
        return str(info.major)
    return "13"


def detect_doc_version(project_path: Path | None = None) -> str | None:
    """Detect the documentation version for a project.

    Args:
        project_path: Project root. Defaults to the current directory.

    Returns:
        Version label, or None when the project declares no Next.js version.
    """
    info = detect_framework_version(project_path)
    if info is None:
        return None
    label = doc_version_for(info)
    logger.info("Detected Next.js %s, using %s documentation", info.next_version, label)
    return label


def is_version_supported(version: str) -> bool:
    """Return whether documentation exists for a version label."""
    return version in AVAILABLE_VERSIONS


def versioned_docs_base_url(version: str, base_url: str = NEXTJS_DOCS_BASE_URL) -> str:
    """Return the documentation root URL for a version label.

    Args:
        version: Version label.
        base_url: Site documentation root.

    Returns:
        Root URL; the latest docs live at the unversioned root.
    """
    if version in ("latest", "16"):
        return base_url
    return f"{base_url}/{version}"
