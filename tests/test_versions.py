"""Tests for Next.js version detection."""

import json
from pathlib import Path

import pytest

from mcp_nextjs_documentation.versions import (
    VersionInfo,
    detect_doc_version,
    detect_framework_version,
    doc_version_for,
    is_version_supported,
    versioned_docs_base_url,
)


def write_package_json(project: Path, package: object) -> None:
    """Write a package.json into a project directory."""
    project.joinpath("package.json").write_text(json.dumps(package), encoding="utf-8")


def test_detect_framework_version(tmp_path: Path) -> None:
    """Test parsing a caret range from dependencies."""
    write_package_json(tmp_path, {"dependencies": {"next": "^15.1.8", "react": "19.0.0"}})

    info = detect_framework_version(tmp_path)

    assert info == VersionInfo(next_version="15.1.8", major=15, minor=1, patch=8, is_canary=False)


def test_detect_framework_version_dev_dependency(tmp_path: Path) -> None:
    """Test a canary release declared as a dev dependency."""
    write_package_json(tmp_path, {"devDependencies": {"next": "16.1.0-canary.3"}})

    info = detect_framework_version(tmp_path)

    assert info is not None
    assert info.major == 16
    assert info.is_canary


@pytest.mark.parametrize(
    "package",
    [
        {"dependencies": {"react": "19.0.0"}},
        {"dependencies": {"next": "latest"}},
        {"dependencies": {"next": 15}},
        ["not", "an", "object"],
    ],
)
def test_detect_framework_version_unusable(tmp_path: Path, package: object) -> None:
    """Test packages without a parseable next dependency."""
    write_package_json(tmp_path, package)

    assert detect_framework_version(tmp_path) is None


def test_detect_framework_version_missing_file(tmp_path: Path) -> None:
    """Test a project without package.json."""
    assert detect_framework_version(tmp_path) is None


def test_detect_framework_version_invalid_json(tmp_path: Path) -> None:
    """Test an unparseable package.json."""
    tmp_path.joinpath("package.json").write_text("{", encoding="utf-8")

    assert detect_framework_version(tmp_path) is None


@pytest.mark.parametrize(
    ("major", "is_canary", "expected"),
    [
        (15, True, "latest"),
        (17, False, "16"),
        (16, False, "16"),
        (15, False, "15"),
        (14, False, "14"),
        (13, False, "13"),
        (12, False, "13"),
    ],
)
def test_doc_version_for(major: int, is_canary: bool, expected: str) -> None:
    """Test mapping framework versions to documentation labels."""
    info = VersionInfo(next_version=f"{major}.0.0", major=major, minor=0, patch=0, is_canary=is_canary)

    assert doc_version_for(info) == expected


def test_detect_doc_version(tmp_path: Path) -> None:
    """Test end-to-end label detection."""
    write_package_json(tmp_path, {"dependencies": {"next": "~14.2.3"}})

    assert detect_doc_version(tmp_path) == "14"
    assert detect_doc_version(tmp_path / "elsewhere") is None


def test_is_version_supported() -> None:
    """Test supported version labels."""
    assert is_version_supported("latest")
    assert is_version_supported("13")
    assert not is_version_supported("12")


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("latest", "https://nextjs.org/docs"),
        ("16", "https://nextjs.org/docs"),
        ("15", "https://nextjs.org/docs/15"),
        ("13", "https://nextjs.org/docs/13"),
    ],
)
def test_versioned_docs_base_url(version: str, expected: str) -> None:
    """Test documentation roots per version label."""
    assert versioned_docs_base_url(version) == expected
