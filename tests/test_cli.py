"""Tests for the command line interface."""

import logging
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from mcp_nextjs_documentation import cli
from mcp_nextjs_documentation.cache import ResultCache
from mcp_nextjs_documentation.cli import _setup_logging, app

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated working directory with a small docs tree.

    The data directory is configured through the environment and Redis is
    left unconfigured.

    Returns:
        Path to the working directory.
    """
    docs = tmp_path / "docs" / "01-app"
    docs.mkdir(parents=True)
    (docs / "caching.mdx").write_text("---\ntitle: Caching\n---\n\nCaching fetched data on the server.\n")
    (docs / "routing.mdx").write_text(
        "# Routing\n\nDefine routes with folders.\n\n## Dynamic Routes\n\n"
        "```tsx\nexport default function Page() {}\n```\n"
    )

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "console", Console(width=200))
    monkeypatch.setenv("NEXTJS_DOCS_DATA_DIR", str(tmp_path / "data"))
    for name in ("NEXTJS_DOCS_REDIS_URL", "REDIS_URL", "KV_URL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_build(workspace: Path) -> None:
    """Test building the default snapshot into the configured data directory."""
    result = runner.invoke(app, ["build", "docs"])

    assert result.exit_code == 0
    assert "Built 2 documents" in result.output
    assert (workspace / "data" / "docs-metadata.json").is_file()
    assert (workspace / "data" / "build-stats.json").is_file()


def test_build_with_label_and_output(workspace: Path) -> None:
    """Test a labelled build into an explicit output directory."""
    result = runner.invoke(app, ["build", "docs", "--output", "out", "--label", "14", "--doc-version", "14.2.0"])

    assert result.exit_code == 0
    assert (workspace / "out" / "docs-metadata-v14.json").is_file()


def test_build_empty_corpus(workspace: Path) -> None:
    """Test an empty docs tree fails with exit code 1."""
    (workspace / "empty").mkdir()

    result = runner.invoke(app, ["build", "empty"])

    assert result.exit_code == 1
    assert "No documentation files found" in result.output


def test_search(workspace: Path) -> None:
    """Test searching a built snapshot."""
    runner.invoke(app, ["build", "docs"])

    result = runner.invoke(app, ["search", "caching"])

    assert result.exit_code == 0
    assert "Caching" in result.output
    assert "high" in result.output


def test_search_no_results(workspace: Path) -> None:
    """Test the message for queries without results."""
    runner.invoke(app, ["build", "docs"])

    result = runner.invoke(app, ["search", "nonexistent"])

    assert result.exit_code == 0
    assert "No results found for 'nonexistent'." in result.output


def test_search_without_snapshot(workspace: Path) -> None:
    """Test searching before any build fails with exit code 1."""
    result = runner.invoke(app, ["search", "caching"])

    assert result.exit_code == 1
    assert "Documentation not available" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["search", "caching", "--category", "unknown"],
        ["search", "   "],
        ["search", "caching", "--limit", "0"],
        ["search", "caching", "--limit", "51"],
        ["search", "caching", "--version", "12"],
        ["stats", "--version", "v15"],
        ["show", "01-app-routing", "--version", "nightly"],
    ],
)
def test_invalid_arguments(workspace: Path, args: list[str]) -> None:
    """Test invalid command arguments are usage errors."""
    result = runner.invoke(app, args)

    assert result.exit_code == 2


def test_download_unknown_label(workspace: Path) -> None:
    """Test an unknown release label is a usage error."""
    result = runner.invoke(app, ["download", "12"])

    assert result.exit_code == 2


def test_stats(workspace: Path) -> None:
    """Test document statistics output."""
    runner.invoke(app, ["build", "docs", "--doc-version", "15.1.8"])

    result = runner.invoke(app, ["stats"])

    assert result.exit_code == 0
    assert "Total documents: 2" in result.output
    assert "15.1.8" in result.output


def test_stats_verbose_logs_snapshot_load(workspace: Path) -> None:
    """Test verbose stats configures logging before the snapshot loads."""
    runner.invoke(app, ["build", "docs"])

    with patch("mcp_nextjs_documentation.cli.logging.basicConfig") as basic_config:
        result = runner.invoke(app, ["stats", "--verbose"])

    assert result.exit_code == 0
    assert basic_config.call_args.kwargs["level"] == logging.DEBUG


def test_show(workspace: Path) -> None:
    """Test printing a full document with code examples and outline."""
    runner.invoke(app, ["build", "docs", "--doc-version", "15.1.8"])

    result = runner.invoke(app, ["show", "01-app-routing"])

    assert result.exit_code == 0
    assert "# Routing" in result.output
    assert "**Category:** app-router | **Version:** 15.1.8" in result.output
    assert "**URL:** https://nextjs.org/docs/app/routing" in result.output
    assert "## Content\nRouting Define routes with folders. Dynamic Routes\n" in result.output
    assert "## Code Examples (1)" in result.output
    assert "### Example 1 (tsx)\n```tsx\nexport default function Page() {}\n```" in result.output
    assert "## Table of Contents\n- Routing\n  - Dynamic Routes\n" in result.output


def test_show_without_code_or_headings(workspace: Path) -> None:
    """Test optional sections are left out when the page has none."""
    runner.invoke(app, ["build", "docs"])

    result = runner.invoke(app, ["show", "01-app-caching"])

    assert result.exit_code == 0
    assert "# Caching" in result.output
    assert "Code Examples" not in result.output
    assert "Table of Contents" not in result.output


def test_show_unknown_document(workspace: Path) -> None:
    """Test an unknown id fails with exit code 1."""
    runner.invoke(app, ["build", "docs"])

    result = runner.invoke(app, ["show", "missing-page"])

    assert result.exit_code == 1
    assert "Document not found: missing-page" in result.output


def test_show_without_snapshot(workspace: Path) -> None:
    """Test showing a page before any build fails with exit code 1."""
    result = runner.invoke(app, ["show", "01-app-routing", "--version", "14"])

    assert result.exit_code == 1
    assert "Documentation not available" in result.output


def test_clear_cache(workspace: Path, redis_backend: Any) -> None:
    """Test deleting cached search entries only."""
    redis_backend.data.update({"search:routing:": "{}", "search:caching:": "{}", "other:key": "x"})

    with patch("mcp_nextjs_documentation.cli.ResultCache.from_url", return_value=ResultCache(redis_backend)):
        result = runner.invoke(app, ["clear-cache"])

    assert result.exit_code == 0
    assert "Deleted 2 cached entries" in result.output
    assert list(redis_backend.data) == ["other:key"]


def test_clear_cache_without_redis(workspace: Path) -> None:
    """Test clearing fails with exit code 1 when Redis is not configured."""
    result = runner.invoke(app, ["clear-cache"])

    assert result.exit_code == 1
    assert "nothing to clear" in result.output


def test_stats_without_snapshot(workspace: Path) -> None:
    """Test statistics before any build fails with exit code 1."""
    result = runner.invoke(app, ["stats", "--version", "13"])

    assert result.exit_code == 1


@pytest.mark.parametrize(("verbose", "level"), [(True, logging.DEBUG), (False, logging.INFO)])
def test_setup_logging(verbose: bool, level: int) -> None:
    """Test the log level follows the verbose flag."""
    with patch("mcp_nextjs_documentation.cli.logging.basicConfig") as basic_config:
        _setup_logging(verbose)

    assert basic_config.call_args.kwargs["level"] == level
