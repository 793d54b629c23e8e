"""Corpus loader and snapshot builder for Next.js documentation from vercel/next.js."""

import json
import logging
import os
import subprocess
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path

from mcp_nextjs_documentation.errors import CorpusEmptyError
from mcp_nextjs_documentation.models import BuildStats, Document
from mcp_nextjs_documentation.parser import DOCUMENT_EXTENSIONS, DocumentParser
from mcp_nextjs_documentation.versions import versioned_docs_base_url

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_NAME = "docs-metadata.json"
DEFAULT_STATS_NAME = "build-stats.json"


def snapshot_filename(label: str | None = None) -> str:
    """Return the snapshot file name for a version label (default when None)."""
    return f"docs-metadata-v{label}.json" if label else DEFAULT_SNAPSHOT_NAME


def stats_filename(label: str | None = None) -> str:
    """Return the build-stats file name for a version label (default when None)."""
    return f"build-stats-v{label}.json" if label else DEFAULT_STATS_NAME


def find_document_files(root: Path) -> list[Path]:
    """Recursively list Markdown and MDX files.

    Directories that cannot be listed are skipped.

    Args:
        root: Directory to scan.

    Returns:
        Sorted list of document file paths.
    """
    files = []
    for dirpath, _dirnames, filenames in os.walk(root):
        files.extend(Path(dirpath) / name for name in filenames if name.endswith(DOCUMENT_EXTENSIONS))
    return sorted(files)


class NextjsDocsIndexer:
    """Builds documentation snapshots from the vercel/next.js GitHub repository."""

    NEXTJS_REPO = "https://github.com/vercel/next.js.git"
    DOCS_PATH = "docs"

    # Version label -> (git ref, release recorded on documents)
    RELEASES: dict[str, tuple[str, str]] = {
        "latest": ("canary", "16.0.1"),
        "16": ("canary", "16.0.1"),
        "15": ("v15.1.8", "15.1.8"),
        "14": ("v14.2.0", "14.2.0"),
        "13": ("v13.5.0", "13.5.0"),
    }

    def __init__(self, parser: DocumentParser | None = None) -> None:
        """Initialise indexer.

        Args:
            parser: Parser used for every file. Defaults to a parser for the
                latest documentation URLs.
        """
        self.parser = parser or DocumentParser()

    def load_corpus(self, docs_path: Path, version: str = "latest") -> list[Document]:
        """Parse every document under a directory.

        Files that fail to parse are logged and skipped.

        Args:
            docs_path: Root of the documentation tree.
            version: Version recorded on each document.

        Returns:
            Successfully parsed documents.
        """
        files = find_document_files(docs_path)
        logger.info("Found %d documentation files in %s", len(files), docs_path)

        documents = []
        for file_path in files:
            document = self.parser.parse_file(file_path, docs_path, version)
            if document:
                documents.append(document)
                logger.debug("Parsed: %s", document.path)
            else:
                logger.warning("Failed to parse: %s", file_path)

        logger.info("Successfully parsed %d documents", len(documents))
        return documents

    def build_snapshot(
        self,
        docs_path: Path,
        output_dir: Path,
        version: str = "latest",
        label: str | None = None,
    ) -> BuildStats:
        """Parse a documentation tree and write its snapshot and build stats.

        Args:
            docs_path: Root of the documentation tree.
            output_dir: Directory receiving the JSON files.
            version: Version recorded on each document.
            label: Version label for the file names; None writes the default snapshot.

        Returns:
            BuildStats for the written snapshot.

        Raises:
            CorpusEmptyError: If no document could be parsed.
        """
        started = time.monotonic()
        documents = self.load_corpus(docs_path, version)
        if not documents:
            raise CorpusEmptyError(docs_path)

        categories: dict[str, int] = {}
        for document in documents:
            categories[document.category] = categories.get(document.category, 0) + 1

        stats = BuildStats(
            total_docs=len(documents),
            total_code_examples=sum(len(d.code_blocks) for d in documents),
            categories=categories,
            version=version,
            build_date=datetime.now(timezone.utc).isoformat(),
            build_duration=f"{time.monotonic() - started:.2f}s",
        )

        output_dir.mkdir(parents=True, exist_ok=True)
        snapshot_path = output_dir / snapshot_filename(label)
        snapshot_path.write_text(json.dumps([d.to_dict() for d in documents], indent=2), encoding="utf-8")
        (output_dir / stats_filename(label)).write_text(json.dumps(stats.to_dict(), indent=2), encoding="utf-8")

        logger.info("Wrote %d documents to %s", stats.total_docs, snapshot_path)
        return stats

    def index_from_git(self, label: str, output_dir: Path, shallow: bool = True) -> BuildStats:
        """Clone the docs for a release and build its snapshot.

        Args:
            label: Version label, one of ``RELEASES``.
            output_dir: Directory receiving the JSON files.
            shallow: Whether to do a shallow sparse clone.

        Returns:
            BuildStats for the written snapshot.

        Raises:
            ValueError: If the label has no known release.
        """
        if label not in self.RELEASES:
            msg = f"Unknown documentation version: {label}"
            raise ValueError(msg)

        ref, release = self.RELEASES[label]
        parser = DocumentParser(base_url=versioned_docs_base_url(label, self.parser.base_url))
        with tempfile.TemporaryDirectory() as temp_dir:
            repo_path = Path(temp_dir) / "next.js"
            self._clone_repository(repo_path, ref, shallow)
            return NextjsDocsIndexer(parser).build_snapshot(
                repo_path / self.DOCS_PATH, output_dir, version=release, label=label
            )

    def _clone_repository(self, target_path: Path, branch: str, shallow: bool) -> None:
        """Clone the vercel/next.js repository.

        Args:
            target_path: Directory to clone into.
            branch: Git branch or tag to clone.
            shallow: Whether to do a shallow clone.
        """
        cmd = ["git", "clone"]
        if shallow:
            cmd.extend(["--depth", "1", "--filter=blob:none", "--sparse"])
        cmd.extend(["--branch", branch, self.NEXTJS_REPO, str(target_path)])

        logger.info("Cloning vercel/next.js at %s...", branch)
        subprocess.run(cmd, check=True, capture_output=True)  # noqa: S603

        # For sparse checkout, specify only the docs directory
        if shallow:
            logger.info("Setting up sparse checkout for docs directory...")
            subprocess.run(  # noqa: S603
                ["git", "-C", str(target_path), "sparse-checkout", "set", self.DOCS_PATH],  # noqa: S607
                check=True,
                capture_output=True,
            )

        logger.info("Repository cloned successfully")
