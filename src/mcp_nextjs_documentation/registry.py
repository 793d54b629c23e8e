"""Per-version index registry backed by JSON snapshots."""

import json
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from mcp_nextjs_documentation.database import FullTextIndex, SearchIndex
from mcp_nextjs_documentation.errors import DocumentationUnavailableError
from mcp_nextjs_documentation.indexer import snapshot_filename, stats_filename
from mcp_nextjs_documentation.models import Document
from mcp_nextjs_documentation.search import DocumentSearchEngine, load_synonyms

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    """Source of persisted document snapshots."""

    def load(self, version: str) -> list[dict[str, Any]] | None:
        """Return the snapshot records for a version, or None if not found."""

    def load_build_stats(self, version: str) -> dict[str, Any] | None:
        """Return the build summary for a version, or None if not found."""


class FileSnapshotStore:
    """Reads ``docs-metadata[-v<label>].json`` files from a data directory."""

    def __init__(self, data_dir: Path) -> None:
        """Initialise store.

        Args:
            data_dir: Directory holding snapshot and build-stats files.
        """
        self.data_dir = data_dir

    def _read_json(self, path: Path) -> Any | None:
        """Read a JSON file, returning None if it is missing or invalid."""
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable snapshot file %s: %s", path, exc)
            return None

    def _first_readable(self, names: list[str], expected: type) -> Any | None:
        """Return the first file's data that parses to the expected type."""
        for name in names:
            data = self._read_json(self.data_dir / name)
            if isinstance(data, expected):
                logger.debug("Using %s", name)
                return data
        return None

    def load(self, version: str) -> list[dict[str, Any]] | None:
        """Load the version snapshot, falling back to the default snapshot.

        Args:
            version: Version label.

        Returns:
            Snapshot records or None if neither file can be read.
        """
        return self._first_readable([snapshot_filename(version), snapshot_filename()], list)

    def load_build_stats(self, version: str) -> dict[str, Any] | None:
        """Load the version build stats, falling back to the default file.

        Args:
            version: Version label.

        Returns:
            Build-stats object or None if neither file can be read.
        """
        return self._first_readable([stats_filename(version), stats_filename()], dict)


class VersionRegistry:
    """Maps version labels to lazily loaded search engines."""

    def __init__(
        self,
        store: SnapshotStore,
        detector: Callable[[], str | None] | None = None,
        default_version: str = "latest",
        index_factory: Callable[[], SearchIndex] = FullTextIndex,
    ) -> None:
        """Initialise registry.

        Args:
            store: Snapshot source.
            detector: Returns the project's version label, or None if unknown.
            default_version: Label used when no version is requested or detected.
            index_factory: Creates an empty index for each loaded version.
        """
        self.store = store
        self.detector = detector
        self.default_version = default_version
        self.index_factory = index_factory
        self._synonyms = load_synonyms()
        self._engines: dict[str, DocumentSearchEngine] = {}
        self._lock = threading.Lock()
        self._version_locks: dict[str, threading.Lock] = {}

    @property
    def loaded_versions(self) -> list[str]:
        """Version labels loaded so far."""
        with self._lock:
            return list(self._engines)

    def is_loaded(self, version: str) -> bool:
        """Return whether a version label has been loaded."""
        with self._lock:
            return version in self._engines

    def resolve_version(self, version: str | None = None) -> str:
        """Resolve the label to serve.

        Args:
            version: Requested label, if any.

        Returns:
            The requested label, else the detected label, else the default.
        """
        if version:
            return version
        if self.detector is not None:
            detected = self.detector()
            if detected:
                return detected
        return self.default_version

    def ensure_loaded(self, version: str | None = None) -> DocumentSearchEngine:
        """Return the engine for a version, loading its snapshot on first use.

        Concurrent callers for the same unloaded version wait for a single
        load and share its engine.

        Args:
            version: Requested label; resolved via the detector when omitted.

        Returns:
            Loaded DocumentSearchEngine.

        Raises:
            DocumentationUnavailableError: If no snapshot can be read.
        """
        label = self.resolve_version(version)

        with self._lock:
            engine = self._engines.get(label)
            if engine is not None:
                return engine
            version_lock = self._version_locks.setdefault(label, threading.Lock())

        with version_lock:
            with self._lock:
                engine = self._engines.get(label)
            if engine is not None:
                return engine

            engine = self._load(label)
            with self._lock:
                self._engines[label] = engine
            return engine

    def _load(self, label: str) -> DocumentSearchEngine:
        """Build an engine from the snapshot for a label.

        Args:
            label: Version label.

        Returns:
            Populated DocumentSearchEngine.

        Raises:
            DocumentationUnavailableError: If no snapshot can be read.
        """
        records = self.store.load(label)
        if records is None:
            raise DocumentationUnavailableError(label)

        try:
            documents = [Document.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error("Malformed snapshot for %s: %s", label, exc)
            raise DocumentationUnavailableError(label) from exc

        engine = DocumentSearchEngine(index=self.index_factory(), synonyms=self._synonyms)
        engine.add_documents(documents)

        count = len(engine.get_all_documents())
        build_stats = self.store.load_build_stats(label)
        if build_stats:
            logger.info("Snapshot for %s built at %s", label, build_stats.get("buildDate", "unknown"))
            expected = build_stats.get("totalDocs")
            if expected is not None and expected != count:
                logger.warning("Build stats for %s list %s documents but %d were loaded", label, expected, count)

        logger.info("Loaded %d documents for version %s", count, label)
        return engine
