"""Request-facing operations over the documentation registry and cache."""

import logging
from functools import partial
from typing import Any

from mcp_nextjs_documentation.cache import ResultCache
from mcp_nextjs_documentation.config import Settings
from mcp_nextjs_documentation.models import Document, DocumentStats
from mcp_nextjs_documentation.registry import FileSnapshotStore, VersionRegistry
from mcp_nextjs_documentation.versions import detect_doc_version

logger = logging.getLogger(__name__)


class DocumentationService:
    """Search, retrieval and statistics for callers such as a tool server.

    Input validation (non-empty query, limit bounds, known categories) is
    the caller's job.
    """

    def __init__(self, registry: VersionRegistry, cache: ResultCache) -> None:
        """Initialise service.

        Args:
            registry: Per-version engine registry.
            cache: Search result cache.
        """
        self.registry = registry
        self.cache = cache

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentationService":
        """Wire the snapshot store, version detector, registry and cache.

        Args:
            settings: Runtime settings.

        Returns:
            DocumentationService instance.
        """
        registry = VersionRegistry(
            FileSnapshotStore(settings.data_dir),
            detector=partial(detect_doc_version, None),
            default_version=settings.default_version,
        )
        return cls(registry, ResultCache.from_url(settings.redis_url, settings.cache_ttl))

    def search(
        self,
        query: str,
        version: str | None = None,
        category: str | None = None,
        limit: int = 10,
        include_code_examples: bool = True,
    ) -> list[dict[str, Any]]:
        """Search a documentation version, consulting the cache first.

        Args:
            query: Non-empty search query.
            version: Version label; detected or defaulted when omitted.
            category: Optional category filter.
            limit: Maximum number of results.
            include_code_examples: Keep code blocks in results.

        Returns:
            Serialised search results, best first.

        Raises:
            DocumentationUnavailableError: If the version has no snapshot.
        """
        label = self.registry.resolve_version(version)
        engine = self.registry.ensure_loaded(label)

        key = self.cache.key(
            query,
            {
                "version": label,
                "category": category,
                "limit": limit,
                "includeCodeExamples": include_code_examples,
            },
        )
        lookup = self.cache.get(key)
        if lookup.hit:
            logger.debug("Cache hit for %s", key)
            return lookup.payload

        # The engine is already scoped to the label, so no version filter here.
        results = engine.search(
            query,
            category=category,
            limit=limit,
            include_code_examples=include_code_examples,
        )
        payload = [result.to_dict() for result in results]
        self.cache.set(key, payload)
        return payload

    def get_document(self, doc_id: str, version: str | None = None) -> Document | None:
        """Retrieve a document by id.

        Args:
            doc_id: Document identifier.
            version: Version label; detected or defaulted when omitted.

        Returns:
            Document instance or None if not found.

        Raises:
            DocumentationUnavailableError: If the version has no snapshot.
        """
        return self.registry.ensure_loaded(version).get_document(doc_id)

    def get_stats(self, version: str | None = None) -> DocumentStats:
        """Summarise a documentation version.

        Args:
            version: Version label; detected or defaulted when omitted.

        Returns:
            DocumentStats instance.

        Raises:
            DocumentationUnavailableError: If the version has no snapshot.
        """
        return self.registry.ensure_loaded(version).get_stats()
