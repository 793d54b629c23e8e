"""Search engine and relevance ranking for Next.js documentation."""

import dataclasses
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

import yaml

from mcp_nextjs_documentation.database import FullTextIndex, SearchIndex
from mcp_nextjs_documentation.models import (
    Document,
    DocumentStats,
    Relevance,
    SearchMatch,
    SearchResult,
)

logger = logging.getLogger(__name__)

SYNONYMS_PATH = Path(__file__).with_name("synonyms.yaml")

FIELD_BOOSTS = {"title": 1.5, "description": 1.2}

SNIPPET_RADIUS = 50


def load_synonyms(path: Path | None = None) -> dict[str, tuple[str, ...]]:
    """Load the query expansion table.

    Args:
        path: YAML file mapping a term to its equivalent phrases. Defaults
            to the table bundled with the package.

    Returns:
        Mapping of lowercase term to replacement phrases, in file order.

    Raises:
        ValueError: If the file is not a mapping of strings to lists.
    """
    source = path or SYNONYMS_PATH
    data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        msg = f"Synonym table must be a mapping: {source}"
        raise ValueError(msg)

    synonyms = {}
    for key, values in data.items():
        if not isinstance(values, list):
            msg = f"Synonyms for {key!r} must be a list: {source}"
            raise ValueError(msg)
        synonyms[str(key).lower()] = tuple(str(value) for value in values)
    return synonyms


def expand_query(query: str, synonyms: Mapping[str, Sequence[str]]) -> list[str]:
    """Build the ordered list of query variants.

    The literal query always comes first. Each synonym key contained in the
    lowercased query adds one variant per replacement phrase. Queries longer
    than three words also get a reduced variant of up to three words longer
    than three characters.

    Args:
        query: Literal user query.
        synonyms: Query expansion table.

    Returns:
        Unique query variants, literal query first.
    """
    variants = [query]
    lower_query = query.lower()

    for key, values in synonyms.items():
        if key not in lower_query:
            continue
        for synonym in values:
            expanded = lower_query.replace(key, synonym, 1)
            if expanded not in variants:
                variants.append(expanded)

    words = lower_query.split()
    if len(words) > 3:
        important = [word for word in words if len(word) > 3][:3]
        reduced = " ".join(important)
        if important and reduced not in variants:
            variants.append(reduced)

    return variants


def calculate_score(query: str, document: Document, field: str) -> float:
    """Score a document against the literal query.

    Args:
        query: Literal user query.
        document: Candidate document.
        field: Index field that produced the candidate.

    Returns:
        Relevance score; title and description hits are boosted.
    """
    query_lower = query.lower()
    tokens = query_lower.split()
    title = document.title.lower()
    content = document.content.lower()

    score = 0.0
    if query_lower in title:
        score += 100
    score += 20 * sum(1 for token in tokens if token in title)

    if query_lower in content:
        score += 50
    for token in tokens:
        score += 2 * len(re.findall(re.escape(token), document.content, re.IGNORECASE))

    if query_lower in document.description.lower():
        score += 30

    return score * FIELD_BOOSTS.get(field, 1.0)


def determine_relevance(score: float) -> Relevance:
    """Bucket a score into high, medium or low relevance."""
    if score >= 100:
        return "high"
    if score >= 50:
        return "medium"
    return "low"


def extract_matches(query: str, document: Document) -> list[SearchMatch]:
    """Extract highlighted title and content snippets for the query.

    Args:
        query: Literal user query.
        document: Matched document.

    Returns:
        Title match (if any) followed by the first content match (if any).
    """
    matches = []
    query_lower = query.lower()

    if query_lower in document.title.lower():
        matches.append(SearchMatch(field="title", text=document.title, context=document.title))

    content = document.content
    index = content.lower().find(query_lower)
    if index != -1:
        start = max(0, index - SNIPPET_RADIUS)
        end = min(len(content), index + len(query) + SNIPPET_RADIUS)
        context = content[start:end]
        if start > 0:
            context = "..." + context
        if end < len(content):
            context = context + "..."
        matches.append(SearchMatch(field="content", text=content[index : index + len(query)], context=context))

    return matches


class DocumentSearchEngine:
    """Document store plus full-text index for one documentation version."""

    def __init__(
        self,
        index: SearchIndex | None = None,
        synonyms: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        """Initialise an empty engine.

        Args:
            index: Full-text index implementation. Defaults to FullTextIndex.
            synonyms: Query expansion table. Defaults to the bundled table.
        """
        self.index = index if index is not None else FullTextIndex()
        self.synonyms = synonyms if synonyms is not None else load_synonyms()
        self._documents: dict[str, Document] = {}

    def add_document(self, document: Document) -> None:
        """Insert or replace a document.

        Args:
            document: Document to store and index.
        """
        self._documents[document.id] = document
        self.index.add(document)

    def add_documents(self, documents: Iterable[Document]) -> None:
        """Insert or replace many documents.

        Args:
            documents: Documents to store and index.
        """
        for document in documents:
            self.add_document(document)

    def get_document(self, doc_id: str) -> Document | None:
        """Retrieve a document by id.

        Args:
            doc_id: Document identifier.

        Returns:
            Document instance or None if not found.
        """
        return self._documents.get(doc_id)

    def get_all_documents(self) -> list[Document]:
        """Return every stored document in insertion order."""
        return list(self._documents.values())

    def get_stats(self) -> DocumentStats:
        """Summarise stored documents by category and version.

        Returns:
            DocumentStats instance.
        """
        categories: dict[str, int] = {}
        versions: list[str] = []
        for document in self._documents.values():
            categories[document.category] = categories.get(document.category, 0) + 1
            if document.version not in versions:
                versions.append(document.version)
        return DocumentStats(total_documents=len(self._documents), categories=categories, versions=versions)

    def search(
        self,
        query: str,
        version: str | None = None,
        category: str | None = None,
        limit: int = 10,
        include_code_examples: bool = True,
    ) -> list[SearchResult]:
        """Search documents.

        Args:
            query: Search query string; must be non-empty.
            version: Optional version filter.
            category: Optional category filter.
            limit: Maximum number of results.
            include_code_examples: Keep code blocks on returned documents.

        Returns:
            List of SearchResult instances ordered by descending score.
        """
        variants = expand_query(query, self.synonyms)

        candidates = []
        for variant in variants:
            candidates.extend(self.index.search(variant, limit * 2))
            # Expansions are only consulted when the literal query finds nothing.
            if candidates and variant == query:
                break

        logger.debug("Query %r: %d variants, %d candidates", query, len(variants), len(candidates))

        results: list[SearchResult] = []
        seen: set[str] = set()
        for hit in candidates:
            if len(results) >= limit:
                break
            if hit.doc_id in seen:
                continue
            document = self._documents.get(hit.doc_id)
            if document is None:
                continue
            if version and document.version != version:
                continue
            if category and document.category != category:
                continue
            seen.add(hit.doc_id)

            score = calculate_score(query, document, hit.field)
            if not include_code_examples:
                document = dataclasses.replace(document, code_blocks=())
            results.append(
                SearchResult(
                    document=document,
                    score=score,
                    matches=extract_matches(query, document),
                    relevance=determine_relevance(score),
                )
            )

        results.sort(key=lambda result: result.score, reverse=True)
        return results[:limit]
