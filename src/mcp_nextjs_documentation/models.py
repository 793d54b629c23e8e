"""Data models for Next.js documentation."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

CATEGORIES: dict[str, str] = {
    "app-router": "App Router",
    "pages-router": "Pages Router",
    "api-reference": "API Reference",
    "architecture": "Architecture",
    "community": "Community",
}

DEFAULT_CATEGORY = "app-router"

Relevance = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class DocumentHeading:
    """A heading in the document outline."""

    level: int
    text: str
    slug: str


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code example extracted from a page."""

    language: str
    code: str
    context: str | None = None


@dataclass(frozen=True)
class DocumentMetadata:
    """Metadata extracted from front-matter and the document tree."""

    title: str
    description: str


@dataclass(frozen=True)
class Document:
    """Represents a documentation page."""

    id: str
    path: str
    title: str
    description: str
    category: str
    version: str
    content: str
    excerpt: str
    url: str
    headings: tuple[DocumentHeading, ...] = ()
    code_blocks: tuple[CodeBlock, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Build a document from a snapshot record.

        Snapshot records use the camelCase ``codeBlocks`` key. Optional
        fields missing from the record fall back to empty values.

        Args:
            data: Decoded JSON object.

        Returns:
            Document instance.

        Raises:
            KeyError: If ``id`` is missing.
        """
        headings = tuple(
            DocumentHeading(level=int(h["level"]), text=h["text"], slug=h.get("slug", ""))
            for h in data.get("headings") or []
        )
        code_blocks = tuple(
            CodeBlock(
                language=block.get("language") or "text",
                code=block.get("code", ""),
                context=block.get("context") or None,
            )
            for block in data.get("codeBlocks") or []
        )
        return cls(
            id=data["id"],
            path=data.get("path", ""),
            title=data.get("title") or "Untitled",
            description=data.get("description") or "",
            category=data.get("category") or DEFAULT_CATEGORY,
            version=data.get("version") or "",
            content=data.get("content") or "",
            excerpt=data.get("excerpt") or "",
            url=data.get("url") or "",
            headings=headings,
            code_blocks=code_blocks,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the snapshot record format.

        Returns:
            JSON-ready dictionary.
        """
        return {
            "id": self.id,
            "path": self.path,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "version": self.version,
            "headings": [asdict(h) for h in self.headings],
            "codeBlocks": [asdict(b) for b in self.code_blocks],
            "content": self.content,
            "excerpt": self.excerpt,
            "url": self.url,
        }


@dataclass(frozen=True)
class IndexHit:
    """A candidate returned by the full-text index."""

    doc_id: str
    field: str


@dataclass
class SearchMatch:
    """A field-level match with surrounding context."""

    field: str
    text: str
    context: str


@dataclass
class SearchResult:
    """Represents a search result."""

    document: Document
    score: float
    matches: list[SearchMatch]
    relevance: Relevance

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-ready dictionary."""
        return {
            "doc": self.document.to_dict(),
            "score": self.score,
            "matches": [asdict(m) for m in self.matches],
            "relevance": self.relevance,
        }


@dataclass
class DocumentStats:
    """Summary of the documents held by one index."""

    total_documents: int
    categories: dict[str, int] = field(default_factory=dict)
    versions: list[str] = field(default_factory=list)


@dataclass
class BuildStats:
    """Summary written next to a snapshot by the build step."""

    total_docs: int
    total_code_examples: int
    categories: dict[str, int]
    version: str
    build_date: str
    build_duration: str

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the build-stats file format."""
        return {
            "totalDocs": self.total_docs,
            "totalCodeExamples": self.total_code_examples,
            "categories": self.categories,
            "version": self.version,
            "buildDate": self.build_date,
            "buildDuration": self.build_duration,
        }
