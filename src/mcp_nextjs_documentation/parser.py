"""Parser for Next.js documentation Markdown and MDX files."""

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from mcp_nextjs_documentation.models import (
    DEFAULT_CATEGORY,
    CodeBlock,
    Document,
    DocumentHeading,
    DocumentMetadata,
)

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = (".md", ".mdx")

# Ordered folder markers; the first matching directory segment wins.
CATEGORY_RULES: tuple[tuple[str, str], ...] = (
    ("01-app", "app-router"),
    ("02-pages", "pages-router"),
    ("03-architecture", "architecture"),
    ("04-community", "community"),
)

_API_REFERENCE_SEGMENT = re.compile(r"^(?:\d+-)?api-reference$")
_ORDERING_PREFIX = re.compile(r"^\d+-")

_FRONT_MATTER = re.compile(r"\A\ufeff?---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_MDX_COMMENT = re.compile(r"\{/\*[\s\S]*?\*/\}")
_HTML_COMMENT = re.compile(r"<!--[\s\S]*?-->")
_TAG = re.compile(r"<[^>]+>")
_LINK = re.compile(r"!?\[([^\]]+)\]\([^)]*\)")
_MARKUP_PUNCTUATION = re.compile(r"[#*_`]")
_WHITESPACE = re.compile(r"\s+")


def clean_content(content: str) -> str:
    """Strip Markdown and MDX syntax from a document body.

    Fenced code is dropped entirely, comments and tags are removed, links
    collapse to their label and the remaining markup punctuation is
    stripped before whitespace is collapsed.

    Args:
        content: Raw document body without front-matter.

    Returns:
        Plain text suitable for lexical scoring.
    """
    content = _CODE_FENCE.sub("", content)
    content = _MDX_COMMENT.sub("", content)
    content = _HTML_COMMENT.sub("", content)
    content = _TAG.sub("", content)
    content = _LINK.sub(r"\1", content)
    content = _MARKUP_PUNCTUATION.sub("", content)
    content = _WHITESPACE.sub(" ", content)
    return content.strip()


def generate_excerpt(content: str, max_length: int = 200) -> str:
    """Build a bounded excerpt from a raw document body.

    Args:
        content: Raw document body.
        max_length: Maximum number of characters kept before the ellipsis.

    Returns:
        Cleaned prefix, cut at a word boundary and suffixed with ``...``
        when the cleaned body is longer than ``max_length``.
    """
    cleaned = clean_content(content)
    if len(cleaned) <= max_length:
        return cleaned
    truncated = cleaned[:max_length]
    if cleaned[max_length] != " " and " " in truncated:
        truncated = truncated.rsplit(" ", 1)[0]
    return truncated.rstrip() + "..."


def generate_id(relative_path: str) -> str:
    """Derive a stable document identifier from its relative path.

    Args:
        relative_path: Path relative to the corpus root.

    Returns:
        Identifier such as ``01-app-01-getting-started-01-installation``.
    """
    doc_id = re.sub(r"\.mdx?$", "", relative_path)
    doc_id = doc_id.replace("\\", "/")
    doc_id = re.sub(r"^/+", "", doc_id)
    return re.sub(r"/+", "-", doc_id)


def slugify(text: str) -> str:
    """Lowercase heading text, hyphenate whitespace and drop other symbols."""
    slug = _WHITESPACE.sub("-", text.lower())
    return re.sub(r"[^\w-]", "", slug)


def classify_category(relative_path: str) -> str:
    """Derive the documentation category from directory segments.

    An api-reference folder anywhere in the path takes precedence over
    the ordered folder markers in ``CATEGORY_RULES``.

    Args:
        relative_path: Path relative to the corpus root.

    Returns:
        Category name, or ``DEFAULT_CATEGORY`` when no rule matches.
    """
    directories = [part for part in relative_path.replace("\\", "/").split("/") if part][:-1]

    if any(_API_REFERENCE_SEGMENT.match(part) for part in directories):
        return "api-reference"

    for marker, category in CATEGORY_RULES:
        if marker in directories:
            return category

    return DEFAULT_CATEGORY


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Separate a YAML front-matter block from the document body.

    Args:
        source: Raw file contents.

    Returns:
        Tuple of front-matter mapping (empty when absent) and body.

    Raises:
        yaml.YAMLError: If the front-matter block is not valid YAML.
    """
    match = _FRONT_MATTER.match(source)
    if not match:
        return {}, source

    data = yaml.safe_load(match.group(1) or "")
    if not isinstance(data, dict):
        data = {}
    return data, source[match.end() :]


class DocumentParser:
    """Parses Markdown and MDX files for Next.js documentation."""

    NEXTJS_DOCS_BASE_URL = "https://nextjs.org/docs"

    def __init__(self, base_url: str | None = None) -> None:
        """Initialise the parser.

        Args:
            base_url: Documentation site root used to build page URLs.
        """
        self.base_url = (base_url or self.NEXTJS_DOCS_BASE_URL).rstrip("/")
        # Indented code is disabled, as in MDX, so indented JSX children stay prose.
        self._markdown = MarkdownIt("commonmark").enable(["table", "strikethrough"]).disable("code")

    def parse_file(self, file_path: Path, base_path: Path, version: str = "latest") -> Document | None:
        """Parse a documentation file and extract metadata and content.

        Args:
            file_path: Path to the Markdown or MDX file.
            base_path: Root of the documentation tree.
            version: Version label recorded on the document.

        Returns:
            Document instance or None if the file cannot be read or parsed.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
            relative_path = file_path.relative_to(base_path).as_posix()
            return self.parse_text(source, relative_path, version)
        except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
            logger.debug("Could not parse %s: %s", file_path, exc)
            return None

    def parse_text(self, source: str, relative_path: str, version: str = "latest") -> Document:
        """Parse raw document text into a Document.

        Args:
            source: Raw file contents including optional front-matter.
            relative_path: Path relative to the documentation root.
            version: Version label recorded on the document.

        Returns:
            Document instance.

        Raises:
            yaml.YAMLError: If the front-matter block is malformed.
        """
        front_matter, body = split_front_matter(source)
        tree = SyntaxTreeNode(self._markdown.parse(body))

        headings = self._extract_headings(tree)
        metadata = self._extract_metadata(front_matter, tree, body)

        return Document(
            id=generate_id(relative_path),
            path=relative_path,
            title=metadata.title,
            description=metadata.description,
            category=classify_category(relative_path),
            version=version,
            content=clean_content(body),
            excerpt=generate_excerpt(body),
            url=self._compute_url(relative_path),
            headings=tuple(headings),
            code_blocks=tuple(self._extract_code_blocks(tree)),
        )

    def _extract_headings(self, tree: SyntaxTreeNode) -> list[DocumentHeading]:
        """Collect headings in document order.

        Only the direct text-bearing children of each heading are used, so
        emphasised or linked fragments are left out of the heading text.

        Args:
            tree: Parsed document tree.

        Returns:
            Headings with level, text and slug.
        """
        headings = []
        for node in tree.walk():
            if node.type != "heading":
                continue
            parts = []
            for inline in node.children:
                parts.extend(child.content for child in inline.children if child.type in ("text", "code_inline"))
            text = "".join(parts)
            if text:
                headings.append(DocumentHeading(level=int(node.tag[1:]), text=text, slug=slugify(text)))
        return headings

    def _extract_code_blocks(self, tree: SyntaxTreeNode) -> list[CodeBlock]:
        """Collect fenced code blocks in document order.

        Args:
            tree: Parsed document tree.

        Returns:
            Code blocks; the info string after the language is kept as context.
        """
        blocks = []
        for node in tree.walk():
            if node.type != "fence":
                continue
            code = node.content.rstrip("\n")
            if not code:
                continue
            language, _, meta = node.info.strip().partition(" ")
            blocks.append(CodeBlock(language=language or "text", code=code, context=meta.strip() or None))
        return blocks

    def _extract_title(self, tree: SyntaxTreeNode) -> str | None:
        """Return the full text of the first level-1 heading, markup removed."""
        for node in tree.walk():
            if node.type == "heading" and node.tag == "h1":
                text = clean_content("".join(inline.content for inline in node.children))
                if text:
                    return text
        return None

    def _extract_metadata(self, front_matter: dict[str, Any], tree: SyntaxTreeNode, body: str) -> DocumentMetadata:
        """Resolve title and description.

        Args:
            front_matter: Parsed front-matter mapping.
            tree: Parsed document tree for the fallback title.
            body: Raw document body for the fallback description.

        Returns:
            DocumentMetadata instance.
        """
        title = front_matter.get("title")
        if not title:
            title = self._extract_title(tree) or "Untitled"

        description = front_matter.get("description")
        if not description:
            description = generate_excerpt(body, 150)

        return DocumentMetadata(title=str(title), description=str(description))

    def _compute_url(self, relative_path: str) -> str:
        """Compute the nextjs.org documentation URL.

        Args:
            relative_path: Path relative to the documentation root.

        Returns:
            Full URL with ordering prefixes and index pages collapsed.
        """
        path_str = re.sub(r"\.mdx?$", "", relative_path.replace("\\", "/"))
        segments = [_ORDERING_PREFIX.sub("", part) for part in path_str.split("/") if part]
        if segments and segments[-1] == "index":
            segments.pop()
        if not segments:
            return self.base_url
        return f"{self.base_url}/{'/'.join(segments)}"
