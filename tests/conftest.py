"""Shared fixtures for documentation tests."""

import fnmatch
from collections.abc import Callable
from typing import Any

import pytest

from mcp_nextjs_documentation.models import CodeBlock, Document, DocumentHeading


class InMemoryRedis:
    """Dictionary-backed stand-in for the redis client calls the cache makes."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, name: str) -> str | None:
        return self.data.get(name)

    def setex(self, name: str, time: int, value: str) -> bool:
        self.data[name] = value
        self.ttls[name] = time
        return True

    def delete(self, *names: str) -> int:
        removed = 0
        for name in names:
            if self.data.pop(name, None) is not None:
                removed += 1
        return removed

    def keys(self, pattern: str = "*") -> list[str]:
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]


@pytest.fixture
def redis_backend() -> InMemoryRedis:
    """Create an empty in-memory redis stand-in.

    Returns:
        InMemoryRedis instance.
    """
    return InMemoryRedis()


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Factory for documents with sensible defaults.

    Returns:
        Callable accepting Document field overrides.
    """

    def _make(**overrides: Any) -> Document:
        doc_id = overrides.pop("id", "01-app-01-getting-started-01-installation")
        fields: dict[str, Any] = {
            "id": doc_id,
            "path": f"{doc_id}.mdx",
            "title": "Installation",
            "description": "Create a new Next.js application.",
            "category": "app-router",
            "version": "15.1.8",
            "content": "Run create-next-app to start a new project.",
            "excerpt": "Run create-next-app to start a new project.",
            "url": "https://nextjs.org/docs/app/getting-started/installation",
            "headings": (DocumentHeading(level=1, text="Installation", slug="installation"),),
            "code_blocks": (
                CodeBlock(language="bash", code="npx create-next-app@latest", context='filename="Terminal"'),
            ),
        }
        fields.update(overrides)
        return Document(**fields)

    return _make
