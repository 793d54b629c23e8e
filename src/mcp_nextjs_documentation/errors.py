"""Exceptions raised by the documentation core."""


class DocumentationError(Exception):
    """Base class for documentation errors."""


class CorpusEmptyError(DocumentationError):
    """Raised when a build finds no documents to extract."""

    def __init__(self, docs_path: object) -> None:
        """Initialise with the corpus root that produced nothing.

        Args:
            docs_path: Root directory that was scanned.
        """
        super().__init__(f"No documentation files found in {docs_path}")
        self.docs_path = docs_path


class DocumentationUnavailableError(DocumentationError):
    """Raised when no snapshot can be read for a requested version."""

    def __init__(self, version: str) -> None:
        """Initialise with the version that could not be loaded.

        Args:
            version: Requested version label.
        """
        super().__init__(
            f"Documentation not available for version {version!r}. "
            "Build a snapshot with `nextjs-docs build` first."
        )
        self.version = version
