"""Storage abstraction for content documents."""

import logging
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from folio.core.exceptions import NotFound, ParseError
from folio.core.frontmatter import (
    parse_document_text,
    parse_section_text,
    render_document_text,
    validate_model,
)
from folio.core.models import (
    INTERNAL_LINK_PREFIX,
    Document,
    DocumentMetadata,
    SectionMetadata,
    SortBy,
)

logger = logging.getLogger(__name__)

SECTION_INDEX = "_index.md"


@dataclass
class ScanResult:
    """Outcome of scanning the content directory."""

    documents: list[Document] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)


def sort_documents(documents: list[Document], sort_by: SortBy = "date") -> list[Document]:
    """Order documents the way the site generator orders a section.

    ``date`` and ``update_date`` sort newest first; ``title`` and ``weight``
    sort ascending. Ties, and documents without a weight, fall back to
    path order.
    """
    by_path = sorted(documents, key=lambda d: d.path)
    if sort_by == "date":
        return sorted(by_path, key=lambda d: d.date, reverse=True)
    if sort_by == "update_date":
        return sorted(by_path, key=lambda d: d.updated, reverse=True)
    if sort_by == "title":
        return sorted(by_path, key=lambda d: d.title.lower())
    if sort_by == "weight":
        weighted = [d for d in by_path if d.metadata.weight is not None]
        unweighted = [d for d in by_path if d.metadata.weight is None]
        return sorted(weighted, key=lambda d: d.metadata.weight) + unweighted
    return by_path


class ContentStore(ABC):
    """Abstract base class for document storage."""

    @abstractmethod
    def list_documents(self, include_drafts: bool = False) -> list[Document]:
        """List valid documents in the site's configured order.

        Files with malformed front matter are reported and skipped.
        """
        ...

    @abstractmethod
    def scan(self, include_drafts: bool = False) -> ScanResult:
        """Like list_documents, but also return the parse failures."""
        ...

    @abstractmethod
    def get_document(self, path: str) -> Document:
        """Load one document. Raises NotFound or ParseError."""
        ...

    @abstractmethod
    def document_exists(self, path: str) -> bool:
        """Check if a document exists."""
        ...

    @abstractmethod
    def get_raw_content(self, path: str) -> str:
        """Get raw file content including front matter."""
        ...

    @abstractmethod
    def get_section(self, path: str = "") -> SectionMetadata:
        """Get a section's settings from its _index.md."""
        ...

    @abstractmethod
    def save_document(
        self, path: str, metadata: DocumentMetadata, body: str = ""
    ) -> Document:
        """Write a document. Creates it if it doesn't exist."""
        ...


class FileContentStore(ContentStore):
    """File-based content store.

    Documents are Markdown files with a front matter header, nested
    anywhere under ``base_path``. Paths are POSIX-style and relative to
    ``base_path``, e.g. ``blog/arrow.md``.
    """

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)

    def _normalize(self, path: str) -> str:
        """Normalize a document path, accepting the ``@/`` link prefix."""
        path = path.removeprefix(INTERNAL_LINK_PREFIX).lstrip("/")
        return posixpath.normpath(path) if path else ""

    def _get_path(self, path: str) -> Path:
        """Get the full filesystem path, refusing to escape base_path."""
        normalized = self._normalize(path)
        full = (self.base_path / normalized).resolve()
        root = self.base_path.resolve()
        if full != root and root not in full.parents:
            raise NotFound(path)
        return full

    def _iter_files(self) -> list[Path]:
        if not self.base_path.is_dir():
            logger.warning("Content directory %s does not exist", self.base_path)
            return []
        return sorted(
            p
            for p in self.base_path.rglob("*.md")
            if p.is_file() and p.name != SECTION_INDEX
        )

    def _read_text(self, full: Path, rel: str) -> str:
        """Read a file as UTF-8; unreadable files are reported as ParseError."""
        try:
            return full.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(rel, f"file is not valid UTF-8: {e}") from e
        except OSError as e:
            raise ParseError(rel, f"could not read file: {e}") from e

    def _read(self, path: str) -> tuple[str, str]:
        """Return (normalized_path, text) for a document path."""
        full = self._get_path(path)
        if not full.is_file():
            raise NotFound(path)
        rel = self._normalize(path)
        return rel, self._read_text(full, rel)

    def scan(self, include_drafts: bool = False) -> ScanResult:
        """Parse every document under the content directory."""
        result = ScanResult()
        for full in self._iter_files():
            rel = full.relative_to(self.base_path).as_posix()
            logger.debug("Parsing %s", rel)
            try:
                document = parse_document_text(self._read_text(full, rel), rel)
            except ParseError as e:
                logger.warning("Skipping %s: %s", rel, e.reason)
                result.errors.append(e)
                continue
            if document.draft and not include_drafts:
                continue
            result.documents.append(document)

        sort_by = self._root_sort_by()
        result.documents = sort_documents(result.documents, sort_by)
        return result

    def _root_sort_by(self) -> SortBy:
        try:
            return self.get_section().sort_by
        except ParseError as e:
            logger.warning("Ignoring root section settings: %s", e)
            return "date"

    def list_documents(self, include_drafts: bool = False) -> list[Document]:
        """List documents ordered per the root section's ``sort_by``."""
        return self.scan(include_drafts).documents

    def get_document(self, path: str) -> Document:
        """Load a single document by path."""
        rel, text = self._read(path)
        return parse_document_text(text, rel)

    def document_exists(self, path: str) -> bool:
        try:
            return self._get_path(path).is_file()
        except NotFound:
            return False

    def get_raw_content(self, path: str) -> str:
        """Get raw file content including front matter."""
        return self._read(path)[1]

    def get_section(self, path: str = "") -> SectionMetadata:
        """Get section settings. Missing _index.md files yield defaults."""
        index_path = (PurePosixPath(self._normalize(path)) / SECTION_INDEX).as_posix()
        full = self._get_path(index_path)
        if not full.is_file():
            return SectionMetadata()
        metadata, _ = parse_section_text(
            self._read_text(full, index_path), index_path
        )
        return metadata

    def save_document(
        self, path: str, metadata: DocumentMetadata, body: str = ""
    ) -> Document:
        """Write a document to disk with a TOML header.

        Metadata is re-validated first, so changes made after construction
        are checked too. Nothing is written if validation fails.
        """
        full = self._get_path(path)
        if full.suffix != ".md":
            raise ValueError(f"Document paths must end in .md: {path}")
        rel = self._normalize(path)
        metadata = validate_model(
            DocumentMetadata, metadata.model_dump(exclude_unset=True), rel
        )
        document = Document(path=rel, metadata=metadata, body=body)
        text = render_document_text(document)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_text(text, encoding="utf-8")
        logger.info("Saved %s", document.path)
        return document
