"""Exceptions raised by the content store.

    FolioError
    ├── ParseError - front matter is missing, malformed or invalid
    └── NotFound   - requested document does not exist
"""


class FolioError(Exception):
    """Base class for all content store errors."""


class ParseError(FolioError):
    """A content file's front matter could not be parsed or validated.

    Attributes:
        path: Path of the offending file, relative to the content directory.
        reason: Human-readable description of what is wrong.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class NotFound(FolioError):
    """The requested document does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Document not found: {path}")
