"""Data models for Folio."""

import datetime
import math
from pathlib import PurePosixPath
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

INTERNAL_LINK_PREFIX = "@/"
SUMMARY_MARKER = "<!-- more -->"
WORDS_PER_MINUTE = 200

SortBy = Literal["date", "update_date", "title", "weight", "none"]


def _to_date(value: Any) -> Any:
    """TOML and YAML both hand back datetimes for timestamped values."""
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def permalink_for(path: str) -> str:
    """Map a content path to its URL path."""
    pure = PurePosixPath(path)
    if pure.name == "index.md":
        parts = pure.parent.parts
    else:
        parts = pure.with_suffix("").parts
    return "/" + "".join(f"{p}/" for p in parts)


class DocumentMetadata(BaseModel):
    """Metadata extracted from a document's front matter."""

    model_config = ConfigDict(extra="allow")

    title: str
    date: datetime.date
    updated: datetime.date | None = None
    description: str | None = None
    draft: bool = False
    weight: int | None = None
    taxonomies: dict[str, list[str]] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value

    @field_validator("date", "updated", mode="before")
    @classmethod
    def _truncate_datetime(cls, value: Any) -> Any:
        return _to_date(value)

    @model_validator(mode="after")
    def _updated_not_before_date(self) -> "DocumentMetadata":
        if self.updated is not None and self.updated < self.date:
            raise ValueError(
                f"updated ({self.updated}) is earlier than date ({self.date})"
            )
        return self


class SectionMetadata(BaseModel):
    """Metadata from a section's _index.md file."""

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    description: str | None = None
    sort_by: SortBy = "date"
    paginate_by: int | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class Document(BaseModel):
    """A content file: front matter plus an opaque Markdown body."""

    path: str
    metadata: DocumentMetadata
    body: str = ""

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def date(self) -> datetime.date:
        return self.metadata.date

    @property
    def updated(self) -> datetime.date:
        """Last-modified date, falling back to the creation date."""
        return self.metadata.updated or self.metadata.date

    @property
    def description(self) -> str | None:
        return self.metadata.description

    @property
    def draft(self) -> bool:
        return self.metadata.draft

    @property
    def permalink(self) -> str:
        """URL path of the rendered page.

        ``blog/post.md`` and ``blog/post/index.md`` both map to ``/blog/post/``.
        """
        return permalink_for(self.path)

    @property
    def summary(self) -> str | None:
        """Body text before the ``<!-- more -->`` marker, if any."""
        if SUMMARY_MARKER not in self.body:
            return None
        return self.body.split(SUMMARY_MARKER, 1)[0].strip()

    @property
    def word_count(self) -> int:
        """Approximate word count of the body."""
        return len(self.body.split())

    @property
    def reading_time(self) -> int:
        """Estimated reading time in minutes."""
        return max(1, math.ceil(self.word_count / WORDS_PER_MINUTE))
