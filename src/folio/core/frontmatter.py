"""Front matter parsing and serialization.

Documents carry a TOML header delimited by ``+++`` lines. A YAML header
delimited by ``---`` is also accepted, as the site generator supports both.
"""

import datetime
import math
import re
import tomllib
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ValidationError

from folio.core.exceptions import ParseError
from folio.core.models import Document, DocumentMetadata, SectionMetadata

FrontmatterFormat = Literal["toml", "yaml"]

TOML_PATTERN = re.compile(
    r"\A\ufeff?\+\+\+[ \t]*\r?\n(?:(.*?)\r?\n)?\+\+\+[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)
YAML_PATTERN = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)

# Keys written first, in this order, when serializing
CANONICAL_KEYS = ("title", "date", "updated", "description", "draft", "weight")

BARE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def split_frontmatter(
    text: str, path: str = "<string>"
) -> tuple[FrontmatterFormat, str, str]:
    """Split raw file content into its header and body.

    Returns (format, header_text, body). Raises ParseError when the file
    does not start with a terminated front matter block.
    """
    for fmt, pattern in (("toml", TOML_PATTERN), ("yaml", YAML_PATTERN)):
        match = pattern.match(text)
        if match:
            return fmt, match.group(1) or "", text[match.end() :]

    stripped = text.lstrip("\ufeff")
    if stripped.startswith("+++") or stripped.startswith("---"):
        raise ParseError(path, "unterminated front matter block")
    raise ParseError(path, "missing front matter (expected a +++ block)")


def _decode_header(fmt: FrontmatterFormat, header: str, path: str) -> dict[str, Any]:
    """Decode a header block into a plain dict."""
    if fmt == "toml":
        try:
            return tomllib.loads(header)
        except tomllib.TOMLDecodeError as e:
            raise ParseError(path, f"invalid TOML front matter: {e}") from e

    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as e:
        raise ParseError(path, f"invalid YAML front matter: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(path, "front matter must be a table of key/value pairs")
    return data


def _describe(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        if err["type"] == "missing":
            parts.append(f"missing required field '{loc}'")
        elif loc:
            parts.append(f"{loc}: {err['msg']}")
        else:
            parts.append(err["msg"])
    return "; ".join(parts)


def validate_model(model: type[BaseModel], data: dict[str, Any], path: str) -> Any:
    """Validate data into model, raising ParseError on failure."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ParseError(path, _describe(e)) from e


def parse_document_text(text: str, path: str = "<string>") -> Document:
    """Parse a content file into a Document.

    Raises:
        ParseError: If the header is missing, malformed, or fails validation
            (for example when ``title`` is absent).
    """
    fmt, header, body = split_frontmatter(text, path)
    data = _decode_header(fmt, header, path)
    metadata = validate_model(DocumentMetadata, data, path)
    return Document(path=path, metadata=metadata, body=body)


def parse_section_text(
    text: str, path: str = "<string>"
) -> tuple[SectionMetadata, str]:
    """Parse a section _index.md file.

    Every section field is optional; a file with no header yields defaults.
    """
    try:
        fmt, header, body = split_frontmatter(text, path)
    except ParseError:
        if text.lstrip("\ufeff").startswith(("+++", "---")):
            raise
        return SectionMetadata(), text
    data = _decode_header(fmt, header, path)
    return validate_model(SectionMetadata, data, path), body


# ============================================================
# Serialization
# ============================================================


def _format_key(key: str) -> str:
    if BARE_KEY_PATTERN.match(key):
        return key
    return _format_string(key)


def _format_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def format_toml_value(value: Any) -> str:
    """Format a Python value as a TOML value literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    if isinstance(value, (datetime.date, datetime.time)):
        # datetime is a date subclass, isoformat covers both
        return value.isoformat()
    if isinstance(value, str):
        return _format_string(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_toml_value(v) for v in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ", ".join(
            f"{_format_key(k)} = {format_toml_value(v)}" for k, v in value.items()
        )
        return "{ " + items + " }"
    raise TypeError(f"Cannot serialize {type(value).__name__} to TOML")


def _dump_table(name: str, table: dict[str, Any]) -> list[str]:
    """Emit a [name] table, followed by any nested sub-tables."""
    lines = [f"[{name}]"]
    nested = []
    for key, value in table.items():
        if isinstance(value, dict):
            nested.append((key, value))
        else:
            lines.append(f"{_format_key(key)} = {format_toml_value(value)}")
    for key, value in nested:
        lines.append("")
        lines.extend(_dump_table(f"{name}.{_format_key(key)}", value))
    return lines


def _ordered_items(data: dict[str, Any]) -> list[tuple[str, Any]]:
    ordered = [(k, data[k]) for k in CANONICAL_KEYS if k in data]
    ordered.extend((k, v) for k, v in data.items() if k not in CANONICAL_KEYS)
    return ordered


def dump_frontmatter(
    metadata: DocumentMetadata, fmt: FrontmatterFormat = "toml"
) -> str:
    """Serialize metadata into a delimited front matter block.

    Only fields that were explicitly set are written, so a parsed header
    serializes back to the same lines. TOML has no null, so None values
    are left out. The block ends with a newline.
    """
    data = metadata.model_dump(exclude_unset=True, exclude_none=True)
    items = _ordered_items(data)

    if fmt == "yaml":
        dumped = yaml.safe_dump(
            dict(items), default_flow_style=False, sort_keys=False, allow_unicode=True
        )
        return f"---\n{dumped}---\n"

    lines = []
    tables = []
    for key, value in items:
        if isinstance(value, dict):
            tables.append((key, value))
        else:
            lines.append(f"{_format_key(key)} = {format_toml_value(value)}")
    for key, value in tables:
        lines.append("")
        lines.extend(_dump_table(_format_key(key), value))

    return "+++\n" + "".join(f"{line}\n" for line in lines) + "+++\n"


def render_document_text(document: Document, fmt: FrontmatterFormat = "toml") -> str:
    """Render a Document back into file content (header plus body)."""
    return dump_frontmatter(document.metadata, fmt) + document.body
